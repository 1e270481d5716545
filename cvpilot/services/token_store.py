"""Persistence for the access/refresh token pair in MongoDB."""

from __future__ import annotations

from datetime import datetime, timezone

from cvpilot import database
from cvpilot.models import Session

SESSION_ID = "session"


def _collection():
    return database.get_collection(database.TOKENS_COLLECTION)


def get_tokens() -> Session:
    """
    Read the stored session.

    Returns:
        The stored Session, or an empty one when nothing is stored
    """
    document = _collection().find_one({"_id": SESSION_ID})
    if not document:
        return Session()

    return Session(
        access_token=document.get("access_token") or None,
        refresh_token=document.get("refresh_token") or None,
    )


def save_tokens(access_token: str, refresh_token: str) -> Session:
    """
    Overwrite both tokens in a single document write.

    Args:
        access_token: Short-lived bearer credential
        refresh_token: Long-lived credential used to renew the access token

    Returns:
        The Session that was saved
    """
    _collection().update_one(
        {"_id": SESSION_ID},
        {
            "$set": {
                "access_token": access_token,
                "refresh_token": refresh_token,
                "updated_at": datetime.now(timezone.utc),
            }
        },
        upsert=True,
    )
    return Session(access_token=access_token, refresh_token=refresh_token)


def clear_tokens() -> bool:
    """
    Remove both tokens together.

    Returns:
        True if a stored session was deleted, False if none existed
    """
    result = _collection().delete_one({"_id": SESSION_ID})
    return result.deleted_count > 0
