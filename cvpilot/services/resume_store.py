"""Service for the single stored resume record in MongoDB."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from cvpilot import database
from cvpilot.models import ResumeRecord, ResumeSource

RESUME_ID = 1


def _collection():
    return database.get_collection(database.RESUMES_COLLECTION)


def get_resume() -> Optional[ResumeRecord]:
    """
    Retrieve the stored resume.

    Returns:
        The resume record, or None if no resume with text is stored
    """
    document = _collection().find_one({"_id": RESUME_ID})
    if not document or not document.get("text"):
        return None

    try:
        source = ResumeSource(document.get("source"))
    except ValueError:
        source = ResumeSource.MANUAL

    updated_at = document.get("updated_at")
    if isinstance(updated_at, datetime) and updated_at.tzinfo is None:
        # BSON datetimes come back naive but are stored as UTC
        updated_at = updated_at.replace(tzinfo=timezone.utc)

    return ResumeRecord(text=document["text"], source=source, updated_at=updated_at)


def save_resume(
    text: str,
    source: ResumeSource = ResumeSource.MANUAL,
    updated_at: Optional[datetime] = None,
) -> ResumeRecord:
    """
    Replace the stored resume with a new record.

    The length check happens in the workflow before this is called.

    Args:
        text: Resume text
        source: Where the text came from
        updated_at: Save time, defaults to now (UTC)

    Returns:
        The saved record
    """
    record = ResumeRecord(
        text=text,
        source=ResumeSource(source),
        updated_at=updated_at or datetime.now(timezone.utc),
    )
    _collection().replace_one(
        {"_id": RESUME_ID},
        {
            "_id": RESUME_ID,
            "text": record.text,
            "source": record.source.value,
            "updated_at": record.updated_at,
        },
        upsert=True,
    )
    return record


def clear_resume() -> bool:
    """
    Delete the stored resume.

    Returns:
        True if a resume was deleted, False if none was stored
    """
    result = _collection().delete_one({"_id": RESUME_ID})
    return result.deleted_count > 0
