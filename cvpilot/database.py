"""MongoDB connection management for the locally persisted session and resume."""

from __future__ import annotations

import os
from typing import Optional

from pymongo import MongoClient
from pymongo.collection import Collection
from pymongo.database import Database

TOKENS_COLLECTION = "tokens"
RESUMES_COLLECTION = "resumes"

# Lazily created on first use.
_client: Optional[MongoClient] = None
_database: Optional[Database] = None


def get_mongo_client() -> MongoClient:
    """Get or create the shared MongoDB client."""
    global _client
    if _client is None:
        _client = MongoClient(os.getenv("MONGODB_URI", "mongodb://localhost:27017/"))
    return _client


def get_database() -> Database:
    """Return the database named by ``MONGODB_DATABASE``."""
    global _database
    if _database is None:
        _database = get_mongo_client()[os.getenv("MONGODB_DATABASE", "cvpilot")]
    return _database


def get_collection(name: str) -> Collection:
    """Look up a collection on the configured database."""
    return get_database()[name]
