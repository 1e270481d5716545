"""Service layer modules for the CVPilot client."""

from . import identity, page_reader, resume_store, token_manager, token_store

__all__ = [
    "identity",
    "page_reader",
    "resume_store",
    "token_manager",
    "token_store",
]
