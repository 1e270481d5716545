"""Text helpers for previews shown next to the workflow states."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from cvpilot import config


def make_text_excerpt(text: str, limit: Optional[int] = None) -> str:
    """Clamp text to a preview-friendly length, marking the cut with an ellipsis."""
    if not text:
        return ""
    limit = config.PREVIEW_LENGTH if limit is None else limit
    return text[:limit] + "..."


def format_date(value: Optional[datetime]) -> str:
    """Render a save time as a short local date."""
    if value is None:
        return ""
    return value.astimezone().strftime("%Y-%m-%d")
