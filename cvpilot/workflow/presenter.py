"""Reduce analysis results and stored records to render-ready view data."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from cvpilot import config
from cvpilot.models import AnalysisResult, ResumeRecord, ResumeSource
from cvpilot.utils.text import format_date, make_text_excerpt


class ScoreTier(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    MEDIUM = "medium"
    LOW = "low"


def score_tier(score: int) -> ScoreTier:
    """Map a 0-100 match score onto its presentation tier."""
    if score >= 81:
        return ScoreTier.EXCELLENT
    if score >= 61:
        return ScoreTier.GOOD
    if score >= 31:
        return ScoreTier.MEDIUM
    return ScoreTier.LOW


@dataclass(frozen=True)
class ResultView:
    score: int
    tier: ScoreTier
    match_level: str
    summary: str
    strengths: List[Tuple[str, str]] = field(default_factory=list)
    partial_matches: List[Tuple[str, str]] = field(default_factory=list)
    gaps: List[Tuple[str, str]] = field(default_factory=list)
    recommendation_groups: List[Tuple[str, List[str]]] = field(default_factory=list)
    risk_notes: List[str] = field(default_factory=list)
    remaining_text: Optional[str] = None


def build_result_view(result: AnalysisResult) -> ResultView:
    """Flatten an AnalysisResult into the rows a renderer shows.

    Recommendation groups without items are left out.
    """
    recommendations = result.recommendations
    groups = [
        ("Resume improvements", recommendations.resume_improvements),
        ("Skills to highlight", recommendations.skills_to_highlight),
        ("Skills to acquire", recommendations.skills_to_acquire),
    ]

    remaining_text = None
    if result.remaining_today is not None:
        remaining_text = (
            f"{result.remaining_today} of {config.DAILY_ANALYSIS_LIMIT} analyses remaining today"
        )

    return ResultView(
        score=result.score,
        tier=score_tier(result.score),
        match_level=result.match_level,
        summary=result.summary,
        strengths=[(item.area, item.description) for item in result.strengths],
        partial_matches=[(item.requirement, item.comment) for item in result.partial_matches],
        gaps=[(item.missing_requirement, item.impact) for item in result.gaps],
        recommendation_groups=[(title, list(items)) for title, items in groups if items],
        risk_notes=list(result.risk_notes),
        remaining_text=remaining_text,
    )


@dataclass(frozen=True)
class ResumeSummary:
    preview: str
    meta: str


def summarize_resume(record: ResumeRecord) -> ResumeSummary:
    source = "Auto-parsed from page" if record.source is ResumeSource.PAGE else "Manual input"
    date = format_date(record.updated_at)
    return ResumeSummary(
        preview=make_text_excerpt(record.text),
        meta=f"{source} · {date}" if date else source,
    )
