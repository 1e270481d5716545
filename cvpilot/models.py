"""Records exchanged between the stores, the token manager and the workflow."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictFloat,
    StrictInt,
    ValidationError,
    field_validator,
    model_validator,
)

from cvpilot.errors import RequestFailed


@dataclass(frozen=True)
class Session:
    """Credential pair for the Analysis Service."""

    access_token: Optional[str] = None
    refresh_token: Optional[str] = None

    @property
    def authenticated(self) -> bool:
        return self.access_token is not None


class ResumeSource(str, Enum):
    MANUAL = "manual"
    PAGE = "page"


@dataclass(frozen=True)
class ResumeRecord:
    text: str
    source: ResumeSource
    updated_at: Optional[datetime] = None


class VacancyContext(BaseModel):
    """Vacancy data extracted from the page currently being viewed."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    title: str = ""
    company: str = ""
    description: str = ""
    skills: Tuple[str, ...] = ()
    full_text: str = Field(default="", alias="fullText")

    @field_validator("title", "company", "description", "full_text", mode="before")
    @classmethod
    def as_text(cls, value: Any) -> str:
        return _clean(value)

    @field_validator("skills", mode="before")
    @classmethod
    def unique_skills(cls, value: Any) -> Tuple[str, ...]:
        if not isinstance(value, (list, tuple)):
            return ()
        skills: List[str] = []
        for raw_skill in value:
            skill = _clean(raw_skill)
            if skill and skill not in skills:
                skills.append(skill)
        return tuple(skills)

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "VacancyContext":
        """Build a vacancy from the page reader's ``data`` object."""
        vacancy = cls.model_validate(data)
        if vacancy.full_text:
            return vacancy

        parts = []
        if vacancy.title:
            parts.append(f"Vacancy: {vacancy.title}")
        if vacancy.company:
            parts.append(f"Company: {vacancy.company}")
        if vacancy.description:
            parts.append(vacancy.description)
        if vacancy.skills:
            parts.append(f"Key skills: {', '.join(vacancy.skills)}")
        return vacancy.model_copy(update={"full_text": "\n\n".join(parts)})

    @property
    def analysis_text(self) -> str:
        return self.full_text or self.description


class PageKind(str, Enum):
    VACANCY = "vacancy"
    RESUME = "resume"
    OTHER = "other"


@dataclass(frozen=True)
class PageInfo:
    kind: PageKind = PageKind.OTHER
    vacancy: Optional[VacancyContext] = None
    resume_text: Optional[str] = None


class ServiceModel(BaseModel):
    """Base for objects decoded from Analysis Service JSON.

    Null members fall back to the field default.
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    @model_validator(mode="before")
    @classmethod
    def drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


class Strength(ServiceModel):
    area: str = ""
    description: str = ""


class PartialMatch(ServiceModel):
    requirement: str = ""
    comment: str = ""


class Gap(ServiceModel):
    missing_requirement: str = ""
    impact: str = ""


class Recommendations(ServiceModel):
    resume_improvements: List[str] = Field(default_factory=list)
    skills_to_highlight: List[str] = Field(default_factory=list)
    skills_to_acquire: List[str] = Field(default_factory=list)

    @field_validator("resume_improvements", "skills_to_highlight", "skills_to_acquire")
    @classmethod
    def skip_blank(cls, items: List[str]) -> List[str]:
        return [item.strip() for item in items if item.strip()]


class MatchAnalysis(ServiceModel):
    match_score: Union[StrictInt, StrictFloat]
    match_level: str = ""
    summary: str = ""
    strengths: List[Strength] = Field(default_factory=list)
    partial_matches: List[PartialMatch] = Field(default_factory=list)
    gaps: List[Gap] = Field(default_factory=list)
    recommendations: Recommendations = Field(default_factory=Recommendations)
    risk_notes: List[str] = Field(default_factory=list)

    @field_validator("risk_notes")
    @classmethod
    def skip_blank(cls, items: List[str]) -> List[str]:
        return [item.strip() for item in items if item.strip()]


class AnalysisMetadata(ServiceModel):
    remaining_today: Optional[StrictInt] = None


class MatchPayload(ServiceModel):
    """The ``data`` object of a ``/analysis/match`` response."""

    analysis: MatchAnalysis
    metadata: AnalysisMetadata = Field(default_factory=AnalysisMetadata)


class AnalysisResult(ServiceModel):
    """Outcome of one match analysis as reported by the service."""

    score: int = Field(ge=0, le=100)
    match_level: str = ""
    summary: str = ""
    strengths: List[Strength] = Field(default_factory=list)
    partial_matches: List[PartialMatch] = Field(default_factory=list)
    gaps: List[Gap] = Field(default_factory=list)
    recommendations: Recommendations = Field(default_factory=Recommendations)
    risk_notes: List[str] = Field(default_factory=list)
    remaining_today: Optional[int] = None

    @classmethod
    def from_payload(cls, data: Any) -> "AnalysisResult":
        """Parse the ``data`` object of a ``/analysis/match`` response.

        Raises:
            RequestFailed: when the payload does not match the response schema.
        """
        try:
            payload = MatchPayload.model_validate(data)
        except ValidationError as exc:
            raise RequestFailed(
                "Analysis response is malformed", code="MALFORMED_RESPONSE"
            ) from exc

        analysis = payload.analysis
        return cls(
            score=max(0, min(100, int(round(analysis.match_score)))),
            match_level=analysis.match_level,
            summary=analysis.summary,
            strengths=analysis.strengths,
            partial_matches=analysis.partial_matches,
            gaps=analysis.gaps,
            recommendations=analysis.recommendations,
            risk_notes=analysis.risk_notes,
            remaining_today=payload.metadata.remaining_today,
        )


def _clean(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()
