"""Workflow states, the pure derivation rule and the transition reducer.

A :class:`WorkflowView` is the single active state plus the data that state
renders. Views are immutable; the controller produces a new one for every
event through :func:`reduce`.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Union

from cvpilot.errors import AuthExpired, CVPilotError, LimitExceeded
from cvpilot.models import AnalysisResult, PageInfo, PageKind, ResumeRecord, VacancyContext
from cvpilot.utils.text import make_text_excerpt
from cvpilot.workflow.presenter import ResultView, ResumeSummary, build_result_view, summarize_resume

QUOTA_KEYWORD = "limit"


class WorkflowState(str, Enum):
    AUTH = "auth"
    EMPTY = "empty"
    READY = "ready"
    LOADING = "loading"
    RESULT = "result"
    LIMIT = "limit"
    ERROR = "error"
    WRONG_PAGE = "wrong-page"


class EntryMode(str, Enum):
    """How the ``empty`` state collects a resume."""

    MANUAL = "manual"
    IMPORT = "import"


@dataclass(frozen=True)
class Notice:
    text: str
    level: str = "error"


@dataclass(frozen=True)
class WorkflowView:
    state: WorkflowState
    entry_mode: Optional[EntryMode] = None
    page_resume_text: Optional[str] = None
    page_resume_preview: Optional[str] = None
    vacancy: Optional[VacancyContext] = None
    resume: Optional[ResumeRecord] = None
    resume_summary: Optional[ResumeSummary] = None
    result: Optional[ResultView] = None
    message: Optional[str] = None
    notice: Optional[Notice] = None
    can_retry: bool = False

    @property
    def show_sign_out(self) -> bool:
        return self.state is not WorkflowState.AUTH


def derive_view(
    authenticated: bool,
    page: PageInfo,
    resume: Optional[ResumeRecord],
) -> WorkflowView:
    """Select the one state matching the session, the page and the stored resume.

    Rules are checked in order and the first match wins:

    1. no session -> ``auth``
    2. resume page with text -> ``empty``, offering the page text for import
       even when a resume is already stored
    3. nothing stored -> ``empty``, manual entry
    4. vacancy page -> ``ready``
    5. anything else -> ``wrong-page``
    """
    if not authenticated:
        return WorkflowView(WorkflowState.AUTH)

    if page.kind is PageKind.RESUME and page.resume_text:
        return WorkflowView(
            WorkflowState.EMPTY,
            entry_mode=EntryMode.IMPORT,
            page_resume_text=page.resume_text,
            page_resume_preview=make_text_excerpt(page.resume_text),
            resume=resume,
        )

    if resume is None:
        return WorkflowView(WorkflowState.EMPTY, entry_mode=EntryMode.MANUAL)

    if page.kind is PageKind.VACANCY and page.vacancy is not None:
        return WorkflowView(
            WorkflowState.READY,
            vacancy=page.vacancy,
            resume=resume,
            resume_summary=summarize_resume(resume),
        )

    return WorkflowView(WorkflowState.WRONG_PAGE, resume=resume)


@dataclass(frozen=True)
class Derived:
    authenticated: bool
    page: PageInfo
    resume: Optional[ResumeRecord]


@dataclass(frozen=True)
class AnalysisStarted:
    pass


@dataclass(frozen=True)
class ResumeMissing:
    pass


@dataclass(frozen=True)
class AnalysisSucceeded:
    result: AnalysisResult


@dataclass(frozen=True)
class AnalysisFailed:
    error: CVPilotError


@dataclass(frozen=True)
class NoticePosted:
    notice: Notice


@dataclass(frozen=True)
class SignInFailed:
    message: str


@dataclass(frozen=True)
class SignedOut:
    pass


Event = Union[
    Derived,
    AnalysisStarted,
    ResumeMissing,
    AnalysisSucceeded,
    AnalysisFailed,
    NoticePosted,
    SignInFailed,
    SignedOut,
]


def is_quota_error(error: CVPilotError) -> bool:
    return isinstance(error, LimitExceeded) or QUOTA_KEYWORD in error.message.lower()


def reduce(view: WorkflowView, event: Event) -> WorkflowView:
    """Apply one event to the current view and return the next view."""
    if isinstance(event, Derived):
        return derive_view(event.authenticated, event.page, event.resume)

    if isinstance(event, AnalysisStarted):
        return replace(view, state=WorkflowState.LOADING, message=None, notice=None, can_retry=False)

    if isinstance(event, ResumeMissing):
        return WorkflowView(WorkflowState.EMPTY, entry_mode=EntryMode.MANUAL)

    if isinstance(event, AnalysisSucceeded):
        return replace(
            view,
            state=WorkflowState.RESULT,
            result=build_result_view(event.result),
            message=None,
            can_retry=False,
        )

    if isinstance(event, AnalysisFailed):
        error = event.error
        if isinstance(error, AuthExpired):
            return WorkflowView(WorkflowState.AUTH)
        if is_quota_error(error):
            return replace(view, state=WorkflowState.LIMIT, message=error.message, can_retry=False)
        return replace(view, state=WorkflowState.ERROR, message=error.message, can_retry=True)

    if isinstance(event, NoticePosted):
        return replace(view, notice=event.notice)

    if isinstance(event, SignInFailed):
        return WorkflowView(WorkflowState.ERROR, message=event.message)

    if isinstance(event, SignedOut):
        return WorkflowView(WorkflowState.AUTH)

    raise TypeError(f"Unknown workflow event: {event!r}")
