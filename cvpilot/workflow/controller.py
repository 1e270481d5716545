"""Popup workflow controller.

The controller owns the current :class:`WorkflowView`. Each user action runs
its side effects (messages to the background, page reader round-trips,
resume store writes) in sequence and feeds the outcome through
:func:`cvpilot.workflow.states.reduce`.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from cvpilot import config
from cvpilot.errors import CVPilotError, ValidationFailed, error_from_response
from cvpilot.models import AnalysisResult, PageInfo, ResumeSource
from cvpilot.services import resume_store
from cvpilot.services.page_reader import PageReader, read_page_context
from cvpilot.workflow.messenger import Messenger
from cvpilot.workflow.states import (
    AnalysisFailed,
    AnalysisStarted,
    AnalysisSucceeded,
    Derived,
    Event,
    Notice,
    NoticePosted,
    ResumeMissing,
    SignedOut,
    SignInFailed,
    WorkflowState,
    WorkflowView,
    reduce,
)

_LOGGER = logging.getLogger(__name__)

RetryAction = Callable[[], Awaitable[WorkflowView]]

ANALYSIS_FAILED_MESSAGE = "Failed to analyze. Please try again."
SIGN_IN_FAILED_MESSAGE = "Failed to sign in"


def validate_resume_text(text: str, too_short_message: Optional[str] = None) -> str:
    """Return the stripped resume text or raise ValidationFailed."""
    text = (text or "").strip()
    if not text:
        raise ValidationFailed(too_short_message or "Please paste your resume text")
    if len(text) < config.MIN_RESUME_LENGTH:
        raise ValidationFailed(
            too_short_message
            or f"Resume text is too short (min {config.MIN_RESUME_LENGTH} characters)"
        )
    return text


class WorkflowController:
    """Drive the sign-in, resume, analysis and result states."""

    def __init__(self, messenger: Messenger, page_reader: Optional[PageReader] = None) -> None:
        self.messenger = messenger
        self.page_reader = page_reader
        self.view = WorkflowView(WorkflowState.AUTH)
        self._retry_action: Optional[RetryAction] = None
        # Bumped whenever an analysis result would no longer belong to the view.
        self._generation = 0
        # Created on first activation so it belongs to the running loop.
        self._derive_lock: Optional[asyncio.Lock] = None

    def _dispatch(self, event: Event) -> WorkflowView:
        previous = self.view.state
        self.view = reduce(self.view, event)
        if self.view.state is not previous:
            _LOGGER.debug("Workflow %s -> %s", previous.value, self.view.state.value)
        return self.view

    async def activate(self) -> WorkflowView:
        """Re-derive the state from the session, the active page and the stored resume."""
        if self._derive_lock is None:
            self._derive_lock = asyncio.Lock()
        async with self._derive_lock:
            self._generation += 1
            self._retry_action = None

            auth_state = await self.messenger.send({"type": "GET_AUTH_STATE"})
            authenticated = bool(auth_state and auth_state.get("authenticated"))
            if not authenticated:
                return self._dispatch(Derived(False, PageInfo(), None))

            page = await read_page_context(self.page_reader)
            resume = resume_store.get_resume()
            return self._dispatch(Derived(True, page, resume))

    async def sign_in(self) -> WorkflowView:
        response = await self.messenger.send({"type": "AUTH_GOOGLE"})
        if response and response.get("success"):
            return await self.activate()

        self._retry_action = None
        error = error_from_response(response, SIGN_IN_FAILED_MESSAGE)
        return self._dispatch(SignInFailed(error.message))

    async def run_analysis(self) -> WorkflowView:
        """Analyze the current vacancy against the stored resume.

        Only available from the ``ready`` and ``result`` states.
        """
        if self.view.state not in (WorkflowState.READY, WorkflowState.RESULT):
            return self.view
        return await self._run_analysis()

    async def _run_analysis(self) -> WorkflowView:
        vacancy = self.view.vacancy
        if vacancy is None:
            return self.view

        self._generation += 1
        generation = self._generation
        self._dispatch(AnalysisStarted())

        resume = resume_store.get_resume()
        if resume is None:
            return self._dispatch(ResumeMissing())

        response = await self.messenger.send(
            {
                "type": "ANALYZE",
                "vacancyText": vacancy.analysis_text,
                "resumeText": resume.text,
                "vacancyTitle": vacancy.title,
                "companyName": vacancy.company,
            }
        )

        if generation != self._generation:
            _LOGGER.info("Discarding analysis result that finished after the view changed")
            return self.view

        if response and response.get("success"):
            try:
                result = AnalysisResult.from_payload(response.get("data"))
            except CVPilotError as exc:
                return self._fail_analysis(exc)
            return self._dispatch(AnalysisSucceeded(result))

        return self._fail_analysis(error_from_response(response, ANALYSIS_FAILED_MESSAGE))

    def _fail_analysis(self, error: CVPilotError) -> WorkflowView:
        view = self._dispatch(AnalysisFailed(error))
        if view.state is WorkflowState.ERROR:
            self._retry_action = self._run_analysis
        return view

    async def save_resume(
        self,
        text: str,
        source: ResumeSource = ResumeSource.MANUAL,
    ) -> WorkflowView:
        """Store a resume and re-derive, or stay put with a validation notice."""
        try:
            text = validate_resume_text(text)
        except ValidationFailed as exc:
            return self._dispatch(NoticePosted(Notice(exc.message)))

        resume_store.save_resume(text, source)
        await self.activate()
        return self._dispatch(NoticePosted(Notice("Resume saved!", "success")))

    async def import_page_resume(self) -> WorkflowView:
        """Store the resume text offered by the current resume page."""
        try:
            text = validate_resume_text(
                self.view.page_resume_text or "", "Resume text is too short to load"
            )
        except ValidationFailed as exc:
            return self._dispatch(NoticePosted(Notice(exc.message)))

        resume_store.save_resume(text, ResumeSource.PAGE)
        await self.activate()
        return self._dispatch(NoticePosted(Notice("Resume loaded from page!", "success")))

    async def clear_resume(self) -> WorkflowView:
        resume_store.clear_resume()
        return await self.activate()

    async def sign_out(self) -> WorkflowView:
        """Sign out in the background and return to ``auth`` whatever it answers."""
        self._generation += 1
        self._retry_action = None
        await self.messenger.send({"type": "SIGN_OUT"})
        return self._dispatch(SignedOut())

    async def retry(self) -> WorkflowView:
        if self._retry_action is not None:
            return await self._retry_action()
        return await self.activate()
