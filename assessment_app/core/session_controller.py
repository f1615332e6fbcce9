"""Facade that runs one timed assessment session against its collaborators."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
import logging

from assessment_app.constants.session_constants import (
    FINALIZE_RELEASE_GRACE_SECONDS,
    LOW_TIME_WARNING_DISMISS_SECONDS,
    LOW_TIME_WARNING_THRESHOLD_SECONDS,
    TICK_INTERVAL_SECONDS,
)
from assessment_app.constants.ui_constants import (
    ALREADY_ANSWERED_MESSAGE,
    GENERIC_ERROR_MESSAGE,
)
from assessment_app.core.errors import (
    AlreadyCompletedError,
    AssessmentEngineError,
    NotFoundError,
)
from assessment_app.core.gateway import PortalGateway, SessionHost
from assessment_app.core.models import (
    FinalizeOutcome,
    FinalizeTrigger,
    NavigationAction,
    Question,
    ResultReview,
    SessionState,
)
from assessment_app.core.services.answer_recorder import AnswerRecorder, QuestionCursor
from assessment_app.core.services.assessment_fetcher import AssessmentFetcher
from assessment_app.core.services.countdown_clock import CountdownClock, LowTimeWarning
from assessment_app.core.services.result_reconstructor import ResultReconstructor
from assessment_app.core.services.session_store import SessionStore
from assessment_app.core.services.submission_arbiter import SubmissionArbiter
from assessment_app.core.session_context import SessionContext
from assessment_app.core.timestamps import now_ms

logger = logging.getLogger(__name__)


class SessionController:
    """Facade for the engine services: Fetcher, Clock, Recorder, Arbiter, Reconstructor.

    All methods run on one asyncio loop. Domain errors are translated into
    host navigation here and nowhere else.
    """

    def __init__(
        self,
        gateway: PortalGateway,
        store: SessionStore,
        host: SessionHost,
        *,
        clock: Callable[[], int] = now_ms,
        tick_interval: float = TICK_INTERVAL_SECONDS,
        warning_threshold: int = LOW_TIME_WARNING_THRESHOLD_SECONDS,
        warning_dismiss_seconds: float = LOW_TIME_WARNING_DISMISS_SECONDS,
        release_grace_seconds: float = FINALIZE_RELEASE_GRACE_SECONDS,
    ) -> None:
        self._store = store
        self._host = host
        self._tick_interval = tick_interval
        self._warning_threshold = warning_threshold
        self._warning_dismiss_seconds = warning_dismiss_seconds

        # Services
        self._fetcher = AssessmentFetcher(gateway, store, clock=clock)
        self._arbiter = SubmissionArbiter(
            gateway,
            store,
            host,
            clock=clock,
            release_grace_seconds=release_grace_seconds,
        )
        self._reconstructor = ResultReconstructor(gateway)

        self._context: SessionContext | None = None
        self._expiry_task: asyncio.Task[FinalizeOutcome | None] | None = None
        self._last_outcome: FinalizeOutcome | None = None

    # --- Session lifecycle ---

    async def begin(self, assessment_id: str, student_id: str) -> SessionContext | None:
        """Open (or resume after reload) an attempt; None when the host was redirected."""
        if self._context is not None:
            # One open session per controller; the previous clock must not outlive it.
            self.abandon()
        try:
            fetched = await self._fetcher.fetch(assessment_id, student_id)
        except AlreadyCompletedError:
            logger.info("Student %s already answered %s", student_id, assessment_id)
            self._host.redirect_to_list(ALREADY_ANSWERED_MESSAGE)
            return None
        except NotFoundError:
            logger.info("Assessment %s not found", assessment_id)
            self._host.redirect_to_list()
            return None
        except AssessmentEngineError as exc:
            logger.warning("Could not open assessment %s: %s", assessment_id, exc)
            self._host.redirect_to_list(GENERIC_ERROR_MESSAGE)
            return None

        assessment = fetched.assessment
        if assessment.question_count == 0:
            logger.warning("Assessment %s has no questions", assessment_id)
            self._host.redirect_to_list()
            return None

        recorder = AnswerRecorder(assessment, self._store, self._store.load_answers(assessment_id))
        context = SessionContext(
            assessment_id=assessment_id,
            student_id=student_id,
            assessment=assessment,
            start_timestamp_ms=fetched.start_timestamp_ms,
            recorder=recorder,
            cursor=QuestionCursor(assessment, recorder),
        )
        context.images = await self._fetcher.resolve_images(assessment)

        if fetched.total_seconds is not None:
            self._attach_clock(context, fetched.total_seconds)

        self._context = context
        self._last_outcome = None
        self._host.set_leave_confirmation(True)
        if context.clock is not None:
            context.clock.start()
        return context

    def _attach_clock(self, context: SessionContext, total_seconds: int) -> None:
        assessment_id = context.assessment_id
        saved = self._store.load_remaining_seconds(assessment_id)
        warning = LowTimeWarning(
            on_show=self._host.show_low_time_warning,
            on_hide=self._host.hide_low_time_warning,
            dismiss_after_seconds=self._warning_dismiss_seconds,
        )

        def on_tick(remaining: int) -> None:
            self._store.save_remaining_seconds(assessment_id, remaining)
            self._host.render_remaining(remaining)

        context.warning = warning
        context.clock = CountdownClock(
            total_seconds,
            on_expire=lambda: self._on_clock_expired(context),
            on_tick=on_tick,
            on_low_time=warning.raise_once,
            remaining_seconds=saved,
            tick_interval=self._tick_interval,
            warning_threshold=self._warning_threshold,
        )

    def _on_clock_expired(self, context: SessionContext) -> None:
        # Finalize runs in its own task so stopping the clock never cancels it.
        self._expiry_task = asyncio.get_running_loop().create_task(
            self._finalize(context, FinalizeTrigger.EXPIRY),
            name="expiry-finalize",
        )

    async def submit(self) -> FinalizeOutcome | None:
        """Manual submit; a no-op while another finalize is in flight or after close."""
        context = self._context
        if context is None or context.is_closed:
            return None
        return await self._finalize(context, FinalizeTrigger.MANUAL)

    async def _finalize(
        self, context: SessionContext, trigger: FinalizeTrigger
    ) -> FinalizeOutcome | None:
        outcome = await self._arbiter.finalize(context, trigger)
        if outcome is not None:
            self._last_outcome = outcome
        return outcome

    async def wait_for_expiry(self) -> FinalizeOutcome | None:
        """Await the finalize started by timer expiry, if there is one."""
        if self._expiry_task is None:
            return None
        return await self._expiry_task

    def abandon(self) -> None:
        """Leave the page without submitting; the stored progress stays for a reload."""
        context = self._context
        if context is None:
            return
        context.stop_clock()
        self._context = None
        if not context.is_closed:
            logger.info("Left assessment %s without submitting", context.assessment_id)

    # --- Answer recording & navigation ---

    def _require_context(self) -> SessionContext:
        if self._context is None or self._context.is_closed:
            raise RuntimeError("No assessment session is open.")
        return self._context

    def select_answer(self, question_index: int, option_label: str) -> None:
        context = self._require_context()
        context.recorder.select(question_index, option_label)

    def select_current(self, option_label: str) -> None:
        context = self._require_context()
        context.recorder.select(context.cursor.index, option_label)

    def go_next(self) -> int:
        return self._require_context().cursor.next()

    def go_previous(self) -> int:
        return self._require_context().cursor.previous()

    def current_question(self) -> Question:
        context = self._require_context()
        return context.assessment.questions[context.cursor.index]

    def primary_action(self) -> NavigationAction:
        return self._require_context().cursor.primary_action()

    def can_go_next(self) -> bool:
        return self._require_context().cursor.can_go_next()

    # --- Inspection ---

    @property
    def context(self) -> SessionContext | None:
        return self._context

    @property
    def last_outcome(self) -> FinalizeOutcome | None:
        return self._last_outcome

    def snapshot(self) -> SessionState | None:
        if self._context is None:
            return None
        return self._context.snapshot()

    # --- Result view ---

    async def review(self, assessment_id: str, student_id: str) -> ResultReview | None:
        """Build the result view; a missing result or assessment redirects to the list."""
        try:
            return await self._reconstructor.reconstruct(assessment_id, student_id)
        except NotFoundError:
            self._host.redirect_to_list()
        except AssessmentEngineError as exc:
            logger.warning("Could not load result for %s: %s", assessment_id, exc)
            self._host.redirect_to_list(GENERIC_ERROR_MESSAGE)
        return None
