"""Idempotent finalize: grade against the canonical key, persist, clear, navigate.

Architecture note:
    Timer expiry and a manual submit can both reach ``finalize`` before
    either has finished its network calls. Only the caller that takes the
    session's reentrancy flag runs; every other caller returns ``None``
    immediately instead of queueing. The flag is handed back only after
    navigation has started, plus a short grace period, so a late duplicate
    is still rejected.

    Grading always uses the canonical assessment fetched at this moment.
    The student-side copy is never trusted for correctness.

    A failed canonical fetch or result write is logged and reported on the
    returned outcome, and navigation still happens. There is no retry. This
    best-effort policy can leave a student without a stored result after a
    transient failure; it is kept deliberately until product decides
    otherwise.
"""

from __future__ import annotations

from collections.abc import Callable
import logging

from assessment_app.constants.session_constants import FINALIZE_RELEASE_GRACE_SECONDS
from assessment_app.core.errors import AssessmentEngineError
from assessment_app.core.gateway import PortalGateway, SessionHost
from assessment_app.core.grading import grade_answers
from assessment_app.core.models import FinalizeOutcome, FinalizeTrigger, ResultRecord
from assessment_app.core.services.session_store import SessionStore
from assessment_app.core.session_context import SessionContext
from assessment_app.core.timestamps import compute_end_timestamp, format_timestamp, now_ms

logger = logging.getLogger(__name__)


class SubmissionArbiter:
    """Runs the finalize sequence at most once per in-flight window."""

    def __init__(
        self,
        gateway: PortalGateway,
        store: SessionStore,
        host: SessionHost,
        *,
        clock: Callable[[], int] = now_ms,
        release_grace_seconds: float = FINALIZE_RELEASE_GRACE_SECONDS,
    ) -> None:
        self._gateway = gateway
        self._store = store
        self._host = host
        self._clock = clock
        self._release_grace_seconds = release_grace_seconds

    async def finalize(
        self, context: SessionContext, trigger: FinalizeTrigger
    ) -> FinalizeOutcome | None:
        """Grade and close the session; ``None`` means another finalize owns it."""
        if not context.try_acquire_finalize():
            logger.debug(
                "Ignoring %s finalize for %s; already in flight",
                trigger.value,
                context.assessment_id,
            )
            return None

        outcome = FinalizeOutcome(trigger=trigger)
        answers = context.recorder.get_answers()
        context.stop_clock()
        try:
            await self._grade_and_write(context, answers, outcome)
        finally:
            self._store.clear(context.assessment_id)
            context.close()
            self._host.set_leave_confirmation(False)
            self._host.navigate_to_result(context.assessment_id)
            context.schedule_finalize_release(self._release_grace_seconds)

        if outcome.degraded:
            logger.error(
                "Finalize of %s for student %s completed degraded: %s",
                context.assessment_id,
                context.student_id,
                "; ".join(outcome.errors),
            )
        return outcome

    async def _grade_and_write(
        self,
        context: SessionContext,
        answers: dict[int, str],
        outcome: FinalizeOutcome,
    ) -> None:
        try:
            canonical = await self._gateway.fetch_canonical_assessment(context.assessment_id)
        except AssessmentEngineError as exc:
            outcome.errors.append(f"canonical fetch failed: {exc}")
            return

        grade = grade_answers(canonical.questions, answers)
        end_ms = compute_end_timestamp(context.start_timestamp_ms, self._clock())
        week = canonical.week if canonical.week is not None else context.assessment.week
        record = ResultRecord(
            student_id=context.student_id,
            assessment_id=context.assessment_id,
            week=week,
            percentage=grade.percentage,
            result=grade.result_text,
            student_answers=answers,
            date_of_start=format_timestamp(context.start_timestamp_ms),
            date_of_end=format_timestamp(end_ms),
        )
        outcome.grade = grade
        outcome.record = record

        try:
            await self._gateway.write_result(record)
        except AssessmentEngineError as exc:
            outcome.errors.append(f"result write failed: {exc}")
            return
        outcome.persisted = True
        logger.info(
            "Stored result %s (%s%%) for student %s on %s via %s",
            record.result,
            record.percentage,
            context.student_id,
            context.assessment_id,
            outcome.trigger.value,
        )
