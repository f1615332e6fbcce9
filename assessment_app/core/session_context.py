"""Per-session state shared by the controller, the clock and the submission path."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

from assessment_app.core.models import Assessment, ImageResolution, SessionState
from assessment_app.core.services.answer_recorder import AnswerRecorder, QuestionCursor
from assessment_app.core.services.countdown_clock import CountdownClock, LowTimeWarning


@dataclass(slots=True)
class SessionContext:
    """Everything one open attempt owns.

    The finalize flag lives here rather than at module level so two open
    sessions can never block or release each other.
    """

    assessment_id: str
    student_id: str
    assessment: Assessment
    start_timestamp_ms: int
    recorder: AnswerRecorder
    cursor: QuestionCursor
    clock: CountdownClock | None = None
    warning: LowTimeWarning | None = None
    images: dict[int, ImageResolution] = field(default_factory=dict)
    _finalizing: bool = field(default=False, init=False, repr=False)
    _closed: bool = field(default=False, init=False, repr=False)
    _release_handle: asyncio.TimerHandle | None = field(default=None, init=False, repr=False)

    @property
    def is_finalizing(self) -> bool:
        return self._finalizing

    @property
    def is_closed(self) -> bool:
        return self._closed

    def try_acquire_finalize(self) -> bool:
        """Take the reentrancy flag; False when a finalize is already in flight."""
        if self._finalizing:
            return False
        self._finalizing = True
        return True

    def release_finalize(self) -> None:
        self._finalizing = False
        self._release_handle = None

    def schedule_finalize_release(self, grace_seconds: float) -> None:
        loop = asyncio.get_running_loop()
        self._release_handle = loop.call_later(grace_seconds, self.release_finalize)

    def stop_clock(self) -> None:
        if self.clock is not None:
            self.clock.cancel()
        if self.warning is not None:
            self.warning.dismiss()

    def close(self) -> None:
        self._closed = True
        self.stop_clock()

    def remaining_seconds(self) -> int | None:
        if self.clock is None:
            return None
        return self.clock.remaining_seconds

    def snapshot(self) -> SessionState:
        return SessionState(
            assessment_id=self.assessment_id,
            start_timestamp_ms=self.start_timestamp_ms,
            answers=self.recorder.get_answers(),
            remaining_seconds=self.remaining_seconds(),
        )
