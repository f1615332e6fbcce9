"""Domain models for timed assessment sessions."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from enum import Enum


class ClockState(str, Enum):
    """Lifecycle of a countdown clock."""

    IDLE = "idle"
    RUNNING = "running"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


class FinalizeTrigger(str, Enum):
    """Which path asked for the session to be finalized."""

    MANUAL = "manual"
    EXPIRY = "expiry"


class NavigationAction(str, Enum):
    """Primary control shown under the current question."""

    NEXT = "next"
    SUBMIT = "submit"


@dataclass(slots=True)
class Question:
    """Multiple-choice question; ``correct_option`` is only set on the canonical variant."""

    prompt: str | None
    options: list[str]
    image_ref: str | None = None
    level: str | None = None
    correct_option: str | None = None


@dataclass(slots=True)
class Assessment:
    """Ordered list of questions with an optional time limit in minutes."""

    id: str
    questions: list[Question]
    week: int | None = None
    time_limit_minutes: int | None = None
    title: str | None = None

    @property
    def is_timed(self) -> bool:
        return bool(self.time_limit_minutes)

    @property
    def total_seconds(self) -> int | None:
        if not self.is_timed:
            return None
        return int(self.time_limit_minutes) * 60

    @property
    def question_count(self) -> int:
        return len(self.questions)

    def sanitized(self) -> Assessment:
        """Return the student-facing copy with every correct-option label stripped."""
        return replace(
            self,
            questions=[replace(question, correct_option=None) for question in self.questions],
        )


@dataclass(slots=True)
class SessionState:
    """Snapshot of an in-flight attempt as held by the local session store."""

    assessment_id: str
    start_timestamp_ms: int
    answers: dict[int, str] = field(default_factory=dict)
    remaining_seconds: int | None = None


@dataclass(slots=True)
class ResultRecord:
    """Authoritative record of a completed attempt."""

    student_id: str
    assessment_id: str
    week: int | None
    percentage: int
    result: str
    student_answers: dict[int, str]
    date_of_start: str
    date_of_end: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(slots=True)
class GradeSummary:
    correct_count: int
    total_questions: int
    percentage: int
    result_text: str


@dataclass(slots=True)
class QuestionOutcome:
    """Per-question line of a result review."""

    index: int
    prompt: str | None
    selected_option: str
    correct_option: str
    is_correct: bool
    level: str | None = None


@dataclass(slots=True)
class ResultReview:
    """Read-only breakdown of a finalized attempt."""

    assessment_id: str
    title: str | None
    correct_count: int
    total_questions: int
    percentage: int
    elapsed: timedelta | None
    outcomes: list[QuestionOutcome]

    @property
    def result_text(self) -> str:
        return f"{self.correct_count} / {self.total_questions}"


@dataclass(slots=True)
class FetchedAssessment:
    """What the fetcher hands to a new or resumed session."""

    assessment: Assessment
    start_timestamp_ms: int
    total_seconds: int | None
    resumed: bool = False


@dataclass(slots=True)
class ImageResolution:
    """Displayable URL for a question image, or the warning to show instead."""

    image_ref: str
    url: str | None = None
    warning: str | None = None

    @property
    def ok(self) -> bool:
        return self.url is not None


@dataclass(slots=True)
class FinalizeOutcome:
    """Summary of one finalize run, including swallowed failures."""

    trigger: FinalizeTrigger
    record: ResultRecord | None = None
    grade: GradeSummary | None = None
    persisted: bool = False
    errors: list[str] = field(default_factory=list)

    @property
    def degraded(self) -> bool:
        return bool(self.errors)
