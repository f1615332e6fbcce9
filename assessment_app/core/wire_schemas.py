"""Pydantic payloads exchanged between the portal API and its clients."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field, field_validator

from assessment_app.core.markdown_math_renderer import renderer
from assessment_app.core.models import Assessment, Question, ResultRecord


class StudentQuestionPayload(BaseModel):
    """Question as shown to the test-taker; carries no answer key."""

    prompt: str | None = None
    prompt_html: str | None = None
    options: list[str]
    image_ref: str | None = None
    level: str | None = None

    @classmethod
    def from_domain(cls, question: Question) -> StudentQuestionPayload:
        return cls(
            prompt=question.prompt,
            prompt_html=renderer.render_fragment(question.prompt) if question.prompt else None,
            options=list(question.options),
            image_ref=question.image_ref,
            level=question.level,
        )

    def to_domain(self) -> Question:
        return Question(
            prompt=self.prompt,
            options=list(self.options),
            image_ref=self.image_ref,
            level=self.level,
        )


class CanonicalQuestionPayload(StudentQuestionPayload):
    correct_option: str | None = None

    @classmethod
    def from_domain(cls, question: Question) -> CanonicalQuestionPayload:
        return cls(
            prompt=question.prompt,
            options=list(question.options),
            image_ref=question.image_ref,
            level=question.level,
            correct_option=question.correct_option,
        )

    def to_domain(self) -> Question:
        question = super().to_domain()
        question.correct_option = self.correct_option
        return question


class StudentAssessmentPayload(BaseModel):
    id: str
    title: str | None = None
    week: int | None = None
    time_limit_minutes: int | None = None
    questions: list[StudentQuestionPayload]

    @classmethod
    def from_domain(cls, assessment: Assessment) -> StudentAssessmentPayload:
        return cls(
            id=assessment.id,
            title=assessment.title,
            week=assessment.week,
            time_limit_minutes=assessment.time_limit_minutes,
            questions=[StudentQuestionPayload.from_domain(q) for q in assessment.questions],
        )

    def to_domain(self) -> Assessment:
        return Assessment(
            id=self.id,
            title=self.title,
            week=self.week,
            time_limit_minutes=self.time_limit_minutes,
            questions=[q.to_domain() for q in self.questions],
        )


class CanonicalAssessmentPayload(StudentAssessmentPayload):
    questions: list[CanonicalQuestionPayload]

    @classmethod
    def from_domain(cls, assessment: Assessment) -> CanonicalAssessmentPayload:
        return cls(
            id=assessment.id,
            title=assessment.title,
            week=assessment.week,
            time_limit_minutes=assessment.time_limit_minutes,
            questions=[CanonicalQuestionPayload.from_domain(q) for q in assessment.questions],
        )


class AssessmentSummaryPayload(BaseModel):
    id: str
    title: str | None = None
    week: int | None = None
    time_limit_minutes: int | None = None
    question_count: int
    completed: bool = False


class ResultPayload(BaseModel):
    """Stored result; answer indices travel as string keys."""

    student_id: str
    assessment_id: str
    week: int | None = None
    percentage: int = Field(ge=0, le=100)
    result: str
    student_answers: dict[str, str] = Field(default_factory=dict)
    date_of_start: str
    date_of_end: str
    created_at: datetime | None = None

    @field_validator("student_answers")
    @classmethod
    def check_answer_indices(cls, value: dict[str, str]) -> dict[str, str]:
        for key in value:
            if not (key.isascii() and key.isdecimal()):
                raise ValueError(f"Answer key {key!r} is not a question index.")
        return value

    @classmethod
    def from_domain(cls, record: ResultRecord) -> ResultPayload:
        return cls(
            student_id=record.student_id,
            assessment_id=record.assessment_id,
            week=record.week,
            percentage=record.percentage,
            result=record.result,
            student_answers={str(k): v for k, v in sorted(record.student_answers.items())},
            date_of_start=record.date_of_start,
            date_of_end=record.date_of_end,
            created_at=record.created_at,
        )

    def to_domain(self) -> ResultRecord:
        return ResultRecord(
            student_id=self.student_id,
            assessment_id=self.assessment_id,
            week=self.week,
            percentage=self.percentage,
            result=self.result,
            student_answers={int(k): v for k, v in self.student_answers.items()},
            date_of_start=self.date_of_start,
            date_of_end=self.date_of_end,
            created_at=self.created_at or datetime.now(timezone.utc),
        )


class ResultExistsPayload(BaseModel):
    has_result: bool


class ImagePayload(BaseModel):
    image_ref: str
    url: str
