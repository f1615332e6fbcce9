from __future__ import annotations

import asyncio
from datetime import datetime

import pytest

from assessment_app.core.errors import (
    GradingFetchError,
    ImageMissingError,
    NetworkError,
    NotFoundError,
    ResultWriteError,
)
from assessment_app.core.gateway import PortalGateway, SessionHost
from assessment_app.core.models import Assessment, Question, ResultRecord
from assessment_app.core.services.session_store import MemorySessionStore

START_MS = int(datetime(2024, 3, 5, 14, 7, 9).timestamp() * 1000)


def make_assessment(
    assessment_id: str = "quiz-1",
    *,
    keys: tuple[str, ...] = ("a", "b", "c"),
    time_limit_minutes: int | None = None,
    week: int | None = 3,
) -> Assessment:
    return Assessment(
        id=assessment_id,
        title=f"Assessment {assessment_id}",
        week=week,
        time_limit_minutes=time_limit_minutes,
        questions=[
            Question(
                prompt=f"Question {index + 1}",
                options=["A", "B", "C", "D"],
                level="easy",
                correct_option=key.upper(),
            )
            for index, key in enumerate(keys)
        ],
    )


class FakeGateway(PortalGateway):
    """In-memory portal with switches for every failure mode the engine handles."""

    def __init__(self) -> None:
        self.assessments: dict[str, Assessment] = {}
        self.results: dict[tuple[str, str], ResultRecord] = {}
        self.images: dict[str, str] = {}
        self.writes: list[ResultRecord] = []
        self.canonical_fetches = 0
        self.exists_checks = 0
        self.fail_exists = False
        self.fail_canonical = False
        self.fail_write = False
        self.leak_keys = False
        self.yield_on_canonical = False

    def add(self, assessment: Assessment) -> Assessment:
        self.assessments[assessment.id] = assessment
        return assessment

    async def fetch_student_assessment(self, assessment_id: str) -> Assessment:
        assessment = self.assessments.get(assessment_id)
        if assessment is None:
            raise NotFoundError(assessment_id)
        return assessment if self.leak_keys else assessment.sanitized()

    async def fetch_canonical_assessment(self, assessment_id: str) -> Assessment:
        self.canonical_fetches += 1
        if self.yield_on_canonical:
            await asyncio.sleep(0)
        if self.fail_canonical:
            raise GradingFetchError("answer key unavailable")
        assessment = self.assessments.get(assessment_id)
        if assessment is None:
            raise NotFoundError(assessment_id)
        return assessment

    async def has_existing_result(self, student_id: str, assessment_id: str) -> bool:
        self.exists_checks += 1
        if self.fail_exists:
            raise NetworkError("portal unreachable")
        return (student_id, assessment_id) in self.results

    async def write_result(self, record: ResultRecord) -> None:
        if self.fail_write:
            raise ResultWriteError("write rejected")
        key = (record.student_id, record.assessment_id)
        if key in self.results:
            raise ResultWriteError("duplicate result")
        self.results[key] = record
        self.writes.append(record)

    async def fetch_result(self, student_id: str, assessment_id: str) -> ResultRecord:
        record = self.results.get((student_id, assessment_id))
        if record is None:
            raise NotFoundError(assessment_id)
        return record

    async def resolve_image(self, image_ref: str) -> str:
        url = self.images.get(image_ref)
        if url is None:
            raise ImageMissingError(image_ref)
        return url


class RecordingHost(SessionHost):
    def __init__(self) -> None:
        self.events: list[tuple[str, object]] = []
        self.rendered: list[int] = []

    def navigate_to_result(self, assessment_id: str) -> None:
        self.events.append(("navigate", assessment_id))

    def redirect_to_list(self, message: str | None = None) -> None:
        self.events.append(("redirect", message))

    def show_low_time_warning(self) -> None:
        self.events.append(("warning_shown", None))

    def hide_low_time_warning(self) -> None:
        self.events.append(("warning_hidden", None))

    def set_leave_confirmation(self, enabled: bool) -> None:
        self.events.append(("leave_confirmation", enabled))

    def render_remaining(self, seconds: int) -> None:
        self.rendered.append(seconds)

    def count(self, name: str) -> int:
        return sum(1 for event, _ in self.events if event == name)


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def host() -> RecordingHost:
    return RecordingHost()


@pytest.fixture
def store() -> MemorySessionStore:
    return MemorySessionStore()


@pytest.fixture
def fixed_clock():
    return lambda: START_MS
