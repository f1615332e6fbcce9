from __future__ import annotations

import asyncio

import pytest

from assessment_app.core.errors import AlreadyCompletedError, NotFoundError
from assessment_app.core.models import Question, ResultRecord
from assessment_app.core.services.assessment_fetcher import AssessmentFetcher
from assessment_app.core.services.session_store import SessionField

from conftest import START_MS, make_assessment


def _record(student_id, assessment_id):
    return ResultRecord(
        student_id=student_id,
        assessment_id=assessment_id,
        week=1,
        percentage=100,
        result="3 / 3",
        student_answers={0: "a"},
        date_of_start="x",
        date_of_end="y",
    )


def test_first_fetch_captures_start_timestamp(gateway, store, fixed_clock):
    gateway.add(make_assessment(time_limit_minutes=20))
    fetcher = AssessmentFetcher(gateway, store, clock=fixed_clock)

    fetched = asyncio.run(fetcher.fetch("quiz-1", "s1"))

    assert fetched.start_timestamp_ms == START_MS
    assert fetched.total_seconds == 1200
    assert fetched.resumed is False
    assert store.load_start_timestamp("quiz-1") == START_MS
    assert store.get("quiz-1", SessionField.DATE_OF_START) == "03/05/2024 at 02:07:09 PM"
    assert all(q.correct_option is None for q in fetched.assessment.questions)


def test_reload_reuses_stored_start(gateway, store):
    gateway.add(make_assessment())
    store.save_start_timestamp("quiz-1", 1111, "earlier")
    fetcher = AssessmentFetcher(gateway, store, clock=lambda: 9999)

    fetched = asyncio.run(fetcher.fetch("quiz-1", "s1"))

    assert fetched.start_timestamp_ms == 1111
    assert fetched.resumed is True
    assert fetched.total_seconds is None


def test_completed_assessment_is_rejected_without_session_state(gateway, store):
    gateway.add(make_assessment())
    gateway.results[("s1", "quiz-1")] = _record("s1", "quiz-1")
    fetcher = AssessmentFetcher(gateway, store)

    with pytest.raises(AlreadyCompletedError):
        asyncio.run(fetcher.fetch("quiz-1", "s1"))
    assert store.restore("quiz-1") is None


def test_failed_completion_check_lets_the_session_continue(gateway, store, fixed_clock):
    gateway.add(make_assessment())
    gateway.fail_exists = True
    fetcher = AssessmentFetcher(gateway, store, clock=fixed_clock)

    fetched = asyncio.run(fetcher.fetch("quiz-1", "s1"))

    assert fetched.assessment.id == "quiz-1"


def test_missing_assessment_raises_not_found(gateway, store):
    fetcher = AssessmentFetcher(gateway, store)

    with pytest.raises(NotFoundError):
        asyncio.run(fetcher.fetch("missing", "s1"))
    assert store.restore("missing") is None


def test_leaked_answer_keys_are_stripped(gateway, store):
    gateway.add(make_assessment())
    gateway.leak_keys = True
    fetcher = AssessmentFetcher(gateway, store)

    fetched = asyncio.run(fetcher.fetch("quiz-1", "s1"))

    assert all(q.correct_option is None for q in fetched.assessment.questions)


def test_missing_images_become_warnings(gateway, store):
    assessment = make_assessment()
    assessment.questions[0] = Question(prompt=None, options=["A", "B"], image_ref="present.png")
    assessment.questions[2] = Question(prompt="Q3", options=["A", "B"], image_ref="gone.png")
    gateway.images["present.png"] = "/img/present.png"
    fetcher = AssessmentFetcher(gateway, store)

    images = asyncio.run(fetcher.resolve_images(assessment))

    assert set(images) == {0, 2}
    assert images[0].ok and images[0].url == "/img/present.png"
    assert not images[2].ok
    assert images[2].warning == "Question image is missing"
