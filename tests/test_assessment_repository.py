from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from assessment_app.core.errors import ImageMissingError, NotFoundError, ResultWriteError
from assessment_app.core.markdown_math_renderer import MarkdownMathRenderer
from assessment_app.core.models import Assessment, Question, ResultRecord
from assessment_app.core.services.assessment_repository import AssessmentRepository
from assessment_app.core.services.local_gateway import LocalPortalGateway
from assessment_app.core.services.result_book import ResultBook

from conftest import make_assessment

SEED_FILE = Path(__file__).resolve().parents[1] / "assessment_app" / "data" / "sample_assessments.json"


def test_seed_file_loads_in_week_order():
    repository = AssessmentRepository.from_json_file(SEED_FILE)

    listed = repository.list_assessments()

    assert [a.id for a in listed] == ["week1-fractions", "week2-geometry"]
    assert all(q.correct_option is None for a in listed for q in a.questions)
    assert repository.get_canonical("week1-fractions").questions[0].correct_option == "B"
    assert repository.resolve_image("fractions-bars.png") == "/static/images/fractions-bars.png"


def test_lookup_failures():
    repository = AssessmentRepository()

    with pytest.raises(NotFoundError):
        repository.get_sanitized("missing")
    with pytest.raises(ImageMissingError):
        repository.resolve_image("missing.png")


@pytest.mark.parametrize(
    "question",
    [
        Question(prompt="Only one", options=["A"], correct_option="A"),
        Question(prompt="Repeats", options=["A", "a"], correct_option="A"),
        Question(prompt="Bad key", options=["A", "B"], correct_option="C"),
        Question(prompt="  ", options=["A", "B"], correct_option="A"),
    ],
)
def test_invalid_questions_are_rejected(question):
    repository = AssessmentRepository()
    with pytest.raises(ValueError):
        repository.add_assessment(Assessment(id="bad", questions=[question]))


def test_non_positive_time_limit_is_rejected():
    repository = AssessmentRepository()
    with pytest.raises(ValueError):
        repository.add_assessment(make_assessment(time_limit_minutes=0))


def test_duplicate_assessment_is_rejected():
    repository = AssessmentRepository()
    repository.add_assessment(make_assessment())
    with pytest.raises(ValueError):
        repository.add_assessment(make_assessment())


def test_local_gateway_enforces_single_result():
    repository = AssessmentRepository()
    repository.add_assessment(make_assessment())
    results = ResultBook()
    gateway = LocalPortalGateway(repository, results)

    record = ResultRecord(
        student_id="s1",
        assessment_id="quiz-1",
        week=3,
        percentage=100,
        result="3 / 3",
        student_answers={0: "a", 1: "b", 2: "c"},
        date_of_start="03/05/2024 at 02:07:09 PM",
        date_of_end="03/05/2024 at 02:07:10 PM",
    )

    async def scenario():
        student = await gateway.fetch_student_assessment("quiz-1")
        canonical = await gateway.fetch_canonical_assessment("quiz-1")
        await gateway.write_result(record)
        exists = await gateway.has_existing_result("s1", "quiz-1")
        stored = await gateway.fetch_result("s1", "quiz-1")
        with pytest.raises(ResultWriteError):
            await gateway.write_result(record)
        return student, canonical, exists, stored

    student, canonical, exists, stored = asyncio.run(scenario())

    assert student.questions[0].correct_option is None
    assert canonical.questions[0].correct_option == "A"
    assert exists is True
    assert stored is record
    assert results.completed_assessment_ids("s1") == {"quiz-1"}
    assert results.results_for_student("s1") == [record]


def test_renderer_keeps_math_delimiters():
    html = MarkdownMathRenderer().render_fragment("Solve $x^2 = 4$ **now**")
    assert "$x^2 = 4$" in html
    assert "<strong>now</strong>" in html
    assert MarkdownMathRenderer().render_fragment("   ") == "<p><em>No content provided.</em></p>"
