from __future__ import annotations

from fastapi.testclient import TestClient
import pytest

from assessment_app.core.services.assessment_repository import AssessmentRepository
from assessment_app.core.services.result_book import ResultBook
from assessment_app.server.api_server import create_api_app

from conftest import make_assessment


def _result_body(**overrides):
    body = {
        "student_id": "s1",
        "assessment_id": "quiz-1",
        "week": 3,
        "percentage": 67,
        "result": "2 / 3",
        "student_answers": {"0": "a", "2": "c"},
        "date_of_start": "03/05/2024 at 02:07:09 PM",
        "date_of_end": "03/05/2024 at 02:10:09 PM",
    }
    body.update(overrides)
    return body


@pytest.fixture
def client():
    repository = AssessmentRepository()
    repository.load_assessments([make_assessment(time_limit_minutes=10)])
    repository.register_image("chart.png", "/static/chart.png")
    return TestClient(create_api_app(repository, ResultBook()))


def test_student_variant_hides_answer_keys(client):
    response = client.get("/assessments/quiz-1/student")

    assert response.status_code == 200
    payload = response.json()
    assert payload["time_limit_minutes"] == 10
    assert all("correct_option" not in q for q in payload["questions"])
    assert payload["questions"][0]["prompt_html"] == "<p>Question 1</p>\n"


def test_canonical_variant_carries_keys(client):
    payload = client.get("/assessments/quiz-1/canonical").json()
    assert [q["correct_option"] for q in payload["questions"]] == ["A", "B", "C"]


def test_unknown_assessment_is_404(client):
    assert client.get("/assessments/missing/student").status_code == 404
    assert client.get("/assessments/missing/canonical").status_code == 404


def test_result_lifecycle(client):
    assert client.get("/students/s1/results/quiz-1/exists").json() == {"has_result": False}

    created = client.post("/students/s1/results", json=_result_body())
    assert created.status_code == 201

    assert client.get("/students/s1/results/quiz-1/exists").json() == {"has_result": True}
    stored = client.get("/students/s1/results/quiz-1").json()
    assert stored["result"] == "2 / 3"
    assert stored["student_answers"] == {"0": "a", "2": "c"}

    listing = client.get("/assessments", params={"student_id": "s1"}).json()
    assert listing[0]["completed"] is True
    assert listing[0]["question_count"] == 3


def test_second_result_is_rejected(client):
    client.post("/students/s1/results", json=_result_body())
    duplicate = client.post("/students/s1/results", json=_result_body(percentage=100))
    assert duplicate.status_code == 409


def test_invalid_result_payloads_are_rejected(client):
    assert client.post("/students/s1/results", json=_result_body(percentage=140)).status_code == 422
    assert client.post(
        "/students/s1/results", json=_result_body(student_answers={"first": "a"})
    ).status_code == 422
    assert client.post("/students/s2/results", json=_result_body()).status_code == 422


def test_reset_allows_a_new_attempt(client):
    client.post("/students/s1/results", json=_result_body())

    assert client.delete("/students/s1/results/quiz-1").status_code == 200
    assert client.get("/students/s1/results/quiz-1").status_code == 404
    assert client.delete("/students/s1/results/quiz-1").status_code == 404


def test_image_resolution(client):
    assert client.get("/images", params={"ref": "chart.png"}).json()["url"] == "/static/chart.png"
    assert client.get("/images", params={"ref": "other.png"}).status_code == 404


def test_non_ascii_digit_answer_key_is_rejected(client):
    response = client.post("/students/s1/results", json=_result_body(student_answers={"²": "a"}))
    assert response.status_code == 422
