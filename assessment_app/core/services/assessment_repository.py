"""Service holding canonical assessments and their question images."""

from __future__ import annotations

import json
from pathlib import Path
from threading import Lock
from typing import Any

from assessment_app.core.errors import ImageMissingError, NotFoundError
from assessment_app.core.models import Assessment, Question


class AssessmentRepository:
    """Stores canonical assessments; hands out sanitized or canonical copies."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._assessments: dict[str, Assessment] = {}
        self._image_urls: dict[str, str] = {}

    @classmethod
    def from_json_file(cls, file_path: Path) -> AssessmentRepository:
        """Load assessments and image URLs from a JSON seed document."""
        data = json.loads(Path(file_path).read_text(encoding="utf-8"))
        repository = cls()
        repository.load_assessments(
            [assessment_from_dict(item) for item in data.get("assessments", [])]
        )
        for image_ref, url in (data.get("images") or {}).items():
            repository.register_image(image_ref, url)
        return repository

    def load_assessments(self, assessments: list[Assessment]) -> None:
        """Replace all stored assessments."""
        prepared = {assessment.id: self._prepare_assessment(assessment) for assessment in assessments}
        with self._lock:
            self._assessments = prepared

    def add_assessment(self, assessment: Assessment) -> None:
        prepared = self._prepare_assessment(assessment)
        with self._lock:
            if prepared.id in self._assessments:
                raise ValueError(f"Assessment {prepared.id} already exists.")
            self._assessments[prepared.id] = prepared

    def list_assessments(self) -> list[Assessment]:
        """Sanitized assessments ordered by week; unscheduled ones last."""
        with self._lock:
            items = list(self._assessments.values())
        items.sort(key=lambda a: (a.week is None, a.week or 0, a.id))
        return [item.sanitized() for item in items]

    def get_canonical(self, assessment_id: str) -> Assessment:
        with self._lock:
            assessment = self._assessments.get(assessment_id)
        if assessment is None:
            raise NotFoundError(f"Assessment {assessment_id} not found")
        return assessment

    def get_sanitized(self, assessment_id: str) -> Assessment:
        return self.get_canonical(assessment_id).sanitized()

    def register_image(self, image_ref: str, url: str) -> None:
        if not image_ref.strip() or not url.strip():
            raise ValueError("Image reference and URL must not be empty.")
        with self._lock:
            self._image_urls[image_ref.strip()] = url.strip()

    def resolve_image(self, image_ref: str) -> str:
        with self._lock:
            url = self._image_urls.get(image_ref)
        if url is None:
            raise ImageMissingError(f"No image registered for {image_ref!r}")
        return url

    def _prepare_assessment(self, assessment: Assessment) -> Assessment:
        """Validate and normalize an assessment before storage."""
        assessment_id = str(assessment.id).strip()
        if not assessment_id:
            raise ValueError("Assessment id must not be empty.")
        if not assessment.questions:
            raise ValueError("Assessment must contain at least one question.")
        return Assessment(
            id=assessment_id,
            questions=[self._prepare_question(q, idx) for idx, q in enumerate(assessment.questions)],
            week=assessment.week,
            time_limit_minutes=self._normalize_time_limit(assessment.time_limit_minutes),
            title=assessment.title.strip() if assessment.title else None,
        )

    @staticmethod
    def _prepare_question(question: Question, index: int) -> Question:
        prompt = question.prompt.strip() if question.prompt else None
        image_ref = question.image_ref.strip() if question.image_ref else None
        if not prompt and not image_ref:
            raise ValueError(f"Question {index + 1} needs prompt text or an image.")
        options = [option.strip() for option in question.options]
        if len(options) < 2:
            raise ValueError(f"Question {index + 1} must offer at least two options.")
        if any(not option for option in options):
            raise ValueError("Option labels cannot be empty.")
        lowered = [option.lower() for option in options]
        if len(set(lowered)) != len(lowered):
            raise ValueError(f"Question {index + 1} repeats an option label.")
        correct = question.correct_option.strip() if question.correct_option else None
        if correct is not None and correct.lower() not in lowered:
            raise ValueError(f"Correct option of question {index + 1} is not one of its options.")
        return Question(
            prompt=prompt,
            options=options,
            image_ref=image_ref,
            level=question.level,
            correct_option=correct,
        )

    @staticmethod
    def _normalize_time_limit(time_limit_minutes: int | None) -> int | None:
        if time_limit_minutes is None:
            return None
        if isinstance(time_limit_minutes, bool) or not isinstance(time_limit_minutes, int):
            raise ValueError("Time limit must be provided as an integer number of minutes.")
        if time_limit_minutes <= 0:
            raise ValueError("Time limit must be a positive integer.")
        return time_limit_minutes


def assessment_from_dict(data: dict[str, Any]) -> Assessment:
    """Build an assessment from the seed-file shape."""
    return Assessment(
        id=str(data["id"]),
        title=data.get("title"),
        week=data.get("week"),
        time_limit_minutes=data.get("time_limit_minutes"),
        questions=[
            Question(
                prompt=item.get("prompt"),
                options=list(item.get("options") or []),
                image_ref=item.get("image_ref"),
                level=item.get("level"),
                correct_option=item.get("correct_option"),
            )
            for item in data.get("questions", [])
        ],
    )
