"""Service storing at most one result per student and assessment."""

from __future__ import annotations

from threading import Lock

from assessment_app.core.errors import NotFoundError, ResultWriteError
from assessment_app.core.models import ResultRecord


class ResultBook:
    """Thread-safe result store keyed by ``(student_id, assessment_id)``."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._results: dict[tuple[str, str], ResultRecord] = {}

    def has_result(self, student_id: str, assessment_id: str) -> bool:
        with self._lock:
            return (student_id, assessment_id) in self._results

    def get_result(self, student_id: str, assessment_id: str) -> ResultRecord:
        with self._lock:
            record = self._results.get((student_id, assessment_id))
        if record is None:
            raise NotFoundError(
                f"No result for student {student_id} on assessment {assessment_id}"
            )
        return record

    def write_result(self, record: ResultRecord) -> None:
        """Store a new result; a second one for the same pair is rejected."""
        key = (record.student_id, record.assessment_id)
        with self._lock:
            if key in self._results:
                raise ResultWriteError(
                    f"Student {record.student_id} already has a result for {record.assessment_id}."
                )
            self._results[key] = record

    def delete_result(self, student_id: str, assessment_id: str) -> ResultRecord:
        """Reset an attempt so the assessment can be taken again."""
        with self._lock:
            record = self._results.pop((student_id, assessment_id), None)
        if record is None:
            raise NotFoundError(
                f"No result for student {student_id} on assessment {assessment_id}"
            )
        return record

    def results_for_student(self, student_id: str) -> list[ResultRecord]:
        with self._lock:
            records = [r for (sid, _), r in self._results.items() if sid == student_id]
        return sorted(records, key=lambda r: r.created_at)

    def completed_assessment_ids(self, student_id: str) -> set[str]:
        with self._lock:
            return {aid for (sid, aid) in self._results if sid == student_id}
