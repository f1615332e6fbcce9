"""In-process gateway backed directly by the repository and result book."""

from __future__ import annotations

from assessment_app.core.gateway import PortalGateway
from assessment_app.core.models import Assessment, ResultRecord
from assessment_app.core.services.assessment_repository import AssessmentRepository
from assessment_app.core.services.result_book import ResultBook


class LocalPortalGateway(PortalGateway):
    """Serves the engine without a network hop, e.g. for kiosk mode or tests."""

    def __init__(self, repository: AssessmentRepository, results: ResultBook) -> None:
        self._repository = repository
        self._results = results

    async def fetch_student_assessment(self, assessment_id: str) -> Assessment:
        return self._repository.get_sanitized(assessment_id)

    async def fetch_canonical_assessment(self, assessment_id: str) -> Assessment:
        return self._repository.get_canonical(assessment_id)

    async def has_existing_result(self, student_id: str, assessment_id: str) -> bool:
        return self._results.has_result(student_id, assessment_id)

    async def write_result(self, record: ResultRecord) -> None:
        self._results.write_result(record)

    async def fetch_result(self, student_id: str, assessment_id: str) -> ResultRecord:
        return self._results.get_result(student_id, assessment_id)

    async def resolve_image(self, image_ref: str) -> str:
        return self._repository.resolve_image(image_ref)
