"""Loads the student-facing assessment and pins the session start time."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
import logging

from assessment_app.constants.ui_constants import IMAGE_MISSING_MESSAGE
from assessment_app.core.errors import AlreadyCompletedError, ImageMissingError, NetworkError
from assessment_app.core.gateway import PortalGateway
from assessment_app.core.models import Assessment, FetchedAssessment, ImageResolution
from assessment_app.core.services.session_store import SessionStore
from assessment_app.core.timestamps import format_timestamp, now_ms

logger = logging.getLogger(__name__)


class AssessmentFetcher:
    """Entry point of a session: guard, fetch, and capture the start timestamp."""

    def __init__(
        self,
        gateway: PortalGateway,
        store: SessionStore,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._gateway = gateway
        self._store = store
        self._clock = clock

    async def fetch(self, assessment_id: str, student_id: str) -> FetchedAssessment:
        """Return the sanitized assessment for a new or resumed attempt.

        Raises ``AlreadyCompletedError`` before touching the session store when
        the student already has a result; ``NotFoundError`` and
        ``NetworkError`` from the gateway propagate unchanged.
        """
        await self._ensure_not_completed(assessment_id, student_id)

        assessment = await self._gateway.fetch_student_assessment(assessment_id)
        if any(question.correct_option is not None for question in assessment.questions):
            logger.warning("Student variant of %s carried answer keys; stripping them", assessment_id)
            assessment = assessment.sanitized()

        start_ms = self._store.load_start_timestamp(assessment_id)
        resumed = start_ms is not None
        if start_ms is None:
            start_ms = self._clock()
            self._store.save_start_timestamp(assessment_id, start_ms, format_timestamp(start_ms))
            logger.info("Started assessment %s for student %s", assessment_id, student_id)
        else:
            logger.info("Resuming assessment %s for student %s", assessment_id, student_id)

        return FetchedAssessment(
            assessment=assessment,
            start_timestamp_ms=start_ms,
            total_seconds=assessment.total_seconds,
            resumed=resumed,
        )

    async def resolve_images(self, assessment: Assessment) -> dict[int, ImageResolution]:
        """Resolve question images by question index; failures become inline warnings."""
        indexed = [
            (index, question.image_ref)
            for index, question in enumerate(assessment.questions)
            if question.image_ref
        ]
        results = await asyncio.gather(
            *(self._resolve_one(image_ref) for _, image_ref in indexed)
        )
        return {index: resolution for (index, _), resolution in zip(indexed, results)}

    async def _resolve_one(self, image_ref: str) -> ImageResolution:
        try:
            url = await self._gateway.resolve_image(image_ref)
        except (ImageMissingError, NetworkError) as exc:
            logger.warning("Image %s could not be resolved: %s", image_ref, exc)
            return ImageResolution(image_ref=image_ref, warning=IMAGE_MISSING_MESSAGE)
        return ImageResolution(image_ref=image_ref, url=url)

    async def _ensure_not_completed(self, assessment_id: str, student_id: str) -> None:
        try:
            completed = await self._gateway.has_existing_result(student_id, assessment_id)
        except NetworkError as exc:
            # The result store still rejects a second result for the same pair.
            logger.warning("Could not check completion of %s: %s", assessment_id, exc)
            return
        if completed:
            raise AlreadyCompletedError(student_id, assessment_id)
