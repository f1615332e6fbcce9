"""Rebuilds the per-question review of a finalized attempt."""

from __future__ import annotations

import logging

from assessment_app.core.gateway import PortalGateway
from assessment_app.core.grading import count_correct, compute_percentage, question_outcomes
from assessment_app.core.models import Assessment, ResultRecord, ResultReview
from assessment_app.core.timestamps import elapsed_between

logger = logging.getLogger(__name__)


def build_review(record: ResultRecord, canonical: Assessment) -> ResultReview:
    """Recompute correctness from raw answers with the same rules used at submission."""
    answers = record.student_answers
    total = canonical.question_count
    correct = count_correct(canonical.questions, answers)
    review = ResultReview(
        assessment_id=record.assessment_id,
        title=canonical.title,
        correct_count=correct,
        total_questions=total,
        percentage=compute_percentage(correct, total),
        elapsed=elapsed_between(record.date_of_start, record.date_of_end),
        outcomes=question_outcomes(canonical.questions, answers),
    )
    if review.result_text != record.result:
        # The key changed after submission; the stored score stays authoritative.
        logger.warning(
            "Recomputed score %s differs from stored %s for %s",
            review.result_text,
            record.result,
            record.assessment_id,
        )
    return review


class ResultReconstructor:
    """Fetches a stored result and the canonical assessment, then builds the review."""

    def __init__(self, gateway: PortalGateway) -> None:
        self._gateway = gateway

    async def reconstruct(self, assessment_id: str, student_id: str) -> ResultReview:
        """Raises ``NotFoundError`` when the result or assessment is missing."""
        record = await self._gateway.fetch_result(student_id, assessment_id)
        canonical = await self._gateway.fetch_canonical_assessment(assessment_id)
        return build_review(record, canonical)
