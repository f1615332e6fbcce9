"""FastAPI server exposing the portal endpoints the session engine depends on."""

from __future__ import annotations

import logging
from threading import Thread

from fastapi import Depends, FastAPI, HTTPException
import uvicorn

from assessment_app.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from assessment_app.core.errors import ImageMissingError, NotFoundError, ResultWriteError
from assessment_app.core.services.assessment_repository import AssessmentRepository
from assessment_app.core.services.result_book import ResultBook
from assessment_app.core.wire_schemas import (
    AssessmentSummaryPayload,
    CanonicalAssessmentPayload,
    ImagePayload,
    ResultExistsPayload,
    ResultPayload,
    StudentAssessmentPayload,
)

logger = logging.getLogger(__name__)


def _get_repository_dependency(repository: AssessmentRepository):
    def dependency() -> AssessmentRepository:
        return repository

    return dependency


def _get_result_book_dependency(results: ResultBook):
    def dependency() -> ResultBook:
        return results

    return dependency


def create_api_app(repository: AssessmentRepository, results: ResultBook) -> FastAPI:
    """Create a FastAPI application wired to the provided repository and result book."""
    app = FastAPI(title="Assessment Portal API", version="0.1.0")
    repository_dep = _get_repository_dependency(repository)
    results_dep = _get_result_book_dependency(results)

    @app.get("/health")
    def health_check() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/assessments", response_model=list[AssessmentSummaryPayload])
    def list_assessments(
        student_id: str | None = None,
        repo: AssessmentRepository = Depends(repository_dep),
        book: ResultBook = Depends(results_dep),
    ) -> list[AssessmentSummaryPayload]:
        completed = book.completed_assessment_ids(student_id) if student_id else set()
        return [
            AssessmentSummaryPayload(
                id=assessment.id,
                title=assessment.title,
                week=assessment.week,
                time_limit_minutes=assessment.time_limit_minutes,
                question_count=assessment.question_count,
                completed=assessment.id in completed,
            )
            for assessment in repo.list_assessments()
        ]

    @app.get("/assessments/{assessment_id}/student", response_model=StudentAssessmentPayload)
    def get_student_assessment(
        assessment_id: str,
        repo: AssessmentRepository = Depends(repository_dep),
    ) -> StudentAssessmentPayload:
        try:
            assessment = repo.get_sanitized(assessment_id)
        except NotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return StudentAssessmentPayload.from_domain(assessment)

    @app.get("/assessments/{assessment_id}/canonical", response_model=CanonicalAssessmentPayload)
    def get_canonical_assessment(
        assessment_id: str,
        repo: AssessmentRepository = Depends(repository_dep),
    ) -> CanonicalAssessmentPayload:
        try:
            assessment = repo.get_canonical(assessment_id)
        except NotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return CanonicalAssessmentPayload.from_domain(assessment)

    @app.get(
        "/students/{student_id}/results/{assessment_id}/exists",
        response_model=ResultExistsPayload,
    )
    def result_exists(
        student_id: str,
        assessment_id: str,
        book: ResultBook = Depends(results_dep),
    ) -> ResultExistsPayload:
        return ResultExistsPayload(has_result=book.has_result(student_id, assessment_id))

    @app.get("/students/{student_id}/results/{assessment_id}", response_model=ResultPayload)
    def get_result(
        student_id: str,
        assessment_id: str,
        book: ResultBook = Depends(results_dep),
    ) -> ResultPayload:
        try:
            record = book.get_result(student_id, assessment_id)
        except NotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return ResultPayload.from_domain(record)

    @app.post(
        "/students/{student_id}/results",
        response_model=ResultPayload,
        status_code=201,
    )
    def write_result(
        student_id: str,
        payload: ResultPayload,
        repo: AssessmentRepository = Depends(repository_dep),
        book: ResultBook = Depends(results_dep),
    ) -> ResultPayload:
        if payload.student_id != student_id:
            raise HTTPException(status_code=422, detail="Student id does not match the path.")
        try:
            repo.get_canonical(payload.assessment_id)
        except NotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        record = payload.to_domain()
        try:
            book.write_result(record)
        except ResultWriteError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        logger.info("Stored result %s for student %s on %s", record.result, student_id, record.assessment_id)
        return ResultPayload.from_domain(record)

    @app.delete("/students/{student_id}/results/{assessment_id}")
    def reset_result(
        student_id: str,
        assessment_id: str,
        book: ResultBook = Depends(results_dep),
    ) -> dict[str, object]:
        try:
            book.delete_result(student_id, assessment_id)
        except NotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        logger.info("Reset assessment %s for student %s", assessment_id, student_id)
        return {"success": True, "assessment_id": assessment_id}

    @app.get("/images", response_model=ImagePayload)
    def resolve_image(
        ref: str,
        repo: AssessmentRepository = Depends(repository_dep),
    ) -> ImagePayload:
        try:
            url = repo.resolve_image(ref)
        except ImageMissingError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return ImagePayload(image_ref=ref, url=url)

    return app


def start_api_server(
    repository: AssessmentRepository,
    results: ResultBook,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
) -> Thread:
    """Start the FastAPI server in a background daemon thread."""
    app = create_api_app(repository, results)
    config = uvicorn.Config(app=app, host=host, port=port, log_level="info")
    server = uvicorn.Server(config)

    def run_server() -> None:
        server.run()

    thread = Thread(target=run_server, name="PortalApiServer", daemon=True)
    thread.start()
    return thread
