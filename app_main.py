"""Application entry points: the assessment portal API and a headless session runner."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
import sys

from assessment_app.client.portal_client import HttpPortalGateway
from assessment_app.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from assessment_app.constants.session_constants import DEFAULT_SESSION_STORE_FILE
from assessment_app.core.gateway import NullSessionHost, PortalGateway
from assessment_app.core.models import FinalizeOutcome
from assessment_app.core.services.assessment_repository import AssessmentRepository
from assessment_app.core.services.local_gateway import LocalPortalGateway
from assessment_app.core.services.result_book import ResultBook
from assessment_app.core.services.session_store import JsonFileSessionStore
from assessment_app.core.session_controller import SessionController
from assessment_app.server.api_server import start_api_server
from assessment_app.utils.logging_config import configure_logging

SEED_FILE = Path(__file__).resolve().parent / "assessment_app" / "data" / "sample_assessments.json"
SESSION_USAGE = "usage: assessment-session [--local] ASSESSMENT_ID STUDENT_ID [ANSWER ...]"

logger = logging.getLogger("assessment_app")


def main() -> None:
    """Initialize logging, load the seed assessments, and serve the portal API."""
    configure_logging()
    logger.info("Starting assessment portal...")

    repository = AssessmentRepository.from_json_file(SEED_FILE)
    results = ResultBook()
    logger.info(
        "Loaded %d assessments from %s",
        len(repository.list_assessments()),
        SEED_FILE.name,
    )
    logger.info("Portal API listening on http://%s:%d/", DEFAULT_HOST, DEFAULT_PORT)
    server_thread = start_api_server(repository, results, host=DEFAULT_HOST, port=DEFAULT_PORT)
    server_thread.join()


async def drive_session(
    controller: SessionController,
    assessment_id: str,
    student_id: str,
    answers: list[str],
) -> FinalizeOutcome | None:
    """Open a session, answer questions in order, submit, and log the review."""
    context = await controller.begin(assessment_id, student_id)
    if context is None:
        return None

    for index, label in enumerate(answers[: context.assessment.question_count]):
        try:
            controller.select_answer(index, label)
        except ValueError as exc:
            logger.warning("Skipping answer %r for question %d: %s", label, index + 1, exc)

    outcome = await controller.submit()
    if outcome is None or not outcome.persisted:
        return outcome

    review = await controller.review(assessment_id, student_id)
    if review is not None:
        logger.info("Result %s (%s%%)", review.result_text, review.percentage)
        for item in review.outcomes:
            logger.info(
                "Q%d: answered %s, correct %s",
                item.index + 1,
                item.selected_option,
                item.correct_option,
            )
    return outcome


def run_session(argv: list[str] | None = None) -> int:
    """Take one assessment headless, against the portal API or the seed data (``--local``)."""
    args = list(sys.argv[1:] if argv is None else argv)
    local = "--local" in args
    if local:
        args.remove("--local")
    if len(args) < 2:
        print(SESSION_USAGE, file=sys.stderr)
        return 2
    assessment_id, student_id, *answers = args

    configure_logging()
    gateway: PortalGateway
    if local:
        gateway = LocalPortalGateway(AssessmentRepository.from_json_file(SEED_FILE), ResultBook())
    else:
        gateway = HttpPortalGateway()
    store = JsonFileSessionStore(Path(DEFAULT_SESSION_STORE_FILE))
    controller = SessionController(gateway, store, NullSessionHost())

    outcome = asyncio.run(drive_session(controller, assessment_id, student_id, answers))
    return 0 if outcome is not None and outcome.persisted else 1


if __name__ == "__main__":
    main()
