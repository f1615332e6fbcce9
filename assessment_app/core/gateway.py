"""Collaborator contracts consumed by the session engine.

``PortalGateway`` is everything the engine needs from the portal backend:
assessment definitions, the existing-result guard, result persistence and
image resolution. ``SessionHost`` is the display side: navigation, warnings
and the leave-page prompt. Both are abstract so the engine can run against
the HTTP portal, an in-process repository, or test fakes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
import logging

from assessment_app.constants.ui_constants import (
    LEAVE_CONFIRMATION_MESSAGE,
    LOW_TIME_WARNING_MESSAGE,
)
from assessment_app.core.models import Assessment, ResultRecord

logger = logging.getLogger(__name__)


class PortalGateway(ABC):
    """Backend collaborator for assessments and results."""

    @abstractmethod
    async def fetch_student_assessment(self, assessment_id: str) -> Assessment:
        """Return the sanitized assessment or raise ``NotFoundError``."""

    @abstractmethod
    async def fetch_canonical_assessment(self, assessment_id: str) -> Assessment:
        """Return the assessment including correct-option labels."""

    @abstractmethod
    async def has_existing_result(self, student_id: str, assessment_id: str) -> bool:
        """Report whether a result is already stored for this pair."""

    @abstractmethod
    async def write_result(self, record: ResultRecord) -> None:
        """Persist a result or raise ``ResultWriteError``."""

    @abstractmethod
    async def fetch_result(self, student_id: str, assessment_id: str) -> ResultRecord:
        """Return the stored result or raise ``NotFoundError``."""

    @abstractmethod
    async def resolve_image(self, image_ref: str) -> str:
        """Return a displayable URL or raise ``ImageMissingError``."""


class SessionHost(ABC):
    """Display environment driving and observing a session."""

    @abstractmethod
    def navigate_to_result(self, assessment_id: str) -> None:
        """Open the read-only result view."""

    @abstractmethod
    def redirect_to_list(self, message: str | None = None) -> None:
        """Go back to the assessment list, optionally showing a message."""

    @abstractmethod
    def show_low_time_warning(self) -> None: ...

    @abstractmethod
    def hide_low_time_warning(self) -> None: ...

    @abstractmethod
    def set_leave_confirmation(self, enabled: bool) -> None:
        """Ask (best effort) for a confirmation prompt before the page is left."""

    def render_remaining(self, seconds: int) -> None:
        """Called after every countdown tick."""


class NullSessionHost(SessionHost):
    """Host that only logs; used when the engine runs headless."""

    def navigate_to_result(self, assessment_id: str) -> None:
        logger.info("Navigate to result view for assessment %s", assessment_id)

    def redirect_to_list(self, message: str | None = None) -> None:
        logger.info("Redirect to assessment list (%s)", message or "no message")

    def show_low_time_warning(self) -> None:
        logger.warning(LOW_TIME_WARNING_MESSAGE)

    def hide_low_time_warning(self) -> None:
        logger.info("Low-time warning dismissed")

    def set_leave_confirmation(self, enabled: bool) -> None:
        if enabled:
            logger.debug("Leave confirmation armed: %s", LEAVE_CONFIRMATION_MESSAGE)
        else:
            logger.debug("Leave confirmation disarmed")
