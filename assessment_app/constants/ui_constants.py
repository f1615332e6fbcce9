"""User-facing strings emitted by the session engine."""

ALREADY_ANSWERED_MESSAGE: str = "You already answered this quiz"
GENERIC_ERROR_MESSAGE: str = "Something went wrong. Please try again later."
LOW_TIME_WARNING_MESSAGE: str = "Less than 1 minute left. Hurry up!"
IMAGE_MISSING_MESSAGE: str = "Question image is missing"
LEAVE_CONFIRMATION_MESSAGE: str = "Your quiz is still running. Leave this page?"
NOT_ANSWERED_PLACEHOLDER: str = "Not answered"
NO_CORRECT_ANSWER_PLACEHOLDER: str = "N/A"
