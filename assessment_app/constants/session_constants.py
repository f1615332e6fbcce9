"""Timing and grading constants for timed assessment sessions."""

TICK_INTERVAL_SECONDS: float = 1.0
LOW_TIME_WARNING_THRESHOLD_SECONDS: int = 60
LOW_TIME_WARNING_DISMISS_SECONDS: float = 6.0
FINALIZE_RELEASE_GRACE_SECONDS: float = 1.0
MIN_ELAPSED_MS: int = 1000

SESSION_KEY_TEMPLATE: str = "quiz_{assessment_id}_{field}"
TIMESTAMP_FORMAT: str = "%m/%d/%Y at %I:%M:%S %p"
DEFAULT_SESSION_STORE_FILE: str = ".assessment_session.json"
