"""Network configuration constants for the assessment portal."""

DEFAULT_HOST: str = "0.0.0.0"
DEFAULT_PORT: int = 8000
DEFAULT_API_BASE_URL: str = "http://127.0.0.1:8000"
DEFAULT_REQUEST_TIMEOUT_SECONDS: float = 15.0
