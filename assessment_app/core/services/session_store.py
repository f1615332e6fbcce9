"""Tab-scoped key/value persistence for in-flight sessions.

Values are kept as strings under ``quiz_{assessment_id}_{field}`` keys, the
way a browser tab store holds them, and every field is written on its own:
the store is not transactional. The submission path clears all fields of an
assessment once it finalizes, successful or not.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
import json
import logging
from pathlib import Path

from assessment_app.constants.session_constants import SESSION_KEY_TEMPLATE
from assessment_app.core.models import SessionState

logger = logging.getLogger(__name__)


class SessionField(str, Enum):
    START_TIMESTAMP = "start_timestamp"
    DATE_OF_START = "date_of_start"
    TIME_REMAINING = "timeRemaining"
    SELECTED_ANSWERS = "selectedAnswers"


class SessionStore(ABC):
    """String key/value store with typed helpers for session fields."""

    @abstractmethod
    def _read(self, key: str) -> str | None: ...

    @abstractmethod
    def _write(self, key: str, value: str) -> None: ...

    @abstractmethod
    def _delete(self, key: str) -> None: ...

    @staticmethod
    def key_for(assessment_id: str, field: SessionField) -> str:
        return SESSION_KEY_TEMPLATE.format(assessment_id=assessment_id, field=field.value)

    def get(self, assessment_id: str, field: SessionField) -> str | None:
        return self._read(self.key_for(assessment_id, field))

    def set(self, assessment_id: str, field: SessionField, value: str) -> None:
        self._write(self.key_for(assessment_id, field), value)

    def clear(self, assessment_id: str, field: SessionField | None = None) -> None:
        """Remove one field, or every field of the assessment when ``field`` is None."""
        fields = [field] if field is not None else list(SessionField)
        for item in fields:
            self._delete(self.key_for(assessment_id, item))

    # --- Typed helpers ---

    def load_start_timestamp(self, assessment_id: str) -> int | None:
        raw = self.get(assessment_id, SessionField.START_TIMESTAMP)
        if raw is None:
            return None
        try:
            return int(raw)
        except ValueError:
            logger.warning("Ignoring malformed start timestamp for %s: %r", assessment_id, raw)
            return None

    def save_start_timestamp(self, assessment_id: str, timestamp_ms: int, formatted: str) -> None:
        self.set(assessment_id, SessionField.START_TIMESTAMP, str(int(timestamp_ms)))
        self.set(assessment_id, SessionField.DATE_OF_START, formatted)

    def load_remaining_seconds(self, assessment_id: str) -> int | None:
        raw = self.get(assessment_id, SessionField.TIME_REMAINING)
        if raw is None:
            return None
        try:
            return int(raw)
        except ValueError:
            logger.warning("Ignoring malformed remaining time for %s: %r", assessment_id, raw)
            return None

    def save_remaining_seconds(self, assessment_id: str, seconds: int) -> None:
        self.set(assessment_id, SessionField.TIME_REMAINING, str(int(seconds)))

    def load_answers(self, assessment_id: str) -> dict[int, str]:
        raw = self.get(assessment_id, SessionField.SELECTED_ANSWERS)
        if not raw:
            return {}
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Ignoring malformed saved answers for %s", assessment_id)
            return {}
        if not isinstance(parsed, dict):
            return {}
        answers: dict[int, str] = {}
        for key, value in parsed.items():
            try:
                answers[int(key)] = str(value)
            except (TypeError, ValueError):
                continue
        return answers

    def save_answers(self, assessment_id: str, answers: dict[int, str]) -> None:
        payload = {str(index): label for index, label in sorted(answers.items())}
        self.set(assessment_id, SessionField.SELECTED_ANSWERS, json.dumps(payload))

    def restore(self, assessment_id: str) -> SessionState | None:
        """Rebuild the in-flight state after a reload, or None if nothing was started."""
        start = self.load_start_timestamp(assessment_id)
        if start is None:
            return None
        return SessionState(
            assessment_id=assessment_id,
            start_timestamp_ms=start,
            answers=self.load_answers(assessment_id),
            remaining_seconds=self.load_remaining_seconds(assessment_id),
        )


class MemorySessionStore(SessionStore):
    """Process-local store; one instance per open tab."""

    def __init__(self) -> None:
        self._values: dict[str, str] = {}

    def _read(self, key: str) -> str | None:
        return self._values.get(key)

    def _write(self, key: str, value: str) -> None:
        self._values[key] = value

    def _delete(self, key: str) -> None:
        self._values.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._values)


class JsonFileSessionStore(SessionStore):
    """Store backed by a JSON file so a restarted process can resume its session."""

    def __init__(self, file_path: Path) -> None:
        self._file_path = Path(file_path).resolve()
        self._values: dict[str, str] = self._load()

    @property
    def file_path(self) -> Path:
        return self._file_path

    def _load(self) -> dict[str, str]:
        if not self._file_path.exists():
            return {}
        try:
            data = json.loads(self._file_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Starting with an empty session store; %s unreadable: %s", self._file_path, exc)
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(key): str(value) for key, value in data.items()}

    def _flush(self) -> None:
        self._file_path.parent.mkdir(parents=True, exist_ok=True)
        self._file_path.write_text(json.dumps(self._values, indent=2, sort_keys=True), encoding="utf-8")

    def _read(self, key: str) -> str | None:
        return self._values.get(key)

    def _write(self, key: str, value: str) -> None:
        self._values[key] = value
        self._flush()

    def _delete(self, key: str) -> None:
        if self._values.pop(key, None) is not None:
            self._flush()
