"""Per-question single-choice answers and question navigation."""

from __future__ import annotations

from assessment_app.core.grading import normalize_label
from assessment_app.core.models import Assessment, NavigationAction
from assessment_app.core.services.session_store import SessionStore


class AnswerRecorder:
    """Records one selected option label per question index.

    Selections are checked only against the labels the student was shown;
    the correct answer is never consulted here. Every change rewrites the
    full answers map in the session store.
    """

    def __init__(
        self,
        assessment: Assessment,
        store: SessionStore,
        answers: dict[int, str] | None = None,
    ) -> None:
        self._assessment = assessment
        self._store = store
        self._answers: dict[int, str] = {}
        for index, label in (answers or {}).items():
            if 0 <= index < assessment.question_count:
                self._answers[index] = label

    def select(self, question_index: int, option_label: str) -> None:
        """Overwrite the selection for ``question_index`` and persist all answers."""
        if not 0 <= question_index < self._assessment.question_count:
            raise ValueError(f"Question index {question_index} out of range")
        normalized = normalize_label(option_label)
        offered = {
            normalize_label(option)
            for option in self._assessment.questions[question_index].options
        }
        if normalized is None or normalized not in offered:
            raise ValueError(
                f"Option {option_label!r} is not offered for question {question_index + 1}."
            )
        self._answers[question_index] = normalized
        self._store.save_answers(self._assessment.id, self._answers)

    def selected_for(self, question_index: int) -> str | None:
        return self._answers.get(question_index)

    def has_answer(self, question_index: int) -> bool:
        return question_index in self._answers

    def get_answers(self) -> dict[int, str]:
        return dict(self._answers)

    def answered_count(self) -> int:
        return len(self._answers)

    def unanswered_indices(self) -> list[int]:
        return [
            index
            for index in range(self._assessment.question_count)
            if index not in self._answers
        ]


class QuestionCursor:
    """Tracks the displayed question; moving forward needs an answer on the current one."""

    def __init__(self, assessment: Assessment, recorder: AnswerRecorder) -> None:
        if assessment.question_count == 0:
            raise ValueError("Assessment must contain at least one question.")
        self._assessment = assessment
        self._recorder = recorder
        self._index = 0

    @property
    def index(self) -> int:
        return self._index

    @property
    def question_number(self) -> int:
        return self._index + 1

    def is_first(self) -> bool:
        return self._index == 0

    def is_last(self) -> bool:
        return self._index == self._assessment.question_count - 1

    def primary_action(self) -> NavigationAction:
        return NavigationAction.SUBMIT if self.is_last() else NavigationAction.NEXT

    def can_go_next(self) -> bool:
        return not self.is_last() and self._recorder.has_answer(self._index)

    def can_go_previous(self) -> bool:
        return not self.is_first()

    def next(self) -> int:
        if not self.can_go_next():
            raise RuntimeError("Answer the current question before moving on.")
        self._index += 1
        return self._index

    def previous(self) -> int:
        if self.can_go_previous():
            self._index -= 1
        return self._index
