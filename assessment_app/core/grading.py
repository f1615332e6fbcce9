"""Grading rules shared by submission and result review.

Both the submission path and the result review recompute correctness from
raw answers, so every rule lives here once: labels compare
case-insensitively, answers are matched to questions by index, and an
unanswered question counts as incorrect while still counting towards the
total.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from assessment_app.constants.ui_constants import (
    NO_CORRECT_ANSWER_PLACEHOLDER,
    NOT_ANSWERED_PLACEHOLDER,
)
from assessment_app.core.models import GradeSummary, Question, QuestionOutcome


def normalize_label(label: str | None) -> str | None:
    """Return the comparison form of an option label, or None when blank."""
    if label is None:
        return None
    cleaned = str(label).strip().lower()
    return cleaned or None


def is_answer_correct(question: Question, selected: str | None) -> bool:
    expected = normalize_label(question.correct_option)
    given = normalize_label(selected)
    return expected is not None and given is not None and expected == given


def count_correct(questions: Sequence[Question], answers: Mapping[int, str]) -> int:
    """Count answers matching the canonical key for indices present in both."""
    correct = 0
    for index, selected in answers.items():
        if not 0 <= index < len(questions):
            continue
        if is_answer_correct(questions[index], selected):
            correct += 1
    return correct


def compute_percentage(correct_count: int, total_questions: int) -> int:
    """Whole-number percentage rounded half up; an empty assessment scores 0."""
    if total_questions <= 0:
        return 0
    return (correct_count * 200 + total_questions) // (total_questions * 2)


def format_result_text(correct_count: int, total_questions: int) -> str:
    return f"{correct_count} / {total_questions}"


def grade_answers(questions: Sequence[Question], answers: Mapping[int, str]) -> GradeSummary:
    """Grade raw answers against canonical questions."""
    total = len(questions)
    correct = count_correct(questions, answers)
    return GradeSummary(
        correct_count=correct,
        total_questions=total,
        percentage=compute_percentage(correct, total),
        result_text=format_result_text(correct, total),
    )


def question_outcomes(
    questions: Sequence[Question], answers: Mapping[int, str]
) -> list[QuestionOutcome]:
    """Build the per-question breakdown shown on the result view."""
    outcomes: list[QuestionOutcome] = []
    for index, question in enumerate(questions):
        selected = normalize_label(answers.get(index))
        expected = normalize_label(question.correct_option)
        outcomes.append(
            QuestionOutcome(
                index=index,
                prompt=question.prompt,
                selected_option=selected.upper() if selected else NOT_ANSWERED_PLACEHOLDER,
                correct_option=expected.upper() if expected else NO_CORRECT_ANSWER_PLACEHOLDER,
                is_correct=is_answer_correct(question, selected),
                level=question.level,
            )
        )
    return outcomes
