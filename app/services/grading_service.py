"""
Quiz grading service
Single choice (multiple_choice, yes_no): exactly one selection matching the correct option
Checkbox: selected set must equal the correct set
"""
import logging
from typing import List, Sequence, Tuple
from uuid import UUID

from app.exceptions import InvalidStateError
from app.models import Question, QuestionType

logger = logging.getLogger(__name__)


class GradingService:
    """
    Service for grading individual answers

    Strategy:
    - All-or-nothing per question, no partial credit
    - Points come from the question; a wrong answer earns 0
    - Unknown question types are rejected instead of graded as wrong
    """

    SINGLE_CHOICE_TYPES = (QuestionType.MULTIPLE_CHOICE.value, QuestionType.YES_NO.value)

    def grade(self, question: Question, selected_option_ids: Sequence[UUID]) -> Tuple[bool, int]:
        """
        Grade one answer

        Args:
            question: Question with its options loaded
            selected_option_ids: Option ids chosen by the user

        Returns:
            Tuple of (is_correct, points_earned)

        Raises:
            InvalidStateError: question_type is not one the grader knows
        """
        selected = list(selected_option_ids)
        correct_ids = [option.id for option in question.options if option.is_correct]

        if question.question_type in self.SINGLE_CHOICE_TYPES:
            is_correct = self._grade_single_choice(correct_ids, selected)
        elif question.question_type == QuestionType.CHECKBOX.value:
            is_correct = self._grade_checkbox(correct_ids, selected)
        else:
            logger.error(
                f"Cannot grade question {question.id}: unknown question type {question.question_type!r}"
            )
            raise InvalidStateError(f"Question {question.id} has an unsupported question type")

        points_earned = question.points if is_correct else 0
        return is_correct, points_earned

    def _grade_single_choice(self, correct_ids: List[UUID], selected: List[UUID]) -> bool:
        """
        Exactly one selection, equal to the only correct option.
        A question with zero or several correct options can never be answered correctly.
        """
        if len(correct_ids) != 1:
            return False
        return len(selected) == 1 and selected[0] == correct_ids[0]

    def _grade_checkbox(self, correct_ids: List[UUID], selected: List[UUID]) -> bool:
        # Sorted comparison: order-independent, but duplicates still change cardinality
        return sorted(selected) == sorted(correct_ids)


def calculate_score_percentage(correct: int, total: int) -> int:
    """Integer percentage in [0, 100], halves rounded up; 0 when nothing was answered"""
    if total == 0:
        return 0
    # Integer arithmetic: round() would round 12.5 down to 12
    return (200 * correct + total) // (2 * total)


def is_passed(score: int, passing_score: int) -> bool:
    return score >= passing_score


# Global instance
grading_service = GradingService()
