"""
Quiz attempt lifecycle: start, submit (grade, complete, progress, certificate)
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Sequence
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from app.exceptions import InvalidStateError, NotFoundError, QuizPlatformError, StorageFailureError
from app.models import AttemptStatus, Question, Quiz, UserAnswer, UserQuizAttempt
from app.services.grading_service import calculate_score_percentage, grading_service, is_passed
from app.services.progress_service import progress_service

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands timestamps back without tzinfo
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class AttemptService:
    """
    Attempt state machine: in_progress -> completed

    The session is passed into every call; submit_attempt commits exactly once
    and rolls back everything on failure.
    """

    def start_attempt(self, db: Session, user_id: UUID, quiz_id: UUID) -> Dict[str, Any]:
        """
        Start a new attempt for a published quiz

        Args:
            db: Database session
            user_id: Authenticated user UUID
            quiz_id: Quiz UUID

        Returns:
            Dictionary with attempt_id, quiz summary, questions without
            correctness flags and started_at
        """
        quiz = db.query(Quiz).filter(Quiz.id == quiz_id).first()
        if not quiz or not quiz.is_published:
            raise NotFoundError("Quiz not found or not published")

        # Deterministic selection: first N questions by display_order
        questions = db.query(Question).options(
            selectinload(Question.options)
        ).filter(
            Question.quiz_id == quiz_id
        ).order_by(
            Question.display_order.asc()
        ).limit(quiz.questions_per_attempt).all()

        if not questions:
            raise InvalidStateError("No questions available for this quiz")

        attempt = UserQuizAttempt(
            user_id=user_id,
            quiz_id=quiz_id,
            status=AttemptStatus.IN_PROGRESS.value,
            total_questions=len(questions),
            correct_answers=0,
            started_at=_utcnow(),
        )

        try:
            db.add(attempt)
            db.commit()
            db.refresh(attempt)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to start attempt: user={user_id}, quiz={quiz_id}: {str(e)}")
            raise StorageFailureError() from e

        logger.info(
            f"Attempt started: {attempt.id} (user={user_id}, quiz={quiz_id}, "
            f"questions={len(questions)})"
        )

        return {
            "attempt_id": attempt.id,
            "quiz": {
                "id": quiz.id,
                "title": quiz.title,
                "description": quiz.description,
                "time_limit_minutes": quiz.time_limit_minutes,
            },
            "questions": [self._question_for_taker(q) for q in questions],
            "started_at": attempt.started_at,
        }

    def _question_for_taker(self, question: Question) -> Dict[str, Any]:
        """Serialize a question with is_correct stripped from every option"""
        return {
            "id": question.id,
            "quiz_id": question.quiz_id,
            "question_type": question.question_type,
            "question_text": question.question_text,
            "question_image_url": question.question_image_url,
            "points": question.points,
            "display_order": question.display_order,
            "options": [
                {
                    "id": option.id,
                    "question_id": option.question_id,
                    "option_text": option.option_text,
                    "option_image_url": option.option_image_url,
                    "display_order": option.display_order,
                }
                for option in question.options
            ],
        }

    def get_active_attempt(self, db: Session, user_id: UUID, quiz_id: UUID) -> UserQuizAttempt:
        """Most recently started in_progress attempt for (user, quiz)"""
        attempt = db.query(UserQuizAttempt).filter(
            UserQuizAttempt.user_id == user_id,
            UserQuizAttempt.quiz_id == quiz_id,
            UserQuizAttempt.status == AttemptStatus.IN_PROGRESS.value
        ).order_by(UserQuizAttempt.started_at.desc()).first()

        if not attempt:
            raise InvalidStateError("No active quiz attempt found")
        return attempt

    def submit_attempt(
        self,
        db: Session,
        user_id: UUID,
        quiz_id: UUID,
        answers: Sequence[Dict[str, Any]],
    ) -> Dict[str, Any]:
        """
        Grade and complete the active attempt

        Score is computed against the number of submitted answers, not the
        number of questions served at start.

        Args:
            db: Database session
            user_id: Authenticated user UUID
            quiz_id: Quiz UUID
            answers: [{"question_id": UUID, "selected_options": [UUID, ...]}]

        Returns:
            Dictionary with attempt, score, correct_answers, total_questions,
            passed and certificate_url
        """
        try:
            result = self._submit(db, user_id, quiz_id, answers)
            db.commit()
        except QuizPlatformError:
            db.rollback()
            raise
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(
                f"Failed to submit attempt: user={user_id}, quiz={quiz_id}: {str(e)}",
                exc_info=True
            )
            raise StorageFailureError() from e

        attempt = result["attempt"]
        db.refresh(attempt)

        logger.info(
            f"Attempt submitted: {attempt.id}, score={result['score']}, "
            f"correct={result['correct_answers']}/{result['total_questions']}, "
            f"passed={result['passed']}"
        )
        return result

    def _submit(
        self,
        db: Session,
        user_id: UUID,
        quiz_id: UUID,
        answers: Sequence[Dict[str, Any]],
    ) -> Dict[str, Any]:
        attempt = self.get_active_attempt(db, user_id, quiz_id)

        quiz = db.query(Quiz).filter(Quiz.id == attempt.quiz_id).first()
        if not quiz:
            raise NotFoundError("Quiz not found")

        questions = self._load_questions(db, quiz.id, [a["question_id"] for a in answers])

        # Grade everything before the first write
        answer_rows: List[UserAnswer] = []
        correct_answers = 0
        for answer in answers:
            question = questions.get(answer["question_id"])
            if question is None:
                raise NotFoundError(f"Question {answer['question_id']} not found")

            selected = list(answer.get("selected_options") or [])
            is_correct, points_earned = grading_service.grade(question, selected)
            if is_correct:
                correct_answers += 1

            answer_rows.append(UserAnswer(
                attempt_id=attempt.id,
                question_id=question.id,
                selected_options=[str(option_id) for option_id in selected],
                is_correct=is_correct,
                points_earned=points_earned,
            ))

        score = calculate_score_percentage(correct_answers, len(answers))
        completed_at = _utcnow()
        time_taken = int((completed_at - _as_utc(attempt.started_at)).total_seconds())

        if not self._claim_attempt(db, attempt.id, {
            UserQuizAttempt.status: AttemptStatus.COMPLETED.value,
            UserQuizAttempt.completed_at: completed_at,
            UserQuizAttempt.score: score,
            UserQuizAttempt.correct_answers: correct_answers,
            UserQuizAttempt.time_taken_seconds: max(time_taken, 0),
        }):
            raise InvalidStateError("Quiz attempt has already been submitted")

        db.add_all(answer_rows)

        _, certificate = progress_service.record_completed_attempt(
            db, user_id, quiz, score, completed_at
        )

        passed = is_passed(score, quiz.passing_score)
        return {
            "attempt": attempt,
            "score": score,
            "correct_answers": correct_answers,
            "total_questions": len(answers),
            "passed": passed,
            "certificate_url": certificate.certificate_url if certificate else None,
        }

    def _load_questions(self, db: Session, quiz_id: UUID, question_ids: List[UUID]) -> Dict[UUID, Question]:
        """Questions of this quiz referenced by the submission, keyed by id"""
        unique_ids = list(set(question_ids))
        if not unique_ids:
            return {}

        questions = db.query(Question).options(
            selectinload(Question.options)
        ).filter(
            Question.id.in_(unique_ids),
            Question.quiz_id == quiz_id
        ).all()
        return {question.id: question for question in questions}

    def _claim_attempt(self, db: Session, attempt_id: UUID, values: Dict[Any, Any]) -> bool:
        """
        Conditional update: only applies while the attempt is still in_progress.
        Returns False when another request completed (or an admin abandoned) it first.
        """
        updated = db.query(UserQuizAttempt).filter(
            UserQuizAttempt.id == attempt_id,
            UserQuizAttempt.status == AttemptStatus.IN_PROGRESS.value
        ).update(values, synchronize_session=False)
        return updated == 1

    def abandon_attempt(self, db: Session, attempt_id: UUID) -> UserQuizAttempt:
        """Administrative transition in_progress -> abandoned"""
        attempt = db.query(UserQuizAttempt).filter(UserQuizAttempt.id == attempt_id).first()
        if not attempt:
            raise NotFoundError("Quiz attempt not found")

        try:
            claimed = self._claim_attempt(db, attempt_id, {
                UserQuizAttempt.status: AttemptStatus.ABANDONED.value,
            })
            if not claimed:
                db.rollback()
                raise InvalidStateError("Only in-progress attempts can be abandoned")
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to abandon attempt {attempt_id}: {str(e)}")
            raise StorageFailureError() from e

        db.refresh(attempt)
        logger.info(f"Attempt abandoned: {attempt_id}")
        return attempt

    def get_user_attempts(self, db: Session, user_id: UUID) -> List[UserQuizAttempt]:
        return db.query(UserQuizAttempt).options(
            selectinload(UserQuizAttempt.quiz)
        ).filter(
            UserQuizAttempt.user_id == user_id
        ).order_by(UserQuizAttempt.started_at.desc()).all()


# Global instance
attempt_service = AttemptService()
