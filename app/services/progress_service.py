"""
Progress and certificate updater
Runs inside the submission transaction after an attempt is completed;
admins also issue, amend and revoke certificates here
"""
import logging
import secrets
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from app.config import settings
from app.exceptions import InvalidStateError, NotFoundError, StorageFailureError
from app.models import AttemptStatus, Certificate, Quiz, User, UserProgress, UserQuizAttempt
from app.services.grading_service import is_passed

logger = logging.getLogger(__name__)


class ProgressService:
    """
    Upserts UserProgress and Certificate rows keyed by (user_id, quiz_id)

    Policy:
    - best_score is a high-water mark
    - the certificate always reflects the latest passing attempt, so
      score_achieved may be lower than best_score
    """

    def record_completed_attempt(
        self,
        db: Session,
        user_id: UUID,
        quiz: Quiz,
        score: int,
        completed_at: datetime,
    ) -> Tuple[UserProgress, Optional[Certificate]]:
        """
        Update progress and, when the score passes, the certificate.
        Does not commit; the caller owns the transaction.

        Args:
            db: Database session
            user_id: User UUID
            quiz: Quiz the attempt belongs to
            score: Attempt score percentage
            completed_at: Completion timestamp of the attempt

        Returns:
            Tuple of (progress, certificate or None when not passed)
        """
        progress = self._upsert_progress(db, user_id, quiz.id, score, completed_at)

        certificate = None
        if is_passed(score, quiz.passing_score):
            certificate = self._upsert_certificate(db, user_id, quiz.id, score, completed_at)

        db.flush()
        return progress, certificate

    def _upsert_progress(
        self,
        db: Session,
        user_id: UUID,
        quiz_id: UUID,
        score: int,
        attempted_at: datetime,
    ) -> UserProgress:
        progress = db.query(UserProgress).filter(
            UserProgress.user_id == user_id,
            UserProgress.quiz_id == quiz_id
        ).first()

        if not progress:
            progress = UserProgress(
                user_id=user_id,
                quiz_id=quiz_id,
                total_attempts=1,
                best_score=score,
                last_attempt_at=attempted_at,
            )
            db.add(progress)
            return progress

        progress.total_attempts = (progress.total_attempts or 0) + 1
        progress.best_score = max(progress.best_score or 0, score)
        progress.last_attempt_at = attempted_at
        return progress

    def _upsert_certificate(
        self,
        db: Session,
        user_id: UUID,
        quiz_id: UUID,
        score: int,
        issued_at: datetime,
    ) -> Certificate:
        certificate_url = self.generate_certificate_url(user_id, quiz_id, score)

        certificate = db.query(Certificate).filter(
            Certificate.user_id == user_id,
            Certificate.quiz_id == quiz_id
        ).first()

        if not certificate:
            certificate = Certificate(
                user_id=user_id,
                quiz_id=quiz_id,
                certificate_url=certificate_url,
                score_achieved=score,
                issued_at=issued_at,
            )
            db.add(certificate)
            logger.info(f"Certificate issued: user={user_id}, quiz={quiz_id}, score={score}")
            return certificate

        certificate.certificate_url = certificate_url
        certificate.score_achieved = score
        logger.info(f"Certificate updated: user={user_id}, quiz={quiz_id}, score={score}")
        return certificate

    def generate_certificate_url(self, user_id: UUID, quiz_id: UUID, score: int) -> str:
        """Opaque certificate link; the random token keeps it unguessable"""
        token = secrets.token_urlsafe(16)
        return (
            f"{settings.CERTIFICATE_BASE_URL.rstrip('/')}/certificates/"
            f"{user_id}/{quiz_id}?score={score}&token={token}"
        )

    def get_user_progress(self, db: Session, user_id: UUID) -> List[UserProgress]:
        return db.query(UserProgress).options(
            joinedload(UserProgress.quiz).joinedload(Quiz.category)
        ).filter(
            UserProgress.user_id == user_id
        ).order_by(UserProgress.last_attempt_at.desc()).all()

    def get_user_certificates(self, db: Session, user_id: UUID) -> List[Certificate]:
        return db.query(Certificate).options(
            joinedload(Certificate.quiz).joinedload(Quiz.category)
        ).filter(
            Certificate.user_id == user_id
        ).order_by(Certificate.issued_at.desc()).all()

    def get_certificate(self, db: Session, user_id: UUID, quiz_id: UUID) -> Optional[Certificate]:
        return db.query(Certificate).options(
            joinedload(Certificate.quiz)
        ).filter(
            Certificate.user_id == user_id,
            Certificate.quiz_id == quiz_id
        ).first()

    # ---------------------------------------------------------------------
    # Certificate administration
    # ---------------------------------------------------------------------

    def list_certificates(
        self,
        db: Session,
        user_id: Optional[UUID] = None,
        quiz_id: Optional[UUID] = None,
    ) -> List[Certificate]:
        query = db.query(Certificate).options(
            joinedload(Certificate.user),
            joinedload(Certificate.quiz).joinedload(Quiz.category),
        )
        if user_id:
            query = query.filter(Certificate.user_id == user_id)
        if quiz_id:
            query = query.filter(Certificate.quiz_id == quiz_id)
        return query.order_by(Certificate.issued_at.desc()).all()

    def get_certificate_by_id(self, db: Session, certificate_id: UUID) -> Certificate:
        certificate = db.query(Certificate).options(
            joinedload(Certificate.user),
            joinedload(Certificate.quiz).joinedload(Quiz.category),
        ).filter(Certificate.id == certificate_id).first()
        if not certificate:
            raise NotFoundError("Certificate not found")
        return certificate

    def issue_certificate(
        self,
        db: Session,
        user_id: UUID,
        quiz_id: UUID,
        score_achieved: Optional[int] = None,
        certificate_url: Optional[str] = None,
    ) -> Certificate:
        """
        Issue a certificate by hand, e.g. after a lost or deleted one

        The user must hold a completed attempt at or above the passing score.
        score_achieved defaults to the best such attempt and may not exceed it.

        Raises:
            NotFoundError: unknown user or quiz
            InvalidStateError: no passing attempt, a certificate already
                exists, or the score does not pass
        """
        if not db.query(User).filter(User.id == user_id).first():
            raise NotFoundError("User not found")
        quiz = db.query(Quiz).filter(Quiz.id == quiz_id).first()
        if not quiz:
            raise NotFoundError("Quiz not found")

        best_score = self._best_completed_score(db, user_id, quiz_id)
        if best_score is None or not is_passed(best_score, quiz.passing_score):
            raise InvalidStateError("User has no passing attempt for this quiz")

        if self.get_certificate(db, user_id, quiz_id):
            raise InvalidStateError("Certificate already exists for this user and quiz")

        score = best_score if score_achieved is None else score_achieved
        if score > best_score:
            raise InvalidStateError(f"Score cannot exceed the best attempt score ({best_score})")
        self._ensure_passing(score, quiz)

        certificate = Certificate(
            user_id=user_id,
            quiz_id=quiz_id,
            certificate_url=certificate_url or self.generate_certificate_url(user_id, quiz_id, score),
            score_achieved=score,
        )
        db.add(certificate)
        self._commit(db, "issue certificate")

        logger.info(f"Certificate issued by admin: user={user_id}, quiz={quiz_id}, score={score}")
        return self.get_certificate_by_id(db, certificate.id)

    def update_certificate(self, db: Session, certificate_id: UUID, data: Dict[str, Any]) -> Certificate:
        certificate = self.get_certificate_by_id(db, certificate_id)

        if "score_achieved" in data:
            self._ensure_passing(data["score_achieved"], certificate.quiz)

        for field, value in data.items():
            setattr(certificate, field, value)

        self._commit(db, "update certificate")
        return self.get_certificate_by_id(db, certificate_id)

    def revoke_certificate(self, db: Session, certificate_id: UUID) -> None:
        certificate = self.get_certificate_by_id(db, certificate_id)

        db.delete(certificate)
        self._commit(db, "revoke certificate")
        logger.info(f"Certificate revoked: {certificate_id}")

    def _best_completed_score(self, db: Session, user_id: UUID, quiz_id: UUID) -> Optional[int]:
        return db.query(func.max(UserQuizAttempt.score)).filter(
            UserQuizAttempt.user_id == user_id,
            UserQuizAttempt.quiz_id == quiz_id,
            UserQuizAttempt.status == AttemptStatus.COMPLETED.value,
        ).scalar()

    def _ensure_passing(self, score: int, quiz: Quiz) -> None:
        if not is_passed(score, quiz.passing_score):
            raise InvalidStateError(f"Score {score} is below the passing score ({quiz.passing_score})")

    def _commit(self, db: Session, action: str) -> None:
        try:
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to {action}: {str(e)}")
            raise StorageFailureError() from e


# Global instance
progress_service = ProgressService()
