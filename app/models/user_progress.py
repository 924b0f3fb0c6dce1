"""
UserProgress model - per (user, quiz) attempt counter and best score
"""
from sqlalchemy import Column, Integer, TIMESTAMP, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship
from app.database import Base
import uuid


class UserProgress(Base):
    """
    User progress table - best_score never decreases
    """
    __tablename__ = "user_progress"
    __table_args__ = (
        UniqueConstraint("user_id", "quiz_id", name="uq_user_progress_user_quiz"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    quiz_id = Column(Uuid, ForeignKey("quizzes.id"), nullable=False)
    total_attempts = Column(Integer, nullable=False, default=0)
    best_score = Column(Integer, nullable=False, default=0)
    last_attempt_at = Column(TIMESTAMP(timezone=True))

    quiz = relationship("Quiz")

    def __repr__(self):
        return f"<UserProgress(user_id={self.user_id}, quiz_id={self.quiz_id}, best={self.best_score})>"
