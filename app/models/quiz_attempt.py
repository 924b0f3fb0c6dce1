"""
UserQuizAttempt and UserAnswer models - one row per attempt, one row per submitted answer
"""
import enum
import uuid

from sqlalchemy import Column, String, Integer, Boolean, TIMESTAMP, ForeignKey, JSON, Uuid, func
from sqlalchemy.orm import relationship

from app.database import Base


class AttemptStatus(str, enum.Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


class UserQuizAttempt(Base):
    """
    Quiz attempts table - score and completed_at stay null until submission
    """
    __tablename__ = "user_quiz_attempts"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    quiz_id = Column(Uuid, ForeignKey("quizzes.id"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default=AttemptStatus.IN_PROGRESS.value)
    total_questions = Column(Integer, nullable=False)
    correct_answers = Column(Integer, nullable=False, default=0)
    score = Column(Integer)  # percentage 0-100
    time_taken_seconds = Column(Integer)
    started_at = Column(TIMESTAMP(timezone=True), nullable=False)
    completed_at = Column(TIMESTAMP(timezone=True))

    quiz = relationship("Quiz")
    answers = relationship("UserAnswer", back_populates="attempt", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<UserQuizAttempt(id={self.id}, user_id={self.user_id}, status={self.status}, score={self.score})>"


class UserAnswer(Base):
    """
    User answers table - selected_options holds option ids as strings
    """
    __tablename__ = "user_answers"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    attempt_id = Column(Uuid, ForeignKey("user_quiz_attempts.id"), nullable=False, index=True)
    question_id = Column(Uuid, ForeignKey("questions.id"), nullable=False)
    selected_options = Column(JSON, nullable=False, default=list)
    is_correct = Column(Boolean, nullable=False, default=False)
    points_earned = Column(Integer, nullable=False, default=0)
    answered_at = Column(TIMESTAMP(timezone=True), server_default=func.now())

    attempt = relationship("UserQuizAttempt", back_populates="answers")

    def __repr__(self):
        return f"<UserAnswer(attempt_id={self.attempt_id}, question_id={self.question_id}, correct={self.is_correct})>"
