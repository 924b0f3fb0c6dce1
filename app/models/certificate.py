"""
Certificate model - issued when an attempt reaches the quiz passing score
"""
from sqlalchemy import Column, String, Integer, TIMESTAMP, ForeignKey, UniqueConstraint, Uuid, func
from sqlalchemy.orm import relationship
from app.database import Base
import uuid


class Certificate(Base):
    """
    Certificates table - one row per (user, quiz), reflects the latest passing attempt
    """
    __tablename__ = "certificates"
    __table_args__ = (
        UniqueConstraint("user_id", "quiz_id", name="uq_certificates_user_quiz"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    quiz_id = Column(Uuid, ForeignKey("quizzes.id"), nullable=False)
    certificate_url = Column(String(500), nullable=False)
    score_achieved = Column(Integer, nullable=False)
    issued_at = Column(TIMESTAMP(timezone=True), server_default=func.now())

    user = relationship("User")
    quiz = relationship("Quiz")

    def __repr__(self):
        return f"<Certificate(user_id={self.user_id}, quiz_id={self.quiz_id}, score={self.score_achieved})>"
