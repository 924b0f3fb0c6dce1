"""
Quiz model - quiz metadata and attempt settings
"""
from sqlalchemy import Column, String, Integer, Boolean, Text, TIMESTAMP, ForeignKey, Uuid, func
from sqlalchemy.orm import relationship
from app.database import Base
import uuid


class Quiz(Base):
    """
    Quizzes table - questions_per_attempt caps the questions served per attempt,
    passing_score is a percentage (0-100)
    """
    __tablename__ = "quizzes"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    category_id = Column(Uuid, ForeignKey("categories.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    thumbnail_url = Column(String(500))
    difficulty_level = Column(String(20), nullable=False, default="medium")
    questions_per_attempt = Column(Integer, nullable=False, default=10)
    time_limit_minutes = Column(Integer, nullable=False, default=0)  # informational only
    passing_score = Column(Integer, nullable=False, default=70)
    is_published = Column(Boolean, nullable=False, default=False)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now())

    category = relationship("Category", back_populates="quizzes")
    questions = relationship(
        "Question",
        back_populates="quiz",
        cascade="all, delete-orphan",
        order_by="Question.display_order",
    )

    def __repr__(self):
        return f"<Quiz(id={self.id}, title={self.title}, published={self.is_published})>"
