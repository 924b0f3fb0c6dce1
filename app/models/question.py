"""
Question and AnswerOption models
"""
import enum
import uuid

from sqlalchemy import Column, String, Integer, Boolean, Text, TIMESTAMP, ForeignKey, JSON, Uuid, func
from sqlalchemy.orm import relationship

from app.database import Base


class QuestionType(str, enum.Enum):
    MULTIPLE_CHOICE = "multiple_choice"
    CHECKBOX = "checkbox"
    YES_NO = "yes_no"


class Question(Base):
    """
    Questions table - question_type is stored as plain text, so rows written
    outside the API may carry values the grader does not know
    """
    __tablename__ = "questions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    quiz_id = Column(Uuid, ForeignKey("quizzes.id"), nullable=False, index=True)
    question_type = Column(String(20), nullable=False)
    question_text = Column(Text, nullable=False)
    question_image_url = Column(String(500))
    points = Column(Integer, nullable=False, default=1)
    display_order = Column(Integer, nullable=False, default=0)
    meta = Column("metadata", JSON, default=dict)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now())

    quiz = relationship("Quiz", back_populates="questions")
    options = relationship(
        "AnswerOption",
        back_populates="question",
        cascade="all, delete-orphan",
        order_by="AnswerOption.display_order",
    )
    fun_facts = relationship(
        "FunFact",
        back_populates="question",
        cascade="all, delete-orphan",
        order_by="FunFact.created_at",
    )

    def __repr__(self):
        return f"<Question(id={self.id}, quiz_id={self.quiz_id}, type={self.question_type})>"


class AnswerOption(Base):
    """
    Answer options table - is_correct must never leave the API before grading
    """
    __tablename__ = "answer_options"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    question_id = Column(Uuid, ForeignKey("questions.id"), nullable=False, index=True)
    option_text = Column(Text)
    option_image_url = Column(String(500))
    is_correct = Column(Boolean, nullable=False, default=False)
    display_order = Column(Integer, nullable=False, default=0)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())

    question = relationship("Question", back_populates="options")

    def __repr__(self):
        return f"<AnswerOption(id={self.id}, question_id={self.question_id}, correct={self.is_correct})>"
