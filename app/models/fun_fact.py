"""
FunFact model - trivia shown alongside a question
"""
from sqlalchemy import Column, String, Text, TIMESTAMP, ForeignKey, Uuid, func
from sqlalchemy.orm import relationship
from app.database import Base
import uuid


class FunFact(Base):
    """
    Fun facts table - optional extra content authored per question
    """
    __tablename__ = "fun_facts"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    question_id = Column(Uuid, ForeignKey("questions.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    image_url = Column(String(500))
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now())

    question = relationship("Question", back_populates="fun_facts")

    def __repr__(self):
        return f"<FunFact(id={self.id}, question_id={self.question_id}, title={self.title})>"
