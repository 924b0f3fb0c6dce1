"""
Category model - groups quizzes by subject
"""
from sqlalchemy import Column, String, Integer, Boolean, Text, TIMESTAMP, Uuid, func
from sqlalchemy.orm import relationship
from app.database import Base
import uuid


class Category(Base):
    """
    Categories table
    """
    __tablename__ = "categories"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(100), unique=True, nullable=False)
    description = Column(Text)
    icon_url = Column(String(500))
    display_order = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())

    quizzes = relationship("Quiz", back_populates="category")

    def __repr__(self):
        return f"<Category(id={self.id}, name={self.name})>"
