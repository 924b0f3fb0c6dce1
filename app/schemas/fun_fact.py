"""
Pydantic schemas for question fun facts
"""
from pydantic import BaseModel, Field, field_validator
from typing import Optional
from uuid import UUID
from datetime import datetime


class FunFactCreate(BaseModel):
    question_id: UUID
    title: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1)
    image_url: Optional[str] = Field(None, max_length=500)


class FunFactUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    content: Optional[str] = Field(None, min_length=1)
    image_url: Optional[str] = Field(None, max_length=500)

    @field_validator("title", "content")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("may be omitted but not set to null")
        return value


class QuestionSummary(BaseModel):
    id: UUID
    question_text: str

    class Config:
        from_attributes = True


class FunFactResponse(BaseModel):
    id: UUID
    question_id: UUID
    title: str
    content: str
    image_url: Optional[str] = None
    created_at: Optional[datetime] = None
    question: Optional[QuestionSummary] = None

    class Config:
        from_attributes = True
