"""
Pydantic schemas for question management (admin only, exposes is_correct)
"""
from pydantic import BaseModel, Field, field_validator
from typing import Any, Dict, List, Optional
from uuid import UUID


class OptionCreate(BaseModel):
    option_text: str = Field(..., min_length=1, description="Option text")
    option_image_url: Optional[str] = Field(None, max_length=500)
    is_correct: bool = False
    display_order: int = 0


class QuestionCreate(BaseModel):
    """Request schema for creating a question with its options"""
    quiz_id: UUID
    question_type: str = Field(..., pattern="^(multiple_choice|checkbox|yes_no)$")
    question_text: str = Field(..., min_length=1)
    question_image_url: Optional[str] = Field(None, max_length=500)
    points: int = Field(1, gt=0)
    display_order: int = 0
    metadata: Dict[str, Any] = Field(default_factory=dict)
    options: List[OptionCreate] = Field(..., min_length=2, description="At least 2 options")


class QuestionUpdate(BaseModel):
    """Partial update; options, when given, replace the existing set"""
    question_type: Optional[str] = Field(None, pattern="^(multiple_choice|checkbox|yes_no)$")
    question_text: Optional[str] = Field(None, min_length=1)
    question_image_url: Optional[str] = Field(None, max_length=500)
    points: Optional[int] = Field(None, gt=0)
    display_order: Optional[int] = None
    metadata: Optional[Dict[str, Any]] = None
    options: Optional[List[OptionCreate]] = Field(None, min_length=2)

    @field_validator("question_type", "question_text", "points", "display_order", "options")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("may be omitted but not set to null")
        return value


class OptionResponse(BaseModel):
    id: UUID
    question_id: UUID
    option_text: Optional[str] = None
    option_image_url: Optional[str] = None
    is_correct: bool
    display_order: int

    class Config:
        from_attributes = True


class QuestionResponse(BaseModel):
    id: UUID
    quiz_id: UUID
    question_type: str
    question_text: str
    question_image_url: Optional[str] = None
    points: int
    display_order: int
    metadata: Optional[Dict[str, Any]] = Field(default=None, validation_alias="meta")
    options: List[OptionResponse]

    class Config:
        from_attributes = True
