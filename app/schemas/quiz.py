"""
Pydantic schemas for quiz catalogue and quiz attempts
"""
from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from uuid import UUID
from datetime import datetime


class QuizCreate(BaseModel):
    """Request schema for creating a quiz"""
    category_id: UUID
    title: str = Field(..., min_length=2, max_length=255, description="Quiz title")
    description: Optional[str] = None
    thumbnail_url: Optional[str] = Field(None, max_length=500)
    difficulty_level: str = Field("medium", pattern="^(easy|medium|hard)$", description="Quiz difficulty")
    questions_per_attempt: int = Field(10, ge=1, description="Questions served per attempt")
    time_limit_minutes: int = Field(0, ge=0, description="Informational time limit")
    passing_score: int = Field(70, ge=0, le=100, description="Passing percentage")
    is_published: bool = False


class QuizUpdate(BaseModel):
    category_id: Optional[UUID] = None
    title: Optional[str] = Field(None, min_length=2, max_length=255)
    description: Optional[str] = None
    thumbnail_url: Optional[str] = Field(None, max_length=500)
    difficulty_level: Optional[str] = Field(None, pattern="^(easy|medium|hard)$")
    questions_per_attempt: Optional[int] = Field(None, ge=1)
    time_limit_minutes: Optional[int] = Field(None, ge=0)
    passing_score: Optional[int] = Field(None, ge=0, le=100)
    is_published: Optional[bool] = None

    @field_validator(
        "category_id", "title", "difficulty_level", "questions_per_attempt",
        "time_limit_minutes", "passing_score", "is_published",
    )
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("may be omitted but not set to null")
        return value


class CategorySummary(BaseModel):
    id: UUID
    name: str

    class Config:
        from_attributes = True


class QuizSummary(BaseModel):
    id: UUID
    title: str
    difficulty_level: str
    category: Optional[CategorySummary] = None

    class Config:
        from_attributes = True


class QuizResponse(BaseModel):
    """Quiz as listed in the catalogue"""
    id: UUID
    category_id: UUID
    title: str
    description: Optional[str] = None
    thumbnail_url: Optional[str] = None
    difficulty_level: str
    questions_per_attempt: int
    time_limit_minutes: int
    passing_score: int
    is_published: bool
    created_at: Optional[datetime] = None
    category: Optional[CategorySummary] = None

    class Config:
        from_attributes = True


class QuizDetailResponse(QuizResponse):
    question_count: int = 0


# ---------------------------------------------------------------------------
# Attempts
# ---------------------------------------------------------------------------

class AttemptQuizInfo(BaseModel):
    id: UUID
    title: str
    description: Optional[str] = None
    time_limit_minutes: int


class OptionForTaker(BaseModel):
    """Answer option as served during an attempt (no correctness flag)"""
    id: UUID
    question_id: UUID
    option_text: Optional[str] = None
    option_image_url: Optional[str] = None
    display_order: int


class QuestionForTaker(BaseModel):
    id: UUID
    quiz_id: UUID
    question_type: str
    question_text: str
    question_image_url: Optional[str] = None
    points: int
    display_order: int
    options: List[OptionForTaker]


class StartAttemptResponse(BaseModel):
    """Response after starting a quiz"""
    attempt_id: UUID
    quiz: AttemptQuizInfo
    questions: List[QuestionForTaker]
    started_at: datetime


class AnswerSubmission(BaseModel):
    """A single answered question"""
    question_id: UUID
    selected_options: List[UUID] = Field(default_factory=list)


class QuizSubmission(BaseModel):
    """Schema for quiz submission"""
    answers: List[AnswerSubmission]


class AttemptResponse(BaseModel):
    id: UUID
    user_id: UUID
    quiz_id: UUID
    status: str
    total_questions: int
    correct_answers: int
    score: Optional[int] = None
    time_taken_seconds: Optional[int] = None
    started_at: datetime
    completed_at: Optional[datetime] = None
    quiz: Optional[QuizSummary] = None

    class Config:
        from_attributes = True


class SubmitAttemptResponse(BaseModel):
    """Response after grading a submission"""
    attempt: AttemptResponse
    score: int
    correct_answers: int
    total_questions: int
    passed: bool
    certificate_url: Optional[str] = None
