"""
Pydantic schemas for user profile, progress, attempts and certificates
"""
from pydantic import BaseModel, Field, field_validator
from typing import Optional
from uuid import UUID
from datetime import datetime

from app.schemas.quiz import QuizSummary


class UserResponse(BaseModel):
    id: UUID
    email: str
    full_name: str
    avatar_url: Optional[str] = None
    role: str
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserUpdate(BaseModel):
    """Profile fields a user may change"""
    full_name: Optional[str] = Field(None, min_length=2, max_length=255)
    avatar_url: Optional[str] = Field(None, max_length=500)

    @field_validator("full_name")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("full_name may be omitted but not set to null")
        return value


class ProgressResponse(BaseModel):
    """Best score and attempt count for one quiz"""
    id: UUID
    quiz_id: UUID
    total_attempts: int
    best_score: int
    last_attempt_at: Optional[datetime] = None
    quiz: Optional[QuizSummary] = None

    class Config:
        from_attributes = True


class CertificateResponse(BaseModel):
    id: UUID
    user_id: UUID
    quiz_id: UUID
    certificate_url: str
    score_achieved: int
    issued_at: Optional[datetime] = None
    quiz: Optional[QuizSummary] = None

    class Config:
        from_attributes = True


class UserSummary(BaseModel):
    id: UUID
    email: str
    full_name: str

    class Config:
        from_attributes = True


class AdminCertificateResponse(CertificateResponse):
    """Certificate with its holder, for the admin area"""
    user: Optional[UserSummary] = None


class CertificateCreate(BaseModel):
    """Manual issue; score and URL default to the holder's best passing attempt"""
    user_id: UUID
    quiz_id: UUID
    score_achieved: Optional[int] = Field(None, ge=0, le=100)
    certificate_url: Optional[str] = Field(None, min_length=1, max_length=500)


class CertificateUpdate(BaseModel):
    score_achieved: Optional[int] = Field(None, ge=0, le=100)
    certificate_url: Optional[str] = Field(None, min_length=1, max_length=500)

    @field_validator("score_achieved", "certificate_url")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("may be omitted but not set to null")
        return value
