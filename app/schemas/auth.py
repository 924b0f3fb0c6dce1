"""
Pydantic schemas for authentication requests and responses
"""
from pydantic import BaseModel, EmailStr, Field

from app.schemas.user import UserResponse


class RegisterRequest(BaseModel):
    """Schema for user registration"""
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=72, description="Plain-text password")
    full_name: str = Field(..., min_length=2, max_length=255)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class TokenResponse(BaseModel):
    """Access/refresh token pair with the authenticated user"""
    user: UserResponse
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
