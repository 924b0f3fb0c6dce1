"""
Authentication API endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Any, Dict
import logging

from app.database import get_db
from app.schemas.auth import LoginRequest, RefreshRequest, RegisterRequest, TokenResponse
from app.schemas.user import UserResponse
from app.services.auth_service import auth_service

router = APIRouter(prefix="/api/auth", tags=["auth"])
logger = logging.getLogger(__name__)


def _token_response(result: Dict[str, Any]) -> TokenResponse:
    return TokenResponse(
        user=UserResponse.model_validate(result["user"]),
        access_token=result["access_token"],
        refresh_token=result["refresh_token"],
        token_type=result["token_type"],
    )


@router.post("/register", response_model=TokenResponse, status_code=201)
async def register(request: RegisterRequest, db: Session = Depends(get_db)):
    """Create an account and return an access/refresh token pair"""
    return _token_response(
        auth_service.register(db, request.email, request.password, request.full_name)
    )


@router.post("/login", response_model=TokenResponse)
async def login(request: LoginRequest, db: Session = Depends(get_db)):
    return _token_response(auth_service.login(db, request.email, request.password))


@router.post("/refresh", response_model=TokenResponse)
async def refresh_token(request: RefreshRequest, db: Session = Depends(get_db)):
    """Exchange a refresh token for a new token pair"""
    return _token_response(auth_service.refresh(db, request.refresh_token))
