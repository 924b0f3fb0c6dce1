"""
Authenticated user endpoints: profile, progress, attempts, certificates
"""
from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from typing import List
from uuid import UUID
import logging

from app.database import get_db
from app.dependencies import get_current_user
from app.exceptions import NotFoundError, StorageFailureError
from app.models import User
from app.schemas.quiz import AttemptResponse
from app.schemas.user import CertificateResponse, ProgressResponse, UserResponse, UserUpdate
from app.services.attempt_service import attempt_service
from app.services.progress_service import progress_service

router = APIRouter(prefix="/api/users", tags=["users"])
logger = logging.getLogger(__name__)


@router.get("/me", response_model=UserResponse)
async def get_profile(current_user: User = Depends(get_current_user)):
    return UserResponse.model_validate(current_user)


@router.put("/me", response_model=UserResponse)
async def update_profile(
    update: UserUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Update the caller's name and avatar"""
    for field, value in update.model_dump(exclude_unset=True).items():
        setattr(current_user, field, value)

    try:
        db.commit()
        db.refresh(current_user)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to update profile {current_user.id}: {str(e)}")
        raise StorageFailureError() from e

    return UserResponse.model_validate(current_user)


@router.get("/me/progress", response_model=List[ProgressResponse])
async def get_progress(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Best score and attempt count per quiz, most recently attempted first"""
    records = progress_service.get_user_progress(db, current_user.id)
    return [ProgressResponse.model_validate(p) for p in records]


@router.get("/me/attempts", response_model=List[AttemptResponse])
async def get_attempts(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    attempts = attempt_service.get_user_attempts(db, current_user.id)
    return [AttemptResponse.model_validate(a) for a in attempts]


@router.get("/me/certificates", response_model=List[CertificateResponse])
async def get_certificates(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    certificates = progress_service.get_user_certificates(db, current_user.id)
    return [CertificateResponse.model_validate(c) for c in certificates]


@router.get("/me/certificates/{quiz_id}", response_model=CertificateResponse)
async def get_certificate(
    quiz_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    certificate = progress_service.get_certificate(db, current_user.id, quiz_id)
    if not certificate:
        raise NotFoundError("Certificate not found")
    return CertificateResponse.model_validate(certificate)
