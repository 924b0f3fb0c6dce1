"""
Registration, login and token refresh
"""
import logging
from typing import Any, Dict
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.exceptions import InvalidStateError
from app.models import User
from app.utils.security import (
    REFRESH_TOKEN_TYPE,
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    verify_password,
)

logger = logging.getLogger(__name__)


class AuthService:
    """Issues access/refresh token pairs for registered users"""

    def register(self, db: Session, email: str, password: str, full_name: str) -> Dict[str, Any]:
        email = email.lower()

        existing_user = db.query(User).filter(User.email == email).first()
        if existing_user:
            raise InvalidStateError("User with this email already exists")

        user = User(
            email=email,
            password_hash=hash_password(password),
            full_name=full_name,
        )

        try:
            db.add(user)
            db.commit()
            db.refresh(user)
        except IntegrityError:
            db.rollback()
            raise InvalidStateError("User with this email already exists")

        logger.info(f"User registered: {user.id}")
        return self._token_response(user)

    def login(self, db: Session, email: str, password: str) -> Dict[str, Any]:
        user = db.query(User).filter(User.email == email.lower()).first()

        if not user or not verify_password(password, user.password_hash):
            logger.warning(f"Failed login attempt for {email}")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid email or password",
            )

        if not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="User account is inactive",
            )

        logger.info(f"User logged in: {user.id}")
        return self._token_response(user)

    def refresh(self, db: Session, refresh_token: str) -> Dict[str, Any]:
        payload = decode_token(refresh_token, REFRESH_TOKEN_TYPE)
        if not payload or "user_id" not in payload:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid or expired refresh token",
            )

        try:
            user_id = UUID(str(payload["user_id"]))
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid or expired refresh token",
            )

        user = db.query(User).filter(User.id == user_id).first()
        if not user or not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid or expired refresh token",
            )

        return self._token_response(user)

    def _token_response(self, user: User) -> Dict[str, Any]:
        claims = {"user_id": str(user.id), "email": user.email, "role": user.role}
        return {
            "user": user,
            "access_token": create_access_token(claims),
            "refresh_token": create_refresh_token(claims),
            "token_type": "bearer",
        }


# Global instance
auth_service = AuthService()
