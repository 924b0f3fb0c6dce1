"""
User model - accounts and roles
"""
from sqlalchemy import Column, String, Boolean, TIMESTAMP, Uuid, func
from app.database import Base
import uuid


class User(Base):
    """
    Users table - credentials and role used by the auth dependencies
    """
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    full_name = Column(String(255), nullable=False)
    avatar_url = Column(String(500))
    role = Column(String(20), nullable=False, default="user")  # user, admin, super_admin
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
