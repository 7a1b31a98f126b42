from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import JSON, Boolean, Column, DateTime, String

from app.core.database import Base

USER_ROLES = ("consumer", "business_owner", "admin")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))

    email = Column(String(255), unique=True, index=True, nullable=False)
    # vazio quando a identidade fica no Cognito
    password_hash = Column(String(255), nullable=False, default="")

    role = Column(String(20), nullable=False, default="consumer")  # consumer | business_owner | admin
    profile = Column(JSON, nullable=False, default=dict)
    is_email_verified = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)
    last_login_at = Column(DateTime(timezone=True), nullable=True)
