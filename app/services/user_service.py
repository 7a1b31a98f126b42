from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.orm import Session

from app.core.errors import create_error
from app.models.user import USER_ROLES, User
from app.repositories.user_repository import UserRepository
from app.services.auth import hash_password, verify_password

logger = logging.getLogger(__name__)


def user_to_dto(user: User) -> dict[str, Any]:
    """Public shape of a user; never carries the password hash."""
    return {
        "id": user.id,
        "email": user.email,
        "role": user.role,
        "profile": user.profile or {},
        "is_email_verified": bool(user.is_email_verified),
        "created_at": user.created_at,
        "updated_at": user.updated_at,
        "last_login_at": user.last_login_at,
    }


class UserService:
    def __init__(self, db: Session) -> None:
        self.users = UserRepository(db)

    def create_user(
        self,
        *,
        email: str,
        password: str | None,
        role: str = "consumer",
        profile: dict[str, Any] | None = None,
        user_id: str | None = None,
        is_email_verified: bool = False,
    ) -> dict[str, Any]:
        """Create a local user row.

        ``password`` is None for identities managed by Cognito; ``user_id`` lets
        the caller reuse the Cognito ``sub``.
        """
        if self.users.find_by_email(email):
            raise create_error("User with this email already exists", 409)
        if role not in USER_ROLES:
            raise create_error("Invalid user role", 400)

        values: dict[str, Any] = {
            "email": email.strip().lower(),
            "password_hash": hash_password(password) if password else "",
            "role": role,
            "profile": profile or {},
            "is_email_verified": is_email_verified,
        }
        if user_id:
            values["id"] = user_id

        user = self.users.create(**values)
        logger.info("user created user_id=%s role=%s", user.id, user.role)
        return user_to_dto(user)

    def get_user_profile(self, user_id: str) -> dict[str, Any]:
        user = self.users.find_by_id(user_id)
        if not user:
            raise create_error("User not found", 404)
        return user_to_dto(user)

    def update_user_profile(self, user_id: str, updates: dict[str, Any]) -> dict[str, Any]:
        user = self.users.find_by_id(user_id)
        if not user:
            raise create_error("User not found", 404)

        # JSON column: atribuir um dict novo para o SQLAlchemy detectar a mudança
        merged = {**(user.profile or {}), **updates}
        updated = self.users.update(user_id, profile=merged)
        if not updated:
            raise create_error("Failed to update user profile", 500)
        return user_to_dto(updated)

    def get_user_by_email(self, email: str) -> User | None:
        return self.users.find_by_email(email)

    def get_user_by_id(self, user_id: str) -> User | None:
        return self.users.find_by_id(user_id)

    def verify_user_password(self, email: str, password: str) -> User | None:
        user = self.users.find_by_email(email)
        if not user or not verify_password(password, user.password_hash):
            return None
        return user

    def update_last_login(self, user_id: str) -> None:
        self.users.touch_last_login(user_id)

    def verify_email(self, user_id: str) -> dict[str, Any]:
        user = self.users.update(user_id, is_email_verified=True)
        if not user:
            raise create_error("User not found", 404)
        return user_to_dto(user)

    def get_users(self, page: int = 1, limit: int = 10, role: str | None = None) -> tuple[list[dict[str, Any]], int]:
        users, total = self.users.find_paginated(page, limit, role)
        return [user_to_dto(user) for user in users], total

    def update_password(self, user_id: str, new_password: str) -> None:
        if not self.users.update(user_id, password_hash=hash_password(new_password)):
            raise create_error("Failed to update password", 500)

    def change_password(self, user_id: str, current_password: str, new_password: str) -> None:
        user = self.users.find_by_id(user_id)
        if not user:
            raise create_error("User not found", 404)
        if not verify_password(current_password, user.password_hash):
            raise create_error("Current password is incorrect", 400)
        self.update_password(user_id, new_password)

    def delete_user(self, user_id: str) -> None:
        if not self.users.delete(user_id):
            raise create_error("User not found or failed to delete", 404)
        logger.info("user deleted user_id=%s", user_id)
