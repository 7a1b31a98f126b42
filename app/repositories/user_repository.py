from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models.user import User
from app.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    model = User

    def __init__(self, db: Session) -> None:
        super().__init__(db)

    def find_by_email(self, email: str) -> User | None:
        normalized = (email or "").strip().lower()
        return self.db.query(User).filter(func.lower(User.email) == normalized).first()

    def find_paginated(self, page: int, limit: int, role: str | None = None) -> tuple[list[User], int]:
        filters = {"role": role} if role else {}
        users = self.find_where(limit=limit, offset=(page - 1) * limit, **filters)
        return users, self.count(**filters)

    def touch_last_login(self, user_id: str) -> None:
        self.update(user_id, last_login_at=datetime.now(timezone.utc))
