from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.errors import create_error
from app.core.responses import paginated_response, success_response
from app.deps import AuthenticatedUser, get_current_user, require_admin
from app.routers.auth import get_auth_service
from app.schemas.users import AdminCreateUserRequest, ChangePasswordRequest, UpdateProfileRequest, UserListQuery
from app.services.auth_service import AuthService
from app.services.user_service import UserService

router = APIRouter(prefix="/api/users", tags=["users"])


def get_user_service(db: Session = Depends(get_db)) -> UserService:
    return UserService(db)


@router.get("/profile")
def get_profile(
    user: AuthenticatedUser = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
):
    return success_response(users.get_user_profile(user.id))


@router.put("/profile")
def update_profile(
    payload: UpdateProfileRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    auth: AuthService = Depends(get_auth_service),
):
    updated = auth.update_profile(user.id, payload.profile_updates())
    return success_response(updated, message="Profile updated successfully")


@router.put("/password")
def change_password(
    payload: ChangePasswordRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    auth: AuthService = Depends(get_auth_service),
):
    auth.change_password(user.id, user.token, payload.current_password, payload.new_password)
    return success_response(message="Password updated successfully")


@router.get("")
def list_users(
    query: Annotated[UserListQuery, Query()],
    _: AuthenticatedUser = Depends(require_admin),
    users: UserService = Depends(get_user_service),
):
    items, total = users.get_users(query.page, query.limit, query.role)
    return paginated_response(items, total_count=total, page=query.page, limit=query.limit)


@router.post("", status_code=201)
def create_user(
    payload: AdminCreateUserRequest,
    _: AuthenticatedUser = Depends(require_admin),
    auth: AuthService = Depends(get_auth_service),
):
    created = auth.create_account(
        email=payload.email,
        password=payload.password,
        first_name=payload.first_name,
        last_name=payload.last_name,
        role=payload.role,
        phone=payload.phone,
    )
    return success_response(created, message="User created successfully", status_code=201)


@router.get("/{user_id}")
def get_user(
    user_id: UUID,
    _: AuthenticatedUser = Depends(require_admin),
    users: UserService = Depends(get_user_service),
):
    return success_response(users.get_user_profile(str(user_id)))


@router.post("/{user_id}/verify-email")
def verify_email(
    user_id: UUID,
    _: AuthenticatedUser = Depends(require_admin),
    users: UserService = Depends(get_user_service),
):
    return success_response(users.verify_email(str(user_id)), message="Email verified successfully")


@router.delete("/{user_id}")
def delete_user(
    user_id: UUID,
    admin: AuthenticatedUser = Depends(require_admin),
    users: UserService = Depends(get_user_service),
):
    if str(user_id) == admin.id:
        raise create_error("Cannot delete your own account", 400)
    users.delete_user(str(user_id))
    return success_response(message="User deleted successfully")
