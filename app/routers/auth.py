# app/routers/auth.py
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.responses import success_response
from app.schemas.auth import (
    ForgotPasswordRequest,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    ResetPasswordRequest,
)
from app.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


def get_auth_service(db: Session = Depends(get_db)) -> AuthService:
    return AuthService(db)


@router.post("/register", status_code=201)
def register(payload: RegisterRequest, auth: AuthService = Depends(get_auth_service)):
    result = auth.register(
        email=payload.email,
        password=payload.password,
        first_name=payload.first_name,
        last_name=payload.last_name,
        role=payload.role,
        phone=payload.phone,
    )
    return success_response(result, message="User registered successfully", status_code=201)


@router.post("/login")
def login(payload: LoginRequest, auth: AuthService = Depends(get_auth_service)):
    result = auth.login(payload.email, payload.password)
    return success_response(result, message="Login successful")


@router.post("/refresh")
def refresh(payload: RefreshRequest, auth: AuthService = Depends(get_auth_service)):
    result = auth.refresh(payload.refresh_token, payload.email)
    return success_response(result, message="Token refreshed successfully")


@router.post("/forgot-password")
def forgot_password(payload: ForgotPasswordRequest, auth: AuthService = Depends(get_auth_service)):
    auth.forgot_password(payload.email)
    # mesma resposta exista ou não a conta
    return success_response(message="If an account exists for this email, a reset code has been sent")


@router.post("/reset-password")
def reset_password(payload: ResetPasswordRequest, auth: AuthService = Depends(get_auth_service)):
    auth.reset_password(payload.email, payload.token, payload.new_password)
    return success_response(message="Password has been reset successfully")
