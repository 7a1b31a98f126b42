from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.orm import Session

from app.core import config
from app.core.errors import create_error
from app.services.auth import REFRESH_TOKEN_TYPE, create_token_pair, decode_token
from app.services.cognito_service import CognitoService
from app.services.user_service import UserService, user_to_dto

logger = logging.getLogger(__name__)


class AuthService:
    """Register / login / refresh against the configured identity provider.

    ``jwt``: local bcrypt hashes and HS256 token pairs.
    ``cognito``: Cognito owns credentials; a local user row mirrors the identity
    (same id as the Cognito ``sub``) so businesses can reference it.
    """

    def __init__(self, db: Session, *, provider: str | None = None, cognito: CognitoService | None = None) -> None:
        self.users = UserService(db)
        self.provider = provider or config.AUTH_PROVIDER
        self._cognito = cognito

    @property
    def cognito(self) -> CognitoService:
        if self._cognito is None:
            self._cognito = CognitoService()
        return self._cognito

    @property
    def uses_cognito(self) -> bool:
        return self.provider == "cognito"

    def create_account(
        self,
        *,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        role: str = "consumer",
        phone: str | None = None,
    ) -> dict[str, Any]:
        profile = {"firstName": first_name, "lastName": last_name}
        if phone:
            profile["phone"] = phone

        if not self.uses_cognito:
            return self.users.create_user(email=email, password=password, role=role, profile=profile)

        if self.users.get_user_by_email(email):
            raise create_error("User with this email already exists", 409)
        registered = self.cognito.register_user(
            email=email,
            password=password,
            first_name=first_name,
            last_name=last_name,
            role=role,
            phone=phone,
        )
        try:
            return self.users.create_user(
                email=email,
                password=None,
                role=role,
                profile=profile,
                user_id=registered["userId"],
            )
        except Exception:
            # sem a linha local a identidade no Cognito ficaria órfã e bloquearia novo cadastro
            logger.warning("local user creation failed, removing cognito user")
            self.cognito.discard_user(email)
            raise

    def register(self, *, email: str, password: str, **account: Any) -> dict[str, Any]:
        user = self.create_account(email=email, password=password, **account)
        if self.uses_cognito:
            tokens = self.cognito.login_user(email, password)
        else:
            tokens = create_token_pair(user["id"], user["email"], user["role"])
        return {"user": user, "tokens": tokens}

    def login(self, email: str, password: str) -> dict[str, Any]:
        if not self.uses_cognito:
            user = self.users.verify_user_password(email, password)
            if not user:
                logger.info("login rejected")
                raise create_error("Invalid credentials", 401)
            self.users.update_last_login(user.id)
            return {"user": user_to_dto(user), "tokens": create_token_pair(user.id, user.email, user.role)}

        tokens = self.cognito.login_user(email, password)
        user = self.users.get_user_by_email(email)
        if user is None:
            # primeiro login de um usuário criado direto no Cognito
            remote = self.cognito.get_user(email)
            created = self.users.create_user(
                email=email,
                password=None,
                role=remote["role"],
                profile={k: v for k, v in remote["profile"].items() if v},
                user_id=remote["id"],
                is_email_verified=remote["is_email_verified"],
            )
            user_id = created["id"]
        else:
            user_id = user.id
        self.users.update_last_login(user_id)
        return {"user": self.users.get_user_profile(user_id), "tokens": tokens}

    def refresh(self, refresh_token: str, email: str | None = None) -> dict[str, Any]:
        if self.uses_cognito:
            return {"tokens": self.cognito.refresh_token(refresh_token, email)}

        try:
            payload = decode_token(refresh_token, expected_type=REFRESH_TOKEN_TYPE)
        except ValueError as exc:
            raise create_error("Invalid refresh token", 401) from exc

        user = self.users.get_user_by_id(payload["sub"])
        if not user:
            raise create_error("Invalid refresh token", 401)
        return {"tokens": create_token_pair(user.id, user.email, user.role)}

    def update_profile(self, user_id: str, updates: dict[str, Any]) -> dict[str, Any]:
        user = self.users.update_user_profile(user_id, updates)
        if self.uses_cognito:
            self.cognito.update_user_profile(user["email"], updates)
        return user

    def change_password(self, user_id: str, access_token: str, current_password: str, new_password: str) -> None:
        if self.uses_cognito:
            self.cognito.change_password(access_token, current_password, new_password)
            return
        self.users.change_password(user_id, current_password, new_password)

    def forgot_password(self, email: str) -> None:
        self._require_cognito()
        self.cognito.forgot_password(email)

    def reset_password(self, email: str, code: str, new_password: str) -> None:
        self._require_cognito()
        self.cognito.confirm_forgot_password(email, code, new_password)

    def _require_cognito(self) -> None:
        if not self.uses_cognito:
            raise create_error("Password reset is only available with Cognito authentication", 400)
