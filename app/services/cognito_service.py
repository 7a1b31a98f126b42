from __future__ import annotations

import base64
import hashlib
import hmac
import logging
import secrets
import string
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from app.core.config import AWS_REGION, COGNITO_CLIENT_ID, COGNITO_CLIENT_SECRET, COGNITO_USER_POOL_ID
from app.core.errors import AppError, create_error

logger = logging.getLogger(__name__)

_ERROR_MAP = {
    "UsernameExistsException": ("User with this email already exists", 409),
    "AliasExistsException": ("User with this email already exists", 409),
    "NotAuthorizedException": ("Invalid credentials", 401),
    "UserNotFoundException": ("Invalid credentials", 401),
    "UserNotConfirmedException": ("User is not confirmed", 401),
    "InvalidPasswordException": ("Password does not meet requirements", 400),
    "InvalidParameterException": ("Invalid request parameters", 400),
    "CodeMismatchException": ("Invalid or expired confirmation code", 400),
    "ExpiredCodeException": ("Invalid or expired confirmation code", 400),
}


def _get_cognito_client():
    return boto3.client("cognito-idp", region_name=AWS_REGION)


def _map_error(exc: Exception, fallback: str) -> AppError:
    code = ""
    if isinstance(exc, ClientError):
        code = exc.response.get("Error", {}).get("Code", "")
    message, status_code = _ERROR_MAP.get(code, (fallback, 500))
    return create_error(message, status_code)


def _attribute(attributes: list[dict[str, str]], name: str) -> str:
    for attr in attributes:
        if attr.get("Name") == name:
            return attr.get("Value", "")
    return ""


def generate_temp_password(length: int = 16) -> str:
    alphabet = string.ascii_letters + string.digits + "!@#$%^&*"
    required = [
        secrets.choice(string.ascii_uppercase),
        secrets.choice(string.ascii_lowercase),
        secrets.choice(string.digits),
        secrets.choice("!@#$%^&*"),
    ]
    rest = [secrets.choice(alphabet) for _ in range(length - len(required))]
    chars = required + rest
    secrets.SystemRandom().shuffle(chars)
    return "".join(chars)


class CognitoService:
    """Thin wrapper over the ``cognito-idp`` admin APIs.

    AWS errors are translated into operational errors: existing user -> 409,
    bad credentials -> 401, weak password or bad code -> 400, anything else -> 500.
    """

    def __init__(
        self,
        client=None,
        *,
        user_pool_id: str | None = None,
        client_id: str | None = None,
        client_secret: str | None = None,
    ) -> None:
        self.client = client if client is not None else _get_cognito_client()
        self.user_pool_id = user_pool_id if user_pool_id is not None else COGNITO_USER_POOL_ID
        self.client_id = client_id if client_id is not None else COGNITO_CLIENT_ID
        self.client_secret = client_secret if client_secret is not None else COGNITO_CLIENT_SECRET

    def secret_hash(self, username: str) -> str | None:
        if not self.client_secret:
            return None
        digest = hmac.new(
            self.client_secret.encode("utf-8"),
            (username + self.client_id).encode("utf-8"),
            hashlib.sha256,
        ).digest()
        return base64.b64encode(digest).decode("utf-8")

    def _with_secret(self, params: dict[str, Any], username: str, key: str = "SecretHash") -> dict[str, Any]:
        value = self.secret_hash(username)
        if value:
            params[key] = value
        return params

    def register_user(
        self,
        *,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        role: str = "consumer",
        phone: str | None = None,
    ) -> dict[str, Any]:
        attributes = [
            {"Name": "email", "Value": email},
            {"Name": "email_verified", "Value": "false"},
            {"Name": "custom:role", "Value": role or "consumer"},
            {"Name": "given_name", "Value": first_name},
            {"Name": "family_name", "Value": last_name},
        ]
        if phone:
            attributes.append({"Name": "phone_number", "Value": phone})

        try:
            created = self.client.admin_create_user(
                UserPoolId=self.user_pool_id,
                Username=email,
                UserAttributes=attributes,
                TemporaryPassword=generate_temp_password(),
                MessageAction="SUPPRESS",
            )
        except (ClientError, BotoCoreError) as exc:
            logger.warning("cognito register failed: %s", exc)
            raise _map_error(exc, "Failed to register user") from exc

        try:
            self.client.admin_set_user_password(
                UserPoolId=self.user_pool_id,
                Username=email,
                Password=password,
                Permanent=True,
            )
        except (ClientError, BotoCoreError) as exc:
            logger.warning("cognito set password failed, removing user: %s", exc)
            self.discard_user(email)
            raise _map_error(exc, "Failed to register user") from exc

        user = created.get("User", {})
        sub = _attribute(user.get("Attributes", []), "sub")
        return {"userId": sub or user.get("Username") or email, "username": user.get("Username") or email}

    def login_user(self, email: str, password: str) -> dict[str, str]:
        auth_parameters = self._with_secret({"USERNAME": email, "PASSWORD": password}, email, "SECRET_HASH")
        try:
            result = self.client.admin_initiate_auth(
                UserPoolId=self.user_pool_id,
                ClientId=self.client_id,
                AuthFlow="ADMIN_NO_SRP_AUTH",
                AuthParameters=auth_parameters,
            )
        except (ClientError, BotoCoreError) as exc:
            logger.info("cognito login rejected: %s", exc)
            raise _map_error(exc, "Authentication failed") from exc

        tokens = result.get("AuthenticationResult")
        if not tokens:
            # desafio (MFA, NEW_PASSWORD_REQUIRED) não suportado por esta API
            raise create_error("Authentication failed", 401)
        return {
            "accessToken": tokens.get("AccessToken", ""),
            "refreshToken": tokens.get("RefreshToken", ""),
            "idToken": tokens.get("IdToken", ""),
            "expiresIn": tokens.get("ExpiresIn", 3600),
        }

    def refresh_token(self, refresh_token: str, username: str | None = None) -> dict[str, str]:
        auth_parameters: dict[str, Any] = {"REFRESH_TOKEN": refresh_token}
        if username:
            self._with_secret(auth_parameters, username, "SECRET_HASH")
        try:
            result = self.client.admin_initiate_auth(
                UserPoolId=self.user_pool_id,
                ClientId=self.client_id,
                AuthFlow="REFRESH_TOKEN_AUTH",
                AuthParameters=auth_parameters,
            )
        except (ClientError, BotoCoreError) as exc:
            raise _map_error(exc, "Failed to refresh token") from exc

        tokens = result.get("AuthenticationResult")
        if not tokens:
            raise create_error("Failed to refresh token", 401)
        return {
            "accessToken": tokens.get("AccessToken", ""),
            "idToken": tokens.get("IdToken", ""),
            "expiresIn": tokens.get("ExpiresIn", 3600),
        }

    def get_user(self, username: str) -> dict[str, Any]:
        try:
            result = self.client.admin_get_user(UserPoolId=self.user_pool_id, Username=username)
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") == "UserNotFoundException":
                raise create_error("User not found", 404) from exc
            raise _map_error(exc, "Failed to load user") from exc
        except BotoCoreError as exc:
            raise _map_error(exc, "Failed to load user") from exc

        attributes = result.get("UserAttributes", [])
        return {
            "id": _attribute(attributes, "sub") or result.get("Username") or username,
            "email": _attribute(attributes, "email"),
            "role": _attribute(attributes, "custom:role") or "consumer",
            "profile": {
                "firstName": _attribute(attributes, "given_name"),
                "lastName": _attribute(attributes, "family_name"),
                "phone": _attribute(attributes, "phone_number") or None,
            },
            "is_email_verified": _attribute(attributes, "email_verified") == "true",
            "created_at": result.get("UserCreateDate"),
            "updated_at": result.get("UserLastModifiedDate"),
        }

    def update_user_profile(self, username: str, updates: dict[str, Any]) -> None:
        mapping = {"firstName": "given_name", "lastName": "family_name", "phone": "phone_number"}
        attributes = [
            {"Name": attr_name, "Value": str(updates[field])}
            for field, attr_name in mapping.items()
            if updates.get(field)
        ]
        if not attributes:
            return
        try:
            self.client.admin_update_user_attributes(
                UserPoolId=self.user_pool_id,
                Username=username,
                UserAttributes=attributes,
            )
        except (ClientError, BotoCoreError) as exc:
            raise _map_error(exc, "Failed to update profile") from exc

    def forgot_password(self, email: str) -> None:
        params = self._with_secret({"ClientId": self.client_id, "Username": email}, email)
        try:
            self.client.forgot_password(**params)
        except ClientError as exc:
            # não revela se o e-mail existe
            if exc.response.get("Error", {}).get("Code") == "UserNotFoundException":
                logger.info("password reset requested for unknown user")
                return
            raise _map_error(exc, "Failed to initiate password reset") from exc
        except BotoCoreError as exc:
            raise _map_error(exc, "Failed to initiate password reset") from exc

    def confirm_forgot_password(self, email: str, confirmation_code: str, new_password: str) -> None:
        params = self._with_secret(
            {
                "ClientId": self.client_id,
                "Username": email,
                "ConfirmationCode": confirmation_code,
                "Password": new_password,
            },
            email,
        )
        try:
            self.client.confirm_forgot_password(**params)
        except (ClientError, BotoCoreError) as exc:
            raise _map_error(exc, "Failed to reset password") from exc

    def change_password(self, access_token: str, current_password: str, new_password: str) -> None:
        try:
            self.client.change_password(
                PreviousPassword=current_password,
                ProposedPassword=new_password,
                AccessToken=access_token,
            )
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") == "NotAuthorizedException":
                raise create_error("Current password is incorrect", 400) from exc
            raise _map_error(exc, "Failed to change password") from exc
        except BotoCoreError as exc:
            raise _map_error(exc, "Failed to change password") from exc

    def delete_user(self, username: str) -> None:
        try:
            self.client.admin_delete_user(UserPoolId=self.user_pool_id, Username=username)
        except (ClientError, BotoCoreError) as exc:
            raise _map_error(exc, "Failed to delete user") from exc

    def discard_user(self, username: str) -> None:
        """Undo a half-finished registration; the original error is what the caller reports."""
        try:
            self.delete_user(username)
        except AppError:
            logger.error("failed to remove cognito user after registration error username=%s", username)
