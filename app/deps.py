# app/deps.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core import config
from app.core.request_context import set_request_context
from app.services.auth import decode_token
from app.services.cognito_verifier import CognitoJwtVerifier, CognitoTokenError, get_cognito_verifier

# auto_error=False: a ausência do header vira 401 com a nossa mensagem
bearer_scheme = HTTPBearer(auto_error=False)

logger = logging.getLogger(__name__)


@dataclass
class AuthenticatedUser:
    id: str
    email: str
    role: str
    email_verified: bool = False
    token: str = ""

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def _require_bearer(credentials: Optional[HTTPAuthorizationCredentials]) -> str:
    if credentials is None or (credentials.scheme or "").lower() != "bearer" or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Access token required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return credentials.credentials


def _invalid_token() -> HTTPException:
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid or expired token")


def _attach(request: Request, user: AuthenticatedUser) -> AuthenticatedUser:
    request.state.user = user
    set_request_context(user_id=user.id)
    return user


def authenticate_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> AuthenticatedUser:
    """Custom HS256 access token issued by /auth/login."""
    token = _require_bearer(credentials)
    try:
        payload = decode_token(token)
    except ValueError:
        raise _invalid_token()

    user = AuthenticatedUser(
        id=str(payload["sub"]),
        email=payload.get("email") or "",
        role=payload.get("role") or "consumer",
        email_verified=bool(payload.get("email_verified", False)),
        token=token,
    )
    return _attach(request, user)


def authenticate_cognito(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    verifier: CognitoJwtVerifier = Depends(get_cognito_verifier),
) -> AuthenticatedUser:
    """Cognito id/access token, verified against the user pool JWKS."""
    token = _require_bearer(credentials)
    try:
        claims = verifier.verify(token)
    except CognitoTokenError as exc:
        logger.info("cognito token rejected: %s", exc)
        raise _invalid_token()

    email_verified = claims.get("email_verified", False)
    if isinstance(email_verified, str):
        email_verified = email_verified.lower() == "true"

    user = AuthenticatedUser(
        id=str(claims["sub"]),
        email=claims.get("email") or "",
        role=claims.get("custom:role") or "consumer",
        email_verified=bool(email_verified),
        token=token,
    )
    return _attach(request, user)


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    verifier: CognitoJwtVerifier = Depends(get_cognito_verifier),
) -> AuthenticatedUser:
    if config.AUTH_PROVIDER == "cognito":
        return authenticate_cognito(request, credentials, verifier)
    return authenticate_token(request, credentials)


def _log_access_denied(*, reason: str, user: AuthenticatedUser | None, request: Request) -> None:
    endpoint = f"{request.method} {request.url.path}"
    logger.warning(
        "Access denied (%s): user_id=%s user_role=%s endpoint=%s",
        reason,
        getattr(user, "id", None),
        getattr(user, "role", None),
        endpoint,
    )


def require_role(roles: Iterable[str]):
    allowed = {role.strip().lower() for role in roles}

    def dependency(
        request: Request,
        user: Optional[AuthenticatedUser] = Depends(get_current_user),
    ) -> AuthenticatedUser:
        if user is None:
            _log_access_denied(reason="unauthenticated", user=None, request=request)
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
        if (user.role or "").strip().lower() not in allowed:
            _log_access_denied(reason="role_not_allowed", user=user, request=request)
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        return user

    return dependency


require_consumer = require_role(["consumer", "admin"])
require_business_owner = require_role(["business_owner", "admin"])
require_admin = require_role(["admin"])
