from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
from jose import JWTError, jwt

from app.core.config import JWT_ALGORITHM, JWT_EXPIRE_MINUTES, JWT_REFRESH_EXPIRE_DAYS, JWT_SECRET_KEY

BCRYPT_ROUNDS = 12
ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


# =========================
# PASSWORD (bcrypt direto)
# =========================
def _normalize_password_for_bcrypt(password: str) -> bytes:
    """bcrypt só considera até 72 bytes; trunca para não quebrar."""
    pw = (password or "").encode("utf-8")
    return pw[:72]


def hash_password(password: str) -> str:
    pw = _normalize_password_for_bcrypt(password)
    hashed = bcrypt.hashpw(pw, bcrypt.gensalt(rounds=BCRYPT_ROUNDS))
    return hashed.decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(_normalize_password_for_bcrypt(plain_password), password_hash.encode("utf-8"))
    except ValueError:
        return False


# =========================
# JWT HELPERS
# =========================
def _encode(user_id: str, token_type: str, expires_in: timedelta, extra: Optional[Dict[str, Any]] = None) -> str:
    now = datetime.now(timezone.utc)
    payload: Dict[str, Any] = {
        "sub": str(user_id),
        "type": token_type,
        "iat": int(now.timestamp()),
        "exp": int((now + expires_in).timestamp()),
    }
    if extra:
        payload.update(extra)
    return jwt.encode(payload, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)


def create_access_token(user_id: str, email: str, role: str) -> str:
    return _encode(
        user_id,
        ACCESS_TOKEN_TYPE,
        timedelta(minutes=JWT_EXPIRE_MINUTES),
        {"email": email, "role": role},
    )


def create_refresh_token(user_id: str) -> str:
    return _encode(user_id, REFRESH_TOKEN_TYPE, timedelta(days=JWT_REFRESH_EXPIRE_DAYS))


def create_token_pair(user_id: str, email: str, role: str) -> Dict[str, Any]:
    return {
        "accessToken": create_access_token(user_id, email, role),
        "refreshToken": create_refresh_token(user_id),
        "expiresIn": JWT_EXPIRE_MINUTES * 60,
        "tokenType": "Bearer",
    }


def decode_token(token: str, expected_type: str = ACCESS_TOKEN_TYPE) -> Dict[str, Any]:
    """
    Retorna o payload do JWT ou levanta ValueError se inválido,
    expirado ou de outro tipo (refresh usado como access e vice-versa).
    """
    try:
        payload = jwt.decode(token, JWT_SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except JWTError as exc:
        raise ValueError("Invalid or expired token") from exc
    if payload.get("type") != expected_type or not payload.get("sub"):
        raise ValueError("Invalid or expired token")
    return payload
