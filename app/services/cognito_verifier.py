from __future__ import annotations

import logging
import time
from threading import Lock
from typing import Any, Callable, Dict

import httpx
from jose import JWTError, jwt

from app.core.config import AWS_REGION, COGNITO_CLIENT_ID, COGNITO_USER_POOL_ID

logger = logging.getLogger(__name__)

JWKS_CACHE_SECONDS = 3600
JWKS_TIMEOUT_SECONDS = 5.0
JWKS_MIN_REFETCH_SECONDS = 60


class CognitoTokenError(ValueError):
    pass


class CognitoJwtVerifier:
    """Verify Cognito-issued RS256 tokens against the user pool's JWKS.

    Accepts id and access tokens unless ``token_use`` pins one of them.
    """

    def __init__(
        self,
        *,
        user_pool_id: str = COGNITO_USER_POOL_ID,
        client_id: str = COGNITO_CLIENT_ID,
        region: str = AWS_REGION,
        token_use: str | None = None,
        http_client: httpx.Client | None = None,
        min_refetch_seconds: float = JWKS_MIN_REFETCH_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.user_pool_id = user_pool_id
        self.client_id = client_id
        self.token_use = token_use
        self.issuer = f"https://cognito-idp.{region}.amazonaws.com/{user_pool_id}"
        self.jwks_url = f"{self.issuer}/.well-known/jwks.json"
        self._http = http_client
        self._keys: Dict[str, Dict[str, Any]] = {}
        self.min_refetch_seconds = min_refetch_seconds
        self._clock = clock
        self._fetched_at = 0.0
        self._last_attempt = float("-inf")
        self._lock = Lock()

    def _fetch_keys(self) -> Dict[str, Dict[str, Any]]:
        if self._http is not None:
            response = self._http.get(self.jwks_url, timeout=JWKS_TIMEOUT_SECONDS)
        else:
            response = httpx.get(self.jwks_url, timeout=JWKS_TIMEOUT_SECONDS)
        response.raise_for_status()
        return {key["kid"]: key for key in response.json().get("keys", [])}

    def _signing_key(self, kid: str) -> Dict[str, Any]:
        now = self._clock()
        with self._lock:
            key = self._keys.get(kid)
            if key is not None and now - self._fetched_at <= JWKS_CACHE_SECONDS:
                return key
            if now - self._last_attempt < self.min_refetch_seconds:
                # kid desconhecido dentro da janela: não busca o JWKS de novo
                if key is not None:
                    return key
                raise CognitoTokenError("Unknown signing key")
            self._last_attempt = now

        # fora do lock: o fetch não serializa as outras verificações
        try:
            keys = self._fetch_keys()
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("failed to fetch cognito jwks url=%s error=%s", self.jwks_url, exc)
            raise CognitoTokenError("Unable to load signing keys") from exc

        with self._lock:
            self._keys = keys
            self._fetched_at = self._clock()
        key = keys.get(kid)
        if key is None:
            raise CognitoTokenError("Unknown signing key")
        return key

    def verify(self, token: str) -> Dict[str, Any]:
        try:
            header = jwt.get_unverified_header(token)
        except JWTError as exc:
            raise CognitoTokenError("Malformed token") from exc

        key = self._signing_key(header.get("kid", ""))
        try:
            claims = jwt.decode(
                token,
                key,
                algorithms=["RS256"],
                issuer=self.issuer,
                options={"verify_aud": False, "verify_at_hash": False},
            )
        except JWTError as exc:
            raise CognitoTokenError("Invalid or expired token") from exc

        token_use = claims.get("token_use")
        if token_use not in ("id", "access") or (self.token_use and token_use != self.token_use):
            raise CognitoTokenError("Unexpected token_use")

        audience = claims.get("aud") if token_use == "id" else claims.get("client_id")
        if self.client_id and audience != self.client_id:
            raise CognitoTokenError("Token was not issued for this client")
        return claims


_default_verifier: CognitoJwtVerifier | None = None


def get_cognito_verifier() -> CognitoJwtVerifier:
    global _default_verifier
    if _default_verifier is None:
        _default_verifier = CognitoJwtVerifier()
    return _default_verifier
