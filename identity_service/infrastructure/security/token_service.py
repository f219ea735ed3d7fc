from __future__ import annotations

import hashlib
import hmac
import secrets
from datetime import datetime, timedelta
from typing import Any

import jwt

from identity_service.application.dto.auth import TokenClaims
from identity_service.application.ports.token_port import TokenPort
from identity_service.domain.exceptions import AuthenticationError


ALGORITHM = "HS256"
ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


class JwtTokenService(TokenPort):
    def __init__(
        self,
        *,
        access_secret: str,
        refresh_secret: str,
        access_ttl_minutes: int,
        refresh_ttl_days: int,
    ):
        if not access_secret or not refresh_secret:
            raise ValueError("Access and refresh token secrets are required.")
        if access_secret == refresh_secret:
            raise ValueError("Access and refresh token secrets must differ.")
        self._access_secret = access_secret
        self._refresh_secret = refresh_secret
        self._access_ttl = timedelta(minutes=access_ttl_minutes)
        self._refresh_ttl = timedelta(days=refresh_ttl_days)

    def create_access_token(self, *, claims: TokenClaims, now: datetime) -> tuple[str, datetime]:
        exp = now + self._access_ttl
        return self._encode(claims, token_type=ACCESS_TOKEN_TYPE, secret=self._access_secret, now=now, exp=exp), exp

    def create_refresh_token(self, *, claims: TokenClaims, now: datetime) -> tuple[str, datetime]:
        exp = now + self._refresh_ttl
        return self._encode(claims, token_type=REFRESH_TOKEN_TYPE, secret=self._refresh_secret, now=now, exp=exp), exp

    def decode_access_token(self, *, token: str) -> TokenClaims:
        return self._decode(token, token_type=ACCESS_TOKEN_TYPE, secret=self._access_secret)

    def decode_refresh_token(self, *, token: str) -> TokenClaims:
        return self._decode(token, token_type=REFRESH_TOKEN_TYPE, secret=self._refresh_secret)

    def hash_refresh_token(self, *, refresh_token: str) -> str:
        return hashlib.sha256(refresh_token.encode("utf-8")).hexdigest()

    def verify_refresh_token_hash(self, *, refresh_token: str, refresh_token_hash: str) -> bool:
        candidate = self.hash_refresh_token(refresh_token=refresh_token)
        return hmac.compare_digest(candidate, refresh_token_hash)

    def _encode(
        self,
        claims: TokenClaims,
        *,
        token_type: str,
        secret: str,
        now: datetime,
        exp: datetime,
    ) -> str:
        payload = {
            "sub": claims.subject_id,
            "email": claims.email,
            "roles": list(claims.roles),
            "type": token_type,
            "jti": secrets.token_hex(16),
            "iat": int(now.timestamp()),
            "exp": int(exp.timestamp()),
        }
        return jwt.encode(payload, secret, algorithm=ALGORITHM)

    def _decode(self, token: str, *, token_type: str, secret: str) -> TokenClaims:
        try:
            payload: dict[str, Any] = jwt.decode(
                token,
                secret,
                algorithms=[ALGORITHM],
                options={"require": ["exp", "iat", "sub"]},
            )
        except jwt.PyJWTError as exc:
            raise AuthenticationError(f"Invalid {token_type} token.") from exc

        if payload.get("type") != token_type:
            raise AuthenticationError("Invalid token type.")

        subject_id = payload.get("sub")
        email = payload.get("email")
        roles = payload.get("roles")
        if not subject_id or not isinstance(subject_id, str):
            raise AuthenticationError("Invalid token subject.")
        if not email or not isinstance(email, str):
            raise AuthenticationError("Invalid token email.")
        if not isinstance(roles, list) or not all(isinstance(role, str) for role in roles):
            raise AuthenticationError("Invalid token roles.")

        return TokenClaims(email=email, subject_id=subject_id, roles=tuple(roles))
