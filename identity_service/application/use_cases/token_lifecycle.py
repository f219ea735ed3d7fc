from __future__ import annotations

import logging

from identity_service.application.dto.auth import TokenClaims, TokenPairOutput
from identity_service.application.ports.identity_port import IdentityPort
from identity_service.application.ports.token_port import TokenPort
from identity_service.domain.entities.identity import Identity
from identity_service.domain.exceptions import AuthenticationError

from .auth_common import build_token_claims, utcnow


logger = logging.getLogger(__name__)


class TokenLifecycleManager:
    """Issues, rotates, verifies and revokes access/refresh token pairs.

    The identity row holds a hash of the single refresh token that is valid at
    any moment. Issuing always overwrites it, so a refresh token stops working
    the moment its successor is issued or the session is revoked. Rotation
    swaps the hash only if it still matches the presented token, so of two
    callers racing with the same token exactly one wins.
    """

    def __init__(self, *, identity_port: IdentityPort, token_port: TokenPort):
        self._identity_port = identity_port
        self._token_port = token_port

    def issue(self, identity: Identity) -> TokenPairOutput:
        tokens, refresh_hash = self._mint(identity)
        self._identity_port.update(
            identity_id=identity.id,
            fields={"refresh_token_hash": refresh_hash},
        )
        logger.info("token_lifecycle: issued identity_id=%s", identity.id)
        return tokens

    def rotate(self, refresh_token: str) -> tuple[Identity, TokenPairOutput]:
        token = refresh_token.strip() if refresh_token else ""
        if not token:
            raise AuthenticationError("Missing refresh token.")

        claims = self._token_port.decode_refresh_token(token=token)
        identity = self._identity_port.find_by_id(identity_id=claims.subject_id, include_secrets=True)
        if identity is None:
            logger.info("token_lifecycle: rotate_rejected reason=unknown_subject")
            raise AuthenticationError("Invalid refresh token.")
        if not identity.refresh_token_hash:
            logger.info("token_lifecycle: rotate_rejected reason=revoked identity_id=%s", identity.id)
            raise AuthenticationError("Refresh token revoked.")
        if not self._token_port.verify_refresh_token_hash(
            refresh_token=token,
            refresh_token_hash=identity.refresh_token_hash,
        ):
            logger.warning("token_lifecycle: rotate_rejected reason=hash_mismatch identity_id=%s", identity.id)
            raise AuthenticationError("Invalid refresh token.")

        tokens, refresh_hash = self._mint(identity)
        replaced = self._identity_port.replace_refresh_credential(
            identity_id=identity.id,
            expected_hash=identity.refresh_token_hash,
            new_hash=refresh_hash,
        )
        if not replaced:
            logger.warning("token_lifecycle: rotate_rejected reason=concurrent_rotation identity_id=%s", identity.id)
            raise AuthenticationError("Invalid refresh token.")

        logger.info("token_lifecycle: rotated identity_id=%s", identity.id)
        return identity, tokens

    def verify_access(self, access_token: str) -> TokenClaims:
        return self._token_port.decode_access_token(token=access_token)

    def revoke(self, identity_id: str) -> None:
        self._identity_port.clear_refresh_credential(identity_id=identity_id)
        logger.info("token_lifecycle: revoked identity_id=%s", identity_id)

    def _mint(self, identity: Identity) -> tuple[TokenPairOutput, str]:
        now = utcnow()
        claims = build_token_claims(identity)
        access_token, access_expires_at = self._token_port.create_access_token(claims=claims, now=now)
        refresh_token, refresh_expires_at = self._token_port.create_refresh_token(claims=claims, now=now)
        refresh_hash = self._token_port.hash_refresh_token(refresh_token=refresh_token)
        tokens = TokenPairOutput(
            access_token=access_token,
            refresh_token=refresh_token,
            access_expires_at=access_expires_at,
            refresh_expires_at=refresh_expires_at,
        )
        return tokens, refresh_hash
