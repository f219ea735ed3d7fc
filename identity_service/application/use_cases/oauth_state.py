from __future__ import annotations

import hmac
import logging
import secrets

from identity_service.application.dto.auth import GoogleAuthorizationOutput
from identity_service.application.ports.google_oauth_port import GoogleOauthPort
from identity_service.domain.exceptions import AuthenticationError


logger = logging.getLogger(__name__)

STATE_NUM_BYTES = 20


class OAuthStateGuard:
    """CSRF guard for the external-login redirect.

    The state travels to the client (HttpOnly cookie) and back through the
    provider; nothing is kept server-side. Callers must drop the stored copy
    after a single verification attempt.
    """

    def __init__(self, *, google_oauth_port: GoogleOauthPort, state_num_bytes: int = STATE_NUM_BYTES):
        self._google_oauth_port = google_oauth_port
        self._state_num_bytes = state_num_bytes

    def generate_state(self) -> GoogleAuthorizationOutput:
        state = secrets.token_hex(self._state_num_bytes)
        redirect_url = self._google_oauth_port.build_authorization_url(state=state)
        logger.info("oauth_state: generated")
        return GoogleAuthorizationOutput(redirect_url=redirect_url, state=state)

    def verify_state(self, *, received_state: str | None, stored_state: str | None) -> None:
        if not received_state or not stored_state:
            logger.info("oauth_state: rejected reason=missing")
            raise AuthenticationError("Invalid state or state mismatch.")
        if not hmac.compare_digest(received_state.encode("utf-8"), stored_state.encode("utf-8")):
            logger.warning("oauth_state: rejected reason=mismatch")
            raise AuthenticationError("Invalid state or state mismatch.")
