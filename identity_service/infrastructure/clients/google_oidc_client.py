from __future__ import annotations

import logging

from google.auth import exceptions as google_exceptions
from google.auth.transport import requests
from google.oauth2 import id_token

from identity_service.application.dto.auth import GoogleIdentityInfo
from identity_service.application.ports.google_oauth_port import GoogleIdTokenPort
from identity_service.domain.exceptions import AuthenticationError, ExternalServiceError
from identity_service.infrastructure.clients.google_oauth_client import build_google_identity_info


logger = logging.getLogger(__name__)


class GoogleOidcClient(GoogleIdTokenPort):
    """Verifies ID tokens minted for any of the configured (web/iOS/Android) client ids."""

    def __init__(self, *, client_ids: list[str]):
        if not client_ids:
            raise ValueError("At least one Google client id is required.")
        self._client_ids = client_ids

    def verify_id_token(self, *, id_token: str) -> GoogleIdentityInfo:
        try:
            payload = id_token_verify(token=id_token, audience=self._client_ids)
        except google_exceptions.TransportError as exc:
            logger.warning("google_oidc_client: transport_error")
            raise ExternalServiceError("Could not reach Google to verify id_token.") from exc
        except (ValueError, google_exceptions.GoogleAuthError) as exc:
            raise AuthenticationError("Invalid Google id_token.") from exc

        if not isinstance(payload, dict) or not payload.get("sub") or not payload.get("email"):
            raise AuthenticationError("Google id_token missing required claims.")
        return build_google_identity_info(payload)


def id_token_verify(*, token: str, audience: list[str]) -> dict:
    request = requests.Request()
    return id_token.verify_oauth2_token(token, request, audience)
