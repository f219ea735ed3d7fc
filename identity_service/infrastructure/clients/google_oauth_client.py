from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any
from urllib.parse import urlencode

import httpx

from identity_service.application.dto.auth import GoogleIdentityInfo
from identity_service.application.ports.google_oauth_port import GoogleOauthPort
from identity_service.domain.exceptions import ExternalServiceError


logger = logging.getLogger(__name__)

GOOGLE_AUTHORIZATION_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v3/userinfo"
GOOGLE_SCOPES = "openid email profile"


@dataclass(frozen=True)
class GoogleOauthClientSettings:
    client_id: str
    client_secret: str
    callback_url: str
    timeout_seconds: float


def parse_email_verified(value: Any) -> bool:
    if isinstance(value, str):
        return value.lower() == "true"
    return bool(value)


def _optional_str(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None


def build_google_identity_info(payload: dict) -> GoogleIdentityInfo:
    subject = payload.get("sub")
    email = payload.get("email")
    if not subject or not email:
        raise ExternalServiceError("Google identity is missing required claims.")
    return GoogleIdentityInfo(
        subject=str(subject),
        email=str(email),
        email_verified=parse_email_verified(payload.get("email_verified", False)),
        given_name=_optional_str(payload.get("given_name")),
        family_name=_optional_str(payload.get("family_name")),
    )


class GoogleOauthClient(GoogleOauthPort):
    """Authorization-code flow against Google's web endpoints."""

    def __init__(
        self,
        settings: GoogleOauthClientSettings,
        *,
        transport: httpx.BaseTransport | None = None,
    ):
        self._settings = settings
        self._transport = transport

    def build_authorization_url(self, *, state: str) -> str:
        params = {
            "client_id": self._settings.client_id,
            "redirect_uri": self._settings.callback_url,
            "response_type": "code",
            "scope": GOOGLE_SCOPES,
            "access_type": "offline",
            "state": state,
        }
        return f"{GOOGLE_AUTHORIZATION_URL}?{urlencode(params)}"

    def exchange_code(self, *, code: str) -> str:
        payload = self._request(
            "POST",
            GOOGLE_TOKEN_URL,
            data={
                "code": code,
                "client_id": self._settings.client_id,
                "client_secret": self._settings.client_secret,
                "redirect_uri": self._settings.callback_url,
                "grant_type": "authorization_code",
            },
        )
        access_token = payload.get("access_token")
        if not access_token or not isinstance(access_token, str):
            raise ExternalServiceError("Google token response is missing access_token.")
        return access_token

    def fetch_userinfo(self, *, access_token: str) -> GoogleIdentityInfo:
        payload = self._request(
            "GET",
            GOOGLE_USERINFO_URL,
            headers={"Authorization": f"Bearer {access_token}"},
        )
        return build_google_identity_info(payload)

    def _request(self, method: str, url: str, **kwargs: Any) -> dict:
        try:
            with httpx.Client(timeout=self._settings.timeout_seconds, transport=self._transport) as client:
                response = client.request(method, url, **kwargs)
                response.raise_for_status()
                payload = response.json()
        except httpx.TimeoutException as exc:
            logger.warning("google_oauth_client: timeout method=%s url=%s", method, url)
            raise ExternalServiceError("Google request timed out.") from exc
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "google_oauth_client: http_error method=%s url=%s status=%s",
                method,
                url,
                exc.response.status_code,
            )
            raise ExternalServiceError("Google request failed.") from exc
        except httpx.HTTPError as exc:
            logger.warning("google_oauth_client: transport_error method=%s url=%s", method, url)
            raise ExternalServiceError("Google request failed.") from exc
        except ValueError as exc:
            raise ExternalServiceError("Google returned an invalid response.") from exc

        if not isinstance(payload, dict):
            raise ExternalServiceError("Google returned an invalid response.")
        return payload
