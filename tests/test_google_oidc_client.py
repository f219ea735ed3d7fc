from __future__ import annotations

from google.auth import exceptions as google_exceptions
import pytest

from identity_service.domain.exceptions import AuthenticationError, ExternalServiceError
from identity_service.infrastructure.clients import google_oidc_client
from identity_service.infrastructure.clients.google_oidc_client import GoogleOidcClient


def test_verify_id_token_maps_payload(monkeypatch):
    calls = []

    def fake_verify(*, token: str, audience: list[str]) -> dict:
        calls.append((token, audience))
        return {
            "sub": "google-sub-1",
            "email": "alice@example.com",
            "email_verified": True,
            "given_name": "Alice",
            "family_name": "Liddell",
        }

    monkeypatch.setattr(google_oidc_client, "id_token_verify", fake_verify)

    info = GoogleOidcClient(client_ids=["web-client", "ios-client"]).verify_id_token(id_token="id-token")

    assert calls == [("id-token", ["web-client", "ios-client"])]
    assert info.subject == "google-sub-1"
    assert info.email_verified is True
    assert info.family_name == "Liddell"


def test_invalid_id_token_raises_authentication_error(monkeypatch):
    def fake_verify(*, token: str, audience: list[str]) -> dict:
        raise ValueError("Token has wrong audience")

    monkeypatch.setattr(google_oidc_client, "id_token_verify", fake_verify)

    with pytest.raises(AuthenticationError):
        GoogleOidcClient(client_ids=["web-client"]).verify_id_token(id_token="forged")


def test_transport_failure_raises_external_service_error(monkeypatch):
    def fake_verify(*, token: str, audience: list[str]) -> dict:
        raise google_exceptions.TransportError("certs unavailable")

    monkeypatch.setattr(google_oidc_client, "id_token_verify", fake_verify)

    with pytest.raises(ExternalServiceError):
        GoogleOidcClient(client_ids=["web-client"]).verify_id_token(id_token="id-token")


def test_requires_client_ids():
    with pytest.raises(ValueError):
        GoogleOidcClient(client_ids=[])
