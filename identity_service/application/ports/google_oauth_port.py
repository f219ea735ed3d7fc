from __future__ import annotations

from typing import Protocol

from identity_service.application.dto.auth import GoogleIdentityInfo


class GoogleOauthPort(Protocol):
    def build_authorization_url(self, *, state: str) -> str:
        ...

    def exchange_code(self, *, code: str) -> str:
        ...

    def fetch_userinfo(self, *, access_token: str) -> GoogleIdentityInfo:
        ...


class GoogleIdTokenPort(Protocol):
    def verify_id_token(self, *, id_token: str) -> GoogleIdentityInfo:
        ...
