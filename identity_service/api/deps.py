from __future__ import annotations

from functools import lru_cache

from fastapi import Depends, Header, HTTPException

from identity_service.application.use_cases.change_password import ChangePasswordUseCase
from identity_service.application.use_cases.delete_account import DeleteAccountUseCase
from identity_service.application.use_cases.get_identity import GetIdentityUseCase
from identity_service.application.use_cases.get_profile import GetProfileUseCase
from identity_service.application.use_cases.list_profiles import ListProfilesUseCase
from identity_service.application.use_cases.login_google import (
    GoogleRedirectUseCase,
    LoginGoogleIdTokenUseCase,
)
from identity_service.application.use_cases.login_local import LoginLocalUseCase
from identity_service.application.use_cases.logout_session import LogoutSessionUseCase
from identity_service.application.use_cases.oauth_state import OAuthStateGuard
from identity_service.application.use_cases.refresh_session import RefreshSessionUseCase
from identity_service.application.use_cases.register_user import RegisterUserUseCase
from identity_service.application.use_cases.token_lifecycle import TokenLifecycleManager
from identity_service.application.use_cases.update_my_profile import UpdateMyProfileUseCase
from identity_service.domain.entities.identity import Identity, Role
from identity_service.domain.exceptions import AuthenticationError
from identity_service.domain.services.identity_rules import has_role
from identity_service.infrastructure.clients.google_oauth_client import (
    GoogleOauthClient,
    GoogleOauthClientSettings,
)
from identity_service.infrastructure.clients.google_oidc_client import GoogleOidcClient
from identity_service.infrastructure.db.engine import get_engine
from identity_service.infrastructure.db.repositories.identity_repository import SqlIdentityRepository
from identity_service.infrastructure.db.repositories.profile_repository import SqlProfileRepository
from identity_service.infrastructure.security.password_hasher import PasswordHasher
from identity_service.infrastructure.security.token_service import JwtTokenService
from identity_service.shared.config import get_settings


def _get_db_engine():
    settings = get_settings()
    if not settings.postgres_dsn:
        raise HTTPException(status_code=500, detail="POSTGRES_DSN is required.")
    return get_engine(settings.postgres_dsn)


def _get_identity_repository() -> SqlIdentityRepository:
    return SqlIdentityRepository(_get_db_engine())


def _get_profile_repository() -> SqlProfileRepository:
    return SqlProfileRepository(_get_db_engine())


@lru_cache(maxsize=1)
def _get_password_hasher() -> PasswordHasher:
    return PasswordHasher()


@lru_cache(maxsize=1)
def _get_token_service() -> JwtTokenService:
    settings = get_settings()
    if not settings.jwt_access_secret:
        raise HTTPException(status_code=500, detail="JWT_ACCESS_SECRET is required.")
    if not settings.jwt_refresh_secret:
        raise HTTPException(status_code=500, detail="JWT_REFRESH_SECRET is required.")
    if settings.jwt_access_secret == settings.jwt_refresh_secret:
        raise HTTPException(status_code=500, detail="JWT_ACCESS_SECRET and JWT_REFRESH_SECRET must differ.")
    return JwtTokenService(
        access_secret=settings.jwt_access_secret,
        refresh_secret=settings.jwt_refresh_secret,
        access_ttl_minutes=settings.jwt_access_ttl_minutes,
        refresh_ttl_days=settings.jwt_refresh_ttl_days,
    )


@lru_cache(maxsize=1)
def _get_google_oauth_client() -> GoogleOauthClient:
    settings = get_settings()
    if not settings.google_client_id or not settings.google_client_secret:
        raise HTTPException(status_code=500, detail="GOOGLE_CLIENT_ID and GOOGLE_CLIENT_SECRET are required.")
    if not settings.google_callback_url:
        raise HTTPException(status_code=500, detail="GOOGLE_CALLBACK_URL is required.")
    return GoogleOauthClient(
        GoogleOauthClientSettings(
            client_id=settings.google_client_id,
            client_secret=settings.google_client_secret,
            callback_url=settings.google_callback_url,
            timeout_seconds=settings.google_http_timeout_seconds,
        )
    )


@lru_cache(maxsize=1)
def _get_google_oidc_client() -> GoogleOidcClient:
    settings = get_settings()
    if not settings.google_client_id:
        raise HTTPException(status_code=500, detail="GOOGLE_CLIENT_ID is required.")
    return GoogleOidcClient(client_ids=[settings.google_client_id])


def get_token_lifecycle() -> TokenLifecycleManager:
    return TokenLifecycleManager(
        identity_port=_get_identity_repository(),
        token_port=_get_token_service(),
    )


def get_oauth_state_guard() -> OAuthStateGuard:
    return OAuthStateGuard(google_oauth_port=_get_google_oauth_client())


def get_register_user_use_case() -> RegisterUserUseCase:
    return RegisterUserUseCase(
        identity_port=_get_identity_repository(),
        profile_port=_get_profile_repository(),
        password_hasher=_get_password_hasher(),
    )


def get_login_local_use_case() -> LoginLocalUseCase:
    return LoginLocalUseCase(
        identity_port=_get_identity_repository(),
        profile_port=_get_profile_repository(),
        password_hasher=_get_password_hasher(),
        token_lifecycle=get_token_lifecycle(),
    )


def get_refresh_session_use_case() -> RefreshSessionUseCase:
    return RefreshSessionUseCase(
        profile_port=_get_profile_repository(),
        token_lifecycle=get_token_lifecycle(),
    )


def get_logout_session_use_case() -> LogoutSessionUseCase:
    return LogoutSessionUseCase(token_lifecycle=get_token_lifecycle())


def get_change_password_use_case() -> ChangePasswordUseCase:
    return ChangePasswordUseCase(
        identity_port=_get_identity_repository(),
        password_hasher=_get_password_hasher(),
    )


def get_google_redirect_use_case() -> GoogleRedirectUseCase:
    return GoogleRedirectUseCase(
        identity_port=_get_identity_repository(),
        profile_port=_get_profile_repository(),
        password_hasher=_get_password_hasher(),
        google_oauth_port=_get_google_oauth_client(),
        state_guard=get_oauth_state_guard(),
        token_lifecycle=get_token_lifecycle(),
    )


def get_login_google_id_token_use_case() -> LoginGoogleIdTokenUseCase:
    return LoginGoogleIdTokenUseCase(
        identity_port=_get_identity_repository(),
        profile_port=_get_profile_repository(),
        password_hasher=_get_password_hasher(),
        id_token_port=_get_google_oidc_client(),
        token_lifecycle=get_token_lifecycle(),
    )


def get_get_identity_use_case() -> GetIdentityUseCase:
    return GetIdentityUseCase(identity_port=_get_identity_repository())


def get_delete_account_use_case() -> DeleteAccountUseCase:
    return DeleteAccountUseCase(
        identity_port=_get_identity_repository(),
        profile_port=_get_profile_repository(),
    )


def get_list_profiles_use_case() -> ListProfilesUseCase:
    return ListProfilesUseCase(profile_port=_get_profile_repository())


def get_get_profile_use_case() -> GetProfileUseCase:
    return GetProfileUseCase(profile_port=_get_profile_repository())


def get_update_my_profile_use_case() -> UpdateMyProfileUseCase:
    return UpdateMyProfileUseCase(profile_port=_get_profile_repository())


def get_current_identity(
    authorization: str | None = Header(default=None),
) -> Identity:
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Invalid authorization header.")
    token = authorization.replace("Bearer ", "", 1).strip()
    if not token:
        raise HTTPException(status_code=401, detail="Missing access token.")

    token_lifecycle = get_token_lifecycle()
    identity_port = _get_identity_repository()
    try:
        claims = token_lifecycle.verify_access(token)
    except AuthenticationError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc

    identity = identity_port.find_by_id(identity_id=claims.subject_id)
    if identity is None:
        raise HTTPException(status_code=401, detail="Identity not found.")
    return identity


def require_role(role: Role):
    def _dependency(identity: Identity = Depends(get_current_identity)) -> Identity:
        if not has_role(identity, role):
            raise HTTPException(status_code=403, detail=f"Role '{role}' is required.")
        return identity

    return _dependency
