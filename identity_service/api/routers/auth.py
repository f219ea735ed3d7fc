from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Cookie, Depends, HTTPException, Query, Response
from fastapi.responses import JSONResponse, RedirectResponse

from identity_service.api.deps import (
    get_change_password_use_case,
    get_current_identity,
    get_delete_account_use_case,
    get_get_identity_use_case,
    get_google_redirect_use_case,
    get_login_google_id_token_use_case,
    get_login_local_use_case,
    get_logout_session_use_case,
    get_oauth_state_guard,
    get_refresh_session_use_case,
    get_register_user_use_case,
)
from identity_service.api.errors import to_http_exception
from identity_service.api.schemas.auth import (
    AuthTokenResponse,
    ChangePasswordRequest,
    DeleteAccountResponse,
    GoogleMobileLoginRequest,
    IdentityResponse,
    LoginRequest,
    LogoutResponse,
    RefreshRequest,
    RegisterRequest,
    RegisterResponse,
)
from identity_service.api.schemas.profile import ProfileResponse
from identity_service.application.dto.auth import (
    AuthSessionOutput,
    ChangePasswordInput,
    GoogleRedirectInput,
    IdentityOutput,
    LoginGoogleIdTokenInput,
    LoginLocalInput,
    LogoutInput,
    RefreshSessionInput,
    RegisterUserInput,
)
from identity_service.application.use_cases.change_password import ChangePasswordUseCase
from identity_service.application.use_cases.delete_account import DeleteAccountUseCase
from identity_service.application.use_cases.get_identity import GetIdentityUseCase
from identity_service.application.use_cases.login_google import (
    GoogleRedirectUseCase,
    LoginGoogleIdTokenUseCase,
)
from identity_service.application.use_cases.login_local import LoginLocalUseCase
from identity_service.application.use_cases.logout_session import LogoutSessionUseCase
from identity_service.application.use_cases.oauth_state import OAuthStateGuard
from identity_service.application.use_cases.refresh_session import RefreshSessionUseCase
from identity_service.application.use_cases.register_user import RegisterUserUseCase
from identity_service.domain.entities.identity import Identity
from identity_service.domain.exceptions import DomainError
from identity_service.domain.services.identity_rules import has_role
from identity_service.shared.config import get_settings


router = APIRouter()

REFRESH_COOKIE_NAME = "refresh_token"
REFRESH_COOKIE_PATH = "/v1/auth"
STATE_COOKIE_NAME = "oauth_state"
STATE_COOKIE_MAX_AGE_SECONDS = 600


def _set_refresh_cookie(response: Response, refresh_token: str, max_age_seconds: int) -> None:
    response.set_cookie(
        key=REFRESH_COOKIE_NAME,
        value=refresh_token,
        httponly=True,
        samesite="lax",
        secure=get_settings().cookie_secure,
        max_age=max_age_seconds,
        path=REFRESH_COOKIE_PATH,
    )


def _cookie_max_age_seconds(refresh_expires_at: datetime) -> int:
    now = datetime.now(timezone.utc)
    return max(int((refresh_expires_at - now).total_seconds()), 0)


def _identity_response(identity: IdentityOutput) -> IdentityResponse:
    return IdentityResponse(
        id=identity.id,
        email=identity.email,
        roles=list(identity.roles),
        google_id=identity.google_id,
        last_authenticated_at=identity.last_authenticated_at,
    )


def _session_response(response: Response, output: AuthSessionOutput) -> AuthTokenResponse:
    _set_refresh_cookie(
        response,
        output.tokens.refresh_token,
        max_age_seconds=_cookie_max_age_seconds(output.tokens.refresh_expires_at),
    )
    profile = output.profile
    return AuthTokenResponse(
        access_token=output.tokens.access_token,
        refresh_token=output.tokens.refresh_token,
        access_expires_at=output.tokens.access_expires_at,
        refresh_expires_at=output.tokens.refresh_expires_at,
        identity=_identity_response(output.identity),
        profile=(
            ProfileResponse(
                id=profile.id,
                identity_id=profile.identity_id,
                name=profile.name,
                lastname=profile.lastname,
                age=profile.age,
                is_complete=profile.is_complete,
            )
            if profile is not None
            else None
        ),
    )


def _require_self_or_admin(current_identity: Identity, identity_id: str) -> None:
    is_admin = has_role(current_identity, "admin")
    if current_identity.id != identity_id and not is_admin:
        raise HTTPException(status_code=403, detail="Not allowed to access this identity.")


@router.post("/v1/auth/register", response_model=RegisterResponse, status_code=201)
def register_user(
    req: RegisterRequest,
    use_case: RegisterUserUseCase = Depends(get_register_user_use_case),
):
    try:
        output = use_case.execute(
            RegisterUserInput(
                email=req.email,
                password=req.password,
                name=req.name,
                lastname=req.lastname,
                age=req.age,
            )
        )
    except DomainError as exc:
        raise to_http_exception(exc) from exc

    return RegisterResponse(identity_id=output.identity_id, profile_id=output.profile_id)


@router.post("/v1/auth/login", response_model=AuthTokenResponse)
def login_local(
    req: LoginRequest,
    response: Response,
    use_case: LoginLocalUseCase = Depends(get_login_local_use_case),
):
    try:
        output = use_case.execute(LoginLocalInput(email=req.email, password=req.password))
    except DomainError as exc:
        raise to_http_exception(exc) from exc

    return _session_response(response, output)


@router.post("/v1/auth/refresh", response_model=AuthTokenResponse)
def refresh_auth(
    response: Response,
    req: RefreshRequest | None = None,
    refresh_token_cookie: str | None = Cookie(default=None, alias=REFRESH_COOKIE_NAME),
    use_case: RefreshSessionUseCase = Depends(get_refresh_session_use_case),
):
    refresh_token = refresh_token_cookie or (req.refresh_token if req is not None else None)
    if not refresh_token:
        raise HTTPException(status_code=401, detail="Missing refresh token.")

    try:
        output = use_case.execute(RefreshSessionInput(refresh_token=refresh_token))
    except DomainError as exc:
        raise to_http_exception(exc) from exc

    return _session_response(response, output)


@router.post("/v1/auth/logout", response_model=LogoutResponse)
def logout_auth(
    response: Response,
    current_identity: Identity = Depends(get_current_identity),
    use_case: LogoutSessionUseCase = Depends(get_logout_session_use_case),
):
    use_case.execute(LogoutInput(identity_id=current_identity.id))
    response.delete_cookie(key=REFRESH_COOKIE_NAME, path=REFRESH_COOKIE_PATH)
    return LogoutResponse(ok=True)


@router.post("/v1/auth/change-password", response_model=LogoutResponse)
def change_password(
    req: ChangePasswordRequest,
    response: Response,
    current_identity: Identity = Depends(get_current_identity),
    use_case: ChangePasswordUseCase = Depends(get_change_password_use_case),
):
    try:
        use_case.execute(
            ChangePasswordInput(
                identity_id=current_identity.id,
                old_password=req.old_password,
                new_password=req.new_password,
            )
        )
    except DomainError as exc:
        raise to_http_exception(exc) from exc

    # The stored refresh credential is gone; drop the client copy too.
    response.delete_cookie(key=REFRESH_COOKIE_NAME, path=REFRESH_COOKIE_PATH)
    return LogoutResponse(ok=True)


@router.get("/v1/auth/google")
def login_google_start(
    state_guard: OAuthStateGuard = Depends(get_oauth_state_guard),
):
    authorization = state_guard.generate_state()
    redirect = RedirectResponse(url=authorization.redirect_url, status_code=302)
    redirect.set_cookie(
        key=STATE_COOKIE_NAME,
        value=authorization.state,
        httponly=True,
        samesite="lax",
        secure=get_settings().cookie_secure,
        max_age=STATE_COOKIE_MAX_AGE_SECONDS,
        path=REFRESH_COOKIE_PATH,
    )
    return redirect


@router.get("/v1/auth/google/redirect", response_model=AuthTokenResponse)
def login_google_redirect(
    response: Response,
    code: str | None = Query(default=None),
    state: str | None = Query(default=None),
    stored_state: str | None = Cookie(default=None, alias=STATE_COOKIE_NAME),
    use_case: GoogleRedirectUseCase = Depends(get_google_redirect_use_case),
):
    # The state cookie is single use, whatever the outcome.
    try:
        output = use_case.execute(
            GoogleRedirectInput(code=code or "", state=state, stored_state=stored_state)
        )
    except DomainError as exc:
        http_exc = to_http_exception(exc)
        failure = JSONResponse(status_code=http_exc.status_code, content={"detail": http_exc.detail})
        failure.delete_cookie(key=STATE_COOKIE_NAME, path=REFRESH_COOKIE_PATH)
        return failure

    response.delete_cookie(key=STATE_COOKIE_NAME, path=REFRESH_COOKIE_PATH)
    return _session_response(response, output)


@router.post("/v1/auth/google/mobile", response_model=AuthTokenResponse)
def login_google_mobile(
    req: GoogleMobileLoginRequest,
    response: Response,
    use_case: LoginGoogleIdTokenUseCase = Depends(get_login_google_id_token_use_case),
):
    try:
        output = use_case.execute(LoginGoogleIdTokenInput(id_token=req.id_token))
    except DomainError as exc:
        raise to_http_exception(exc) from exc

    return _session_response(response, output)


@router.get("/v1/auth/{identity_id}", response_model=IdentityResponse)
def get_identity(
    identity_id: str,
    current_identity: Identity = Depends(get_current_identity),
    use_case: GetIdentityUseCase = Depends(get_get_identity_use_case),
):
    _require_self_or_admin(current_identity, identity_id)
    try:
        output = use_case.execute(identity_id=identity_id)
    except DomainError as exc:
        raise to_http_exception(exc) from exc

    return _identity_response(output)


@router.delete("/v1/auth/{identity_id}", response_model=DeleteAccountResponse)
def delete_identity(
    identity_id: str,
    response: Response,
    current_identity: Identity = Depends(get_current_identity),
    use_case: DeleteAccountUseCase = Depends(get_delete_account_use_case),
):
    try:
        output = use_case.execute(
            identity_id=identity_id,
            requesting_identity_id=current_identity.id,
            is_admin=has_role(current_identity, "admin"),
        )
    except DomainError as exc:
        raise to_http_exception(exc) from exc

    if current_identity.id == identity_id:
        response.delete_cookie(key=REFRESH_COOKIE_NAME, path=REFRESH_COOKIE_PATH)
    return DeleteAccountResponse(identity_id=output.identity_id, profile_id=output.profile_id)
