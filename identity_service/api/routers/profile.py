from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from identity_service.api.deps import (
    get_current_identity,
    get_get_profile_use_case,
    get_list_profiles_use_case,
    get_update_my_profile_use_case,
    require_role,
)
from identity_service.api.errors import to_http_exception
from identity_service.api.schemas.profile import ProfileResponse, UpdateProfileRequest
from identity_service.application.dto.profile import ProfileOutput, UpdateProfileInput
from identity_service.application.use_cases.get_profile import GetProfileUseCase
from identity_service.application.use_cases.list_profiles import ListProfilesUseCase
from identity_service.application.use_cases.update_my_profile import UpdateMyProfileUseCase
from identity_service.domain.entities.identity import Identity
from identity_service.domain.exceptions import DomainError
from identity_service.domain.services.identity_rules import has_role


router = APIRouter()


def _profile_response(output: ProfileOutput) -> ProfileResponse:
    return ProfileResponse(
        id=output.id,
        identity_id=output.identity_id,
        name=output.name,
        lastname=output.lastname,
        age=output.age,
        is_complete=output.is_complete,
    )


@router.get("/v1/profile/all", response_model=list[ProfileResponse])
def list_profiles(
    _admin: Identity = Depends(require_role("admin")),
    use_case: ListProfilesUseCase = Depends(get_list_profiles_use_case),
):
    return [_profile_response(output) for output in use_case.execute()]


@router.get("/v1/profile/admins", response_model=list[ProfileResponse])
def list_admin_profiles(
    _admin: Identity = Depends(require_role("admin")),
    use_case: ListProfilesUseCase = Depends(get_list_profiles_use_case),
):
    return [_profile_response(output) for output in use_case.execute(role="admin")]


@router.get("/v1/profile/me", response_model=ProfileResponse)
def get_my_profile(
    current_identity: Identity = Depends(get_current_identity),
    use_case: GetProfileUseCase = Depends(get_get_profile_use_case),
):
    try:
        output = use_case.execute(identity_id=current_identity.id)
    except DomainError as exc:
        raise to_http_exception(exc) from exc
    return _profile_response(output)


@router.put("/v1/profile/me", response_model=ProfileResponse)
def update_my_profile(
    req: UpdateProfileRequest,
    current_identity: Identity = Depends(get_current_identity),
    use_case: UpdateMyProfileUseCase = Depends(get_update_my_profile_use_case),
):
    try:
        output = use_case.execute(
            UpdateProfileInput(
                identity_id=current_identity.id,
                changes=req.model_dump(exclude_unset=True),
            )
        )
    except DomainError as exc:
        raise to_http_exception(exc) from exc
    return _profile_response(output)


@router.get("/v1/profile/{profile_id}", response_model=ProfileResponse)
def get_profile(
    profile_id: str,
    current_identity: Identity = Depends(get_current_identity),
    use_case: GetProfileUseCase = Depends(get_get_profile_use_case),
):
    try:
        output = use_case.execute(profile_id=profile_id)
    except DomainError as exc:
        raise to_http_exception(exc) from exc

    if output.identity_id != current_identity.id and not has_role(current_identity, "admin"):
        raise HTTPException(status_code=403, detail="Not allowed to access this profile.")
    return _profile_response(output)
