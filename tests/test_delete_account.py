from __future__ import annotations

import pytest

from identity_service.application.dto.auth import DeleteIdentityCommand
from identity_service.application.use_cases.delete_account import DeleteAccountUseCase, DeleteIdentityHandler
from identity_service.domain.exceptions import AuthorizationError, NotFoundError


def test_delete_account_removes_profile_then_identity(identity_port, profile_port, make_identity, make_profile):
    identity = make_identity()
    profile = make_profile(identity_id=identity.id)
    use_case = DeleteAccountUseCase(identity_port=identity_port, profile_port=profile_port)

    output = use_case.execute(identity_id=identity.id, requesting_identity_id=identity.id)

    assert (output.identity_id, output.profile_id) == (identity.id, profile.id)
    assert identity_port.identities == {}
    assert profile_port.profiles == {}


def test_admin_can_delete_another_account(identity_port, profile_port, make_identity, make_profile):
    identity = make_identity()
    make_profile(identity_id=identity.id)
    use_case = DeleteAccountUseCase(identity_port=identity_port, profile_port=profile_port)

    use_case.execute(identity_id=identity.id, requesting_identity_id="identity-admin", is_admin=True)

    assert identity_port.identities == {}


def test_delete_account_rejects_other_users(identity_port, profile_port, make_identity, make_profile):
    identity = make_identity()
    make_profile(identity_id=identity.id)
    use_case = DeleteAccountUseCase(identity_port=identity_port, profile_port=profile_port)

    with pytest.raises(AuthorizationError):
        use_case.execute(identity_id=identity.id, requesting_identity_id="identity-2")

    assert identity.id in identity_port.identities
    assert len(profile_port.profiles) == 1


def test_delete_account_requires_identity_and_profile(identity_port, profile_port, make_identity):
    use_case = DeleteAccountUseCase(identity_port=identity_port, profile_port=profile_port)

    with pytest.raises(NotFoundError):
        use_case.execute(identity_id="missing", requesting_identity_id="missing")

    identity = make_identity()
    with pytest.raises(NotFoundError):
        use_case.execute(identity_id=identity.id, requesting_identity_id=identity.id)
    assert identity.id in identity_port.identities


def test_identity_delete_failure_leaves_identity_without_profile(
    identity_port, profile_port, make_identity, make_profile
):
    identity = make_identity()
    profile = make_profile(identity_id=identity.id)
    identity_port.delete_error = RuntimeError("connection lost")
    handler = DeleteIdentityHandler(identity_port=identity_port, profile_port=profile_port)

    with pytest.raises(RuntimeError, match="connection lost"):
        handler.execute(DeleteIdentityCommand(identity_id=identity.id, profile_id=profile.id))

    assert profile_port.profiles == {}
    assert identity.id in identity_port.identities
