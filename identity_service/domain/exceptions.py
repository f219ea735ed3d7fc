from __future__ import annotations


class DomainError(Exception):
    """Base for domain errors."""


class ValidationError(DomainError):
    """Input breaks a business rule."""


class ProfileAlreadyExistsError(ValidationError):
    """Identity already owns a profile."""


class ConflictError(DomainError):
    """Email or external provider id already taken."""


class NotFoundError(DomainError):
    """Referenced identity or profile is absent."""


class AuthenticationError(DomainError):
    """Bad credential, bad or rotated-out token, or state mismatch."""


class AuthorizationError(DomainError):
    """Capability check failed."""


class ExternalServiceError(DomainError):
    """Upstream OAuth provider failed."""


class CompensationFailure(DomainError):
    """Registration rollback failed and left an orphaned identity.

    Never converted into an ordinary user-facing error: an operator has to
    remove the identity by hand.
    """

    def __init__(
        self,
        message: str,
        *,
        identity_id: str,
        profile_id: str,
        original_error: BaseException | None = None,
    ):
        super().__init__(message)
        self.identity_id = identity_id
        self.profile_id = profile_id
        self.original_error = original_error
