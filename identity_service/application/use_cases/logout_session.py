from __future__ import annotations

from identity_service.application.dto.auth import LogoutInput

from .token_lifecycle import TokenLifecycleManager


class LogoutSessionUseCase:
    def __init__(self, *, token_lifecycle: TokenLifecycleManager):
        self._token_lifecycle = token_lifecycle

    def execute(self, command: LogoutInput) -> None:
        self._token_lifecycle.revoke(command.identity_id)
