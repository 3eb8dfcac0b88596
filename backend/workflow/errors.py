from __future__ import annotations


class HackathonHubError(Exception):
    pass


class NotFoundError(HackathonHubError):
    def __init__(self, kind: str, ident: str):
        self.kind = kind
        self.ident = ident
        super().__init__(f"{kind} not found (id={ident})")


class ValidationError(HackathonHubError):
    pass


class PermissionDeniedError(HackathonHubError):
    pass


class InvalidTransitionError(HackathonHubError):
    pass


class LockConflictError(HackathonHubError):
    def __init__(self, holder: str, expires_at):
        self.holder = holder
        self.expires_at = expires_at
        super().__init__(
            f"Submission is locked for editing by {holder} until {expires_at.isoformat()}"
        )
