from __future__ import annotations


class PortalError(Exception):
    """Base for every error the API reports with a stable machine-readable kind."""

    kind = "Internal"
    status_code = 500

    def __init__(self, message: str, *, reason: str | None = None, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.reason = reason
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict[str, str | None]:
        return {"detail": self.message, "kind": self.kind, "reason": self.reason}


class NotFound(PortalError):
    kind = "NotFound"
    status_code = 404


class Unauthorized(PortalError):
    kind = "Unauthorized"
    status_code = 401


class Forbidden(PortalError):
    kind = "Forbidden"
    status_code = 403


class Conflict(PortalError):
    kind = "Conflict"
    status_code = 409


class Closed(PortalError):
    kind = "Closed"
    status_code = 400


class ValidationFailed(PortalError):
    kind = "ValidationFailed"
    status_code = 400


class PayloadTooLarge(PortalError):
    kind = "PayloadTooLarge"
    status_code = 413


class UnsupportedMediaType(PortalError):
    kind = "UnsupportedMediaType"
    status_code = 415


class UpstreamUnavailable(PortalError):
    kind = "UpstreamUnavailable"
    status_code = 502


class Internal(PortalError):
    kind = "Internal"
    status_code = 500


# reason codes
ALREADY_APPLIED = "AlreadyApplied"
SELF_APPLY = "SelfApply"
NOT_WITHDRAWABLE = "NotWithdrawable"
DUPLICATE_NAME = "DuplicateName"
ALREADY_SAVED = "AlreadySaved"
