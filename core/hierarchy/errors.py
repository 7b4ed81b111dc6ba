"""
Exceptions raised by the access authority.

Malformed hierarchy data (cycles, dangling manager references) is never
raised; the traversals tolerate it. A missing approver is reported as
``None`` by the escalation router, not as an error.
"""

from typing import Iterable, Optional


class AuthorizationError(PermissionError):
    """Raised when a caller may not perform the requested operation."""

    code = "ACCESS_DENIED"

    def __init__(self, message: str, user_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.user_id = user_id


class MembershipRequired(AuthorizationError):
    """Raised when the caller has no active membership."""

    code = "MEMBERSHIP_REQUIRED"


class AdminRequired(AuthorizationError):
    """Raised when an admin-only operation is attempted by a contributor."""

    code = "ADMIN_REQUIRED"


class AccessDenied(AuthorizationError):
    """Raised when a target owner or record is outside the caller's scope."""

    def __init__(
        self,
        message: str,
        user_id: Optional[str] = None,
        denied_ids: Iterable[str] = (),
    ):
        super().__init__(message, user_id=user_id)
        self.denied_ids = list(denied_ids)


class ResourceNotFound(LookupError):
    """Raised when a resource doesn't exist."""

    def __init__(self, resource: str, resource_id: str):
        super().__init__(f"{resource} {resource_id} not found")
        self.resource = resource
        self.resource_id = resource_id
