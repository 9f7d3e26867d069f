"""Error taxonomy shared by the repository, service and HTTP layers."""

from __future__ import annotations

from typing import Optional


class UserServiceError(RuntimeError):
    """Base class for failures raised by the user management core."""

    code = "USER_SERVICE_ERROR"


class InvalidArgumentError(UserServiceError, ValueError):
    """Raised when required input is missing or malformed."""

    code = "BAD_REQUEST"


class ResourceNotFoundError(UserServiceError, LookupError):
    """Raised when an operation requires a record that does not exist."""

    code = "NOT_FOUND"

    def __init__(
        self,
        message: str,
        *,
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.resource_type = resource_type
        self.resource_id = resource_id

    @classmethod
    def user_not_found(cls, user_id: object) -> "ResourceNotFoundError":
        return cls(
            f"User not found with ID: {user_id}",
            resource_type="User",
            resource_id=str(user_id),
        )


class DuplicateResourceError(UserServiceError):
    """Raised when a write would violate a uniqueness rule."""

    code = "CONFLICT"

    def __init__(
        self,
        message: str,
        *,
        resource_type: Optional[str] = None,
        conflict_field: Optional[str] = None,
        conflict_value: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.resource_type = resource_type
        self.conflict_field = conflict_field
        self.conflict_value = conflict_value

    @classmethod
    def duplicate_email(cls, email: str) -> "DuplicateResourceError":
        return cls(
            f"User with email {email} already exists",
            resource_type="User",
            conflict_field="email",
            conflict_value=email,
        )


__all__ = [
    "DuplicateResourceError",
    "InvalidArgumentError",
    "ResourceNotFoundError",
    "UserServiceError",
]
