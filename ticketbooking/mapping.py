"""Translate between API schemas and stored user records."""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Dict, Optional

from .models import UserRecord
from .schemas import CreateUserRequest, UpdateUserRequest, UserResponse

# Fields an update request may copy onto a record.
_UPDATABLE_FIELDS = ("email", "first_name", "last_name", "phone_number", "active")


def full_name(first_name: Optional[str], last_name: Optional[str]) -> Optional[str]:
    if first_name is None and last_name is None:
        return None
    parts = [part.strip() for part in (first_name, last_name) if part and part.strip()]
    return " ".join(parts)


def status_text(active: Optional[bool]) -> str:
    if active is None:
        return "Unknown"
    return "Active" if active else "Inactive"


class UserMapper:
    """Stateless conversions used by :class:`~ticketbooking.service.UserService`."""

    def to_entity(self, request: CreateUserRequest) -> UserRecord:
        """Build an unsaved record; the repository assigns id and timestamps."""

        return UserRecord(
            email=request.email.strip(),
            first_name=request.first_name,
            last_name=request.last_name,
            phone_number=request.phone_number,
            active=True,
        )

    def to_response(self, record: UserRecord) -> UserResponse:
        return UserResponse(
            id=record.id,
            email=record.email,
            first_name=record.first_name,
            last_name=record.last_name,
            phone_number=record.phone_number,
            active=record.active,
            created_at=record.created_at,
            updated_at=record.updated_at,
            full_name=full_name(record.first_name, record.last_name),
            status=status_text(record.active),
        )

    def apply_update(self, request: UpdateUserRequest, record: UserRecord) -> UserRecord:
        """Return ``record`` with the non-null fields of ``request`` applied.

        The id, creation timestamp and password hash are never changed here.
        """

        changes: Dict[str, Any] = {}
        for name in _UPDATABLE_FIELDS:
            value = getattr(request, name)
            if value is not None:
                changes[name] = value.strip() if isinstance(value, str) else value
        if not changes:
            return record
        return replace(record, **changes)


__all__ = ["UserMapper", "full_name", "status_text"]
