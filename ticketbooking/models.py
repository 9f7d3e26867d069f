"""Domain models for the user management service."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional


def normalize_email(email: Optional[str]) -> Optional[str]:
    """Return the trimmed, lower-cased form used for email comparisons."""

    if email is None:
        return None
    return email.strip().lower()


@dataclass(frozen=True)
class UserRecord:
    """Represents a user account held by the repository.

    Records are immutable values: any change produces a new record that has
    to be written back through the repository to take effect.
    """

    email: str
    first_name: str
    last_name: str
    phone_number: Optional[str] = None
    active: bool = True
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    password_hash: Optional[str] = None

    @property
    def normalized_email(self) -> Optional[str]:
        return normalize_email(self.email)

    def activated(self) -> "UserRecord":
        return replace(self, active=True)

    def deactivated(self) -> "UserRecord":
        return replace(self, active=False)


__all__ = ["UserRecord", "normalize_email"]
