"""Business rules for creating, updating and removing users."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import List, Optional

from .exceptions import DuplicateResourceError, InvalidArgumentError, ResourceNotFoundError
from .mapping import UserMapper
from .models import UserRecord, normalize_email
from .repository import DEFAULT_PAGE_LIMIT, InMemoryUserRepository
from .schemas import CreateUserRequest, UpdateUserRequest, UserResponse

logger = logging.getLogger("ticketbooking.service")


def _placeholder_password_hash(password: str) -> str:
    # Not a real hash. Password storage is out of scope for this service.
    return f"hashed-{password}"


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


class UserService:
    """Orchestrate repository calls and enforce user business rules.

    The service keeps no state of its own. Uniqueness of emails is checked
    up front for a clear error and enforced again by the repository's atomic
    ``save_if_email_available`` so that concurrent writers cannot both claim
    the same address.
    """

    def __init__(
        self,
        repository: InMemoryUserRepository | None = None,
        mapper: UserMapper | None = None,
    ) -> None:
        self._repository = repository or InMemoryUserRepository()
        self._mapper = mapper or UserMapper()

    @property
    def repository(self) -> InMemoryUserRepository:
        return self._repository

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def create_user(self, request: Optional[CreateUserRequest]) -> UserResponse:
        if request is None:
            raise InvalidArgumentError("Request cannot be null")

        if self._repository.exists_by_email(request.email):
            logger.warning("Rejected duplicate registration for %s", request.email)
            raise DuplicateResourceError.duplicate_email(request.email)

        record = replace(
            self._mapper.to_entity(request),
            password_hash=_placeholder_password_hash(request.password),
        )
        saved = self._repository.save_if_email_available(record)
        if saved is None:
            logger.warning("Lost registration race for %s", request.email)
            raise DuplicateResourceError.duplicate_email(request.email)

        logger.info("Created user %s (%s)", saved.id, saved.email)
        return self._mapper.to_response(saved)

    def update_user(self, user_id: Optional[int], request: Optional[UpdateUserRequest]) -> UserResponse:
        if user_id is None:
            raise InvalidArgumentError("User ID cannot be null")
        if request is None:
            raise InvalidArgumentError("Update request cannot be null")

        existing = self._require_user(user_id)

        if request.email is not None and normalize_email(request.email) != existing.normalized_email:
            if self._repository.exists_by_email(request.email):
                logger.warning("User %s cannot take email %s: already in use", user_id, request.email)
                raise DuplicateResourceError(
                    f"Email {request.email} is already in use",
                    resource_type="User",
                    conflict_field="email",
                    conflict_value=request.email,
                )

        updated = self._mapper.apply_update(request, existing)
        if request.password is not None:
            updated = replace(updated, password_hash=_placeholder_password_hash(request.password))

        saved = self._repository.save_if_email_available(updated)
        if saved is None:
            raise DuplicateResourceError(
                f"Email {updated.email} is already in use",
                resource_type="User",
                conflict_field="email",
                conflict_value=updated.email,
            )

        logger.info("Updated user %s (fields: %s)", user_id, ", ".join(request.updated_fields()) or "none")
        return self._mapper.to_response(saved)

    def delete_user(self, user_id: Optional[int]) -> None:
        if user_id is None:
            raise InvalidArgumentError("User ID cannot be null")
        if not self._repository.exists_by_id(user_id):
            raise ResourceNotFoundError.user_not_found(user_id)
        if not self._repository.delete_by_id(user_id):
            # Removed by a concurrent caller after the existence check.
            raise ResourceNotFoundError.user_not_found(user_id)
        logger.info("Deleted user %s", user_id)

    def activate_user(self, user_id: Optional[int]) -> UserResponse:
        return self._set_active(user_id, True)

    def deactivate_user(self, user_id: Optional[int]) -> UserResponse:
        return self._set_active(user_id, False)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def find_by_id(self, user_id: Optional[int]) -> Optional[UserResponse]:
        if user_id is None:
            return None
        record = self._repository.find_by_id(user_id)
        return self._mapper.to_response(record) if record is not None else None

    def find_by_email(self, email: Optional[str]) -> Optional[UserResponse]:
        if _is_blank(email):
            return None
        record = self._repository.find_by_email(email)
        return self._mapper.to_response(record) if record is not None else None

    def find_all(self, page: Optional[int] = None, size: Optional[int] = None) -> List[UserResponse]:
        """Return every user, or one page when ``page``/``size`` are given.

        ``page`` below zero is treated as the first page and a non-positive
        ``size`` falls back to the default page size.
        """

        if page is None and size is None:
            records = self._repository.find_all()
        else:
            page = max(page or 0, 0)
            size = size if size is not None and size > 0 else DEFAULT_PAGE_LIMIT
            records = self._repository.find_all(page * size, size)
        return self._to_responses(records)

    def find_active(self) -> List[UserResponse]:
        return self._to_responses(self._repository.find_by_active_true())

    def find_inactive(self) -> List[UserResponse]:
        return self._to_responses(self._repository.find_by_active_false())

    def find_created_after(self, timestamp: Optional[datetime]) -> List[UserResponse]:
        if timestamp is None:
            return []
        return self._to_responses(self._repository.find_by_created_at_after(timestamp))

    def exists_by_id(self, user_id: Optional[int]) -> bool:
        if user_id is None:
            return False
        return self._repository.exists_by_id(user_id)

    def exists_by_email(self, email: Optional[str]) -> bool:
        if _is_blank(email):
            return False
        return self._repository.exists_by_email(email)

    def count_users(self) -> int:
        return self._repository.count()

    def search_by_name(self, term: Optional[str]) -> List[UserResponse]:
        if _is_blank(term):
            return []
        return self._to_responses(self._repository.find_by_name_containing(term))

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _require_user(self, user_id: int) -> UserRecord:
        record = self._repository.find_by_id(user_id)
        if record is None:
            raise ResourceNotFoundError.user_not_found(user_id)
        return record

    def _set_active(self, user_id: Optional[int], active: bool) -> UserResponse:
        if user_id is None:
            raise InvalidArgumentError("User ID cannot be null")
        record = self._require_user(user_id)
        if record.active == active:
            return self._mapper.to_response(record)

        saved = self._repository.save(record.activated() if active else record.deactivated())
        logger.info("User %s %s", user_id, "activated" if active else "deactivated")
        return self._mapper.to_response(saved)

    def _to_responses(self, records: List[UserRecord]) -> List[UserResponse]:
        return [self._mapper.to_response(record) for record in records]


__all__ = ["UserService"]
