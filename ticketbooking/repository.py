"""Thread-safe in-memory storage for user records."""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from .exceptions import InvalidArgumentError
from .models import UserRecord, normalize_email

logger = logging.getLogger("ticketbooking.repository")

DEFAULT_PAGE_LIMIT = 10
_INITIAL_ID = 1
_MIN_TIMESTAMP_STEP = timedelta(microseconds=1)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_aware(moment: datetime) -> datetime:
    # Naive timestamps are read as UTC.
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def _is_valid_id(user_id: object) -> bool:
    return isinstance(user_id, int) and not isinstance(user_id, bool) and user_id > 0


class InMemoryUserRepository:
    """Store user records in a lock-guarded dictionary keyed by id.

    Every read and write happens while holding a single re-entrant lock, so a
    reader never observes a half-applied save and concurrent creations never
    receive the same id. Records are frozen dataclasses; callers can only
    change stored state by saving a new value.

    Absence is reported with ``None``, ``False`` or an empty list. The only
    error this class raises is :class:`InvalidArgumentError` for a missing or
    malformed record.
    """

    def __init__(self, *, clock=_utcnow) -> None:
        self._users: Dict[int, UserRecord] = {}
        self._next_id = _INITIAL_ID
        self._lock = threading.RLock()
        self._clock = clock

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    def save(self, record: Optional[UserRecord]) -> UserRecord:
        """Create ``record`` when it has no id, otherwise overwrite it."""

        self._validate_record(record)
        with self._lock:
            return self._store(record)

    def save_if_email_available(self, record: Optional[UserRecord]) -> Optional[UserRecord]:
        """Save ``record`` unless another record already holds its email.

        The uniqueness check and the write happen under the same lock hold.
        Returns ``None`` without writing when the email is taken.
        """

        self._validate_record(record)
        key = record.normalized_email
        with self._lock:
            if key:
                for other in self._users.values():
                    if other.id != record.id and other.normalized_email == key:
                        logger.debug("Email %s is already held by user %s", key, other.id)
                        return None
            return self._store(record)

    def delete_by_id(self, user_id: Optional[int]) -> bool:
        if not _is_valid_id(user_id):
            return False
        with self._lock:
            removed = self._users.pop(user_id, None)
        if removed is None:
            logger.debug("No user with ID %s to delete", user_id)
            return False
        logger.debug("Deleted user %s", user_id)
        return True

    def delete(self, record: Optional[UserRecord]) -> bool:
        if record is None or record.id is None:
            return False
        return self.delete_by_id(record.id)

    def delete_all(self) -> None:
        with self._lock:
            removed = len(self._users)
            self._users.clear()
            self._next_id = _INITIAL_ID
        logger.info("Removed %s user(s) and reset the id sequence", removed)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def find_by_id(self, user_id: Optional[int]) -> Optional[UserRecord]:
        if not _is_valid_id(user_id):
            return None
        with self._lock:
            return self._users.get(user_id)

    def find_by_email(self, email: Optional[str]) -> Optional[UserRecord]:
        if email is None or not email.strip():
            return None
        key = normalize_email(email)
        with self._lock:
            for record in self._users.values():
                if record.normalized_email == key:
                    return record
        return None

    def find_all(self, offset: Optional[int] = None, limit: Optional[int] = None) -> List[UserRecord]:
        """Return records ordered by id, optionally sliced by ``offset``/``limit``.

        A negative offset is treated as zero and a non-positive limit falls
        back to ``DEFAULT_PAGE_LIMIT``.
        """

        records = self._snapshot()
        if offset is None and limit is None:
            return records
        start = max(offset or 0, 0)
        count = limit if limit is not None and limit > 0 else DEFAULT_PAGE_LIMIT
        return records[start:start + count]

    def exists_by_id(self, user_id: Optional[int]) -> bool:
        if not _is_valid_id(user_id):
            return False
        with self._lock:
            return user_id in self._users

    def exists_by_email(self, email: Optional[str]) -> bool:
        return self.find_by_email(email) is not None

    def count(self) -> int:
        with self._lock:
            return len(self._users)

    def find_by_name_containing(self, term: Optional[str]) -> List[UserRecord]:
        if term is None or not term.strip():
            return []
        needle = term.strip().lower()
        return [
            record
            for record in self._snapshot()
            if needle in (record.first_name or "").lower() or needle in (record.last_name or "").lower()
        ]

    def find_by_active_true(self) -> List[UserRecord]:
        return [record for record in self._snapshot() if record.active]

    def find_by_active_false(self) -> List[UserRecord]:
        return [record for record in self._snapshot() if not record.active]

    def find_by_created_at_after(self, timestamp: Optional[datetime]) -> List[UserRecord]:
        """Return records created strictly after ``timestamp``, ordered by id."""

        if timestamp is None:
            return []
        threshold = _as_aware(timestamp)
        return [
            record
            for record in self._snapshot()
            if record.created_at is not None and _as_aware(record.created_at) > threshold
        ]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _validate_record(record: Optional[UserRecord]) -> None:
        if record is None:
            raise InvalidArgumentError("User cannot be null")
        if record.id is not None and not _is_valid_id(record.id):
            raise InvalidArgumentError(f"User ID must be a positive integer, got {record.id!r}")

    def _snapshot(self) -> List[UserRecord]:
        with self._lock:
            records = list(self._users.values())
        return sorted(records, key=lambda record: record.id)

    def _store(self, record: UserRecord) -> UserRecord:
        # Caller must hold self._lock.
        now = self._clock()
        if record.id is None:
            user_id = self._next_id
            self._next_id += 1
            stored = replace(record, id=user_id, created_at=now, updated_at=now)
            logger.debug("Created user %s (%s)", user_id, record.email)
        else:
            existing = self._users.get(record.id)
            if existing is not None:
                updated_at = now
                if existing.updated_at is not None and updated_at <= existing.updated_at:
                    updated_at = existing.updated_at + _MIN_TIMESTAMP_STEP
                stored = replace(record, created_at=existing.created_at, updated_at=updated_at)
                logger.debug("Updated user %s", record.id)
            else:
                created_at = _as_aware(record.created_at) if record.created_at else now
                stored = replace(record, created_at=created_at, updated_at=max(now, created_at))
                if record.id >= self._next_id:
                    self._next_id = record.id + 1
                logger.debug("Inserted user %s with caller-supplied ID", record.id)
        self._users[stored.id] = stored
        return stored


__all__ = ["DEFAULT_PAGE_LIMIT", "InMemoryUserRepository"]
