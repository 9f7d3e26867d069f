from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from ticketbooking.exceptions import InvalidArgumentError
from ticketbooking.models import UserRecord
from ticketbooking.repository import InMemoryUserRepository


class _FrozenClock:
    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


def _record(email: str = "john@example.com", first: str = "John", last: str = "Doe", **kwargs) -> UserRecord:
    return UserRecord(email=email, first_name=first, last_name=last, **kwargs)


@pytest.fixture()
def clock() -> _FrozenClock:
    return _FrozenClock(datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture()
def repository(clock: _FrozenClock) -> InMemoryUserRepository:
    return InMemoryUserRepository(clock=clock)


def test_save_assigns_sequential_ids_and_timestamps(repository: InMemoryUserRepository) -> None:
    first = repository.save(_record("a@example.com"))
    second = repository.save(_record("b@example.com"))

    assert first.id == 1
    assert second.id == 2
    assert first.created_at == first.updated_at
    assert first.active is True


def test_save_none_is_rejected(repository: InMemoryUserRepository) -> None:
    with pytest.raises(InvalidArgumentError):
        repository.save(None)


def test_update_refreshes_updated_at_only(repository: InMemoryUserRepository, clock: _FrozenClock) -> None:
    created = repository.save(_record())
    clock.advance(seconds=5)

    updated = repository.save(replace(created, first_name="Johnny", created_at=None))

    assert updated.id == created.id
    assert updated.created_at == created.created_at
    assert updated.updated_at > created.updated_at
    assert repository.find_by_id(created.id).first_name == "Johnny"


def test_update_timestamp_strictly_increases_when_clock_stalls(repository: InMemoryUserRepository) -> None:
    created = repository.save(_record())
    first = repository.save(replace(created, phone_number="+123456"))
    second = repository.save(replace(first, phone_number="+654321"))

    assert created.updated_at < first.updated_at < second.updated_at
    assert second.created_at == created.created_at


def test_save_with_unknown_id_never_collides_with_generated_ids(repository: InMemoryUserRepository) -> None:
    inserted = repository.save(_record("manual@example.com", id=5))
    generated = repository.save(_record("auto@example.com"))

    assert inserted.id == 5
    assert inserted.created_at is not None
    assert generated.id == 6


def test_returned_records_are_immutable(repository: InMemoryUserRepository) -> None:
    saved = repository.save(_record())
    with pytest.raises(AttributeError):
        saved.first_name = "Mallory"  # type: ignore[misc]

    changed = replace(saved, first_name="Mallory")
    assert changed.first_name == "Mallory"
    assert repository.find_by_id(saved.id).first_name == "John"


def test_find_by_id_handles_missing_and_invalid_ids(repository: InMemoryUserRepository) -> None:
    repository.save(_record())

    assert repository.find_by_id(None) is None
    assert repository.find_by_id(0) is None
    assert repository.find_by_id(-3) is None
    assert repository.find_by_id(42) is None


def test_find_by_email_is_case_insensitive(repository: InMemoryUserRepository) -> None:
    saved = repository.save(_record("A@B.com"))

    assert repository.find_by_email("a@b.com") == saved
    assert repository.find_by_email("  A@b.COM ") == saved
    assert repository.exists_by_email("a@B.com")
    assert repository.find_by_email("") is None
    assert repository.find_by_email("   ") is None
    assert repository.find_by_email(None) is None
    assert not repository.exists_by_email("missing@b.com")


def test_find_all_is_ordered_by_id(repository: InMemoryUserRepository) -> None:
    for index in range(5):
        repository.save(_record(f"user{index}@example.com"))

    assert [record.id for record in repository.find_all()] == [1, 2, 3, 4, 5]


def test_find_all_paginates_contiguous_slices(repository: InMemoryUserRepository) -> None:
    for index in range(25):
        repository.save(_record(f"user{index}@example.com"))
    everything = repository.find_all()

    page = repository.find_all(5, 7)
    assert page == everything[5:12]

    assert repository.find_all(-4, 3) == everything[0:3]
    assert len(repository.find_all(0, 0)) == 10
    assert len(repository.find_all(0, -1)) == 10
    assert repository.find_all(24, 10) == everything[24:]
    assert repository.find_all(100, 10) == []


def test_delete_by_id_reports_presence(repository: InMemoryUserRepository) -> None:
    saved = repository.save(_record())

    assert repository.delete_by_id(saved.id) is True
    assert repository.find_by_id(saved.id) is None
    assert repository.delete_by_id(saved.id) is False
    assert repository.delete_by_id(None) is False


def test_delete_record_delegates_to_id(repository: InMemoryUserRepository) -> None:
    saved = repository.save(_record())

    assert repository.delete(None) is False
    assert repository.delete(_record()) is False
    assert repository.delete(saved) is True
    assert repository.count() == 0


def test_exists_and_count(repository: InMemoryUserRepository) -> None:
    saved = repository.save(_record())
    repository.save(_record("second@example.com"))

    assert repository.exists_by_id(saved.id)
    assert not repository.exists_by_id(None)
    assert not repository.exists_by_id(99)
    assert repository.count() == 2


def test_find_by_name_containing(repository: InMemoryUserRepository) -> None:
    john = repository.save(_record("john@example.com", "John", "Smith"))
    alice = repository.save(_record("alice@example.com", "Alice", "Johnson"))
    repository.save(_record("bob@example.com", "Bob", "Marley"))

    assert repository.find_by_name_containing("jo") == [john, alice]
    assert repository.find_by_name_containing("  SMITH ") == [john]
    assert repository.find_by_name_containing("") == []
    assert repository.find_by_name_containing("   ") == []
    assert repository.find_by_name_containing(None) == []


def test_active_filters(repository: InMemoryUserRepository) -> None:
    active = repository.save(_record("a@example.com"))
    inactive = repository.save(_record("b@example.com", active=False))

    assert repository.find_by_active_true() == [active]
    assert repository.find_by_active_false() == [inactive]


def test_find_by_created_at_after_is_strict(repository: InMemoryUserRepository, clock: _FrozenClock) -> None:
    early = repository.save(_record("early@example.com"))
    clock.advance(minutes=1)
    late = repository.save(_record("late@example.com"))

    assert repository.find_by_created_at_after(early.created_at) == [late]
    assert repository.find_by_created_at_after(late.created_at) == []
    assert repository.find_by_created_at_after(None) == []


def test_find_by_created_at_after_reads_naive_timestamps_as_utc(
    repository: InMemoryUserRepository, clock: _FrozenClock
) -> None:
    early = repository.save(_record("early@example.com"))
    clock.advance(minutes=1)
    late = repository.save(_record("late@example.com"))

    assert repository.find_by_created_at_after(datetime(2000, 1, 1)) == [early, late]
    assert repository.find_by_created_at_after(datetime(2024, 1, 1, 12, 0)) == [late]
    assert repository.find_by_created_at_after(datetime(2024, 1, 1, 12, 1)) == []


def test_save_with_naive_created_at_stores_utc(repository: InMemoryUserRepository) -> None:
    inserted = repository.save(_record(id=7, created_at=datetime(2023, 6, 1, 8, 30)))

    assert inserted.created_at == datetime(2023, 6, 1, 8, 30, tzinfo=timezone.utc)
    assert inserted.updated_at == datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
    assert repository.find_by_created_at_after(datetime(2023, 1, 1)) == [inserted]


def test_delete_all_resets_sequence(repository: InMemoryUserRepository) -> None:
    repository.save(_record("a@example.com"))
    repository.save(_record("b@example.com"))

    repository.delete_all()

    assert repository.count() == 0
    assert repository.save(_record("c@example.com")).id == 1


def test_save_if_email_available_rejects_taken_email(repository: InMemoryUserRepository) -> None:
    original = repository.save(_record("taken@example.com"))

    assert repository.save_if_email_available(_record("TAKEN@example.com")) is None
    assert repository.count() == 1

    # The owner of an email may keep it.
    renamed = repository.save_if_email_available(replace(original, first_name="Jon"))
    assert renamed is not None
    assert renamed.first_name == "Jon"


def test_concurrent_creations_receive_distinct_ids(repository: InMemoryUserRepository) -> None:
    total = 200

    def create(index: int) -> int:
        return repository.save(_record(f"user{index}@example.com")).id

    with ThreadPoolExecutor(max_workers=8) as pool:
        ids = list(pool.map(create, range(total)))

    assert sorted(ids) == list(range(1, total + 1))
    assert repository.count() == total


def test_concurrent_unique_email_saves_admit_one_winner(repository: InMemoryUserRepository) -> None:
    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(lambda _: repository.save_if_email_available(_record("same@example.com")), range(50)))

    assert sum(result is not None for result in results) == 1
    assert repository.count() == 1
