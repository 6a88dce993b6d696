from datetime import date, datetime, time, timedelta
from typing import List, Optional

import pytest
from storefront.domain.errors import (
    AuthenticationRequiredError,
    CapacityExceededError,
    DeleteNotAllowedError,
    InvalidReservationError,
    ReservationNotFoundError,
    SelectionRequiredError,
    StoreError,
)
from storefront.domain.repositories import CurrentUser
from storefront.models import Reservation, UserRole
from storefront.usecases import availability as availability_uc
from storefront.usecases import reservations as uc

TODAY = date(2030, 5, 1)
DINNER = time(18, 0)

OWNER = CurrentUser(id="user-1", role=UserRole.CUSTOMER)
STRANGER = CurrentUser(id="user-2", role=UserRole.CUSTOMER)
EMPLOYEE = CurrentUser(id="staff-1", role=UserRole.EMPLOYEE)
ADMIN = CurrentUser(id="admin-1", role=UserRole.ADMIN)


def _reservation(
    reservation_id: int,
    *,
    user_id: str = "someone",
    day: date = TODAY,
    slot_time: time = DINNER,
    guests: int = 6,
    tables_booked: int = 1,
) -> Reservation:
    return Reservation(
        id=reservation_id,
        user_id=user_id,
        booking_date=day,
        slot_time=slot_time,
        guests=guests,
        tables_booked=tables_booked,
        created_at=datetime(2030, 4, 1, 12, 0),
    )


class FakeIdentity:
    def __init__(self, user: Optional[CurrentUser]) -> None:
        self.user = user
        self.calls = 0

    async def get_current_user(self) -> Optional[CurrentUser]:
        self.calls += 1
        return self.user


class FakeResRepo:
    def __init__(self, reservations: Optional[List[Reservation]] = None, *, fail_writes: bool = False) -> None:
        self.reservations = list(reservations or [])
        self.fail_writes = fail_writes
        self.created: List[Reservation] = []
        self.deleted: List[Reservation] = []
        self._next_id = 1000

    async def list_reservations(
        self,
        *,
        owner_id: Optional[str] = None,
        date_from: Optional[date] = None,
        on_date: Optional[date] = None,
    ) -> List[Reservation]:
        rows = [
            r
            for r in self.reservations
            if (owner_id is None or r.user_id == owner_id)
            and (date_from is None or r.booking_date >= date_from)
            and (on_date is None or r.booking_date == on_date)
        ]
        return sorted(rows, key=lambda r: (r.booking_date, r.slot_time, r.id))

    async def sum_tables_booked(self, day: date, slot_time: time) -> int:
        return sum(r.tables_booked for r in self.reservations if r.booking_date == day and r.slot_time == slot_time)

    async def create(self, *, user_id: str, day: date, slot_time: time, guests: int, tables_booked: int) -> Reservation:
        if self.fail_writes:
            raise StoreError("insert failed")
        self._next_id += 1
        reservation = _reservation(
            self._next_id,
            user_id=user_id,
            day=day,
            slot_time=slot_time,
            guests=guests,
            tables_booked=tables_booked,
        )
        self.reservations.append(reservation)
        self.created.append(reservation)
        return reservation

    async def get(self, reservation_id: int) -> Optional[Reservation]:
        return next((r for r in self.reservations if r.id == reservation_id), None)

    async def delete(self, reservation: Reservation) -> None:
        if self.fail_writes:
            raise StoreError("delete failed")
        self.reservations.remove(reservation)
        self.deleted.append(reservation)


async def _create(repo: FakeResRepo, identity: FakeIdentity, **overrides: object):
    kwargs: dict = {"day": TODAY, "slot_time": DINNER, "guests": 2, "today": TODAY}
    kwargs.update(overrides)
    return await uc.create_reservation(repo, identity, **kwargs)


async def _booked_at(repo: FakeResRepo, slot_time: time) -> tuple[int, bool]:
    slots = await availability_uc.list_day_availability(repo, day=TODAY)
    match = next(s for s in slots if s.starts_at.time() == slot_time)
    return match.booked_tables, match.available


@pytest.mark.asyncio
async def test_create_requires_slot_before_identity() -> None:
    repo = FakeResRepo()
    identity = FakeIdentity(None)
    with pytest.raises(SelectionRequiredError):
        await _create(repo, identity, slot_time=None)
    assert identity.calls == 0
    assert repo.created == []


@pytest.mark.asyncio
async def test_create_requires_identity() -> None:
    repo = FakeResRepo()
    with pytest.raises(AuthenticationRequiredError):
        await _create(repo, FakeIdentity(None))
    assert repo.created == []


@pytest.mark.asyncio
async def test_create_rejects_when_capacity_exceeded() -> None:
    repo = FakeResRepo([_reservation(1, tables_booked=9, guests=54)])
    with pytest.raises(CapacityExceededError):
        await _create(repo, FakeIdentity(OWNER), guests=7)
    assert repo.created == []
    assert await repo.sum_tables_booked(TODAY, DINNER) == 9


@pytest.mark.asyncio
async def test_create_fills_last_table() -> None:
    repo = FakeResRepo([_reservation(1, tables_booked=9, guests=54)])
    reservation, user = await _create(repo, FakeIdentity(OWNER), guests=6)

    assert user == OWNER
    assert reservation.tables_booked == 1
    assert reservation.user_id == OWNER.id
    assert reservation.booking_date == TODAY
    assert reservation.slot_time == DINNER
    assert await _booked_at(repo, DINNER) == (10, False)

    with pytest.raises(CapacityExceededError):
        await _create(repo, FakeIdentity(STRANGER), guests=1)


@pytest.mark.asyncio
async def test_create_rechecks_bookings_made_after_display() -> None:
    repo = FakeResRepo([_reservation(1, tables_booked=8)])
    assert await _booked_at(repo, DINNER) == (8, True)

    repo.reservations.append(_reservation(2, tables_booked=2))

    with pytest.raises(CapacityExceededError):
        await _create(repo, FakeIdentity(OWNER), guests=1)
    assert repo.created == []


@pytest.mark.asyncio
async def test_create_propagates_store_error() -> None:
    repo = FakeResRepo(fail_writes=True)
    with pytest.raises(StoreError):
        await _create(repo, FakeIdentity(OWNER))
    assert repo.reservations == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides",
    [
        {"day": TODAY - timedelta(days=1)},
        {"day": TODAY + timedelta(days=31)},
        {"slot_time": time(18, 15)},
        {"slot_time": time(22, 0)},
        {"slot_time": time(10, 30)},
        {"guests": 61},
    ],
)
async def test_create_rejects_invalid_request(overrides: dict) -> None:
    repo = FakeResRepo()
    with pytest.raises(InvalidReservationError):
        await _create(repo, FakeIdentity(OWNER), **overrides)
    assert repo.created == []


@pytest.mark.asyncio
async def test_list_upcoming_returns_own_future_reservations_in_order() -> None:
    repo = FakeResRepo(
        [
            _reservation(1, user_id=OWNER.id, day=TODAY + timedelta(days=2), slot_time=time(12, 0)),
            _reservation(2, user_id=OWNER.id, day=TODAY - timedelta(days=1)),
            _reservation(3, user_id=STRANGER.id),
            _reservation(4, user_id=OWNER.id, day=TODAY, slot_time=time(19, 30)),
        ]
    )
    rows = await uc.list_upcoming_reservations(repo, FakeIdentity(OWNER), today=TODAY)
    assert [r.id for r in rows] == [4, 1]


@pytest.mark.asyncio
async def test_list_upcoming_requires_identity() -> None:
    with pytest.raises(AuthenticationRequiredError):
        await uc.list_upcoming_reservations(FakeResRepo(), FakeIdentity(None), today=TODAY)


@pytest.mark.asyncio
async def test_list_for_day_returns_everyone_on_that_date() -> None:
    repo = FakeResRepo(
        [
            _reservation(1, user_id=OWNER.id, slot_time=time(20, 0)),
            _reservation(2, user_id=STRANGER.id, slot_time=time(11, 30)),
            _reservation(3, day=TODAY + timedelta(days=1)),
        ]
    )
    rows = await uc.list_reservations_for_day(repo, day=TODAY)
    assert [r.id for r in rows] == [2, 1]


@pytest.mark.asyncio
async def test_owner_delete_releases_exactly_its_tables() -> None:
    mine = _reservation(1, user_id=OWNER.id, guests=13, tables_booked=3)
    repo = FakeResRepo([mine, _reservation(2, tables_booked=4), _reservation(3, slot_time=time(18, 30), tables_booked=2)])
    assert await _booked_at(repo, DINNER) == (7, True)

    deleted, user = await uc.delete_reservation(repo, FakeIdentity(OWNER), reservation_id=1)

    assert deleted is mine
    assert user == OWNER
    assert await _booked_at(repo, DINNER) == (4, True)
    assert await _booked_at(repo, time(18, 30)) == (2, True)


@pytest.mark.asyncio
async def test_admin_may_delete_any_reservation() -> None:
    repo = FakeResRepo([_reservation(1, user_id=OWNER.id)])
    await uc.delete_reservation(repo, FakeIdentity(ADMIN), reservation_id=1)
    assert repo.reservations == []


@pytest.mark.asyncio
@pytest.mark.parametrize("caller", [STRANGER, EMPLOYEE])
async def test_non_owner_delete_is_forbidden(caller: CurrentUser) -> None:
    repo = FakeResRepo([_reservation(1, user_id=OWNER.id)])
    with pytest.raises(DeleteNotAllowedError):
        await uc.delete_reservation(repo, FakeIdentity(caller), reservation_id=1)
    assert repo.deleted == []


@pytest.mark.asyncio
async def test_delete_missing_reservation() -> None:
    with pytest.raises(ReservationNotFoundError):
        await uc.delete_reservation(FakeResRepo(), FakeIdentity(OWNER), reservation_id=404)


@pytest.mark.asyncio
async def test_delete_requires_identity() -> None:
    repo = FakeResRepo([_reservation(1, user_id=OWNER.id)])
    with pytest.raises(AuthenticationRequiredError):
        await uc.delete_reservation(repo, FakeIdentity(None), reservation_id=1)
    assert len(repo.reservations) == 1


@pytest.mark.asyncio
async def test_delete_store_failure_leaves_list_unchanged() -> None:
    repo = FakeResRepo([_reservation(1, user_id=OWNER.id)], fail_writes=True)
    with pytest.raises(StoreError):
        await uc.delete_reservation(repo, FakeIdentity(OWNER), reservation_id=1)
    assert [r.id for r in repo.reservations] == [1]
