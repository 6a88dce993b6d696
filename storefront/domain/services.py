from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Iterable, Iterator, Protocol

from .errors import CapacityExceededError, InvalidReservationError

OPENING_HOUR = 11
CLOSING_HOUR = 22
TABLE_CAPACITY = 6
TOTAL_TABLES = 10
SLOT_MINUTES = 30
BOOKING_WINDOW_DAYS = 30
MAX_GUESTS = 60


@dataclass(frozen=True)
class SeatingPolicy:
    opening_hour: int = OPENING_HOUR
    closing_hour: int = CLOSING_HOUR
    table_capacity: int = TABLE_CAPACITY
    total_tables: int = TOTAL_TABLES
    slot_minutes: int = SLOT_MINUTES
    booking_window_days: int = BOOKING_WINDOW_DAYS
    max_guests: int = MAX_GUESTS

    @property
    def slots_per_day(self) -> int:
        minutes = max(self.closing_hour - self.opening_hour, 0) * 60
        return -(-minutes // self.slot_minutes)


DEFAULT_POLICY = SeatingPolicy()


class BookedSlot(Protocol):
    slot_time: time
    tables_booked: int


@dataclass(frozen=True)
class DaySlots:
    """Bookable slot start times for one day. Iterating again starts over."""

    day: date
    policy: SeatingPolicy = DEFAULT_POLICY

    def __iter__(self) -> Iterator[datetime]:
        midnight = datetime.combine(self.day, time())
        current = midnight + timedelta(hours=self.policy.opening_hour)
        closing = midnight + timedelta(hours=self.policy.closing_hour)
        step = timedelta(minutes=self.policy.slot_minutes)
        while current < closing:
            yield current
            current += step

    def __len__(self) -> int:
        return self.policy.slots_per_day


@dataclass(frozen=True)
class SlotAvailability:
    starts_at: datetime
    booked_tables: int
    remaining_tables: int
    available: bool


@dataclass(frozen=True)
class SlotSnapshot:
    total_tables: int
    booked_tables: int


def generate_slots(day: date, policy: SeatingPolicy = DEFAULT_POLICY) -> DaySlots:
    return DaySlots(day=day, policy=policy)


def is_bookable_slot(slot_time: time, policy: SeatingPolicy = DEFAULT_POLICY) -> bool:
    # Slots are wall-clock times in the restaurant zone.
    if slot_time.tzinfo is not None:
        return False
    if slot_time.second or slot_time.microsecond:
        return False
    minutes = slot_time.hour * 60 + slot_time.minute
    opening = policy.opening_hour * 60
    closing = policy.closing_hour * 60
    return opening <= minutes < closing and (minutes - opening) % policy.slot_minutes == 0


def tables_needed(guests: int, *, table_capacity: int = TABLE_CAPACITY) -> int:
    if guests < 1:
        raise InvalidReservationError("guests must be at least 1")
    return (guests + table_capacity - 1) // table_capacity


def booked_tables_at(reservations: Iterable[BookedSlot], slot_time: time) -> int:
    return sum(r.tables_booked for r in reservations if r.slot_time == slot_time)


def annotate_availability(
    reservations: Iterable[BookedSlot],
    slots: Iterable[datetime],
    *,
    total_tables: int = TOTAL_TABLES,
) -> list[SlotAvailability]:
    """
    Sum tables booked per exact time of day and mark each slot available while
    fewer than `total_tables` are taken. Reservations are assumed to share the
    slots' date.
    """
    booked: dict[time, int] = {}
    for reservation in reservations:
        booked[reservation.slot_time] = booked.get(reservation.slot_time, 0) + reservation.tables_booked

    result: list[SlotAvailability] = []
    for starts_at in slots:
        taken = booked.get(starts_at.time(), 0)
        result.append(
            SlotAvailability(
                starts_at=starts_at,
                booked_tables=taken,
                remaining_tables=max(total_tables - taken, 0),
                available=taken < total_tables,
            )
        )
    return result


def validate_reservation(snapshot: SlotSnapshot, *, guests: int, table_capacity: int = TABLE_CAPACITY) -> int:
    """
    Pure capacity check for a party against the tables already booked in a slot.
    Returns the number of tables the party needs. Raises domain errors otherwise.
    """
    needed = tables_needed(guests, table_capacity=table_capacity)
    if snapshot.booked_tables + needed > snapshot.total_tables:
        raise CapacityExceededError("all tables are fully booked for this slot")
    return needed


def validate_request(
    day: date,
    slot_time: time,
    *,
    guests: int,
    today: date,
    policy: SeatingPolicy = DEFAULT_POLICY,
) -> None:
    last_day = today + timedelta(days=policy.booking_window_days)
    if not today <= day <= last_day:
        raise InvalidReservationError(f"date must be between {today.isoformat()} and {last_day.isoformat()}")
    if not is_bookable_slot(slot_time, policy):
        raise InvalidReservationError("time is not a bookable slot")
    if not 1 <= guests <= policy.max_guests:
        raise InvalidReservationError(f"guests must be between 1 and {policy.max_guests}")
