import datetime as dt
from typing import List, Optional

from pydantic import BaseModel, field_serializer

from .domain.services import SeatingPolicy, SlotAvailability
from .models import Reservation
from .utils.time import format_slot


class SlotAvailabilityRead(BaseModel):
    time: dt.time
    starts_at: dt.datetime
    booked_tables: int
    remaining_tables: int
    available: bool

    @field_serializer("time")
    def _ser_time(self, value: dt.time) -> str:
        return format_slot(value)

    @classmethod
    def from_domain(cls, slot: SlotAvailability) -> "SlotAvailabilityRead":
        return cls(
            time=slot.starts_at.time(),
            starts_at=slot.starts_at,
            booked_tables=slot.booked_tables,
            remaining_tables=slot.remaining_tables,
            available=slot.available,
        )


class DayAvailabilityRead(BaseModel):
    date: dt.date
    total_tables: int
    table_capacity: int
    slots: List[SlotAvailabilityRead]

    @classmethod
    def build(cls, *, day: dt.date, policy: SeatingPolicy, slots: List[SlotAvailability]) -> "DayAvailabilityRead":
        return cls(
            date=day,
            total_tables=policy.total_tables,
            table_capacity=policy.table_capacity,
            slots=[SlotAvailabilityRead.from_domain(slot) for slot in slots],
        )


class ReservationCreate(BaseModel):
    date: dt.date
    time: Optional[dt.time] = None
    guests: int = 2


class ReservationRead(BaseModel):
    reservation_id: int
    user_id: str
    date: dt.date
    time: dt.time
    guests: int
    tables_booked: int
    created_at: dt.datetime

    @field_serializer("time")
    def _ser_time(self, value: dt.time) -> str:
        return format_slot(value)

    @classmethod
    def from_db(cls, *, reservation: Reservation) -> "ReservationRead":
        return cls(
            reservation_id=reservation.id,
            user_id=reservation.user_id,
            date=reservation.booking_date,
            time=reservation.slot_time,
            guests=reservation.guests,
            tables_booked=reservation.tables_booked,
            created_at=reservation.created_at,
        )
