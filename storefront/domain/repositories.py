from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time
from typing import Protocol

from ..models import Reservation, UserRole


@dataclass(frozen=True)
class CurrentUser:
    id: str
    role: UserRole


class IdentityProvider(Protocol):
    async def get_current_user(self) -> CurrentUser | None: ...


class ReservationRepository(Protocol):
    async def list_reservations(
        self,
        *,
        owner_id: str | None = None,
        date_from: date | None = None,
        on_date: date | None = None,
    ) -> list[Reservation]: ...

    async def sum_tables_booked(self, day: date, slot_time: time) -> int: ...

    async def create(
        self,
        *,
        user_id: str,
        day: date,
        slot_time: time,
        guests: int,
        tables_booked: int,
    ) -> Reservation: ...

    async def get(self, reservation_id: int) -> Reservation | None: ...

    async def delete(self, reservation: Reservation) -> None: ...
