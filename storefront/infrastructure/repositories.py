from __future__ import annotations

import functools
from datetime import date, time
from typing import Any, Awaitable, Callable, List, Optional, TypeVar

from sqlalchemy import Select, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.errors import StoreError
from ..domain.repositories import ReservationRepository
from ..models import Reservation
from ..utils.time import utc_naive_now

T = TypeVar("T")


def _store_errors(method: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
    @functools.wraps(method)
    async def wrapper(*args: Any, **kwargs: Any) -> T:
        try:
            return await method(*args, **kwargs)
        except SQLAlchemyError as exc:
            raise StoreError(f"reservation store failed during {method.__name__}") from exc

    return wrapper


class SqlAlchemyReservationRepository(ReservationRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    @_store_errors
    async def list_reservations(
        self,
        *,
        owner_id: Optional[str] = None,
        date_from: Optional[date] = None,
        on_date: Optional[date] = None,
    ) -> List[Reservation]:
        stmt: Select[tuple[Reservation]] = select(Reservation)
        if owner_id is not None:
            stmt = stmt.where(Reservation.user_id == owner_id)
        if date_from is not None:
            stmt = stmt.where(Reservation.booking_date >= date_from)
        if on_date is not None:
            stmt = stmt.where(Reservation.booking_date == on_date)
        stmt = stmt.order_by(Reservation.booking_date.asc(), Reservation.slot_time.asc(), Reservation.id.asc())
        rows = await self.session.scalars(stmt)
        return list(rows.all())

    @_store_errors
    async def sum_tables_booked(self, day: date, slot_time: time) -> int:
        stmt = select(func.coalesce(func.sum(Reservation.tables_booked), 0)).where(
            Reservation.booking_date == day,
            Reservation.slot_time == slot_time,
        )
        return int(await self.session.scalar(stmt) or 0)

    @_store_errors
    async def create(
        self,
        *,
        user_id: str,
        day: date,
        slot_time: time,
        guests: int,
        tables_booked: int,
    ) -> Reservation:
        reservation = Reservation(
            user_id=user_id,
            booking_date=day,
            slot_time=slot_time,
            guests=guests,
            tables_booked=tables_booked,
            created_at=utc_naive_now(),
        )
        self.session.add(reservation)
        await self.session.flush()
        return reservation

    @_store_errors
    async def get(self, reservation_id: int) -> Reservation | None:
        return await self.session.get(Reservation, reservation_id)

    @_store_errors
    async def delete(self, reservation: Reservation) -> None:
        await self.session.delete(reservation)
        await self.session.flush()
