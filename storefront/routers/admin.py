from datetime import date
from typing import List

from fastapi import APIRouter, Depends, Query

from ..deps import get_reservation_repo, require_staff
from ..domain.errors import DomainError
from ..infrastructure.repositories import SqlAlchemyReservationRepository
from ..schemas import ReservationRead
from ..usecases import reservations as reservation_usecase
from .errors import to_http_exception

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_staff)])


@router.get("/reservations", response_model=List[ReservationRead])
async def list_reservations_for_day(
    day: date = Query(..., alias="date", description="Calendar date (YYYY-MM-DD)"),
    res_repo: SqlAlchemyReservationRepository = Depends(get_reservation_repo),
) -> list[ReservationRead]:
    try:
        rows = await reservation_usecase.list_reservations_for_day(res_repo, day=day)
    except DomainError as exc:
        raise to_http_exception(exc) from exc
    return [ReservationRead.from_db(reservation=reservation) for reservation in rows]
