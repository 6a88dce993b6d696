from datetime import date

from fastapi import APIRouter, Depends, Query

from ..config import get_settings
from ..deps import get_reservation_repo
from ..domain.errors import DomainError
from ..infrastructure.repositories import SqlAlchemyReservationRepository
from ..schemas import DayAvailabilityRead
from ..usecases import availability as availability_usecase
from .errors import to_http_exception

router = APIRouter(prefix="/availability", tags=["availability"])


@router.get("", response_model=DayAvailabilityRead)
async def get_day_availability(
    day: date = Query(..., alias="date", description="Calendar date (YYYY-MM-DD)"),
    res_repo: SqlAlchemyReservationRepository = Depends(get_reservation_repo),
) -> DayAvailabilityRead:
    policy = get_settings().seating_policy()
    try:
        slots = await availability_usecase.list_day_availability(res_repo, day=day, policy=policy)
    except DomainError as exc:
        raise to_http_exception(exc) from exc
    return DayAvailabilityRead.build(day=day, policy=policy, slots=slots)
