import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Path, Response, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import get_settings
from ..deps import get_identity, get_session
from ..domain.errors import DomainError, StoreError
from ..infrastructure.identity import BearerTokenIdentity
from ..infrastructure.repositories import SqlAlchemyReservationRepository
from ..schemas import ReservationCreate, ReservationRead
from ..usecases import reservations as reservation_usecase
from ..utils.audit_log import emit_audit_log
from ..utils.time import restaurant_today
from .errors import to_http_exception

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["reservations"])


@router.post("/reservations", response_model=ReservationRead, status_code=status.HTTP_201_CREATED)
async def create_reservation(
    payload: ReservationCreate,
    session: AsyncSession = Depends(get_session),
    identity: BearerTokenIdentity = Depends(get_identity),
) -> ReservationRead:
    settings = get_settings()
    res_repo = SqlAlchemyReservationRepository(session)
    try:
        async with session.begin():
            reservation, user = await reservation_usecase.create_reservation(
                res_repo,
                identity,
                day=payload.date,
                slot_time=payload.time,
                guests=payload.guests,
                today=restaurant_today(settings.restaurant_timezone),
                policy=settings.seating_policy(),
            )
    except DomainError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        raise to_http_exception(StoreError("commit failed")) from exc

    try:
        emit_audit_log(
            action="reservation.created",
            initiator="user",
            reservation_id=reservation.id,
            user_id=user.id,
            owner_id=reservation.user_id,
            day=reservation.booking_date,
            slot_time=reservation.slot_time,
            guests=reservation.guests,
            tables_booked=reservation.tables_booked,
        )
    except RuntimeError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="audit log failed") from exc

    return ReservationRead.from_db(reservation=reservation)


@router.get("/me/reservations", response_model=List[ReservationRead])
async def list_my_reservations(
    session: AsyncSession = Depends(get_session),
    identity: BearerTokenIdentity = Depends(get_identity),
) -> list[ReservationRead]:
    settings = get_settings()
    res_repo = SqlAlchemyReservationRepository(session)
    try:
        rows = await reservation_usecase.list_upcoming_reservations(
            res_repo,
            identity,
            today=restaurant_today(settings.restaurant_timezone),
        )
    except DomainError as exc:
        raise to_http_exception(exc) from exc
    return [ReservationRead.from_db(reservation=reservation) for reservation in rows]


@router.delete("/reservations/{reservation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_reservation(
    reservation_id: int = Path(..., ge=1),
    session: AsyncSession = Depends(get_session),
    identity: BearerTokenIdentity = Depends(get_identity),
) -> Response:
    res_repo = SqlAlchemyReservationRepository(session)
    try:
        async with session.begin():
            reservation, user = await reservation_usecase.delete_reservation(
                res_repo,
                identity,
                reservation_id=reservation_id,
            )
    except DomainError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        raise to_http_exception(StoreError("commit failed")) from exc

    try:
        emit_audit_log(
            action="reservation.deleted",
            initiator="user" if reservation.user_id == user.id else "staff",
            reservation_id=reservation.id,
            user_id=user.id,
            owner_id=reservation.user_id,
            day=reservation.booking_date,
            slot_time=reservation.slot_time,
            guests=reservation.guests,
            tables_booked=reservation.tables_booked,
        )
    except RuntimeError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="audit log failed") from exc

    return Response(status_code=status.HTTP_204_NO_CONTENT)
