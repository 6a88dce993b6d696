import logging
from datetime import date, time

from ..domain.errors import (
    AuthenticationRequiredError,
    CapacityExceededError,
    DeleteNotAllowedError,
    ReservationNotFoundError,
    SelectionRequiredError,
)
from ..domain.repositories import CurrentUser, IdentityProvider, ReservationRepository
from ..domain.services import DEFAULT_POLICY, SeatingPolicy, SlotSnapshot, validate_request, validate_reservation
from ..models import Reservation, UserRole

logger = logging.getLogger(__name__)


async def create_reservation(
    res_repo: ReservationRepository,
    identity: IdentityProvider,
    *,
    day: date,
    slot_time: time | None,
    guests: int,
    today: date,
    policy: SeatingPolicy = DEFAULT_POLICY,
) -> tuple[Reservation, CurrentUser]:
    if slot_time is None:
        raise SelectionRequiredError("please select a time slot")

    user = await identity.get_current_user()
    if user is None:
        raise AuthenticationRequiredError("you must be logged in to make a reservation")

    validate_request(day, slot_time, guests=guests, today=today, policy=policy)

    # Re-read at submission time; the value shown with the slot list may be stale.
    booked = await res_repo.sum_tables_booked(day, slot_time)
    snapshot = SlotSnapshot(total_tables=policy.total_tables, booked_tables=booked)
    try:
        needed = validate_reservation(snapshot, guests=guests, table_capacity=policy.table_capacity)
    except CapacityExceededError:
        logger.info(
            "slot %s %s full: booked=%d guests=%d user=%s",
            day.isoformat(),
            slot_time.isoformat(),
            booked,
            guests,
            user.id,
        )
        raise

    reservation = await res_repo.create(
        user_id=user.id,
        day=day,
        slot_time=slot_time,
        guests=guests,
        tables_booked=needed,
    )
    return reservation, user


async def list_upcoming_reservations(
    res_repo: ReservationRepository,
    identity: IdentityProvider,
    *,
    today: date,
) -> list[Reservation]:
    user = await identity.get_current_user()
    if user is None:
        raise AuthenticationRequiredError("you must be logged in to view reservations")
    return await res_repo.list_reservations(owner_id=user.id, date_from=today)


async def list_reservations_for_day(
    res_repo: ReservationRepository,
    *,
    day: date,
) -> list[Reservation]:
    return await res_repo.list_reservations(on_date=day)


async def delete_reservation(
    res_repo: ReservationRepository,
    identity: IdentityProvider,
    *,
    reservation_id: int,
) -> tuple[Reservation, CurrentUser]:
    user = await identity.get_current_user()
    if user is None:
        raise AuthenticationRequiredError("you must be logged in to delete a reservation")

    reservation = await res_repo.get(reservation_id)
    if reservation is None:
        raise ReservationNotFoundError("reservation not found")
    if not _may_delete(reservation, user):
        raise DeleteNotAllowedError("only the owner or an administrator may delete this reservation")

    await res_repo.delete(reservation)
    return reservation, user


def _may_delete(reservation: Reservation, user: CurrentUser) -> bool:
    return reservation.user_id == user.id or user.role == UserRole.ADMIN
