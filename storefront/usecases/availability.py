from datetime import date

from ..domain.repositories import ReservationRepository
from ..domain.services import DEFAULT_POLICY, SeatingPolicy, SlotAvailability, annotate_availability, generate_slots


async def list_day_availability(
    res_repo: ReservationRepository,
    *,
    day: date,
    policy: SeatingPolicy = DEFAULT_POLICY,
) -> list[SlotAvailability]:
    reservations = await res_repo.list_reservations(on_date=day)
    return annotate_availability(
        reservations,
        generate_slots(day, policy),
        total_tables=policy.total_tables,
    )
