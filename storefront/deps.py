import logging
from typing import AsyncIterator

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from .config import get_settings
from .database import get_session_factory
from .domain.errors import StoreError
from .domain.repositories import CurrentUser
from .infrastructure.identity import BearerTokenIdentity
from .infrastructure.repositories import SqlAlchemyReservationRepository
from .models import STAFF_ROLES

logger = logging.getLogger(__name__)


async def get_session() -> AsyncIterator[AsyncSession]:
    async with get_session_factory()() as session:
        yield session


async def get_identity(authorization: str | None = Header(default=None)) -> BearerTokenIdentity:
    return BearerTokenIdentity(
        authorization,
        session_factory=get_session_factory(),
        settings=get_settings(),
    )


async def get_current_user(identity: BearerTokenIdentity = Depends(get_identity)) -> CurrentUser:
    try:
        user = await identity.get_current_user()
    except StoreError as exc:
        logger.exception("identity lookup failed")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="identity lookup failed") from exc
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def require_staff(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if user.role not in STAFF_ROLES:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="staff role required")
    return user


async def get_reservation_repo(
    session: AsyncSession = Depends(get_session),
) -> SqlAlchemyReservationRepository:
    return SqlAlchemyReservationRepository(session)
