from __future__ import annotations

import logging
from typing import Callable

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import Settings
from ..domain.errors import StoreError
from ..domain.repositories import CurrentUser, IdentityProvider
from ..models import Profile, UserRole
from ..utils.auth import bearer_token, decode_access_token

logger = logging.getLogger(__name__)

_UNRESOLVED = object()


class BearerTokenIdentity(IdentityProvider):
    """
    Resolves the caller from a bearer JWT and their stored profile.

    The profile lookup runs in its own session so it never opens a transaction on
    the request session. The result is memoised for the lifetime of the object.
    """

    def __init__(
        self,
        authorization: str | None,
        *,
        session_factory: Callable[[], AsyncSession],
        settings: Settings,
    ) -> None:
        self.authorization = authorization
        self.session_factory = session_factory
        self.settings = settings
        self._user: object = _UNRESOLVED

    async def get_current_user(self) -> CurrentUser | None:
        if self._user is _UNRESOLVED:
            self._user = await self._resolve()
        return self._user  # type: ignore[return-value]

    async def _resolve(self) -> CurrentUser | None:
        token = bearer_token(self.authorization)
        if token is None:
            return None
        try:
            user_id = decode_access_token(
                token,
                secret=self.settings.auth_secret,
                algorithms=[self.settings.auth_algorithm],
            )
        except ValueError as exc:
            logger.debug("rejected bearer token: %s", exc)
            return None

        try:
            async with self.session_factory() as session:
                role = await session.scalar(select(Profile.role).where(Profile.id == user_id))
        except SQLAlchemyError as exc:
            raise StoreError("profile lookup failed") from exc

        if role is None:
            logger.info("no profile for user %s", user_id)
            return None
        return CurrentUser(id=user_id, role=UserRole(role))
