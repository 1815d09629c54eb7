"""
Shop access verification for room joins.

A user may receive a shop's events only if at least one team_members row
links them to that shop. The check is fail-closed: a query error or a
timeout is a denial.
"""
import asyncio
import logging

from app.core.logging import log_operation, realtime_logger
from app.db.crud import find_team_memberships
from app.realtime.exceptions import AuthorizationFailure, VerificationInfrastructureFailure

logger = logging.getLogger(__name__)


class ShopAccessVerifier:
    """
    Checks team membership against the persistence layer.

    Not cached: every join attempt issues a fresh query.
    """

    def __init__(self, session_factory, timeout_seconds: float = 5.0):
        self.session_factory = session_factory
        self.timeout_seconds = timeout_seconds

    async def _query(self, shop_id: str, user_id: str):
        async with self.session_factory() as db:
            return await find_team_memberships(db, shop_id, user_id)

    @log_operation("shop_access_check", realtime_logger)
    async def verify(self, shop_id: str, user_id: str) -> None:
        """
        Raise AuthorizationFailure if the user is not a member of the shop,
        VerificationInfrastructureFailure if membership could not be determined.
        """
        try:
            rows = await asyncio.wait_for(self._query(shop_id, user_id), timeout=self.timeout_seconds)
        except asyncio.TimeoutError as e:
            logger.error(f"Shop access check timed out after {self.timeout_seconds}s (shop {shop_id}, user {user_id})")
            raise VerificationInfrastructureFailure() from e
        except Exception as e:
            logger.error(f"Shop access check failed (shop {shop_id}, user {user_id}): {e}")
            raise VerificationInfrastructureFailure() from e

        if not rows:
            logger.warning(f"User {user_id} is not a team member of shop {shop_id}")
            raise AuthorizationFailure()

    async def is_member(self, shop_id: str, user_id: str) -> bool:
        try:
            await self.verify(shop_id, user_id)
        except (AuthorizationFailure, VerificationInfrastructureFailure):
            return False
        return True
