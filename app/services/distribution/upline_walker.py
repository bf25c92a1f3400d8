"""
Upline walker.

Iterates sponsorship (referrer_id) or placement (placement_id) ancestors
of a user, one fresh lookup per hop, detecting cycles.
"""

from collections.abc import AsyncIterator
from typing import Literal

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.repositories.user_repository import UserRepository
from app.utils.exceptions import ReferralCycleError

TreeLink = Literal["referrer", "placement"]


class UplineWalker:
    """Walks a user's ancestor chain."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize upline walker."""
        self.session = session
        self.user_repo = UserRepository(session)

    async def _parent_of(self, user_id: int, link: TreeLink) -> tuple[bool, int | None]:
        if link == "placement":
            return await self.user_repo.get_placement_id(user_id)
        return await self.user_repo.get_referrer_id(user_id)

    async def walk(
        self,
        user_id: int,
        max_depth: int,
        link: TreeLink = "referrer",
    ) -> AsyncIterator[tuple[int, int]]:
        """
        Yield (level, ancestor_id) starting with the direct parent at level 1.

        Stops at the root (NULL parent), at max_depth, or at a parent ID
        with no user row.

        Args:
            user_id: Source user
            max_depth: Deepest level to yield
            link: Which tree to walk

        Yields:
            Tuples of (level, ancestor_id)

        Raises:
            ReferralCycleError: If an ancestor repeats or equals user_id
        """
        visited: list[int] = [user_id]
        exists, parent_id = await self._parent_of(user_id, link)
        if not exists:
            logger.warning(
                "Upline walk requested for missing user",
                extra={"user_id": user_id, "link": link},
            )
            return

        level = 1
        while parent_id is not None and level <= max_depth:
            if parent_id in visited:
                raise ReferralCycleError(parent_id, visited + [parent_id])
            visited.append(parent_id)

            exists, next_parent = await self._parent_of(parent_id, link)
            if not exists:
                logger.warning(
                    "Upline references missing user",
                    extra={"user_id": user_id, "missing_id": parent_id, "level": level},
                )
                return

            yield level, parent_id

            parent_id = next_parent
            level += 1
