"""
Store readiness probe.

One StoreCapability is created per application (see main.lifespan) and
injected into the workflow services and the read-fallback layer.
"""

import time
from typing import Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from clubhub.core.logging_config import logger


class StoreCapability:
    """Checks once whether the profile store is usable and caches the answer"""

    PROBE_SQL = "SELECT 1 FROM user_profiles LIMIT 1"

    def __init__(self):
        self._ready: Optional[bool] = None
        self._checked_at: Optional[float] = None

    @property
    def checked(self) -> bool:
        return self._ready is not None

    @property
    def checked_at(self) -> Optional[float]:
        return self._checked_at

    async def check(self, db: AsyncSession, force: bool = False) -> bool:
        """Return the cached readiness, probing the store on first use or when forced"""
        if self._ready is not None and not force:
            return self._ready

        try:
            await db.execute(text(self.PROBE_SQL))
            ready = True
        except SQLAlchemyError as e:
            logger.warning(f"[StoreCapability] Store probe failed: {type(e).__name__}: {e}")
            await db.rollback()
            ready = False

        if ready != self._ready:
            logger.info(f"[StoreCapability] Store ready={ready}")
        self._ready = ready
        self._checked_at = time.time()
        return ready

    def reset(self) -> None:
        """Forget the cached result; the next check() probes again"""
        self._ready = None
        self._checked_at = None
