from datetime import datetime
from typing import Callable, Optional

from clubhub.core.exceptions import BackingStoreError
from clubhub.services.access_policy import AccessPolicy
from clubhub.services.data_store import DataStore
from clubhub.services.store_capability import StoreCapability


class WorkflowService:
    """Shared wiring for the workflow services: store, readiness probe, role policy, clock"""

    def __init__(
        self,
        store: DataStore,
        capability: StoreCapability,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.store = store
        self.capability = capability
        self.policy = AccessPolicy(store)
        self._clock = clock or datetime.utcnow

    def now(self) -> datetime:
        return self._clock()

    async def ensure_store_ready(self, operation: str) -> None:
        """Fail fast with a retryable error before writing to an unusable store"""
        if not await self.capability.check(self.store.db):
            raise BackingStoreError(operation, "Data store is not ready")
