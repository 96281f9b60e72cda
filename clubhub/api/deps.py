"""
FastAPI providers for the data store and the workflow services.

Every service built for a request shares that request's session (and so its
unit of work) and the application-wide StoreCapability.
"""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from clubhub.core.database import get_db
from clubhub.services.account_service import AccountService
from clubhub.services.attendance_service import AttendanceService
from clubhub.services.data_store import DataStore
from clubhub.services.directory_service import DirectoryService
from clubhub.services.grading_service import GradingService
from clubhub.services.level_progression_service import LevelProgressionService
from clubhub.services.payment_service import PaymentService
from clubhub.services.read_fallback import FallbackReader
from clubhub.services.store_capability import StoreCapability


def get_store_capability(request: Request) -> StoreCapability:
    return request.app.state.store_capability


def get_fallback_reader(request: Request) -> FallbackReader:
    return request.app.state.fallback_reader


def get_data_store(db: AsyncSession = Depends(get_db)) -> DataStore:
    return DataStore(db)


def get_payment_service(
    store: DataStore = Depends(get_data_store),
    capability: StoreCapability = Depends(get_store_capability),
) -> PaymentService:
    return PaymentService(store, capability)


def get_attendance_service(
    store: DataStore = Depends(get_data_store),
    capability: StoreCapability = Depends(get_store_capability),
) -> AttendanceService:
    return AttendanceService(store, capability)


def get_grading_service(
    store: DataStore = Depends(get_data_store),
    capability: StoreCapability = Depends(get_store_capability),
) -> GradingService:
    return GradingService(store, capability)


def get_level_service(
    store: DataStore = Depends(get_data_store),
    capability: StoreCapability = Depends(get_store_capability),
) -> LevelProgressionService:
    return LevelProgressionService(store, capability)


def get_account_service(
    store: DataStore = Depends(get_data_store),
    capability: StoreCapability = Depends(get_store_capability),
) -> AccountService:
    return AccountService(store, capability)


def get_directory_service(
    store: DataStore = Depends(get_data_store),
    capability: StoreCapability = Depends(get_store_capability),
) -> DirectoryService:
    return DirectoryService(store, capability)
