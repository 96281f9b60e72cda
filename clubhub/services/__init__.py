from clubhub.services.account_service import AccountService
from clubhub.services.attendance_service import AttendanceService
from clubhub.services.data_store import DataStore
from clubhub.services.directory_service import DirectoryService
from clubhub.services.grading_service import GradingService
from clubhub.services.level_progression_service import LevelProgressionService
from clubhub.services.payment_service import PaymentService
from clubhub.services.read_fallback import FallbackReader
from clubhub.services.store_capability import StoreCapability

__all__ = [
    "AccountService",
    "AttendanceService",
    "DataStore",
    "DirectoryService",
    "GradingService",
    "LevelProgressionService",
    "PaymentService",
    "FallbackReader",
    "StoreCapability",
]
