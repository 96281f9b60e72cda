"""
Data access layer for the membership workflows.

All workflow services talk to the database through DataStore so that:
- profile writes are partial updates guarded by the row version
- every SQLAlchemy failure surfaces as a retryable BackingStoreError
- a workflow's writes land in one commit
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Type, TypeVar

from sqlalchemy import select, update, func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from clubhub.core.exceptions import (
    BackingStoreError,
    ConcurrentUpdateError,
    RecordConflictError,
    UserNotFoundError,
)
from clubhub.core.logging_config import logger
from clubhub.models.user import User

T = TypeVar("T")

# Columns callers may never set through update_profile
PROTECTED_PROFILE_FIELDS = {"id", "version", "created_at", "updated_at"}


class DataStore:
    """Row-oriented access to the profile store and the append-only tables"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _rollback(self) -> None:
        try:
            await self.db.rollback()
        except SQLAlchemyError as e:
            logger.warning(f"[DataStore] Rollback failed: {e}")

    async def find_profile(self, user_id: str) -> Optional[User]:
        """Fetch a profile by id, or None"""
        try:
            result = await self.db.execute(
                select(User)
                .where(User.id == str(user_id))
                .execution_options(populate_existing=True)
            )
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            await self._rollback()
            logger.log_error_with_context(e, "DataStore.find_profile", user_id=str(user_id))
            raise BackingStoreError("get_profile") from e

    async def get_profile(self, user_id: str) -> User:
        """Fetch a profile by id or raise UserNotFoundError"""
        profile = await self.find_profile(user_id)
        if profile is None:
            raise UserNotFoundError(str(user_id))
        return profile

    async def find_profile_by_email(self, email: str) -> Optional[User]:
        try:
            result = await self.db.execute(select(User).where(User.email == email.lower()))
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            await self._rollback()
            raise BackingStoreError("get_profile_by_email") from e

    async def update_profile(
        self,
        user_id: str,
        fields: Dict[str, Any],
        expected_version: Optional[int] = None,
    ) -> User:
        """
        Partially update a profile. Only the supplied fields change.

        With expected_version the write only applies if the stored version
        still matches; otherwise ConcurrentUpdateError is raised and nothing
        is written. The version is bumped on every successful write.
        """
        bad_fields = PROTECTED_PROFILE_FIELDS.intersection(fields)
        if bad_fields:
            raise ValueError(f"Cannot update protected profile fields: {sorted(bad_fields)}")

        stmt = update(User).where(User.id == str(user_id))
        if expected_version is not None:
            stmt = stmt.where(User.version == expected_version)
        stmt = stmt.values(
            **fields,
            version=User.version + 1,
            updated_at=datetime.utcnow(),
        ).execution_options(synchronize_session=False)

        try:
            result = await self.db.execute(stmt)
        except SQLAlchemyError as e:
            await self._rollback()
            logger.log_error_with_context(e, "DataStore.update_profile", user_id=str(user_id))
            raise BackingStoreError("update_profile") from e

        if result.rowcount == 0:
            # Either the row is gone or someone else wrote first
            await self.get_profile(user_id)
            raise ConcurrentUpdateError(str(user_id), expected_version)

        return await self.get_profile(user_id)

    async def update_profiles_where(self, fields: Dict[str, Any], *criteria) -> int:
        """Bulk partial update; bumps the version of every touched row"""
        stmt = (
            update(User)
            .where(*criteria)
            .values(**fields, version=User.version + 1, updated_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self.db.execute(stmt)
            return result.rowcount
        except SQLAlchemyError as e:
            await self._rollback()
            logger.log_error_with_context(e, "DataStore.update_profiles_where")
            raise BackingStoreError("update_profiles") from e

    async def insert(self, record: T) -> T:
        """Insert one row into an append-only table and flush it"""
        table = getattr(record, "__tablename__", type(record).__name__)
        try:
            self.db.add(record)
            await self.db.flush()
            await self.db.refresh(record)
            return record
        except IntegrityError as e:
            await self._rollback()
            logger.warning(f"[DataStore] Uniqueness conflict inserting into {table}")
            raise RecordConflictError(table) from e
        except SQLAlchemyError as e:
            await self._rollback()
            logger.log_error_with_context(e, "DataStore.insert", table=table)
            raise BackingStoreError(f"insert:{table}") from e

    async def get(self, model: Type[T], record_id: str) -> Optional[T]:
        try:
            return await self.db.get(model, str(record_id))
        except SQLAlchemyError as e:
            await self._rollback()
            raise BackingStoreError(f"get:{model.__tablename__}") from e

    async def query(
        self,
        model: Type[T],
        *criteria,
        order_by=None,
        limit: Optional[int] = None,
    ) -> List[T]:
        """Select rows of `model` matching all criteria"""
        stmt = select(model).where(*criteria)
        if order_by is not None:
            stmt = stmt.order_by(*order_by) if isinstance(order_by, (list, tuple)) else stmt.order_by(order_by)
        if limit:
            stmt = stmt.limit(limit)
        try:
            result = await self.db.execute(stmt)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            await self._rollback()
            logger.log_error_with_context(e, "DataStore.query", table=model.__tablename__)
            raise BackingStoreError(f"query:{model.__tablename__}") from e

    async def count(self, model: Type[Any], *criteria) -> int:
        try:
            result = await self.db.execute(select(func.count()).select_from(model).where(*criteria))
            return result.scalar() or 0
        except SQLAlchemyError as e:
            await self._rollback()
            raise BackingStoreError(f"count:{model.__tablename__}") from e

    async def delete(self, record: Any) -> None:
        try:
            await self.db.delete(record)
            await self.db.flush()
        except SQLAlchemyError as e:
            await self._rollback()
            raise BackingStoreError(f"delete:{record.__tablename__}") from e

    async def commit(self) -> None:
        """Commit the current unit of work"""
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self._rollback()
            raise RecordConflictError("commit") from e
        except SQLAlchemyError as e:
            await self._rollback()
            logger.log_error_with_context(e, "DataStore.commit")
            raise BackingStoreError("commit") from e
