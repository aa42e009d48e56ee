"""
Current Visit API: Visit Store
==============================

What:  The four database operations the service needs, plus schema and
       health helpers.
How:   Async SQLAlchemy against the CurrentVisit table. Every operation opens
       its own session in an `async with` block, so the pooled connection is
       returned on success, on SQL errors and on cancellation alike.
Who:   Constructed by the app factory with the configured database URL;
       called by VisitService and the health route.

Operations:
    insert(visit)             INSERT one row, visitTime = now (epoch ms)
    recent_names(user_id)     up to 5 distinct names, most recently visited first
    visits_of(user_id, name)  exact-name visits, newest first
    by_id(visit_id)           zero or one visit

Error Handling:
    Every driver or SQL error is logged and re-raised as StoreError, which the
    HTTP layer maps to 503. Callers never see SQLAlchemy exception types.
"""

import logging
import time
from typing import Callable, List, Optional

from sqlalchemy import func, insert, select, text
from sqlalchemy.exc import SQLAlchemyError

from visitapi.database import Base, build_engine, build_session_factory
from visitapi.exceptions import QUERY_FAILED, UPDATE_FAILED, StoreError
from visitapi.models.visit import CurrentVisit
from visitapi.schemas.visit import Visit

logger = logging.getLogger(__name__)

RECENT_NAME_LIMIT = 5

# Driver failures that are not wrapped by SQLAlchemy (e.g. connection refused
# while the pool opens a new connection) surface as OSError.
_STORE_FAULTS = (SQLAlchemyError, OSError)


def current_time_millis() -> int:
    return int(time.time() * 1000)


class VisitStore:
    """
    Persistence for visits, bound to one database URL.

    Args:
        database_url: async SQLAlchemy URL, e.g. postgresql+asyncpg://... or
                      sqlite+aiosqlite:///visits.db
        clock: returns the current epoch milliseconds; injectable for tests
    """

    def __init__(
        self,
        database_url: str,
        clock: Optional[Callable[[], int]] = None,
    ):
        self._engine = build_engine(database_url)
        self._session_factory = build_session_factory(self._engine)
        self._clock = clock or current_time_millis

    async def insert(self, visit: Visit) -> Visit:
        """
        Persist `visit`, stamping it with the current time.

        Returns:
            The stored Visit, including its visit_time.

        Raises:
            StoreError: the insert failed or did not affect exactly one row.
        """
        stored = visit.model_copy(update={"visit_time": self._clock()})
        statement = insert(CurrentVisit.__table__).values(
            userId=stored.user_id,
            name=stored.name,
            visitId=stored.visit_id,
            visitTime=stored.visit_time,
        )
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    result = await session.execute(statement)
                    if result.rowcount != 1:
                        # Raising inside the begin() block rolls the row back.
                        raise StoreError(
                            message=UPDATE_FAILED,
                            context={"visit_id": stored.visit_id, "rowcount": result.rowcount},
                        )
        except _STORE_FAULTS as e:
            logger.error(
                "Insert of visit %s failed: %s", stored.visit_id, str(e), exc_info=True
            )
            raise StoreError(
                message=UPDATE_FAILED,
                context={"visit_id": stored.visit_id, "error_type": type(e).__name__},
            ) from e

        logger.info("Recorded visit %s for user %s", stored.visit_id, stored.user_id)
        return stored

    async def recent_names(self, user_id: str) -> List[str]:
        """
        Names the user visited most recently, newest first, at most five.

        Query plan:
            SELECT name, MAX(visitTime) AS vt FROM CurrentVisit
            WHERE userId = :user_id GROUP BY name ORDER BY vt DESC LIMIT 5
        """
        latest = func.max(CurrentVisit.visit_time).label("vt")
        statement = (
            select(CurrentVisit.name, latest)
            .where(CurrentVisit.user_id == user_id)
            .group_by(CurrentVisit.name)
            .order_by(latest.desc())
            .limit(RECENT_NAME_LIMIT)
        )
        try:
            async with self._session_factory() as session:
                result = await session.execute(statement)
                return [row.name for row in result]
        except _STORE_FAULTS as e:
            logger.error("Recent names query failed for user %s: %s", user_id, str(e))
            raise StoreError(
                message=QUERY_FAILED,
                context={"user_id": user_id, "error_type": type(e).__name__},
            ) from e

    async def visits_of(self, user_id: str, name: str) -> List[Visit]:
        """All visits by `user_id` to exactly `name`, newest first."""
        statement = (
            select(CurrentVisit)
            .where(CurrentVisit.user_id == user_id, CurrentVisit.name == name)
            .order_by(CurrentVisit.visit_time.desc())
        )
        try:
            async with self._session_factory() as session:
                result = await session.execute(statement)
                rows = result.scalars().all()
        except _STORE_FAULTS as e:
            logger.error("Visits query failed for user %s: %s", user_id, str(e))
            raise StoreError(
                message=QUERY_FAILED,
                context={"user_id": user_id, "error_type": type(e).__name__},
            ) from e
        return [Visit.model_validate(row) for row in rows]

    async def by_id(self, visit_id: str) -> Optional[Visit]:
        """The visit with `visit_id`, or None."""
        statement = select(CurrentVisit).where(CurrentVisit.visit_id == visit_id)
        try:
            async with self._session_factory() as session:
                result = await session.execute(statement)
                row = result.scalar_one_or_none()
        except _STORE_FAULTS as e:
            logger.error("Visit lookup failed for %s: %s", visit_id, str(e))
            raise StoreError(
                message=QUERY_FAILED,
                context={"visit_id": visit_id, "error_type": type(e).__name__},
            ) from e
        if row is None:
            return None
        return Visit.model_validate(row)

    # ── Lifecycle Helpers ─────────────────────────────────────────────────

    async def create_schema(self) -> None:
        """Create the CurrentVisit table and its index when missing."""
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def ping(self) -> bool:
        """Run SELECT 1; False when the database cannot be reached."""
        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except _STORE_FAULTS as e:
            logger.warning("Database ping failed: %s", str(e))
            return False
        return True

    async def dispose(self) -> None:
        """Close every pooled connection."""
        await self._engine.dispose()
