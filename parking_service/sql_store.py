import logging
from contextlib import asynccontextmanager
from contextvars import ContextVar
from typing import Optional, Type

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from parking_shared.database import Base, get_session

from .entities import Booking, Location, Spot, TransportationBooking, TransportationType, Vehicle
from .models import (
    ParkingBooking,
    ParkingLocation,
    ParkingSpot,
    TransportationBookingRow,
    TransportationTypeRow,
    VehicleRow,
)
from .store import R, Store, build_record, check_filters, merge_record, not_found

logger = logging.getLogger(__name__)

TABLES = {
    Location: ParkingLocation,
    Spot: ParkingSpot,
    Vehicle: VehicleRow,
    Booking: ParkingBooking,
    TransportationType: TransportationTypeRow,
    TransportationBooking: TransportationBookingRow,
}


class SqlStore(Store):
    """
    Relational store on SQLAlchemy's async ORM. Ids come from the database.

    Outside a transaction every call runs in its own session and commits on
    return; inside ``transaction()`` all calls made by the current task share
    one session that commits (or rolls back) when the block exits.
    """

    def __init__(self, engine: AsyncEngine):
        self._engine = engine
        self._sessions = get_session(engine)
        self._current: ContextVar[Optional[AsyncSession]] = ContextVar("sql_store_session", default=None)

    async def create_all(self) -> None:
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("parking tables ensured on %s", self._engine.url.render_as_string(hide_password=True))

    @asynccontextmanager
    async def _session(self):
        session = self._current.get()
        if session is not None:
            yield session
            return
        async with self._sessions() as session:
            async with session.begin():
                yield session

    @asynccontextmanager
    async def transaction(self):
        if self._current.get() is not None:
            yield
            return

        async with self._sessions() as session:
            async with session.begin():
                token = self._current.set(session)
                try:
                    yield
                finally:
                    self._current.reset(token)

    async def lock_location(self, location_id: int) -> None:
        session = self._current.get()
        if session is None:
            return
        # FOR UPDATE is dropped by dialects without row locks (sqlite)
        await session.execute(
            select(ParkingLocation.id).where(ParkingLocation.id == location_id).with_for_update()
        )

    async def create(self, entity: Type[R], record: dict) -> R:
        model = TABLES[entity]
        draft = build_record(entity, record, 0)
        async with self._session() as session:
            row = model(**draft.model_dump(exclude={"id"}))
            session.add(row)
            await session.flush()
            return entity.model_validate(row)

    async def _row(self, session: AsyncSession, entity: Type[R], record_id: int):
        row = await session.get(TABLES[entity], record_id)
        if row is None:
            raise not_found(entity, record_id)
        return row

    async def get(self, entity: Type[R], record_id: int) -> R:
        async with self._session() as session:
            return entity.model_validate(await self._row(session, entity, record_id))

    async def get_all_where(self, entity: Type[R], **filters) -> list[R]:
        check_filters(entity, filters)
        model = TABLES[entity]
        stmt = select(model).order_by(model.id)
        for field, wanted in filters.items():
            column = getattr(model, field)
            if isinstance(wanted, (list, tuple, set, frozenset)):
                stmt = stmt.where(column.in_(list(wanted)))
            else:
                stmt = stmt.where(column == wanted)

        async with self._session() as session:
            res = await session.execute(stmt)
            return [entity.model_validate(row) for row in res.scalars().all()]

    async def update(self, entity: Type[R], record_id: int, fields: dict) -> R:
        async with self._session() as session:
            row = await self._row(session, entity, record_id)
            merged = merge_record(entity, entity.model_validate(row), fields)
            for field, value in merged.model_dump(exclude={"id"}).items():
                setattr(row, field, value)
            await session.flush()
            return merged

    async def delete(self, entity: Type[R], record_id: int) -> None:
        async with self._session() as session:
            row = await self._row(session, entity, record_id)
            await session.delete(row)
            await session.flush()

    async def close(self) -> None:
        await self._engine.dispose()
