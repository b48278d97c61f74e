import logging
from contextlib import asynccontextmanager
from typing import Optional, Sequence, Type, TypeVar

from sqlmodel import SQLModel, select
from sqlalchemy import delete, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from .errors import Conflict, NotFound, StoreUnavailable

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=SQLModel)


class Store:
    def __init__(self, session_factory, session=None):
        self._session_factory = session_factory
        self._session = session

    @asynccontextmanager
    async def _open(self):
        if self._session is not None:
            yield self._session
            return

        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                raise Conflict() from e
            except (SQLAlchemyError, OSError) as e:
                logger.warning("Store operation failed: %s", e)
                raise StoreUnavailable() from e

    @asynccontextmanager
    async def atomic(self):
        """Group several store calls into one transaction."""
        async with self._open() as session:
            yield type(self)(self._session_factory, session)

    async def insert(self, record: ModelT) -> ModelT:
        async with self._open() as session:
            session.add(record)
            await session.flush()
            return record

    async def find_one(self, model: Type[ModelT], *where) -> Optional[ModelT]:
        async with self._open() as session:
            return (await session.exec(
                select(model).where(*where)
            )).first()

    async def find_many(
        self,
        model: Type[ModelT],
        *where,
        order_by=None,
        limit: Optional[int] = None,
    ) -> Sequence[ModelT]:
        stmt = select(model).where(*where)
        if order_by is not None:
            stmt = stmt.order_by(order_by)
        if limit is not None:
            stmt = stmt.limit(limit)
        async with self._open() as session:
            return (await session.exec(stmt)).all()

    async def update_one(self, model: Type[ModelT], ident, patch: dict, *where) -> None:
        """Patch the row with primary key ``ident``; extra ``where`` clauses guard the write."""
        async with self._open() as session:
            result = await session.exec(
                update(model).where(model.id == ident, *where).values(**patch)
            )
            if result.rowcount == 0:
                raise NotFound()

    async def delete_one(self, model: Type[ModelT], ident, *where) -> None:
        async with self._open() as session:
            result = await session.exec(
                delete(model).where(model.id == ident, *where)
            )
            if result.rowcount == 0:
                raise NotFound()
