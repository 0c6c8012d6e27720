"""
Database service layer for the FastAPI application.

A Repository wraps one ORM model and the request's session and offers
find/create/update/delete; sessions are injected per request.
"""

from typing import Any, AsyncIterator, Dict, List, Optional, Sequence

import structlog
from fastapi import Request
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from api.models import BookFilterParams
from storage.models import Book

logger = structlog.get_logger(__name__)


async def get_session(request: Request) -> AsyncIterator[AsyncSession]:
    """Yield a session from the application's database manager for one request."""
    database = request.app.state.database
    async with database.session() as session:
        yield session


class Repository:
    """Generic data access for a single entity table."""

    def __init__(self, session: AsyncSession, model: type, load_options: Sequence = ()):
        """
        Args:
            session: Session of the current request
            model: ORM model class
            load_options: Loader options applied to every read, e.g. eager joins
        """
        self.session = session
        self.model = model
        self.load_options = tuple(load_options)

    @property
    def entity(self) -> str:
        return self.model.__name__

    def _select(self):
        return select(self.model).options(*self.load_options)

    async def find_all(self) -> List[Any]:
        result = await self.session.execute(self._select().order_by(self.model.id))
        return list(result.scalars().all())

    async def find_by_id(self, record_id: int) -> Optional[Any]:
        """
        Get a single row by primary key.

        Returns:
            The row with load options applied, None if absent
        """
        return await self.session.get(
            self.model, record_id, options=self.load_options, populate_existing=True
        )

    async def find_one(self, *criteria) -> Optional[Any]:
        """Get the first row (lowest id) matching the given criteria."""
        statement = self._select().where(*criteria).order_by(self.model.id).limit(1)
        result = await self.session.execute(statement)
        return result.scalars().first()

    async def create(self, data: Dict[str, Any]) -> Any:
        """
        Insert a row and commit.

        Args:
            data: Column values

        Returns:
            The created row, re-read with load options applied
        """
        record = self.model(**data)
        self.session.add(record)
        try:
            await self.session.commit()
        except SQLAlchemyError:
            await self.session.rollback()
            raise

        logger.info("Record created", entity=self.entity, record_id=record.id)
        return await self.find_by_id(record.id)

    async def update(self, record_id: int, data: Dict[str, Any]) -> Optional[Any]:
        """
        Overwrite the given columns of a row and commit.

        Args:
            record_id: Primary key
            data: Columns to write; columns not present keep their value

        Returns:
            The updated row, None if it does not exist
        """
        record = await self.session.get(self.model, record_id)
        if record is None:
            return None

        for field, value in data.items():
            setattr(record, field, value)
        try:
            await self.session.commit()
        except SQLAlchemyError:
            await self.session.rollback()
            raise

        logger.info("Record updated", entity=self.entity, record_id=record_id, fields=sorted(data))
        return await self.find_by_id(record_id)

    async def delete(self, record_id: int) -> Optional[Any]:
        """
        Delete a row and commit.

        Returns:
            The deleted row, None if it does not exist
        """
        record = await self.session.get(self.model, record_id)
        if record is None:
            return None

        await self.session.delete(record)
        try:
            await self.session.commit()
        except SQLAlchemyError:
            await self.session.rollback()
            raise

        logger.info("Record deleted", entity=self.entity, record_id=record_id)
        return record


BOOK_LOAD_OPTIONS = (
    selectinload(Book.author),
    selectinload(Book.category),
    selectinload(Book.publisher),
)


class BookRepository(Repository):
    """Book access with related author, category and publisher always loaded."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Book, BOOK_LOAD_OPTIONS)

    async def find_filtered(self, query_params: BookFilterParams) -> List[Book]:
        """
        Get books matching every supplied filter.

        Args:
            query_params: Filters; None values leave their dimension unconstrained

        Returns:
            Matching books ordered by id
        """
        statement = self._select()

        if query_params.author_id is not None:
            statement = statement.where(Book.author_id == query_params.author_id)
        if query_params.category_id is not None:
            statement = statement.where(Book.category_id == query_params.category_id)
        if query_params.publisher_id is not None:
            statement = statement.where(Book.publisher_id == query_params.publisher_id)
        if query_params.min_price is not None:
            statement = statement.where(Book.price >= query_params.min_price)
        if query_params.max_price is not None:
            statement = statement.where(Book.price <= query_params.max_price)

        result = await self.session.execute(statement.order_by(Book.id))
        books = list(result.scalars().all())
        logger.debug("Filtered books", filters=query_params.model_dump(exclude_none=True), count=len(books))
        return books
