"""Repository pattern implementation for the feed directory store.

Provides the minimal read/write contract the identity, assembly and sync
code needs from the relational store, plus a SQLAlchemy implementation.
Supports SQLite (local development, tests) and PostgreSQL/MySQL (production).
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, List, Mapping, Optional, Sequence, Type

from sqlalchemy import create_engine, delete, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.sql import Executable

from ..errors import DuplicateRecordError, StoreError
from .models import EPISODE_CHILD_MODELS, Base, Episode

logger = logging.getLogger(__name__)


class FeedRepositoryInterface(ABC):
    """Abstract interface for the directory store.

    Every operation is independent: no transaction spans two calls. Failures
    surface as `StoreError`; uniqueness violations as `DuplicateRecordError`.
    """

    @abstractmethod
    def query_one(self, model: Type[Base], *criteria) -> Optional[Any]:
        """
        Return the first row of `model` matching all `criteria` (ordered by primary key).

        Returns:
            The matching model instance, or `None` if nothing matches.
        """
        pass

    @abstractmethod
    def query_many(
        self,
        model: Type[Base],
        *criteria,
        order_by: Optional[Sequence] = None,
        limit: Optional[int] = None,
    ) -> List[Any]:
        """
        Return all rows of `model` matching `criteria`.

        Parameters:
            order_by: Column expressions to order by; primary key order when omitted.
            limit: Maximum number of rows to return; no limit when None.
        """
        pass

    @abstractmethod
    def query_rows(self, stmt: Executable) -> List[Mapping[str, Any]]:
        """
        Execute a prepared SELECT and return its rows as label -> value mappings.

        This is the entry point for the flat joined rows consumed by the result assembler.
        """
        pass

    @abstractmethod
    def count(self, model: Type[Base], *criteria) -> int:
        """Count rows of `model` matching `criteria`."""
        pass

    @abstractmethod
    def insert(self, model: Type[Base], **fields) -> Any:
        """
        Insert one row and return its generated primary key.

        Raises:
            DuplicateRecordError: A uniqueness constraint rejected the row.
            StoreError: Any other store failure.
        """
        pass

    @abstractmethod
    def update(self, model: Type[Base], *criteria, **fields) -> int:
        """
        Set `fields` on every row of `model` matching `criteria`.

        Returns:
            int: Number of rows the store reports as affected.
        """
        pass

    @abstractmethod
    def delete(self, model: Type[Base], *criteria) -> int:
        """Delete every row of `model` matching `criteria`; returns the count."""
        pass

    # --- Episode maintenance ---

    @abstractmethod
    def delete_episodes_for_feed(self, feed_id: int) -> int:
        """
        Remove every episode of a feed together with all of its child facet rows.

        Returns:
            int: Number of episodes deleted.
        """
        pass

    @abstractmethod
    def delete_episodes_older_than(self, timestamp: int) -> int:
        """
        Remove episodes whose `date_published` is before `timestamp`, with their child facet rows.

        Returns:
            int: Number of episodes deleted.
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """Release the engine and its pooled connections."""
        pass


class SQLAlchemyFeedRepository(FeedRepositoryInterface):
    """SQLAlchemy-based implementation of the directory store."""

    def __init__(
        self,
        database_url: str,
        pool_size: int = 5,
        max_overflow: int = 10,
        echo: bool = False,
        create_tables: bool = False,
    ):
        """
        Initialize the repository and configure its SQLAlchemy engine and session factory.

        Parameters:
            database_url (str): SQLAlchemy-compatible database URL.
            pool_size (int): Connection pool size for non-SQLite databases.
            max_overflow (int): Maximum overflow connections for non-SQLite databases.
            echo (bool): If true, enable SQLAlchemy SQL statement logging.
            create_tables (bool): If true, create any missing tables (tests, local development).
        """
        self.database_url = database_url

        # SQLite doesn't support connection pooling
        if database_url.startswith("sqlite"):
            self.engine = create_engine(
                database_url,
                echo=echo,
                connect_args={"check_same_thread": False},
            )
        else:
            self.engine = create_engine(
                database_url,
                pool_size=pool_size,
                max_overflow=max_overflow,
                pool_pre_ping=True,
                echo=echo,
            )

        self.SessionLocal = sessionmaker(bind=self.engine, expire_on_commit=False)

        if create_tables:
            Base.metadata.create_all(self.engine)

        logger.info(f"Database initialized: {database_url.split('@')[-1] if '@' in database_url else database_url}")

    def _get_session(self) -> Session:
        """
        Obtain a new SQLAlchemy database session from the repository's session factory.
        """
        return self.SessionLocal()

    # --- Reads ---

    def query_one(self, model, *criteria):
        stmt = select(model).where(*criteria).order_by(*_primary_key(model)).limit(1)
        try:
            with self._get_session() as session:
                return session.scalar(stmt)
        except SQLAlchemyError as e:
            logger.error(f"query_one on {model.__tablename__} failed: {e}")
            raise StoreError(f"Lookup in {model.__tablename__} failed") from e

    def query_many(self, model, *criteria, order_by=None, limit=None):
        stmt = select(model).where(*criteria)
        stmt = stmt.order_by(*(order_by or _primary_key(model)))
        if limit:
            stmt = stmt.limit(limit)
        try:
            with self._get_session() as session:
                return list(session.scalars(stmt).all())
        except SQLAlchemyError as e:
            logger.error(f"query_many on {model.__tablename__} failed: {e}")
            raise StoreError(f"Lookup in {model.__tablename__} failed") from e

    def query_rows(self, stmt):
        try:
            with self._get_session() as session:
                return [dict(row) for row in session.execute(stmt).mappings()]
        except SQLAlchemyError as e:
            logger.error(f"Joined query failed: {e}")
            raise StoreError("Joined query failed") from e

    def count(self, model, *criteria):
        stmt = select(func.count()).select_from(model).where(*criteria)
        try:
            with self._get_session() as session:
                return session.scalar(stmt) or 0
        except SQLAlchemyError as e:
            logger.error(f"count on {model.__tablename__} failed: {e}")
            raise StoreError(f"Count in {model.__tablename__} failed") from e

    # --- Writes ---

    def insert(self, model, **fields):
        """
        Insert one `model` row built from `fields` and return its primary key.

        Raises:
            DuplicateRecordError: When a unique constraint rejects the row (the
                session is rolled back, nothing is written).
            StoreError: For any other database failure.
        """
        try:
            with self._get_session() as session:
                instance = model(**fields)
                session.add(instance)
                session.commit()
                pk = _primary_key_value(instance)
                logger.debug(f"Inserted into {model.__tablename__}: {pk}")
                return pk
        except IntegrityError as e:
            logger.info(f"Insert into {model.__tablename__} rejected: {e.orig}")
            raise DuplicateRecordError(
                f"Insert into {model.__tablename__} violates a uniqueness constraint"
            ) from e
        except SQLAlchemyError as e:
            logger.error(f"Insert into {model.__tablename__} failed: {e}")
            raise StoreError(f"Insert into {model.__tablename__} failed") from e

    def update(self, model, *criteria, **fields):
        if not fields:
            return 0
        stmt = update(model).where(*criteria).values(**fields)
        try:
            with self._get_session() as session:
                result = session.execute(stmt)
                session.commit()
                logger.debug(
                    f"Updated {result.rowcount} row(s) in {model.__tablename__}: {list(fields.keys())}"
                )
                return result.rowcount
        except IntegrityError as e:
            logger.info(f"Update of {model.__tablename__} rejected: {e.orig}")
            raise DuplicateRecordError(
                f"Update of {model.__tablename__} violates a uniqueness constraint"
            ) from e
        except SQLAlchemyError as e:
            logger.error(f"Update of {model.__tablename__} failed: {e}")
            raise StoreError(f"Update of {model.__tablename__} failed") from e

    def delete(self, model, *criteria):
        stmt = delete(model).where(*criteria)
        try:
            with self._get_session() as session:
                result = session.execute(stmt)
                session.commit()
                return result.rowcount
        except SQLAlchemyError as e:
            logger.error(f"Delete from {model.__tablename__} failed: {e}")
            raise StoreError(f"Delete from {model.__tablename__} failed") from e

    # --- Episode maintenance ---

    def delete_episodes_for_feed(self, feed_id: int) -> int:
        deleted = self._delete_episodes(Episode.feed_id == feed_id)
        logger.info(f"Deleted {deleted} episode(s) of feed {feed_id}")
        return deleted

    def delete_episodes_older_than(self, timestamp: int) -> int:
        deleted = self._delete_episodes(Episode.date_published < timestamp)
        logger.info(f"Deleted {deleted} episode(s) published before {timestamp}")
        return deleted

    def _delete_episodes(self, criterion) -> int:
        """
        Delete the episodes matching `criterion` and their child facet rows in one transaction.

        Bulk deletes bypass ORM cascades and SQLite does not enforce foreign keys
        by default, so child tables are cleared explicitly first.
        """
        episode_ids = select(Episode.id).where(criterion)
        try:
            with self._get_session() as session:
                for child in EPISODE_CHILD_MODELS:
                    session.execute(delete(child).where(child.item_id.in_(episode_ids)))
                result = session.execute(delete(Episode).where(criterion))
                session.commit()
                return result.rowcount
        except SQLAlchemyError as e:
            logger.error(f"Episode purge failed: {e}")
            raise StoreError("Episode purge failed") from e

    # --- Connection Management ---

    def close(self) -> None:
        """
        Dispose the SQLAlchemy engine and release database connections and resources.
        """
        self.engine.dispose()


def _primary_key(model) -> list:
    return list(model.__table__.primary_key.columns)


def _primary_key_value(instance) -> Any:
    columns = instance.__table__.primary_key.columns
    values = [getattr(instance, column.key) for column in columns]
    return values[0] if len(values) == 1 else tuple(values)
