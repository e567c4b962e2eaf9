"""Database utilities for the FlickPicks profile store."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import Engine, MetaData, create_engine, inspect, text
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker


class Base(DeclarativeBase):
    """Declarative base with consistent naming conventions."""

    metadata = MetaData()


class Database:
    """Thin wrapper managing the SQLAlchemy engine and sessions.

    Profile mutations are synchronous load-modify-save cycles, so the store
    uses a blocking engine; a local SQLite file is the default target.
    """

    def __init__(self, database_url: str):
        self._engine: Engine = create_engine(database_url, future=True)
        self.session_factory: sessionmaker[Session] = sessionmaker(
            self._engine, expire_on_commit=False
        )

    @property
    def engine(self) -> Engine:
        return self._engine

    def create_all(self) -> None:
        """Create database tables if they do not yet exist."""

        # Imported for its side effect of registering the tables on ``Base``.
        from . import db_models  # noqa: F401

        with self._engine.begin() as connection:
            Base.metadata.create_all(connection)
            self._apply_schema_migrations(connection)

    @staticmethod
    def _apply_schema_migrations(connection) -> None:
        """Ensure newly introduced columns are available on existing tables."""

        inspector = inspect(connection)
        if "kv_store" not in inspector.get_table_names():
            return

        existing_columns = {
            column["name"] for column in inspector.get_columns("kv_store")
        }
        if "updated_at" not in existing_columns:
            connection.execute(
                text("ALTER TABLE kv_store ADD COLUMN updated_at DATETIME")
            )

    def dispose(self) -> None:
        """Dispose of the underlying database engine."""

        self._engine.dispose()

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Provide a transactional scope around a series of operations."""

        with self.session_factory() as session:
            with session.begin():
                yield session
