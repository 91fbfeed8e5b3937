"""Engine, session factory and declarative base."""

from __future__ import annotations

from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from app.config import get_settings

Base = declarative_base()

_SQLITE_MEMORY_URLS = ("sqlite://", "sqlite:///:memory:")


class DatabaseManager:
    """Lazily creates the engine so importing models never needs a live database."""

    def __init__(self, url: Optional[str] = None) -> None:
        self._url = url
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            self._engine = self._create_engine()
        return self._engine

    def _create_engine(self) -> Engine:
        settings = get_settings()
        url = self._url or settings.database_url
        if url.startswith("sqlite"):
            # An in-memory database only exists on its one shared connection.
            pool = {"poolclass": StaticPool} if url in _SQLITE_MEMORY_URLS else {}
            return create_engine(
                url,
                connect_args={"check_same_thread": False},
                **pool,
            )
        return create_engine(
            url,
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            pool_pre_ping=True,
            connect_args={"application_name": settings.app_name},
        )

    @property
    def session_factory(self) -> sessionmaker:
        if self._session_factory is None:
            self._session_factory = sessionmaker(
                bind=self.engine, autoflush=False, expire_on_commit=False
            )
        return self._session_factory

    def SessionLocal(self) -> Session:
        return self.session_factory()


db_manager = DatabaseManager()


def SessionLocal() -> Session:
    return db_manager.SessionLocal()

