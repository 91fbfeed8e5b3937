import os

os.environ["ENV"] = "test"

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.db import Base
import app.models  # noqa: F401

pytest_plugins = [
    "tests.fixtures.store_fixtures",
    "tests.fixtures.service_fixtures",
    "tests.fixtures.transport_fixtures",
]


@pytest.fixture(scope="function")
def engine(tmp_path):
    """File-backed SQLite engine with every table created; dropped after the test."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'conversa.db'}",
        connect_args={"check_same_thread": False, "timeout": 10},
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture(scope="function")
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()
