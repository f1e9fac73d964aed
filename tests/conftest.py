"""Pytest fixtures for testing."""
from datetime import datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from closer.db.database import Base
from closer.db.init_db import SEED_CARDS
from closer.db.repository import CardRepository


@pytest.fixture
def now():
    """Fixed reference time for deterministic scheduling tests."""
    return datetime(2026, 1, 15, 9, 0, 0)


@pytest.fixture(scope="function")
def session_factory():
    """Session factory bound to a fresh in-memory database."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine, autoflush=False, autocommit=False)
    engine.dispose()


@pytest.fixture(scope="function")
def test_db(session_factory):
    """Create a seeded test database for each test."""
    db = session_factory()
    CardRepository(db).add_all(SEED_CARDS)
    db.commit()

    yield db

    db.close()
