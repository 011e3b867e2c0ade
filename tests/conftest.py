"""Pytest fixtures and configuration for trafficboard tests."""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient
from unittest.mock import patch

from trafficboard.database.database import Base
from trafficboard.database.client_color_repository import ClientColorRepository
from trafficboard.exceptions import ConfigurationError
from trafficboard.services.enrichment import EnrichmentService
from trafficboard.services.reference_catalog import ReferenceCatalog
from trafficboard.services.task_cache import TaskCache
from trafficboard.services.task_repository import TaskRepository

from fakes import (
    DATABASE_IDS,
    FakeClock,
    FakeNotionStore,
    client_page,
    project_page,
    user_page,
)


# Use in-memory SQLite database for tests
TEST_DATABASE_URL = "sqlite:///:memory:"


@pytest.fixture(scope="function")
def db_session():
    """Create a database session for testing.

    Uses an in-memory SQLite database that is created fresh for each test.
    """
    from trafficboard.database import models  # noqa: F401

    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )
    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def store():
    """Fake Notion store seeded with reference data.

    Users: Alice (U1), Bob (U2). Clients: Acme (C1), Globex (C2).
    Projects: Brand Film (P1, Acme), Website (P2, Globex), Internal (P3, no client).
    """
    fake = FakeNotionStore()
    fake.add(DATABASE_IDS.users, user_page("U1", "Alice"), user_page("U2", "Bob"))
    fake.add(DATABASE_IDS.clients, client_page("C1", "Acme"), client_page("C2", "Globex"))
    fake.add(
        DATABASE_IDS.projects,
        project_page("P1", "Brand Film", ["C1"]),
        project_page("P2", "Website", ["C2"]),
        project_page("P3", "Internal"),
    )
    return fake


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return TaskCache(ttl_seconds=300, clock=clock)


@pytest.fixture
def repository(store, cache):
    return TaskRepository(store, DATABASE_IDS.tasks, cache)


@pytest.fixture
def catalog(store):
    return ReferenceCatalog(store, DATABASE_IDS)


@pytest.fixture
def color_map():
    """Mutable client name -> color map served by the color loader."""
    return {}


@pytest.fixture
def service(repository, catalog, color_map):
    """EnrichmentService over the fake store with an in-memory color map."""
    return EnrichmentService(repository, catalog, color_loader=lambda: color_map)


@pytest.fixture
def test_client(db_session: Session, repository, catalog):
    """Create a FastAPI test client over the fake store and the test database."""
    from trafficboard.api.app import app, get_enrichment_service
    from trafficboard.database.database import get_db

    api_service = EnrichmentService(
        repository,
        catalog,
        color_loader=lambda: ClientColorRepository(db_session).color_map(),
    )

    def override_get_db():
        try:
            yield db_session
        finally:
            pass  # Don't close the session here, let the fixture handle it

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_enrichment_service] = lambda: api_service

    # Startup must not touch the real database or read the real environment
    with patch("trafficboard.api.app.init_db"), patch(
        "trafficboard.api.app.load_active_store_config",
        side_effect=ConfigurationError("not configured in tests"),
    ):
        with TestClient(app) as client:
            yield client

    app.dependency_overrides.clear()
