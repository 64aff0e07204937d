"""Pytest configuration for the API tester backend."""
import os

import pytest


def pytest_configure():
    # In-memory database shared through a StaticPool; must be set before
    # apitester.db builds its engine.
    os.environ["DATABASE_URL"] = "sqlite://"
    os.environ.setdefault("LOG_LEVEL", "WARNING")


@pytest.fixture
def db():
    """Provide a session on freshly created tables."""
    from apitester.db import Base, SessionLocal, engine

    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    yield session
    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def request_store(db):
    from apitester.request_store import RequestStore

    return RequestStore(db)


@pytest.fixture
def checkpoint_store(db):
    from apitester.checkpoint_store import CheckpointStore

    return CheckpointStore(db)


@pytest.fixture
def service(request_store, checkpoint_store):
    from apitester.versioning import RequestLocks, VersioningService

    return VersioningService(request_store, checkpoint_store, locks=RequestLocks())


@pytest.fixture
def sample_fields():
    return {
        "name": "List users",
        "method": "GET",
        "url": "http://a.com/users",
        "headers": {"Accept": "application/json"},
        "body": {"filter": {"active": True}},
        "query_params": [{"key": "page", "value": "1", "enabled": True}],
        "auth": {"type": "bearer", "token": "abc"},
    }
