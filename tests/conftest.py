from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine

from translate_gateway.api.deps import get_db
from translate_gateway.core.config import settings
from translate_gateway.core.db import init_db
from translate_gateway.core import redis_client
from translate_gateway.core.gateway.cache import memory_cache
from translate_gateway.main import app


@pytest.fixture(name="engine")
def engine_fixture() -> Generator[Engine, None, None]:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    with Session(engine) as session:
        init_db(session)
        session.commit()
    yield engine
    engine.dispose()


@pytest.fixture(name="db")
def db_fixture(engine: Engine) -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session


@pytest.fixture(name="client")
def client_fixture(db: Session) -> Generator[TestClient, None, None]:
    def _get_db() -> Generator[Session, None, None]:
        yield db

    app.dependency_overrides[get_db] = _get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def _gateway_settings(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Offline defaults: mock translator, database cache, no Redis."""
    monkeypatch.setattr(settings, "TRANSLATOR_PROVIDER", "mock")
    monkeypatch.setattr(settings, "CACHE_BACKEND", "database")
    monkeypatch.setattr(settings, "CACHE_ENABLED", False)
    memory_cache.clear()
    redis_client.reset()
    yield
    memory_cache.clear()
    redis_client.reset()
