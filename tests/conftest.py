import os

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

# keep the app's default engine away from a real database file
os.environ.setdefault("DATABASE_URL", "sqlite://")

from app.db import Base, build_engine, get_db  # noqa: E402
from app.main import app  # noqa: E402


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'sykle-test.db'}")
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
