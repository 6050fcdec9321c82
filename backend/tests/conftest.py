"""Shared fixtures: in-memory database, API client and signed tokens."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from jose import jwt  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from api.dependencies import limiter  # noqa: E402
from config import settings  # noqa: E402
from db import build_engine, get_session, init_db  # noqa: E402
from main import app  # noqa: E402
from services import catalog, target_roles  # noqa: E402

USER_ID = "user-1"
MENTOR_ID = "mentor-1"


def make_token(user_id: str, role: str = "user") -> str:
    return jwt.encode({"sub": user_id, "role": role}, settings.jwt_secret, algorithm=settings.jwt_algorithm)


@pytest.fixture(autouse=True)
def reset_rate_limits():
    limiter.reset()
    yield


@pytest.fixture
def engine():
    engine = build_engine("sqlite://")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def override_session():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_session] = override_session
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def user_headers():
    return {"Authorization": f"Bearer {make_token(USER_ID)}"}


@pytest.fixture
def mentor_headers():
    return {"Authorization": f"Bearer {make_token(MENTOR_ID, role='mentor')}"}


@pytest.fixture
def backend_role(db):
    """Role with Python (required, 50) and Docker (optional, 50), plus an unbenchmarked Git skill."""
    python = catalog.create_skill(db, "Python", domain="languages")
    docker = catalog.create_skill(db, "Docker", domain="tools")
    git = catalog.create_skill(db, "Git", domain="tools")
    role = catalog.create_role(db, "Backend Developer")
    catalog.add_benchmark(db, role.id, python.id, importance="required", weight=50)
    catalog.add_benchmark(db, role.id, docker.id, importance="optional", weight=50)
    return {"role": role, "python": python, "docker": docker, "git": git}


@pytest.fixture
def targeted(db, backend_role):
    """USER_ID has selected the backend role."""
    target_roles.change_target_role(db, USER_ID, backend_role["role"].id)
    return backend_role
