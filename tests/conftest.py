import os

# melaka_api import 전에 설정: MySQL 대신 메모리 SQLite, 빠른 해시, 조용한 로그
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["PASSWORD_HASH_ITERATIONS"] = "1000"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from melaka_api import models  # noqa: F401
from melaka_api.db import Base, get_db
from melaka_api.main import app


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # SQLite는 기본적으로 FK를 검사하지 않음
    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client(session_factory):
    def _get_test_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_test_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(client):
    """가입 + 로그인 후 (user_id, Authorization 헤더) 반환"""
    counter = {"n": 0}

    def _make(username=None, password="secret"):
        counter["n"] += 1
        username = username or f"user{counter['n']}"
        email = f"{username}@example.com"
        res = client.post(
            "/api/users/register",
            json={"username": username, "email": email, "password": password},
        )
        assert res.status_code == 201, res.text
        res = client.post("/api/users/login", json={"email": email, "password": password})
        assert res.status_code == 200, res.text
        body = res.json()
        return body["user_id"], {"Authorization": f"Bearer {body['access_token']}"}

    return _make


@pytest.fixture
def auth(make_user):
    return make_user("admin")


@pytest.fixture
def make_place(client, auth):
    def _make(name="Temple", latitude=2.1966, longitude=102.2472, **fields):
        _, headers = auth
        res = client.post(
            "/api/places",
            json={"name": name, "latitude": latitude, "longitude": longitude, **fields},
            headers=headers,
        )
        assert res.status_code == 201, res.text
        return res.json()["place_id"]

    return _make
