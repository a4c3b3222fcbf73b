import pytest
from datetime import date, timedelta
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from dentalce.database import Base, get_db
from dentalce.main import app
from dentalce.models.user import User
from dentalce.models.seminar import Seminar, SeminarSession
from dentalce.models.registration import SeminarRegistration

TEST_DB_URL = "sqlite:///./test_dental_ce.db"

engine = create_engine(TEST_DB_URL, connect_args={"check_same_thread": False})
TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# sessions 1-4 already happened, 5-10 are upcoming
PAST_SESSION_OFFSETS = (-40, -30, -20, -10)
FUTURE_SESSION_OFFSETS = (7, 14, 21, 28, 35, 42)


def override_get_db():
    db = TestingSession()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    db = TestingSession()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def seed_users(db):
    users = {
        "admin": User(email="admin@gps.test", first_name="Ada", last_name="Admin", role="admin"),
        "staff": User(email="staff@gps.test", first_name="Sam", last_name="Staff", role="staff"),
        "attendee": User(email="dr.lee@gps.test", first_name="Jordan", last_name="Lee", role="attendee"),
        "other": User(email="dr.kim@gps.test", first_name="Robin", last_name="Kim", role="attendee"),
    }
    for u in users.values():
        db.add(u)
    db.commit()
    for u in users.values():
        db.refresh(u)
    return users


@pytest.fixture
def seed_seminar(db):
    today = date.today()
    seminar = Seminar(
        title="GPS Implant Seminar",
        slug="gps-implant-seminar",
        year=today.year,
        total_sessions=10,
        status="active",
    )
    db.add(seminar)
    db.commit()
    db.refresh(seminar)
    offsets = PAST_SESSION_OFFSETS + FUTURE_SESSION_OFFSETS
    for number, offset in enumerate(offsets, start=1):
        db.add(SeminarSession(
            seminar_id=seminar.seminar_id,
            session_number=number,
            session_date=today + timedelta(days=offset),
            time_start="09:00",
            time_end="13:00",
            topic=f"Module {number}",
        ))
    db.commit()
    db.refresh(seminar)
    return seminar


@pytest.fixture
def sessions(db, seed_seminar):
    return (
        db.query(SeminarSession)
        .filter(SeminarSession.seminar_id == seed_seminar.seminar_id)
        .order_by(SeminarSession.session_number)
        .all()
    )


@pytest.fixture
def seed_registration(db, seed_users, seed_seminar):
    registration = SeminarRegistration(
        user_id=seed_users["attendee"].user_id,
        seminar_id=seed_seminar.seminar_id,
        status="active",
        sessions_completed=0,
        sessions_remaining=10,
        makeup_used=False,
        qr_code="SEM-TESTQR-0001",
    )
    db.add(registration)
    db.commit()
    db.refresh(registration)
    return registration


def get_token(client, email: str) -> str:
    resp = client.post("/api/auth/login", json={"email": email})
    assert resp.status_code == 200, resp.text
    return resp.json()["access_token"]


def auth_headers(client, email: str) -> dict:
    return {"Authorization": f"Bearer {get_token(client, email)}"}


def check_in(client, headers, registration_id: int, session_id: int, **extra):
    payload = {"registration_id": registration_id, "session_id": session_id}
    payload.update(extra)
    return client.post("/api/admin/seminars/check-in", json=payload, headers=headers)
