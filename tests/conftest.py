import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("JWT_SECRET", "test-secret-not-for-production")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from config.database import Base, engine, SessionLocal
from common.security import hash_password
from common.session import SessionTracker, get_session_tracker
from main import app
from modules.exporter.models import Exporter
from modules.pricing.models import DailyPrice
from modules.user.models import User

PASSWORD = "s3cret-pass"


class FakeClock:
    def __init__(self, start: datetime = None):
        self.now = start or datetime(2025, 3, 5, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture(autouse=True)
def tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def tracker(clock):
    tracker = SessionTracker(idle_minutes=30, clock=clock)
    app.dependency_overrides[get_session_tracker] = lambda: tracker
    yield tracker
    app.dependency_overrides.pop(get_session_tracker, None)


@pytest.fixture
def client(tracker):
    # No context manager: the lifespan (scheduler) is not started in tests
    return TestClient(app)


@pytest.fixture
def make_user(db):
    def _make(role: str, email: str = None, active: bool = True) -> User:
        user = User(
            email=email or f"{role.lower()}@goldbod.test",
            full_name=role.title().replace("_", " "),
            password_hash=hash_password(PASSWORD),
            role=role,
            is_active=active,
        )
        db.add(user)
        db.commit()
        return user
    return _make


@pytest.fixture
def login(client, make_user):
    """Create a user with `role`, log in, return Authorization headers."""
    def _login(role: str) -> dict:
        user = make_user(role)
        res = client.post("/api/auth/login", json={"email": user.email, "password": PASSWORD})
        assert res.status_code == 200, res.text
        client.cookies.clear()
        return {"Authorization": f"Bearer {res.json()['token']}"}
    return _login


@pytest.fixture
def admin(login):
    return login("SUPERADMIN")


@pytest.fixture
def exporters(db):
    rows = [
        Exporter(name="Ashanti Gold Traders", code="AGT", exporter_type="small-scale"),
        Exporter(name="Western Bullion Ltd", code="WBL", exporter_type="large-scale"),
        Exporter(name="Volta Precious Metals", code="VPM", exporter_type="gold"),
    ]
    db.add_all(rows)
    db.commit()
    return {e.code: e.id for e in rows}


@pytest.fixture
def prices(db):
    db.add_all([
        DailyPrice(price_type="COMMODITY", value=2000.0, source="test"),
        DailyPrice(price_type="SILVER", value=25.0, source="test"),
        DailyPrice(price_type="EXCHANGE", value=12.0, source="test"),
    ])
    db.commit()


@pytest.fixture
def job_card_payload(exporters):
    def _payload(reference: str = "REF-001", exporter: str = "WBL", **extra) -> dict:
        body = {
            "reference_number": reference,
            "received_date": "2025-03-05T09:00:00Z",
            "exporter_id": exporters[exporter],
        }
        body.update(extra)
        return body
    return _payload


@pytest.fixture
def valued_job_card(client, admin, job_card_payload, prices):
    """Large-scale job card with one assay: 100 g at 92% gold, $2000/oz, 12 GHS/USD."""
    def _create(reference: str = "REF-001", exporter: str = "WBL", prefix: str = "/api/large-scale-job-cards") -> dict:
        res = client.post(prefix, json=job_card_payload(reference, exporter), headers=admin)
        assert res.status_code == 201, res.text
        job_card = res.json()
        res = client.post(
            f"{prefix}/{job_card['id']}/assays",
            json={"measurements": [{"gross_weight": 100, "gold_assay": 92}]},
            headers=admin,
        )
        assert res.status_code == 201, res.text
        return client.get(f"{prefix}/{job_card['id']}", headers=admin).json()
    return _create
