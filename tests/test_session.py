from datetime import datetime, timedelta, timezone

from common.session import SessionTracker
from tests.conftest import FakeClock


def test_tracker_expires_idle_sessions():
    clock = FakeClock()
    tracker = SessionTracker(idle_minutes=30, clock=clock)

    assert tracker.is_idle(1)
    tracker.touch(1)
    assert not tracker.is_idle(1)

    clock.advance(minutes=29)
    assert tracker.check(1)
    assert tracker.last_seen(1) == clock.now

    clock.advance(minutes=31)
    assert not tracker.check(1)
    assert tracker.last_seen(1) is None


def test_activity_extends_the_session():
    clock = FakeClock(datetime(2025, 1, 1, tzinfo=timezone.utc))
    tracker = SessionTracker(idle_minutes=10, clock=clock)
    tracker.touch(5)
    for _ in range(5):
        clock.advance(minutes=9)
        assert tracker.check(5)
    assert clock.now - datetime(2025, 1, 1, tzinfo=timezone.utc) == timedelta(minutes=45)


def test_idle_request_is_rejected(client, login, clock):
    headers = login("ADMIN")

    clock.advance(minutes=20)
    assert client.get("/api/auth/me", headers=headers).status_code == 200

    clock.advance(minutes=31)
    res = client.get("/api/auth/me", headers=headers)
    assert res.status_code == 401
    assert res.json() == {"error": "session_expired"}

    # expired stays expired until the next login
    clock.advance(minutes=1)
    assert client.get("/api/auth/me", headers=headers).status_code == 401
