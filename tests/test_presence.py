"""
Logged-in users tracker tests
"""
import pytest

from app.models import User, UserType
from app.services.presence import PresenceTracker, device_type


class FakeTimer:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def make_user(user_id, email=None):
    return User(
        id=user_id,
        email=email or f"user{user_id}@example.com",
        full_name=f"User {user_id}",
        user_type=UserType.FOUNDER,
        two_factor_enabled=False,
    )


@pytest.fixture
def timer():
    return FakeTimer()


@pytest.fixture
def tracker(timer):
    return PresenceTracker(ttl_minutes=30, maxsize=100, timer=timer)


@pytest.mark.parametrize("user_agent,expected", [
    ("Mozilla/5.0 (Linux; Android 14) Mobile Safari/537.36", "Mobile"),
    ("Mozilla/5.0 (iPad; CPU OS 17_0 like Mac OS X)", "Tablet"),
    ("Mozilla/5.0 (Linux; Android 13; Tablet)", "Tablet"),
    ("Mozilla/5.0 (Macintosh; Intel Mac OS X 14_0)", "Desktop"),
    (None, "Unknown Device"),
    ("", "Unknown Device"),
])
def test_device_type(user_agent, expected):
    assert device_type(user_agent) == expected


def test_login_adds_entry(tracker):
    entry = tracker.touch(make_user(1), "Mozilla/5.0 (Windows NT 10.0)")

    assert entry.device_info == "Desktop"
    assert [e.user_id for e in tracker.active()] == [1]


def test_touch_refreshes_existing_entry(tracker, timer):
    tracker.touch(make_user(1))
    timer.now += 20 * 60
    tracker.touch(make_user(1))
    timer.now += 20 * 60

    assert len(tracker) == 1


def test_entries_expire_after_ttl(tracker, timer):
    tracker.touch(make_user(1))
    timer.now += 29 * 60
    tracker.touch(make_user(2))
    timer.now += 2 * 60

    assert [e.user_id for e in tracker.active()] == [2]


def test_logout_removes_entry(tracker):
    tracker.touch(make_user(1))
    tracker.remove(1)
    tracker.remove(1)  # already gone

    assert tracker.active() == []
