"""Pytest configuration and fixtures."""

from typing import Any, Dict, List, Optional, Tuple

import pytest

from alerting_client import APIError, NotFoundError
from config import RetryConfig
from locking import reset_locks
from models import ContactPoint, MuteTiming
from plugins.registry import reset_registry


class FakeAlertingClient:
    """
    In-memory stand-in for AlertingClient.

    Records every call in ``calls``. Errors queued in ``create_failures``
    are raised by successive create calls; ``create_error`` is raised by
    every create call; ``fail_on`` maps an operation name to an error.
    """

    def __init__(self, org_id: int = 1, url: str = "http://alerting.test"):
        self.url = url
        self.org_id = org_id
        self.points: Dict[str, ContactPoint] = {}
        self.mute_timings: Dict[str, MuteTiming] = {}
        self.calls: List[Tuple[Any, ...]] = []
        self.create_failures: List[Exception] = []
        self.create_error: Optional[Exception] = None
        self.fail_on: Dict[str, Exception] = {}
        self._next_uid = 0
        self._orgs = {org_id: self}

    @property
    def lock_key(self) -> str:
        return f"{self.url}#{self.org_id}"

    def for_org(self, org_id: int) -> "FakeAlertingClient":
        if org_id not in self._orgs:
            sibling = FakeAlertingClient(org_id=org_id, url=self.url)
            sibling._orgs = self._orgs
            self._orgs[org_id] = sibling
        return self._orgs[org_id]

    def add_point(self, uid: str, name: str, type_: str, **settings) -> ContactPoint:
        point = ContactPoint(uid=uid, name=name, type=type_, settings=settings)
        self.points[uid] = point
        return point

    def calls_of(self, operation: str) -> List[Tuple[Any, ...]]:
        return [c for c in self.calls if c[0] == operation]

    def _maybe_fail(self, operation: str) -> None:
        if operation in self.fail_on:
            raise self.fail_on[operation]

    # Contact points

    async def list_contact_points(self, name: Optional[str] = None):
        self.calls.append(("list", name))
        self._maybe_fail("list")
        return [
            p.model_copy(deep=True)
            for p in self.points.values()
            if name is None or p.name == name
        ]

    async def create_contact_point(self, point: ContactPoint) -> ContactPoint:
        self.calls.append(("create", point.type))
        if self.create_failures:
            raise self.create_failures.pop(0)
        if self.create_error is not None:
            raise self.create_error
        self._next_uid += 1
        created = point.model_copy(deep=True)
        created.uid = f"uid-{self._next_uid}"
        self.points[created.uid] = created
        return created.model_copy(deep=True)

    async def update_contact_point(self, uid: str, point: ContactPoint) -> None:
        self.calls.append(("update", uid))
        self._maybe_fail("update")
        if uid not in self.points:
            raise NotFoundError(404, "not found", "PUT", uid)
        updated = point.model_copy(deep=True)
        updated.uid = uid
        self.points[uid] = updated

    async def delete_contact_point(self, uid: str) -> None:
        self.calls.append(("delete", uid))
        self._maybe_fail("delete")
        if uid not in self.points:
            raise NotFoundError(404, "not found", "DELETE", uid)
        del self.points[uid]

    # Mute timings

    async def get_mute_timing(self, name: str) -> MuteTiming:
        self.calls.append(("get_mute_timing", name))
        if name not in self.mute_timings:
            raise NotFoundError(404, "not found", "GET", name)
        return self.mute_timings[name].model_copy(deep=True)

    async def create_mute_timing(self, timing: MuteTiming) -> MuteTiming:
        self.calls.append(("create_mute_timing", timing.name))
        if timing.name in self.mute_timings:
            raise APIError(409, "already exists", "POST", timing.name)
        self.mute_timings[timing.name] = timing.model_copy(deep=True)
        return timing.model_copy(deep=True)

    async def update_mute_timing(self, name: str, timing: MuteTiming) -> None:
        self.calls.append(("update_mute_timing", name))
        if name not in self.mute_timings:
            raise NotFoundError(404, "not found", "PUT", name)
        self.mute_timings[name] = timing.model_copy(deep=True)

    async def delete_mute_timing(self, name: str) -> None:
        self.calls.append(("delete_mute_timing", name))
        if name not in self.mute_timings:
            raise NotFoundError(404, "not found", "DELETE", name)
        del self.mute_timings[name]


@pytest.fixture(autouse=True)
def reset_globals():
    """Reset process-wide state between tests."""
    reset_locks()
    reset_registry()
    yield
    reset_locks()
    reset_registry()


@pytest.fixture
def fake_client():
    """Fake backend for the default organization."""
    return FakeAlertingClient()


@pytest.fixture
def fast_retry():
    """Retry policy with short delays."""
    return RetryConfig(timeout=5.0, base_delay=0.01, max_delay=0.02, jitter_factor=0.0)


@pytest.fixture
def sample_contact_point():
    """Declared contact point with two notifiers."""
    return {
        "name": "ops",
        "slack": [
            {
                "url": "https://hooks.slack.test/T000/B000",
                "title": "Alert",
                "disable_resolve_message": False,
                "settings": {},
            }
        ],
        "email": [
            {
                "addresses": ["oncall@example.com", "team@example.com"],
                "single_email": True,
            }
        ],
    }


@pytest.fixture
def sample_mute_timing():
    """Declared mute timing."""
    return {
        "name": "weekends",
        "intervals": [
            {
                "times": [{"start": "00:00", "end": "23:59"}],
                "weekdays": ["saturday", "sunday"],
                "months": ["january:march"],
                "location": "Europe/London",
            }
        ],
    }
