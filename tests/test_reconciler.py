"""Unit tests for reconciler.py - Contact point reconciliation."""

import asyncio

import pytest

from alerting_client import APIError, NotFoundError
from config import RetryConfig
from conftest import FakeAlertingClient
from errors import ApplyError, ImportContractError, ImportMissingError
from reconciler import ContactPointReconciler, ReconcileResult
from retry import RetryCancelledError, RetryTimeoutError
from validation import ConfigurationError


def _uids(state):
    """All notifier UIDs in a state tree."""
    uids = []
    for key, value in state.items():
        if isinstance(value, list):
            uids.extend(instance["uid"] for instance in value)
    return uids


@pytest.mark.asyncio
class TestCreate:
    """Tests for creating contact points."""

    async def test_creates_every_instance(self, fake_client, fast_retry):
        """N new instances produce N creates and nothing else."""
        desired = {
            "name": "ops",
            "slack": [
                {"url": "https://hooks.slack.test/1", "title": "one"},
                {"url": "https://hooks.slack.test/2", "title": "two"},
            ],
            "email": [{"addresses": ["a@example.com"]}],
        }
        reconciler = ContactPointReconciler(fake_client, retry_config=fast_retry)

        result = await reconciler.create(desired)

        assert isinstance(result, ReconcileResult)
        assert len(fake_client.calls_of("create")) == 3
        assert fake_client.calls_of("update") == []
        assert fake_client.calls_of("delete") == []
        assert result.created == 3
        assert result.updated == 0
        assert result.deleted == 0
        assert result.resource_id == "1:ops"
        assert len(result.state["slack"]) == 2
        assert len(result.state["email"]) == 1
        uids = _uids(result.state)
        assert len(uids) == 3
        assert all(uids)

    async def test_create_does_not_fetch_current(self, fake_client, fast_retry):
        """Creation skips fetching current records before applying."""
        fake_client.add_point("stale", "ops", "slack", title="old")
        reconciler = ContactPointReconciler(fake_client, retry_config=fast_retry)

        await reconciler.create(
            {"name": "ops", "webhook": [{"url": "https://hook.test"}]}
        )

        assert fake_client.calls_of("delete") == []
        assert "stale" in fake_client.points

    async def test_create_does_not_modify_desired(self, fake_client, fast_retry):
        """The caller's tree is not mutated."""
        desired = {"name": "ops", "webhook": [{"url": "https://hook.test"}]}
        reconciler = ContactPointReconciler(fake_client, retry_config=fast_retry)

        await reconciler.create(desired)

        assert "uid" not in desired["webhook"][0]

    async def test_state_carries_secure_fields(
        self, fake_client, fast_retry, sample_contact_point
    ):
        """Secure fields come from the declared tree, not the backend."""
        reconciler = ContactPointReconciler(fake_client, retry_config=fast_retry)

        result = await reconciler.create(sample_contact_point)

        slack = result.state["slack"][0]
        assert slack["url"] == "https://hooks.slack.test/T000/B000"
        assert slack["title"] == "Alert"
        email = result.state["email"][0]
        assert email["addresses"] == ["oncall@example.com", "team@example.com"]
        assert email["single_email"] is True

    async def test_uses_declared_org(self, fake_client, fast_retry):
        """A declared org_id selects the client of that organization."""
        reconciler = ContactPointReconciler(fake_client, retry_config=fast_retry)

        result = await reconciler.create(
            {"name": "ops", "org_id": "3", "webhook": [{"url": "https://hook.test"}]}
        )

        assert result.resource_id == "3:ops"
        assert result.state["org_id"] == "3"
        assert fake_client.points == {}
        assert len(fake_client.for_org(3).points) == 1

    async def test_invalid_configuration_makes_no_calls(self, fake_client):
        """A tree with no notifier is rejected before touching the backend."""
        reconciler = ContactPointReconciler(fake_client)

        with pytest.raises(ConfigurationError) as exc_info:
            await reconciler.create({"name": "ops"})

        assert "at least one notifier" in str(exc_info.value)
        assert fake_client.calls == []

    async def test_empty_notifier_group_is_rejected(self, fake_client):
        reconciler = ContactPointReconciler(fake_client)

        with pytest.raises(ConfigurationError):
            await reconciler.create({"name": "ops", "slack": []})


@pytest.mark.asyncio
class TestUpdate:
    """Tests for updating contact points."""

    async def test_update_create_delete_mix(self, fake_client, fast_retry):
        """Kept UID is updated, new instance created, stray record deleted."""
        fake_client.add_point("uid-a", "ops", "slack", title="before")
        fake_client.add_point("uid-c", "ops", "email", addresses="x@example.com")
        fake_client.add_point("uid-d", "other", "slack", title="untouched")
        desired = {
            "id": "1:ops",
            "name": "ops",
            "slack": [
                {"uid": "uid-a", "url": "https://hooks.slack.test/a", "title": "after"}
            ],
            "webhook": [{"url": "https://hook.test"}],
        }
        reconciler = ContactPointReconciler(fake_client, retry_config=fast_retry)

        result = await reconciler.update(desired)

        assert fake_client.calls_of("update") == [("update", "uid-a")]
        assert fake_client.calls_of("create") == [("create", "webhook")]
        assert fake_client.calls_of("delete") == [("delete", "uid-c")]
        assert (result.created, result.updated, result.deleted) == (1, 1, 1)
        assert "uid-c" not in _uids(result.state)
        assert result.state["slack"][0]["title"] == "after"
        assert result.state["slack"][0]["uid"] == "uid-a"
        assert "uid-d" in fake_client.points

    async def test_update_targets_org_of_resource_id(self, fake_client, fast_retry):
        """An org-prefixed id selects that organization without an org_id."""
        org_two = fake_client.for_org(2)
        org_two.add_point("uid-a", "ops", "webhook", url="https://old.test")
        reconciler = ContactPointReconciler(fake_client, retry_config=fast_retry)

        result = await reconciler.update(
            {
                "id": "2:ops",
                "name": "ops",
                "webhook": [{"uid": "uid-a", "url": "https://new.test"}],
            }
        )

        assert result.resource_id == "2:ops"
        assert org_two.calls_of("update") == [("update", "uid-a")]
        assert fake_client.calls == []
        assert result.state["webhook"][0]["url"] == "https://new.test"

    async def test_conflicting_id_and_org_id_rejected(self, fake_client, fast_retry):
        reconciler = ContactPointReconciler(fake_client, retry_config=fast_retry)

        with pytest.raises(ConfigurationError):
            await reconciler.update(
                {
                    "id": "2:ops",
                    "org_id": "3",
                    "name": "ops",
                    "webhook": [{"url": "https://hook.test"}],
                }
            )

        assert fake_client.for_org(2).calls == []
        assert fake_client.for_org(3).calls == []

    async def test_fetch_not_found_is_empty(self, fake_client, fast_retry):
        """A not-found listing of current records means nothing to delete."""
        fake_client.fail_on["list"] = NotFoundError(404, "not found")
        reconciler = ContactPointReconciler(fake_client, retry_config=fast_retry)

        result = await reconciler.update(
            {"name": "ops", "webhook": [{"url": "https://hook.test"}]}
        )

        assert result.created == 1
        assert result.deleted == 0
        assert result.state is None

    async def test_update_failure_is_fatal(self, fake_client, fast_retry):
        """A failed update aborts the reconciliation."""
        fake_client.add_point("uid-a", "ops", "slack")
        fake_client.fail_on["update"] = APIError(400, "bad request")
        desired = {
            "name": "ops",
            "slack": [{"uid": "uid-a", "url": "https://hooks.slack.test/a"}],
            "webhook": [{"url": "https://hook.test"}],
        }
        reconciler = ContactPointReconciler(fake_client, retry_config=fast_retry)

        with pytest.raises(ApplyError) as exc_info:
            await reconciler.update(desired)

        assert exc_info.value.uid == "uid-a"
        assert exc_info.value.name == "ops"
        assert fake_client.calls_of("create") == []

    async def test_delete_failure_names_uid_and_contact_point(
        self, fake_client, fast_retry
    ):
        fake_client.add_point("uid-c", "ops", "email", addresses="x@example.com")
        fake_client.fail_on["delete"] = APIError(500, "boom")
        reconciler = ContactPointReconciler(fake_client, retry_config=fast_retry)

        with pytest.raises(ApplyError) as exc_info:
            await reconciler.update(
                {"name": "ops", "webhook": [{"url": "https://hook.test"}]}
            )

        message = str(exc_info.value)
        assert "uid-c" in message
        assert "ops" in message
        assert exc_info.value.uid == "uid-c"


@pytest.mark.asyncio
class TestCreateRetry:
    """Tests for the transient failure retry on create."""

    async def test_transient_failures_are_retried(self, fast_retry):
        """Two 500s in a non-default org are retried, then creation succeeds."""
        client = FakeAlertingClient(org_id=2)
        client.create_failures = [APIError(500, "not ready"), APIError(500, "again")]
        reconciler = ContactPointReconciler(client, retry_config=fast_retry)

        result = await reconciler.create(
            {"name": "ops", "webhook": [{"url": "https://hook.test"}]}
        )

        assert len(client.calls_of("create")) == 3
        assert result.created == 1
        assert _uids(result.state) == ["uid-1"]

    async def test_retry_budget_exhausted(self):
        """Continuous 500s past the budget surface a fatal error."""
        client = FakeAlertingClient(org_id=2)
        client.create_error = APIError(500, "not ready")
        retry_config = RetryConfig(timeout=0.05, base_delay=0.01, max_delay=0.01)
        reconciler = ContactPointReconciler(client, retry_config=retry_config)

        with pytest.raises(ApplyError) as exc_info:
            await reconciler.create(
                {"name": "ops", "webhook": [{"url": "https://hook.test"}]}
            )

        assert exc_info.value.name == "ops"
        assert exc_info.value.kind == "contact point"
        timeout_error = exc_info.value.__cause__
        assert isinstance(timeout_error, RetryTimeoutError)
        assert isinstance(timeout_error.last_error, APIError)
        assert len(client.calls_of("create")) > 1
        assert client.points == {}

    async def test_default_org_is_not_retried(self, fake_client, fast_retry):
        fake_client.create_failures = [APIError(500, "boom")]
        reconciler = ContactPointReconciler(fake_client, retry_config=fast_retry)

        with pytest.raises(ApplyError) as exc_info:
            await reconciler.create(
                {"name": "ops", "webhook": [{"url": "https://hook.test"}]}
            )

        assert len(fake_client.calls_of("create")) == 1
        assert exc_info.value.__cause__.status == 500

    async def test_other_statuses_are_not_retried(self, fast_retry):
        client = FakeAlertingClient(org_id=2)
        client.create_failures = [APIError(400, "invalid")]
        reconciler = ContactPointReconciler(client, retry_config=fast_retry)

        with pytest.raises(ApplyError):
            await reconciler.create(
                {"name": "ops", "webhook": [{"url": "https://hook.test"}]}
            )

        assert len(client.calls_of("create")) == 1

    async def test_shutdown_aborts_retry(self):
        client = FakeAlertingClient(org_id=2)
        client.create_error = APIError(500, "not ready")
        shutdown_event = asyncio.Event()
        shutdown_event.set()
        reconciler = ContactPointReconciler(
            client,
            retry_config=RetryConfig(timeout=60, base_delay=30, max_delay=30),
            shutdown_event=shutdown_event,
        )

        with pytest.raises(RetryCancelledError):
            await asyncio.wait_for(
                reconciler.create(
                    {"name": "ops", "webhook": [{"url": "https://hook.test"}]}
                ),
                timeout=5,
            )


@pytest.mark.asyncio
class TestRead:
    """Tests for reading and importing contact points."""

    async def test_unknown_type_tags_are_skipped(self, fake_client):
        fake_client.add_point("uid-s", "ops", "slack", title="t")
        fake_client.add_point("uid-x", "ops", "carrier-pigeon", coop="roof")
        reconciler = ContactPointReconciler(fake_client)

        state = await reconciler.read("1:ops")

        assert state["name"] == "ops"
        assert state["id"] == "1:ops"
        assert len(state["slack"]) == 1
        assert "uid-x" not in _uids(state)

    async def test_missing_contact_point_returns_none(self, fake_client):
        reconciler = ContactPointReconciler(fake_client)

        assert await reconciler.read("1:nope") is None

    async def test_read_uses_prior_state_for_secure_fields(self, fake_client):
        fake_client.add_point("uid-s", "ops", "slack", url="[REDACTED]", title="t")
        prior = {"name": "ops", "slack": [{"uid": "uid-s", "url": "https://real"}]}
        reconciler = ContactPointReconciler(fake_client)

        state = await reconciler.read("1:ops", prior)

        assert state["slack"][0]["url"] == "https://real"
        assert "url" not in state["slack"][0]["settings"]

    async def test_legacy_uid_import(self, fake_client):
        fake_client.add_point("u1", "N", "slack", title="t")
        fake_client.add_point("u2", "N", "email", addresses="a@example.com")
        fake_client.add_point("u3", "M", "slack", title="other")
        reconciler = ContactPointReconciler(fake_client)

        state = await reconciler.import_state("u1;u2")

        assert state["id"] == "1:N"
        assert state["name"] == "N"
        assert sorted(_uids(state)) == ["u1", "u2"]

    async def test_legacy_uid_import_name_mismatch(self, fake_client):
        fake_client.add_point("u1", "N", "slack", title="t")
        fake_client.add_point("u2", "M", "slack", title="t")
        reconciler = ContactPointReconciler(fake_client)

        with pytest.raises(ImportContractError) as exc_info:
            await reconciler.import_state("u1;u2")

        message = str(exc_info.value)
        for part in ("u1", "u2", "(N)", "(M)"):
            assert part in message

    async def test_legacy_uid_import_missing_uid(self, fake_client):
        fake_client.add_point("u1", "N", "slack", title="t")
        reconciler = ContactPointReconciler(fake_client)

        with pytest.raises(ImportMissingError) as exc_info:
            await reconciler.import_state("u1;u9")

        assert exc_info.value.uid == "u9"
        assert "u9" in str(exc_info.value)

    async def test_org_prefixed_id_never_uses_uid_lookup(self, fake_client):
        fake_client.add_point("u1", "N", "slack", title="t")
        reconciler = ContactPointReconciler(fake_client)

        assert await reconciler.read("1:u1") is None
        assert ("list", None) not in fake_client.calls


@pytest.mark.asyncio
class TestDelete:
    """Tests for deleting contact points."""

    async def test_deletes_every_record(self, fake_client):
        fake_client.add_point("uid-a", "ops", "slack")
        fake_client.add_point("uid-b", "ops", "email", addresses="a@example.com")
        fake_client.add_point("uid-c", "other", "slack")
        reconciler = ContactPointReconciler(fake_client)

        deleted = await reconciler.delete("1:ops")

        assert deleted == 2
        assert list(fake_client.points) == ["uid-c"]

    async def test_missing_contact_point(self, fake_client):
        reconciler = ContactPointReconciler(fake_client)

        assert await reconciler.delete("1:ops") == 0
        assert fake_client.calls_of("delete") == []
