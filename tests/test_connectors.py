"""
Tests for the control-plane connectors.

The Azure connector is exercised against a mocked management client.
"""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from azure.core.exceptions import HttpResponseError, ResourceNotFoundError

from hpccache_engine.connectors import ConnectorResult, MockConnector, get_connector
from hpccache_engine.connectors.azure_connector import (
    AzureConnector,
    cache_to_snapshot,
    policy_to_sdk,
)
from hpccache_engine.engine.access_policy import default_access_policy
from hpccache_engine.engine.state_waiter import wait_for_target_state
from hpccache_engine.exceptions import CacheRequestError
from hpccache_engine.models import WaitSettings
from hpccache_engine.models import (
    NfsAccessPolicy,
    NfsAccessRule,
    NfsAccessRuleAccess,
    NfsAccessRuleScope,
)

RG = "rg-storage"
NAME = "cache-01"


def sdk_cache(state="Succeeded", policies=None):
    """Stand-in for an SDK Cache object."""
    return SimpleNamespace(
        provisioning_state=state,
        location="westeurope",
        health=SimpleNamespace(state="Healthy"),
        security_settings=SimpleNamespace(access_policies=policies or []),
    )


def sdk_default_policy():
    rule = SimpleNamespace(
        scope="default", access="rw", filter=None, suid=False, submount_access=True,
        root_squash=True, anonymous_uid="65534", anonymous_gid="65534",
    )
    return SimpleNamespace(name="default", access_rules=[rule])


class TestConnectorResult:
    """Test cases for ConnectorResult."""

    def test_truthiness(self):
        assert bool(ConnectorResult(True, "ok")) is True
        assert bool(ConnectorResult(False, "failed")) is False

    def test_found_defaults_to_true(self):
        assert ConnectorResult(False, "failed", error="boom").found is True

    def test_str(self):
        assert str(ConnectorResult(True, "done")) == "✓ done"
        assert str(ConnectorResult(False, "failed")) == "✗ failed"


class TestMockConnector:
    """Test cases for the in-memory control plane."""

    @pytest.fixture
    def connector(self):
        return MockConnector()

    def test_unknown_cache_not_found(self, connector):
        result = connector.get_cache(RG, NAME)

        assert not result.success
        assert result.found is False
        assert result.error is None

    def test_replays_steps_and_stays_on_last(self, connector):
        connector.add_cache(RG, NAME, steps=["Creating", "Succeeded"])

        states = [connector.get_cache(RG, NAME).data.provisioning_state for _ in range(3)]

        assert states == ["Creating", "Succeeded", "Succeeded"]
        assert connector.get_calls == 3

    def test_exception_step_is_request_failure(self, connector):
        connector.add_cache(RG, NAME, steps=[RuntimeError("throttled")])

        result = connector.get_cache(RG, NAME)

        assert not result.success
        assert result.found is True
        assert result.error == "throttled"

    def test_update_access_policies(self, connector):
        connector.add_cache(RG, NAME, access_policies=[default_access_policy()])
        policies = [default_access_policy(), NfsAccessPolicy(name="extra")]

        result = connector.update_access_policies(RG, NAME, policies)

        assert result.success
        snapshot = connector.get_cache(RG, NAME).data
        assert snapshot.provisioning_state == "Updating"
        assert [p.name for p in snapshot.access_policies] == ["default", "extra"]
        assert connector.get_cache(RG, NAME).data.provisioning_state == "Succeeded"

    def test_update_unknown_cache(self, connector):
        result = connector.update_access_policies(RG, NAME, [])

        assert not result.success
        assert result.found is False

    def test_delete_cache(self, connector):
        connector.add_cache(RG, NAME)
        connector.delete_cache(RG, NAME)

        assert connector.get_cache(RG, NAME).data.provisioning_state == "Deleting"
        assert connector.get_cache(RG, NAME).found is False

    def test_mock_state(self, connector):
        connector.add_cache(RG, NAME)

        assert f"{RG}/{NAME}" in connector.get_mock_state()

    def test_get_connector_mock(self):
        assert isinstance(get_connector({}, mock=True), MockConnector)


class TestAzureConnector:
    """Test cases for AzureConnector against a mocked management client."""

    @pytest.fixture
    def client(self):
        return MagicMock()

    @pytest.fixture
    def connector(self, client):
        return AzureConnector({"subscription_id": "sub-1"}, client=client)

    def test_requires_subscription(self):
        with pytest.raises(ValueError, match="subscription_id is required"):
            AzureConnector({})

    def test_mock_mode_uses_memory_backend(self):
        connector = AzureConnector(mock_mode=True)

        assert connector.is_mock_mode()
        assert connector.get_cache(RG, NAME).found is False

    def test_get_cache(self, connector, client):
        client.caches.get.return_value = sdk_cache("Creating", [sdk_default_policy()])

        result = connector.get_cache(RG, NAME)

        client.caches.get.assert_called_once_with(RG, NAME)
        assert result.success
        snapshot = result.data
        assert snapshot.provisioning_state == "Creating"
        assert snapshot.health_state == "Healthy"
        assert snapshot.location == "westeurope"
        rule = snapshot.access_policies[0].rules[0]
        assert rule.scope == NfsAccessRuleScope.DEFAULT
        assert rule.anonymous_uid == 65534

    def test_get_cache_not_found(self, connector, client):
        client.caches.get.side_effect = ResourceNotFoundError(message="cache missing")

        result = connector.get_cache(RG, NAME)

        assert not result.success
        assert result.found is False

    def test_get_cache_failure(self, connector, client):
        client.caches.get.side_effect = HttpResponseError(message="forbidden")

        result = connector.get_cache(RG, NAME)

        assert not result.success
        assert result.found is True
        assert "forbidden" in result.error

    def test_get_cache_rejects_unknown_scope(self, connector, client):
        policy = sdk_default_policy()
        policy.access_rules[0].scope = "subnet"
        client.caches.get.return_value = sdk_cache("Succeeded", [policy])

        result = connector.get_cache(RG, NAME)

        assert not result.success
        assert result.found is True
        assert "subnet" in result.error

    def test_get_cache_rejects_non_numeric_uid(self, connector, client):
        policy = sdk_default_policy()
        policy.access_rules[0].anonymous_uid = "nobody"
        client.caches.get.return_value = sdk_cache("Succeeded", [policy])

        result = connector.get_cache(RG, NAME)

        assert not result.success
        assert result.found is True

    def test_unreadable_cache_aborts_wait_with_identity(self, connector, client):
        """A payload the model rejects surfaces as a request failure naming the cache."""
        policy = sdk_default_policy()
        policy.access_rules[0].scope = "network"
        client.caches.get.return_value = sdk_cache("Creating", [policy])

        with pytest.raises(CacheRequestError) as exc_info:
            wait_for_target_state(
                connector, None, RG, NAME,
                pending_tags=["Creating"], target_tag="Succeeded",
                settings=WaitSettings(delay=0, min_timeout=0, timeout=5),
            )

        assert exc_info.value.name == NAME
        assert exc_info.value.resource_group == RG
        assert client.caches.get.call_count == 1

    def test_update_access_policies(self, connector, client):
        cache = sdk_cache()
        cache.security_settings = None
        client.caches.get.return_value = cache
        policy = NfsAccessPolicy(name="agents", rules=[
            NfsAccessRule(scope=NfsAccessRuleScope.NETWORK, filter="10.0.0.0/24",
                          access=NfsAccessRuleAccess.RW, root_squash_enabled=True, anonymous_uid=1000),
        ])

        result = connector.update_access_policies(RG, NAME, [policy])

        assert result.success
        client.caches.begin_create_or_update.assert_called_once_with(RG, NAME, cache, polling=False)
        sdk_policy = cache.security_settings.access_policies[0]
        assert sdk_policy.name == "agents"
        assert sdk_policy.access_rules[0].filter == "10.0.0.0/24"
        assert sdk_policy.access_rules[0].anonymous_uid == "1000"

    def test_update_failure(self, connector, client):
        client.caches.get.return_value = sdk_cache()
        client.caches.begin_create_or_update.side_effect = HttpResponseError(message="conflict")

        result = connector.update_access_policies(RG, NAME, [default_access_policy()])

        assert not result.success
        assert "conflict" in result.error


class TestSdkConversion:
    """Test cases for SDK model conversion."""

    def test_snapshot_without_security_settings(self):
        cache = sdk_cache()
        cache.security_settings = None

        snapshot = cache_to_snapshot(RG, NAME, cache)

        assert snapshot.access_policies == []
        assert snapshot.raw is cache

    def test_policy_to_sdk(self):
        sdk_policy = policy_to_sdk(default_access_policy())

        assert sdk_policy.name == "default"
        assert sdk_policy.access_rules[0].scope == "default"
        assert sdk_policy.access_rules[0].access == "rw"
        assert sdk_policy.access_rules[0].anonymous_uid is None
