"""
Azure HPC Cache Connector for the HPC Cache Engine.

Provides integration with the Azure Storage Cache management API for
reading cache state and updating NFS access policies.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from azure.core.exceptions import AzureError, ResourceNotFoundError
from azure.identity import DefaultAzureCredential
from azure.mgmt.storagecache import StorageCacheManagementClient
from azure.mgmt.storagecache import models as storagecache_models
from pydantic import ValidationError

from ..models import CacheSnapshot, NfsAccessPolicy, NfsAccessRule
from .base_connector import BaseConnector, ConnectorResult, MockConnector

logger = logging.getLogger(__name__)


class AzureConnector(BaseConnector):
    """Azure connector for reading caches and managing their access policies."""

    def __init__(self, config: Optional[Dict[str, Any]] = None, mock_mode: bool = False,
                 client: Optional[StorageCacheManagementClient] = None):
        super().__init__(config, mock_mode)

        self.subscription_id = self.config.get('subscription_id')
        self._mock: Optional[MockConnector] = None

        if mock_mode:
            self.credential = None
            self.cache_client = None
            self._mock = MockConnector(self.config)
        elif client is not None:
            self.credential = None
            self.cache_client = client
        else:
            if not self.subscription_id:
                raise ValueError("Azure subscription_id is required")

            self.credential = DefaultAzureCredential()
            self.cache_client = StorageCacheManagementClient(
                credential=self.credential,
                subscription_id=self.subscription_id
            )

    def validate_config(self) -> bool:
        return self.mock_mode or self.cache_client is not None

    def get_cache(self, resource_group: str, name: str) -> ConnectorResult:
        """Read an HPC Cache from Azure."""
        if self.mock_mode:
            return self._mock.get_cache(resource_group, name)

        try:
            cache = self.cache_client.caches.get(resource_group, name)
            snapshot = cache_to_snapshot(resource_group, name, cache)
            logger.debug(f"Retrieved HPC Cache {name}: {snapshot.provisioning_state}")
            return ConnectorResult(True, f"Found cache {name}", snapshot)

        except ResourceNotFoundError:
            return ConnectorResult(False, f"Cache {name} not found", found=False)
        except AzureError as e:
            error_msg = f"Failed to get HPC Cache {name} in {resource_group}: {e}"
            logger.error(error_msg)
            return ConnectorResult(False, error_msg, error=str(e))
        except (ValidationError, ValueError) as e:
            error_msg = f"Unreadable HPC Cache {name} in {resource_group}: {e}"
            logger.error(error_msg)
            return ConnectorResult(False, error_msg, error=str(e))

    def update_access_policies(self, resource_group: str, name: str,
                               policies: Sequence[NfsAccessPolicy]) -> ConnectorResult:
        """Replace the NFS access policies of an HPC Cache."""
        if self.mock_mode:
            return self._mock.update_access_policies(resource_group, name, policies)

        try:
            cache = self.cache_client.caches.get(resource_group, name)
            if cache.security_settings is None:
                cache.security_settings = storagecache_models.CacheSecuritySettings()
            cache.security_settings.access_policies = [policy_to_sdk(p) for p in policies]

            # Completion is tracked through the provisioning state, not the poller.
            self.cache_client.caches.begin_create_or_update(resource_group, name, cache, polling=False)

            logger.info(f"Submitted {len(policies)} access policies for HPC Cache {name}")
            return ConnectorResult(True, f"Updated access policies on {name}")

        except ResourceNotFoundError:
            return ConnectorResult(False, f"Cache {name} not found", found=False)
        except AzureError as e:
            error_msg = f"Failed to update access policies on HPC Cache {name}: {e}"
            logger.error(error_msg)
            return ConnectorResult(False, error_msg, error=str(e))


def cache_to_snapshot(resource_group: str, name: str, cache: Any) -> CacheSnapshot:
    """Convert an SDK Cache object into a CacheSnapshot."""
    security = getattr(cache, "security_settings", None)
    sdk_policies = (security.access_policies or []) if security is not None else []
    health = getattr(cache, "health", None)

    return CacheSnapshot(
        resource_group=resource_group,
        name=name,
        provisioning_state=_enum_value(cache.provisioning_state) or "",
        location=getattr(cache, "location", None),
        health_state=_enum_value(health.state) if health is not None else None,
        access_policies=[policy_from_sdk(p) for p in sdk_policies],
        raw=cache,
    )


def _enum_value(value: Any) -> Optional[str]:
    # SDK enums are str subclasses whose str() is the member name.
    return getattr(value, "value", value)


def policy_from_sdk(policy: Any) -> NfsAccessPolicy:
    rules: List[NfsAccessRule] = []
    for rule in policy.access_rules or []:
        rules.append(NfsAccessRule(
            scope=_enum_value(rule.scope),
            access=_enum_value(rule.access),
            filter=rule.filter,
            suid_enabled=rule.suid,
            submount_access_enabled=rule.submount_access,
            root_squash_enabled=rule.root_squash,
            anonymous_uid=int(rule.anonymous_uid) if rule.anonymous_uid else None,
            anonymous_gid=int(rule.anonymous_gid) if rule.anonymous_gid else None,
        ))
    return NfsAccessPolicy(name=policy.name, rules=rules)


def policy_to_sdk(policy: NfsAccessPolicy) -> Any:
    # The SDK carries the anonymous ids as strings.
    rules = [
        storagecache_models.NfsAccessRule(
            scope=rule.scope.value if rule.scope else None,
            access=rule.access.value if rule.access else None,
            filter=rule.filter,
            suid=rule.suid_enabled,
            submount_access=rule.submount_access_enabled,
            root_squash=rule.root_squash_enabled,
            anonymous_uid=str(rule.anonymous_uid) if rule.anonymous_uid is not None else None,
            anonymous_gid=str(rule.anonymous_gid) if rule.anonymous_gid is not None else None,
        )
        for rule in policy.rules
    ]
    return storagecache_models.NfsAccessPolicy(name=policy.name, access_rules=rules)
