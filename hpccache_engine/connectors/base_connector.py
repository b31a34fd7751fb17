"""
Base Connector Classes for the HPC Cache Engine.

This module provides the foundation for the control-plane connectors,
with both a real API implementation and a mock/simulated backend.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union
import logging

from ..models import CacheSnapshot, NfsAccessPolicy, ProvisioningState

logger = logging.getLogger(__name__)


class ConnectorResult:
    """Result of a connector operation."""

    def __init__(self, success: bool, message: str = "", data: Optional[Any] = None,
                 error: Optional[str] = None, found: bool = True):
        self.success = success
        self.message = message
        self.data = data
        self.error = error
        self.found = found

    def __bool__(self):
        return self.success

    def __str__(self):
        return f"{'✓' if self.success else '✗'} {self.message}"


class BaseConnector(ABC):
    """
    Abstract base class for control-plane connectors.

    A connector is the capability handed to the engine for reading and
    updating caches; the engine never holds a client of its own.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None, mock_mode: bool = False):
        """
        Initialize the connector.

        Args:
            config: Configuration dictionary with subscription, credentials, etc.
            mock_mode: If True, use mock/simulated backend instead of real APIs
        """
        self.config = config or {}
        self.mock_mode = mock_mode

        logger.info(f"Initialized {self.__class__.__name__} (mock_mode={mock_mode})")

    @abstractmethod
    def get_cache(self, resource_group: str, name: str) -> ConnectorResult:
        """
        Read the current state of a cache.

        Args:
            resource_group: Resource group holding the cache
            name: Cache name

        Returns:
            ConnectorResult with a CacheSnapshot in ``data`` on success.
            ``found`` is False when the cache does not exist; any other
            failure has ``success`` False and ``error`` set.
        """
        pass

    @abstractmethod
    def update_access_policies(self, resource_group: str, name: str,
                               policies: Sequence[NfsAccessPolicy]) -> ConnectorResult:
        """
        Submit a new access policy set for a cache.

        The update is applied asynchronously; wait for the cache to settle
        before reading it back.

        Returns:
            ConnectorResult with success status
        """
        pass

    def validate_config(self) -> bool:
        """
        Validate that the connector has all required configuration.

        Returns:
            True if configuration is valid, False otherwise
        """
        return True

    def is_mock_mode(self) -> bool:
        """Check if this connector is running in mock mode."""
        return self.mock_mode


# A scripted step is a provisioning state, None for "not found", or an
# exception standing for a failed request.
MockStep = Union[str, None, Exception]


class MockConnector(BaseConnector):
    """
    Mock/simulated control plane.

    Keeps caches in memory. Each cache replays a script of provisioning
    steps, one per read, and stays on the last step once the script ends.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        super().__init__(config, mock_mode=True)

        self.caches: Dict[Tuple[str, str], Dict[str, Any]] = {}
        self.get_calls: int = 0

    def add_cache(self, resource_group: str, name: str,
                  steps: Sequence[MockStep] = (ProvisioningState.SUCCEEDED.value,),
                  access_policies: Optional[List[NfsAccessPolicy]] = None,
                  location: str = "eastus") -> None:
        """Register a cache with a script of provisioning steps."""
        self.caches[(resource_group, name)] = {
            "steps": list(steps) or [ProvisioningState.SUCCEEDED.value],
            "position": 0,
            "location": location,
            "access_policies": list(access_policies or []),
        }
        logger.info(f"Mock registered cache {name} in {resource_group}")

    def get_cache(self, resource_group: str, name: str) -> ConnectorResult:
        """Mock cache read, advancing the cache's script by one step."""
        self.get_calls += 1

        cache = self.caches.get((resource_group, name))
        if cache is None:
            return ConnectorResult(False, f"Cache {name} not found", found=False)

        steps = cache["steps"]
        step = steps[min(cache["position"], len(steps) - 1)]
        cache["position"] += 1

        if step is None:
            return ConnectorResult(False, f"Cache {name} not found", found=False)
        if isinstance(step, Exception):
            return ConnectorResult(False, f"Failed to get cache {name}", error=str(step))

        snapshot = CacheSnapshot(
            resource_group=resource_group,
            name=name,
            provisioning_state=step,
            location=cache["location"],
            health_state="Healthy" if step == ProvisioningState.SUCCEEDED.value else "Transitioning",
            access_policies=list(cache["access_policies"]),
        )
        return ConnectorResult(True, f"Found cache {name}", snapshot)

    def update_access_policies(self, resource_group: str, name: str,
                               policies: Sequence[NfsAccessPolicy]) -> ConnectorResult:
        """Mock policy update; the cache reports Updating once, then Succeeded."""
        cache = self.caches.get((resource_group, name))
        if cache is None:
            return ConnectorResult(False, f"Cache {name} not found", found=False)

        cache["access_policies"] = list(policies)
        cache["steps"] = [ProvisioningState.UPDATING.value, ProvisioningState.SUCCEEDED.value]
        cache["position"] = 0

        logger.info(f"Mock updated {len(policies)} access policies on cache {name}")
        return ConnectorResult(True, f"Updated access policies on {name}")

    def delete_cache(self, resource_group: str, name: str) -> ConnectorResult:
        """Mock deletion; the cache reports Deleting once, then disappears."""
        cache = self.caches.get((resource_group, name))
        if cache is None:
            return ConnectorResult(False, f"Cache {name} not found", found=False)

        cache["steps"] = [ProvisioningState.DELETING.value, None]
        cache["position"] = 0

        logger.info(f"Mock deleting cache {name}")
        return ConnectorResult(True, f"Deleting cache {name}")

    def get_mock_state(self) -> Dict[str, Any]:
        """Get current mock state for inspection."""
        return {
            f"{resource_group}/{name}": cache
            for (resource_group, name), cache in self.caches.items()
        }
