"""
Exception hierarchy for the HPC Cache Engine.
"""

from typing import Optional


class HPCCacheError(Exception):
    """Base engine exception."""


class InvalidArgumentError(HPCCacheError, ValueError):
    """Raised when a required identifier is missing from the input."""


class ConfigurationError(HPCCacheError):
    """Raised when the engine configuration cannot be loaded."""


class CacheRequestError(HPCCacheError):
    """Raised when a read request against the control plane fails."""

    def __init__(self, name: str, resource_group: str, cause: Optional[str] = None):
        self.name = name
        self.resource_group = resource_group
        self.cause = cause
        super().__init__(
            f"making Read request on HPC Cache {name!r} (Resource Group {resource_group!r}): {cause}"
        )


class CacheNotFoundError(HPCCacheError):
    """Raised when a cache is missing and the caller treats that as terminal."""

    def __init__(self, name: str, resource_group: str):
        self.name = name
        self.resource_group = resource_group
        super().__init__(f"HPC Cache {name!r} (Resource Group {resource_group!r}) was not found")


class WaitTimeoutError(HPCCacheError, TimeoutError):
    """Raised when a cache never reaches the target state before the deadline."""

    def __init__(self, name: str, resource_group: str, timeout: float,
                 last_status: Optional[str] = None):
        self.name = name
        self.resource_group = resource_group
        self.timeout = timeout
        self.last_status = last_status
        super().__init__(
            f"timeout while waiting for HPC Cache {name!r} (Resource Group {resource_group!r}) "
            f"after {timeout:g}s, last state: {last_status}"
        )


class WaitCancelledError(HPCCacheError):
    """Raised when the caller's wait context is cancelled or its deadline passes."""
