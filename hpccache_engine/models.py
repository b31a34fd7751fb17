"""
Core data models for the HPC Cache Engine.

This module defines the Pydantic models used throughout the system
for NFS access rules and policies, observed cache snapshots and
wait settings.
"""

from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, Field, model_validator


class NfsAccessRuleScope(str, Enum):
    """Network scope an NFS access rule applies to."""
    DEFAULT = "default"
    NETWORK = "network"
    HOST = "host"


class NfsAccessRuleAccess(str, Enum):
    """Access level granted by an NFS access rule."""
    NO = "no"
    RO = "ro"
    RW = "rw"


class ProvisioningState(str, Enum):
    """Provisioning states reported by the cache control plane."""
    CREATING = "Creating"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"
    CANCELLED = "Cancelled"
    UPDATING = "Updating"
    DELETING = "Deleting"


class NfsAccessRule(BaseModel):
    """A single network-scope permission entry of an access policy."""
    scope: Optional[NfsAccessRuleScope] = Field(None, description="Scope the rule applies to")
    access: Optional[NfsAccessRuleAccess] = Field(None, description="Access level (no, ro, rw)")
    filter: Optional[str] = Field(None, description="Subnet (CIDR) or host the rule matches")
    suid_enabled: Optional[bool] = Field(None, description="Allow SUID semantics")
    submount_access_enabled: Optional[bool] = Field(None, description="Allow mounting sub-directories")
    root_squash_enabled: Optional[bool] = Field(None, description="Map root to the anonymous ids")
    anonymous_uid: Optional[int] = Field(None, description="UID used when root squash is enabled")
    anonymous_gid: Optional[int] = Field(None, description="GID used when root squash is enabled")

    @model_validator(mode="after")
    def validate_filter(self) -> "NfsAccessRule":
        """A filter is required for network/host scopes and forbidden for the default scope."""
        if self.scope == NfsAccessRuleScope.DEFAULT and self.filter:
            raise ValueError("filter must not be set for the default scope")
        if self.scope in (NfsAccessRuleScope.NETWORK, NfsAccessRuleScope.HOST) and not self.filter:
            raise ValueError(f"filter is required for the {self.scope.value} scope")
        return self


class NfsAccessPolicy(BaseModel):
    """A named grouping of NFS access rules."""
    name: Optional[str] = Field(None, description="Policy name, required for mutations")
    rules: List[NfsAccessRule] = Field(default_factory=list)


class CacheSnapshot(BaseModel):
    """Observed state of a remote HPC Cache."""
    resource_group: str
    name: str
    provisioning_state: str = Field(..., description="Raw provisioning state tag")
    location: Optional[str] = None
    health_state: Optional[str] = None
    access_policies: List[NfsAccessPolicy] = Field(default_factory=list)
    raw: Optional[Any] = Field(None, description="Underlying SDK object", exclude=True)


class WaitSettings(BaseModel):
    """Polling cadence for provisioning waits, in seconds."""
    delay: float = Field(10.0, ge=0, description="Delay before the first check")
    min_timeout: float = Field(30.0, ge=0, description="Spacing between successive checks")
    timeout: float = Field(3600.0, gt=0, description="Overall deadline of the wait")


# Type aliases for convenience
NfsAccessRules = List[NfsAccessRule]
NfsAccessPolicies = List[NfsAccessPolicy]
