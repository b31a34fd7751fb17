"""
Engine Package.

This package provides the access policy operations and the provisioning
state waiter used to reconcile HPC Cache access policies.
"""

from .access_policy import (
    default_access_policy,
    delete_policy_by_name,
    find_policy_by_name,
    find_rule_by_scope,
    policy_names,
    upsert_policy,
)
from .state_waiter import (
    RefreshOutcome,
    StateChangeWaiter,
    cache_refresh,
    classify_status,
    wait_for_creation,
    wait_for_deletion,
    wait_for_target_state,
)
from .wait_context import WaitContext

__all__ = [
    "default_access_policy",
    "delete_policy_by_name",
    "find_policy_by_name",
    "find_rule_by_scope",
    "policy_names",
    "upsert_policy",
    "RefreshOutcome",
    "StateChangeWaiter",
    "cache_refresh",
    "classify_status",
    "wait_for_creation",
    "wait_for_deletion",
    "wait_for_target_state",
    "WaitContext",
]
