"""
HPC Cache Engine

Reconciles the NFS access policies of Azure HPC Caches and waits for
their asynchronous provisioning to settle.
"""

__version__ = "1.0.0"
__author__ = "HPC Cache Engine Team"
__email__ = "team@example.com"

from .engine.access_policy import (
    delete_policy_by_name,
    find_policy_by_name,
    find_rule_by_scope,
    upsert_policy,
)
from .engine.state_waiter import wait_for_target_state
from .engine.wait_context import WaitContext

__all__ = [
    "delete_policy_by_name",
    "find_policy_by_name",
    "find_rule_by_scope",
    "upsert_policy",
    "wait_for_target_state",
    "WaitContext",
]
