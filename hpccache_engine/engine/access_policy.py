"""
Access Policy operations for the HPC Cache Engine.

Query and transform helpers over the ordered list of NFS access policies
attached to a cache. Every function returns a new list and leaves the
caller's list untouched, so the same policy set can be reused across
reconciliation attempts.
"""

import logging
from typing import List, Optional, Sequence, Tuple

from ..exceptions import InvalidArgumentError
from ..models import (
    NfsAccessPolicy,
    NfsAccessRule,
    NfsAccessRuleAccess,
    NfsAccessRuleScope,
)

logger = logging.getLogger(__name__)

DEFAULT_POLICY_NAME = "default"


def find_rule_by_scope(rules: Sequence[NfsAccessRule],
                       scope: NfsAccessRuleScope) -> Tuple[NfsAccessRule, bool]:
    """
    Find the first access rule with the given scope.

    Args:
        rules: Access rules of a policy
        scope: Scope to look for

    Returns:
        Tuple of (rule, found). When nothing matches the rule is an empty
        NfsAccessRule and found is False.
    """
    for rule in rules:
        if rule.scope == scope:
            return rule, True

    return NfsAccessRule(), False


def find_policy_by_name(policies: Sequence[NfsAccessPolicy],
                        name: str) -> Optional[NfsAccessPolicy]:
    """
    Find the first policy with the given name.

    Unnamed policies never match.

    Returns:
        The matching NfsAccessPolicy, or None if there is none
    """
    for policy in policies:
        if policy.name is not None and policy.name == name:
            return policy
    return None


def delete_policy_by_name(policies: Sequence[NfsAccessPolicy],
                          name: str) -> List[NfsAccessPolicy]:
    """
    Remove every policy with the given name.

    Args:
        policies: Current policy set
        name: Name of the policy to drop

    Returns:
        New list with the remaining policies in their original order
    """
    new_policies = [policy for policy in policies if policy.name is None or policy.name != name]

    removed = len(policies) - len(new_policies)
    if removed:
        logger.info(f"Removed access policy '{name}' ({removed} entries)")
    else:
        logger.debug(f"Access policy '{name}' not present, nothing to remove")

    return new_policies


def upsert_policy(policies: Sequence[NfsAccessPolicy],
                  policy: NfsAccessPolicy) -> List[NfsAccessPolicy]:
    """
    Insert a policy, or replace the existing policy with the same name.

    A replaced policy keeps its position. If the input already holds several
    entries with that name, each of them is replaced. A policy with a new
    name is appended.

    Args:
        policies: Current policy set
        policy: Policy to insert or update

    Returns:
        New list containing the policy

    Raises:
        InvalidArgumentError: If the policy has no name
    """
    if policy.name is None:
        raise InvalidArgumentError("policy name is required")

    new_policies: List[NfsAccessPolicy] = []
    is_new = True
    for existing in policies:
        if existing.name is not None and existing.name == policy.name:
            new_policies.append(policy)
            is_new = False
            continue
        new_policies.append(existing)

    if is_new:
        new_policies.append(policy)
        logger.info(f"Added access policy '{policy.name}'")
    else:
        logger.info(f"Updated access policy '{policy.name}'")

    return new_policies


def default_access_policy() -> NfsAccessPolicy:
    """Build the access policy a new cache is created with."""
    return NfsAccessPolicy(
        name=DEFAULT_POLICY_NAME,
        rules=[
            NfsAccessRule(
                scope=NfsAccessRuleScope.DEFAULT,
                access=NfsAccessRuleAccess.RW,
                suid_enabled=False,
                submount_access_enabled=True,
                root_squash_enabled=False,
            )
        ],
    )


def policy_names(policies: Sequence[NfsAccessPolicy]) -> List[str]:
    """Names of the named policies, in order."""
    return [policy.name for policy in policies if policy.name is not None]
