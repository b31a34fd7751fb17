"""
Provisioning State Waiter for the HPC Cache Engine.

Blocks until a cache's provisioning state reaches a target value. The
cache is refreshed on a fixed cadence: an initial delay before the first
check, then a fixed spacing between checks, until the state is one of the
targets, the request fails, the overall timeout elapses or the caller's
wait context is cancelled.
"""

import logging
from enum import Enum
from typing import Callable, Iterable, Optional, Tuple

from ..connectors.base_connector import BaseConnector
from ..exceptions import (
    CacheNotFoundError,
    CacheRequestError,
    WaitTimeoutError,
)
from ..models import CacheSnapshot, ProvisioningState, WaitSettings
from .wait_context import WaitContext

logger = logging.getLogger(__name__)

NOT_FOUND_STATUS = "NotFound"
ERROR_STATUS = "Error"

RefreshFunc = Callable[[], Tuple[Optional[CacheSnapshot], str]]


class RefreshOutcome(str, Enum):
    """How a refresh status drives the wait loop."""
    PENDING = "PENDING"
    TARGET = "TARGET"
    NOT_FOUND = "NOT_FOUND"
    ERROR = "ERROR"
    UNCLASSIFIED = "UNCLASSIFIED"


def classify_status(status: str, pending: Iterable[str], target: Iterable[str]) -> RefreshOutcome:
    """
    Classify a refresh status against the configured pending and target tags.

    Explicitly configured tags win, so a caller can list NotFound as a
    target (waiting for deletion) or as pending.
    """
    if status in target:
        return RefreshOutcome.TARGET
    if status in pending:
        return RefreshOutcome.PENDING
    if status == NOT_FOUND_STATUS:
        return RefreshOutcome.NOT_FOUND
    if status == ERROR_STATUS:
        return RefreshOutcome.ERROR
    return RefreshOutcome.UNCLASSIFIED


def cache_refresh(connector: BaseConnector, resource_group: str, name: str) -> RefreshFunc:
    """
    Build the refresh function for one cache.

    The returned callable performs a single read and yields
    (snapshot, status). A missing cache yields (None, "NotFound").

    Raises:
        CacheRequestError: From the callable, when the read fails for any
            other reason
    """
    def refresh() -> Tuple[Optional[CacheSnapshot], str]:
        result = connector.get_cache(resource_group, name)
        if not result.success:
            if not result.found:
                return None, NOT_FOUND_STATUS

            logger.error(f"Read request on HPC Cache {name} ({resource_group}) failed: {result.error}")
            raise CacheRequestError(name, resource_group, result.error or result.message)

        snapshot = result.data
        return snapshot, snapshot.provisioning_state

    return refresh


class StateChangeWaiter:
    """
    Poll loop for a single wait.

    Holds only per-call state; a waiter instance is built for each wait.
    """

    def __init__(self, refresh: RefreshFunc, resource_group: str, name: str,
                 pending: Iterable[str], target: Iterable[str],
                 settings: Optional[WaitSettings] = None,
                 not_found_is_error: bool = False):
        """
        Initialize the waiter.

        Args:
            refresh: Callable returning (snapshot, status) for one check
            resource_group: Resource group of the cache, for diagnostics
            name: Cache name, for diagnostics
            pending: Status tags meaning "still in progress"
            target: Status tags meaning "done"
            settings: Delay, spacing and timeout of the poll
            not_found_is_error: Raise CacheNotFoundError on a NotFound status
                that is neither pending nor target, instead of waiting on it
        """
        self.refresh = refresh
        self.resource_group = resource_group
        self.name = name
        self.pending = frozenset(pending)
        self.target = frozenset(target)
        self.settings = settings or WaitSettings()
        self.not_found_is_error = not_found_is_error

        self.checks = 0
        self.last_status: Optional[str] = None

    def wait(self, context: Optional[WaitContext] = None) -> Optional[CacheSnapshot]:
        """
        Poll until the status reaches a target.

        Returns:
            The snapshot observed on the final check (None if the target
            was NotFound)

        Raises:
            CacheRequestError: A read failed; not retried
            CacheNotFoundError: The cache is missing and not_found_is_error is set
            WaitTimeoutError: The timeout elapsed before a target was observed
            WaitCancelledError: The context was cancelled or hit its deadline
        """
        context = context or WaitContext()
        timeout = self.settings.timeout
        started = context.now()
        interval = self.settings.delay

        while True:
            remaining = timeout - (context.now() - started)
            context.sleep(min(interval, max(remaining, 0)))
            interval = self.settings.min_timeout

            self.checks += 1
            snapshot, status = self.refresh()
            self.last_status = status

            outcome = classify_status(status, self.pending, self.target)
            logger.debug(f"HPC Cache {self.name} check {self.checks}: {status} ({outcome.value})")

            if outcome == RefreshOutcome.TARGET:
                logger.info(f"HPC Cache {self.name} ({self.resource_group}) reached state {status}")
                return snapshot
            if outcome == RefreshOutcome.NOT_FOUND and self.not_found_is_error:
                raise CacheNotFoundError(self.name, self.resource_group)
            if outcome == RefreshOutcome.ERROR:
                raise CacheRequestError(self.name, self.resource_group, f"refresh reported {status}")
            if outcome == RefreshOutcome.UNCLASSIFIED:
                logger.warning(f"HPC Cache {self.name} reported unexpected state {status}, still waiting")

            if context.now() - started >= timeout:
                raise WaitTimeoutError(self.name, self.resource_group, timeout, status)


def wait_for_target_state(connector: BaseConnector, context: Optional[WaitContext],
                          resource_group: str, name: str,
                          pending_tags: Iterable[str], target_tag: str,
                          timeout: Optional[float] = None,
                          settings: Optional[WaitSettings] = None,
                          not_found_is_error: bool = False) -> Optional[CacheSnapshot]:
    """
    Wait for a cache to reach ``target_tag``.

    Args:
        connector: Control-plane capability used for the reads
        context: Cancellable wait context (None for an uncancellable wait)
        resource_group: Resource group of the cache
        name: Cache name
        pending_tags: Status tags to keep waiting on
        target_tag: Status tag to stop on
        timeout: Overall timeout in seconds, overriding ``settings.timeout``
        settings: Poll cadence
        not_found_is_error: Treat a missing cache as terminal

    Returns:
        Last observed CacheSnapshot
    """
    settings = settings or WaitSettings()
    if timeout is not None:
        settings = settings.model_copy(update={"timeout": timeout})

    logger.info(f"Waiting for HPC Cache {name} ({resource_group}) to reach {target_tag}")
    waiter = StateChangeWaiter(
        cache_refresh(connector, resource_group, name),
        resource_group,
        name,
        pending=pending_tags,
        target=[target_tag],
        settings=settings,
        not_found_is_error=not_found_is_error,
    )
    return waiter.wait(context)


def wait_for_creation(connector: BaseConnector, context: Optional[WaitContext],
                      resource_group: str, name: str,
                      settings: Optional[WaitSettings] = None) -> CacheSnapshot:
    """Wait for a cache being created or updated to finish provisioning."""
    return wait_for_target_state(
        connector, context, resource_group, name,
        pending_tags=[ProvisioningState.CREATING.value, ProvisioningState.UPDATING.value],
        target_tag=ProvisioningState.SUCCEEDED.value,
        settings=settings,
    )


def wait_for_deletion(connector: BaseConnector, context: Optional[WaitContext],
                      resource_group: str, name: str,
                      settings: Optional[WaitSettings] = None) -> None:
    """Wait for a cache being deleted to disappear."""
    wait_for_target_state(
        connector, context, resource_group, name,
        pending_tags=[ProvisioningState.DELETING.value],
        target_tag=NOT_FOUND_STATUS,
        settings=settings,
    )
