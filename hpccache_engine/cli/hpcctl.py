#!/usr/bin/env python3
"""
HPC Cache Control CLI - Command Line Interface for the HPC Cache Engine.

Provides commands for inspecting caches, editing their NFS access policies
and waiting for provisioning to settle.
"""

import logging
import sys
from pathlib import Path
from typing import List, Optional

import click
import yaml
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from pydantic import ValidationError

from ..config import EngineConfig, load_config
from ..connectors import BaseConnector, MockConnector, get_connector
from ..engine import (
    WaitContext,
    default_access_policy,
    delete_policy_by_name,
    find_policy_by_name,
    policy_names,
    upsert_policy,
    wait_for_creation,
    wait_for_deletion,
)
from ..exceptions import ConfigurationError, HPCCacheError
from ..models import CacheSnapshot, NfsAccessPolicy

# Setup logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

# Rich console for pretty output
console = Console()


class HPCController:
    """Main controller for HPC Cache Engine operations."""

    def __init__(self, config_path: Optional[str] = None, mock_mode: bool = False):
        """Initialize the controller."""
        self.config: EngineConfig = load_config(config_path)
        self.mock_mode = mock_mode or self.config.mock_mode
        self.connector: BaseConnector = get_connector(self.config.connector_config(), mock=self.mock_mode)

        if isinstance(self.connector, MockConnector):
            self._seed_mock_caches(self.connector)

    def _seed_mock_caches(self, connector: MockConnector):
        for entry in self.config.mock_caches:
            resource_group, _, name = entry.partition("/")
            connector.add_cache(resource_group, name, access_policies=[default_access_policy()])

    def read_cache(self, resource_group: str, name: str) -> CacheSnapshot:
        result = self.connector.get_cache(resource_group, name)
        if not result.success:
            raise click.ClickException(result.error or result.message)
        return result.data

    def apply_policies(self, resource_group: str, name: str,
                       policies: List[NfsAccessPolicy], wait: bool) -> Optional[CacheSnapshot]:
        """Submit a policy set and optionally wait for the update to finish."""
        result = self.connector.update_access_policies(resource_group, name, policies)
        if not result.success:
            raise click.ClickException(result.error or result.message)

        if not wait:
            return None
        return wait_for_creation(self.connector, WaitContext(), resource_group, name, self.config.wait)


@click.group()
@click.option('--config', '-c', type=click.Path(), help='Path to YAML configuration file')
@click.option('--mock/--real', default=False, help='Use the mock control plane or the Azure API')
@click.pass_context
def cli(ctx, config, mock):
    """HPC Cache Control CLI - NFS access policy management"""
    ctx.ensure_object(dict)
    try:
        ctx.obj['controller'] = HPCController(config, mock)
    except (ConfigurationError, ValueError) as e:
        raise click.ClickException(str(e))


@cli.command()
@click.argument('resource_group')
@click.argument('name')
@click.pass_context
def show(ctx, resource_group, name):
    """Show a cache and its access policies."""
    controller = ctx.obj['controller']
    snapshot = controller.read_cache(resource_group, name)
    display_cache(snapshot)


@cli.command('set-policy')
@click.argument('resource_group')
@click.argument('name')
@click.argument('policy_file', type=click.Path(exists=True))
@click.option('--wait/--no-wait', default=True, help='Wait for the update to finish')
@click.pass_context
def set_policy(ctx, resource_group, name, policy_file, wait):
    """Create or replace an access policy from a YAML file."""
    controller = ctx.obj['controller']

    try:
        with open(Path(policy_file), encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise click.ClickException(
                f"Invalid policy file {policy_file}: expected a mapping, got {type(data).__name__}"
            )
        policy = NfsAccessPolicy(**data)
    except (yaml.YAMLError, ValidationError) as e:
        raise click.ClickException(f"Invalid policy file {policy_file}: {e}")

    snapshot = controller.read_cache(resource_group, name)
    try:
        policies = upsert_policy(snapshot.access_policies, policy)
        updated = controller.apply_policies(resource_group, name, policies, wait)
    except HPCCacheError as e:
        console.print(f"[red]Error setting policy: {e}[/red]")
        logger.exception("Access policy update failed")
        sys.exit(1)

    console.print(f"[green]✓ Access policy '{policy.name}' applied to {name}[/green]")
    if updated:
        display_cache(updated)


@cli.command('delete-policy')
@click.argument('resource_group')
@click.argument('name')
@click.argument('policy_name')
@click.option('--wait/--no-wait', default=True, help='Wait for the update to finish')
@click.pass_context
def delete_policy(ctx, resource_group, name, policy_name, wait):
    """Remove an access policy by name."""
    controller = ctx.obj['controller']

    snapshot = controller.read_cache(resource_group, name)
    if find_policy_by_name(snapshot.access_policies, policy_name) is None:
        console.print(f"[yellow]Access policy '{policy_name}' not found on {name}[/yellow]")
        return

    policies = delete_policy_by_name(snapshot.access_policies, policy_name)
    try:
        updated = controller.apply_policies(resource_group, name, policies, wait)
    except HPCCacheError as e:
        console.print(f"[red]Error deleting policy: {e}[/red]")
        logger.exception("Access policy removal failed")
        sys.exit(1)

    console.print(f"[green]✓ Access policy '{policy_name}' removed from {name}[/green]")
    if updated:
        display_cache(updated)


@cli.command()
@click.argument('resource_group')
@click.argument('name')
@click.option('--for', 'condition', type=click.Choice(['created', 'deleted']), default='created')
@click.option('--timeout', type=float, help='Override the configured timeout (seconds)')
@click.pass_context
def wait(ctx, resource_group, name, condition, timeout):
    """Wait for a cache to finish provisioning or deletion."""
    controller = ctx.obj['controller']
    settings = controller.config.wait
    if timeout is not None:
        settings = settings.model_copy(update={"timeout": timeout})

    context = WaitContext()
    try:
        if condition == 'created':
            snapshot = wait_for_creation(controller.connector, context, resource_group, name, settings)
            display_cache(snapshot)
        else:
            wait_for_deletion(controller.connector, context, resource_group, name, settings)
            console.print(f"[green]✓ Cache {name} deleted[/green]")
    except KeyboardInterrupt:
        console.print("[yellow]Wait interrupted[/yellow]")
        sys.exit(130)
    except HPCCacheError as e:
        console.print(f"[red]✗ {e}[/red]")
        sys.exit(1)


def display_cache(snapshot: CacheSnapshot):
    """Display a cache snapshot with its access policies."""
    console.print(Panel.fit(
        f"[bold blue]{snapshot.name}[/bold blue]\n"
        f"{snapshot.resource_group} ({snapshot.location or 'unknown location'})"
    ))
    console.print(f"Provisioning State: {snapshot.provisioning_state}")
    console.print(f"Health: {snapshot.health_state or 'N/A'}")

    if not snapshot.access_policies:
        console.print("[yellow]No access policies configured[/yellow]")
        return

    console.print(f"\n[bold]Access Policies ({', '.join(policy_names(snapshot.access_policies))})[/bold]")

    table = Table()
    table.add_column("Policy", style="cyan")
    table.add_column("Scope", style="green")
    table.add_column("Filter", style="yellow")
    table.add_column("Access", style="magenta")
    table.add_column("Root Squash")

    for policy in snapshot.access_policies:
        for rule in policy.rules:
            table.add_row(
                policy.name or "N/A",
                rule.scope.value if rule.scope else "N/A",
                rule.filter or "-",
                rule.access.value if rule.access else "N/A",
                "yes" if rule.root_squash_enabled else "no",
            )

    console.print(table)


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
