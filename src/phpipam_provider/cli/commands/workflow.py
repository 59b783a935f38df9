"""Plan, apply, refresh, destroy and show commands."""

from contextlib import contextmanager
from typing import Annotated

import typer

from phpipam_provider.cli import config as cli_config
from phpipam_provider.cli.formatters import (
    format_plan_summary,
    format_plan_table,
    format_state_table,
)
from phpipam_provider.cli.output import (
    console,
    print_error,
    print_success,
    print_warning,
)
from phpipam_provider.exceptions import IPAMError
from phpipam_provider.models.enums import PlanAction
from phpipam_provider.resource import (
    AddressResource,
    ApplyResult,
    Provisioner,
    StateStore,
    load_manifest,
)

ManifestArg = Annotated[
    str,
    typer.Argument(help="Manifest file (YAML)"),
]
ParallelismOpt = Annotated[
    int,
    typer.Option("--parallelism", "-p", min=1, help="Resources processed concurrently"),
]
YesOpt = Annotated[
    bool,
    typer.Option("--yes", "-y", help="Do not ask for confirmation"),
]


@contextmanager
def _provisioner(parallelism: int = 1, offline: bool = False):
    """Build a provisioner from CLI settings; closes the client afterwards."""
    provider_config = cli_config.load_provider_config()
    store = StateStore(provider_config.STATE_FILE)
    if offline:
        yield Provisioner(None, store, parallelism)
        return

    client = provider_config.build_client()
    try:
        lifecycle = provider_config.build_lifecycle(client)
        yield Provisioner(AddressResource(lifecycle), store, parallelism)
    finally:
        client.close()


def _report(result: ApplyResult, verb: str) -> None:
    for change in result.done:
        print_success(f"{change.name}: {change.action.value}")
    if result.errors:
        for name, error in result.errors.items():
            print_error(f"{name}: {error}")
        raise typer.Exit(1)
    console.print(f"[bold green]{verb} complete.[/bold green] {len(result.done)} changed.")


def plan(manifest: ManifestArg):
    """Show what apply would change."""
    try:
        with _provisioner(offline=True) as provisioner:
            changes = provisioner.plan(load_manifest(manifest))
    except IPAMError as e:
        print_error(str(e))
        raise typer.Exit(1)

    pending = [c for c in changes if c.action != PlanAction.NOOP]
    if not pending:
        console.print("[green]No changes. Addresses match the manifest.[/green]")
        return
    console.print(format_plan_table(pending))
    console.print(format_plan_summary(pending))


def apply(
    manifest: ManifestArg,
    yes: YesOpt = False,
    parallelism: ParallelismOpt = 1,
    force: Annotated[
        bool,
        typer.Option("--force", help="Release removed addresses even if they answer ping"),
    ] = False,
):
    """Create, update and release addresses to match the manifest."""
    try:
        desired = load_manifest(manifest)
        with _provisioner(parallelism) as provisioner:
            pending = [c for c in provisioner.plan(desired) if c.action != PlanAction.NOOP]
            if not pending:
                console.print("[green]No changes. Addresses match the manifest.[/green]")
                return

            console.print(format_plan_table(pending))
            console.print(format_plan_summary(pending))
            if not yes and not typer.confirm("Apply these changes?"):
                console.print("[dim]Apply cancelled.[/dim]")
                raise typer.Exit(0)

            result = provisioner.apply(desired, force_release=force)
    except IPAMError as e:
        print_error(str(e))
        raise typer.Exit(1)

    _report(result, "Apply")


def refresh():
    """Re-read every tracked address from phpIPAM into state."""
    try:
        with _provisioner() as provisioner:
            result = provisioner.refresh()
    except IPAMError as e:
        print_error(str(e))
        raise typer.Exit(1)

    if result.done:
        console.print(format_plan_table(result.done, title="Drift"))
    for change in result.done:
        if change.action == PlanAction.DELETE:
            print_warning(f"{change.name}: address no longer exists, dropped from state")
    _report(result, "Refresh")


def destroy(
    yes: YesOpt = False,
    parallelism: ParallelismOpt = 1,
    force: Annotated[
        bool,
        typer.Option("--force", help="Release addresses even if they answer ping"),
    ] = False,
):
    """Release every tracked address."""
    try:
        with _provisioner(parallelism) as provisioner:
            tracked = provisioner.store.load()
            if not tracked:
                console.print("[yellow]No addresses tracked in state.[/yellow]")
                return

            console.print(format_state_table(tracked))
            if not yes and not typer.confirm(f"Release {len(tracked)} address(es)?"):
                console.print("[dim]Destroy cancelled.[/dim]")
                raise typer.Exit(0)

            result = provisioner.destroy(force_release=force)
    except IPAMError as e:
        print_error(str(e))
        raise typer.Exit(1)

    _report(result, "Destroy")


def show():
    """Show tracked addresses from the state file."""
    try:
        with _provisioner(offline=True) as provisioner:
            tracked = provisioner.store.load()
    except IPAMError as e:
        print_error(str(e))
        raise typer.Exit(1)

    if not tracked:
        console.print("[yellow]No addresses tracked in state.[/yellow]")
        return
    console.print(format_state_table(tracked))
