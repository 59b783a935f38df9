"""Rich formatters for plans, state and addresses."""

from rich.panel import Panel
from rich.table import Table

from phpipam_provider.models.enums import PlanAction
from phpipam_provider.models.records import AddressInformation
from phpipam_provider.resource.plan import PlannedChange
from phpipam_provider.resource.schema import AddressResourceState

ACTION_STYLES = {
    PlanAction.CREATE: ("+", "green"),
    PlanAction.UPDATE: ("~", "yellow"),
    PlanAction.DELETE: ("-", "red"),
    PlanAction.NOOP: (" ", "dim"),
}


def _describe(change: PlannedChange) -> str:
    match change.action:
        case PlanAction.CREATE:
            d = change.desired
            return f"{d.hostname} in {d.section} / {d.subnet}"
        case PlanAction.DELETE:
            c = change.current
            return f"release {c.ip_address or c.id} ({c.hostname})"
        case PlanAction.UPDATE:
            parts = [
                f"{name}: {getattr(change.current, name)} -> {getattr(change.desired, name)}"
                for name in change.changed
            ]
            if change.reallocates:
                parts.append("[bold]reallocates address[/bold]")
            return "; ".join(parts)
    return ""


def format_plan_table(changes: list[PlannedChange], title: str = "Plan") -> Table:
    """Format planned changes as a table."""
    table = Table(title=title, show_header=True)
    table.add_column("", width=1)
    table.add_column("Resource", style="cyan")
    table.add_column("Action")
    table.add_column("Details")

    for change in changes:
        symbol, style = ACTION_STYLES[change.action]
        table.add_row(
            f"[{style}]{symbol}[/{style}]",
            change.name,
            f"[{style}]{change.action.value}[/{style}]",
            _describe(change),
        )
    return table


def format_plan_summary(changes: list[PlannedChange]) -> str:
    counts = {action: 0 for action in PlanAction}
    for change in changes:
        counts[change.action] += 1
    return (
        f"[bold]Plan:[/bold] {counts[PlanAction.CREATE]} to create, "
        f"{counts[PlanAction.UPDATE]} to update, "
        f"{counts[PlanAction.DELETE]} to delete."
    )


def format_state_table(state: dict[str, AddressResourceState]) -> Table:
    """Format tracked resources as a table."""
    table = Table(title="Managed Addresses", show_header=True)
    table.add_column("Resource", style="cyan")
    table.add_column("ID", justify="right")
    table.add_column("IP Address", style="green")
    table.add_column("Hostname")
    table.add_column("Section")
    table.add_column("Subnet")
    table.add_column("Gateway")
    table.add_column("Mask", justify="right")

    for name, s in sorted(state.items()):
        table.add_row(
            name,
            s.id,
            s.ip_address,
            s.hostname,
            s.section,
            s.subnet,
            s.gateway or "-",
            f"/{s.bitmask}" if s.bitmask else "-",
        )
    return table


def format_address_detail(address_id: str, info: AddressInformation) -> Panel:
    """Format one address as a panel."""
    lines = [
        f"[bold]IP Address:[/bold] [green]{info.ip}[/green]",
        f"[bold]Hostname:[/bold] {info.hostname or '-'}",
        f"[bold]Section:[/bold] {info.section}",
        f"[bold]Subnet:[/bold] {info.subnet}",
        f"[bold]Gateway:[/bold] {info.gateway or '-'}",
        f"[bold]Broadcast:[/bold] {info.broadcast or '-'}",
        f"[bold]Bitmask:[/bold] {info.bitmask or '-'}",
    ]
    return Panel("\n".join(lines), title=f"Address {address_id}", border_style="blue")
