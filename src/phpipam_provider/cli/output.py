"""Console output helpers shared by CLI commands."""

from rich.console import Console

console = Console()
err_console = Console(stderr=True)


def print_error(message: str) -> None:
    err_console.print(f"[bold red]Error:[/bold red] {message}")


def print_warning(message: str) -> None:
    err_console.print(f"[yellow]Warning:[/yellow] {message}")


def print_success(message: str) -> None:
    console.print(f"[green]✓[/green] {message}")
