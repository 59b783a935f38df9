"""
phpipam-provider CLI entry point.

Usage:
    phpipam-provider [OPTIONS] COMMAND [ARGS]...

Commands:
    plan      Show what apply would change
    apply     Reconcile phpIPAM with a manifest
    refresh   Re-read tracked addresses into state
    destroy   Release every tracked address
    show      Show tracked addresses
    address   Direct address commands
    config    Configuration
"""

from typing import Annotated

import typer

from phpipam_provider.cli import config as cli_config
from phpipam_provider.cli.commands import address, config_cmd, workflow
from phpipam_provider.cli.output import console
from phpipam_provider.models.enums import LogLevel
from phpipam_provider.utils.logger import configure_logging

app = typer.Typer(
    name="phpipam-provider",
    help="Declarative IP address management against phpIPAM",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# Register commands
app.command("plan")(workflow.plan)
app.command("apply")(workflow.apply)
app.command("refresh")(workflow.refresh)
app.command("destroy")(workflow.destroy)
app.command("show")(workflow.show)
app.add_typer(address.app, name="address", help="Direct address commands")
app.add_typer(config_cmd.app, name="config", help="Configuration")


@app.callback()
def main(
    server: Annotated[
        str | None,
        typer.Option("--server", "-s", help="phpIPAM server URL", envvar="PHPIPAM_SERVER_URL"),
    ] = None,
    username: Annotated[
        str | None,
        typer.Option("--username", "-u", help="phpIPAM username", envvar="PHPIPAM_USERNAME"),
    ] = None,
    password: Annotated[
        str | None,
        typer.Option("--password", help="phpIPAM password", envvar="PHPIPAM_PASSWORD"),
    ] = None,
    app_id: Annotated[
        str | None,
        typer.Option("--app-id", help="phpIPAM API application id", envvar="PHPIPAM_APP_ID"),
    ] = None,
    config_file: Annotated[
        str | None,
        typer.Option("--config", "-c", help="Config file (YAML)"),
    ] = None,
    state_file: Annotated[
        str | None,
        typer.Option("--state", help="State file", envvar="PHPIPAM_STATE_FILE"),
    ] = None,
    log_level: Annotated[
        LogLevel | None,
        typer.Option("--log-level", "-l", help="Log level", envvar="PHPIPAM_LOG_LEVEL"),
    ] = None,
):
    """
    phpIPAM address provider.

    Allocate, update and release addresses described in a manifest.
    """
    cli_config.SERVER_URL = server
    cli_config.USERNAME = username
    cli_config.PASSWORD = password
    cli_config.APP_ID = app_id
    cli_config.CONFIG_FILE = config_file
    cli_config.STATE_FILE = state_file
    cli_config.LOG_LEVEL = log_level.value if log_level else None
    configure_logging(log_level or LogLevel.WARNING)


@app.command("version")
def version():
    """Show version information."""
    from phpipam_provider import __version__

    console.print(f"phpipam-provider v{__version__}")


def run():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    run()
