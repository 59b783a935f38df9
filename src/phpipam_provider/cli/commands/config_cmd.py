"""Config management commands."""

import os
from typing import Annotated

import typer
import yaml
from rich.table import Table

from phpipam_provider.cli import config as cli_config
from phpipam_provider.cli.output import console, print_error, print_success
from phpipam_provider.config import (
    ENV_VARS,
    ProviderConfig,
    get_default_config_file,
)
from phpipam_provider.exceptions import ConfigError

app = typer.Typer(help="Configuration commands")


@app.command("show")
def show_config():
    """Show the resolved configuration (password hidden)."""
    try:
        provider_config = cli_config.load_provider_config()
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(1)

    table = Table(title="Current Configuration", show_header=True)
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    table.add_column("Source")

    cli_values = {
        "SERVER_URL": cli_config.SERVER_URL,
        "USERNAME": cli_config.USERNAME,
        "PASSWORD": cli_config.PASSWORD,
        "APP_ID": cli_config.APP_ID,
        "STATE_FILE": cli_config.STATE_FILE,
        "LOG_LEVEL": cli_config.LOG_LEVEL,
    }
    for name, value in provider_config.masked().items():
        if cli_values.get(name) is not None:
            source = "option"
        elif os.environ.get(ENV_VARS.get(name, "")):
            source = "env"
        else:
            source = "file/default"
        table.add_row(name, value, source)

    console.print(table)


@app.command("env")
def show_env():
    """Show environment variables for configuration."""
    table = Table(title="Environment Variables", show_header=True)
    table.add_column("Variable", style="cyan")
    table.add_column("Setting")
    table.add_column("Current Value", style="green")

    for attr, var in ENV_VARS.items():
        value = os.environ.get(var, "-")
        if attr == "PASSWORD" and value != "-":
            value = "********"
        table.add_row(var, attr, value)

    console.print(table)


@app.command("init")
def init_config(
    output: Annotated[
        str | None,
        typer.Option("--output", "-o", help="Config file path"),
    ] = None,
    overwrite: Annotated[
        bool,
        typer.Option("--overwrite", help="Replace an existing file"),
    ] = False,
):
    """Write a config file template."""
    path = os.path.expanduser(output) if output else str(get_default_config_file())
    if os.path.exists(path) and not overwrite:
        print_error(f"Config file already exists: {path} (use --overwrite)")
        raise typer.Exit(1)

    defaults = ProviderConfig()
    template = {
        "server_url": "https://ipam.example.com",
        "username": "",
        "password": "",
        "app_id": defaults.APP_ID,
        "client_tag": defaults.CLIENT_TAG,
        "allocation_lock": defaults.ALLOCATION_LOCK.value,
        "state_file": defaults.STATE_FILE,
        "log_level": defaults.LOG_LEVEL.value,
    }

    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w") as f:
        yaml.safe_dump(template, f, sort_keys=False)
    os.chmod(path, 0o600)
    print_success(f"Config template written to: {path}")
