"""Direct address commands (by phpIPAM id)."""

from typing import Annotated

import typer

from phpipam_provider.cli import config as cli_config
from phpipam_provider.cli.formatters import format_address_detail
from phpipam_provider.cli.output import console, print_error
from phpipam_provider.exceptions import IPAMError

app = typer.Typer(help="Address commands")

AddressIdArg = Annotated[str, typer.Argument(help="phpIPAM address id")]


@app.command("show")
def show_address(address_id: AddressIdArg):
    """Show an address with its subnet and section."""
    try:
        provider_config = cli_config.load_provider_config()
        with provider_config.build_client() as client:
            info = provider_config.build_lifecycle(client).read(address_id)
    except IPAMError as e:
        print_error(str(e))
        raise typer.Exit(1)

    console.print(format_address_detail(address_id, info))


@app.command("ping")
def ping_address(address_id: AddressIdArg):
    """Check whether an address answers phpIPAM's reachability probe."""
    try:
        provider_config = cli_config.load_provider_config()
        with provider_config.build_client() as client:
            live = provider_config.build_lifecycle(client).check_live(address_id)
    except IPAMError as e:
        print_error(str(e))
        raise typer.Exit(1)

    if live:
        console.print(f"[green]Address {address_id} is online.[/green]")
    else:
        console.print(f"[dim]Address {address_id} is offline.[/dim]")
