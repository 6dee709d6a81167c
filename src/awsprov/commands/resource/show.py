"""Show resource command for awsprov."""

from typing import Optional

import typer
from botocore.exceptions import ClientError

from ...errors import ProviderError
from ..common import (
    build_provider,
    configure_logging,
    get_state_store,
    handle_provider_error,
    profile_option,
    region_option,
    state_file_option,
    verbose_option,
)
from .helpers import console, display_state, get_config, get_schema


def show_resource(
    resource_type: str = typer.Argument(..., help="Resource type, e.g. aws_emr_studio"),
    name: str = typer.Argument(..., help="Name of the resource in the state file"),
    refresh: bool = typer.Option(
        True, "--refresh/--no-refresh", help="Read the remote object before showing the state"
    ),
    profile: Optional[str] = profile_option(),
    region: Optional[str] = region_option(),
    state_file: Optional[str] = state_file_option(),
    verbose: bool = verbose_option(),
):
    """Show the state of a resource.

    By default the remote object is read first and the stored state updated.
    A resource that no longer exists remotely is removed from the state file.

    Examples:
        # Show a threat intel set
        $ awsprov resource show aws_guardduty_threatintelset blocklist

        # Show the stored state without calling AWS
        $ awsprov resource show aws_emr_studio analytics --no-refresh
    """
    config = get_config()
    configure_logging(config, verbose)

    schema = get_schema(resource_type)
    store = get_state_store(config, state_file)
    state = store.get(resource_type, name)

    if state is None:
        console.print(f"[red]Error: {resource_type}.{name} is not in the state file.[/red]")
        raise typer.Exit(1)

    if refresh:
        try:
            provider = build_provider(config, profile, region)
            state = provider.read(resource_type, state)
        except (ClientError, ProviderError) as e:
            handle_provider_error(e, f"reading {resource_type}.{name}", verbose)
            return

        if state is None:
            store.remove(resource_type, name)
            console.print(
                f"[yellow]{resource_type}.{name} no longer exists, removed from state.[/yellow]"
            )
            return
        store.put(resource_type, name, state)

    display_state(resource_type, name, state, schema)
