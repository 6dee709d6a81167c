"""Import resource command for awsprov."""

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


def import_resource(
    resource_type: str = typer.Argument(..., help="Resource type, e.g. aws_emr_studio"),
    name: str = typer.Argument(..., help="Name to give the resource in the state file"),
    resource_id: str = typer.Argument(..., help="Identifier of the existing remote object"),
    profile: Optional[str] = profile_option(),
    region: Optional[str] = region_option(),
    state_file: Optional[str] = state_file_option(),
    verbose: bool = verbose_option(),
):
    """Bring an existing remote object under management.

    Examples:
        # Import a threat intel set (detector id and set id)
        $ awsprov resource import aws_guardduty_threatintelset blocklist 12abc34d567e8fa901bc2d34e56789f0:123456789012

        # Import an EMR Studio
        $ awsprov resource import aws_emr_studio analytics es-0123456789ABCDEFGHIJKLMNO
    """
    config = get_config()
    configure_logging(config, verbose)

    schema = get_schema(resource_type)
    store = get_state_store(config, state_file)

    existing = store.get(resource_type, name)
    if existing is not None:
        console.print(
            f"[red]Error: {resource_type}.{name} is already managed ({existing['id']}).[/red]"
        )
        raise typer.Exit(1)

    try:
        provider = build_provider(config, profile, region)
        state = provider.import_resource(resource_type, resource_id)
    except (ClientError, ProviderError) as e:
        handle_provider_error(e, f"importing {resource_type}.{name}", verbose)
        return

    store.put(resource_type, name, state)
    console.print(f"[green]Imported {resource_type}.{name} ({state['id']}).[/green]")
    display_state(resource_type, name, state, schema)
