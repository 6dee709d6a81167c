"""Destroy resource command for awsprov."""

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
from .helpers import console, get_config, get_schema


def destroy_resource(
    resource_type: str = typer.Argument(..., help="Resource type, e.g. aws_emr_studio"),
    name: str = typer.Argument(..., help="Name of the resource in the state file"),
    force: bool = typer.Option(False, "--force", "-f", help="Destroy without confirmation"),
    profile: Optional[str] = profile_option(),
    region: Optional[str] = region_option(),
    state_file: Optional[str] = state_file_option(),
    verbose: bool = verbose_option(),
):
    """Destroy a resource and remove it from the state file.

    Warning: This action cannot be undone.

    Examples:
        # Destroy with confirmation
        $ awsprov resource destroy aws_ssm_activation build-agents

        # Destroy without confirmation
        $ awsprov resource destroy aws_emr_studio analytics --force
    """
    config = get_config()
    configure_logging(config, verbose)

    get_schema(resource_type)
    store = get_state_store(config, state_file)
    state = store.get(resource_type, name)

    if state is None:
        console.print(f"[red]Error: {resource_type}.{name} is not in the state file.[/red]")
        raise typer.Exit(1)

    if not force:
        confirmed = typer.confirm(
            f"Are you sure you want to destroy {resource_type}.{name} ({state['id']})?"
        )
        if not confirmed:
            console.print("[yellow]Destroy cancelled.[/yellow]")
            raise typer.Exit(0)

    try:
        provider = build_provider(config, profile, region)
        provider.destroy(resource_type, state)
    except (ClientError, ProviderError) as e:
        handle_provider_error(e, f"destroying {resource_type}.{name}", verbose)
        return

    store.remove(resource_type, name)
    console.print(f"[green]Destroyed {resource_type}.{name} ({state['id']}).[/green]")
