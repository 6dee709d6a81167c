"""Apply resource command for awsprov."""

from pathlib import Path
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
from .helpers import console, display_state, get_config, get_schema, load_resource_config


def apply_resource(
    resource_type: str = typer.Argument(..., help="Resource type, e.g. aws_emr_studio"),
    name: str = typer.Argument(..., help="Name of the resource in the state file"),
    config_file: Path = typer.Option(
        ..., "--config", "-c", help="YAML or JSON file with the resource attributes"
    ),
    profile: Optional[str] = profile_option(),
    region: Optional[str] = region_option(),
    state_file: Optional[str] = state_file_option(),
    verbose: bool = verbose_option(),
):
    """Create, update or replace a resource to match its configuration.

    The stored state is refreshed first. A resource that does not exist yet is
    created, a change to an attribute that cannot be updated in place replaces
    the resource, and any other change is applied in place.

    Examples:
        # Create an SSM activation
        $ awsprov resource apply aws_ssm_activation build-agents --config activation.yaml

        # Apply using a specific AWS profile and region
        $ awsprov resource apply aws_emr_studio analytics -c studio.yaml --profile dev --region eu-west-1
    """
    config = get_config()
    configure_logging(config, verbose)

    schema = get_schema(resource_type)
    attributes = load_resource_config(config_file)
    store = get_state_store(config, state_file)
    prior_state = store.get(resource_type, name)

    try:
        provider = build_provider(config, profile, region)
        provider.validate(resource_type, attributes)

        if prior_state is None:
            console.print(f"[blue]Creating {resource_type}.{name}...[/blue]")
        else:
            console.print(f"[blue]Applying {resource_type}.{name} ({prior_state['id']})...[/blue]")

        state = provider.apply(resource_type, attributes, prior_state)
    except (ClientError, ProviderError) as e:
        partial_state = getattr(e, "partial_state", None)
        if partial_state is not None:
            store.put(resource_type, name, partial_state)
            console.print(
                f"[yellow]{resource_type}.{name} ({partial_state['id']}) was created and saved to state; "
                "apply again to finish.[/yellow]"
            )
        handle_provider_error(e, f"applying {resource_type}.{name}", verbose)
        return

    if state is None:
        store.remove(resource_type, name)
        console.print(f"[yellow]{resource_type}.{name} no longer exists.[/yellow]")
        return

    store.put(resource_type, name, state)
    console.print(f"[green]Applied {resource_type}.{name} ({state['id']}).[/green]")
    display_state(resource_type, name, state, schema)
