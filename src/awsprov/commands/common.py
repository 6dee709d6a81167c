"""Common command infrastructure for awsprov CLI commands.

This module provides shared functionality for all CLI commands including:
- Profile, region, state file and verbosity options
- Provider construction with session validation
- Consistent error reporting
"""

import logging
from typing import Any, Optional

import typer
from botocore.exceptions import ClientError
from rich.console import Console
from rich.markup import escape

from ..aws_clients.manager import AWSClientManager
from ..errors import ProviderError
from ..meta import ProviderMeta
from ..provider import Provider
from ..state import StateStore
from ..utils.config import Config
from ..utils.logging_config import LoggingConfig, LogLevel, setup_logging

# Shared instances
console = Console()
logger = logging.getLogger(__name__)


def profile_option() -> Any:
    """
    Create a standardized --profile option for commands.

    Returns:
        Typer option for AWS profile selection
    """
    return typer.Option(
        None, "--profile", "-p", help="AWS profile to use (uses default profile if not specified)"
    )


def region_option() -> Any:
    """
    Create a standardized --region option for commands.

    Returns:
        Typer option for AWS region selection
    """
    return typer.Option(
        None, "--region", "-r", help="AWS region to use (uses profile default if not specified)"
    )


def state_file_option() -> Any:
    return typer.Option(
        None, "--state-file", help="State file to use (defaults to ~/.awsprov/state.json)"
    )


def verbose_option() -> Any:
    """Create a verbose option for CLI commands."""
    return typer.Option(False, "--verbose", "-v", help="Show detailed output")


def configure_logging(config: Config, verbose: bool = False) -> None:
    """
    Set up logging from the ``logging`` configuration section.

    Args:
        config: Loaded configuration
        verbose: Force DEBUG level
    """
    logging_config = LoggingConfig.from_dict(config.get_logging_config())
    if verbose:
        logging_config.level = LogLevel.DEBUG
    setup_logging(logging_config)


def get_state_store(config: Config, state_file: Optional[str] = None) -> StateStore:
    return StateStore(state_file or config.get_state_file())


def build_provider(
    config: Config, profile: Optional[str] = None, region: Optional[str] = None
) -> Provider:
    """
    Create a provider for the given profile and region.

    Profile and region fall back to ``default_profile`` and ``region`` from
    the configuration file, then to the boto3 defaults.

    Args:
        config: Loaded configuration
        profile: AWS profile name
        region: AWS region

    Returns:
        Configured Provider

    Raises:
        typer.Exit: If the AWS session cannot be validated
    """
    profile = profile or config.get("default_profile")
    region = region or config.get("region")

    client_manager = AWSClientManager(profile=profile, region=region)
    if not client_manager.validate_session():
        console.print("[red]Error: AWS session validation failed.[/red]")
        console.print("\n[yellow]This usually means:[/yellow]")
        console.print("1. Your AWS credentials are invalid or expired")
        console.print("2. Your profile configuration is incorrect")
        console.print(
            "\n[yellow]Refresh your credentials or use a different profile: "
            "[cyan]--profile other-profile[/cyan][/yellow]"
        )
        raise typer.Exit(1)

    logger.debug(f"Created AWS client manager: profile={profile}, region={client_manager.region}")
    meta = ProviderMeta.from_config(config.get_provider_config(), client_manager)
    return Provider(meta)


def handle_provider_error(error: Exception, operation: str, verbose: bool = False) -> None:
    """
    Report a failed command consistently and exit with status 1.

    Args:
        error: The error that occurred
        operation: Description of the operation that failed
        verbose: Whether to show the traceback

    Raises:
        typer.Exit: Always
    """
    if isinstance(error, ClientError):
        error_code = error.response.get("Error", {}).get("Code", "Unknown")
        error_message = error.response.get("Error", {}).get("Message", str(error))
        console.print(f"[red]AWS Error in {operation} ({error_code}): {escape(error_message)}[/red]")
    elif isinstance(error, ProviderError):
        console.print(f"[red]Error in {operation}: {escape(error.message)}[/red]")
    else:
        console.print(f"[red]Error in {operation}: {escape(str(error))}[/red]")

    if verbose:
        console.print_exception()
    raise typer.Exit(1)
