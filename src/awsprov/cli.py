#!/usr/bin/env python3
"""
awsprov - AWS resource provider

A CLI tool that applies declarative resource configurations to AWS.
"""
import typer
from rich.console import Console

from . import __version__
from .commands import config, resource

app = typer.Typer(
    help="AWS resource provider - apply, inspect, import and destroy SSM activations, GuardDuty threat intel sets and EMR Studios.",
    add_completion=True,
    no_args_is_help=True,
)
console = Console()

# Add subcommands
app.add_typer(resource.app, name="resource")
app.add_typer(config.app, name="config")


@app.command()
def version():
    """Show the application version and exit."""
    console.print(f"awsprov version: {__version__}")
    raise typer.Exit()


if __name__ == "__main__":
    app()
