"""Shared utilities for resource commands."""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import typer
import yaml
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ...errors import UnknownResourceTypeError
from ...resources import get_handler_class
from ...schema import Schema, format_rfc3339
from ...state import redact
from ...utils.config import Config

# Shared console instance
console = Console()


def get_config() -> Config:
    return Config()


def get_schema(resource_type: str) -> Schema:
    """
    Look up the schema of a resource type.

    Raises:
        typer.Exit: If the resource type is not registered
    """
    try:
        return get_handler_class(resource_type).schema
    except UnknownResourceTypeError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)


def load_resource_config(path: Path) -> Dict[str, Any]:
    """
    Load a resource configuration file.

    The file holds a single mapping of attribute names to values, in YAML or
    JSON (JSON being a subset of YAML).

    Args:
        path: Configuration file path

    Returns:
        Attribute mapping

    Raises:
        typer.Exit: If the file is missing or does not contain a mapping
    """
    if not path.exists():
        console.print(f"[red]Error: Configuration file '{path}' not found.[/red]")
        raise typer.Exit(1)

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        console.print(f"[red]Error: Configuration file '{path}' is not valid YAML: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    if data is None:
        return {}
    if not isinstance(data, dict):
        console.print(f"[red]Error: Configuration file '{path}' must contain a mapping.[/red]")
        raise typer.Exit(1)
    return {key: _timestamps_to_strings(value) for key, value in data.items()}


def _timestamps_to_strings(value: Any) -> Any:
    """Turn datetimes resolved by the YAML loader back into RFC3339 strings."""
    if isinstance(value, datetime):
        return format_rfc3339(value)
    if isinstance(value, dict):
        return {k: _timestamps_to_strings(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_timestamps_to_strings(v) for v in value]
    return value


def _format_value(value: Any) -> str:
    if isinstance(value, (dict, list)):
        return json.dumps(value, sort_keys=True) if value else ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def display_state(
    resource_type: str, name: str, state: Optional[Mapping[str, Any]], schema: Schema
) -> None:
    """
    Print a resource state as a table, masking sensitive attributes.

    Args:
        resource_type: Resource type name
        name: Resource name in the state file
        state: Resource state
        schema: Schema of the resource type
    """
    masked = redact(state, schema)
    if masked is None:
        console.print(f"[yellow]{resource_type}.{name} does not exist.[/yellow]")
        return

    table = Table(title=f"{resource_type}.{name}")
    table.add_column("Attribute", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("id", str(masked["id"]))
    for key in sorted(k for k in masked if k != "id"):
        table.add_row(key, escape(_format_value(masked[key])))

    console.print(table)
