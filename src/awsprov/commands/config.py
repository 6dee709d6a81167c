"""Configuration management commands for awsprov."""

import json

import typer
import yaml
from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table

from ..utils.config import Config

app = typer.Typer(
    help="Manage awsprov configuration settings including default tags, ignored tags, timeouts and logging."
)
console = Console()


def _flatten(data: dict, prefix: str = "") -> list:
    rows = []
    for key, value in data.items():
        path = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, dict) and value:
            rows.extend(_flatten(value, path))
        else:
            rows.append((path, value))
    return rows


@app.command("show")
def show_config(
    section: str = typer.Option(
        None,
        "--section",
        "-s",
        help="Show specific configuration section (default_tags, ignore_tags, timeouts, logging)",
    ),
    format: str = typer.Option("table", "--format", "-f", help="Output format: table, yaml, json"),
) -> None:
    """Show current configuration, including defaults for unset provider settings."""
    config = Config()
    config_data = config.get_all()
    config_data.update(config.get_provider_config())
    config_data["logging"] = config.get_logging_config()

    if section:
        if section not in config_data:
            console.print(f"[red]Configuration section '{section}' not found.[/red]")
            console.print(f"Available sections: {', '.join(config_data.keys())}")
            raise typer.Exit(1)
        config_data = {section: config_data[section]}

    if format == "yaml":
        yaml_output = yaml.dump(config_data, default_flow_style=False, indent=2, sort_keys=False)
        console.print(Syntax(yaml_output, "yaml", theme="monokai", line_numbers=True))
    elif format == "json":
        console.print_json(json.dumps(config_data))
    elif format == "table":
        table = Table(title="awsprov Configuration")
        table.add_column("Key", style="cyan")
        table.add_column("Value", style="green")
        for key, value in _flatten(config_data):
            table.add_row(key, escape(json.dumps(value) if isinstance(value, (dict, list)) else str(value)))
        console.print(table)
    else:
        console.print(f"[red]Invalid format '{format}'. Use table, yaml or json.[/red]")
        raise typer.Exit(1)


@app.command("set")
def set_config(
    key: str = typer.Argument(..., help="Configuration key, dot notation (e.g. timeouts.propagation_seconds)"),
    value: str = typer.Argument(..., help="Value, parsed as YAML (e.g. 300, true, {Team: ops})"),
) -> None:
    """Set a configuration value.

    Examples:
        $ awsprov config set region eu-west-1
        $ awsprov config set timeouts.propagation_seconds 300
        $ awsprov config set default_tags "{Team: platform, CostCenter: '42'}"
    """
    try:
        parsed = yaml.safe_load(value)
    except yaml.YAMLError:
        parsed = value

    config = Config()
    config.set(key, parsed)
    console.print(f"[green]Set {key} = {escape(repr(parsed))}[/green]")
