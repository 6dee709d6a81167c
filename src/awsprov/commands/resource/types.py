"""List supported resource types."""

from rich.table import Table

from ...provider import Provider
from ...resources import get_handler_class
from .helpers import console


def list_types():
    """List the resource types this provider manages."""
    table = Table(title="Resource Types")
    table.add_column("Type", style="cyan")
    table.add_column("Required attributes", style="green")
    table.add_column("In-place update", style="yellow")

    for type_name in Provider.resource_types():
        handler_class = get_handler_class(type_name)
        required = ", ".join(name for name, fld in handler_class.schema.items() if fld.required)
        table.add_row(type_name, required, "yes" if handler_class.supports_update() else "no")

    console.print(table)
