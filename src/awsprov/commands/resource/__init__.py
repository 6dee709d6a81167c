"""Resource lifecycle commands for awsprov.

This module provides commands to apply, show, destroy and import resources
managed by the provider, and to list the supported resource types.
"""

import typer

from . import apply, destroy, helpers, import_resource, show, types

# Import command functions
from .apply import apply_resource
from .destroy import destroy_resource
from .import_resource import import_resource as import_resource_command
from .show import show_resource
from .types import list_types

# Create the main app instance
app = typer.Typer(
    help="Manage AWS resources. Apply configurations, show and destroy resources, or import existing ones."
)

# Register commands with the app
app.command("types")(list_types)
app.command("apply")(apply_resource)
app.command("show")(show_resource)
app.command("destroy")(destroy_resource)
app.command("import")(import_resource_command)

__all__ = ["app", "apply", "destroy", "helpers", "import_resource", "show", "types"]
