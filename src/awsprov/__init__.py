"""awsprov - declarative AWS resource handlers with a CLI front end."""

from .context import OperationContext
from .errors import (
    InvalidIdentifierError,
    ProviderError,
    ResourceNotFoundError,
    ResourceOperationError,
    SchemaValidationError,
)
from .meta import ProviderMeta, Timeouts
from .provider import Provider
from .state import ResourceData, StateStore


# Version will be set by build system
def _get_version():
    """Get the version from package metadata or pyproject.toml."""
    try:
        from importlib.metadata import PackageNotFoundError, version

        return version("awsprov")
    except PackageNotFoundError:
        # Fallback for development/editable installs
        import re
        from pathlib import Path

        pyproject_path = Path(__file__).parent.parent.parent / "pyproject.toml"
        if not pyproject_path.exists():
            raise RuntimeError(f"Could not find pyproject.toml at {pyproject_path}")

        with open(pyproject_path, "r", encoding="utf-8") as f:
            content = f.read()
            version_match = re.search(r'version\s*=\s*["\']([^"\']+)["\']', content)
            if not version_match:
                raise RuntimeError("Could not find version in pyproject.toml")
            return version_match.group(1)


__version__ = _get_version()

__all__ = [
    "__version__",
    "OperationContext",
    "Provider",
    "ProviderMeta",
    "Timeouts",
    "ResourceData",
    "StateStore",
    "ProviderError",
    "ResourceOperationError",
    "ResourceNotFoundError",
    "InvalidIdentifierError",
    "SchemaValidationError",
]
