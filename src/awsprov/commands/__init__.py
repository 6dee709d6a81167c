"""Command modules for awsprov."""

from . import config, resource

__all__ = ["config", "resource"]
