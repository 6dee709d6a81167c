"""Base class and registry for resource handlers."""

import logging
from abc import ABC, abstractmethod
from typing import Callable, Dict, Optional, Type, TypeVar

from ..context import OperationContext, background
from ..errors import UnknownResourceTypeError
from ..meta import ProviderMeta
from ..schema import Schema
from ..state import ResourceData

logger = logging.getLogger(__name__)

_REGISTRY: Dict[str, Type["ResourceHandler"]] = {}

H = TypeVar("H", bound=Type["ResourceHandler"])


def register_resource(type_name: str) -> Callable[[H], H]:
    """
    Class decorator that registers a handler for a resource type.

    Args:
        type_name: Resource type name, e.g. ``aws_ssm_activation``
    """

    def decorator(cls: H) -> H:
        cls.type_name = type_name
        _REGISTRY[type_name] = cls
        return cls

    return decorator


def get_handler_class(type_name: str) -> Type["ResourceHandler"]:
    try:
        return _REGISTRY[type_name]
    except KeyError:
        raise UnknownResourceTypeError(type_name, list(_REGISTRY)) from None


def registered_types() -> Dict[str, Type["ResourceHandler"]]:
    return dict(_REGISTRY)


class ResourceHandler(ABC):
    """
    Create/read/update/delete procedures for one remote object type.

    Handlers translate ``ResourceData`` fields into API requests and write the
    API responses back. They raise ``ResourceOperationError`` for failed remote
    calls and signal absence on read by clearing the resource id.
    """

    type_name: str = ""
    schema: Schema

    def __init__(self, meta: ProviderMeta):
        self.meta = meta

    @classmethod
    def supports_update(cls) -> bool:
        return cls.update is not ResourceHandler.update

    @abstractmethod
    def create(self, data: ResourceData, ctx: Optional[OperationContext] = None) -> None:
        """Create the remote object and record its identity."""

    @abstractmethod
    def read(self, data: ResourceData, ctx: Optional[OperationContext] = None) -> None:
        """Refresh ``data`` from the remote object, clearing the id if it is gone."""

    def update(self, data: ResourceData, ctx: Optional[OperationContext] = None) -> None:
        """Apply in-place changes. Handlers without updatable fields keep this default."""
        self.read(data, ctx)

    @abstractmethod
    def delete(self, data: ResourceData, ctx: Optional[OperationContext] = None) -> None:
        """Delete the remote object."""

    def import_state(self, data: ResourceData, ctx: Optional[OperationContext] = None) -> None:
        """Prepare ``data`` for import. The identifier is used as-is."""

    @staticmethod
    def _ctx(ctx: Optional[OperationContext]) -> OperationContext:
        return ctx or background()
