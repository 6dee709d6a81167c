"""Provider entry point: dispatches lifecycle operations to resource handlers."""

import logging
from typing import Any, Dict, List, Mapping, Optional

from .context import OperationContext
from .errors import ProviderError, ResourceNotFoundError, SchemaValidationError
from .meta import ProviderMeta
from .resources import get_handler_class, registered_types
from .resources.base import ResourceHandler
from .state import ResourceData
from .tags import set_tags_diff

logger = logging.getLogger(__name__)


class Provider:
    """
    Applies desired configurations to AWS through the registered handlers.

    States exchanged with callers are flat dictionaries of the form
    ``{"id": ..., <attribute>: <value>, ...}``; ``None`` means the resource
    does not exist.
    """

    def __init__(self, meta: ProviderMeta):
        """
        Initialize the provider.

        Args:
            meta: Provider-wide settings and AWS client manager
        """
        self.meta = meta

    def handler(self, resource_type: str) -> ResourceHandler:
        return get_handler_class(resource_type)(self.meta)

    @staticmethod
    def resource_types() -> List[str]:
        return sorted(registered_types())

    def validate(self, resource_type: str, config: Mapping[str, Any]) -> None:
        """
        Validate a configuration against the resource type's schema.

        Raises:
            UnknownResourceTypeError: If the resource type is not registered
            SchemaValidationError: With every problem found in the configuration
        """
        errors = self.handler(resource_type).schema.validate(config)
        if errors:
            raise SchemaValidationError(resource_type, errors)

    def apply(
        self,
        resource_type: str,
        config: Mapping[str, Any],
        prior_state: Optional[Mapping[str, Any]] = None,
        ctx: Optional[OperationContext] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        Bring the remote object in line with ``config``.

        The prior state is refreshed first. A missing object is created; a
        change to a force-new attribute deletes and recreates the object; any
        other change is applied in place; no change leaves the object alone.

        Args:
            resource_type: Registered resource type name
            config: Desired attribute values
            prior_state: Last known state, or None for a new resource
            ctx: Operation context for cancellation and deadline

        Returns:
            The resulting state
        """
        handler = self.handler(resource_type)
        self.validate(resource_type, config)

        current = None
        if prior_state and prior_state.get("id"):
            current = self._refresh(handler, prior_state, ctx)

        data = ResourceData(handler.schema, state=current, config=config)
        set_tags_diff(data, self.meta.default_tags)

        if current is None:
            return self._create(handler, data, ctx)

        replace = handler.schema.requires_replacement(data)
        if replace:
            logger.info(f"Replacing {resource_type} {data.id}: {', '.join(replace)} changed")
            handler.delete(ResourceData(handler.schema, state=current), ctx)
            fresh = ResourceData(handler.schema, config=config)
            set_tags_diff(fresh, self.meta.default_tags)
            return self._create(handler, fresh, ctx)

        changed = data.changed_keys()
        if not changed:
            logger.debug(f"{resource_type} {data.id} is up to date")
            return current

        logger.info(f"Updating {resource_type} {data.id}: {', '.join(changed)}")
        handler.update(data, ctx)
        return data.state()

    def _refresh(
        self,
        handler: ResourceHandler,
        state: Mapping[str, Any],
        ctx: Optional[OperationContext],
    ) -> Optional[Dict[str, Any]]:
        data = ResourceData(handler.schema, state=state)
        handler.read(data, ctx)
        return data.state()

    def _create(
        self, handler: ResourceHandler, data: ResourceData, ctx: Optional[OperationContext]
    ) -> Optional[Dict[str, Any]]:
        data.mark_new_resource()
        try:
            handler.create(data, ctx)
        except ProviderError as e:
            if data.id:
                logger.warning(f"{handler.type_name} {data.id} created but not fully applied: {e}")
                e.partial_state = data.state()
            raise
        logger.info(f"Created {handler.type_name} {data.id}")
        return data.state()

    def read(
        self,
        resource_type: str,
        state: Mapping[str, Any],
        ctx: Optional[OperationContext] = None,
    ) -> Optional[Dict[str, Any]]:
        """Refresh a state from the remote object; None if it no longer exists."""
        return self._refresh(self.handler(resource_type), state, ctx)

    def destroy(
        self,
        resource_type: str,
        state: Mapping[str, Any],
        ctx: Optional[OperationContext] = None,
    ) -> None:
        handler = self.handler(resource_type)
        data = ResourceData(handler.schema, state=state)
        handler.delete(data, ctx)
        logger.info(f"Destroyed {resource_type} {data.id}")

    def import_resource(
        self,
        resource_type: str,
        resource_id: str,
        ctx: Optional[OperationContext] = None,
    ) -> Dict[str, Any]:
        """
        Build a state for an existing remote object from its identifier.

        Raises:
            ResourceNotFoundError: If no remote object has that identifier
        """
        handler = self.handler(resource_type)
        data = ResourceData(handler.schema, state={"id": resource_id})
        handler.import_state(data, ctx)
        handler.read(data, ctx)

        state = data.state()
        if state is None:
            raise ResourceNotFoundError(
                "Cannot import non-existent remote object", resource_id=resource_id
            )
        return state
