"""Resource handlers. Importing this package registers every handler."""

from .base import ResourceHandler, get_handler_class, register_resource, registered_types
from .emr_studio import EMRStudioHandler
from .guardduty_threat_intel_set import ThreatIntelSetHandler
from .ssm_activation import SSMActivationHandler

__all__ = [
    "ResourceHandler",
    "get_handler_class",
    "register_resource",
    "registered_types",
    "EMRStudioHandler",
    "ThreatIntelSetHandler",
    "SSMActivationHandler",
]
