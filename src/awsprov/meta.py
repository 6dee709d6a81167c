"""Provider-wide settings shared by every resource handler."""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .aws_clients.manager import AWSClientManager, partition_for_region
from .tags import DefaultTagsConfig, IgnoreTagsConfig

logger = logging.getLogger(__name__)


@dataclass
class Timeouts:
    """Timeouts used by the handlers, in seconds."""

    propagation: float = 120.0
    threat_intel_set: float = 300.0
    threat_intel_set_poll: float = 3.0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Timeouts":
        return cls(
            propagation=float(data.get("propagation_seconds", 120)),
            threat_intel_set=float(data.get("threat_intel_set_seconds", 300)),
            threat_intel_set_poll=float(data.get("threat_intel_set_poll_seconds", 3)),
        )


@dataclass
class ProviderMeta:
    """
    Everything a handler needs besides its own resource data.

    Attributes:
        client_manager: Source of boto3 service clients
        region: AWS region the provider operates in
        partition: AWS partition of the region
        account_id: AWS account id of the caller
        default_tags: Tags applied to every taggable resource
        ignore_tags: Tag keys never managed by the provider
        timeouts: Retry and polling windows
    """

    client_manager: Any
    region: str
    partition: str = "aws"
    account_id: str = ""
    default_tags: DefaultTagsConfig = field(default_factory=DefaultTagsConfig)
    ignore_tags: IgnoreTagsConfig = field(default_factory=IgnoreTagsConfig)
    timeouts: Timeouts = field(default_factory=Timeouts)

    @classmethod
    def from_config(
        cls,
        provider_config: Dict[str, Any],
        client_manager: AWSClientManager,
        resolve_account: bool = True,
    ) -> "ProviderMeta":
        """
        Build provider settings from the provider configuration section.

        Args:
            provider_config: Output of ``Config.get_provider_config()``
            client_manager: AWS client manager for the selected profile and region
            resolve_account: Whether to look up the account id through STS

        Returns:
            ProviderMeta instance
        """
        ignore = provider_config.get("ignore_tags") or {}
        account_id = client_manager.get_account_id() if resolve_account else ""
        region = client_manager.region or ""
        logger.debug(f"Provider configured for region={region} account={account_id}")
        return cls(
            client_manager=client_manager,
            region=region,
            partition=partition_for_region(region),
            account_id=account_id,
            default_tags=DefaultTagsConfig(dict(provider_config.get("default_tags") or {})),
            ignore_tags=IgnoreTagsConfig(
                keys=list(ignore.get("keys") or []),
                key_prefixes=list(ignore.get("key_prefixes") or []),
            ),
            timeouts=Timeouts.from_dict(provider_config.get("timeouts") or {}),
        )
