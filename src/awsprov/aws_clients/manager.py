"""AWS client utilities for awsprov."""

import logging
from typing import Any, Dict, Optional

import boto3
from botocore.config import Config as BotocoreConfig
from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger(__name__)

# Partition of a region, by region name prefix
PARTITION_PREFIXES = {
    "cn-": "aws-cn",
    "us-gov-": "aws-us-gov",
    "us-iso-": "aws-iso",
    "us-isob-": "aws-iso-b",
}


def partition_for_region(region: Optional[str]) -> str:
    """Return the AWS partition a region belongs to."""
    if region:
        # longest prefix first so "us-isob-" wins over "us-iso-"
        for prefix in sorted(PARTITION_PREFIXES, key=len, reverse=True):
            if region.startswith(prefix):
                return PARTITION_PREFIXES[prefix]
    return "aws"


class AWSClientManager:
    """Manages AWS client connections for resource handlers."""

    def __init__(
        self,
        profile: Optional[str] = None,
        region: Optional[str] = None,
        max_attempts: int = 10,
    ):
        """
        Initialize the AWS client manager.

        Args:
            profile: AWS profile name to use
            region: AWS region to use
            max_attempts: Maximum attempts of the botocore standard retry mode
        """
        self.profile = profile
        self.region = region
        self.max_attempts = max_attempts
        self.session: Optional[boto3.Session] = None
        self._clients: Dict[str, Any] = {}
        self._caller_identity: Optional[Dict[str, Any]] = None
        self._init_session()

    def _init_session(self) -> None:
        """Initialize the AWS session."""
        session_kwargs = {}
        if self.profile:
            session_kwargs["profile_name"] = self.profile

        # Always explicitly set region_name to override AWS_DEFAULT_REGION
        if self.region:
            session_kwargs["region_name"] = self.region

        self.session = boto3.Session(**session_kwargs)
        if not self.region:
            self.region = self.session.region_name

    @property
    def partition(self) -> str:
        return partition_for_region(self.region)

    def get_client(self, service_name: str) -> Any:
        """
        Get an AWS service client, creating it on first use.

        Args:
            service_name: Name of the AWS service

        Returns:
            AWS service client
        """
        if self.session is None:
            raise RuntimeError("Session not initialized")
        if service_name not in self._clients:
            logger.debug(f"Creating {service_name} client (region={self.region})")
            self._clients[service_name] = self.session.client(
                service_name,
                config=BotocoreConfig(
                    retries={"max_attempts": self.max_attempts, "mode": "standard"}
                ),
            )
        return self._clients[service_name]

    def get_ssm_client(self) -> Any:
        return self.get_client("ssm")

    def get_guardduty_client(self) -> Any:
        return self.get_client("guardduty")

    def get_emr_client(self) -> Any:
        return self.get_client("emr")

    def get_caller_identity(self) -> Dict[str, Any]:
        """
        Get the STS caller identity of the session, cached after the first call.

        Returns:
            Dictionary with Account, Arn and UserId
        """
        if self._caller_identity is None:
            response = self.get_client("sts").get_caller_identity()
            self._caller_identity = {
                "Account": response.get("Account"),
                "Arn": response.get("Arn"),
                "UserId": response.get("UserId"),
            }
        return self._caller_identity

    def get_account_id(self) -> str:
        return self.get_caller_identity()["Account"] or ""

    def validate_session(self) -> bool:
        """
        Validate that the AWS session is active and credentials are valid.

        Returns:
            True if the session is valid, False otherwise
        """
        try:
            self.get_caller_identity()
            return True
        except (ClientError, BotoCoreError) as e:
            logger.debug(f"Session validation failed: {e}")
            return False
