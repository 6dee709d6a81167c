"""AWS service client management.

This package provides the boto3 session and per-service clients used by the
resource handlers.
"""

from .manager import AWSClientManager, partition_for_region

__all__ = [
    "AWSClientManager",
    "partition_for_region",
]
