"""Test fixtures package for awsprov.

This package provides organized test fixtures and data:

- aws_clients: AWS client mocks, provider settings and error factories
- resources: Sample API responses and configurations for each resource type

Usage:
    from tests.fixtures.aws_clients import mock_aws_client_manager, provider_meta
    from tests.fixtures.resources import sample_studio
"""

from .aws_clients import (
    client_error,
    mock_aws_client_manager,
    mock_emr_client,
    mock_guardduty_client,
    mock_ssm_client,
    provider_meta,
)
from .resources import (
    sample_activation,
    sample_activation_config,
    sample_studio,
    sample_studio_config,
    sample_threat_intel_set,
    sample_threat_intel_set_config,
)

__all__ = [
    "client_error",
    "mock_aws_client_manager",
    "mock_emr_client",
    "mock_guardduty_client",
    "mock_ssm_client",
    "provider_meta",
    "sample_activation",
    "sample_activation_config",
    "sample_studio",
    "sample_studio_config",
    "sample_threat_intel_set",
    "sample_threat_intel_set_config",
]
