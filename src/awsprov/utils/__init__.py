"""Shared utilities: configuration, logging, retry and status polling."""

from .config import Config
from .logging_config import LoggingConfig, get_logger, setup_logging
from .retry import RetryConfig, aws_error_code_equals, aws_error_message_contains, retry_on_error
from .waiter import StateWaiter, wait_for_state

__all__ = [
    "Config",
    "LoggingConfig",
    "get_logger",
    "setup_logging",
    "RetryConfig",
    "aws_error_code_equals",
    "aws_error_message_contains",
    "retry_on_error",
    "StateWaiter",
    "wait_for_state",
]
