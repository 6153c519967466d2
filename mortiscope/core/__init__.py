"""
Core utilities and configuration for MortiScope.

This package provides core functionality including logging configuration,
database setup, object storage and other shared utilities.
"""

from mortiscope.core.logging_config import get_logger, setup_logging

__all__ = ["get_logger", "setup_logging"]
