"""
Exception handlers for the MortiScope server.

This package contains custom exception handlers for different error types
and a setup function to register them with the FastAPI application.
"""

from .global_handler import setup_exception_handlers
from .validation_handler import invalid_input

__all__ = ["invalid_input", "setup_exception_handlers"]
