"""Structured logging module.

This module provides utilities for structured logging using structlog.
"""

from .setup import get_logger, setup_logging

__all__ = [
    "get_logger",
    "setup_logging",
]
