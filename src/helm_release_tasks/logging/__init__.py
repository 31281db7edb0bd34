"""Logging configuration for helm_release_tasks."""

from helm_release_tasks.logging.config import configure_logging, get_logger

__all__ = ["configure_logging", "get_logger"]
