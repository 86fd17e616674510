"""Logging configuration for kubelens."""

from kubelens.logging.config import bind_cluster, configure_logging, get_logger

__all__ = ["bind_cluster", "configure_logging", "get_logger"]
