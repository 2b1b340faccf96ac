"""Logging configuration for stackalign."""

from log_config.logger import add_file_logging, get_logger, log_performance, logger

__all__ = ["add_file_logging", "get_logger", "log_performance", "logger"]
