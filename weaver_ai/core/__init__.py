"""
Core utilities and configuration for Weaver-AI.

This package provides settings, logging configuration and Logfire telemetry
shared by the execution core.
"""

from weaver_ai.core.config import Settings, get_settings, reset_settings
from weaver_ai.core.logging_config import get_logger, setup_logging

__all__ = ["Settings", "get_settings", "reset_settings", "get_logger", "setup_logging"]
