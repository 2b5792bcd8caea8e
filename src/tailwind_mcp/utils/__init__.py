"""Utility modules for Tailwind MCP Server."""

from .errors import (
    TailwindMCPError,
    ConfigurationError,
    ToolExecutionError,
    BridgeError,
)
from .logging_config import setup_logging
from .cache import LRUCache

__all__ = [
    "TailwindMCPError",
    "ConfigurationError",
    "ToolExecutionError",
    "BridgeError",
    "setup_logging",
    "LRUCache",
]
