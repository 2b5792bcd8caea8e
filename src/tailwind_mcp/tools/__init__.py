"""MCP tool implementations for Tailwind MCP Server."""

from .analysis_tools import register_analysis_tools
from .fix_tools import register_fix_tools
from .scan_tools import register_scan_tools

__all__ = [
    "register_analysis_tools",
    "register_fix_tools",
    "register_scan_tools",
]
