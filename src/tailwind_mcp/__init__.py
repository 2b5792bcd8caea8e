"""Tailwind MCP Server - Model Context Protocol server for Tailwind CSS class analysis."""

__version__ = "0.1.0"
__author__ = "Tailwind MCP Team"

from .server import create_server

__all__ = ["create_server", "__version__"]
