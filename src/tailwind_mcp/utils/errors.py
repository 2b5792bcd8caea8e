"""Custom error classes for Tailwind MCP Server."""

from typing import Optional, Dict, Any


class TailwindMCPError(Exception):
    """Base exception class for Tailwind MCP Server."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(TailwindMCPError):
    """Exception raised when configuration is invalid."""

    pass


class ToolExecutionError(TailwindMCPError):
    """Exception raised when MCP tool execution fails."""

    def __init__(self, tool_name: str, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.tool_name = tool_name


class BridgeError(TailwindMCPError):
    """Exception raised when the language server bridge cannot serve a call."""

    pass


class BridgeUnavailableError(BridgeError):
    """Exception raised when the language server process cannot be spawned or has exited."""

    pass


class BridgeTimeoutError(BridgeError):
    """Exception raised when the language server does not answer a request in time."""

    def __init__(self, method: str, timeout: float, details: Optional[Dict[str, Any]] = None):
        super().__init__(f"Request '{method}' timed out after {timeout}s", details)
        self.method = method
        self.timeout = timeout


class BridgeNotReadyError(BridgeError):
    """Exception raised when a document call is made before the handshake completed."""

    pass
