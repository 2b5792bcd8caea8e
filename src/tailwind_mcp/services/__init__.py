"""Language server integration for Tailwind MCP Server."""

from .diagnostics_bridge import BridgeState, DiagnosticsBridge
from .lsp_framing import FrameDecoder, encode_message

__all__ = ["BridgeState", "DiagnosticsBridge", "FrameDecoder", "encode_message"]
