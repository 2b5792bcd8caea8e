"""Fix application for Tailwind MCP Server."""

from .auto_fixer import AutoFixer, TextEdit, TextSpan, apply_edits

__all__ = ["AutoFixer", "TextEdit", "TextSpan", "apply_edits"]
