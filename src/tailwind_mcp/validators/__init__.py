"""Utility-class analysis components for Tailwind MCP Server."""

from .class_token import ClassToken, PropertyFamily, parse_token
from .class_extractor import extract_classes, extract_tokens, find_class_attributes
from .conflict_detector import Conflict, ConflictDetector, PropertyLookup
from .canonical_suggester import CanonicalSuggestion, CanonicalSuggester

__all__ = [
    "ClassToken",
    "PropertyFamily",
    "parse_token",
    "extract_classes",
    "extract_tokens",
    "find_class_attributes",
    "Conflict",
    "ConflictDetector",
    "PropertyLookup",
    "CanonicalSuggestion",
    "CanonicalSuggester",
]
