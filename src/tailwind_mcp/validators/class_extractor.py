"""Utility-class extraction from markup, style and script fragments."""

import re
from dataclasses import dataclass
from typing import FrozenSet, List, Pattern, Tuple

from .class_token import ClassToken, parse_token


# Shared by the extractor and the fixer so both agree on what a class attribute is.
# The value runs to the quote that opened it, so arbitrary values such as
# ``content-['x']`` stay inside a double-quoted attribute.
CLASS_ATTRIBUTE_PATTERN: Pattern[str] = re.compile(
    r"(?<![\w:@.-])(?P<name>class|className)\s*=\s*(?:\{\s*)?"
    r"(?P<quote>[\"'`])(?P<value>(?:(?!(?P=quote))[\s\S])*)(?P=quote)"
)

# A whole word that contains a template interpolation, e.g. ``${x}`` or ``mt-${size}``.
_INTERPOLATION_PATTERN = re.compile(r"\S*\$\{(?:[^{}]|\{[^{}]*\})*\}\S*")

# Bracket groups stay intact so ``grid-cols-[1fr_auto]`` or ``[&>*]:p-2`` survive.
_CANDIDATE_PATTERN = re.compile(r"(?:\[[^\[\]\s]*\]|[^\s\"'`,;<>{}()\[\]=])+")

STANDALONE_UTILITIES: FrozenSet[str] = frozenset(
    {
        "flex",
        "grid",
        "block",
        "inline",
        "hidden",
        "contents",
        "table",
        "static",
        "fixed",
        "absolute",
        "relative",
        "sticky",
        "grow",
        "shrink",
        "truncate",
        "underline",
        "overline",
        "italic",
        "uppercase",
        "lowercase",
        "capitalize",
        "container",
        "visible",
        "invisible",
        "collapse",
        "isolate",
        "antialiased",
        "border",
        "rounded",
        "shadow",
        "ring",
        "outline",
        "transition",
        "transform",
        "blur",
        "grayscale",
        "invert",
        "sepia",
        "resize",
        "group",
        "peer",
    }
)


@dataclass(frozen=True)
class ClassAttribute:
    """One ``class=``/``className=`` attribute and the span of its value."""

    name: str
    value: str
    start: int
    end: int
    value_start: int
    value_end: int


def find_class_attributes(fragment: str) -> List[ClassAttribute]:
    """Locate class attributes in document order."""
    attributes = []
    for match in CLASS_ATTRIBUTE_PATTERN.finditer(fragment):
        attributes.append(
            ClassAttribute(
                name=match.group("name"),
                value=match.group("value"),
                start=match.start(),
                end=match.end(),
                value_start=match.start("value"),
                value_end=match.end("value"),
            )
        )
    return attributes


def static_spans(text: str) -> List[Tuple[int, int]]:
    """Spans of ``text`` outside template interpolations; words touching one are skipped."""
    spans = []
    position = 0
    for match in _INTERPOLATION_PATTERN.finditer(text):
        if match.start() > position:
            spans.append((position, match.start()))
        position = match.end()
    if position < len(text):
        spans.append((position, len(text)))
    return spans


def _static_words(text: str) -> List[str]:
    return [word for start, end in static_spans(text) for word in text[start:end].split()]


def _is_fallback_candidate(token: ClassToken) -> bool:
    """Prose filter for fragments without class attributes."""
    if token.variant_prefixes or token.important or token.is_arbitrary:
        return True
    if "-" in token.base.lstrip("-"):
        return True
    return token.base in STANDALONE_UTILITIES


def extract_tokens(fragment: str) -> List[ClassToken]:
    """
    Extract parsed class tokens from a source fragment.

    When the fragment carries class attributes only their values are read.
    Otherwise the whole fragment is scanned and ordinary words are dropped.

    Args:
        fragment: Markup, style or script text

    Returns:
        Tokens in first-occurrence order, without duplicates
    """
    if not fragment or not fragment.strip():
        return []

    tokens: List[ClassToken] = []
    seen = set()

    attributes = find_class_attributes(fragment)
    if attributes:
        for attribute in attributes:
            for raw in _static_words(attribute.value):
                if raw in seen:
                    continue
                token = parse_token(raw)
                if token is None:
                    continue
                seen.add(raw)
                tokens.append(token)
        return tokens

    for start, end in static_spans(fragment):
        for match in _CANDIDATE_PATTERN.finditer(fragment, start, end):
            raw = match.group(0)
            if raw in seen:
                continue
            token = parse_token(raw)
            if token is None or not _is_fallback_candidate(token):
                continue
            seen.add(raw)
            tokens.append(token)

    return tokens


def extract_classes(fragment: str) -> List[str]:
    """Extract utility-class strings from a source fragment."""
    return [token.raw for token in extract_tokens(fragment)]
