"""Splits one source file into class-bearing fragments."""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Pattern, Tuple

from ..fixers.auto_fixer import TextEdit
from ..validators.class_extractor import CLASS_ATTRIBUTE_PATTERN, extract_classes, static_spans

MARKUP_SUFFIXES = frozenset({".html", ".htm", ".vue", ".svelte", ".astro", ".jsx", ".tsx"})
STYLE_SUFFIXES = frozenset({".css", ".scss", ".sass", ".less"})
SCRIPT_SUFFIXES = frozenset({".js", ".ts", ".jsx", ".tsx"})

_APPLY_RE = re.compile(r"@apply[ \t]+(?P<classes>[^;{}\n]+?)[ \t]*(?=[;}\n]|$)")
_STYLE_BLOCK_RE = re.compile(r"<style\b[^>]*>(?P<body>.*?)</style\s*>", re.IGNORECASE | re.DOTALL)
_SCRIPT_BLOCK_RE = re.compile(r"<script\b[^>]*>(?P<body>.*?)</script\s*>", re.IGNORECASE | re.DOTALL)
_STRING_LITERAL_RE = re.compile(r"(?P<quote>[\"'])(?P<body>(?:\\.|(?!(?P=quote))[^\\\n])*)(?P=quote)")
_TEMPLATE_LITERAL_RE = re.compile(r"`(?P<body>(?:\\.|[^`\\])*)`")


@dataclass(frozen=True)
class SourceFragment:
    """A span of a source file that carries utility classes."""

    text: str
    start: int
    end: int
    kind: str  # "class-attribute", "apply-directive", "string-literal" or "template-literal"

    def replace(self, new_text: str) -> TextEdit:
        return TextEdit(self.start, self.end, new_text)


def _attribute_fragments(content: str) -> List[SourceFragment]:
    return [
        SourceFragment(match.group(0), match.start(), match.end(), "class-attribute")
        for match in CLASS_ATTRIBUTE_PATTERN.finditer(content)
    ]


def _apply_fragments(content: str, offset: int = 0) -> List[SourceFragment]:
    return [
        SourceFragment(
            match.group("classes"),
            offset + match.start("classes"),
            offset + match.end("classes"),
            "apply-directive",
        )
        for match in _APPLY_RE.finditer(content)
    ]


def _literal_fragments(content: str, offset: int = 0) -> List[SourceFragment]:
    fragments = []
    # Template literals go first so quotes inside them are not read as strings.
    for pattern, kind in ((_TEMPLATE_LITERAL_RE, "template-literal"), (_STRING_LITERAL_RE, "string-literal")):
        for match in pattern.finditer(content):
            body = match.group("body")
            words = [word for start, end in static_spans(body) for word in body[start:end].split()]
            if len(words) < 2 or not extract_classes(body):
                continue
            fragment = SourceFragment(body, offset + match.start("body"), offset + match.end("body"), kind)
            if not _overlaps(fragment, fragments):
                fragments.append(fragment)
    return fragments


def _blocks(content: str, pattern: Pattern[str]) -> List[Tuple[str, int]]:
    return [(match.group("body"), match.start("body")) for match in pattern.finditer(content)]


def _overlaps(fragment: SourceFragment, taken: List[SourceFragment]) -> bool:
    return any(fragment.start < other.end and other.start < fragment.end for other in taken)


def collect_fragments(content: str, file_path: str) -> List[SourceFragment]:
    """
    Find every class-bearing fragment in one file.

    Args:
        content: Full file content
        file_path: Path used to pick the file type

    Returns:
        Non-overlapping fragments ordered by start offset
    """
    suffix = Path(file_path).suffix.lower()
    fragments: List[SourceFragment] = []

    if suffix in STYLE_SUFFIXES:
        return _apply_fragments(content)

    fragments.extend(_attribute_fragments(content))

    candidates: List[SourceFragment] = []
    if suffix in SCRIPT_SUFFIXES:
        candidates.extend(_literal_fragments(content))
    else:
        for body, offset in _blocks(content, _STYLE_BLOCK_RE):
            candidates.extend(_apply_fragments(body, offset))
        if suffix in MARKUP_SUFFIXES:
            for body, offset in _blocks(content, _SCRIPT_BLOCK_RE):
                candidates.extend(_literal_fragments(body, offset))

    for candidate in candidates:
        if not _overlaps(candidate, fragments):
            fragments.append(candidate)

    return sorted(fragments, key=lambda fragment: fragment.start)
