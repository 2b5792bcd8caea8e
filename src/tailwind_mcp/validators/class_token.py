"""Token model for Tailwind utility classes.

A class such as ``md:hover:!mt-[-20px]`` is decomposed into its variant
prefixes (``md``, ``hover``), the important marker (``!``) and the base
utility (``mt-[-20px]``). The base is classified into a property family by
an ordered rule table so conflict and rewrite rules can reason about which
CSS property a class controls.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, List, Optional, Pattern, Tuple


RESPONSIVE_BREAKPOINTS: Tuple[str, ...] = ("sm", "md", "lg", "xl", "2xl")

MAX_TOKEN_LENGTH = 120

DISPLAY_CLASSES: FrozenSet[str] = frozenset(
    {
        "block",
        "inline",
        "inline-block",
        "flex",
        "inline-flex",
        "grid",
        "inline-grid",
        "flow-root",
        "hidden",
    }
)

POSITION_CLASSES: FrozenSet[str] = frozenset({"static", "fixed", "absolute", "relative", "sticky"})


class PropertyFamily(str, Enum):
    """The visual property a utility class controls."""

    MARGIN = "spacing-margin"
    PADDING = "spacing-padding"
    WIDTH = "sizing-width"
    HEIGHT = "sizing-height"
    MIN_WIDTH = "sizing-min-width"
    MAX_WIDTH = "sizing-max-width"
    MIN_HEIGHT = "sizing-min-height"
    MAX_HEIGHT = "sizing-max-height"
    FONT_SIZE = "typography-size"
    FONT_WEIGHT = "typography-weight"
    LINE_HEIGHT = "typography-leading"
    LETTER_SPACING = "typography-tracking"
    TEXT_ALIGN = "typography-align"
    TEXT_COLOR = "color-text"
    BG_COLOR = "color-bg"
    BORDER_COLOR = "color-border"
    DISPLAY = "layout-display"
    POSITION = "layout-position"
    FLEX_DIRECTION = "layout-flex-direction"
    INSET = "layout-inset"
    Z_INDEX = "layout-z-index"


_ARBITRARY = r"\[[^\[\]\s]+\]"
_SEGMENT = rf"(?:[a-z0-9]+(?:\.[0-9]+)?|{_ARBITRARY})"

_BASE_RE = re.compile(rf"^-?[a-z][a-z0-9]*(?:-{_SEGMENT})*(?:/{_SEGMENT})?$")
_PREFIX_RE = re.compile(
    rf"^(?:@?[a-z0-9]+(?:-[a-z0-9]+)*(?:-?{_ARBITRARY})?(?:/[a-z0-9]+)?|{_ARBITRARY}|\*{{1,2}})$"
)

_COLOR_NAMES = (
    "slate|gray|zinc|neutral|stone|red|orange|amber|yellow|lime|green|emerald|"
    "teal|cyan|sky|blue|indigo|violet|purple|fuchsia|pink|rose"
)
_SHADES = "50|100|200|300|400|500|600|700|800|900|950"
_OPACITY = r"(?:/(?:\d+|\[[^\]]+\]))?"
_COLOR_VALUE = rf"(?:(?:inherit|current|transparent|black|white)|(?:{_COLOR_NAMES})-(?:{_SHADES})){_OPACITY}"

_FONT_SIZE_RE = re.compile(
    r"^text-(?:(?:xs|sm|base|lg|xl|[2-9]xl)(?:/(?:\d+(?:\.\d+)?|[a-z]+|\[[^\]]+\]))?"
    r"|\[(?:length:[^\]]+|-?\d*\.?\d+(?:px|r?em|%|[sdl]?v[wh]|pt|ch|ex|r?lh)?)\])$"
)
_TEXT_COLOR_RE = re.compile(rf"^text-(?:{_COLOR_VALUE}|\[[^\]]+\]{_OPACITY})$")

_SPACING_VALUE = r"(?:\d+(?:\.\d+)?|px|auto|\[[^\]]+\])"
_SIZING_VALUE = (
    r"(?:\d+(?:\.\d+)?|\d+/\d+|px|auto|full|screen|min|max|fit|none|prose|"
    r"[sdl]v[wh]|xs|sm|md|lg|xl|[2-7]xl|\[[^\]]+\])"
)


@dataclass(frozen=True)
class FamilyRule:
    """One row of the classification table: a base pattern and its family."""

    family: PropertyFamily
    pattern: Pattern[str]
    stem: Optional[str] = None

    def classify(self, base: str) -> Optional[str]:
        """Return the comparison stem when ``base`` belongs to this family."""
        match = self.pattern.match(base)
        if not match:
            return None
        if self.stem is not None:
            return self.stem
        return match.group("stem")


def _rule(family: PropertyFamily, pattern: str, stem: Optional[str] = None) -> FamilyRule:
    return FamilyRule(family=family, pattern=re.compile(pattern), stem=stem)


# Order matters: font sizes are tested before text colors, both share ``text-``.
FAMILY_RULES: Tuple[FamilyRule, ...] = (
    _rule(PropertyFamily.MARGIN, rf"^-?(?P<stem>m[trblxyse]?)-{_SPACING_VALUE}$"),
    _rule(PropertyFamily.PADDING, rf"^(?P<stem>p[trblxyse]?)-{_SPACING_VALUE}$"),
    _rule(PropertyFamily.WIDTH, rf"^(?P<stem>w)-{_SIZING_VALUE}$"),
    _rule(PropertyFamily.HEIGHT, rf"^(?P<stem>h)-{_SIZING_VALUE}$"),
    _rule(PropertyFamily.MIN_WIDTH, rf"^(?P<stem>min-w)-{_SIZING_VALUE}$"),
    _rule(PropertyFamily.MAX_WIDTH, rf"^(?P<stem>max-w)-{_SIZING_VALUE}$"),
    _rule(PropertyFamily.MIN_HEIGHT, rf"^(?P<stem>min-h)-{_SIZING_VALUE}$"),
    _rule(PropertyFamily.MAX_HEIGHT, rf"^(?P<stem>max-h)-{_SIZING_VALUE}$"),
    FamilyRule(PropertyFamily.FONT_SIZE, _FONT_SIZE_RE, stem="text-size"),
    _rule(
        PropertyFamily.FONT_WEIGHT,
        r"^font-(?:thin|extralight|light|normal|medium|semibold|bold|extrabold|black|\[\d+\])$",
        stem="font-weight",
    ),
    _rule(
        PropertyFamily.LINE_HEIGHT,
        r"^leading-(?:none|tight|snug|normal|relaxed|loose|\d+(?:\.\d+)?|\[[^\]]+\])$",
        stem="leading",
    ),
    _rule(
        PropertyFamily.LETTER_SPACING,
        r"^-?tracking-(?:tighter|tight|normal|wide|wider|widest|\[[^\]]+\])$",
        stem="tracking",
    ),
    _rule(PropertyFamily.TEXT_ALIGN, r"^text-(?:left|center|right|justify|start|end)$", "text-align"),
    _rule(PropertyFamily.TEXT_COLOR, _TEXT_COLOR_RE.pattern, stem="text-color"),
    _rule(
        PropertyFamily.BG_COLOR,
        rf"^bg-(?:{_COLOR_VALUE}|\[(?!url\()(?!length:)(?!position:)(?!size:)[^\]]+\]{_OPACITY})$",
        stem="bg-color",
    ),
    _rule(
        PropertyFamily.BORDER_COLOR,
        rf"^border-(?:{_COLOR_VALUE}|\[(?![\d.])(?!length:)[^\]]+\]{_OPACITY})$",
        stem="border-color",
    ),
    _rule(PropertyFamily.FLEX_DIRECTION, r"^flex-(?:row|col)(?:-reverse)?$", stem="flex-direction"),
    _rule(
        PropertyFamily.INSET,
        r"^-?(?P<stem>inset(?:-[xy])?|top|right|bottom|left|start|end)-"
        r"(?:\d+(?:\.\d+)?|\d+/\d+|px|auto|full|\[[^\]]+\])$",
    ),
    _rule(PropertyFamily.Z_INDEX, r"^-?z-(?:\d+|auto|\[-?\d+\])$", stem="z-index"),
)


def is_font_size(base: str) -> bool:
    """True for ``text-*`` utilities that set the font size."""
    return bool(_FONT_SIZE_RE.match(base))


def is_text_color(base: str) -> bool:
    """True for ``text-*`` utilities that set the text color.

    Sizes are rejected first so ``text-sm`` never reads as a color and
    ``text-[14px]`` never reads as an arbitrary color.
    """
    if not base.startswith("text-") or is_font_size(base):
        return False
    return bool(_TEXT_COLOR_RE.match(base))


def classify_base(base: str) -> Tuple[Optional[PropertyFamily], Optional[str]]:
    """Return ``(family, stem)`` for a base utility, or ``(None, None)``."""
    if base in DISPLAY_CLASSES:
        return PropertyFamily.DISPLAY, "display"
    if base in POSITION_CLASSES:
        return PropertyFamily.POSITION, "position"

    for rule in FAMILY_RULES:
        stem = rule.classify(base)
        if stem is not None:
            return rule.family, stem

    return None, None


# Default for ``ClassToken.with_base``: reuse the token's own marker.
_KEEP_MARKER = "keep"


@dataclass(frozen=True)
class ClassToken:
    """Immutable view of one utility-class occurrence."""

    raw: str
    variant_prefixes: Tuple[str, ...]
    base: str
    important_marker: Optional[str] = None  # "leading", "trailing" or None
    property_family: Optional[PropertyFamily] = None
    stem: Optional[str] = None

    @property
    def important(self) -> bool:
        return self.important_marker is not None

    @property
    def is_arbitrary(self) -> bool:
        return "[" in self.base

    @property
    def is_negative(self) -> bool:
        return self.base.startswith("-")

    @property
    def breakpoint(self) -> Optional[str]:
        """The responsive breakpoint prefix, if any."""
        for prefix in self.variant_prefixes:
            if prefix in RESPONSIVE_BREAKPOINTS:
                return prefix
        return None

    @property
    def variant_scope(self) -> FrozenSet[str]:
        """Variant prefixes as an unordered scope."""
        return frozenset(self.variant_prefixes)

    def with_base(self, base: str, marker: Optional[str] = _KEEP_MARKER) -> str:
        """Raw text for this token with ``base`` swapped in, keeping its marker unless one is given."""
        if marker == _KEEP_MARKER:
            marker = self.important_marker
        return _join(self.variant_prefixes, base, marker)

    def with_marker(self, marker: Optional[str]) -> str:
        """Raw text for this token with the important marker moved or removed."""
        return _join(self.variant_prefixes, self.base, marker)

    def rebuild(self) -> str:
        return _join(self.variant_prefixes, self.base, self.important_marker)


def _join(prefixes: Tuple[str, ...], base: str, marker: Optional[str]) -> str:
    if marker == "leading":
        base = f"!{base}"
    elif marker == "trailing":
        base = f"{base}!"
    return ":".join(prefixes + (base,))


def split_variants(raw: str) -> Optional[List[str]]:
    """Split on ``:`` outside brackets; None when brackets are unbalanced."""
    segments: List[str] = []
    depth = 0
    current: List[str] = []

    for char in raw:
        if char == "[":
            depth += 1
        elif char == "]":
            depth -= 1
            if depth < 0:
                return None
        if char == ":" and depth == 0:
            segments.append("".join(current))
            current = []
        else:
            current.append(char)

    if depth != 0:
        return None

    segments.append("".join(current))
    return segments


def parse_token(raw: str) -> Optional[ClassToken]:
    """Parse a class string into a ClassToken.

    Malformed input returns None; callers drop such tokens silently.
    """
    if not raw or len(raw) > MAX_TOKEN_LENGTH:
        return None

    segments = split_variants(raw)
    if segments is None:
        return None

    *prefixes, last = segments
    if any(not _PREFIX_RE.match(prefix) for prefix in prefixes):
        return None

    marker: Optional[str] = None
    if last.startswith("!"):
        marker = "leading"
        last = last[1:]
    elif last.endswith("!"):
        marker = "trailing"
        last = last[:-1]

    if not _BASE_RE.match(last):
        return None

    family, stem = classify_base(last)
    return ClassToken(
        raw=raw,
        variant_prefixes=tuple(prefixes),
        base=last,
        important_marker=marker,
        property_family=family,
        stem=stem,
    )
