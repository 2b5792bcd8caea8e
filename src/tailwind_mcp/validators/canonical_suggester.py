"""Canonical class suggestions for legacy, misspelled and verbose utilities."""

import re
import time
from dataclasses import dataclass, asdict
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple

from .class_extractor import extract_tokens, find_class_attributes
from .class_token import ClassToken, PropertyFamily, parse_token
from ..utils.errors import BridgeError
from ..utils.logging_config import LoggerMixin, log_analysis_result


@dataclass(frozen=True)
class CanonicalSuggestion:
    """A proposal to replace ``original`` with ``canonical``."""

    original: str
    canonical: str
    reason: str
    scope: str = "token"  # "token" or "fragment"
    source: str = "local"  # "local" or "language-server"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class DiagnosticsSource(Protocol):
    """Authoritative source of canonical-class diagnostics."""

    async def canonical_suggestions(
        self, text: str, source_path: str
    ) -> List[CanonicalSuggestion]: ...


SPACING_SCALE: Tuple[float, ...] = (
    0, 0.5, 1, 1.5, 2, 2.5, 3, 3.5, 4, 5, 6, 7, 8, 9, 10, 11, 12,
    14, 16, 20, 24, 28, 32, 36, 40, 44, 48, 52, 56, 60, 64, 72, 80, 96,
)  # fmt: skip

LEGACY_CLASS_MAP: Dict[str, str] = {
    "text-regular": "text-base",
    "text-normal": "text-base",
    "font-regular": "font-normal",
    "font-standard": "font-normal",
    "weight-normal": "font-normal",
    "weight-bold": "font-bold",
    "flex-grow": "grow",
    "flex-grow-0": "grow-0",
    "flex-shrink": "shrink",
    "flex-shrink-0": "shrink-0",
    "break-words": "wrap-break-word",
    "text-grey": "text-gray-500",
    "bg-grey": "bg-gray-500",
    "border-grey": "border-gray-500",
    "display-none": "hidden",
}

BRITISH_SPELLINGS: Tuple[Tuple[str, str], ...] = (
    ("grey", "gray"),
    ("centre", "center"),
    ("colour", "color"),
)

INLINE_STYLE_MAP: Dict[str, str] = {
    "display: flex": "flex",
    "display: block": "block",
    "display: none": "hidden",
    "display: grid": "grid",
    "text-align: center": "text-center",
    "text-align: left": "text-left",
    "text-align: right": "text-right",
    "justify-content: center": "justify-center",
    "justify-content: space-between": "justify-between",
    "align-items: center": "items-center",
    "margin: 0 auto": "mx-auto",
    "width: 100%": "w-full",
    "height: 100%": "h-full",
}

_DISPLAY_VALUES = (
    "block|inline|inline-block|flex|inline-flex|grid|inline-grid|table|contents|flow-root|none"
)
_SIDES = {"top": "t", "right": "r", "bottom": "b", "left": "l", "x": "x", "y": "y"}

_DISPLAY_STEM_RE = re.compile(rf"^display-(?P<value>{_DISPLAY_VALUES})$")
_SIZE_STEM_RE = re.compile(r"^(?:(?P<bound>min|max)-)?(?P<axis>width|height)-(?P<value>.+)$")
_BOX_STEM_RE = re.compile(
    r"^(?P<neg>-?)(?P<box>margin|padding)-(?:(?P<side>top|right|bottom|left|x|y)-)?(?P<value>.+)$"
)
_DECIMAL_RE = re.compile(
    r"^(?P<neg>-?)(?P<stem>m[trblxy]?|p[trblxy]?|gap(?:-[xy])?|space-[xy])-(?P<value>\d+\.\d+)$"
)
_PIXEL_RE = re.compile(
    r"^(?P<neg>-?)(?P<stem>m[trblxyse]?|p[trblxyse]?|gap(?:-[xy])?|space-[xy]|"
    r"inset(?:-[xy])?|top|right|bottom|left|start|end)"
    r"-\[(?P<sign>-?)(?P<px>\d+(?:\.\d+)?)px\]$"
)

_Z_INDEX_RE = re.compile(r"^(?P<neg>-?)z-\[(?P<sign>-?)(?P<value>\d+)\]$")

# Padding and gaps have no negative utilities.
_NON_NEGATIVE_STEMS = ("p", "gap")

_STYLE_ATTRIBUTE_RE = re.compile(r"(?<![\w:@.-])style\s*=\s*(?P<quote>[\"'])(?P<value>(?:(?!(?P=quote))[\s\S])*)(?P=quote)")

_MARGIN_DIRECTIONS = frozenset({"mt", "mr", "mb", "ml", "mx", "my"})

MULTIPLE_MARGINS_REASON = (
    "Consider using more specific spacing utilities instead of multiple margin classes"
)
MULTIPLE_TEXT_SIZES_REASON = "Avoid multiple text size classes, use the most appropriate one"


def _format_scale(value: float) -> str:
    return f"{value:g}"


def nearest_scale_value(value: float) -> float:
    """Closest entry of the spacing scale; ties go to the lower entry."""
    best = SPACING_SCALE[0]
    for candidate in SPACING_SCALE:
        if abs(candidate - value) < abs(best - value):
            best = candidate
    return best


# Each rule takes a token and returns ``(new_base, reason)`` or None.
RewriteFunction = Callable[[ClassToken], Optional[Tuple[str, str]]]


@dataclass(frozen=True)
class RewriteRule:
    """One row of the ordered rewrite table."""

    name: str
    rewrite: RewriteFunction


def _legacy_mapping(token: ClassToken) -> Optional[Tuple[str, str]]:
    canonical = LEGACY_CLASS_MAP.get(token.base)
    if canonical is None:
        return None
    return canonical, f"Use canonical Tailwind class instead of non-standard '{token.base}'"


def _legacy_stem(token: ClassToken) -> Optional[Tuple[str, str]]:
    base = token.base
    canonical: Optional[str] = None

    match = _DISPLAY_STEM_RE.match(base)
    if match:
        value = match.group("value")
        canonical = "hidden" if value == "none" else value
        return canonical, f"Use modern utility '{canonical}' instead of legacy '{base}'"

    match = _SIZE_STEM_RE.match(base)
    if match:
        prefix = f"{match.group('bound')}-" if match.group("bound") else ""
        canonical = f"{prefix}{match.group('axis')[0]}-{match.group('value')}"
    else:
        match = _BOX_STEM_RE.match(base)
        if match and not (match.group("neg") and match.group("box") == "padding"):
            side = _SIDES.get(match.group("side") or "", "")
            canonical = f"{match.group('neg')}{match.group('box')[0]}{side}-{match.group('value')}"

    if canonical is None:
        return None

    # The rewritten class must be a recognised sizing or spacing utility.
    parsed = parse_token(canonical)
    if parsed is None or parsed.property_family is None:
        return None
    return canonical, f"Use modern utility '{canonical}' instead of legacy '{base}'"


def _american_spelling(token: ClassToken) -> Optional[Tuple[str, str]]:
    base = token.base
    for british, american in BRITISH_SPELLINGS:
        if british in base:
            base = base.replace(british, american)
    if base == token.base:
        return None
    return base, f"Use American spelling '{base}' instead of '{token.base}'"


def _decimal_spacing(token: ClassToken) -> Optional[Tuple[str, str]]:
    match = _DECIMAL_RE.match(token.base)
    if not match:
        return None

    value = float(match.group("value"))
    if value in SPACING_SCALE:
        return None
    if match.group("neg") and match.group("stem").startswith(_NON_NEGATIVE_STEMS):
        return None

    nearest = nearest_scale_value(value)
    canonical = f"{match.group('neg')}{match.group('stem')}-{_format_scale(nearest)}"
    return canonical, (
        f"'{match.group('value')}' is not on the spacing scale, use '{canonical}'"
    )


def _pixel_spacing(token: ClassToken) -> Optional[Tuple[str, str]]:
    match = _PIXEL_RE.match(token.base)
    if not match:
        return None

    stem = match.group("stem")
    pixels = float(match.group("px"))
    negative = bool(match.group("neg")) != bool(match.group("sign"))

    if pixels == 1:
        value = "px"
    else:
        units = pixels / 4
        if units > SPACING_SCALE[-1]:
            return None
        value = _format_scale(nearest_scale_value(units))

    if value == "0":
        negative = False
    if negative and stem.startswith(_NON_NEGATIVE_STEMS):
        return None

    canonical = f"{'-' if negative else ''}{stem}-{value}"
    return canonical, (
        f"Use spacing scale value '{canonical}' instead of arbitrary '{token.base}'"
    )


def _z_index(token: ClassToken) -> Optional[Tuple[str, str]]:
    match = _Z_INDEX_RE.match(token.base)
    if not match:
        return None

    negative = bool(match.group("neg")) != bool(match.group("sign"))
    value = match.group("value")
    if value == "0":
        negative = False
    canonical = f"{'-' if negative else ''}z-{value}"
    return canonical, f"Use '{canonical}' instead of arbitrary '{token.base}'"


REWRITE_RULES: Tuple[RewriteRule, ...] = (
    RewriteRule("legacy-mapping", _legacy_mapping),
    RewriteRule("legacy-stem", _legacy_stem),
    RewriteRule("american-spelling", _american_spelling),
    RewriteRule("decimal-spacing", _decimal_spacing),
    RewriteRule("pixel-spacing", _pixel_spacing),
    RewriteRule("z-index", _z_index),
)

_CANONICAL_TARGETS = frozenset(LEGACY_CLASS_MAP.values())


def _normalize_declaration(declaration: str) -> Optional[str]:
    if ":" not in declaration:
        return None
    name, value = declaration.split(":", 1)
    value = " ".join(value.split())
    return f"{name.strip().lower()}: {value.lower()}"


def parse_canonical_diagnostics(
    diagnostics: List[Dict[str, Any]], code: str
) -> List[CanonicalSuggestion]:
    """
    Map language-server diagnostics to canonical suggestions.

    Only diagnostics carrying ``code`` whose message quotes two classes in
    backticks are used; the first is replaced with the second.
    """
    suggestions: List[CanonicalSuggestion] = []
    seen = set()

    for diagnostic in diagnostics:
        if not isinstance(diagnostic, dict) or str(diagnostic.get("code")) != code:
            continue

        message = str(diagnostic.get("message", ""))
        quoted = re.findall(r"`([^`]+)`", message)
        if len(quoted) < 2:
            continue

        original, canonical = quoted[0], quoted[1]
        if original == canonical or original in seen:
            continue

        seen.add(original)
        suggestions.append(
            CanonicalSuggestion(
                original=original,
                canonical=canonical,
                reason=message,
                source="language-server",
            )
        )

    return suggestions


class CanonicalSuggester(LoggerMixin):
    """Suggests canonical spellings for utility classes."""

    def __init__(
        self,
        rules: Tuple[RewriteRule, ...] = REWRITE_RULES,
        source: Optional[DiagnosticsSource] = None,
    ):
        self.rules = rules
        self.source = source

    def suggest(self, fragment: str, source_path: str = "") -> List[CanonicalSuggestion]:
        """
        Suggest canonical replacements using the local rule tables.

        Args:
            fragment: Source text holding class lists
            source_path: Path of the file the fragment came from

        Returns:
            Token suggestions in token order, then fragment-level advice
        """
        start_time = time.time()
        tokens = extract_tokens(fragment)
        suggestions: List[CanonicalSuggestion] = []

        for token in tokens:
            suggestion = self.suggest_for_token(token)
            if suggestion is not None:
                suggestions.append(suggestion)

        suggestions.extend(self._fragment_suggestions(fragment))

        log_analysis_result(
            "canonical", len(fragment), len(tokens), len(suggestions), time.time() - start_time
        )
        return suggestions

    async def suggest_async(
        self, fragment: str, source_path: str = ""
    ) -> List[CanonicalSuggestion]:
        """
        Suggest canonical replacements, placing language-server results first.

        Local suggestions for a class the language server already covered are
        dropped. Any bridge failure degrades to the local results.
        """
        local = self.suggest(fragment, source_path)
        if self.source is None or not extract_tokens(fragment):
            return local

        try:
            remote = await self.source.canonical_suggestions(fragment, source_path)
        except (BridgeError, OSError) as e:
            self.logger.warning(f"Language server suggestions unavailable, using local rules: {e}")
            return local

        covered = {suggestion.original for suggestion in remote}
        return list(remote) + [s for s in local if s.original not in covered]

    def suggest_for_token(self, token: ClassToken) -> Optional[CanonicalSuggestion]:
        """
        Apply the first matching rewrite rule to one token.

        A leading important marker is always moved to the end, so the
        suggested class needs no second pass.
        """
        marker = "trailing" if token.important_marker == "leading" else token.important_marker

        for rule in self.rules:
            result = rule.rewrite(token)
            if result is None:
                continue
            new_base, reason = result
            canonical = token.with_base(new_base, marker)
            if canonical != token.raw:
                return CanonicalSuggestion(original=token.raw, canonical=canonical, reason=reason)

        if token.important_marker == "leading":
            canonical = token.with_marker("trailing")
            return CanonicalSuggestion(
                original=token.raw,
                canonical=canonical,
                reason=f"Place the important modifier at the end: '{canonical}'",
            )

        return None

    def is_canonical(self, class_name: str) -> bool:
        """True when no rewrite rule would change ``class_name``."""
        if class_name in _CANONICAL_TARGETS:
            return True
        token = parse_token(class_name)
        if token is None:
            return False
        return self.suggest_for_token(token) is None

    def _fragment_suggestions(self, fragment: str) -> List[CanonicalSuggestion]:
        suggestions: List[CanonicalSuggestion] = []

        for attribute in find_class_attributes(fragment):
            tokens = extract_tokens(fragment[attribute.start : attribute.end])
            original = fragment[attribute.start : attribute.end]

            margins = [t for t in tokens if t.stem in _MARGIN_DIRECTIONS and not t.variant_prefixes]
            if len(margins) > 1:
                suggestions.append(
                    CanonicalSuggestion(
                        original=original,
                        canonical=original,
                        reason=MULTIPLE_MARGINS_REASON,
                        scope="fragment",
                    )
                )

            sizes = [
                t
                for t in tokens
                if t.property_family is PropertyFamily.FONT_SIZE and not t.variant_prefixes
            ]
            if len(sizes) > 1:
                suggestions.append(
                    CanonicalSuggestion(
                        original=original,
                        canonical=original,
                        reason=MULTIPLE_TEXT_SIZES_REASON,
                        scope="fragment",
                    )
                )

        for match in _STYLE_ATTRIBUTE_RE.finditer(fragment):
            classes = []
            for declaration in match.group("value").split(";"):
                normalized = _normalize_declaration(declaration)
                if normalized and normalized in INLINE_STYLE_MAP:
                    classes.append(INLINE_STYLE_MAP[normalized])
            if classes:
                suggestions.append(
                    CanonicalSuggestion(
                        original=match.group(0),
                        canonical=" ".join(classes),
                        reason="Use Tailwind utility classes instead of inline styles",
                        scope="fragment",
                    )
                )

        return suggestions
