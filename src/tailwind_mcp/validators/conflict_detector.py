"""Conflict detection for Tailwind utility classes."""

import time
from dataclasses import dataclass, asdict
from typing import Any, Dict, FrozenSet, List, Optional, Protocol, Tuple

from .class_extractor import extract_tokens
from .class_token import ClassToken, PropertyFamily
from ..utils.errors import BridgeError
from ..utils.logging_config import LoggerMixin, log_analysis_result


@dataclass(frozen=True)
class Conflict:
    """Two classes in one scope that set the same visual property."""

    classes: Tuple[str, str]
    reason: str
    fixable: bool
    suggested_fix: Optional[str] = None
    family: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["classes"] = list(self.classes)
        return data


@dataclass(frozen=True)
class ConflictRule:
    """A pattern verdict for pairs of classes in the same property family."""

    category: str
    family: PropertyFamily
    reason: str
    fixable: bool
    same_stem: bool = False

    def applies(self, first: ClassToken, second: ClassToken) -> bool:
        if first.property_family is not self.family or second.property_family is not self.family:
            return False
        if self.same_stem and first.stem != second.stem:
            return False
        return True

    def verdict(self, first: ClassToken, second: ClassToken) -> Conflict:
        suggested_fix = None
        if self.fixable:
            suggested_fix = f"Keep only one: {first.raw} or {second.raw}"
        return Conflict(
            classes=(first.raw, second.raw),
            reason=self.reason,
            fixable=self.fixable,
            suggested_fix=suggested_fix,
            family=self.family.value,
        )


CONFLICT_RULES: Tuple[ConflictRule, ...] = (
    # spacing
    ConflictRule(
        "spacing",
        PropertyFamily.MARGIN,
        "Conflicting margin values for the same direction",
        fixable=True,
        same_stem=True,
    ),
    ConflictRule(
        "spacing",
        PropertyFamily.PADDING,
        "Conflicting padding values for the same direction",
        fixable=True,
        same_stem=True,
    ),
    # sizing
    ConflictRule("sizing", PropertyFamily.WIDTH, "Conflicting width values", fixable=True),
    ConflictRule("sizing", PropertyFamily.HEIGHT, "Conflicting height values", fixable=True),
    ConflictRule("sizing", PropertyFamily.MIN_WIDTH, "Conflicting min-width values", fixable=True),
    ConflictRule("sizing", PropertyFamily.MAX_WIDTH, "Conflicting max-width values", fixable=True),
    ConflictRule("sizing", PropertyFamily.MIN_HEIGHT, "Conflicting min-height values", fixable=True),
    ConflictRule("sizing", PropertyFamily.MAX_HEIGHT, "Conflicting max-height values", fixable=True),
    # typography
    ConflictRule("typography", PropertyFamily.FONT_SIZE, "Conflicting font size classes", False),
    ConflictRule("typography", PropertyFamily.FONT_WEIGHT, "Conflicting font weight classes", False),
    ConflictRule("typography", PropertyFamily.LINE_HEIGHT, "Conflicting line height classes", False),
    ConflictRule(
        "typography", PropertyFamily.LETTER_SPACING, "Conflicting letter spacing classes", False
    ),
    # color
    ConflictRule("color", PropertyFamily.TEXT_COLOR, "Conflicting text color classes", False),
    ConflictRule("color", PropertyFamily.BG_COLOR, "Conflicting background color classes", False),
    ConflictRule("color", PropertyFamily.BORDER_COLOR, "Conflicting border color classes", False),
    # layout
    ConflictRule("layout", PropertyFamily.DISPLAY, "Conflicting display classes", False),
    ConflictRule("layout", PropertyFamily.POSITION, "Conflicting position classes", False),
    ConflictRule(
        "layout", PropertyFamily.FLEX_DIRECTION, "Conflicting flex direction classes", False
    ),
)


class PropertyLookup(Protocol):
    """Source of the CSS declarations a class generates."""

    async def resolve_css_properties(self, class_name: str) -> List[str]:
        """Return declarations such as ``margin-top: 1rem`` for one class."""
        ...


def are_variant_siblings(first: ClassToken, second: ClassToken) -> bool:
    """Same property family at different responsive breakpoints."""
    if first.property_family is None or first.property_family is not second.property_family:
        return False
    return first.breakpoint != second.breakpoint


def _property_names(declarations: List[str]) -> FrozenSet[str]:
    names = set()
    for declaration in declarations:
        name = declaration.split(":", 1)[0].strip()
        if name:
            names.add(name)
    return frozenset(names)


class ConflictDetector(LoggerMixin):
    """Detects class pairs that assign competing values to one property."""

    def __init__(
        self,
        rules: Tuple[ConflictRule, ...] = CONFLICT_RULES,
        lookup: Optional[PropertyLookup] = None,
    ):
        self.rules = rules
        self.lookup = lookup

    def detect(self, fragment: str, source_path: str = "") -> List[Conflict]:
        """
        Detect conflicting classes using the pattern rule table.

        Args:
            fragment: Source text holding class lists
            source_path: Path of the file the fragment came from

        Returns:
            At most one Conflict per unordered pair, in pair order
        """
        start_time = time.time()
        tokens = extract_tokens(fragment)
        conflicts: List[Conflict] = []

        for first, second in self._candidate_pairs(tokens):
            conflict = self.evaluate_rules(first, second)
            if conflict is not None:
                conflicts.append(conflict)

        log_analysis_result(
            "conflicts", len(fragment), len(tokens), len(conflicts), time.time() - start_time
        )
        return conflicts

    async def detect_async(self, fragment: str, source_path: str = "") -> List[Conflict]:
        """
        Detect conflicts, deciding each pair by CSS properties when a lookup is configured.

        Pairs the lookup cannot answer fall back to the pattern rules.
        """
        if self.lookup is None:
            return self.detect(fragment, source_path)

        start_time = time.time()
        tokens = extract_tokens(fragment)
        conflicts: List[Conflict] = []
        resolved: Dict[str, FrozenSet[str]] = {}

        for first, second in self._candidate_pairs(tokens):
            first_props = await self._lookup_properties(first.raw, resolved)
            second_props = await self._lookup_properties(second.raw, resolved)

            if first_props and second_props:
                shared = sorted(first_props & second_props)
                if shared:
                    conflicts.append(
                        Conflict(
                            classes=(first.raw, second.raw),
                            reason=f"Conflicting CSS properties: {', '.join(shared)}",
                            fixable=True,
                            suggested_fix=(
                                "Remove one of the conflicting classes: "
                                f"{first.raw} or {second.raw}"
                            ),
                            family=first.property_family.value if first.property_family else None,
                        )
                    )
                continue

            conflict = self.evaluate_rules(first, second)
            if conflict is not None:
                conflicts.append(conflict)

        log_analysis_result(
            "conflicts", len(fragment), len(tokens), len(conflicts), time.time() - start_time
        )
        return conflicts

    def evaluate_rules(self, first: ClassToken, second: ClassToken) -> Optional[Conflict]:
        """Return the verdict of the first matching rule, if any."""
        for rule in self.rules:
            if rule.applies(first, second):
                return rule.verdict(first, second)
        return None

    def _candidate_pairs(self, tokens: List[ClassToken]) -> List[Tuple[ClassToken, ClassToken]]:
        pairs = []
        for i, first in enumerate(tokens):
            for second in tokens[i + 1 :]:
                if are_variant_siblings(first, second):
                    continue
                if first.variant_scope != second.variant_scope:
                    continue
                pairs.append((first, second))
        return pairs

    async def _lookup_properties(
        self, class_name: str, resolved: Dict[str, FrozenSet[str]]
    ) -> FrozenSet[str]:
        if class_name in resolved:
            return resolved[class_name]

        names: FrozenSet[str] = frozenset()
        lookup = self.lookup
        if lookup is None:
            return names
        try:
            names = _property_names(await lookup.resolve_css_properties(class_name))
        except (BridgeError, OSError) as e:
            self.logger.warning(f"CSS property lookup failed for '{class_name}': {e}")

        resolved[class_name] = names
        return names
