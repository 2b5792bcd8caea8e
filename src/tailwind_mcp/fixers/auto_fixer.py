"""Scoped text edits that repair class conflicts and non-canonical classes."""

import re
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Protocol, Sequence, Tuple

from ..utils.logging_config import LoggerMixin
from ..validators.canonical_suggester import CanonicalSuggestion
from ..validators.class_extractor import find_class_attributes, static_spans
from ..validators.conflict_detector import Conflict


@dataclass(frozen=True)
class TextEdit:
    """Replace ``text[start:end]`` with ``new_text``."""

    start: int
    end: int
    new_text: str


class TextSpan(Protocol):
    """A host-owned piece of source text that can be rewritten in place."""

    @property
    def text(self) -> str: ...

    def replace(self, new_text: str) -> TextEdit: ...


def apply_edits(text: str, edits: Iterable[TextEdit]) -> str:
    """
    Apply non-overlapping edits to ``text``.

    Edits are applied back to front so earlier offsets stay valid.

    Raises:
        ValueError: If two edits overlap or an edit falls outside the text
    """
    ordered = sorted(edits, key=lambda edit: (edit.start, edit.end))

    previous_end = 0
    for edit in ordered:
        if edit.start < previous_end or edit.start > edit.end or edit.end > len(text):
            raise ValueError(f"Invalid or overlapping edit at {edit.start}-{edit.end}")
        previous_end = edit.end

    for edit in reversed(ordered):
        text = text[: edit.start] + edit.new_text + text[edit.end :]
    return text


_BOUNDARY_BEFORE = r"(?<![^\s\"'`])"
_BOUNDARY_AFTER = r"(?![^\s\"'`])"


def is_single_token(value: Optional[str]) -> bool:
    if not value:
        return False
    return not any(ch.isspace() for ch in value)


def contains_token(class_list: str, token: str) -> bool:
    return token in class_list.split()


def remove_token(class_list: str, token: str) -> str:
    """Remove every whole-token occurrence together with one run of separating whitespace."""
    escaped = re.escape(token)
    class_list = re.sub(rf"\s+{escaped}{_BOUNDARY_AFTER}", "", class_list)
    return re.sub(rf"{_BOUNDARY_BEFORE}{escaped}{_BOUNDARY_AFTER}\s*", "", class_list)


def replace_token(class_list: str, original: str, canonical: str) -> str:
    """Replace whole-token occurrences of ``original``; drop it if ``canonical`` is already there."""
    if contains_token(class_list, canonical):
        return remove_token(class_list, original)
    pattern = rf"{_BOUNDARY_BEFORE}{re.escape(original)}{_BOUNDARY_AFTER}"
    return re.sub(pattern, lambda _: canonical, class_list)


# Markup without a recognisable class attribute; brackets keep ``[&[data-state='open']]:flex`` out.
_MARKUP_PATTERN = re.compile(r"<[A-Za-z/!]|(?<![\[\w-])[\w-]+\s*=\s*[\"'{]")


def _rewrite_class_lists(text: str, transform: Callable[[str], str]) -> str:
    """
    Apply ``transform`` to the literal parts of each class-attribute value.

    A bare class list is treated as one value. Markup with no class attribute
    is returned unchanged rather than rewritten wholesale.
    """
    attributes = find_class_attributes(text)
    if attributes:
        regions = [(attribute.value_start, attribute.value_end) for attribute in attributes]
    elif any(_MARKUP_PATTERN.search(text[start:end]) for start, end in static_spans(text)):
        return text
    else:
        regions = [(0, len(text))]

    edits = []
    for region_start, region_end in regions:
        value = text[region_start:region_end]
        for start, end in static_spans(value):
            segment = value[start:end]
            new_segment = transform(segment)
            if new_segment != segment:
                edits.append(TextEdit(region_start + start, region_start + end, new_segment))
    return apply_edits(text, edits)


class AutoFixer(LoggerMixin):
    """Applies conflict and canonical fixes to class lists."""

    def can_fix(self, conflict: Conflict) -> bool:
        return conflict.fixable

    def describe_fix(self, conflict: Conflict) -> str:
        """Human-readable description of what fixing ``conflict`` would do."""
        if not conflict.fixable:
            return f"Cannot auto-fix: {conflict.reason}"
        if is_single_token(conflict.suggested_fix):
            return f"Replace {' and '.join(conflict.classes)} with {conflict.suggested_fix}"
        return f"Remove conflicting classes: {', '.join(conflict.classes)}"

    def apply_conflict_fix(
        self, text: str, conflict: Conflict, replacement: Optional[str] = None
    ) -> Optional[str]:
        """
        Resolve a conflict inside ``text``.

        Args:
            text: Fragment holding the conflicting classes
            conflict: Conflict to resolve
            replacement: Class to keep or insert in place of the pair

        Returns:
            The rewritten text, or None when the fix is refused or changes nothing
        """
        if not conflict.fixable:
            self.logger.debug(f"Conflict is not fixable: {conflict.reason}")
            return None

        keep: Optional[str] = None
        if replacement is not None:
            if not is_single_token(replacement):
                self.logger.warning(f"Refusing unsafe replacement {replacement!r}")
                return None
            keep = replacement
        elif is_single_token(conflict.suggested_fix):
            keep = conflict.suggested_fix

        def transform(class_list: str) -> str:
            if not any(contains_token(class_list, cls) for cls in conflict.classes):
                return class_list
            for cls in conflict.classes:
                if cls != keep:
                    class_list = remove_token(class_list, cls)
            if keep is not None and not contains_token(class_list, keep):
                class_list = f"{class_list} {keep}" if class_list.strip() else keep
            return class_list

        fixed = _rewrite_class_lists(text, transform)
        return None if fixed == text else fixed

    def apply_canonical_fix(self, text: str, suggestion: CanonicalSuggestion) -> Optional[str]:
        """Replace ``suggestion.original`` with ``suggestion.canonical`` as whole tokens."""
        if suggestion.scope != "token":
            return None
        if not is_single_token(suggestion.original) or not is_single_token(suggestion.canonical):
            self.logger.warning(
                f"Refusing unsafe canonical fix {suggestion.original!r} -> {suggestion.canonical!r}"
            )
            return None

        fixed = _rewrite_class_lists(
            text, lambda class_list: replace_token(class_list, suggestion.original, suggestion.canonical)
        )
        return None if fixed == text else fixed

    def fix_conflict(
        self, span: TextSpan, conflict: Conflict, replacement: Optional[str] = None
    ) -> Optional[TextEdit]:
        fixed = self.apply_conflict_fix(span.text, conflict, replacement)
        return span.replace(fixed) if fixed is not None else None

    def fix_canonical(self, span: TextSpan, suggestion: CanonicalSuggestion) -> Optional[TextEdit]:
        fixed = self.apply_canonical_fix(span.text, suggestion)
        return span.replace(fixed) if fixed is not None else None

    def batch_fix(
        self, text: str, conflicts: Sequence[Conflict]
    ) -> Tuple[str, List[Conflict]]:
        """
        Apply every fixable conflict in turn.

        Returns:
            The final text and the conflicts that were actually applied
        """
        applied: List[Conflict] = []
        for conflict in conflicts:
            fixed = self.apply_conflict_fix(text, conflict)
            if fixed is not None:
                text = fixed
                applied.append(conflict)
        return text, applied

    def batch_canonical_fix(
        self, text: str, suggestions: Sequence[CanonicalSuggestion]
    ) -> Tuple[str, List[CanonicalSuggestion]]:
        applied: List[CanonicalSuggestion] = []
        for suggestion in suggestions:
            fixed = self.apply_canonical_fix(text, suggestion)
            if fixed is not None:
                text = fixed
                applied.append(suggestion)
        return text, applied
