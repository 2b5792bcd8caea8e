"""Tests for canonical class suggestions."""

import pytest

from tailwind_mcp.utils.errors import BridgeTimeoutError
from tailwind_mcp.validators.canonical_suggester import (
    REWRITE_RULES,
    CanonicalSuggester,
    CanonicalSuggestion,
    nearest_scale_value,
    parse_canonical_diagnostics,
)


def canonical_map(suggestions):
    return {s.original: s.canonical for s in suggestions if s.scope == "token"}


class StaticSource:
    """DiagnosticsSource stand-in."""

    def __init__(self, suggestions=None, error=None):
        self.suggestions = suggestions or []
        self.error = error
        self.calls = []

    async def canonical_suggestions(self, text, source_path):
        self.calls.append((text, source_path))
        if self.error is not None:
            raise self.error
        return self.suggestions


class TestTokenRules:
    """Test the ordered rewrite table on single classes."""

    @pytest.mark.parametrize(
        "original,canonical",
        [
            ("flex-grow", "grow"),
            ("flex-shrink-0", "shrink-0"),
            ("text-regular", "text-base"),
            ("font-standard", "font-normal"),
            ("weight-bold", "font-bold"),
            ("break-words", "wrap-break-word"),
            ("text-grey", "text-gray-500"),
            ("display-none", "hidden"),
            ("display-inline-flex", "inline-flex"),
            ("width-full", "w-full"),
            ("max-width-screen", "max-w-screen"),
            ("margin-top-4", "mt-4"),
            ("padding-x-2", "px-2"),
            ("bg-grey-200", "bg-gray-200"),
            ("text-centre", "text-center"),
            ("mt-2.3", "mt-2.5"),
            ("mt-[2px]", "mt-0.5"),
            ("mt-[-20px]", "-mt-5"),
            ("-mt-[20px]", "-mt-5"),
            ("p-[1px]", "p-px"),
            ("after:top-[2px]", "after:top-0.5"),
            ("z-[9999]", "z-9999"),
            ("z-[-1]", "-z-1"),
            ("!mb-0", "mb-0!"),
            ("md:hover:flex-grow", "md:hover:grow"),
            ("!flex-grow", "grow!"),
            ("hover:!mt-[2px]", "hover:mt-0.5!"),
        ],
    )
    def test_rewrite(self, suggester: CanonicalSuggester, original, canonical):
        suggestions = suggester.suggest(original, "a.html")

        assert canonical_map(suggestions) == {original: canonical}

    @pytest.mark.parametrize(
        "value", ["mt-2.5", "mt-4", "bg-[#52525b]", "w-[300px]", "mb-0!", "grow", "margin-top"]
    )
    def test_already_canonical(self, suggester: CanonicalSuggester, value):
        assert suggester.suggest(value, "a.html") == []

    def test_decimal_ties_favor_lower(self):
        assert nearest_scale_value(2.25) == 2
        assert nearest_scale_value(13) == 12
        assert nearest_scale_value(15) == 14

    def test_pixels_beyond_scale_are_left_alone(self, suggester: CanonicalSuggester):
        assert suggester.suggest("mt-[500px]", "a.html") == []

    def test_padding_is_never_negative(self, suggester: CanonicalSuggester):
        assert suggester.suggest("p-[-4px]", "a.html") == []

    @pytest.mark.parametrize("value", ["gap-[-4px]", "-gap-x-[8px]", "-gap-1.3"])
    def test_gap_is_never_negative(self, suggester: CanonicalSuggester, value):
        assert suggester.suggest(value, "a.html") == []

    def test_negative_space_between_is_kept(self, suggester: CanonicalSuggester):
        assert canonical_map(suggester.suggest("space-x-[-4px]", "a.html")) == {"space-x-[-4px]": "-space-x-1"}

    @pytest.mark.parametrize("value", ["!flex-grow", "md:!mt-[2px]", "!display-none", "!mb-0"])
    def test_single_suggestion_is_final(self, suggester: CanonicalSuggester, value):
        (suggestion,) = suggester.suggest(value, "a.html")

        assert suggester.is_canonical(suggestion.canonical)
        assert suggester.suggest(suggestion.canonical, "a.html") == []

    def test_rule_order(self):
        assert [rule.name for rule in REWRITE_RULES] == [
            "legacy-mapping",
            "legacy-stem",
            "american-spelling",
            "decimal-spacing",
            "pixel-spacing",
            "z-index",
        ]

    def test_reason_is_set(self, suggester: CanonicalSuggester):
        (suggestion,) = suggester.suggest("flex-grow", "a.html")

        assert "flex-grow" in suggestion.reason
        assert suggestion.source == "local"
        assert suggestion.scope == "token"


class TestFragments:
    """Test suggestions over whole fragments."""

    def test_canonical_fragment_has_no_suggestions(self, suggester: CanonicalSuggester):
        assert suggester.suggest("flex items-center p-4 text-blue-500", "a.html") == []

    def test_empty_and_prose(self, suggester: CanonicalSuggester):
        assert suggester.suggest("", "a.html") == []
        assert suggester.suggest("some random text", "a.html") == []

    def test_vue_snippet(self, suggester: CanonicalSuggester):
        snippet = '<div class="fixed z-[999] break-words bg-[#52525b] text-white">x</div>'

        mapping = canonical_map(suggester.suggest(snippet, "Card.vue"))

        assert mapping == {"z-[999]": "z-999", "break-words": "wrap-break-word"}

    def test_multiple_margins_advice(self, suggester: CanonicalSuggester):
        html = '<div class="mt-4 mb-2 ml-1">x</div>'

        advice = [s for s in suggester.suggest(html, "a.html") if s.scope == "fragment"]

        assert len(advice) == 1
        assert "spacing utilities" in advice[0].reason
        assert advice[0].original == 'class="mt-4 mb-2 ml-1"'

    def test_multiple_text_sizes_advice(self, suggester: CanonicalSuggester):
        html = '<p class="text-sm text-lg text-sky-400">x</p>'

        advice = [s for s in suggester.suggest(html, "a.html") if s.scope == "fragment"]

        assert len(advice) == 1
        assert "text size classes" in advice[0].reason

    def test_inline_style(self, suggester: CanonicalSuggester):
        html = '<div style="display: flex; margin: 0  auto; color: red">x</div>'

        (advice,) = suggester.suggest(html, "a.html")

        assert advice.scope == "fragment"
        assert advice.original == 'style="display: flex; margin: 0  auto; color: red"'
        assert advice.canonical == "flex mx-auto"

    def test_token_suggestions_come_first(self, suggester: CanonicalSuggester):
        html = '<div class="flex-grow mt-4 mb-2" style="text-align: center">x</div>'

        scopes = [s.scope for s in suggester.suggest(html, "a.html")]

        assert scopes == ["token", "fragment", "fragment"]


class TestIsCanonical:
    def test_mapping_targets(self, suggester: CanonicalSuggester):
        assert suggester.is_canonical("grow")
        assert suggester.is_canonical("wrap-break-word")

    def test_non_canonical(self, suggester: CanonicalSuggester):
        assert not suggester.is_canonical("flex-grow")
        assert not suggester.is_canonical("!mb-0")

    def test_malformed(self, suggester: CanonicalSuggester):
        assert not suggester.is_canonical("mt-[4px")


class TestLanguageServerDiagnostics:
    def test_parse_canonical_diagnostics(self):
        diagnostics = [
            {"code": "suggestCanonicalClasses", "message": "The class `flex-grow` can be written as `grow`"},
            {"code": "suggestCanonicalClasses", "message": "The class `flex-grow` can be written as `grow`"},
            {"code": "cssConflict", "message": "`mt-4` and `mt-6` apply the same CSS"},
            {"code": "suggestCanonicalClasses", "message": "no backticks here"},
            "not a diagnostic",
        ]

        suggestions = parse_canonical_diagnostics(diagnostics, "suggestCanonicalClasses")

        assert suggestions == [
            CanonicalSuggestion(
                original="flex-grow",
                canonical="grow",
                reason="The class `flex-grow` can be written as `grow`",
                source="language-server",
            )
        ]

    @pytest.mark.asyncio
    async def test_remote_suggestions_come_first(self):
        remote = CanonicalSuggestion(
            original="mt-[2px]", canonical="mt-0.5", reason="server", source="language-server"
        )
        source = StaticSource([remote])
        suggester = CanonicalSuggester(source=source)

        suggestions = await suggester.suggest_async("mt-[2px] flex-grow", "src/App.vue")

        assert suggestions[0] is remote
        assert canonical_map(suggestions[1:]) == {"flex-grow": "grow"}
        assert source.calls == [("mt-[2px] flex-grow", "src/App.vue")]

    @pytest.mark.asyncio
    async def test_bridge_failure_falls_back_to_local(self):
        suggester = CanonicalSuggester(source=StaticSource(error=BridgeTimeoutError("initialize", 1.0)))

        suggestions = await suggester.suggest_async("flex-grow", "a.html")

        assert canonical_map(suggestions) == {"flex-grow": "grow"}

    @pytest.mark.asyncio
    async def test_class_free_fragment_skips_bridge(self):
        source = StaticSource()
        suggester = CanonicalSuggester(source=source)

        assert await suggester.suggest_async("some random text", "a.html") == []
        assert source.calls == []
