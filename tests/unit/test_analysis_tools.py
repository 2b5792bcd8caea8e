"""Tests for analysis tools module."""

import pytest
from unittest.mock import MagicMock, patch

from tailwind_mcp.tools.analysis_tools import register_analysis_tools
from tailwind_mcp.config import TailwindMCPConfig
from tailwind_mcp.utils.errors import ToolExecutionError
from tailwind_mcp.validators.canonical_suggester import CanonicalSuggestion
from tailwind_mcp.validators.conflict_detector import ConflictDetector


class FakeBridge:
    """Bridge stand-in answering both engine protocols."""

    def __init__(self):
        self.suggestion_calls = 0

    async def canonical_suggestions(self, text, source_path):
        self.suggestion_calls += 1
        return [
            CanonicalSuggestion(
                original="mt-[2px]", canonical="mt-0.5", reason="server", source="language-server"
            )
        ]

    async def resolve_css_properties(self, class_name):
        return []


class TestAnalysisTools:
    """Test analysis tool registration and functionality."""

    def test_register_analysis_tools(self, test_config: TailwindMCPConfig):
        """Test that analysis tools are registered correctly."""
        mock_mcp = MagicMock()

        register_analysis_tools(mock_mcp, test_config)

        # extract_classes, detect_class_conflicts, suggest_canonical_classes
        assert mock_mcp.tool.call_count == 3

    @pytest.mark.asyncio
    async def test_extract_classes(self, mock_mcp, test_config: TailwindMCPConfig):
        """Test class extraction through the tool."""
        register_analysis_tools(mock_mcp, test_config)
        extract_classes = mock_mcp.tools["extract_classes"]

        result = await extract_classes(content='<div class="flex mt-4 flex md:p-2">text</div>')

        assert result == {"classes": ["flex", "mt-4", "md:p-2"], "count": 3}

    @pytest.mark.asyncio
    async def test_detect_class_conflicts(self, mock_mcp, test_config: TailwindMCPConfig):
        """Test conflict detection through the tool."""
        register_analysis_tools(mock_mcp, test_config)
        detect = mock_mcp.tools["detect_class_conflicts"]

        result = await detect(content='<div class="mt-4 mt-6 text-sm text-lg">x</div>')

        assert [c["classes"] for c in result["conflicts"]] == [["mt-4", "mt-6"], ["text-sm", "text-lg"]]
        assert result["summary"] == {"total_conflicts": 2, "fixable": 1, "has_issues": True}

    @pytest.mark.asyncio
    async def test_no_conflicts(self, mock_mcp, test_config: TailwindMCPConfig):
        register_analysis_tools(mock_mcp, test_config)

        result = await mock_mcp.tools["detect_class_conflicts"](content="flex items-center p-4")

        assert result["conflicts"] == []
        assert result["summary"]["has_issues"] is False

    @pytest.mark.asyncio
    async def test_conflict_results_are_cached(self, mock_mcp, test_config: TailwindMCPConfig):
        """Test that repeated fragments are served from the result cache."""
        register_analysis_tools(mock_mcp, test_config)
        detect = mock_mcp.tools["detect_class_conflicts"]

        with patch.object(
            ConflictDetector, "detect_async", wraps=ConflictDetector().detect_async
        ) as mock_detect:
            first = await detect(content="h-4 h-8")
            second = await detect(content="h-4 h-8")

        assert first == second
        assert mock_detect.call_count == 1

    @pytest.mark.asyncio
    async def test_suggest_canonical_classes(self, mock_mcp, test_config: TailwindMCPConfig):
        """Test canonical suggestions through the tool."""
        register_analysis_tools(mock_mcp, test_config)
        suggest = mock_mcp.tools["suggest_canonical_classes"]

        result = await suggest(content='<div class="flex-grow mt-4 mb-2">x</div>', file_path="Card.vue")

        assert result["suggestions"][0] == {
            "original": "flex-grow",
            "canonical": "grow",
            "reason": result["suggestions"][0]["reason"],
            "scope": "token",
            "source": "local",
        }
        assert result["summary"] == {
            "total_suggestions": 2,
            "auto_fixable": 1,
            "from_language_server": 0,
        }

    @pytest.mark.asyncio
    async def test_suggestions_disabled(self, mock_mcp, test_config: TailwindMCPConfig):
        test_config.analyzer.enable_suggestions = False
        register_analysis_tools(mock_mcp, test_config)

        result = await mock_mcp.tools["suggest_canonical_classes"](content="flex-grow")

        assert result["enabled"] is False
        assert result["suggestions"] == []

    @pytest.mark.asyncio
    async def test_bridge_results_are_not_cached(self, mock_mcp, test_config: TailwindMCPConfig):
        """Test that language server answers are never memoized."""
        bridge = FakeBridge()
        register_analysis_tools(mock_mcp, test_config, bridge)
        suggest = mock_mcp.tools["suggest_canonical_classes"]

        result = await suggest(content="mt-[2px] flex-grow")
        await suggest(content="mt-[2px] flex-grow")

        assert bridge.suggestion_calls == 2
        assert result["suggestions"][0]["source"] == "language-server"
        assert result["summary"]["from_language_server"] == 1

    @pytest.mark.asyncio
    async def test_tool_error_handling(self, mock_mcp, test_config: TailwindMCPConfig):
        """Test error handling in analysis tools."""
        register_analysis_tools(mock_mcp, test_config)
        detect = mock_mcp.tools["detect_class_conflicts"]

        with patch.object(ConflictDetector, "detect_async", side_effect=RuntimeError("boom")):
            with pytest.raises(ToolExecutionError) as exc_info:
                await detect(content="w-4 w-8 unique-content")

        assert exc_info.value.tool_name == "detect_class_conflicts"
        assert "boom" in str(exc_info.value)
