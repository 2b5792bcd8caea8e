"""Tests for the file analysis tool."""

from pathlib import Path

import pytest

from tailwind_mcp.tools.scan_tools import register_scan_tools
from tailwind_mcp.config import TailwindMCPConfig


@pytest.fixture
def analyze_file(mock_mcp, test_config: TailwindMCPConfig):
    register_scan_tools(mock_mcp, test_config)
    return mock_mcp.tools["analyze_file"]


class TestAnalyzeFile:
    """Test analyze_file over real files."""

    @pytest.mark.asyncio
    async def test_vue_component(self, analyze_file, sample_vue_file: Path):
        result = await analyze_file(file_path=str(sample_vue_file))

        assert result["errors"] == []
        assert result["summary"]["fragments_scanned"] == 5
        assert result["summary"]["has_issues"] is True
        assert "fixed_content" not in result

        first = result["fragments"][0]
        assert first["kind"] == "class-attribute"
        assert first["line"] == 2
        assert [c["classes"] for c in first["conflicts"]] == [["mt-4", "mt-6"]]

        kinds = {fragment["kind"] for fragment in result["fragments"]}
        assert "apply-directive" in kinds
        assert "flex-grow" in result["classes"]
        assert "mt-[2px]" in result["classes"]

    @pytest.mark.asyncio
    async def test_fixed_content(self, analyze_file, sample_vue_file: Path, sample_vue: str):
        """Test that fixes are returned but never written."""
        result = await analyze_file(file_path=str(sample_vue_file), include_fixed_content=True)

        fixed = result["fixed_content"]
        assert result["changed"] is True
        assert 'class="flex grow p-4"' in fixed
        assert "mb-0!" in fixed
        assert "z-999" in fixed
        assert "@apply mt-0.5 text-center;" in fixed
        assert "const label = 'Hello world'" in fixed
        assert sample_vue_file.read_text() == sample_vue

    @pytest.mark.asyncio
    async def test_stylesheet(self, analyze_file, sample_css_file: Path):
        result = await analyze_file(file_path=str(sample_css_file), include_fixed_content=True)

        assert result["summary"]["fragments_scanned"] == 1
        assert result["fragments"][0]["line"] == 2
        assert result["fixed_content"] == ".btn {\n  @apply px-4 py-2 grow;\n}\n"

    @pytest.mark.asyncio
    async def test_clean_file(self, analyze_file, temp_dir: Path):
        clean = temp_dir / "clean.html"
        clean.write_text('<div class="flex items-center p-4">Hi</div>\n')

        result = await analyze_file(file_path=str(clean), include_fixed_content=True)

        assert result["fragments"] == []
        assert result["classes"] == ["flex", "items-center", "p-4"]
        assert result["summary"]["has_issues"] is False
        assert result["changed"] is False

    @pytest.mark.asyncio
    async def test_file_not_found(self, analyze_file):
        result = await analyze_file(file_path="/nonexistent/Card.vue")

        assert result["fragments"] == []
        assert "not found" in result["errors"][0].lower()

    @pytest.mark.asyncio
    async def test_unsupported_file_type(self, analyze_file, temp_dir: Path):
        notes = temp_dir / "notes.txt"
        notes.write_text("mt-4 mt-6")

        result = await analyze_file(file_path=str(notes))

        assert result["errors"] == ["Unsupported file type: .txt"]

    @pytest.mark.asyncio
    async def test_file_too_large(self, mock_mcp, test_config: TailwindMCPConfig, sample_vue_file: Path):
        test_config.analyzer.max_file_size = 10
        register_scan_tools(mock_mcp, test_config)

        result = await mock_mcp.tools["analyze_file"](file_path=str(sample_vue_file))

        assert result["errors"][0].startswith("File too large")
