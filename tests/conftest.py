"""Pytest configuration and fixtures for Tailwind MCP Server tests."""

import pytest
import sys
import tempfile
from pathlib import Path
from typing import Generator

from fastmcp import Client

from tailwind_mcp.config import TailwindMCPConfig, LoggingConfig, BridgeConfig
from tailwind_mcp.fixers.auto_fixer import AutoFixer
from tailwind_mcp.server import TailwindMCPServer
from tailwind_mcp.validators.canonical_suggester import CanonicalSuggester
from tailwind_mcp.validators.conflict_detector import ConflictDetector

FAKE_SERVER = Path(__file__).parent / "fixtures" / "fake_language_server.py"


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmp_dir:
        yield Path(tmp_dir)


@pytest.fixture
def test_config() -> TailwindMCPConfig:
    """Test configuration."""
    return TailwindMCPConfig(logging=LoggingConfig(level="DEBUG", format="text", file=None))


@pytest.fixture
def detector() -> ConflictDetector:
    return ConflictDetector()


@pytest.fixture
def suggester() -> CanonicalSuggester:
    return CanonicalSuggester()


@pytest.fixture
def fixer() -> AutoFixer:
    return AutoFixer()


@pytest.fixture
def sample_vue() -> str:
    """Vue single-file component with conflicts and legacy classes."""
    return """<template>
  <div class="flex flex-grow mt-4 mt-6 p-4">
    <span class="text-sm text-sky-400 !mb-0">Hello</span>
    <img class="w-full z-[999] break-words bg-[#52525b]" />
  </div>
</template>

<script setup>
const active = 'px-2 py-1 rounded flex-shrink'
const label = 'Hello world'
</script>

<style>
.card {
  @apply mt-[2px] text-centre;
}
</style>
"""


@pytest.fixture
def sample_vue_file(temp_dir: Path, sample_vue: str) -> Path:
    vue_file = temp_dir / "Card.vue"
    vue_file.write_text(sample_vue)
    return vue_file


@pytest.fixture
def sample_css_file(temp_dir: Path) -> Path:
    css_file = temp_dir / "styles.css"
    css_file.write_text(".btn {\n  @apply px-4 py-2 flex-grow;\n}\n")
    return css_file


def fake_bridge_config(*args: str, **overrides) -> BridgeConfig:
    """Bridge configuration that spawns the fake language server."""
    values = {
        "enabled": True,
        "command": [sys.executable, str(FAKE_SERVER), *args],
        "diagnostics_timeout": 1.2,
        "request_timeout": 5.0,
    }
    values.update(overrides)
    return BridgeConfig(**values)


@pytest.fixture
def bridge_config() -> BridgeConfig:
    return fake_bridge_config()


# FastMCP Server fixtures
@pytest.fixture
def mcp_server(test_config: TailwindMCPConfig) -> TailwindMCPServer:
    """Create a TailwindMCPServer instance for testing."""
    return TailwindMCPServer(test_config)


@pytest.fixture
def mcp_client(mcp_server: TailwindMCPServer) -> Client:
    """Create a FastMCP Client connected to the test server."""
    return Client(mcp_server.mcp)


class MockMCP:
    """Collects tools registered through ``@mcp.tool()``."""

    def __init__(self) -> None:
        self.tools = {}

    def tool(self):
        def decorator(func):
            self.tools[func.__name__] = func
            return func

        return decorator


@pytest.fixture
def mock_mcp() -> MockMCP:
    return MockMCP()
