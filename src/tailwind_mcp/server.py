"""Main MCP server implementation using FastMCP."""

import asyncio
import sys
from typing import Optional, Any

from fastmcp import FastMCP

from tailwind_mcp.config import load_config, TailwindMCPConfig
from tailwind_mcp.services.diagnostics_bridge import DiagnosticsBridge
from tailwind_mcp.utils.cache import cache_manager
from tailwind_mcp.utils.logging_config import setup_logging, get_logger
from tailwind_mcp.utils.errors import ConfigurationError
from tailwind_mcp.tools.analysis_tools import register_analysis_tools
from tailwind_mcp.tools.fix_tools import register_fix_tools
from tailwind_mcp.tools.scan_tools import register_scan_tools


class TailwindMCPServer:
    """Main Tailwind MCP Server class."""

    def __init__(self, config: TailwindMCPConfig):
        self.config = config
        self.logger = get_logger("server")

        self.mcp: Any = FastMCP(
            name="TailwindMCP",
            version="0.1.0",
        )

        self.bridge: Optional[DiagnosticsBridge] = None
        if config.bridge.enabled:
            self.bridge = DiagnosticsBridge(
                config.bridge,
                property_cache=cache_manager.create_cache(
                    "css_properties",
                    max_size=config.performance.cache_size,
                    ttl=config.performance.cache_ttl,
                ),
            )
            self.logger.info("Language server bridge enabled, it starts on first use")

        self._register_tools()

        self.logger.info("Tailwind MCP Server initialized")

    def _register_tools(self) -> None:
        """Register all MCP tools."""
        try:
            register_analysis_tools(self.mcp, self.config, self.bridge)
            self.logger.info("Registered analysis tools")

            register_fix_tools(self.mcp, self.config, self.bridge)
            self.logger.info("Registered fix tools")

            register_scan_tools(self.mcp, self.config, self.bridge)
            self.logger.info("Registered scan tools")

        except Exception as e:
            self.logger.error(f"Failed to register tools: {e}")
            raise ConfigurationError(f"Tool registration failed: {e}")

    async def start(self) -> None:
        """Start the MCP server."""
        try:
            self.logger.info("Starting Tailwind MCP Server...")
            await self.mcp.run_async()
        except Exception as e:
            self.logger.error(f"Server failed to start: {e}")
            raise
        finally:
            await self.shutdown()

    async def shutdown(self) -> None:
        """Stop the language server if one was started."""
        if self.bridge is not None:
            await self.bridge.stop()

    def run(self) -> None:
        """Run the server (blocking)."""
        try:
            asyncio.run(self.start())
        except KeyboardInterrupt:
            self.logger.info("Server stopped by user")
        except Exception as e:
            self.logger.error(f"Server error: {e}")
            sys.exit(1)


def create_server(config_path: Optional[str] = None) -> TailwindMCPServer:
    """
    Create and configure the MCP server.

    Args:
        config_path: Optional path to configuration file

    Returns:
        Configured TailwindMCPServer instance
    """
    try:
        config = load_config(config_path)

        setup_logging(config.logging)

        server = TailwindMCPServer(config)

        return server

    except Exception as e:
        print(f"Failed to create server: {e}", file=sys.stderr)
        sys.exit(1)


def main() -> None:
    """Main entry point for the server."""
    import argparse

    parser = argparse.ArgumentParser(description="Tailwind MCP Server")
    parser.add_argument("--config", "-c", type=str, help="Path to configuration file")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Log level",
    )
    parser.add_argument(
        "--language-server",
        action="store_true",
        help="Consult the Tailwind CSS language server for suggestions",
    )
    parser.add_argument("--version", action="version", version="0.1.0")

    args = parser.parse_args()

    import os

    if args.log_level:
        os.environ["LOG_LEVEL"] = args.log_level

    if args.language_server:
        os.environ["TAILWIND_BRIDGE_ENABLED"] = "true"

    server = create_server(args.config)
    server.run()


if __name__ == "__main__":
    main()
