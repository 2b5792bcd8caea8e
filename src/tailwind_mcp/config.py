"""Configuration management for Tailwind MCP Server."""

import os
import shlex
import yaml
from pathlib import Path
from typing import Dict, Any, Optional, List
from pydantic import BaseModel, Field


class AnalyzerConfig(BaseModel):
    """Configuration for the class analysis engines."""

    supported_file_types: List[str] = Field(
        default_factory=lambda: [
            ".vue",
            ".css",
            ".scss",
            ".sass",
            ".less",
            ".html",
            ".jsx",
            ".tsx",
            ".svelte",
            ".astro",
        ]
    )
    enable_auto_fix: bool = True
    enable_suggestions: bool = True
    max_file_size: int = 1048576  # 1MB


class BridgeConfig(BaseModel):
    """Configuration for the Tailwind CSS language server bridge."""

    enabled: bool = False
    command: List[str] = Field(
        default_factory=lambda: ["tailwindcss-language-server", "--stdio"]
    )
    diagnostics_timeout: float = 1.2
    request_timeout: float = 10.0
    canonical_diagnostic_code: str = "suggestCanonicalClasses"
    root_path: Optional[str] = None  # workspace root sent on initialize, defaults to cwd
    settings: Dict[str, Any] = Field(default_factory=dict)


class PerformanceConfig(BaseModel):
    """Configuration for performance settings."""

    cache_size: int = 100
    cache_ttl: Optional[float] = 3600


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    level: str = "INFO"
    format: str = "json"
    file: Optional[str] = "tailwind-mcp.log"


class TailwindMCPConfig(BaseModel):
    """Main configuration class for Tailwind MCP Server."""

    analyzer: AnalyzerConfig = Field(default_factory=AnalyzerConfig)
    bridge: BridgeConfig = Field(default_factory=BridgeConfig)
    performance: PerformanceConfig = Field(default_factory=PerformanceConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    current_dir = Path.cwd()
    config_files = [
        current_dir / "tailwind-mcp.yaml",
        current_dir / "tailwind-mcp.yml",
        current_dir / "config" / "tailwind-mcp.yaml",
    ]

    for config_file in config_files:
        if config_file.exists():
            return config_file

    return current_dir / "config" / "tailwind-mcp.yaml"


def load_config(config_path: Optional[str] = None) -> TailwindMCPConfig:
    """Load configuration from file or environment variables."""
    path: Path
    if config_path is None:
        path = get_default_config_path()
    else:
        path = Path(config_path)

    config_dict: Dict[str, Any] = {}

    if path.exists():
        try:
            with open(path, "r") as f:
                file_config = yaml.safe_load(f)
                if file_config:
                    config_dict.update(file_config)
        except Exception as e:
            raise ValueError(f"Failed to load config from {path}: {e}")

    env_overrides = _get_env_overrides()
    _deep_update(config_dict, env_overrides)

    try:
        return TailwindMCPConfig(**config_dict)
    except Exception as e:
        raise ValueError(f"Invalid configuration: {e}")


def _get_env_overrides() -> Dict[str, Any]:
    """Get configuration overrides from environment variables."""
    overrides: Dict[str, Any] = {}

    # Bridge configuration
    enabled = os.getenv("TAILWIND_BRIDGE_ENABLED")
    if enabled:
        overrides.setdefault("bridge", {})["enabled"] = enabled.strip().lower() in {
            "1",
            "true",
            "yes",
            "on",
        }

    if os.getenv("TAILWIND_LANGUAGE_SERVER"):
        overrides.setdefault("bridge", {})["command"] = shlex.split(
            os.getenv("TAILWIND_LANGUAGE_SERVER", "")
        )

    if os.getenv("TAILWIND_DIAGNOSTICS_TIMEOUT"):
        try:
            overrides.setdefault("bridge", {})["diagnostics_timeout"] = float(
                os.getenv("TAILWIND_DIAGNOSTICS_TIMEOUT", "")
            )
        except ValueError:
            pass

    # Logging configuration
    if os.getenv("LOG_LEVEL"):
        overrides.setdefault("logging", {})["level"] = os.getenv("LOG_LEVEL")

    if os.getenv("LOG_FILE"):
        overrides.setdefault("logging", {})["file"] = os.getenv("LOG_FILE")

    # Performance configuration
    if os.getenv("CACHE_SIZE"):
        try:
            overrides.setdefault("performance", {})["cache_size"] = int(os.getenv("CACHE_SIZE", ""))
        except ValueError:
            pass

    return overrides


def _deep_update(base_dict: Dict[str, Any], update_dict: Dict[str, Any]) -> None:
    """Deep update a dictionary with another dictionary."""
    for key, value in update_dict.items():
        if key in base_dict and isinstance(base_dict[key], dict) and isinstance(value, dict):
            _deep_update(base_dict[key], value)
        else:
            base_dict[key] = value


def save_config(config: TailwindMCPConfig, config_path: Optional[str] = None) -> None:
    """Save configuration to file."""
    path: Path
    if config_path is None:
        path = get_default_config_path()
    else:
        path = Path(config_path)

    path.parent.mkdir(parents=True, exist_ok=True)

    config_dict = config.model_dump()

    with open(path, "w") as f:
        yaml.dump(config_dict, f, default_flow_style=False, indent=2)

