"""MCP tools for utility-class extraction, conflict detection and canonical suggestions."""

import time
from typing import Dict, Any, Annotated, Optional
from pydantic import Field

from ..config import TailwindMCPConfig
from ..services.diagnostics_bridge import DiagnosticsBridge
from ..utils.cache import cache_key, cache_manager
from ..utils.logging_config import log_tool_execution, log_tool_completion, get_logger
from ..utils.errors import ToolExecutionError
from ..validators.canonical_suggester import CanonicalSuggester
from ..validators.class_extractor import extract_classes as extract_class_list
from ..validators.conflict_detector import ConflictDetector


def register_analysis_tools(
    mcp: Any, config: TailwindMCPConfig, bridge: Optional[DiagnosticsBridge] = None
) -> None:
    """Register all analysis tools with the MCP server."""

    logger = get_logger("analysis_tools")

    detector = ConflictDetector(lookup=bridge)
    suggester = CanonicalSuggester(source=bridge)

    # Results are memoized only when no language server takes part in the answer.
    results_cache = cache_manager.create_cache(
        "class_analysis",
        max_size=config.performance.cache_size,
        ttl=config.performance.cache_ttl,
    )

    @mcp.tool()
    async def extract_classes(
        content: Annotated[
            str,
            Field(
                description="Markup, style or script text to read Tailwind utility classes from. Class attributes are preferred; otherwise the whole text is scanned.",
            ),
        ],
    ) -> Dict[str, Any]:
        """
        Extract utility classes from a source fragment.

        Args:
            content: The fragment to read classes from

        Returns:
            Dictionary with the ordered, de-duplicated classes
        """
        start_time = time.time()
        tool_name = "extract_classes"

        try:
            log_tool_execution(tool_name, {"content_length": len(content)})

            classes = extract_class_list(content)
            response = {"classes": classes, "count": len(classes)}

            duration = time.time() - start_time
            log_tool_completion(tool_name, True, duration)

            return response

        except Exception as e:
            duration = time.time() - start_time
            error_msg = f"Class extraction failed: {str(e)}"
            log_tool_completion(tool_name, False, duration, error_msg)
            raise ToolExecutionError(tool_name, error_msg)

    @mcp.tool()
    async def detect_class_conflicts(
        content: Annotated[
            str,
            Field(
                description="Fragment holding Tailwind class lists to check for classes that set the same property, such as 'mt-4 mt-6' or 'flex hidden'.",
            ),
        ],
        file_path: Annotated[
            str,
            Field(description="Path of the file the fragment came from."),
        ] = "fragment.html",
    ) -> Dict[str, Any]:
        """
        Detect conflicting utility classes.

        Args:
            content: The fragment to analyze
            file_path: Source path of the fragment

        Returns:
            Dictionary with the conflicts found and a summary
        """
        start_time = time.time()
        tool_name = "detect_class_conflicts"

        try:
            log_tool_execution(
                tool_name, {"content_length": len(content), "file_path": file_path}
            )

            key = cache_key(tool_name, content)
            conflicts = results_cache.get(key) if bridge is None else None
            if conflicts is None:
                conflicts = await detector.detect_async(content, file_path)
                if bridge is None:
                    results_cache.put(key, conflicts)
            else:
                logger.debug("Serving conflict analysis from cache")

            response: Dict[str, Any] = {
                "conflicts": [conflict.to_dict() for conflict in conflicts],
                "summary": {
                    "total_conflicts": len(conflicts),
                    "fixable": sum(1 for conflict in conflicts if conflict.fixable),
                    "has_issues": len(conflicts) > 0,
                },
            }

            duration = time.time() - start_time
            log_tool_completion(tool_name, True, duration)

            return response

        except Exception as e:
            duration = time.time() - start_time
            error_msg = f"Conflict detection failed: {str(e)}"
            log_tool_completion(tool_name, False, duration, error_msg)
            raise ToolExecutionError(tool_name, error_msg)

    @mcp.tool()
    async def suggest_canonical_classes(
        content: Annotated[
            str,
            Field(
                description="Fragment holding Tailwind class lists to check for legacy, misspelled or verbose classes, such as 'flex-grow' or 'mt-[2px]'.",
            ),
        ],
        file_path: Annotated[
            str,
            Field(description="Path of the file the fragment came from; its extension selects the language."),
        ] = "fragment.html",
    ) -> Dict[str, Any]:
        """
        Suggest canonical replacements for utility classes.

        Args:
            content: The fragment to analyze
            file_path: Source path of the fragment

        Returns:
            Dictionary with the suggestions and a summary
        """
        start_time = time.time()
        tool_name = "suggest_canonical_classes"

        try:
            log_tool_execution(
                tool_name, {"content_length": len(content), "file_path": file_path}
            )

            if not config.analyzer.enable_suggestions:
                log_tool_completion(tool_name, True, time.time() - start_time)
                return {"suggestions": [], "summary": {"total_suggestions": 0}, "enabled": False}

            key = cache_key(tool_name, content)
            suggestions = results_cache.get(key) if bridge is None else None
            if suggestions is None:
                suggestions = await suggester.suggest_async(content, file_path)
                if bridge is None:
                    results_cache.put(key, suggestions)

            response: Dict[str, Any] = {
                "suggestions": [suggestion.to_dict() for suggestion in suggestions],
                "summary": {
                    "total_suggestions": len(suggestions),
                    "auto_fixable": sum(1 for s in suggestions if s.scope == "token"),
                    "from_language_server": sum(
                        1 for s in suggestions if s.source == "language-server"
                    ),
                },
            }

            duration = time.time() - start_time
            log_tool_completion(tool_name, True, duration)

            return response

        except Exception as e:
            duration = time.time() - start_time
            error_msg = f"Canonical suggestion failed: {str(e)}"
            log_tool_completion(tool_name, False, duration, error_msg)
            raise ToolExecutionError(tool_name, error_msg)
