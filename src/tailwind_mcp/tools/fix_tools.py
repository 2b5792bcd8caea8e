"""MCP tools that rewrite class lists to resolve conflicts and non-canonical classes."""

import time
from typing import Dict, Any, Annotated, Optional
from pydantic import Field

from ..config import TailwindMCPConfig
from ..fixers.auto_fixer import AutoFixer
from ..services.diagnostics_bridge import DiagnosticsBridge
from ..utils.logging_config import log_tool_execution, log_tool_completion, get_logger
from ..utils.errors import ToolExecutionError
from ..validators.canonical_suggester import CanonicalSuggester
from ..validators.conflict_detector import ConflictDetector


def register_fix_tools(
    mcp: Any, config: TailwindMCPConfig, bridge: Optional[DiagnosticsBridge] = None
) -> None:
    """Register all fix tools with the MCP server."""

    logger = get_logger("fix_tools")

    detector = ConflictDetector(lookup=bridge)
    suggester = CanonicalSuggester(source=bridge)
    fixer = AutoFixer()

    def _disabled_response(content: str) -> Dict[str, Any]:
        return {
            "content": content,
            "changed": False,
            "applied": [],
            "skipped": [],
            "message": "Auto-fix is disabled in the configuration",
        }

    @mcp.tool()
    async def fix_class_conflicts(
        content: Annotated[
            str,
            Field(description="Fragment holding the conflicting Tailwind classes."),
        ],
        file_path: Annotated[
            str,
            Field(description="Path of the file the fragment came from."),
        ] = "fragment.html",
        keep: Annotated[
            Optional[str],
            Field(
                description="Class to keep when a conflict names it, e.g. 'mt-6' for 'mt-4 mt-6'. Without it both conflicting classes are removed.",
            ),
        ] = None,
    ) -> Dict[str, Any]:
        """
        Resolve fixable class conflicts in a fragment.

        Args:
            content: The fragment to fix
            file_path: Source path of the fragment
            keep: Optional class to keep for conflicts that name it

        Returns:
            Dictionary with the rewritten content and the applied and skipped conflicts
        """
        start_time = time.time()
        tool_name = "fix_class_conflicts"

        try:
            log_tool_execution(
                tool_name, {"content_length": len(content), "file_path": file_path, "keep": keep}
            )

            if not config.analyzer.enable_auto_fix:
                log_tool_completion(tool_name, True, time.time() - start_time)
                return _disabled_response(content)

            conflicts = await detector.detect_async(content, file_path)

            fixed = content
            applied = []
            skipped = []
            for conflict in conflicts:
                replacement = keep if keep in conflict.classes else None
                result = fixer.apply_conflict_fix(fixed, conflict, replacement)
                if result is None:
                    skipped.append(
                        {**conflict.to_dict(), "explanation": fixer.describe_fix(conflict)}
                    )
                    continue
                fixed = result
                applied.append(conflict.to_dict())

            logger.debug(f"Applied {len(applied)} of {len(conflicts)} conflict fixes")

            response = {
                "content": fixed,
                "changed": fixed != content,
                "applied": applied,
                "skipped": skipped,
            }

            duration = time.time() - start_time
            log_tool_completion(tool_name, True, duration)

            return response

        except Exception as e:
            duration = time.time() - start_time
            error_msg = f"Conflict fixing failed: {str(e)}"
            log_tool_completion(tool_name, False, duration, error_msg)
            raise ToolExecutionError(tool_name, error_msg)

    @mcp.tool()
    async def fix_canonical_classes(
        content: Annotated[
            str,
            Field(description="Fragment holding Tailwind classes to rewrite to their canonical form."),
        ],
        file_path: Annotated[
            str,
            Field(description="Path of the file the fragment came from."),
        ] = "fragment.html",
    ) -> Dict[str, Any]:
        """
        Replace non-canonical classes with their canonical spelling.

        Fragment-level advice (inline styles, repeated margins) is reported
        but never applied.

        Args:
            content: The fragment to fix
            file_path: Source path of the fragment

        Returns:
            Dictionary with the rewritten content and the applied and skipped suggestions
        """
        start_time = time.time()
        tool_name = "fix_canonical_classes"

        try:
            log_tool_execution(
                tool_name, {"content_length": len(content), "file_path": file_path}
            )

            if not config.analyzer.enable_auto_fix:
                log_tool_completion(tool_name, True, time.time() - start_time)
                return _disabled_response(content)

            suggestions = await suggester.suggest_async(content, file_path)
            fixed, applied = fixer.batch_canonical_fix(content, suggestions)
            skipped = [s.to_dict() for s in suggestions if s not in applied]

            response = {
                "content": fixed,
                "changed": fixed != content,
                "applied": [s.to_dict() for s in applied],
                "skipped": skipped,
            }

            duration = time.time() - start_time
            log_tool_completion(tool_name, True, duration)

            return response

        except Exception as e:
            duration = time.time() - start_time
            error_msg = f"Canonical fixing failed: {str(e)}"
            log_tool_completion(tool_name, False, duration, error_msg)
            raise ToolExecutionError(tool_name, error_msg)
