"""MCP tool that analyzes every class-bearing fragment of one file."""

import time
from pathlib import Path
from typing import Dict, Any, Annotated, List, Optional
from pydantic import Field

from ..config import TailwindMCPConfig
from ..fixers.auto_fixer import AutoFixer, TextEdit, apply_edits
from ..services.diagnostics_bridge import DiagnosticsBridge
from ..utils.logging_config import log_tool_execution, log_tool_completion, get_logger
from ..utils.errors import ToolExecutionError
from ..utils.source_scanner import SourceFragment, collect_fragments
from ..validators.canonical_suggester import CanonicalSuggestion, CanonicalSuggester
from ..validators.class_extractor import extract_classes
from ..validators.conflict_detector import Conflict, ConflictDetector


def _line_of(content: str, offset: int) -> int:
    return content.count("\n", 0, offset) + 1


def register_scan_tools(
    mcp: Any, config: TailwindMCPConfig, bridge: Optional[DiagnosticsBridge] = None
) -> None:
    """Register all scan tools with the MCP server."""

    logger = get_logger("scan_tools")

    detector = ConflictDetector(lookup=bridge)
    suggester = CanonicalSuggester(source=bridge)
    fixer = AutoFixer()

    def _error_result(file_path: str, message: str) -> Dict[str, Any]:
        return {
            "file_path": file_path,
            "fragments": [],
            "classes": [],
            "errors": [message],
            "summary": {"total_conflicts": 0, "total_suggestions": 0, "has_issues": False},
        }

    def _fix_fragment(
        fragment: SourceFragment,
        conflicts: List[Conflict],
        suggestions: List[CanonicalSuggestion],
    ) -> Optional[TextEdit]:
        text, _ = fixer.batch_fix(fragment.text, conflicts)
        text, _ = fixer.batch_canonical_fix(text, suggestions)
        if text == fragment.text:
            return None
        return fragment.replace(text)

    @mcp.tool()
    async def analyze_file(
        file_path: Annotated[
            str,
            Field(
                description="Path of a markup, style or component file (.html, .vue, .jsx, .tsx, .css, ...) to analyze for Tailwind class issues.",
            ),
        ],
        include_fixed_content: Annotated[
            bool,
            Field(description="Also return the file content with all safe fixes applied. The file itself is never written."),
        ] = False,
    ) -> Dict[str, Any]:
        """
        Analyze the class lists of one file.

        Args:
            file_path: Path to the file
            include_fixed_content: Return the fixed file content as well

        Returns:
            Dictionary with per-fragment conflicts and suggestions
        """
        start_time = time.time()
        tool_name = "analyze_file"

        try:
            log_tool_execution(
                tool_name,
                {"file_path": file_path, "include_fixed_content": include_fixed_content},
            )

            path = Path(file_path)

            # Return error results instead of raising
            if not path.is_file():
                log_tool_completion(tool_name, True, time.time() - start_time)
                return _error_result(file_path, f"File not found: {file_path}")

            suffix = path.suffix.lower()
            if suffix not in config.analyzer.supported_file_types:
                log_tool_completion(tool_name, True, time.time() - start_time)
                return _error_result(file_path, f"Unsupported file type: {suffix or '(none)'}")

            size = path.stat().st_size
            if size > config.analyzer.max_file_size:
                log_tool_completion(tool_name, True, time.time() - start_time)
                return _error_result(
                    file_path,
                    f"File too large: {size} bytes (max: {config.analyzer.max_file_size})",
                )

            content = path.read_text(encoding="utf-8")
            fragments = collect_fragments(content, file_path)

            results = []
            all_classes: List[str] = []
            edits: List[TextEdit] = []
            total_conflicts = 0
            total_suggestions = 0

            for fragment in fragments:
                conflicts = await detector.detect_async(fragment.text, file_path)
                suggestions = []
                if config.analyzer.enable_suggestions:
                    suggestions = await suggester.suggest_async(fragment.text, file_path)

                for cls in extract_classes(fragment.text):
                    if cls not in all_classes:
                        all_classes.append(cls)

                total_conflicts += len(conflicts)
                total_suggestions += len(suggestions)

                if conflicts or suggestions:
                    results.append(
                        {
                            "kind": fragment.kind,
                            "line": _line_of(content, fragment.start),
                            "start": fragment.start,
                            "end": fragment.end,
                            "text": fragment.text,
                            "conflicts": [conflict.to_dict() for conflict in conflicts],
                            "suggestions": [suggestion.to_dict() for suggestion in suggestions],
                        }
                    )

                if include_fixed_content and config.analyzer.enable_auto_fix:
                    edit = _fix_fragment(fragment, conflicts, suggestions)
                    if edit is not None:
                        edits.append(edit)

            response: Dict[str, Any] = {
                "file_path": file_path,
                "fragments": results,
                "classes": all_classes,
                "errors": [],
                "summary": {
                    "fragments_scanned": len(fragments),
                    "total_conflicts": total_conflicts,
                    "total_suggestions": total_suggestions,
                    "has_issues": total_conflicts + total_suggestions > 0,
                },
            }

            if include_fixed_content:
                fixed_content = apply_edits(content, edits)
                response["fixed_content"] = fixed_content
                response["changed"] = fixed_content != content

            logger.debug(f"Scanned {len(fragments)} fragments in {file_path}")

            duration = time.time() - start_time
            log_tool_completion(tool_name, True, duration)

            return response

        except Exception as e:
            duration = time.time() - start_time
            error_msg = f"File analysis failed: {str(e)}"
            log_tool_completion(tool_name, False, duration, error_msg)
            raise ToolExecutionError(tool_name, error_msg)
