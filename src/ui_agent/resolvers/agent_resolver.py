"""
Agent-backed resolver: asks the coding agent CLI where an element is
rendered when the heuristics come up short.
"""
import json
import logging
import re
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from ..executor.agent_process import AgentTask, DEFAULT_KILL_GRACE
from ..executor.agent_submitter import DEFAULT_COMMAND, DEFAULT_MODEL
from ..utils.schema import ResolutionResult, ResolverOptions, SelectionPayload
from .source_search import extract_code_snippet


logger = logging.getLogger(__name__)

RESOLVE_TIMEOUT = 60.0

JSON_BLOCK_RE = re.compile(r"```json\s*([\s\S]*?)\s*```")
JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


def build_resolve_prompt(payload: SelectionPayload) -> str:
    return f"""Given this UI element selection from a React app:
- Selector: {payload.selector}
- Text: {payload.text_snippet}
- Classes: {', '.join(payload.classes)}
- HTML snippet: {payload.dom_outer_html[:500]}

Find the React component file that renders this element. Search the codebase for matching patterns.

Return ONLY a valid JSON object with this exact structure:
{{
  "filePath": "relative/path/to/file.tsx",
  "componentName": "ComponentName",
  "lineNumber": 123
}}

If you cannot find a match, return:
{{
  "filePath": "",
  "componentName": "",
  "lineNumber": null
}}"""


def _unwrap_result(outer: Dict[str, Any]) -> Dict[str, Any]:
    """The CLI wraps the model's answer in {"result": "<text>"}."""
    result = outer.get("result")
    if isinstance(result, str):
        block = JSON_BLOCK_RE.search(result)
        if block:
            return json.loads(block.group(1).strip())
        span = JSON_OBJECT_RE.search(result)
        if span:
            return json.loads(span.group(0))
        return json.loads(result)
    if "filePath" in outer:
        return outer
    raise ValueError("Unexpected response format from agent")


def parse_agent_output(stdout: str) -> Optional[Dict[str, Any]]:
    """Extract {filePath, componentName, lineNumber} from agent stdout, or None."""
    try:
        outer = json.loads(stdout.strip())
        if not isinstance(outer, dict):
            raise ValueError("Agent output is not a JSON object")
        return _unwrap_result(outer)
    except ValueError as parse_error:
        span = JSON_OBJECT_RE.search(stdout)
        if not span:
            logger.error("[ui-agent] No JSON found in agent response: %s", stdout[:500])
            return None
        try:
            return _unwrap_result(json.loads(span.group(0)))
        except ValueError as extract_error:
            logger.error(
                "[ui-agent] Failed to parse agent response: %s (original: %s)",
                extract_error, parse_error,
            )
            return None


def validate_file_path(file_path: str, cwd: str) -> bool:
    """True if file_path names an existing file inside cwd."""
    if not file_path or not file_path.strip():
        return False
    root = Path(cwd).resolve()
    full_path = (root / file_path).resolve()
    try:
        full_path.relative_to(root)
    except ValueError:
        return False
    return full_path.is_file()


def make_agent_resolver(
    command: str = DEFAULT_COMMAND,
    model: str = DEFAULT_MODEL,
    timeout: float = RESOLVE_TIMEOUT,
    kill_grace: float = DEFAULT_KILL_GRACE,
) -> Callable[[SelectionPayload, ResolverOptions], Optional[ResolutionResult]]:
    """Build a resolver that runs `command -p --output-format json --model <model> <prompt>`."""

    def agent_resolver(payload: SelectionPayload, options: ResolverOptions) -> Optional[ResolutionResult]:
        if not payload.selector and not payload.text_snippet:
            logger.warning("[ui-agent] Agent resolver skipped: no selector or text snippet provided")
            return None

        args = [command, "-p", "--output-format", "json", "--model", model, build_resolve_prompt(payload)]
        try:
            task = AgentTask.spawn(args, cwd=options.cwd, kill_grace=kill_grace)
        except OSError as e:
            logger.error("[ui-agent] Agent resolver spawn error: %s", e)
            return None

        run = task.run(timeout=timeout)
        if run.timed_out:
            logger.warning("[ui-agent] Agent resolver timed out after %.1fs", run.elapsed)
            return None
        if run.exit_code != 0:
            logger.warning(
                "[ui-agent] Agent resolver exited with code %s: %s",
                run.exit_code, run.stderr[:1000],
            )
            return None

        response = parse_agent_output(run.stdout)
        if not isinstance(response, dict) or not response:
            return None

        file_path = response.get("filePath") or ""
        if not isinstance(file_path, str) or not validate_file_path(file_path, options.cwd):
            logger.warning("[ui-agent] Agent returned unusable file path: %r", file_path)
            return None

        line_number = response.get("lineNumber")
        if not isinstance(line_number, int) or isinstance(line_number, bool) or line_number < 1:
            line_number = None
        component_name = response.get("componentName")
        if not isinstance(component_name, str) or not component_name.strip():
            component_name = None

        code_snippet = None
        if line_number:
            code_snippet = extract_code_snippet(file_path, line_number, options.cwd)

        confidence = "medium" if component_name and line_number else "low"
        logger.info(
            "[ui-agent] Agent resolved %s:%s (%s, confidence=%s)",
            file_path, line_number, component_name, confidence,
        )
        return ResolutionResult(
            confidence=confidence,
            verified=False,
            file_path=file_path,
            line_number=line_number,
            component_name=component_name,
            code_snippet=code_snippet,
            source="agent",
        )

    return agent_resolver
