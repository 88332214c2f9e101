"""
Agent submission: hand a resolved component context plus the user's
change request to an external coding agent CLI.
"""
import logging
from typing import List

from ..utils.schema import ComponentContext, SubmissionResponse
from .agent_process import AgentTask, DEFAULT_KILL_GRACE


logger = logging.getLogger(__name__)

DEFAULT_COMMAND = "cursor-agent"
DEFAULT_MODEL = "auto"
SUBMIT_TIMEOUT = 120.0
MATCH_MARKER = "→ "


def format_code_snippet(context: ComponentContext) -> str:
    if not context.code_snippet:
        return ""
    rendered = "\n".join(
        f"{MATCH_MARKER if line.is_match else '  '}{line.line_number} | {line.content}"
        for line in context.code_snippet.lines
    )
    return f"\n# Current Code\n```\n{rendered}\n```\n"


def build_prompt(context: ComponentContext, user_message: str) -> str:
    """Structured prompt: location, code around the match, DOM context, request."""
    location = [f"File: {context.file_path}"]
    if context.component_name:
        location.append(f"Component: {context.component_name}")
    if context.line_number:
        location.append(f"Line: {context.line_number}")

    return (
        "# Component Context\n\n"
        + "\n".join(location)
        + format_code_snippet(context)
        + "\n# DOM Context\n\n"
        f"Selector: {context.selector_summary}\n"
        f"Element: {context.dom_summary}\n\n"
        "# Request\n\n"
        f"{user_message}\n\n"
        "# Instructions\n\n"
        "Please modify the code according to the request above.\n"
        "Focus on the indicated file and line number.\n"
        "Make the changes directly to the codebase."
    )


def build_agent_args(prompt: str, command: str = DEFAULT_COMMAND, model: str = DEFAULT_MODEL) -> List[str]:
    return [command, "--model", model, prompt]


def submit_to_agent(
    context: ComponentContext,
    user_message: str,
    cwd: str,
    command: str = DEFAULT_COMMAND,
    model: str = DEFAULT_MODEL,
    timeout: float = SUBMIT_TIMEOUT,
    kill_grace: float = DEFAULT_KILL_GRACE,
) -> SubmissionResponse:
    """
    Run the agent on the prompt built from context and user_message.

    Never raises: spawn failure, timeout and non-zero exit each come back
    as a distinct unsuccessful SubmissionResponse.

    Args:
        context: Component context (normally verified by the user)
        user_message: Free-text change request
        cwd: Repository the agent works in
        command: Agent executable
        model: Value passed with --model
        timeout: Seconds before the process is terminated
        kill_grace: Seconds between SIGTERM and SIGKILL
    """
    prompt = build_prompt(context, user_message)
    logger.info(
        "[ui-agent] Submitting to agent: file=%s line=%s message_len=%d prompt_len=%d",
        context.file_path, context.line_number, len(user_message), len(prompt),
    )

    try:
        task = AgentTask.spawn(build_agent_args(prompt, command, model), cwd=cwd, kill_grace=kill_grace)
    except OSError as e:
        logger.error("[ui-agent] Agent spawn error: %s", e)
        return SubmissionResponse(success=False, message=f"Failed to spawn {command}: {e}")

    run = task.run(timeout=timeout)

    if run.timed_out:
        return SubmissionResponse(
            success=False,
            message="Agent timeout - operation took too long",
        )

    if run.cancelled:
        return SubmissionResponse(success=False, message="Agent run was cancelled")

    if run.exit_code != 0:
        logger.error("[ui-agent] Agent failed: exit_code=%s stderr=%s", run.exit_code, run.stderr[:500])
        return SubmissionResponse(
            success=False,
            message=f"Agent exited with code {run.exit_code}",
            agent_output=run.stderr or run.stdout,
        )

    logger.info("[ui-agent] Agent completed successfully in %.1fs", run.elapsed)
    return SubmissionResponse(
        success=True,
        message="Changes applied successfully by agent",
        agent_output=run.stdout,
    )
