"""
HTTP client for the UI-Agent backend.
"""
from typing import Optional

import httpx

from .utils.schema import ComponentContext, SelectionPayload, SubmissionResponse


BACKEND_URL = "http://localhost:4000"
RESOLVE_TIMEOUT = 30.0
# The agent itself may run for 120s plus the kill grace period.
SUBMIT_TIMEOUT = 130.0


class ResolveSelectionError(RuntimeError):
    """The backend answered with a non-2xx status."""


def resolve_selection(
    payload: SelectionPayload,
    base_url: str = BACKEND_URL,
    use_agent_fallback: bool = False,
    timeout: float = RESOLVE_TIMEOUT,
    client: Optional[httpx.Client] = None,
) -> ComponentContext:
    """POST the payload to /resolve-selection and return the ComponentContext."""
    body = payload.model_dump(by_alias=True)
    body["useAgentFallback"] = use_agent_fallback

    http = client or httpx
    res = http.post(f"{base_url}/resolve-selection", json=body, timeout=timeout)
    if not res.is_success:
        raise ResolveSelectionError(f"resolve-selection failed: {res.status_code}")
    return ComponentContext.model_validate(res.json()["componentContext"])


def submit_to_agent(
    context: ComponentContext,
    user_message: str,
    base_url: str = BACKEND_URL,
    timeout: float = SUBMIT_TIMEOUT,
    client: Optional[httpx.Client] = None,
) -> SubmissionResponse:
    """POST a verified context and change request to /submit."""
    body = {"context": context.model_dump(by_alias=True), "userMessage": user_message}

    http = client or httpx
    res = http.post(f"{base_url}/submit", json=body, timeout=timeout)
    if not res.is_success:
        raise ResolveSelectionError(f"submit failed: {res.status_code}")
    return SubmissionResponse.model_validate(res.json())
