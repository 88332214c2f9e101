"""
Turns a resolve request into the ComponentContext returned to the overlay.
Shared by the HTTP handler and the CLI.
"""
import logging
import uuid
from typing import Optional

from ..utils.schema import ComponentContext, ResolveRequest, ResolverOptions
from .chain import Resolver, ResolverChain, resolve_selection


logger = logging.getLogger(__name__)

DOM_SUMMARY_LENGTH = 100


def resolve_component_context(
    request: ResolveRequest,
    cwd: str,
    chain: Optional[ResolverChain] = None,
    agent_resolver: Optional[Resolver] = None,
) -> ComponentContext:
    """
    Resolve request into a ComponentContext. Never raises: on any failure
    the low-confidence, unverified heuristic context is returned.
    """
    context = ComponentContext(
        id=str(uuid.uuid4()),
        source="heuristic",
        confidence="low",
        file_path="",
        selector_summary=request.selector,
        dom_summary=request.text_snippet[:DOM_SUMMARY_LENGTH],
        needs_verification=True,
        verified=False,
    )

    options = ResolverOptions(cwd=cwd, use_agent_fallback=request.use_agent_fallback)
    try:
        result = resolve_selection(request.payload(), options, chain=chain, agent_resolver=agent_resolver)
    except Exception:
        logger.exception("[ui-agent] Resolution failed")
        return context

    context.source = result.source
    context.confidence = result.confidence
    context.verified = result.verified
    context.needs_verification = not result.verified
    context.file_path = result.file_path
    context.line_number = result.line_number
    context.component_name = result.component_name
    context.code_snippet = result.code_snippet
    return context
