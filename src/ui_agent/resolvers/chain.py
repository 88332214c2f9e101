"""
Resolver chain: ordered resolvers, first non-None result wins.

A resolver is any callable (payload, options) -> ResolutionResult | None.
Returning None declines; raising is reported through on_error and treated
as declining. New resolvers are appended to the list without touching
callers.
"""
import logging
from typing import Callable, List, Optional, Sequence

from ..utils.schema import ResolutionResult, ResolverOptions, SelectionPayload
from .testid_resolver import resolve_by_test_id


logger = logging.getLogger(__name__)

Resolver = Callable[[SelectionPayload, ResolverOptions], Optional[ResolutionResult]]
ErrorHook = Callable[[Resolver, Exception], None]


def default_result() -> ResolutionResult:
    """Answer when every resolver declines or fails."""
    return ResolutionResult(confidence="low", verified=False, file_path="", source="heuristic")


def log_resolver_error(resolver: Resolver, error: Exception) -> None:
    name = getattr(resolver, "__name__", repr(resolver))
    logger.error("[ui-agent] Resolver %s failed: %s", name, error, exc_info=error)


# Heuristic resolvers in priority order.
DEFAULT_RESOLVERS: List[Resolver] = [
    resolve_by_test_id,
]


class ResolverChain:
    """
    Args:
        resolvers: Resolvers to try, in order
        on_error: Called with (resolver, exception) when a resolver raises
    """

    def __init__(self, resolvers: Optional[Sequence[Resolver]] = None,
                 on_error: Optional[ErrorHook] = None):
        self.resolvers: List[Resolver] = list(DEFAULT_RESOLVERS if resolvers is None else resolvers)
        self.on_error = on_error or log_resolver_error

    def run(self, payload: SelectionPayload, options: ResolverOptions) -> Optional[ResolutionResult]:
        """First non-None result, or None if all declined or failed."""
        for resolver in self.resolvers:
            try:
                result = resolver(payload, options)
            except Exception as e:
                self.on_error(resolver, e)
                continue
            if result is not None:
                return result
        return None

    def resolve(self, payload: SelectionPayload, options: ResolverOptions) -> ResolutionResult:
        result = self.run(payload, options)
        return result if result is not None else default_result()


def resolve_selection(
    payload: SelectionPayload,
    options: ResolverOptions,
    chain: Optional[ResolverChain] = None,
    agent_resolver: Optional[Resolver] = None,
) -> ResolutionResult:
    """
    Heuristic chain first. If that yields nothing better than low confidence
    and options.use_agent_fallback is set, ask agent_resolver; its answer
    replaces the heuristic one when it produces one.
    """
    chain = chain or ResolverChain()
    result = chain.resolve(payload, options)

    if options.use_agent_fallback and agent_resolver is not None and result.confidence == "low":
        logger.info("[ui-agent] Heuristics failed or low confidence, trying agent fallback...")
        try:
            agent_result = agent_resolver(payload, options)
        except Exception as e:
            chain.on_error(agent_resolver, e)
            agent_result = None
        if agent_result is not None:
            logger.info("[ui-agent] Agent resolved: %s", agent_result.file_path)
            return agent_result

    return result
