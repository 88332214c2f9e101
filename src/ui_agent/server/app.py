"""
FastAPI backend for the UI-Agent overlay.
Resolves selected elements to source locations and forwards verified
change requests to the coding agent.
"""
import logging
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from starlette.concurrency import run_in_threadpool

from ..executor.agent_submitter import submit_to_agent
from ..resolvers.agent_resolver import make_agent_resolver
from ..resolvers.chain import ResolverChain
from ..resolvers.context import resolve_component_context
from ..utils.config import Settings, load_settings
from ..utils.schema import ResolveRequest, ResolveResponse, SubmissionRequest, SubmissionResponse


logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, chain: Optional[ResolverChain] = None) -> FastAPI:
    """
    Build the API.

    Args:
        settings: Runtime settings; loaded from the environment when omitted
        chain: Heuristic resolver chain; the default chain when omitted
    """
    settings = settings or load_settings()
    chain = chain or ResolverChain()
    agent_resolver = make_agent_resolver(
        command=settings.agent_command,
        model=settings.agent_model,
        timeout=settings.resolve_timeout,
        kill_grace=settings.kill_grace,
    )

    app = FastAPI(title="UI-Agent Resolver API")
    app.state.settings = settings
    app.state.chain = chain

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health():
        """Liveness check."""
        return {"ok": True}

    @app.post("/resolve-selection", response_model=ResolveResponse, response_model_exclude_none=True)
    async def resolve_selection_endpoint(request: ResolveRequest):
        """
        Resolve a SelectionPayload to a ComponentContext.
        Resolver failures never surface as errors; they degrade to a
        low-confidence context.
        """
        context = await run_in_threadpool(
            resolve_component_context, request, settings.cwd, chain, agent_resolver
        )
        logger.info(
            "[ui-agent] Resolved %r -> %s:%s (%s, %s)",
            request.selector, context.file_path or "-", context.line_number,
            context.source, context.confidence,
        )
        return ResolveResponse(component_context=context)

    @app.post("/submit", response_model=SubmissionResponse, response_model_exclude_none=True)
    async def submit(request: SubmissionRequest):
        """Send a verified context and change request to the agent."""
        if not request.context.verified:
            raise HTTPException(status_code=422, detail="Component context must be verified before submitting")
        message = request.user_message.strip()
        if not message:
            raise HTTPException(status_code=422, detail="userMessage must not be empty")

        return await run_in_threadpool(
            submit_to_agent,
            request.context,
            message,
            settings.cwd,
            command=settings.agent_command,
            model=settings.agent_model,
            timeout=settings.submit_timeout,
            kill_grace=settings.kill_grace,
        )

    return app


def main():
    """Run the backend with uvicorn."""
    import uvicorn

    settings = load_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    logger.info("[ui-agent] backend listening on %s:%s (cwd=%s)", settings.host, settings.port, settings.cwd)
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
