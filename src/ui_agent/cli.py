"""
Command-line resolver: run the resolution pipeline against a directory
without starting the server.
"""
import argparse
import json
import logging
import sys

from .resolvers.agent_resolver import make_agent_resolver
from .resolvers.context import resolve_component_context
from .utils.config import load_settings
from .utils.schema import ResolveRequest, TestIdInfo


def build_request(args: argparse.Namespace) -> ResolveRequest:
    test_id = None
    if args.testid:
        test_id = TestIdInfo(
            value=args.testid,
            on_self=args.depth == 0,
            depth=args.depth,
            ancestor_tag_name=args.tag,
        )
    return ResolveRequest(
        selector=args.selector or (f'[data-testid="{args.testid}"]' if args.testid else ""),
        test_id=test_id,
        text_snippet=args.text,
        use_agent_fallback=args.agent_fallback,
    )


def main(argv=None):
    parser = argparse.ArgumentParser(description="Resolve a selected element to its source location")
    parser.add_argument("--testid", help="data-testid value of the element or its nearest ancestor")
    parser.add_argument("--depth", type=int, default=0, help="Parent hops from the element to the testid (0 = self)")
    parser.add_argument("--tag", default="div", help="Tag name of the element carrying the testid")
    parser.add_argument("--selector", default="", help="CSS selector of the element")
    parser.add_argument("--text", default="", help="Text content of the element")
    parser.add_argument("--cwd", help="Project directory to search (default: UI_AGENT_CWD or current directory)")
    parser.add_argument("--agent-fallback", action="store_true", help="Ask the coding agent when heuristics fail")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log resolver progress to stderr")

    args = parser.parse_args(argv)
    if args.depth < 0:
        parser.error("--depth must be >= 0")

    settings = load_settings()
    logging.basicConfig(level=logging.DEBUG if args.verbose else settings.log_level, stream=sys.stderr)

    agent_resolver = make_agent_resolver(
        command=settings.agent_command,
        model=settings.agent_model,
        timeout=settings.resolve_timeout,
        kill_grace=settings.kill_grace,
    )
    context = resolve_component_context(build_request(args), args.cwd or settings.cwd, agent_resolver=agent_resolver)

    print(json.dumps({"componentContext": context.to_wire()}, indent=2))
    return 0 if context.file_path else 1


if __name__ == "__main__":
    sys.exit(main())
