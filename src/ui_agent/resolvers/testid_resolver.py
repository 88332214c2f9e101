"""
TestId resolver: maps a data-testid back to the source line that renders it.

Two-phase search:
1. literal:  data-testid="value" / data-testid='value'
2. constant: find NAME = 'value', then data-testid={NAME}
"""
import logging
import re
from typing import List, Optional

from ..utils.schema import ResolutionResult, ResolverOptions, SelectionPayload, TestIdInfo
from .source_search import FileMatch, extract_code_snippet, get_source_files, read_source, search_files


logger = logging.getLogger(__name__)

# Single-match results this close to the clicked element are trusted.
MAX_VERIFIED_DEPTH = 2


def search_direct_test_id(test_id: str, files: List[str], cwd: str) -> List[FileMatch]:
    pattern = re.compile(r"""data-testid=["']%s["']""" % re.escape(test_id))
    return search_files(files, pattern, cwd)


def find_constant_name(test_id: str, files: List[str], cwd: str) -> Optional[str]:
    """First identifier bound to the literal value, e.g. `const SAVE_ID = 'save'`."""
    pattern = re.compile(r"""(\w+)\s*=\s*['"]%s['"]""" % re.escape(test_id))

    for file_path in files:
        try:
            content = read_source(cwd, file_path)
        except (OSError, UnicodeDecodeError):
            continue
        match = pattern.search(content)
        if match:
            return match.group(1)

    return None


def search_constant_test_id(constant_name: str, files: List[str], cwd: str) -> List[FileMatch]:
    pattern = re.compile(r"data-testid=\{\s*%s\s*\}" % re.escape(constant_name))
    return search_files(files, pattern, cwd)


def search_data_test_id(test_id: str, cwd: str) -> List[FileMatch]:
    """Literal matches, or constant-backed matches if there are none."""
    files = get_source_files(cwd)

    direct = search_direct_test_id(test_id, files, cwd)
    if direct:
        return direct

    constant_name = find_constant_name(test_id, files, cwd)
    if not constant_name:
        return []

    logger.debug("[ui-agent] testid %r bound to constant %s", test_id, constant_name)
    return search_constant_test_id(constant_name, files, cwd)


def resolve_from_matches(matches: List[FileMatch], test_id: TestIdInfo) -> ResolutionResult:
    """
    Confidence from match cardinality and testid locality:

    - 0 matches                     -> low
    - 1 match, depth <= 2           -> high, verified
    - 1 match, further away         -> medium
    - several matches, one file     -> medium
    - several matches, many files   -> low
    """
    if not matches:
        return ResolutionResult(confidence="low", verified=False, file_path="")

    first = matches[0]

    if len(matches) == 1:
        close = test_id.on_self or test_id.depth <= MAX_VERIFIED_DEPTH
        return ResolutionResult(
            confidence="high" if close else "medium",
            verified=close,
            file_path=first.file_path,
            line_number=first.line_number,
        )

    unique_files = {m.file_path for m in matches}
    return ResolutionResult(
        confidence="medium" if len(unique_files) == 1 else "low",
        verified=False,
        file_path=first.file_path,
        line_number=first.line_number,
    )


def resolve_by_test_id(payload: SelectionPayload, options: ResolverOptions) -> Optional[ResolutionResult]:
    """Declines (None) when the payload carries no testid."""
    if payload.test_id is None:
        return None

    matches = search_data_test_id(payload.test_id.value, options.cwd)
    result = resolve_from_matches(matches, payload.test_id)

    logger.info(
        "[ui-agent] testid %r: %d match(es), confidence=%s",
        payload.test_id.value, len(matches), result.confidence,
    )

    if result.file_path and result.line_number:
        result.code_snippet = extract_code_snippet(result.file_path, result.line_number, options.cwd)

    return result

