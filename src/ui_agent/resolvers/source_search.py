"""
Read-only search over a project's JS/TS sources.
"""
import logging
import os
import re
from dataclasses import dataclass
from fnmatch import fnmatch
from pathlib import Path
from typing import List, Optional

from ..utils.schema import CodeLine, CodeSnippet


logger = logging.getLogger(__name__)

SOURCE_EXTENSIONS = (".tsx", ".jsx", ".ts", ".js")

# Excluded only at the top of the search root
ROOT_EXCLUDED_DIRS = {"node_modules", "dist", "coverage", "build"}
# Excluded at any depth
NESTED_EXCLUDED_DIRS = {"e2e"}
EXCLUDED_FILE_PATTERNS = ("*.test.*", "*.spec.*")

SNIPPET_CONTEXT_LINES = 10


@dataclass
class FileMatch:
    file_path: str  # relative to the search root, forward slashes
    line_number: int  # 1-indexed
    line_content: str


def get_source_files(cwd: str) -> List[str]:
    """
    Relative paths of candidate source files under cwd, sorted.

    Dot-directories and dotfiles are skipped, as are the excluded
    directories and test/spec files.
    """
    root = Path(cwd)
    files: List[str] = []

    for dirpath, dirnames, filenames in os.walk(root):
        at_root = Path(dirpath) == root
        dirnames[:] = sorted(
            d for d in dirnames
            if not d.startswith(".")
            and d not in NESTED_EXCLUDED_DIRS
            and not (at_root and d in ROOT_EXCLUDED_DIRS)
        )
        for name in sorted(filenames):
            if name.startswith(".") or not name.endswith(SOURCE_EXTENSIONS):
                continue
            if any(fnmatch(name, pattern) for pattern in EXCLUDED_FILE_PATTERNS):
                continue
            files.append((Path(dirpath) / name).relative_to(root).as_posix())

    return files


def read_source(cwd: str, file_path: str) -> str:
    return (Path(cwd) / file_path).read_text(encoding="utf-8")


def search_files(files: List[str], pattern: "re.Pattern[str]", cwd: str) -> List[FileMatch]:
    """Every line matching pattern, in file order. Unreadable files are skipped."""
    matches: List[FileMatch] = []

    for file_path in files:
        try:
            content = read_source(cwd, file_path)
        except (OSError, UnicodeDecodeError) as e:
            logger.debug("[ui-agent] Skipping unreadable file %s: %s", file_path, e)
            continue

        for index, line in enumerate(content.split("\n")):
            if pattern.search(line):
                matches.append(FileMatch(
                    file_path=file_path,
                    line_number=index + 1,
                    line_content=line.strip(),
                ))

    return matches


def extract_code_snippet(file_path: str, match_line: int, cwd: str,
                         context_lines: int = SNIPPET_CONTEXT_LINES) -> Optional[CodeSnippet]:
    """
    Lines [match_line - context_lines, match_line + context_lines], clipped
    to the file. Returns None if the file cannot be read.
    """
    try:
        content = read_source(cwd, file_path)
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("[ui-agent] Failed to extract code snippet from %s: %s", file_path, e)
        return None

    all_lines = [line.rstrip("\r") for line in content.split("\n")]
    if len(all_lines) > 1 and all_lines[-1] == "":
        all_lines.pop()  # trailing newline

    start_line = max(1, match_line - context_lines)
    end_line = min(len(all_lines), match_line + context_lines)

    lines = [
        CodeLine(line_number=n, content=all_lines[n - 1], is_match=n == match_line)
        for n in range(start_line, end_line + 1)
    ]
    return CodeSnippet(lines=lines, start_line=start_line, end_line=end_line, match_line=match_line)
