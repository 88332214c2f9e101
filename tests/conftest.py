"""
Shared fixtures: throwaway source trees and fake agent executables.
"""
import os
import stat
import sys
import textwrap
from pathlib import Path

import pytest


def write_tree(root: Path, files: dict) -> Path:
    """Create files under root from a {relative path: content} map."""
    for rel_path, content in files.items():
        path = root / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def project(tmp_path):
    """Factory for a project directory populated with source files."""
    def make(files: dict) -> str:
        root = tmp_path / "project"
        root.mkdir(exist_ok=True)
        write_tree(root, files)
        return str(root)
    return make


@pytest.fixture
def fake_agent(tmp_path):
    """
    Factory for an executable standing in for the agent CLI.

    The body is Python; a /bin/sh wrapper runs it with the current
    interpreter so no shebang length limits apply.
    """
    if sys.platform == "win32":
        pytest.skip("fake agent executables need a POSIX shell")

    def make(body: str, name: str = "agent") -> str:
        script = tmp_path / f"{name}.py"
        script.write_text(textwrap.dedent(body), encoding="utf-8")
        wrapper = tmp_path / name
        wrapper.write_text(f'#!/bin/sh\nexec "{sys.executable}" "{script}" "$@"\n', encoding="utf-8")
        wrapper.chmod(wrapper.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return str(wrapper)
    return make


@pytest.fixture
def shell_agent(tmp_path):
    """
    Factory for a plain /bin/sh agent. Unlike fake_agent there is no exec,
    so the commands run as children of the shell and share its pipes.
    """
    if sys.platform == "win32":
        pytest.skip("shell agents need a POSIX shell")

    def make(body: str, name: str = "launcher") -> str:
        script = tmp_path / name
        script.write_text("#!/bin/sh\n" + textwrap.dedent(body).lstrip(), encoding="utf-8")
        script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return str(script)
    return make


@pytest.fixture(autouse=True)
def clean_agent_env(monkeypatch):
    """Keep a developer's UI_AGENT_* settings out of the tests."""
    for name in list(os.environ):
        if name.startswith("UI_AGENT_") or name == "PORT":
            monkeypatch.delenv(name, raising=False)
