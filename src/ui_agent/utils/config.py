"""
Settings loader for the UI-Agent backend.
Reads a .env file (if present) and UI_AGENT_* environment variables.
"""
import os
from dataclasses import dataclass, field
from typing import Optional
from dotenv import load_dotenv, find_dotenv


DEFAULTS = {
    "host": "127.0.0.1",
    "port": 4000,
    "agent_command": "cursor-agent",
    "agent_model": "auto",
    "submit_timeout": 120.0,
    "resolve_timeout": 60.0,
    "kill_grace": 5.0,
    "log_level": "INFO",
}


@dataclass
class Settings:
    cwd: str = field(default_factory=os.getcwd)
    host: str = DEFAULTS["host"]
    port: int = DEFAULTS["port"]
    agent_command: str = DEFAULTS["agent_command"]
    agent_model: str = DEFAULTS["agent_model"]
    submit_timeout: float = DEFAULTS["submit_timeout"]
    resolve_timeout: float = DEFAULTS["resolve_timeout"]
    kill_grace: float = DEFAULTS["kill_grace"]
    log_level: str = DEFAULTS["log_level"]


def _number(name: str, default, cast):
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")


def load_settings(env_file: Optional[str] = None) -> Settings:
    """
    Build Settings from the environment.

    Args:
        env_file: Optional explicit .env path. Without it, the nearest
            .env above the current directory is used.
    """
    load_dotenv(dotenv_path=env_file or find_dotenv(usecwd=True))

    return Settings(
        cwd=os.getenv("UI_AGENT_CWD") or os.getcwd(),
        host=os.getenv("UI_AGENT_HOST", DEFAULTS["host"]),
        port=_number("PORT", DEFAULTS["port"], int),
        agent_command=os.getenv("UI_AGENT_COMMAND", DEFAULTS["agent_command"]),
        agent_model=os.getenv("UI_AGENT_MODEL", DEFAULTS["agent_model"]),
        submit_timeout=_number("UI_AGENT_TIMEOUT", DEFAULTS["submit_timeout"], float),
        resolve_timeout=_number("UI_AGENT_RESOLVE_TIMEOUT", DEFAULTS["resolve_timeout"], float),
        kill_grace=_number("UI_AGENT_KILL_GRACE", DEFAULTS["kill_grace"], float),
        log_level=os.getenv("UI_AGENT_LOG_LEVEL", DEFAULTS["log_level"]).upper(),
    )
