"""
Cancellable wrapper around an external agent process.

spawn() starts the process in its own session with stdin closed and
stdout/stderr piped. run(timeout) waits for it; on timeout it cancels:
SIGTERM to the whole process group first, SIGKILL after a grace period if
anything in the group is still alive. Agent CLIs are often launchers whose
children inherit the pipes, so signalling only the direct child is not
enough.
"""
import logging
import os
import signal
import subprocess
import threading
import time
from dataclasses import dataclass
from typing import List, Optional


logger = logging.getLogger(__name__)

DEFAULT_KILL_GRACE = 5.0
# Extra wait for the pipes to close after SIGKILL before giving up on them
REAP_MARGIN = 5.0


@dataclass
class AgentRun:
    """Outcome of a finished (or killed) agent process."""
    exit_code: Optional[int]
    stdout: str
    stderr: str
    timed_out: bool
    cancelled: bool
    elapsed: float


def _as_text(data) -> str:
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return data


class AgentTask:
    """
    A running agent process.

    Use AgentTask.spawn(); construction does not start anything.
    """

    def __init__(self, args: List[str], cwd: str, kill_grace: float = DEFAULT_KILL_GRACE):
        self.args = args
        self.cwd = cwd
        self.kill_grace = kill_grace
        self._process: Optional[subprocess.Popen] = None
        self._kill_timer: Optional[threading.Timer] = None
        self._cancelled = False
        self._started_at = 0.0

    @classmethod
    def spawn(cls, args: List[str], cwd: str, kill_grace: float = DEFAULT_KILL_GRACE) -> "AgentTask":
        """Start the process. Raises OSError if it cannot be spawned."""
        task = cls(args, cwd, kill_grace)
        task._started_at = time.monotonic()
        task._process = subprocess.Popen(
            args,
            cwd=cwd,
            env=os.environ.copy(),
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
            start_new_session=True,  # pgid == pid, so the group can be signalled
        )
        return task

    @property
    def pid(self) -> Optional[int]:
        return self._process.pid if self._process else None

    @property
    def running(self) -> bool:
        return self._process is not None and self._process.poll() is None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def _signal_group(self, sig: int) -> bool:
        """Send sig to the agent's process group. False if the group is gone."""
        if not hasattr(os, "killpg"):
            # no process groups: only the direct child can be reached
            if not self.running:
                return False
            if sig == signal.SIGTERM:
                self._process.terminate()
            else:
                self._process.kill()
            return True
        try:
            os.killpg(self._process.pid, sig)
        except ProcessLookupError:
            return False
        return True

    def _group_alive(self) -> bool:
        if not hasattr(os, "killpg"):
            return self.running
        try:
            os.killpg(self._process.pid, 0)
        except ProcessLookupError:
            return False
        return True

    def cancel(self) -> None:
        """Send SIGTERM to the group now and schedule SIGKILL after the grace period."""
        if self._process is None or self._cancelled:
            return
        self._cancelled = True
        logger.warning("[ui-agent] Terminating agent process group %s", self.pid)
        if not self._signal_group(signal.SIGTERM):
            return

        self._kill_timer = threading.Timer(self.kill_grace, self._force_kill)
        self._kill_timer.daemon = True
        self._kill_timer.start()

    def _force_kill(self) -> None:
        if self._signal_group(getattr(signal, "SIGKILL", signal.SIGTERM)):
            logger.warning("[ui-agent] Force killed agent process group %s (SIGKILL)", self.pid)

    def _collect_after_kill(self):
        """Output gathered once the group is signalled; partial if the pipes never close."""
        try:
            return self._process.communicate(timeout=self.kill_grace + REAP_MARGIN)
        except subprocess.TimeoutExpired as e:
            # a descendant outside the group still holds the pipes
            logger.error("[ui-agent] Agent process %s pipes still open after kill; abandoning them", self.pid)
            for pipe in (self._process.stdout, self._process.stderr):
                if pipe is not None:
                    pipe.close()
            self._process.poll()
            return _as_text(e.stdout), _as_text(e.stderr)

    def run(self, timeout: Optional[float]) -> AgentRun:
        """Wait for exit, cancelling the process if timeout (seconds) passes first."""
        if self._process is None:
            raise RuntimeError("AgentTask.run() called before spawn()")

        timed_out = False
        try:
            stdout, stderr = self._process.communicate(timeout=timeout)
        except subprocess.TimeoutExpired:
            timed_out = True
            logger.warning("[ui-agent] Agent process %s timed out after %ss", self.pid, timeout)
            self.cancel()
            stdout, stderr = self._collect_after_kill()
        finally:
            if self._kill_timer is not None and not self._group_alive():
                self._kill_timer.cancel()

        return AgentRun(
            exit_code=self._process.returncode,
            stdout=_as_text(stdout),
            stderr=_as_text(stderr),
            timed_out=timed_out,
            cancelled=self._cancelled,
            elapsed=time.monotonic() - self._started_at,
        )
