"""runner.py - Claude CLI subprocess runner with a hard wall-clock deadline.

The CLI is LLM-backed and its latency is unbounded, so every call:
- runs the child in its own session (its own process group)
- waits at most ``timeout`` seconds for it to exit
- on expiry kills the whole process group, then reaps the child without
  waiting on pipes held open by detached descendants
"""
import os
import shutil
import signal
import subprocess
import time
from typing import Any

from .config import CLAUDE_BINARY, CLAUDE_TIMEOUT, TIMEOUT_EXIT_CODE

# Process groups exist only on POSIX hosts.
_HAS_PROCESS_GROUPS = hasattr(os, "killpg")

# Seconds to wait for the output pipe to close after a kill.
KILL_GRACE = 1


class ClaudeRunner:
    """Runs ``claude -p <prompt> --output-format json`` with a timeout."""

    def __init__(
        self,
        binary: str = CLAUDE_BINARY,
        timeout: float = CLAUDE_TIMEOUT,
        model: str | None = None,
    ):
        """Initialize the runner.

        Args:
            binary: Executable name (resolved on PATH) or path
            timeout: Maximum wall-clock seconds per call
            model: Optional --model argument
        """
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        self.binary = binary
        self.timeout = timeout
        self.model = model

    def resolve(self) -> str | None:
        """Absolute path of the CLI on PATH, or None."""
        return shutil.which(self.binary)

    def is_available(self) -> bool:
        """Check whether the CLI can be found on PATH. No side effects."""
        return self.resolve() is not None

    def build_command(self, prompt: str) -> list[str]:
        executable = self.resolve() or self.binary
        command = [executable, "-p", prompt, "--output-format", "json"]
        if self.model:
            command.extend(["--model", self.model])
        return command

    def run(self, prompt: str) -> tuple[int, str, dict[str, Any]]:
        """Run the CLI once.

        Args:
            prompt: Full prompt text passed to -p

        Returns:
            Tuple of (exit_code, stdout, metrics)
            - exit_code: child exit status; TIMEOUT_EXIT_CODE on deadline expiry
            - stdout: decoded standard output ("" on timeout)
            - metrics: Dict with exit_code, duration_ms and timeout flag

        Raises:
            OSError: If the executable cannot be started.
        """
        start_time = time.monotonic()
        metrics: dict[str, Any] = {"timeout": False}

        process = subprocess.Popen(
            self.build_command(prompt),
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            start_new_session=_HAS_PROCESS_GROUPS,
        )
        try:
            stdout_bytes, _ = process.communicate(timeout=self.timeout)
            exit_code = process.returncode
            stdout = stdout_bytes.decode("utf-8", errors="replace")
        except subprocess.TimeoutExpired:
            # The group may still hold the pipe even if the leader exited.
            metrics["timeout"] = True
            self._kill(process)
            try:
                process.communicate(timeout=KILL_GRACE)
            except subprocess.TimeoutExpired:
                # A descendant outside the group still holds the pipe.
                if process.stdout:
                    process.stdout.close()
                process.wait()
            exit_code = TIMEOUT_EXIT_CODE
            stdout = ""
        finally:
            if process.poll() is None:
                self._kill(process)
                process.wait()

        metrics["exit_code"] = exit_code
        metrics["duration_ms"] = int((time.monotonic() - start_time) * 1000)
        return exit_code, stdout, metrics

    @staticmethod
    def _kill(process: subprocess.Popen) -> None:
        if _HAS_PROCESS_GROUPS:
            try:
                os.killpg(process.pid, signal.SIGKILL)
                return
            except ProcessLookupError:
                return
            except PermissionError:
                pass
        process.kill()
