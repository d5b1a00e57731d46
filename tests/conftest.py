"""Pytest fixtures for reactree-intent tests."""

import os
import stat
from pathlib import Path

import pytest

from reactree_intent.audit import AuditLogger
from reactree_intent.runner import ClaudeRunner

AGENT_DESCRIPTOR = """---
name: file-finder
description: Locate files by pattern
---

# File Finder
"""

SKILL_DESCRIPTOR = """---
name: RSpec Testing Patterns
description: |
  RSpec conventions for models,
  requests and system specs.
---

# RSpec Testing Patterns
"""


def write_descriptor(path: Path, name: str | None, description: str = "") -> Path:
    """Write a descriptor file with optional name and a description block."""
    path.parent.mkdir(parents=True, exist_ok=True)
    lines = ["---"]
    if name is not None:
        lines.append(f"name: {name}")
    lines.append(f"description: {description}")
    lines.extend(["---", "", "Body text.", ""])
    path.write_text("\n".join(lines), encoding="utf-8")
    return path


@pytest.fixture
def plugin_dir(tmp_path: Path) -> Path:
    """Create a plugin directory with one agent and one skill descriptor."""
    root = tmp_path / "plugin"
    (root / "agents").mkdir(parents=True)
    (root / "agents" / "file-finder.md").write_text(AGENT_DESCRIPTOR, encoding="utf-8")

    skill_dir = root / "skills" / "rspec-testing-patterns"
    skill_dir.mkdir(parents=True)
    (skill_dir / "SKILL.md").write_text(SKILL_DESCRIPTOR, encoding="utf-8")
    return root


@pytest.fixture
def cache_file(tmp_path: Path) -> Path:
    """Return a temporary manifest cache path (not created)."""
    return tmp_path / "cache" / "intent-manifests.json"


@pytest.fixture
def audit_log(tmp_path: Path) -> Path:
    """Return a temporary audit log path."""
    return tmp_path / "audit.log"


@pytest.fixture
def audit(audit_log: Path) -> AuditLogger:
    """Return an AuditLogger writing to a temporary file."""
    return AuditLogger(audit_log)


@pytest.fixture
def stub_claude(tmp_path: Path, monkeypatch):
    """Factory installing a fake ``claude`` executable first on PATH.

    The stub appends one line per invocation to ``calls.log`` in its bin
    directory, prints ``output`` and exits with ``exit_code``. ``sleep``
    makes it hang before printing. ``detached_sleep`` starts a background
    sleeper in its own session that keeps stdout open after a group kill.

    Returns the bin directory.
    """
    bin_dir = tmp_path / "bin"

    def install(output: str = "", exit_code: int = 0, sleep: int = 0, detached_sleep: int = 0) -> Path:
        bin_dir.mkdir(exist_ok=True)
        output_file = bin_dir / "output.txt"
        output_file.write_text(output, encoding="utf-8")
        script = [
            "#!/bin/sh",
            f'echo call >> "{bin_dir / "calls.log"}"',
        ]
        if detached_sleep:
            script.append(f"setsid sleep {detached_sleep} &")
        if sleep:
            script.append(f"sleep {sleep}")
        script.append(f'cat "{output_file}"')
        script.append(f"exit {exit_code}")

        stub = bin_dir / "claude"
        stub.write_text("\n".join(script) + "\n", encoding="utf-8")
        stub.chmod(stub.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        monkeypatch.setenv("PATH", f"{bin_dir}{os.pathsep}{os.environ.get('PATH', '')}")
        return bin_dir

    return install


@pytest.fixture
def no_claude(tmp_path: Path, monkeypatch) -> Path:
    """Put only an empty directory on PATH so no ``claude`` can be found."""
    empty = tmp_path / "empty-bin"
    empty.mkdir()
    monkeypatch.setenv("PATH", str(empty))
    return empty


def stub_calls(bin_dir: Path) -> list[str]:
    """Invocations recorded by the stub CLI."""
    calls_file = bin_dir / "calls.log"
    if not calls_file.exists():
        return []
    return calls_file.read_text(encoding="utf-8").splitlines()


class RecordingRunner(ClaudeRunner):
    """ClaudeRunner that counts run() calls and returns a canned response."""

    def __init__(self, available: bool = True, exit_code: int = 0, output: str = ""):
        super().__init__()
        self.available = available
        self.exit_code = exit_code
        self.output = output
        self.prompts: list[str] = []

    def is_available(self) -> bool:
        return self.available

    def run(self, prompt: str):
        self.prompts.append(prompt)
        return self.exit_code, self.output, {"timeout": False, "exit_code": self.exit_code, "duration_ms": 1}
