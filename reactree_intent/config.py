"""Shared constants and default locations."""

import os
from pathlib import Path

TOOL_NAME = "reactree-rails-dev"

# Manifest cache
CACHE_DIR = Path.home() / ".cache" / TOOL_NAME
CACHE_FILE = CACHE_DIR / "intent-manifests.json"
AUDIT_LOG_FILE = CACHE_DIR / "intent-audit.log"
CACHE_TTL = 300  # seconds

# Per-category description budgets (bytes)
AGENT_DESCRIPTION_LIMIT = 200
SKILL_DESCRIPTION_LIMIT = 300
# Raw frontmatter value cap before cleanup
FIELD_READ_LIMIT = 500

# Claude CLI
CLAUDE_BINARY = "claude"
CLAUDE_TIMEOUT = 10  # seconds
TIMEOUT_EXIT_CODE = 124  # what GNU timeout(1) reports
RAW_OUTPUT_LIMIT = 200

CONFIDENCE_THRESHOLD = 0.6

# Project-local hook settings, relative to the project directory
SETTINGS_FILE = Path(".claude") / f"{TOOL_NAME}.local.md"


def default_plugin_dir() -> Path:
    """Plugin root holding agents/ and skills/.

    The host exports CLAUDE_PLUGIN_ROOT to hook processes; outside a hook the
    current directory is used.
    """
    root = os.environ.get("CLAUDE_PLUGIN_ROOT")
    return Path(root) if root else Path.cwd()
