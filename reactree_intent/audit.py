"""Audit logging for manifest generation and intent analysis."""

import warnings
from datetime import datetime, timezone
from pathlib import Path

from .config import AUDIT_LOG_FILE


class AuditLogger:
    """Appends pipeline events to an audit file.

    Log format: ISO8601_TIMESTAMP [OPERATION] key1=value1 key2=value2
    Example: 2026-10-18T10:00:00Z [CLAUDE_CALL] exit_code=0 duration_ms=2310

    Operations: MANIFEST_CACHE_HIT, MANIFEST_CACHE_INVALID, MANIFEST_GENERATED,
    MANIFEST_INVALIDATED, CLAUDE_CALL, ANALYSIS_OK, ANALYSIS_FAILED, HOOK_SUGGESTION
    """

    def __init__(self, log_path: Path | None = None) -> None:
        self.log_path = log_path or AUDIT_LOG_FILE

    def log(self, operation: str, **kwargs: str | int | float | bool | None) -> None:
        """Append an audit log entry.

        Values containing spaces are quoted; None values are omitted. A log
        that cannot be written is reported as a warning, never raised: the
        audit trail must not break the hook it observes.
        """
        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")

        pairs = []
        for key, value in kwargs.items():
            if value is None:
                continue
            str_value = str(value).replace("\n", " ")
            if " " in str_value:
                str_value = f'"{str_value}"'
            pairs.append(f"{key}={str_value}")

        kv_string = " ".join(pairs)
        if kv_string:
            log_line = f"{timestamp} [{operation}] {kv_string}\n"
        else:
            log_line = f"{timestamp} [{operation}]\n"

        try:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.log_path, "a", encoding="utf-8") as f:
                f.write(log_line)
        except OSError as e:
            warnings.warn(f"Audit log unavailable ({self.log_path}): {e}", RuntimeWarning, stacklevel=2)
