"""On-disk manifest cache with an mtime-based TTL."""

import json
import os
import tempfile
import time
from pathlib import Path

from .config import CACHE_FILE, CACHE_TTL
from .validators.schemas import validate_manifest


class ManifestCache:
    """Single-file cache for the combined manifest.

    Validity is re-checked on every read: the file must exist and be younger
    than ``ttl`` seconds by its modification time. Writes go through a
    temporary file and an atomic rename, so concurrent hook invocations never
    observe a half-written manifest; the last writer wins.
    """

    def __init__(self, cache_path: Path | None = None, ttl: int = CACHE_TTL) -> None:
        self.cache_path = cache_path or CACHE_FILE
        self.ttl = ttl

    def age(self, now: float | None = None) -> float | None:
        """Seconds since the cache file was last written, or None if missing or unreadable."""
        try:
            mtime = self.cache_path.stat().st_mtime
        except OSError:
            return None
        current = time.time() if now is None else now
        return current - mtime

    def is_valid(self, now: float | None = None) -> bool:
        age = self.age(now)
        return age is not None and age < self.ttl

    def read(self, now: float | None = None) -> str | None:
        """Return the cached manifest text, or None on miss, expiry or corruption."""
        if not self.is_valid(now):
            return None
        try:
            content = self.cache_path.read_text(encoding="utf-8")
            ok, _ = validate_manifest(json.loads(content))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError):
            return None
        return content.rstrip("\n") if ok else None

    def write(self, content: str) -> None:
        """Atomically replace the cache file.

        Raises:
            OSError: If the directory cannot be created or the file written.
        """
        self.cache_path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.cache_path.name}.", dir=self.cache_path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
                if not content.endswith("\n"):
                    f.write("\n")
            os.replace(tmp_name, self.cache_path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def invalidate(self) -> bool:
        """Delete the cache file. Returns True if a file was removed."""
        try:
            self.cache_path.unlink()
        except FileNotFoundError:
            return False
        return True
