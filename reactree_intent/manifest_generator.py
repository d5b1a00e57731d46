"""Manifest Generator - summarize agent and skill descriptors for intent detection.

Flow:
1. Cache lookup (skipped with --refresh) -> cached manifest if younger than the TTL
2. Scan agents/*.md and skills/*/SKILL.md frontmatter for name + description
3. Collapse and truncate descriptions to the per-category budget
4. Write the combined manifest to the cache (best-effort)
5. Print the manifest
"""

import argparse
import json
import sys
import warnings
from datetime import datetime, timezone
from pathlib import Path

from .audit import AuditLogger
from .cache import ManifestCache
from .config import (
    AGENT_DESCRIPTION_LIMIT,
    CACHE_TTL,
    SKILL_DESCRIPTION_LIMIT,
    default_plugin_dir,
)
from .frontmatter import extract_field
from .models.manifest import Category, Manifest, ManifestEntry

SKILL_FILE = "SKILL.md"

DESCRIPTION_LIMITS: dict[str, int] = {
    "agent": AGENT_DESCRIPTION_LIMIT,
    "skill": SKILL_DESCRIPTION_LIMIT,
}


def _escaped_size(text: str) -> int:
    """UTF-8 size of ``text`` once escaped inside a JSON string."""
    return len(json.dumps(text, ensure_ascii=False)[1:-1].encode("utf-8"))


def clean_description(text: str, limit: int) -> str:
    """Collapse whitespace to single spaces and cut to ``limit`` bytes of escaped JSON.

    The budget counts the description as it appears in the manifest, so a
    quote or backslash costs two bytes. The cut never splits a character.
    """
    collapsed = " ".join(text.split())
    size = 0
    for index, char in enumerate(collapsed):
        size += _escaped_size(char)
        if size > limit:
            return collapsed[:index]
    return collapsed


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class ManifestGenerator:
    """Builds and caches the agent/skill manifest of a plugin directory."""

    def __init__(
        self,
        plugin_dir: Path | None = None,
        cache_path: Path | None = None,
        ttl: int = CACHE_TTL,
        audit: AuditLogger | None = None,
    ) -> None:
        self.plugin_dir = (plugin_dir or default_plugin_dir()).resolve()
        self.cache = ManifestCache(cache_path, ttl)
        self.audit = audit

    @property
    def agents_dir(self) -> Path:
        return self.plugin_dir / "agents"

    @property
    def skills_dir(self) -> Path:
        return self.plugin_dir / "skills"

    def descriptor_files(self, category: Category) -> list[Path]:
        """List descriptor files for a category.

        Agents are flat ``agents/*.md`` files; skills are ``skills/<dir>/SKILL.md``.

        Raises:
            ValueError: If the category is unknown.
            OSError: If a category directory exists but cannot be listed.
        """
        if category == "agent":
            if not self.agents_dir.is_dir():
                return []
            return sorted(p for p in self.agents_dir.glob("*.md") if p.is_file())
        if category == "skill":
            if not self.skills_dir.is_dir():
                return []
            return sorted(
                d / SKILL_FILE
                for d in self.skills_dir.iterdir()
                if d.is_dir() and (d / SKILL_FILE).is_file()
            )
        raise ValueError(f"Unknown category: {category}. Supported: agent, skill")

    def read_entry(self, path: Path, category: Category) -> ManifestEntry | None:
        """Summarize one descriptor file; None if it is unreadable or has no name."""
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            return None

        name = extract_field(text, "name", allow_block=False).strip()
        if not name:
            return None

        description = extract_field(text, "description")
        return ManifestEntry(
            name=name,
            category=category,
            description=clean_description(description, DESCRIPTION_LIMITS[category]),
        )

    def generate(self, category: Category) -> list[ManifestEntry]:
        """Summarize every descriptor of ``category``, skipping malformed files."""
        entries: list[ManifestEntry] = []
        for path in self.descriptor_files(category):
            entry = self.read_entry(path, category)
            if entry is not None:
                entries.append(entry)
        return entries

    def generate_json(self, category: Category) -> str:
        """Render ``generate(category)`` as a JSON array."""
        return json.dumps(
            [e.model_dump(mode="json", by_alias=True) for e in self.generate(category)],
            ensure_ascii=False,
        )

    def generate_combined(self) -> Manifest:
        """Build a fresh manifest; touches nothing on disk."""
        return Manifest(
            timestamp=utc_timestamp(),
            agents=self.generate("agent"),
            skills=self.generate("skill"),
        )

    def get_cached_or_generate(self, force_refresh: bool = False) -> str:
        """Return the manifest JSON, from the cache when it is still fresh.

        A fresh manifest is written back to the cache; a failed write is a
        warning, not an error.

        Raises:
            OSError: If a descriptor directory cannot be listed.
        """
        if not force_refresh:
            cached = self.cache.read()
            if cached is not None:
                if self.audit:
                    self.audit.log("MANIFEST_CACHE_HIT", path=str(self.cache.cache_path))
                return cached
            if self.audit and self.cache.is_valid():
                self.audit.log("MANIFEST_CACHE_INVALID", path=str(self.cache.cache_path))

        manifest = self.generate_combined()
        content = manifest.to_json()

        try:
            self.cache.write(content)
        except OSError as e:
            warnings.warn(
                f"Manifest cache not written ({self.cache.cache_path}): {e}",
                RuntimeWarning,
                stacklevel=2,
            )

        if self.audit:
            self.audit.log(
                "MANIFEST_GENERATED",
                agents=len(manifest.agents),
                skills=len(manifest.skills),
                refresh=force_refresh,
            )
        return content

    def invalidate(self) -> bool:
        removed = self.cache.invalidate()
        if self.audit:
            self.audit.log("MANIFEST_INVALIDATED", removed=removed)
        return removed


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for the manifest generator. Always exits 0."""
    parser = argparse.ArgumentParser(
        prog="reactree-manifest",
        description="Generate the agent/skill manifest used for intent detection",
    )
    parser.add_argument(
        "--refresh",
        "-r",
        action="store_true",
        help="Force regeneration, ignore cache",
    )
    parser.add_argument(
        "--invalidate",
        action="store_true",
        help="Delete the cached manifest and exit",
    )
    parser.add_argument(
        "--plugin-dir",
        help="Plugin directory containing agents/ and skills/ (default: $CLAUDE_PLUGIN_ROOT or cwd)",
    )
    parser.add_argument(
        "--cache-file",
        help="Path to the manifest cache file",
    )
    parser.add_argument(
        "--audit-log",
        help="Path to audit log file (optional)",
    )

    # Unknown options are ignored, matching the hook scripts that call this.
    args, _ = parser.parse_known_args(argv)

    generator = ManifestGenerator(
        plugin_dir=Path(args.plugin_dir) if args.plugin_dir else None,
        cache_path=Path(args.cache_file) if args.cache_file else None,
        audit=AuditLogger(Path(args.audit_log)) if args.audit_log else None,
    )

    if args.invalidate:
        generator.invalidate()
        return 0

    try:
        manifest = generator.get_cached_or_generate(force_refresh=args.refresh)
    except OSError as e:
        print(f"Manifest generation failed: {e}", file=sys.stderr)
        return 0

    print(manifest)
    return 0


if __name__ == "__main__":
    sys.exit(main())
