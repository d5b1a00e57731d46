"""Line-oriented frontmatter field extraction for agent/skill descriptor files.

Only the subset of YAML that descriptor files actually use is understood:

    ---
    name: file-finder
    description: |
      Locate files by pattern,
      name or content.
    ---

A field is either an inline scalar (optionally quoted) or a block value: an
indicator (``|``, ``>``, their chomping variants, or nothing at all) followed
by lines indented deeper than the field, joined with single spaces. The
block ends at the first non-indented line or at the closing ``---``.
"""

from enum import Enum
from pathlib import Path

from .config import FIELD_READ_LIMIT

DELIMITER = "---"
BLOCK_INDICATORS = frozenset({"", "|", ">", "|-", ">-", "|+", ">+"})
QUOTES = ("'", '"')


class ParseState(Enum):
    BEFORE_FRONTMATTER = "before-frontmatter"
    SCANNING_FIELDS = "in-frontmatter-scanning-fields"
    IN_MULTILINE_VALUE = "in-multiline-value"
    DONE = "done"


def _strip_quotes(value: str) -> str:
    if value[:1] in QUOTES:
        value = value[1:]
    if value[-1:] in QUOTES:
        value = value[:-1]
    return value


class FieldScanner:
    """State machine extracting a single top-level field.

    A field that appears more than once keeps its last value.
    """

    def __init__(self, field: str, *, allow_block: bool = True) -> None:
        self.field = field
        self.allow_block = allow_block
        self.state = ParseState.BEFORE_FRONTMATTER
        self.value = ""
        self._block: list[str] = []

    def feed(self, line: str) -> None:
        """Advance the scanner by one line (without its newline)."""
        if self.state is ParseState.DONE:
            return

        if line.rstrip() == DELIMITER:
            if self.state is ParseState.BEFORE_FRONTMATTER:
                self.state = ParseState.SCANNING_FIELDS
            else:
                self._close_block()
                self.state = ParseState.DONE
            return

        if self.state is ParseState.BEFORE_FRONTMATTER:
            return

        if self.state is ParseState.IN_MULTILINE_VALUE:
            if not line.strip():
                return
            if line[0] in " \t":
                self._block.append(line.strip())
                return
            # Dedent: the block is over, this line is a new field.
            self._close_block()

        self._scan_field(line)

    def finish(self) -> str:
        """Return the extracted value; an unterminated frontmatter runs to EOF."""
        self._close_block()
        self.state = ParseState.DONE
        return self.value[:FIELD_READ_LIMIT]

    def _scan_field(self, line: str) -> None:
        prefix = f"{self.field}:"
        if not line.startswith(prefix):
            return
        value = line[len(prefix):].strip()
        if self.allow_block and value in BLOCK_INDICATORS:
            self._block = []
            self.state = ParseState.IN_MULTILINE_VALUE
        else:
            self.value = _strip_quotes(value)

    def _close_block(self) -> None:
        if self.state is ParseState.IN_MULTILINE_VALUE:
            self.value = " ".join(self._block)
            self._block = []
            self.state = ParseState.SCANNING_FIELDS


def extract_field(text: str, field: str, *, allow_block: bool = True) -> str:
    """Extract ``field`` from the frontmatter of ``text``; "" when absent."""
    scanner = FieldScanner(field, allow_block=allow_block)
    for line in text.splitlines():
        scanner.feed(line)
        if scanner.state is ParseState.DONE:
            break
    return scanner.finish()


def read_field(path: Path, field: str, *, allow_block: bool = True) -> str:
    """Read ``path`` and extract ``field``.

    Raises:
        OSError: If the file cannot be read.
        UnicodeDecodeError: If the file is not UTF-8.
    """
    return extract_field(path.read_text(encoding="utf-8"), field, allow_block=allow_block)
