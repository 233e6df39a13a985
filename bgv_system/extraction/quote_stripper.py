"""Reply-boundary detection for inbound email bodies.

HR replies usually carry our original request underneath, and that request
contains the applicant's claimed values with the very labels the extractor
looks for. Everything from the first reply boundary onward is discarded
before any field is read.

Recognized boundaries:
- an attribution line ending in "wrote:" ("On Mon, 1 Jan 2024, HR <hr@x.com> wrote:")
- an "Original Message" delimiter ("-----Original Message-----")
- a horizontal rule of at least ten underscores (Outlook)
- any line starting with ">"
"""

import re
from dataclasses import dataclass
from typing import Optional

_WROTE_LINE = re.compile(r"\bwrote:\s*$", re.IGNORECASE)
_ORIGINAL_MESSAGE = re.compile(r"^\s*-*\s*original message\s*-*\s*$", re.IGNORECASE)
_UNDERSCORE_RULE = re.compile(r"^\s*_{10,}\s*$")
_QUOTE_PREFIX = re.compile(r"^\s*>")


@dataclass(frozen=True)
class StrippedText:
    """Result of splitting a body at its first reply boundary."""

    retained: str
    quoted: str
    boundary_line: Optional[int]

    @property
    def had_quote(self) -> bool:
        return self.boundary_line is not None


def is_quote_line(line: str) -> bool:
    """True for lines carrying a ">" quote prefix."""
    return bool(_QUOTE_PREFIX.match(line))


def is_boundary(line: str) -> bool:
    """True when a line marks the start of quoted history."""
    return bool(
        _WROTE_LINE.search(line)
        or _ORIGINAL_MESSAGE.match(line)
        or _UNDERSCORE_RULE.match(line)
        or is_quote_line(line)
    )


def find_boundary(lines: list[str]) -> Optional[int]:
    """Index of the first boundary line, or None."""
    for index, line in enumerate(lines):
        if is_boundary(line):
            return index
    return None


def split_reply(text: Optional[str]) -> StrippedText:
    """
    Split a plain-text body into new content and quoted history.

    Args:
        text: Raw body (any line endings)

    Returns:
        StrippedText; retained is the whole body when no boundary exists
    """
    lines = (text or "").replace("\r\n", "\n").replace("\r", "\n").split("\n")
    boundary = find_boundary(lines)
    if boundary is None:
        return StrippedText(retained="\n".join(lines).strip(), quoted="", boundary_line=None)

    return StrippedText(
        retained="\n".join(lines[:boundary]).strip(),
        quoted="\n".join(lines[boundary:]),
        boundary_line=boundary,
    )


def strip_quoted(text: Optional[str]) -> str:
    """Body text before the first reply boundary."""
    return split_reply(text).retained
