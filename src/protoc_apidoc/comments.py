from __future__ import annotations

from protoc_apidoc.models import CommentSet

# Comment markers and whitespace trimmed from both ends of comment text.
_TRIM_CHARS = "/ \t\r\n"


def compact_comment(comments: CommentSet) -> str:
    """Collapse a field's comments into a single line for a table cell.

    Leading comment lines are trimmed and joined with single spaces; the
    trimmed trailing comment is appended directly after them.
    """
    text = comments.leading.strip(_TRIM_CHARS)
    lines = [line.strip(_TRIM_CHARS) for line in text.split("\n")]
    compact = " ".join(lines)
    compact += comments.trailing.strip(_TRIM_CHARS)
    return compact
