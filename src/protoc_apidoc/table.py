"""Flatten message fields into rows of a Markdown field table."""

from __future__ import annotations

from typing import List, NamedTuple

from protoc_apidoc.comments import compact_comment
from protoc_apidoc.errors import RecursiveSchemaError
from protoc_apidoc.models import Message
from protoc_apidoc.placeholder import kind_label

NESTING_MARKER = ">"


class FieldRow(NamedTuple):
    name: str
    kind: str
    description: str


def flatten(message: Message) -> List[FieldRow]:
    """Return one row per field, nested message fields following their parent.

    Nested rows are named '<markers> <parent>.<child>' with one marker per
    nesting level. A field typed as its declaring message is listed but not
    expanded.
    """
    rows: List[FieldRow] = []
    _flatten_fields(rows, message, 0, "", [message.full_name])
    return rows


def _flatten_fields(
    rows: List[FieldRow],
    message: Message,
    depth: int,
    parent_name: str,
    chain: List[str],
) -> None:
    for f in message.fields:
        name = f.json_name
        if depth > 0:
            name = f"{NESTING_MARKER * depth} {parent_name}.{f.json_name}"
        rows.append(FieldRow(name, kind_label(f), compact_comment(f.comments)))

        parent = f.parent if f.parent is not None else message
        if f.message is None or f.message.full_name == parent.full_name:
            continue
        if f.message.full_name in chain:
            start = chain.index(f.message.full_name)
            raise RecursiveSchemaError(chain[start:] + [f.message.full_name])
        _flatten_fields(
            rows,
            f.message,
            depth + 1,
            f.json_name,
            chain + [f.message.full_name],
        )
