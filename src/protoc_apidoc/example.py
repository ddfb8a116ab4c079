"""Build example JSON payloads from message definitions."""

from __future__ import annotations

from typing import Any, Dict, List

from protoc_apidoc.errors import RecursiveSchemaError
from protoc_apidoc.models import Field, Message
from protoc_apidoc.placeholder import placeholder


def synthesize(message: Message) -> Dict[str, Any]:
    """Return an example value tree for a message, keyed by JSON field name.

    Keys follow field declaration order. A field typed as its own enclosing
    message becomes an empty list or mapping; any other re-entry of a
    message already being expanded raises RecursiveSchemaError.
    """
    return _message_example(message, [])


def _message_example(message: Message, chain: List[str]) -> Dict[str, Any]:
    if message.full_name in chain:
        cycle = chain[chain.index(message.full_name):] + [message.full_name]
        raise RecursiveSchemaError(cycle)
    chain = chain + [message.full_name]

    example: Dict[str, Any] = {}
    for f in message.fields:
        if f.message is not None and f.message.full_name == message.full_name:
            value: Any = [] if f.is_list else {}
        elif f.is_list:
            value = [_field_example(f, chain)]
        elif f.is_map:
            # Map entries are documented by the field table only.
            value = {}
        else:
            value = _field_example(f, chain)
        example[f.json_name] = value
    return example


def _field_example(f: Field, chain: List[str]) -> Any:
    if f.kind.is_message:
        if f.message is None:
            return {}
        return _message_example(f.message, chain)
    return placeholder(f.kind)
