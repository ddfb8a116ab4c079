"""Kind-to-example and kind-to-label mappings used in generated documents."""

from __future__ import annotations

from typing import Any

from protoc_apidoc.models import Field, Kind

INTEGER_KINDS = {
    Kind.INT32, Kind.SINT32, Kind.UINT32,
    Kind.INT64, Kind.SINT64, Kind.UINT64,
}

FLOATING_KINDS = {
    Kind.FIXED32, Kind.SFIXED32, Kind.FLOAT,
    Kind.FIXED64, Kind.SFIXED64, Kind.DOUBLE,
}

STRING_KINDS = {Kind.STRING, Kind.BYTES}


def placeholder(kind: Kind) -> Any:
    """Return the zero-value example for a scalar kind.

    Message and group kinds have no scalar placeholder; their examples are
    built by protoc_apidoc.example.synthesize.
    """
    if kind.is_message:
        raise ValueError(f"Kind '{kind.value}' has no scalar placeholder")
    if kind == Kind.BOOL:
        return False
    if kind == Kind.ENUM:
        return 0
    if kind in INTEGER_KINDS:
        return 0
    if kind in FLOATING_KINDS:
        return 0.0
    if kind in STRING_KINDS:
        return ""
    return {}


def kind_label(field: Field) -> str:
    """Type column text for a field: 'array' for list fields, else the kind name."""
    if field.is_list:
        return "array"
    return field.kind.value
