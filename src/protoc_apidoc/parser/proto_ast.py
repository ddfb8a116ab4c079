"""AST node definitions for protobuf (.proto) files."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass
class ProtoField:
    """A field declaration: [label] Type name = number [options];

    Map fields carry their key and value type names. Group fields carry the
    group body as a nested message of the same name as type_name.
    """

    type_name: str
    field_name: str
    is_repeated: bool = False
    key_type: Optional[str] = None
    is_group: bool = False
    options: Dict[str, str] = field(default_factory=dict)
    leading_comments: str = ""
    trailing_comments: str = ""

    @property
    def is_map(self) -> bool:
        return self.key_type is not None


@dataclass
class ProtoEnum:
    """An enum definition; only its name matters for type resolution."""

    name: str


@dataclass
class ProtoMessage:
    """A message definition, possibly containing nested messages and enums."""

    name: str
    fields: List[ProtoField] = field(default_factory=list)
    nested_messages: List[ProtoMessage] = field(default_factory=list)
    nested_enums: List[ProtoEnum] = field(default_factory=list)


@dataclass
class ProtoHttpRule:
    """Body of an `option (google.api.http) = {...}` method option."""

    pattern: str
    path: str = ""
    body: str = ""


@dataclass
class ProtoRpc:
    """An rpc declaration: rpc Name ([stream] In) returns ([stream] Out)."""

    name: str
    input_type: str
    output_type: str
    client_streaming: bool = False
    server_streaming: bool = False
    http_rule: Optional[ProtoHttpRule] = None
    leading_comments: str = ""
    trailing_comments: str = ""


@dataclass
class ProtoService:
    name: str
    rpcs: List[ProtoRpc] = field(default_factory=list)


@dataclass
class ProtoFile:
    """Top-level parsed representation of a .proto file."""

    package: Optional[str] = None
    messages: List[ProtoMessage] = field(default_factory=list)
    enums: List[ProtoEnum] = field(default_factory=list)
    services: List[ProtoService] = field(default_factory=list)
