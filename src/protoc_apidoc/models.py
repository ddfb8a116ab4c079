from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class Kind(Enum):
    """Protobuf field kinds, valued by their protobuf names."""

    DOUBLE = "double"
    FLOAT = "float"
    INT64 = "int64"
    UINT64 = "uint64"
    INT32 = "int32"
    FIXED64 = "fixed64"
    FIXED32 = "fixed32"
    BOOL = "bool"
    STRING = "string"
    GROUP = "group"
    MESSAGE = "message"
    BYTES = "bytes"
    UINT32 = "uint32"
    ENUM = "enum"
    SFIXED32 = "sfixed32"
    SFIXED64 = "sfixed64"
    SINT32 = "sint32"
    SINT64 = "sint64"

    @classmethod
    def from_type_number(cls, number: int) -> Kind:
        """Map a FieldDescriptorProto.Type number (1..18) to a Kind."""
        return _KINDS_BY_NUMBER[number]

    @classmethod
    def from_scalar_name(cls, name: str) -> Optional[Kind]:
        """Return the Kind for a scalar type keyword, or None for a type reference."""
        kind = _KINDS_BY_VALUE.get(name)
        if kind in (Kind.GROUP, Kind.MESSAGE, Kind.ENUM):
            return None
        return kind

    @property
    def is_message(self) -> bool:
        return self in (Kind.MESSAGE, Kind.GROUP)


# Declaration order of Kind matches the descriptor type numbers.
_KINDS_BY_NUMBER = {number: kind for number, kind in enumerate(Kind, start=1)}
_KINDS_BY_VALUE = {kind.value: kind for kind in Kind}


def to_json_name(name: str) -> str:
    """Default JSON name of a field: underscores removed, following letter upper-cased."""
    result = []
    capitalize_next = False
    for ch in name:
        if ch == "_":
            capitalize_next = True
        elif capitalize_next:
            result.append(ch.upper())
            capitalize_next = False
        else:
            result.append(ch)
    return "".join(result)


@dataclass
class CommentSet:
    """Raw comment text attached to a declaration, comment markers removed."""

    leading: str = ""
    trailing: str = ""


@dataclass(eq=False)
class Field:
    name: str
    json_name: str
    kind: Kind
    is_list: bool = False
    is_map: bool = False
    message: Optional[Message] = field(default=None, repr=False)
    parent: Optional[Message] = field(default=None, repr=False)
    comments: CommentSet = field(default_factory=CommentSet)


@dataclass(eq=False)
class Message:
    full_name: str
    fields: List[Field] = field(default_factory=list)
    is_map_entry: bool = False

    @property
    def name(self) -> str:
        return self.full_name.rsplit(".", 1)[-1]

    def add_field(self, f: Field) -> Field:
        f.parent = self
        self.fields.append(f)
        return f


@dataclass
class HttpRule:
    """A google.api.http binding: the pattern variant name and its path."""

    pattern: str
    path: str = ""
    body: str = ""


@dataclass(eq=False)
class Method:
    full_name: str
    name: str
    input: Message = field(repr=False)
    output: Message = field(repr=False)
    comments: CommentSet = field(default_factory=CommentSet)
    client_streaming: bool = False
    server_streaming: bool = False
    http_rule: Optional[HttpRule] = None

    @property
    def is_streaming(self) -> bool:
        return self.client_streaming or self.server_streaming


@dataclass(eq=False)
class Service:
    full_name: str
    methods: List[Method] = field(default_factory=list)


@dataclass(eq=False)
class ProtoFile:
    """One compilation unit: a .proto file and the services it declares."""

    name: str
    package: Optional[str] = None
    services: List[Service] = field(default_factory=list)

    @property
    def prefix(self) -> str:
        if self.name.endswith(".proto"):
            return self.name[: -len(".proto")]
        return self.name
