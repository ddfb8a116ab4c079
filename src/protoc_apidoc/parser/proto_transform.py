"""Transform proto AST nodes into the application's schema models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

from protoc_apidoc.models import (
    CommentSet,
    Field,
    HttpRule,
    Kind,
    Message,
    Method,
    ProtoFile,
    Service,
    to_json_name,
)

from .proto_ast import ProtoField, ProtoFile as ProtoFileNode, ProtoMessage, ProtoRpc, ProtoService


def _join(scope: str, name: str) -> str:
    return f"{scope}.{name}" if scope else name


def _map_entry_name(field_name: str) -> str:
    """protoc's map entry message name: field name in CamelCase plus 'Entry'."""
    camel = to_json_name(field_name)
    return camel[:1].upper() + camel[1:] + "Entry"


@dataclass
class TypeRegistry:
    """Messages and enums declared across every file parsed together, by full name."""

    messages: Dict[str, Message] = field(default_factory=dict)
    enums: Set[str] = field(default_factory=set)

    def resolve(self, type_name: str, scope: str) -> Tuple[Kind, Optional[Message]]:
        """Resolve a field type the way protoc does: innermost scope first.

        Scalar keywords map to their Kind. Names that match no declaration
        become field-less placeholder messages (e.g. imported well-known types).
        """
        scalar = Kind.from_scalar_name(type_name)
        if scalar is not None:
            return scalar, None

        if type_name.startswith("."):
            candidates = [type_name[1:]]
        else:
            parts = scope.split(".") if scope else []
            candidates = [
                _join(".".join(parts[:i]), type_name)
                for i in range(len(parts), -1, -1)
            ]

        for candidate in candidates:
            if candidate in self.messages:
                return Kind.MESSAGE, self.messages[candidate]
            if candidate in self.enums:
                return Kind.ENUM, None

        external = type_name.lstrip(".")
        message = self.messages.setdefault(external, Message(full_name=external))
        return Kind.MESSAGE, message


def transform_protos(nodes: List[Tuple[str, ProtoFileNode]]) -> List[ProtoFile]:
    """Transform parsed files into ProtoFile models, resolving types across all of them."""
    registry = TypeRegistry()
    declared: List[List[Tuple[str, ProtoMessage]]] = []
    for _, node in nodes:
        file_messages: List[Tuple[str, ProtoMessage]] = []
        for enum in node.enums:
            registry.enums.add(_join(node.package or "", enum.name))
        for msg_node in node.messages:
            _declare_message(registry, msg_node, node.package or "", file_messages)
        declared.append(file_messages)

    result: List[ProtoFile] = []
    for (file_name, node), file_messages in zip(nodes, declared):
        for full_name, msg_node in file_messages:
            _fill_fields(registry, registry.messages[full_name], msg_node)
        result.append(
            ProtoFile(
                name=file_name,
                package=node.package,
                services=[_transform_service(registry, svc, node.package or "") for svc in node.services],
            )
        )
    return result


def transform_proto(node: ProtoFileNode, file_name: str) -> ProtoFile:
    """Transform a single parsed file on its own."""
    return transform_protos([(file_name, node)])[0]


def _declare_message(
    registry: TypeRegistry,
    node: ProtoMessage,
    scope: str,
    out: List[Tuple[str, ProtoMessage]],
) -> None:
    """Register a message and its nested types; the parent is listed before its children."""
    full_name = _join(scope, node.name)
    registry.messages[full_name] = Message(full_name=full_name)
    out.append((full_name, node))
    for enum in node.nested_enums:
        registry.enums.add(_join(full_name, enum.name))
    for nested in node.nested_messages:
        _declare_message(registry, nested, full_name, out)


def _fill_fields(registry: TypeRegistry, message: Message, node: ProtoMessage) -> None:
    for f in node.fields:
        comments = CommentSet(leading=f.leading_comments, trailing=f.trailing_comments)
        json_name = f.options.get("json_name") or to_json_name(f.field_name)

        if f.is_map:
            entry = _map_entry(registry, message, f)
            message.add_field(
                Field(
                    name=f.field_name,
                    json_name=json_name,
                    kind=Kind.MESSAGE,
                    is_map=True,
                    message=entry,
                    comments=comments,
                )
            )
            continue

        kind, nested = registry.resolve(f.type_name, message.full_name)
        if f.is_group:
            kind = Kind.GROUP
        message.add_field(
            Field(
                name=f.field_name,
                json_name=json_name,
                kind=kind,
                is_list=f.is_repeated,
                message=nested,
                comments=comments,
            )
        )


def _map_entry(registry: TypeRegistry, message: Message, f: ProtoField) -> Message:
    entry = Message(
        full_name=_join(message.full_name, _map_entry_name(f.field_name)),
        is_map_entry=True,
    )
    key_kind, _ = registry.resolve(f.key_type or "string", message.full_name)
    value_kind, value_message = registry.resolve(f.type_name, message.full_name)
    entry.add_field(Field(name="key", json_name="key", kind=key_kind))
    entry.add_field(Field(name="value", json_name="value", kind=value_kind, message=value_message))
    registry.messages[entry.full_name] = entry
    return entry


def _transform_service(registry: TypeRegistry, node: ProtoService, package: str) -> Service:
    service = Service(full_name=_join(package, node.name))
    for rpc in node.rpcs:
        service.methods.append(_transform_rpc(registry, rpc, service.full_name))
    return service


def _transform_rpc(registry: TypeRegistry, rpc: ProtoRpc, service_name: str) -> Method:
    http_rule = None
    if rpc.http_rule is not None:
        http_rule = HttpRule(
            pattern=rpc.http_rule.pattern,
            path=rpc.http_rule.path,
            body=rpc.http_rule.body,
        )

    return Method(
        full_name=_join(service_name, rpc.name),
        name=rpc.name,
        input=_resolve_message(registry, rpc.input_type, service_name),
        output=_resolve_message(registry, rpc.output_type, service_name),
        comments=CommentSet(leading=rpc.leading_comments, trailing=rpc.trailing_comments),
        client_streaming=rpc.client_streaming,
        server_streaming=rpc.server_streaming,
        http_rule=http_rule,
    )


def _resolve_message(registry: TypeRegistry, type_name: str, scope: str) -> Message:
    _, message = registry.resolve(type_name, scope)
    if message is None:
        external = type_name.lstrip(".")
        message = registry.messages.setdefault(external, Message(full_name=external))
    return message
