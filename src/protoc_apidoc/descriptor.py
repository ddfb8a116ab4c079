"""Build schema models from protoc descriptors.

Used by the protoc plugin (descriptors come from the CodeGeneratorRequest)
and by the CLI, which runs protoc to produce a descriptor set.
"""

from __future__ import annotations

import os
import subprocess
import tempfile
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from google.api import annotations_pb2
from google.protobuf import descriptor_pb2 as d2

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

# Field numbers used in SourceCodeInfo location paths.
_FILE_MESSAGE_TYPE = 4
_FILE_SERVICE = 6
_MESSAGE_FIELD = 2
_MESSAGE_NESTED_TYPE = 3
_SERVICE_METHOD = 2

_Locations = Dict[Tuple[int, ...], CommentSet]


def _locations(file_proto: d2.FileDescriptorProto) -> _Locations:
    result: _Locations = {}
    for loc in file_proto.source_code_info.location:
        if loc.leading_comments or loc.trailing_comments:
            result[tuple(loc.path)] = CommentSet(
                leading=loc.leading_comments,
                trailing=loc.trailing_comments,
            )
    return result


def _comments(locations: _Locations, path: Tuple[int, ...]) -> CommentSet:
    return locations.get(path) or CommentSet()


def _join(scope: str, name: str) -> str:
    return f"{scope}.{name}" if scope else name


def _http_rule(method: d2.MethodDescriptorProto) -> Optional[HttpRule]:
    if not method.HasField("options"):
        return None
    if not method.options.HasExtension(annotations_pb2.http):
        return None
    rule = method.options.Extensions[annotations_pb2.http]
    pattern = rule.WhichOneof("pattern")
    if pattern is None:
        return HttpRule(pattern="", body=rule.body)
    if pattern == "custom":
        return HttpRule(pattern=pattern, path=rule.custom.path, body=rule.body)
    return HttpRule(pattern=pattern, path=getattr(rule, pattern), body=rule.body)


class _Loader:
    def __init__(self) -> None:
        self.messages: Dict[str, Message] = {}
        # full name -> (descriptor, comment locations, location path)
        self._pending: List[Tuple[str, d2.DescriptorProto, _Locations, Tuple[int, ...]]] = []

    def declare_file(self, file_proto: d2.FileDescriptorProto) -> None:
        locations = _locations(file_proto)
        for i, desc in enumerate(file_proto.message_type):
            self._declare(desc, file_proto.package, locations, (_FILE_MESSAGE_TYPE, i))

    def _declare(
        self,
        desc: d2.DescriptorProto,
        scope: str,
        locations: _Locations,
        path: Tuple[int, ...],
    ) -> None:
        full_name = _join(scope, desc.name)
        self.messages[full_name] = Message(
            full_name=full_name,
            is_map_entry=desc.options.map_entry,
        )
        self._pending.append((full_name, desc, locations, path))
        for j, nested in enumerate(desc.nested_type):
            self._declare(nested, full_name, locations, path + (_MESSAGE_NESTED_TYPE, j))

    def link(self) -> None:
        """Fill every declared message's fields once all types are known."""
        for full_name, desc, locations, path in self._pending:
            message = self.messages[full_name]
            for k, fd in enumerate(desc.field):
                message.add_field(self._field(fd, locations, path + (_MESSAGE_FIELD, k)))
        self._pending = []

    def _field(
        self,
        fd: d2.FieldDescriptorProto,
        locations: _Locations,
        path: Tuple[int, ...],
    ) -> Field:
        kind = Kind.from_type_number(fd.type)
        nested = None
        if kind.is_message:
            nested = self.message(fd.type_name)

        repeated = fd.label == d2.FieldDescriptorProto.LABEL_REPEATED
        is_map = repeated and nested is not None and nested.is_map_entry
        json_name = fd.json_name if fd.HasField("json_name") else to_json_name(fd.name)

        return Field(
            name=fd.name,
            json_name=json_name,
            kind=kind,
            is_list=repeated and not is_map,
            is_map=is_map,
            message=nested,
            comments=_comments(locations, path),
        )

    def message(self, type_name: str) -> Message:
        """Look up a message by descriptor type name; unknown names become empty messages."""
        full_name = type_name.lstrip(".")
        return self.messages.setdefault(full_name, Message(full_name=full_name))

    def build_file(self, file_proto: d2.FileDescriptorProto) -> ProtoFile:
        locations = _locations(file_proto)
        package = file_proto.package
        services: List[Service] = []
        for i, svc in enumerate(file_proto.service):
            service = Service(full_name=_join(package, svc.name))
            for j, md in enumerate(svc.method):
                service.methods.append(
                    Method(
                        full_name=_join(service.full_name, md.name),
                        name=md.name,
                        input=self.message(md.input_type),
                        output=self.message(md.output_type),
                        comments=_comments(locations, (_FILE_SERVICE, i, _SERVICE_METHOD, j)),
                        client_streaming=md.client_streaming,
                        server_streaming=md.server_streaming,
                        http_rule=_http_rule(md),
                    )
                )
            services.append(service)

        return ProtoFile(
            name=file_proto.name,
            package=package or None,
            services=services,
        )


def load_descriptor_set(
    file_protos: Sequence[d2.FileDescriptorProto],
    targets: Optional[Iterable[str]] = None,
) -> List[ProtoFile]:
    """Map FileDescriptorProtos to ProtoFile models.

    All files are used for type resolution; only those named in targets
    (all files when targets is None) are returned, in descriptor order.
    """
    loader = _Loader()
    for file_proto in file_protos:
        loader.declare_file(file_proto)
    loader.link()

    wanted = set(targets) if targets is not None else None
    return [
        loader.build_file(file_proto)
        for file_proto in file_protos
        if wanted is None or file_proto.name in wanted
    ]


def _googleapis_include() -> Optional[str]:
    """Directory holding google/api/*.proto shipped with googleapis-common-protos, if present."""
    root = Path(annotations_pb2.__file__).resolve().parents[2]
    if (root / "google" / "api" / "annotations.proto").is_file():
        return str(root)
    return None


def parse_proto_via_descriptor(proto_path: str, includes: Sequence[str] = ()) -> ProtoFile:
    """Parse a .proto by invoking protoc to get a descriptor set and mapping it into our models."""
    # include the directory of the file, user include paths and the googleapis protos
    candidates = [os.path.dirname(os.path.abspath(proto_path))]
    candidates.extend(includes)
    googleapis = _googleapis_include()
    if googleapis:
        candidates.append(googleapis)

    # de-dup while preserving order
    seen = set()
    inc_args: List[str] = []
    for inc in candidates:
        if inc and inc not in seen:
            seen.add(inc)
            inc_args.extend(["-I", inc])

    with tempfile.TemporaryDirectory() as td:
        desc_path = os.path.join(td, "descriptor_set.pb")
        cmd = [
            "protoc",
            "--include_imports",
            "--include_source_info",
            f"--descriptor_set_out={desc_path}",
        ] + inc_args + [proto_path]
        try:
            subprocess.run(cmd, check=True, capture_output=True)
        except FileNotFoundError as e:
            raise RuntimeError("'protoc' not found. Please install Protocol Buffers compiler and ensure it is in PATH.") from e
        except subprocess.CalledProcessError as e:
            raise RuntimeError(f"protoc failed: {e.stderr.decode('utf-8', errors='ignore')}") from e

        fds = d2.FileDescriptorSet()
        with open(desc_path, "rb") as f:
            fds.ParseFromString(f.read())

    # Find the target file in the descriptor set (match by basename)
    base = os.path.basename(proto_path)
    target = None
    for f in fds.file:
        if os.path.basename(f.name) == base:
            target = f
            break
    if target is None:
        names = ", ".join(ff.name for ff in fds.file)
        raise RuntimeError(f"Could not locate target file '{base}' in descriptor set. Found: {names}")

    return load_descriptor_set(list(fds.file), [target.name])[0]
