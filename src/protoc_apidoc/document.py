"""Assemble the Markdown API document of one .proto file."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from jinja2 import Environment, FileSystemLoader

from protoc_apidoc.binding import resolve_binding
from protoc_apidoc.errors import ExampleEncodingError
from protoc_apidoc.example import synthesize
from protoc_apidoc.models import Method, ProtoFile
from protoc_apidoc.options import DocOptions
from protoc_apidoc.table import FieldRow, flatten


@dataclass
class MethodDoc:
    """Everything rendered for one method section."""

    full_name: str
    comment: str
    verb: str
    path: str
    request_rows: List[FieldRow]
    request_json: Optional[str]
    response_rows: List[FieldRow]
    response_json: str


def wrap_response(data: Any) -> Dict[str, Any]:
    """Wrap a response example in the errCode/errMsg/data envelope."""
    return {"errCode": 0, "errMsg": "ok", "data": data}


def encode_example(value: Any, indent: int) -> str:
    try:
        return json.dumps(value, indent=indent, ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError) as e:
        raise ExampleEncodingError(f"Cannot encode example as JSON: {e}") from e


def documented_methods(proto_file: ProtoFile) -> List[Method]:
    """Unary methods of every service, in declaration order. Streaming methods are skipped."""
    return [
        method
        for service in proto_file.services
        for method in service.methods
        if not method.is_streaming
    ]


def build_method_doc(method: Method, options: Optional[DocOptions] = None) -> MethodDoc:
    options = options or DocOptions()
    verb, path = resolve_binding(method, patch_as_delete=options.patch_as_delete)

    request_json = None
    if verb != "GET":
        request_json = encode_example(synthesize(method.input), options.json_indent)

    response_json = encode_example(
        wrap_response(synthesize(method.output)),
        options.json_indent,
    )

    return MethodDoc(
        full_name=method.full_name,
        comment=method.comments.leading.rstrip("\n"),
        verb=verb,
        path=path,
        request_rows=flatten(method.input),
        request_json=request_json,
        response_rows=flatten(method.output),
        response_json=response_json,
    )


def _escape_cell(text: str) -> str:
    return text.replace("|", "\\|")


def _get_template_env() -> Environment:
    template_dir = Path(__file__).parent / "templates"
    env = Environment(
        loader=FileSystemLoader(str(template_dir)),
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["cell"] = _escape_cell
    return env


def render_document(proto_file: ProtoFile, options: Optional[DocOptions] = None) -> str:
    """Render the API document for all unary methods declared in a file."""
    options = options or DocOptions()
    methods = [build_method_doc(m, options) for m in documented_methods(proto_file)]

    template = _get_template_env().get_template("apidoc.md.j2")
    return template.render(title=proto_file.prefix, methods=methods)


def output_name(proto_file: ProtoFile, options: Optional[DocOptions] = None) -> str:
    """Generated document name: the file's path prefix plus the configured suffix."""
    options = options or DocOptions()
    return proto_file.prefix + options.suffix
