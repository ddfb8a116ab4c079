from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, List, Optional

from protoc_apidoc.models import ProtoFile

from .proto_ast_parser import ProtoParseError, parse_proto_text
from .proto_transform import transform_protos


def parse_proto_file(file_path: str) -> ProtoFile:
    """Parse a single .proto file with the built-in parser."""
    return parse_proto_files([file_path])[0]


def parse_proto_files(
    file_paths: List[str],
    errors: Optional[Dict[str, ProtoParseError]] = None,
) -> List[ProtoFile]:
    """Parse several .proto files, resolving type references across all of them.

    Each resulting ProtoFile is named after the file's base name. When an
    errors dict is given, files that fail to parse are recorded there and
    skipped; otherwise the first ProtoParseError propagates.
    """
    nodes = []
    for path in file_paths:
        text = Path(path).read_text(encoding="utf-8")
        try:
            nodes.append((os.path.basename(path), parse_proto_text(text)))
        except ProtoParseError as e:
            if errors is None:
                raise
            errors[path] = e
    return transform_protos(nodes)
