from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path
from typing import Dict, List, Sequence, Tuple

from protoc_apidoc.descriptor import parse_proto_via_descriptor
from protoc_apidoc.document import render_document
from protoc_apidoc.errors import ApiDocError
from protoc_apidoc.models import ProtoFile
from protoc_apidoc.options import DEFAULT_JSON_INDENT, DEFAULT_SUFFIX, DocOptions
from protoc_apidoc.parser.proto_ast_parser import ProtoParseError
from protoc_apidoc.parser.proto_parser import parse_proto_files

PARSERS = ("auto", "protoc", "builtin")


def _find_proto_files(root: str) -> List[str]:
    """Recursively find .proto files under root, sorted for deterministic output."""
    return sorted(str(p) for p in Path(root).rglob("*.proto"))


def load_protos(
    paths: Sequence[str],
    includes: Sequence[str] = (),
    parser: str = "auto",
) -> Tuple[List[ProtoFile], Dict[str, str]]:
    """Load .proto files into models.

    Returns the loaded files and a map of path -> error for files that
    could not be loaded. In 'auto' mode protoc is tried first and files it
    cannot handle fall back to the built-in parser.
    """
    loaded: List[ProtoFile] = []
    failures: Dict[str, str] = {}
    builtin_paths = list(paths)

    if parser in ("auto", "protoc"):
        builtin_paths = []
        for path in paths:
            try:
                loaded.append(parse_proto_via_descriptor(path, includes))
            except RuntimeError as e:
                if parser == "protoc":
                    failures[path] = str(e)
                    continue
                print(
                    f"Warning: descriptor-based parsing failed for '{path}' with {type(e).__name__}: {e}. Falling back to built-in parser.",
                    file=sys.stderr,
                )
                builtin_paths.append(path)

    if builtin_paths:
        errors: Dict[str, ProtoParseError] = {}
        loaded.extend(parse_proto_files(builtin_paths, errors=errors))
        failures.update({path: str(e) for path, e in errors.items()})

    return loaded, failures


def generate(proto_file: ProtoFile, out_dir: str, options: DocOptions) -> str:
    """Render one file's API document into out_dir and return the written path."""
    content = render_document(proto_file, options)
    os.makedirs(out_dir, exist_ok=True)
    out_path = os.path.join(out_dir, os.path.basename(proto_file.prefix) + options.suffix)
    with open(out_path, "w", encoding="utf-8") as f:
        f.write(content)
    return out_path


def run(
    proto: str,
    out_dir: str,
    options: DocOptions,
    includes: Sequence[str] = (),
    parser: str = "auto",
) -> int:
    """Generate documents for a file or directory. Returns the process exit status.

    A file that fails to load or render is reported and skipped; the
    remaining files are still generated.
    """
    if os.path.isdir(proto):
        inputs = _find_proto_files(proto)
        if not inputs:
            print(f"No .proto files found under directory: {proto}")
            return 0
    else:
        inputs = [proto]

    proto_files, failures = load_protos(inputs, includes, parser)

    generated: List[str] = []
    for proto_file in proto_files:
        try:
            generated.append(generate(proto_file, out_dir, options))
        except ApiDocError as e:
            failures[proto_file.name] = str(e)

    if generated:
        print("Generated:\n" + "\n".join(generated))
    for name, message in failures.items():
        print(f"FATAL: {name}: {message}", file=sys.stderr)
    return 1 if failures else 0


def main():
    parser = argparse.ArgumentParser(description="Generate Markdown API documentation from .proto files (unary RPCs only)")
    parser.add_argument("--proto", required=True, help="Path to a .proto file or a directory containing .proto files (recursively)")
    parser.add_argument("--out", required=True, help="Output directory for generated document(s)")
    parser.add_argument("-I", "--include", action="append", default=[], help="Additional import path passed to protoc (repeatable)")
    parser.add_argument("--parser", choices=PARSERS, default="auto", help="Schema loader: protoc descriptors, the built-in parser, or protoc with built-in fallback (default)")
    parser.add_argument("--suffix", default=DEFAULT_SUFFIX, help=f"Suffix appended to each document name (default: {DEFAULT_SUFFIX})")
    parser.add_argument("--json-indent", type=int, default=DEFAULT_JSON_INDENT, help="Spaces per indent level in JSON examples")
    # Compatibility switch
    parser.add_argument("--patch-as-delete", action="store_true", help="Document PATCH bindings as DELETE, as earlier releases did")
    args = parser.parse_args()

    options = DocOptions(
        suffix=args.suffix,
        json_indent=args.json_indent,
        patch_as_delete=args.patch_as_delete,
    )
    sys.exit(run(args.proto, args.out, options, args.include, args.parser))


if __name__ == "__main__":
    main()
