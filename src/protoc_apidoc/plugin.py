"""protoc plugin entry point: protoc --apidoc_out=DIR [--apidoc_opt=...] file.proto"""

from __future__ import annotations

import sys

from google.protobuf.compiler import plugin_pb2

from protoc_apidoc.descriptor import load_descriptor_set
from protoc_apidoc.document import output_name, render_document
from protoc_apidoc.errors import ApiDocError
from protoc_apidoc.options import DocOptions


def run_plugin(request: plugin_pb2.CodeGeneratorRequest) -> plugin_pb2.CodeGeneratorResponse:
    """Generate one API document per file in request.file_to_generate."""
    response = plugin_pb2.CodeGeneratorResponse()
    response.supported_features = plugin_pb2.CodeGeneratorResponse.FEATURE_PROTO3_OPTIONAL

    try:
        options = DocOptions.from_parameter(request.parameter)
    except ValueError as e:
        response.error = str(e)
        return response

    proto_files = load_descriptor_set(list(request.proto_file), list(request.file_to_generate))
    errors = []
    for proto_file in proto_files:
        try:
            content = render_document(proto_file, options)
        except ApiDocError as e:
            errors.append(f"{proto_file.name}: {e}")
            continue
        generated = response.file.add()
        generated.name = output_name(proto_file, options)
        generated.content = content

    if errors:
        response.error = "\n".join(errors)
    return response


def main():
    request = plugin_pb2.CodeGeneratorRequest()
    request.ParseFromString(sys.stdin.buffer.read())

    response = run_plugin(request)
    if response.error:
        print(f"protoc-gen-apidoc: {response.error}", file=sys.stderr)

    sys.stdout.buffer.write(response.SerializeToString())
    sys.stdout.buffer.flush()


if __name__ == "__main__":
    main()
