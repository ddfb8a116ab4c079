import json
import re

from google.protobuf import descriptor_pb2 as d2
from google.protobuf.compiler import plugin_pb2

from protoc_apidoc.plugin import run_plugin


def _request(order_file_proto, parameter=""):
    request = plugin_pb2.CodeGeneratorRequest(parameter=parameter)
    request.file_to_generate.append(order_file_proto.name)
    request.proto_file.append(order_file_proto)
    return request


class TestRunPlugin:
    def test_generates_one_document_per_file(self, order_file_proto):
        response = run_plugin(_request(order_file_proto))
        assert response.error == ""
        assert [f.name for f in response.file] == ["shop/order.apidoc.md"]
        content = response.file[0].content
        assert content.startswith("shop/order API DOC\n======\n[toc]\n")

    def test_document_content(self, order_file_proto):
        content = run_plugin(_request(order_file_proto)).file[0].content
        assert "## shop.OrderService.GetOrder\n\n Fetch an order.\n\n`GET /v1/orders/{sku_code}`" in content
        assert "`PATCH /v1/orders`" in content
        assert "`POST shop.OrderService.CreateOrder`" in content
        assert "WatchOrders" not in content
        assert "|skuCode|string|SKU code.required|" in content
        assert "|items|array||" in content
        assert "|> items.skuCode|string|SKU code.required|" in content
        assert "|tags|message||" in content

    def test_request_json_of_create(self, order_file_proto):
        content = run_plugin(_request(order_file_proto)).file[0].content
        section = content[content.index("## shop.OrderService.CreateOrder"):]
        request_block, response_block = re.findall(r"```json\n(.*?)\n```", section, re.DOTALL)[:2]
        assert json.loads(response_block)["errCode"] == 0
        assert json.loads(request_block) == {
            "orderId": 0,
            "items": [{"skuCode": "", "price": 0.0}],
            "tags": {},
        }

    def test_parameters(self, order_file_proto):
        response = run_plugin(_request(order_file_proto, "patch_as_delete,suffix=.md,json_indent=2"))
        assert response.error == ""
        assert response.file[0].name == "shop/order.md"
        content = response.file[0].content
        assert "`DELETE /v1/orders`" in content
        assert '\n  "errCode": 0,' in content

    def test_bad_parameter_sets_error(self, order_file_proto):
        response = run_plugin(_request(order_file_proto, "unknown=1"))
        assert "Unknown parameter" in response.error
        assert len(response.file) == 0

    def test_dependencies_are_not_generated(self, order_file_proto):
        dep = d2.FileDescriptorProto(name="shop/common.proto", package="shop")
        dep.message_type.add(name="Empty")
        request = plugin_pb2.CodeGeneratorRequest(
            file_to_generate=[order_file_proto.name],
            proto_file=[dep, order_file_proto],
        )
        response = run_plugin(request)
        assert [f.name for f in response.file] == ["shop/order.apidoc.md"]

    def test_recursive_schema_is_reported(self):
        fdp = d2.FileDescriptorProto(name="loop.proto", package="loop")
        a = fdp.message_type.add(name="A")
        a.field.add(name="b", number=1, type=d2.FieldDescriptorProto.TYPE_MESSAGE, type_name=".loop.B")
        b = fdp.message_type.add(name="B")
        b.field.add(name="a", number=1, type=d2.FieldDescriptorProto.TYPE_MESSAGE, type_name=".loop.A")
        svc = fdp.service.add(name="S")
        svc.method.add(name="Call", input_type=".loop.A", output_type=".loop.A")

        request = plugin_pb2.CodeGeneratorRequest(file_to_generate=["loop.proto"], proto_file=[fdp])
        response = run_plugin(request)
        assert response.error == "loop.proto: Recursive schema: loop.A -> loop.B -> loop.A"
        assert len(response.file) == 0
