from google.protobuf import descriptor_pb2 as d2

from protoc_apidoc.descriptor import load_descriptor_set
from protoc_apidoc.models import Kind


def _order_file(order_file_proto):
    return load_descriptor_set([order_file_proto])[0]


def _get_order(order_file_proto):
    return _order_file(order_file_proto).services[0].methods[0]


def _single_method_file(fdp, message_name):
    """Expose a message through a one-method service so it can be reached from the model."""
    svc = fdp.service.add(name="S")
    full_name = f".{fdp.package}.{message_name}" if fdp.package else f".{message_name}"
    svc.method.add(name="Call", input_type=full_name, output_type=full_name)
    return fdp


class TestMessages:
    def test_file_metadata(self, order_file_proto):
        proto_file = _order_file(order_file_proto)
        assert proto_file.name == "shop/order.proto"
        assert proto_file.package == "shop"
        assert proto_file.prefix == "shop/order"

    def test_fields(self, order_file_proto):
        item = _get_order(order_file_proto).input
        assert item.full_name == "shop.Item"
        assert [(f.name, f.json_name, f.kind) for f in item.fields] == [
            ("sku_code", "skuCode", Kind.STRING),
            ("price", "price", Kind.DOUBLE),
        ]
        assert all(f.parent is item for f in item.fields)

    def test_message_reference_and_list(self, order_file_proto):
        get_order = _get_order(order_file_proto)
        items = get_order.output.fields[1]
        assert items.kind is Kind.MESSAGE
        assert items.is_list is True
        assert items.message is get_order.input

    def test_map_field(self, order_file_proto):
        tags = _get_order(order_file_proto).output.fields[2]
        assert tags.is_map is True
        assert tags.is_list is False
        assert tags.message.full_name == "shop.Order.TagsEntry"
        assert tags.message.is_map_entry is True
        assert [f.kind for f in tags.message.fields] == [Kind.STRING, Kind.INT32]

    def test_field_comments(self, order_file_proto):
        sku = _get_order(order_file_proto).input.fields[0]
        assert sku.comments.leading == " SKU code.\n"
        assert sku.comments.trailing == " required\n"

    def test_json_name_defaults_when_unset(self):
        fdp = d2.FileDescriptorProto(name="a.proto")
        msg = fdp.message_type.add(name="A")
        msg.field.add(name="created_at", number=1, type=d2.FieldDescriptorProto.TYPE_INT64)
        proto_file = load_descriptor_set([_single_method_file(fdp, "A")])[0]
        assert proto_file.package is None
        assert proto_file.services[0].methods[0].input.fields[0].json_name == "createdAt"


class TestServices:
    def test_methods(self, order_file_proto):
        service = _order_file(order_file_proto).services[0]
        assert service.full_name == "shop.OrderService"
        assert [m.full_name for m in service.methods] == [
            "shop.OrderService.GetOrder",
            "shop.OrderService.UpdateOrder",
            "shop.OrderService.CreateOrder",
            "shop.OrderService.WatchOrders",
        ]

    def test_method_messages_are_shared(self, order_file_proto):
        get_order, update, _, watch = _order_file(order_file_proto).services[0].methods
        assert get_order.input is watch.input
        assert get_order.output is update.input
        assert get_order.output.full_name == "shop.Order"

    def test_http_rules(self, order_file_proto):
        get_order, update, create, _ = _order_file(order_file_proto).services[0].methods
        assert (get_order.http_rule.pattern, get_order.http_rule.path) == ("get", "/v1/orders/{sku_code}")
        assert (update.http_rule.pattern, update.http_rule.path, update.http_rule.body) == ("patch", "/v1/orders", "*")
        assert create.http_rule is None

    def test_method_comment_and_streaming(self, order_file_proto):
        get_order, _, _, watch = _order_file(order_file_proto).services[0].methods
        assert get_order.comments.leading == " Fetch an order.\n"
        assert watch.server_streaming is True
        assert watch.is_streaming is True


class TestDescriptorSet:
    def test_types_resolve_across_files(self, order_file_proto):
        invoice = d2.FileDescriptorProto(name="shop/invoice.proto", package="shop", dependency=["shop/order.proto"])
        msg = invoice.message_type.add(name="Invoice")
        msg.field.add(
            name="order",
            number=1,
            type=d2.FieldDescriptorProto.TYPE_MESSAGE,
            type_name=".shop.Order",
            json_name="order",
        )
        _single_method_file(invoice, "Invoice")

        result = load_descriptor_set([order_file_proto, invoice], ["shop/invoice.proto"])
        assert [f.name for f in result] == ["shop/invoice.proto"]
        order = result[0].services[0].methods[0].input.fields[0].message
        assert order.full_name == "shop.Order"
        assert [f.name for f in order.fields] == ["order_id", "items", "tags"]

    def test_unknown_type_becomes_empty_message(self):
        fdp = d2.FileDescriptorProto(name="e.proto", package="ev")
        msg = fdp.message_type.add(name="Event")
        msg.field.add(
            name="at",
            number=1,
            type=d2.FieldDescriptorProto.TYPE_MESSAGE,
            type_name=".google.protobuf.Timestamp",
        )
        proto_file = load_descriptor_set([_single_method_file(fdp, "Event")])[0]
        at = proto_file.services[0].methods[0].input.fields[0]
        assert at.message.full_name == "google.protobuf.Timestamp"
        assert at.message.fields == []
