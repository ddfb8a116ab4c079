import pytest
from google.api import annotations_pb2
from google.protobuf import descriptor_pb2 as d2

FD = d2.FieldDescriptorProto


def _add_field(message, name, number, type_, json_name, type_name="", repeated=False):
    return message.field.add(
        name=name,
        number=number,
        type=type_,
        type_name=type_name,
        label=FD.LABEL_REPEATED if repeated else FD.LABEL_OPTIONAL,
        json_name=json_name,
    )


@pytest.fixture
def order_file_proto():
    """shop/order.proto built as protoc would describe it, with comments and http rules."""
    fdp = d2.FileDescriptorProto(name="shop/order.proto", package="shop", syntax="proto3")

    item = fdp.message_type.add(name="Item")
    _add_field(item, "sku_code", 1, FD.TYPE_STRING, "skuCode")
    _add_field(item, "price", 2, FD.TYPE_DOUBLE, "price")

    order = fdp.message_type.add(name="Order")
    _add_field(order, "order_id", 1, FD.TYPE_INT64, "orderId")
    _add_field(order, "items", 2, FD.TYPE_MESSAGE, "items", type_name=".shop.Item", repeated=True)
    _add_field(order, "tags", 3, FD.TYPE_MESSAGE, "tags", type_name=".shop.Order.TagsEntry", repeated=True)
    entry = order.nested_type.add(name="TagsEntry")
    entry.options.map_entry = True
    _add_field(entry, "key", 1, FD.TYPE_STRING, "key")
    _add_field(entry, "value", 2, FD.TYPE_INT32, "value")

    service = fdp.service.add(name="OrderService")
    get_order = service.method.add(name="GetOrder", input_type=".shop.Item", output_type=".shop.Order")
    get_order.options.Extensions[annotations_pb2.http].get = "/v1/orders/{sku_code}"
    update = service.method.add(name="UpdateOrder", input_type=".shop.Order", output_type=".shop.Order")
    update.options.Extensions[annotations_pb2.http].patch = "/v1/orders"
    update.options.Extensions[annotations_pb2.http].body = "*"
    service.method.add(name="CreateOrder", input_type=".shop.Order", output_type=".shop.Order")
    service.method.add(
        name="WatchOrders",
        input_type=".shop.Item",
        output_type=".shop.Order",
        server_streaming=True,
    )

    info = fdp.source_code_info
    info.location.add(path=[4, 0, 2, 0], leading_comments=" SKU code.\n", trailing_comments=" required\n")
    info.location.add(path=[6, 0, 2, 0], leading_comments=" Fetch an order.\n")
    return fdp
