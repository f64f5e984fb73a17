"""Protocol buffer messages of the Prometheus remote read/write API.

The messages mirror ``prompb/types.proto`` and ``prompb/remote.proto`` from
Prometheus (field numbers included) for the subset the adapter uses. They
are registered from a ``FileDescriptorProto`` in a private descriptor pool,
so they never clash with other ``prometheus.*`` registrations in the
process. Fields not declared here, such as write metadata and exemplars,
are kept as unknown fields by the protobuf runtime.
"""

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory

_PACKAGE = "prometheus"

_F = descriptor_pb2.FieldDescriptorProto

_OPTIONAL = _F.LABEL_OPTIONAL
_REPEATED = _F.LABEL_REPEATED


def _message(file_proto, name, fields, enums=()):
    message = file_proto.message_type.add(name=name)
    for enum_name, values in enums:
        enum = message.enum_type.add(name=enum_name)
        for value_name, number in values:
            enum.value.add(name=value_name, number=number)
    for field_name, number, field_type, label, type_name in fields:
        field = message.field.add(
            name=field_name, number=number, type=field_type, label=label
        )
        if type_name:
            field.type_name = f".{_PACKAGE}.{type_name}"
    return message


def _build_file() -> descriptor_pb2.FileDescriptorProto:
    file_proto = descriptor_pb2.FileDescriptorProto(
        name="crateadapter/prometheus/prompb.proto",
        package=_PACKAGE,
        syntax="proto3",
    )

    _message(
        file_proto,
        "Sample",
        [
            ("value", 1, _F.TYPE_DOUBLE, _OPTIONAL, None),
            ("timestamp", 2, _F.TYPE_INT64, _OPTIONAL, None),
        ],
    )
    _message(
        file_proto,
        "Label",
        [
            ("name", 1, _F.TYPE_STRING, _OPTIONAL, None),
            ("value", 2, _F.TYPE_STRING, _OPTIONAL, None),
        ],
    )
    _message(
        file_proto,
        "LabelMatcher",
        [
            ("type", 1, _F.TYPE_ENUM, _OPTIONAL, "LabelMatcher.Type"),
            ("name", 2, _F.TYPE_STRING, _OPTIONAL, None),
            ("value", 3, _F.TYPE_STRING, _OPTIONAL, None),
        ],
        enums=[("Type", [("EQ", 0), ("NEQ", 1), ("RE", 2), ("NRE", 3)])],
    )
    _message(
        file_proto,
        "ReadHints",
        [
            ("step_ms", 1, _F.TYPE_INT64, _OPTIONAL, None),
            ("func", 2, _F.TYPE_STRING, _OPTIONAL, None),
            ("start_ms", 3, _F.TYPE_INT64, _OPTIONAL, None),
            ("end_ms", 4, _F.TYPE_INT64, _OPTIONAL, None),
            ("grouping", 5, _F.TYPE_STRING, _REPEATED, None),
            ("by", 6, _F.TYPE_BOOL, _OPTIONAL, None),
            ("range_ms", 7, _F.TYPE_INT64, _OPTIONAL, None),
        ],
    )
    _message(
        file_proto,
        "TimeSeries",
        [
            ("labels", 1, _F.TYPE_MESSAGE, _REPEATED, "Label"),
            ("samples", 2, _F.TYPE_MESSAGE, _REPEATED, "Sample"),
        ],
    )
    _message(
        file_proto,
        "WriteRequest",
        [("timeseries", 1, _F.TYPE_MESSAGE, _REPEATED, "TimeSeries")],
    )
    _message(
        file_proto,
        "Query",
        [
            ("start_timestamp_ms", 1, _F.TYPE_INT64, _OPTIONAL, None),
            ("end_timestamp_ms", 2, _F.TYPE_INT64, _OPTIONAL, None),
            ("matchers", 3, _F.TYPE_MESSAGE, _REPEATED, "LabelMatcher"),
            ("hints", 4, _F.TYPE_MESSAGE, _OPTIONAL, "ReadHints"),
        ],
    )
    _message(
        file_proto,
        "QueryResult",
        [("timeseries", 1, _F.TYPE_MESSAGE, _REPEATED, "TimeSeries")],
    )
    _message(
        file_proto,
        "ReadRequest",
        [
            ("queries", 1, _F.TYPE_MESSAGE, _REPEATED, "Query"),
            (
                "accepted_response_types",
                2,
                _F.TYPE_ENUM,
                _REPEATED,
                "ReadRequest.ResponseType",
            ),
        ],
        enums=[("ResponseType", [("SAMPLES", 0), ("STREAMED_XOR_CHUNKS", 1)])],
    )
    _message(
        file_proto,
        "ReadResponse",
        [("results", 1, _F.TYPE_MESSAGE, _REPEATED, "QueryResult")],
    )
    return file_proto


_pool = descriptor_pool.DescriptorPool()
DESCRIPTOR = _pool.AddSerializedFile(_build_file().SerializeToString())


def _message_class(name: str):
    return message_factory.GetMessageClass(
        _pool.FindMessageTypeByName(f"{_PACKAGE}.{name}")
    )


Sample = _message_class("Sample")
Label = _message_class("Label")
LabelMatcher = _message_class("LabelMatcher")
ReadHints = _message_class("ReadHints")
TimeSeries = _message_class("TimeSeries")
WriteRequest = _message_class("WriteRequest")
Query = _message_class("Query")
QueryResult = _message_class("QueryResult")
ReadRequest = _message_class("ReadRequest")
ReadResponse = _message_class("ReadResponse")
