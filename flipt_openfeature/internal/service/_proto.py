"""
Protobuf message types of the Flipt gRPC API used by the provider.

Only the messages and fields the provider reads or writes are declared; field
numbers follow ``flipt.proto`` so unknown fields sent by the server are skipped
when parsing. The types live in a private descriptor pool so they never clash
with a ``flipt`` package registered by another library.
"""

from google.protobuf import descriptor_pb2
from google.protobuf import descriptor_pool
from google.protobuf import message_factory


PACKAGE = "flipt"
SERVICE = "Flipt"

GET_FLAG_METHOD = "/%s.%s/GetFlag" % (PACKAGE, SERVICE)
EVALUATE_METHOD = "/%s.%s/Evaluate" % (PACKAGE, SERVICE)

_FieldProto = descriptor_pb2.FieldDescriptorProto

# (name, number, type, label, type_name)
_MESSAGES = {
    "GetFlagRequest": [
        ("key", 1, _FieldProto.TYPE_STRING, _FieldProto.LABEL_OPTIONAL, None),
        ("namespace_key", 2, _FieldProto.TYPE_STRING, _FieldProto.LABEL_OPTIONAL, None),
    ],
    "Flag": [
        ("key", 1, _FieldProto.TYPE_STRING, _FieldProto.LABEL_OPTIONAL, None),
        ("name", 2, _FieldProto.TYPE_STRING, _FieldProto.LABEL_OPTIONAL, None),
        ("description", 3, _FieldProto.TYPE_STRING, _FieldProto.LABEL_OPTIONAL, None),
        ("enabled", 4, _FieldProto.TYPE_BOOL, _FieldProto.LABEL_OPTIONAL, None),
        ("namespace_key", 8, _FieldProto.TYPE_STRING, _FieldProto.LABEL_OPTIONAL, None),
    ],
    "EvaluationRequest": [
        ("request_id", 1, _FieldProto.TYPE_STRING, _FieldProto.LABEL_OPTIONAL, None),
        ("flag_key", 2, _FieldProto.TYPE_STRING, _FieldProto.LABEL_OPTIONAL, None),
        ("entity_id", 3, _FieldProto.TYPE_STRING, _FieldProto.LABEL_OPTIONAL, None),
        ("context", 4, _FieldProto.TYPE_MESSAGE, _FieldProto.LABEL_REPEATED, ".flipt.EvaluationRequest.ContextEntry"),
        ("namespace_key", 5, _FieldProto.TYPE_STRING, _FieldProto.LABEL_OPTIONAL, None),
    ],
    "EvaluationResponse": [
        ("request_id", 1, _FieldProto.TYPE_STRING, _FieldProto.LABEL_OPTIONAL, None),
        ("entity_id", 2, _FieldProto.TYPE_STRING, _FieldProto.LABEL_OPTIONAL, None),
        ("match", 4, _FieldProto.TYPE_BOOL, _FieldProto.LABEL_OPTIONAL, None),
        ("flag_key", 5, _FieldProto.TYPE_STRING, _FieldProto.LABEL_OPTIONAL, None),
        ("segment_key", 6, _FieldProto.TYPE_STRING, _FieldProto.LABEL_OPTIONAL, None),
        ("value", 8, _FieldProto.TYPE_STRING, _FieldProto.LABEL_OPTIONAL, None),
        ("request_duration_millis", 9, _FieldProto.TYPE_DOUBLE, _FieldProto.LABEL_OPTIONAL, None),
        ("attachment", 10, _FieldProto.TYPE_STRING, _FieldProto.LABEL_OPTIONAL, None),
        ("namespace_key", 12, _FieldProto.TYPE_STRING, _FieldProto.LABEL_OPTIONAL, None),
    ],
}


def _add_fields(message_proto, fields):
    for name, number, type_, label, type_name in fields:
        field = message_proto.field.add()
        field.name = name
        field.number = number
        field.type = type_
        field.label = label
        if type_name is not None:
            field.type_name = type_name


def _file_descriptor_proto() -> descriptor_pb2.FileDescriptorProto:
    file_proto = descriptor_pb2.FileDescriptorProto()
    file_proto.name = "flipt_openfeature/flipt.proto"
    file_proto.package = PACKAGE
    file_proto.syntax = "proto3"

    for message_name, fields in _MESSAGES.items():
        message_proto = file_proto.message_type.add()
        message_proto.name = message_name
        _add_fields(message_proto, fields)

        if message_name == "EvaluationRequest":
            # map<string, string> context = 4;
            entry = message_proto.nested_type.add()
            entry.name = "ContextEntry"
            entry.options.map_entry = True
            _add_fields(
                entry,
                [
                    ("key", 1, _FieldProto.TYPE_STRING, _FieldProto.LABEL_OPTIONAL, None),
                    ("value", 2, _FieldProto.TYPE_STRING, _FieldProto.LABEL_OPTIONAL, None),
                ],
            )

    service = file_proto.service.add()
    service.name = SERVICE
    for method_name, input_type, output_type in (
        ("GetFlag", "GetFlagRequest", "Flag"),
        ("Evaluate", "EvaluationRequest", "EvaluationResponse"),
    ):
        method = service.method.add()
        method.name = method_name
        method.input_type = ".%s.%s" % (PACKAGE, input_type)
        method.output_type = ".%s.%s" % (PACKAGE, output_type)

    return file_proto


_pool = descriptor_pool.DescriptorPool()
_pool.AddSerializedFile(_file_descriptor_proto().SerializeToString())


def _message_class(name: str):
    return message_factory.GetMessageClass(_pool.FindMessageTypeByName("%s.%s" % (PACKAGE, name)))


GetFlagRequest = _message_class("GetFlagRequest")
Flag = _message_class("Flag")
EvaluationRequest = _message_class("EvaluationRequest")
EvaluationResponse = _message_class("EvaluationResponse")
