"""Message classes for the `perftools.profiles` (pprof) protobuf schema.

The schema is described in table form and registered in a private
descriptor pool at import time, so no generated `_pb2` module is needed.
Field numbers follow the upstream `profile.proto`.
"""

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory

_PACKAGE = "perftools.profiles"

_F = descriptor_pb2.FieldDescriptorProto

# message -> [(field name, number, type, repeated)]; a string type names a message.
_SCHEMA = {
    "Profile": [
        ("sample_type", 1, "ValueType", True),
        ("sample", 2, "Sample", True),
        ("mapping", 3, "Mapping", True),
        ("location", 4, "Location", True),
        ("function", 5, "Function", True),
        ("string_table", 6, _F.TYPE_STRING, True),
        ("drop_frames", 7, _F.TYPE_INT64, False),
        ("keep_frames", 8, _F.TYPE_INT64, False),
        ("time_nanos", 9, _F.TYPE_INT64, False),
        ("duration_nanos", 10, _F.TYPE_INT64, False),
        ("period_type", 11, "ValueType", False),
        ("period", 12, _F.TYPE_INT64, False),
        ("comment", 13, _F.TYPE_INT64, True),
        ("default_sample_type", 14, _F.TYPE_INT64, False),
    ],
    "ValueType": [
        ("type", 1, _F.TYPE_INT64, False),
        ("unit", 2, _F.TYPE_INT64, False),
    ],
    "Sample": [
        ("location_id", 1, _F.TYPE_UINT64, True),
        ("value", 2, _F.TYPE_INT64, True),
        ("label", 3, "Label", True),
    ],
    "Label": [
        ("key", 1, _F.TYPE_INT64, False),
        ("str", 2, _F.TYPE_INT64, False),
        ("num", 3, _F.TYPE_INT64, False),
        ("num_unit", 4, _F.TYPE_INT64, False),
    ],
    "Mapping": [
        ("id", 1, _F.TYPE_UINT64, False),
        ("memory_start", 2, _F.TYPE_UINT64, False),
        ("memory_limit", 3, _F.TYPE_UINT64, False),
        ("file_offset", 4, _F.TYPE_UINT64, False),
        ("filename", 5, _F.TYPE_INT64, False),
        ("build_id", 6, _F.TYPE_INT64, False),
        ("has_functions", 7, _F.TYPE_BOOL, False),
        ("has_filenames", 8, _F.TYPE_BOOL, False),
        ("has_line_numbers", 9, _F.TYPE_BOOL, False),
        ("has_inline_frames", 10, _F.TYPE_BOOL, False),
    ],
    "Location": [
        ("id", 1, _F.TYPE_UINT64, False),
        ("mapping_id", 2, _F.TYPE_UINT64, False),
        ("address", 3, _F.TYPE_UINT64, False),
        ("line", 4, "Line", True),
        ("is_folded", 5, _F.TYPE_BOOL, False),
    ],
    "Line": [
        ("function_id", 1, _F.TYPE_UINT64, False),
        ("line", 2, _F.TYPE_INT64, False),
        ("column", 3, _F.TYPE_INT64, False),
    ],
    "Function": [
        ("id", 1, _F.TYPE_UINT64, False),
        ("name", 2, _F.TYPE_INT64, False),
        ("system_name", 3, _F.TYPE_INT64, False),
        ("filename", 4, _F.TYPE_INT64, False),
        ("start_line", 5, _F.TYPE_INT64, False),
    ],
}


def _file_descriptor():
    file_proto = descriptor_pb2.FileDescriptorProto(
        name="stackfold/profile.proto", package=_PACKAGE, syntax="proto3"
    )
    for message_name, fields in _SCHEMA.items():
        message = file_proto.message_type.add(name=message_name)
        for name, number, type, repeated in fields:
            field = message.field.add(name=name, number=number)
            field.label = _F.LABEL_REPEATED if repeated else _F.LABEL_OPTIONAL
            if isinstance(type, str):
                field.type = _F.TYPE_MESSAGE
                field.type_name = f".{_PACKAGE}.{type}"
            else:
                field.type = type
    return file_proto


_POOL = descriptor_pool.DescriptorPool()


def _build_classes(pool):
    pool.AddSerializedFile(_file_descriptor().SerializeToString())
    return {
        name: message_factory.GetMessageClass(
            pool.FindMessageTypeByName(f"{_PACKAGE}.{name}")
        )
        for name in _SCHEMA
    }


_CLASSES = _build_classes(_POOL)

Profile = _CLASSES["Profile"]
ValueType = _CLASSES["ValueType"]
Sample = _CLASSES["Sample"]
Label = _CLASSES["Label"]
Mapping = _CLASSES["Mapping"]
Location = _CLASSES["Location"]
Line = _CLASSES["Line"]
Function = _CLASSES["Function"]
