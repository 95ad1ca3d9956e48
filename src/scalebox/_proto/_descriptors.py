# SPDX-FileCopyrightText: 2025 Scalebox Authors
# SPDX-License-Identifier: Apache-2.0
# SPDX-PackageName: scalebox-client

"""Builders for the protobuf descriptors of the in-sandbox services.

Message classes are produced from ``FileDescriptorProto`` values registered
in the default descriptor pool, the same way ``protoc``-generated ``_pb2``
modules register their serialized descriptors.
"""

from __future__ import annotations

from collections.abc import Iterable

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory
from google.protobuf.descriptor import FileDescriptor
from google.protobuf.message import Message

_Field = descriptor_pb2.FieldDescriptorProto

STRING = _Field.TYPE_STRING
BYTES = _Field.TYPE_BYTES
BOOL = _Field.TYPE_BOOL
INT32 = _Field.TYPE_INT32
SINT32 = _Field.TYPE_SINT32
UINT32 = _Field.TYPE_UINT32
ENUM = _Field.TYPE_ENUM
MESSAGE = _Field.TYPE_MESSAGE


def _json_name(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def field(
    name: str,
    number: int,
    kind: int,
    *,
    type_name: str | None = None,
    repeated: bool = False,
    oneof: int | None = None,
) -> descriptor_pb2.FieldDescriptorProto:
    """Describe one field. ``type_name`` is the fully qualified ``.pkg.Type``."""
    proto = _Field(
        name=name,
        number=number,
        type=kind,
        label=_Field.LABEL_REPEATED if repeated else _Field.LABEL_OPTIONAL,
        json_name=_json_name(name),
    )
    if type_name is not None:
        proto.type_name = type_name
    if oneof is not None:
        proto.oneof_index = oneof
    return proto


def string_map(name: str, number: int, *, scope: str) -> tuple[
    descriptor_pb2.FieldDescriptorProto, descriptor_pb2.DescriptorProto
]:
    """Describe a ``map<string, string>`` field and its synthetic entry type.

    Returns the field and the nested entry message, which must be added to
    the owning message's ``nested`` types.
    """
    entry_name = "".join(part.capitalize() for part in name.split("_")) + "Entry"
    entry = descriptor_pb2.DescriptorProto(
        name=entry_name,
        field=[field("key", 1, STRING), field("value", 2, STRING)],
        options=descriptor_pb2.MessageOptions(map_entry=True),
    )
    return (
        field(name, number, MESSAGE, type_name=f"{scope}.{entry_name}", repeated=True),
        entry,
    )


def message(
    name: str,
    fields: Iterable[descriptor_pb2.FieldDescriptorProto] = (),
    *,
    nested: Iterable[descriptor_pb2.DescriptorProto] = (),
    oneofs: Iterable[str] = (),
) -> descriptor_pb2.DescriptorProto:
    return descriptor_pb2.DescriptorProto(
        name=name,
        field=list(fields),
        nested_type=list(nested),
        oneof_decl=[descriptor_pb2.OneofDescriptorProto(name=o) for o in oneofs],
    )


def enum(name: str, values: dict[str, int]) -> descriptor_pb2.EnumDescriptorProto:
    return descriptor_pb2.EnumDescriptorProto(
        name=name,
        value=[
            descriptor_pb2.EnumValueDescriptorProto(name=key, number=number)
            for key, number in values.items()
        ],
    )


def register(
    name: str,
    package: str,
    messages: Iterable[descriptor_pb2.DescriptorProto],
    *,
    enums: Iterable[descriptor_pb2.EnumDescriptorProto] = (),
    dependencies: Iterable[str] = (),
) -> FileDescriptor:
    """Add a proto3 file to the default pool and return its descriptor."""
    proto = descriptor_pb2.FileDescriptorProto(
        name=name,
        package=package,
        syntax="proto3",
        dependency=list(dependencies),
        message_type=list(messages),
        enum_type=list(enums),
    )
    return descriptor_pool.Default().AddSerializedFile(proto.SerializeToString())


def message_class(file: FileDescriptor, name: str) -> type[Message]:
    """Look up the concrete class of a message declared in ``file``.

    ``name`` may be nested, e.g. ``"ProcessEvent.StartEvent"``.
    """
    full_name = f"{file.package}.{name}"
    pool = descriptor_pool.Default()
    return message_factory.GetMessageClass(pool.FindMessageTypeByName(full_name))
