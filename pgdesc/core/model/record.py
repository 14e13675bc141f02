"""Record type descriptors.

A `RecordType` is built once per record class and lists its fields, their host
types and their raw column annotations. Table building, argument extraction and
row scanning go through the descriptor and the field locators it hands out
instead of inspecting records at call time.
"""

from __future__ import annotations

import dataclasses
import datetime
import decimal
import typing
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable

from pgdesc.core.model.types import unwrap_optional
from pgdesc.core.utils.core_utils import DEFAULT_TAG

NIL_UUID = uuid.UUID(int=0)


@dataclass
class RecordField:
    """One field of a record type.

    Attributes:
        name: Attribute name on the record.
        host_type: The declared Python type of the field.
        annotation: The raw column annotation, or None when the field carries none.
        record_type: Descriptor of the embedded record when the field is itself a record.
    """

    name: str
    host_type: Any = None
    annotation: str | None = None
    record_type: RecordType | None = None

    @property
    def is_composite(self) -> bool:
        return self.record_type is not None


@dataclass
class RecordType:
    """Descriptor of a record class.

    Attributes:
        name: The record class name.
        fields: The ordered fields of the record.
        factory: Callable that builds an empty instance of the record.
    """

    name: str
    fields: list[RecordField] = field(default_factory=list)
    factory: Callable[[], Any] | None = None

    @classmethod
    def from_dataclass(cls, record_cls: type, tag: str = DEFAULT_TAG) -> RecordType:
        """Build the descriptor of a dataclass.

        The annotation of each field is read from ``dataclasses.field(metadata={tag: "..."})``.
        Fields whose (unwrapped) type is itself a dataclass get a nested descriptor.

        Args:
            record_cls: The dataclass type.
            tag: The metadata key holding the column annotation.

        Returns:
            The record type descriptor.

        Raises:
            TypeError: If ``record_cls`` is not a dataclass type.
        """
        if not (isinstance(record_cls, type) and dataclasses.is_dataclass(record_cls)):
            raise TypeError("invalid type: expected a dataclass type but got: %r" % (record_cls,))

        hints = typing.get_type_hints(record_cls)
        fields = []
        for f in dataclasses.fields(record_cls):
            host_type = hints.get(f.name, f.type)
            annotation = f.metadata.get(tag) if f.metadata else None
            nested = None
            unwrapped = unwrap_optional(host_type)
            if isinstance(unwrapped, type) and dataclasses.is_dataclass(unwrapped):
                nested = cls.from_dataclass(unwrapped, tag)
            fields.append(RecordField(f.name, host_type, annotation, nested))

        return cls(record_cls.__name__, fields, lambda: new_record(record_cls))

    def new(self) -> Any:
        """Return an empty record: every leaf field is None and embedded records are built recursively."""
        if self.factory is None:
            raise TypeError("record type %s has no factory" % self.name)
        return self.factory()


def new_record(record_cls: type) -> Any:
    kwargs = {}
    for f in dataclasses.fields(record_cls):
        if not f.init:
            continue
        hint = unwrap_optional(typing.get_type_hints(record_cls).get(f.name, f.type))
        if isinstance(hint, type) and dataclasses.is_dataclass(hint):
            kwargs[f.name] = new_record(hint)
        else:
            kwargs[f.name] = None
    return record_cls(**kwargs)


def get_value(record: Any, locator: tuple[str, ...]) -> Any:
    """Read the value at ``locator`` (a tuple of attribute names) from a record.

    A missing embedded record reads as None.
    """
    value = record
    for name in locator:
        if value is None:
            return None
        value = getattr(value, name)
    return value


def set_value(record: Any, locator: tuple[str, ...], value: Any, record_type: RecordType | None = None) -> None:
    """Assign ``value`` at ``locator``, creating a missing embedded record from its descriptor."""
    target = record
    fields = record_type.fields if record_type is not None else []
    for name in locator[:-1]:
        child = getattr(target, name)
        child_type = next((f.record_type for f in fields if f.name == name), None)
        if child is None:
            if child_type is None:
                raise TypeError("cannot set %s: embedded record %s is None" % (".".join(locator), name))
            child = child_type.new()
            setattr(target, name, child)
        target = child
        fields = child_type.fields if child_type is not None else []
    setattr(target, locator[-1], value)


def is_zero(value: Any) -> bool:
    """Report whether a value is the zero value of its type.

    None, empty strings, bytes and collections, numeric zeros, False and the nil UUID
    are zero. Objects exposing ``is_zero()`` decide for themselves.
    """
    if value is None:
        return True
    is_zero_method = getattr(value, "is_zero", None)
    if callable(is_zero_method):
        return bool(is_zero_method())
    if isinstance(value, (str, bytes, bytearray, list, tuple, dict, set, frozenset)):
        return len(value) == 0
    if isinstance(value, bool):
        return not value
    if isinstance(value, (int, float, decimal.Decimal)):
        return value == 0
    if isinstance(value, uuid.UUID):
        return value == NIL_UUID
    if isinstance(value, datetime.timedelta):
        return value == datetime.timedelta(0)
    return False
