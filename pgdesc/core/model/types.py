"""Type enumerations for the table model.

This module provides the enumerations used to describe columns and tables: the
PostgreSQL data types known to the model, index methods, foreign key actions,
table kinds and the catalog constraint kinds.
"""

from __future__ import annotations

import datetime
import decimal
import ipaddress
import types
import typing
import uuid
from enum import Enum

from pgdesc.core.errors import IntrospectionParseError

_union_types = (typing.Union, types.UnionType)


class DataType(str, Enum):
    """PostgreSQL column data types.

    The value of each member is its canonical name, which is also the first of its
    aliases. Catalog type names (as returned by ``format_type``) and annotation type
    names are resolved through the aliases with `DataType.parse`.

    Numeric Types:
        - bigint, integer, smallint, numeric, real, double_precision, money
        - bigserial, serial, smallserial

    Character Types:
        - text, character, character_varying, citext

    Date/Time Types:
        - date, time, timetz, timestamp, timestamptz, interval

    Array Types:
        - bigint_array, integer_array, integer_double_array, character_array,
          character_varying_array, text_array, text_double_array, uuid_array
        - array: matches any of the array types above

    Range Types:
        - int4range, int8range, numrange, tsrange, tstzrange, daterange and
          their multirange counterparts
    """

    bigint = "bigint"
    bigint_array = "bigint[]"
    bigserial = "bigserial"
    bit = "bit"
    bit_varying = "varbit"
    boolean = "boolean"
    box = "box"
    bytea = "bytea"
    character = "character"
    character_array = "character[]"
    character_varying = "varchar"
    character_varying_array = "varchar[]"
    cidr = "cidr"
    circle = "circle"
    date = "date"
    double_precision = "float8"
    inet = "inet"
    integer = "int"
    integer_array = "int[]"
    integer_double_array = "int[][]"
    array = "array"
    interval = "interval"
    json = "json"
    jsonb = "jsonb"
    line = "line"
    lseg = "lseg"
    macaddr = "macaddr"
    macaddr8 = "macaddr8"
    money = "money"
    numeric = "numeric"
    path = "path"
    pg_lsn = "pg_lsn"
    point = "point"
    polygon = "polygon"
    real = "real"
    smallint = "smallint"
    smallserial = "smallserial"
    serial = "serial4"
    text = "text"
    text_array = "text[]"
    text_double_array = "text[][]"
    time = "time"
    timetz = "timetz"
    timestamp = "timestamp"
    timestamptz = "timestamptz"
    tsquery = "tsquery"
    tsvector = "tsvector"
    txid_snapshot = "txid_snapshot"
    uuid = "uuid"
    uuid_array = "uuid[]"
    xml = "xml"
    int4range = "int4range"
    int4multirange = "int4multirange"
    int8range = "int8range"
    int8multirange = "int8multirange"
    numrange = "numrange"
    nummultirange = "nummultirange"
    tsrange = "tsrange"
    tsmultirange = "tsmultirange"
    tstzrange = "tstzrange"
    tstzmultirange = "tstzmultirange"
    daterange = "daterange"
    datemultirange = "datemultirange"
    citext = "citext"
    hstore = "hstore"

    def __str__(self) -> str:
        return self.value

    @property
    def aliases(self) -> tuple[str, ...]:
        """The textual names of this type, canonical name first."""
        return _DATA_TYPE_ALIASES.get(self, (self.value,))

    def is_array(self) -> bool:
        return self in _ARRAY_TYPES

    def is_time(self) -> bool:
        return self in (DataType.time, DataType.timetz, DataType.timestamp, DataType.timestamptz)

    def matches(self, s: str) -> bool:
        """Report whether ``s`` names this type, ignoring case and surrounding whitespace.

        The special name ``array`` matches every array type.
        """
        s = s.strip().lower()
        if s == DataType.array.value:
            return self.is_array()
        return s in self.aliases

    def host_type(self) -> typing.Any:
        """Return the default Python representation type of this data type, or None if there is none."""
        return _DATA_TYPE_HOST_TYPES.get(self)

    @classmethod
    def parse(cls, s: str) -> tuple[DataType | None, str]:
        """Resolve a type name into a DataType and its type argument.

        A trailing parenthesized argument is split off only when the closing parenthesis is
        the last character, so ``character varying(255)`` yields ``(character_varying, "255")``
        while ``timestamp(6) without time zone`` is looked up whole.

        Args:
            s: The type name, as written in an annotation or returned by the catalog.

        Returns:
            A ``(data_type, argument)`` tuple. The data type is None when the name is unknown,
            in which case the argument is empty.
        """
        s = s.strip().lower()
        argument = ""
        if s.endswith(")"):
            lp = s.find("(")
            if lp != -1:
                argument = s[lp + 1:-1]
                s = s[:lp].strip()

        data_type = _ALIAS_LOOKUP.get(s)
        if data_type is None:
            return None, ""
        return data_type, argument

    @classmethod
    def from_host_type(cls, host_type: typing.Any) -> DataType | None:
        """Map a Python type (including ``list[...]`` and ``Optional[...]`` forms) to its default DataType.

        Returns:
            The matching DataType, or None when the type has no default mapping.
        """
        host_type = unwrap_optional(host_type)
        origin = typing.get_origin(host_type)
        if origin in (list, tuple):
            args = typing.get_args(host_type)
            item = args[0] if args else None
            item_origin = typing.get_origin(item)
            if item_origin in (list, tuple):
                item_args = typing.get_args(item)
                inner = item_args[0] if item_args else None
                if inner is int:
                    return cls.integer_double_array
                if inner is str:
                    return cls.text_double_array
                return None
            return _HOST_ARRAY_TYPES.get(item)
        if origin is dict:
            return cls.jsonb

        if not isinstance(host_type, type):
            return None
        data_type = _HOST_SCALAR_TYPES.get(host_type)
        if data_type is not None:
            return data_type
        # subclasses such as str enums map like their base
        for base, data_type in _HOST_SCALAR_TYPES.items():
            if issubclass(host_type, base):
                return data_type
        return None


def unwrap_optional(host_type: typing.Any) -> typing.Any:
    """Return ``X`` for ``Optional[X]`` or ``X | None``, otherwise the type unchanged."""
    if typing.get_origin(host_type) in _union_types:
        args = [a for a in typing.get_args(host_type) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return host_type


_DATA_TYPE_ALIASES = {
    DataType.bigint: ("bigint", "int8"),
    DataType.bigint_array: ("bigint[]", "int8[]"),
    DataType.bigserial: ("bigserial", "serial8"),
    DataType.bit: ("bit",),
    DataType.bit_varying: ("varbit", "bit varying"),
    DataType.boolean: ("boolean", "bool"),
    DataType.character: ("character", "char"),
    DataType.character_array: ("character[]", "char[]"),
    DataType.character_varying: ("varchar", "character varying"),
    DataType.character_varying_array: ("varchar[]", "character varying[]"),
    DataType.double_precision: ("float8", "double precision"),
    DataType.integer: ("int", "int4", "integer"),
    DataType.integer_array: ("int[]", "int4[]", "integer[]"),
    DataType.integer_double_array: ("int[][]", "int4[][]", "integer[][]"),
    DataType.numeric: ("numeric", "decimal"),
    DataType.real: ("real", "float4"),
    DataType.smallint: ("smallint", "int2"),
    DataType.smallserial: ("smallserial", "serial2"),
    DataType.time: ("time", "time without time zone", "time(6) without time zone"),
    DataType.timetz: ("timetz", "time with time zone", "time(6) with time zone"),
    DataType.timestamp: ("timestamp", "timestamp without time zone", "timestamp(6) without time zone"),
    DataType.timestamptz: ("timestamptz", "timestamp with time zone", "timestamp(6) with time zone"),
}

_ALIAS_LOOKUP = {alias: member for member in DataType for alias in member.aliases}

_ARRAY_TYPES = frozenset((
    DataType.bigint_array,
    DataType.integer_array,
    DataType.integer_double_array,
    DataType.character_array,
    DataType.character_varying_array,
    DataType.text_array,
    DataType.text_double_array,
    DataType.uuid_array,
))

_DATA_TYPE_HOST_TYPES = {
    DataType.text: str,
    DataType.character_varying: str,
    DataType.citext: str,
    DataType.tsvector: str,
    DataType.uuid: uuid.UUID,
    DataType.bytea: bytes,
    DataType.integer: int,
    DataType.serial: int,
    DataType.bigserial: int,
    DataType.bigint: int,
    DataType.smallint: int,
    DataType.numeric: decimal.Decimal,
    DataType.real: float,
    DataType.double_precision: float,
    DataType.integer_array: list[int],
    DataType.integer_double_array: list[list[int]],
    DataType.character_varying_array: list[str],
    DataType.text_array: list[str],
    DataType.uuid_array: list[uuid.UUID],
    DataType.boolean: bool,
    DataType.text_double_array: list[list[str]],
    DataType.date: datetime.date,
    DataType.time: datetime.time,
    DataType.timetz: datetime.time,
    DataType.timestamp: datetime.datetime,
    DataType.timestamptz: datetime.datetime,
    DataType.interval: datetime.timedelta,
    DataType.bigint_array: list[int],
    DataType.json: dict,
    DataType.jsonb: dict,
}

# order matters for the subclass fallback: bool before int, datetime before date
_HOST_SCALAR_TYPES = {
    str: DataType.text,
    bytes: DataType.bytea,
    bool: DataType.boolean,
    int: DataType.integer,
    float: DataType.numeric,
    decimal.Decimal: DataType.numeric,
    datetime.datetime: DataType.timestamp,
    datetime.date: DataType.date,
    datetime.time: DataType.time,
    datetime.timedelta: DataType.interval,
    uuid.UUID: DataType.uuid,
    dict: DataType.jsonb,
    ipaddress.IPv4Address: DataType.inet,
    ipaddress.IPv6Address: DataType.inet,
    ipaddress.IPv4Network: DataType.cidr,
    ipaddress.IPv6Network: DataType.cidr,
}

_HOST_ARRAY_TYPES = {
    int: DataType.integer_array,
    str: DataType.character_varying_array,
    uuid.UUID: DataType.uuid_array,
    datetime.timedelta: DataType.bigint_array,
}


class IndexType(str, Enum):
    """Index access methods. A column without an index carries None."""

    btree = "btree"
    hash = "hash"
    gist = "gist"
    spgist = "spgist"
    gin = "gin"
    brin = "brin"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, s: str | None) -> IndexType | None:
        """Case-insensitive lookup of an index method name; None when unknown or empty."""
        if not s:
            return None
        s = s.strip().lower()
        for member in cls:
            if member.value == s:
                return member
        return None


class OnAction(str, Enum):
    """Foreign key constraint actions for ON UPDATE and ON DELETE.

    Values:
        NO_ACTION: Raise an error if referenced rows exist
        RESTRICT: Same as NO_ACTION, but checked immediately
        CASCADE: Automatically update/delete referencing rows
        SET_NULL: Set referencing columns to NULL
        SET_DEFAULT: Set referencing columns to their default values
    """

    NO_ACTION = "NO ACTION"
    RESTRICT = "RESTRICT"
    CASCADE = "CASCADE"
    SET_NULL = "SET NULL"
    SET_DEFAULT = "SET DEFAULT"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def from_text(cls, text: str) -> OnAction:
        """Parse an action name, ignoring case.

        Raises:
            ValueError: If the text is not one of the five actions.
        """
        normalized = " ".join(text.upper().split())
        for member in cls:
            if member.value == normalized:
                return member
        raise ValueError(f"Unknown foreign key action: {text}")


class TableType(str, Enum):
    """Kinds of table models.

    Values:
        base: A regular table
        view: A view, read-only
        materialized_view: A materialized view, read-only but refreshable
        presenter: A virtual row shape used only to decode custom select queries
    """

    base = "base"
    view = "view"
    materialized_view = "materialized view"
    presenter = "presenter"

    def is_read_only(self) -> bool:
        return self in (TableType.view, TableType.materialized_view, TableType.presenter)

    def is_refreshable(self) -> bool:
        return self is TableType.materialized_view

    @classmethod
    def parse(cls, s: str | None) -> TableType:
        """Map an ``information_schema.tables.table_type`` value; anything unknown is a base table."""
        return _CATALOG_TABLE_TYPES.get(s, cls.base)


_CATALOG_TABLE_TYPES = {
    "BASE TABLE": TableType.base,
    "VIEW": TableType.view,
    "MATERIALIZED VIEW": TableType.materialized_view,
}

DATABASE_TABLE_TYPES = (TableType.base, TableType.view, TableType.materialized_view)


class ConstraintType(str, Enum):
    """Catalog constraint kinds, plus the ``index`` pseudo-constraint for plain indexes."""

    primary_key = "PRIMARY KEY"
    unique = "UNIQUE"
    check = "CHECK"
    foreign_key = "FOREIGN KEY"
    index = "INDEX"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value: str | bytes) -> ConstraintType:
        """Parse a ``pg_constraint.contype`` letter or a constraint keyword.

        Raises:
            IntrospectionParseError: If the value is not a known constraint kind.
        """
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        if not isinstance(value, str):
            raise IntrospectionParseError("constraint type: unknown type of: %s" % type(value).__name__)
        constraint_type = _CONSTRAINT_TYPE_TEXT.get(value)
        if constraint_type is None:
            raise IntrospectionParseError("constraint type: unknown value of: %r" % value)
        return constraint_type


_CONSTRAINT_TYPE_TEXT = {
    "PRIMARY KEY": ConstraintType.primary_key,
    "UNIQUE": ConstraintType.unique,
    "CHECK": ConstraintType.check,
    "FOREIGN KEY": ConstraintType.foreign_key,
    "INDEX": ConstraintType.index,
    "p": ConstraintType.primary_key,
    "u": ConstraintType.unique,
    "c": ConstraintType.check,
    "f": ConstraintType.foreign_key,
    "i": ConstraintType.index,
}
