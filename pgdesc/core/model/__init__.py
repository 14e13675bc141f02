"""Table model built from annotated record types.

This package describes tables, views and presenters as ordered lists of columns,
each bound to a field of a record type. Tables are built from dataclass field
annotations or read back from the live catalog.

Usage:
    from dataclasses import dataclass, field
    from pgdesc.core.model import build_table

    @dataclass
    class Customer:
        id: str = field(metadata={"pg": "type=uuid,primary"})
        name: str = field(metadata={"pg": "type=varchar(255),unique"})

    table = build_table("customers", Customer)
"""

from pgdesc.core.model.types import DataType, IndexType, OnAction, TableType, ConstraintType, \
    DATABASE_TABLE_TYPES
from pgdesc.core.model.settings import Settings, DEFAULT_SETTINGS
from pgdesc.core.model.record import RecordField, RecordType, get_value, set_value, is_zero
from pgdesc.core.model.column import Column
from pgdesc.core.model.table import Table, TableIndex, PasswordHandler
from pgdesc.core.model.constraint import Constraint, UniqueIndex, Trigger, ColumnBasicInfo, \
    UniqueConstraint, CheckConstraint, ForeignKeyConstraint
from pgdesc.core.model.annotation import parse_annotation, parse_reference, build_column, build_table, \
    lookup_fields, parse_field_tag
from pgdesc.core.model.column_filter import ColumnFilterExpression, TypeFilter, parse_column_filter_expression
