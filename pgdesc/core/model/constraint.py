"""Catalog constraint rows and the parsers for the constraint definition text the catalog returns.

The parsers return None when the text does not have the expected shape. The
introspection pass keeps going in that case and the affected column is left
under-specified.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from pgdesc.core.model.types import ConstraintType, DataType, IndexType, TableType

logger = logging.getLogger(__name__)

_simple_index_regex = re.compile(r"CREATE INDEX (\w+) ON \w+\.(\w+) USING (\w+) \((\w+)\)")
_unique_index_regex = re.compile(
    r"CREATE UNIQUE INDEX (?P<name>\w+) ON (?P<schema>\w+)\.(?P<table>\w+) USING (?P<method>\w+) \((?P<columns>.*)\)")
_check_regex = re.compile(r"(?is)^CHECK\s*\((.*)\)\s*$")
_foreign_key_regex = re.compile(r"(?i)^FOREIGN KEY\s*\((\w+)\)\s*REFERENCES\s*(\w+)\s*\((\w+)\)(.*)$")
_on_delete_regex = re.compile(r"(?i)ON DELETE\s+(CASCADE|RESTRICT|NO ACTION|SET NULL|SET DEFAULT)")
_on_update_regex = re.compile(r"(?i)ON UPDATE\s+(CASCADE|RESTRICT|NO ACTION|SET NULL|SET DEFAULT)")
_deferrable_regex = re.compile(r"(?i)\bDEFERRABLE\b")


@dataclass
class UniqueConstraint:
    columns: list[str] = field(default_factory=list)


@dataclass
class CheckConstraint:
    expression: str = ""


@dataclass
class ForeignKeyConstraint:
    """A single-column foreign key.

    Attributes:
        column_name: The referencing column.
        reference_table_name: The referenced table.
        reference_column_name: The referenced column.
        on_delete: The ON DELETE action, upper-cased, or empty.
        on_update: The ON UPDATE action, upper-cased, or empty.
        deferrable: The constraint is DEFERRABLE.
    """

    column_name: str = ""
    reference_table_name: str = ""
    reference_column_name: str = ""
    on_delete: str = ""
    on_update: str = ""
    deferrable: bool = False


def parse_simple_index_constraint(definition):
    """Parse a ``CREATE INDEX name ON schema.table USING method (column)`` definition.

    Returns:
        A ``(index_name, table_name, column_name, index_type)`` tuple, or None when the
        definition does not describe a single-column index.
    """
    m = _simple_index_regex.search(definition or "")
    if m is None:
        logger.warning("Unable to parse index definition: %s", definition)
        return None
    return m.group(1), m.group(2), m.group(4), IndexType.parse(m.group(3))


def parse_unique_constraint(definition):
    """Parse ``UNIQUE (a, b)`` into its column list."""
    if definition is None:
        logger.warning("Unable to parse unique constraint definition: %s", definition)
        return None
    text = definition
    if text.startswith("UNIQUE ("):
        text = text[len("UNIQUE ("):]
    if text.endswith(")"):
        text = text[:-1]
    return UniqueConstraint(columns=text.split(", "))


def parse_unique_index_constraint(definition):
    """Parse a ``CREATE UNIQUE INDEX ...`` definition into its column list, or None."""
    m = _unique_index_regex.search(definition or "")
    if m is None:
        logger.warning("Unable to parse unique index definition: %s", definition)
        return None
    return m.group("columns").split(", ")


def parse_check_constraint(definition):
    """Parse ``CHECK ((expression))`` into the bare expression.

    The catalog wraps the expression in one extra pair of parentheses, which is removed
    together with the pair that belongs to CHECK itself.
    """
    m = _check_regex.match(definition or "")
    if m is None:
        logger.warning("Unable to parse check constraint definition: %s", definition)
        return None
    expression = _strip_enclosing_parens(m.group(1).strip())
    if not expression:
        logger.warning("Unable to parse check constraint definition: %s", definition)
        return None
    return CheckConstraint(expression=expression)


def _strip_enclosing_parens(text):
    if not (text.startswith("(") and text.endswith(")")):
        return text
    depth = 0
    for i, c in enumerate(text):
        if c == "(":
            depth += 1
        elif c == ")":
            depth -= 1
            if depth == 0 and i != len(text) - 1:
                # the first parenthesis closes before the end, e.g. (a > 0) AND (b > 0)
                return text
    return text[1:-1].strip()


def parse_foreign_key_constraint(definition):
    """Parse ``FOREIGN KEY (col) REFERENCES tbl (ref) [ON DELETE x] [ON UPDATE y] [DEFERRABLE]``."""
    m = _foreign_key_regex.match(definition or "")
    if m is None:
        logger.warning("Unable to parse foreign key definition: %s", definition)
        return None

    rest = m.group(4)
    on_delete = _on_delete_regex.search(rest)
    on_update = _on_update_regex.search(rest)
    return ForeignKeyConstraint(
        column_name=m.group(1),
        reference_table_name=m.group(2),
        reference_column_name=m.group(3),
        on_delete=on_delete.group(1).strip().upper() if on_delete else "",
        on_update=on_update.group(1).strip().upper() if on_update else "",
        deferrable=_deferrable_regex.search(rest) is not None,
    )


@dataclass
class Constraint:
    """One row of the catalog constraint listing.

    Only the payload matching ``constraint_type`` is set, and it stays None when the
    definition text could not be parsed.
    """

    table_name: str = ""
    column_name: str = ""
    constraint_name: str = ""
    constraint_type: ConstraintType | None = None
    index_type: IndexType | None = None
    unique: UniqueConstraint | None = None
    check: CheckConstraint | None = None
    foreign_key: ForeignKeyConstraint | None = None

    def build(self, definition):
        """Decode the definition text into the payload of this constraint's kind."""
        if self.constraint_type is ConstraintType.unique:
            self.unique = parse_unique_constraint(definition)
        elif self.constraint_type is ConstraintType.check:
            self.check = parse_check_constraint(definition)
        elif self.constraint_type is ConstraintType.foreign_key:
            self.foreign_key = parse_foreign_key_constraint(definition)
        elif self.constraint_type is ConstraintType.index:
            parsed = parse_simple_index_constraint(definition)
            if parsed is not None:
                _, _, self.column_name, self.index_type = parsed

    def build_column(self, column):
        """Apply this constraint to a matching introspected column."""
        if column.index is None:
            column.index = self.index_type

        if self.constraint_type is ConstraintType.primary_key:
            column.primary_key = True
        elif self.constraint_type is ConstraintType.unique:
            columns = self.unique.columns if self.unique is not None else []
            if not columns or (len(columns) == 1 and columns[0] == self.column_name):
                column.unique = True
            else:
                column.unique_index = self.constraint_name
        elif self.constraint_type is ConstraintType.check:
            if self.check is not None:
                column.check_constraint = self.check.expression
        elif self.constraint_type is ConstraintType.foreign_key:
            if self.foreign_key is not None:
                column.reference_table_name = self.foreign_key.reference_table_name
                column.reference_column_name = self.foreign_key.reference_column_name
                column.reference_on_delete = self.foreign_key.on_delete
                column.deferrable_reference = self.foreign_key.deferrable
        elif self.constraint_type is ConstraintType.index:
            column.index = self.index_type

    def __str__(self):
        if self.constraint_type is ConstraintType.primary_key:
            return "PRIMARY KEY (%s)" % self.column_name
        if self.constraint_type is ConstraintType.unique:
            if self.unique is None or not self.unique.columns:
                return "UNIQUE (%s)" % self.column_name
            return "UNIQUE (%s)" % ", ".join(self.unique.columns)
        if self.constraint_type is ConstraintType.check:
            return "CHECK (%s)" % (self.check.expression if self.check is not None else "")
        if self.constraint_type is ConstraintType.foreign_key:
            fk = self.foreign_key or ForeignKeyConstraint()
            return "FOREIGN KEY (%s) REFERENCES %s (%s)" % (
                self.column_name, fk.reference_table_name, fk.reference_column_name)
        if self.constraint_type is ConstraintType.index:
            return "INDEX (%s)" % self.column_name
        return ""


@dataclass
class UniqueIndex:
    """A unique index that is not backed by a constraint."""

    table_name: str
    index_name: str
    columns: list[str] = field(default_factory=list)


@dataclass
class Trigger:
    catalog: str = ""
    search_path: str = ""
    name: str = ""
    manipulation: str = ""
    table_name: str = ""
    action_statement: str = ""
    action_orientation: str = ""
    action_timing: str = ""


@dataclass
class ColumnBasicInfo:
    """One row of the catalog column listing."""

    table_name: str = ""
    table_description: str = ""
    table_type: TableType = TableType.base
    name: str = ""
    ordinal_position: int = 0
    description: str = ""
    default: str = ""
    data_type: DataType | None = None
    data_type_argument: str = ""
    is_nullable: bool = False
    is_identity: bool = False
    is_generated: bool = False

    def build_column(self, column):
        column.table_name = self.table_name
        column.table_description = self.table_description
        column.table_type = self.table_type
        column.name = self.name
        column.ordinal_position = self.ordinal_position
        column.description = self.description
        column.default = self.default
        column.type = self.data_type
        column.type_argument = self.data_type_argument
        column.nullable = self.is_nullable
        column.identity = self.is_identity
        column.auto_generated = self.is_identity or self.is_generated
        if self.data_type is not None:
            column.host_type = self.data_type.host_type()
