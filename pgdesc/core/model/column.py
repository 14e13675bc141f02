"""Column definition of the table model."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from pgdesc.core.model.types import DataType, IndexType, TableType
from pgdesc.core.utils.core_utils import DEFAULT_TAG

if TYPE_CHECKING:
    from pgdesc.core.model.table import Table

NULL_LITERAL = "null"
GEN_RANDOM_UUID = "gen_random_uuid()"
UUID_GENERATE_V4 = "uuid_generate_v4()"
CHARACTER_VARYING_CAST = "::character varying"


@dataclass(eq=True)
class Column:
    """A binding between one record field and one table column.

    Columns built from annotations carry the field locator and host type of the field they
    bind. Columns built by catalog introspection carry the table name, description and type
    of the table they were read from instead.

    Attributes:
        table: The owning table (a non-owning back reference).
        table_name: Name of the table the column lives in.
        table_description: Description of that table.
        table_type: Kind of that table.
        name: The column name.
        type: The column data type.
        description: Human-readable description of the column.
        ordinal_position: Position of the column in the table, starting from 1.
        locator: Attribute path of the bound field within the record.
        host_type: Declared Python type of the bound field.
        field_name: Attribute name of the bound field.
        type_argument: Optional type argument, e.g. ``255`` for ``varchar(255)``.
        primary_key: The column is the primary key.
        identity: The column is an identity column.
        default: Default value or SQL expression.
        check_constraint: Boolean expression of a CHECK constraint.
        unique: The column has a single-column unique constraint.
        conflict: ON CONFLICT action text applied to the unique columns on insert.
        username: The column holds the username used for credential lookups.
        password: The column holds a password.
        nullable: The column accepts NULL.
        reference_table_name: Referenced table of a foreign key.
        reference_column_name: Referenced column of a foreign key.
        deferrable_reference: The foreign key is DEFERRABLE.
        reference_on_delete: The ON DELETE action of the foreign key.
        index: Index method of a single-column index, or None.
        unique_index: Name of the multi-column unique index the column belongs to.
        presenter: The column is skipped by CREATE TABLE, INSERT, UPDATE and DUPLICATE.
        auto_generated: The column is skipped by INSERT.
        unscannable: The column is not assigned when scanning rows.
        is_scanner: The host type provides a ``scan(value)`` classmethod.
    """

    table: Table | None = field(default=None, repr=False, compare=False)
    table_name: str = ""
    table_description: str = ""
    table_type: TableType = TableType.base

    name: str = ""
    type: DataType | None = None
    description: str = ""
    ordinal_position: int = 0
    locator: tuple[str, ...] = ()
    host_type: Any = field(default=None, compare=False)
    field_name: str = ""
    type_argument: str = ""
    primary_key: bool = False
    identity: bool = False
    default: str = ""
    check_constraint: str = ""
    unique: bool = False
    conflict: str = ""
    username: bool = False
    password: bool = False
    nullable: bool = False
    reference_table_name: str = ""
    reference_column_name: str = ""
    deferrable_reference: bool = False
    reference_on_delete: str = ""
    index: IndexType | None = None
    unique_index: str = ""
    presenter: bool = False
    auto_generated: bool = False
    unscannable: bool = False
    is_scanner: bool = field(default=False, compare=False)

    def is_generated_timestamp(self) -> bool:
        """Report whether this is a time column defaulting to ``clock_timestamp()`` or ``now()``."""
        if self.type is not None and self.type.is_time():
            return self.default.lower() in ("clock_timestamp()", "now()")
        return False

    def is_generated_primary_uuid(self) -> bool:
        """Report whether this is a non-nullable uuid primary key with a random-uuid default."""
        return self.primary_key and not self.nullable and self.type is DataType.uuid and \
            self.default in (GEN_RANDOM_UUID, UUID_GENERATE_V4)

    def is_generated(self) -> bool:
        return self.is_generated_primary_uuid() or self.is_generated_timestamp()

    def is_read_only(self) -> bool:
        return (self.table is not None and self.table.type.is_read_only()) or self.table_type.is_read_only()

    def field_tag_string(self, strict: bool = False, tag: str = DEFAULT_TAG) -> str:
        """Render the column as its canonical annotation, e.g. ``pg:"name=id,type=uuid,primary"``.

        Options holding a zero value are left out. Columns of read-only tables render
        only their name and type.

        Args:
            strict: Also render the type argument, the ``username``, ``password``, ``auto``,
                ``presenter`` and ``unscannable`` options, and keep type casts on defaults.
                The non-strict form is the one compared during schema reconciliation.
            tag: The annotation key written in front of the options.

        Returns:
            The rendered annotation.
        """
        parts = [tag, ':"']
        _write(parts, "name=%s", self.name)
        _write(parts, ",type=%s", self.type.value if self.type is not None else "")
        if self.is_read_only():
            parts.append('"')
            return "".join(parts)

        if strict:
            _write(parts, "(%s)", self.type_argument)

        _write(parts, ",primary", self.primary_key)
        _write(parts, ",identity", self.identity)
        if self.nullable:
            _write(parts, ",nullable", True)
        else:
            default_value = self.default
            if not strict and self.type is not None:
                # {}::integer[] becomes {}
                for alias in self.type.aliases:
                    suffix = "::" + alias
                    if default_value.endswith(suffix):
                        default_value = default_value[:-len(suffix)]
            _write(parts, ",default=%s", default_value)

        _write(parts, ",unique", self.unique)
        _write(parts, ",conflict=%s", self.conflict)
        if strict:
            _write(parts, ",username", self.username)
            _write(parts, ",password", self.password)

        if self.reference_table_name:
            _write(parts, ",ref=%s", self.reference_table_name)
            if self.reference_column_name:
                _write(parts, "(%s", self.reference_column_name)
                if self.reference_on_delete:
                    parts.append(" " + str(self.reference_on_delete))
                _write(parts, " deferrable", self.deferrable_reference)
                parts.append(")")

        if self.index is not None:
            _write(parts, ",index=%s", self.index.value)

        _write(parts, ",unique_index=%s", self.unique_index)
        _write(parts, ",check=%s", self.check_constraint)
        if strict:
            _write(parts, ",auto", self.auto_generated)
            _write(parts, ",presenter", self.presenter)
            _write(parts, ",unscannable", self.unscannable)

        parts.append('"')
        return "".join(parts)

    def __str__(self):
        return "[%s.%s] %s" % (self.table_name, self.name, self.field_tag_string(strict=True))


def _write(parts, key, value):
    if not value:
        return
    if "%s" in key and not isinstance(value, bool):
        parts.append(key % value)
    else:
        parts.append(key)
