"""Table definition of the table model."""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Callable

from pgdesc.core.model.column import Column
from pgdesc.core.model.constraint import ForeignKeyConstraint
from pgdesc.core.model.record import RecordType
from pgdesc.core.model.types import IndexType, TableType
from pgdesc.core.utils.core_utils import DEFAULT_SEARCH_PATH


@dataclass
class PasswordHandler:
    """Optional hooks applied to password columns.

    Both callables take ``(table_name, text)``. ``encrypt`` maps a plain password to the
    stored value before it is sent to the database. ``decrypt`` maps the stored value back;
    it may return an empty string to signal that it only verified the value.
    When ``encrypt`` is not set, passwords are hashed by the database with pgcrypto.
    """

    encrypt: Callable[[str, str], str] | None = None
    decrypt: Callable[[str, str], str] | None = None

    def can_encrypt(self) -> bool:
        return self.encrypt is not None

    def can_decrypt(self) -> bool:
        return self.decrypt is not None


@dataclass
class TableIndex:
    """A single-column index declared on a table."""

    table_name: str
    column_name: str
    name: str
    type: IndexType


@dataclass(eq=False)
class Table:
    """A table, view, materialized view or presenter and its columns.

    Attributes:
        name: The table name.
        search_path: The schema (namespace) the table lives in.
        type: The kind of table.
        registered_position: Registration order, starting from 1 for registered tables.
        record_type: Descriptor of the record type the table was built from, if any.
        record_name: Name of that record type, or the record name derived from the table name.
        description: Human-readable description.
        strict: Unmapped result columns are an error when scanning rows.
        columns: The ordered columns.
        password_handler: Optional password hooks.
        password_algorithm: The pgcrypto ``gen_salt`` algorithm used for password columns.
    """

    name: str
    search_path: str = DEFAULT_SEARCH_PATH
    type: TableType = TableType.base
    registered_position: int = 0
    record_type: RecordType | None = field(default=None, repr=False)
    record_name: str = ""
    description: str = ""
    strict: bool = False
    columns: list[Column] = field(default_factory=list)
    password_handler: PasswordHandler | None = field(default=None, repr=False)
    password_algorithm: str = "bf"

    def __post_init__(self):
        for c in self.columns:
            c.table = self

    def is_type(self, *types: TableType) -> bool:
        """Report whether the table is one of ``types`` (True when none are given)."""
        return not types or self.type in types

    def is_read_only(self) -> bool:
        return self.type.is_read_only()

    def add_columns(self, *columns: Column) -> None:
        for c in columns:
            c.table = self
        self.columns.extend(columns)

    def remove_columns(self, *column_names: str) -> None:
        for name in column_names:
            for i, c in enumerate(self.columns):
                if c.name == name:
                    del self.columns[i]
                    break

    def list_column_names(self, except_: tuple[str, ...] | list[str] = ()) -> list[str]:
        return [c.name for c in self.columns if c.name not in except_]

    def get_column_by_name(self, name: str) -> Column | None:
        """Return the column with the given name, compared case-insensitively, or None."""
        name = name.lower()
        for c in self.columns:
            if c.name.lower() == name:
                return c
        return None

    def column_exists(self, name: str) -> bool:
        return self.get_column_by_name(name) is not None

    def filter_columns(self, fn: Callable[[Column], bool] | None) -> None:
        """Keep only the columns for which ``fn`` returns True.

        The filter may also modify the columns it is given.
        """
        if fn is None:
            return
        self.columns = [c for c in self.columns if fn(c)]

    def set_strict(self, value: bool) -> Table:
        self.strict = value
        return self

    def username_column(self) -> Column | None:
        return next((c for c in self.columns if c.username), None)

    def password_column(self) -> Column | None:
        return next((c for c in self.columns if c.password), None)

    def can_encrypt_password(self) -> bool:
        return self.password_handler is not None and self.password_handler.can_encrypt()

    def can_decrypt_password(self) -> bool:
        return self.password_handler is not None and self.password_handler.can_decrypt()

    def primary_key(self) -> Column | None:
        return next((c for c in self.columns if c.primary_key), None)

    def on_conflict(self) -> str | None:
        """Return the first ON CONFLICT action declared by a column, or None."""
        return next((c.conflict for c in self.columns if c.conflict), None)

    def unique_indexes(self) -> OrderedDict[str, list[str]]:
        """Map each named unique index to its column names, in declaration order."""
        unique_indexes = OrderedDict()
        for c in self.columns:
            if c.unique_index:
                unique_indexes.setdefault(c.unique_index, []).append(c.name)
        return unique_indexes

    def indexes(self) -> list[TableIndex]:
        indexes = []
        for c in self.columns:
            if c.index is None:
                continue
            if c.reference_column_name:
                # matches the constraint name postgres gives the foreign key
                index_name = "%s_%s_fkey" % (self.name, c.name)
            elif c.primary_key:
                index_name = "%s_pkey" % self.name
            else:
                index_name = "%s_%s_idx" % (self.name, c.name)
            indexes.append(TableIndex(self.name, c.name, index_name, c.index))
        return indexes

    def foreign_keys(self) -> list[ForeignKeyConstraint]:
        return [
            ForeignKeyConstraint(
                column_name=c.name,
                reference_table_name=c.reference_table_name,
                reference_column_name=c.reference_column_name,
                on_delete=c.reference_on_delete,
                deferrable=c.deferrable_reference,
            )
            for c in self.columns if c.reference_table_name
        ]

    def foreign_key_column_names(self) -> list[str]:
        return [c.name for c in self.columns if c.reference_table_name]

    def list_columns_without_presenter(self) -> list[Column]:
        return [c for c in self.columns if not c.presenter]

    def list_columns_for_select_without_generated(self) -> list[Column]:
        """Columns that can be copied from an existing row: no presenter, generated or identity columns."""
        return [c for c in self.columns if not (c.presenter or c.identity or c.is_generated())]

    def new_record(self) -> Any:
        if self.record_type is None:
            raise TypeError("table %s has no record type" % self.name)
        return self.record_type.new()

    def __str__(self):
        return "%s.%s" % (self.search_path, self.name)
