"""The registry of table models and the schema creation DDL.

Usage:
    schema = Schema(Settings.from_config(read_config()))
    schema.register("customers", Customer)
    schema.register("blog_posts", BlogPost)
    schema.must_register("customer_master", FullCustomer, view)

    create_schema(schema, executor)
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from typing import Any, Callable

from pgdesc.core.errors import SchemaError
from pgdesc.core.model.annotation import build_table
from pgdesc.core.model.record import RecordType
from pgdesc.core.model.settings import DEFAULT_SETTINGS, Settings
from pgdesc.core.model.table import PasswordHandler, Table
from pgdesc.core.model.types import DataType, TableType
from pgdesc.core.sql.arguments import quote_identifier
from pgdesc.core.sql.ddl import build_alter_table_foreign_keys_queries, build_create_table_query

logger = logging.getLogger(__name__)

TableOption = Callable[[Table], bool]


def view(table: Table) -> bool:
    """Register the table as a view."""
    table.type = TableType.view
    return True


def materialized_view(table: Table) -> bool:
    table.type = TableType.materialized_view
    return True


def presenter(table: Table) -> bool:
    """Register the table as a presenter, a row shape decoded from custom select queries."""
    table.type = TableType.presenter
    return True


def _record_key(record: Any) -> Any:
    if isinstance(record, RecordType):
        return record.name
    if isinstance(record, type):
        return record
    return type(record)


class Schema (object):
    """Registered table models, in registration order.

    Args:
        settings: Model settings used to build the tables and the schema DDL.
    """

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or DEFAULT_SETTINGS
        self._tables = OrderedDict()
        self.password_handler = None

    @property
    def search_path(self) -> str:
        return self.settings.search_path

    def handle_password(self, handler: PasswordHandler) -> Schema:
        """Set the password hooks of every registered and future table. A handler without hooks is ignored."""
        if handler is None or (handler.encrypt is None and handler.decrypt is None):
            return self
        self.password_handler = handler
        for table in self._tables.values():
            table.password_handler = handler
        return self

    def register(self, table_name: str, record: Any, *options: TableOption) -> Table:
        """Build and register the table model of a record type.

        Args:
            table_name: The table name.
            record: A dataclass type, one of its instances, or a `RecordType`.
            *options: Callables applied to the new table. When one returns False the table
                is returned but not registered.

        Returns:
            The new table.

        Raises:
            AnnotationError: If the record type cannot be turned into a table.
        """
        record_type = record if isinstance(record, RecordType) else \
            (record if isinstance(record, type) else type(record))
        table = build_table(table_name, record_type, self.settings)
        table.registered_position = len(self._tables) + 1
        table.password_handler = self.password_handler

        for option in options:
            if not option(table):
                logger.debug("Table %s was built but not registered", table_name)
                return table

        self._tables[_record_key(record)] = table
        logger.debug("Registered table %s at position %d", table_name, table.registered_position)
        return table

    def must_register(self, table_name: str, record: Any, *options: TableOption) -> Schema:
        """Like `register`, but marks the table strict and returns the schema for chaining."""
        self.register(table_name, record, *options).set_strict(True)
        return self

    def last(self) -> Table | None:
        if not self._tables:
            return None
        return next(reversed(self._tables.values()))

    def get(self, record: Any) -> Table:
        """Return the table registered for a record type (or record).

        Raises:
            SchemaError: If the record type was not registered.
        """
        key = _record_key(record)
        table = self._tables.get(key)
        if table is None:
            name = getattr(key, "__name__", key)
            raise SchemaError("%s was not registered, forgot Schema.register?" % name)
        return table

    def get_by_table_name(self, table_name: str) -> Table:
        for table in self._tables.values():
            if table.name == table_name:
                return table
        raise SchemaError("table %s was not registered, forgot Schema.register?" % table_name)

    def tables(self, *types: TableType) -> list[Table]:
        """Return the registered tables of the given types (all when none are given), in registration order."""
        tables = [t for t in self._tables.values() if t.is_type(*types)]
        return sorted(tables, key=lambda t: t.registered_position)

    def table_names(self, *types: TableType) -> list[str]:
        return [t.name for t in self.tables(*types)]

    def has_column_type(self, *data_types: DataType) -> bool:
        return any(c.type in data_types for t in self.tables() for c in t.columns)

    def has_password(self) -> bool:
        return any(c.password for t in self.tables() for c in t.columns)

    def __len__(self):
        return len(self._tables)


def _set_timestamp_dump(schema, tables, existing_triggers):
    trigger_name = schema.settings.set_timestamp_trigger
    column_name = schema.settings.updated_at_column
    if not trigger_name or not column_name:
        return []

    function_sql = ("CREATE OR REPLACE FUNCTION trigger_%s() RETURNS TRIGGER AS $$ "
                    "BEGIN NEW.%s = NOW(); RETURN NEW; END; $$ LANGUAGE plpgsql;") % (trigger_name, column_name)
    trigger_sql = "CREATE TRIGGER %s BEFORE UPDATE ON %s FOR EACH ROW EXECUTE PROCEDURE trigger_%s();"

    existing = {(t.name, t.table_name) for t in existing_triggers}
    statements = []
    for table in tables:
        if table.is_read_only() or (trigger_name, table.name) in existing:
            continue
        column = table.get_column_by_name(column_name)
        if column is None or column.name != column_name or column.type is not DataType.timestamp:
            continue
        if not statements:
            statements.append(function_sql)
        statements.append(trigger_sql % (trigger_name, table.name, trigger_name))
    return statements


def create_schema_dump_sql(schema: Schema, existing_triggers=()) -> str:
    """Return the SQL that creates the schema, its extensions, tables, foreign keys and set-timestamp triggers.

    Args:
        schema: The registry to dump.
        existing_triggers: `Trigger` rows already present in the database; a set-timestamp
            trigger listed here is not created again.
    """
    statements = ["CREATE SCHEMA IF NOT EXISTS %s;" % quote_identifier(schema.search_path)]

    if schema.has_column_type(DataType.uuid) or schema.has_password():
        statements.append("CREATE EXTENSION IF NOT EXISTS pgcrypto;")
    if schema.has_column_type(DataType.citext):
        statements.append("CREATE EXTENSION IF NOT EXISTS citext;")
    if schema.has_column_type(DataType.hstore):
        statements.append("CREATE EXTENSION IF NOT EXISTS hstore;")

    tables = [t for t in schema.tables(TableType.base) if not t.is_read_only()]
    for table in tables:
        statements.append(build_create_table_query(table))
    # foreign keys go last so the registration order does not matter
    for table in tables:
        statements.extend(build_alter_table_foreign_keys_queries(table))

    statements.extend(_set_timestamp_dump(schema, tables, existing_triggers))
    return "".join(statements)


def create_schema(schema: Schema, executor, introspector=None) -> None:
    """Create the schema in one transaction of the executor.

    Args:
        schema: The registry to create.
        executor: A `QueryExecutor`.
        introspector: Optional `CatalogIntrospector` used to skip existing set-timestamp triggers.
    """
    existing_triggers = introspector.list_triggers(*schema.table_names()) if introspector is not None else ()
    dump = create_schema_dump_sql(schema, existing_triggers)
    logger.debug("Creating schema %s: %s", schema.search_path, dump)
    with executor.transaction() as tx:
        tx.execute(dump)
    logger.info("Created schema %s with %d tables", schema.search_path, len(schema.tables(TableType.base)))


def delete_schema(schema: Schema, executor) -> None:
    """Drop the schema and everything in it."""
    executor.execute("DROP SCHEMA IF EXISTS %s CASCADE;" % quote_identifier(schema.search_path))
    logger.info("Dropped schema %s", schema.search_path)
