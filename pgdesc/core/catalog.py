"""Live catalog introspection.

`CatalogIntrospector` reads column, constraint, unique index and trigger information
from the system catalogs of one schema and assembles it into `Table` models, e.g.::

    introspector = CatalogIntrospector(executor, settings, database="app")
    for table in introspector.list_tables():
        for column in table.columns:
            print(column)
"""

from __future__ import annotations

import logging

from pgdesc.core.model.column import Column
from pgdesc.core.model.constraint import ColumnBasicInfo, Constraint, Trigger, UniqueIndex
from pgdesc.core.model.settings import DEFAULT_SETTINGS
from pgdesc.core.model.table import Table
from pgdesc.core.model.types import ConstraintType, DataType, IndexType, TableType
from pgdesc.core.utils.naming import pascal_case
from pgdesc.core.utils.version_utils import is_compatible

logger = logging.getLogger(__name__)

LIST_COLUMNS_QUERY = """SELECT
    c.table_name,
    obj_description(p.attrelid::regclass) AS table_description,
    t.table_type,
    c.column_name,
    c.ordinal_position,
    col_description(p.attrelid::regclass, p.attnum) AS column_description,
    c.column_default,
    pg_catalog.format_type(p.atttypid, p.atttypmod) AS data_type,
    CASE WHEN c.is_nullable = 'YES' THEN true ELSE false END AS is_nullable,
    CASE WHEN c.is_identity = 'YES' THEN true ELSE false END AS is_identity,
    CASE WHEN c.is_generated = 'ALWAYS' THEN true ELSE false END AS is_generated
FROM information_schema.columns c
    JOIN information_schema.tables t ON t.table_catalog = c.table_catalog
        AND t.table_schema = c.table_schema AND t.table_name = c.table_name
    JOIN pg_catalog.pg_attribute p ON p.attrelid = (c.table_schema || '.' || c.table_name)::regclass
        AND p.attname = c.column_name
WHERE
    c.table_catalog = $1 AND
    c.table_schema = $2 AND
    ( CARDINALITY(CAST($3 AS varchar[])) = 0 OR c.table_name = ANY(CAST($3 AS varchar[])) )
ORDER BY table_name, ordinal_position;"""

LIST_CONSTRAINTS_QUERY = """SELECT
    cl.relname AS table_name,
    a.attname AS column_name,
    con.conname AS constraint_name,
    con.contype AS constraint_type,
    pg_get_constraintdef(con.oid) AS constraint_definition,
    COALESCE(am.amname, '') AS index_type
FROM pg_catalog.pg_class cl
JOIN pg_catalog.pg_namespace n ON n.oid = cl.relnamespace
JOIN pg_catalog.pg_attribute a ON a.attrelid = cl.oid
JOIN pg_catalog.pg_constraint con ON con.conrelid = cl.oid AND a.attnum = ANY (con.conkey)
LEFT JOIN pg_catalog.pg_index idx ON idx.indrelid = cl.oid AND idx.indexrelid = con.conindid
LEFT JOIN pg_catalog.pg_class i ON i.oid = idx.indexrelid
LEFT JOIN pg_catalog.pg_am am ON am.oid = i.relam
WHERE
    n.nspname = $1 AND
    ( CARDINALITY(CAST($2 AS varchar[])) = 0 OR cl.relname = ANY(CAST($2 AS varchar[])) )
UNION ALL
SELECT
    tablename AS table_name,
    '' AS column_name,
    indexname AS constraint_name,
    'i' AS constraint_type,
    indexdef AS constraint_definition,
    '' AS index_type
FROM pg_indexes i
WHERE
    schemaname = $1 AND
    ( CARDINALITY(CAST($2 AS varchar[])) = 0 OR tablename = ANY(CAST($2 AS varchar[])) ) AND
    indexdef NOT LIKE '%UNIQUE%'
ORDER BY table_name, column_name;"""

LIST_UNIQUE_INDEXES_QUERY = """SELECT
    t.relname AS table_name,
    i.relname AS index_name,
    array_agg(a.attname ORDER BY a.attnum) AS index_columns
FROM pg_index p
JOIN pg_class t ON t.oid = p.indrelid
JOIN pg_class i ON i.oid = p.indexrelid
JOIN pg_namespace n ON n.oid = t.relnamespace
JOIN pg_attribute a ON a.attrelid = t.oid AND a.attnum = ANY(p.indkey)
WHERE n.nspname = $1
    AND ( CARDINALITY(CAST($2 AS varchar[])) = 0 OR t.relname = ANY(CAST($2 AS varchar[])) )
    AND p.indisunique
    AND NOT p.indisprimary
    AND NOT EXISTS (SELECT 1 FROM pg_constraint c WHERE c.conindid = p.indexrelid)
GROUP BY n.nspname, t.relname, i.relname;"""

LIST_TRIGGERS_QUERY = """SELECT
    event_object_catalog,
    event_object_schema,
    trigger_name,
    event_manipulation,
    event_object_table,
    action_statement,
    action_orientation,
    action_timing
FROM information_schema.triggers
WHERE event_object_catalog = $1 AND event_object_table = ANY(CAST($2 AS varchar[]))
ORDER BY event_object_table;"""

VERSION_QUERY = "SELECT version();"


def _with_period(text):
    text = text or ""
    if text and not text.endswith("."):
        text += "."
    return text


def sort_tables(tables):
    """Stable-sort introspected tables: tables without ``_`` first, read-only tables last.

    This approximates parents before children by name only; foreign keys are not followed.
    """
    return sorted(tables, key=lambda t: (t.is_read_only(), "_" in t.name))


def parse_version(text):
    """Extract ``15.3`` from ``PostgreSQL 15.3, compiled by ...``.

    Raises:
        ValueError: If the text does not carry a PostgreSQL version.
    """
    start = text.find("PostgreSQL ")
    if start == -1:
        raise ValueError("could not find PostgreSQL version in version string: %s" % text)
    start += len("PostgreSQL ")
    end = text.find(" ", start)
    if end == -1:
        raise ValueError("could not find end of version number in version string: %s" % text)
    return text[start:end].rstrip(",").rstrip(".")


class CatalogIntrospector (object):
    """Builds table models from the live catalog of one schema.

    Args:
        executor: A `QueryExecutor`.
        settings: Model settings; the search path selects the schema to read.
        database: The catalog (database) name.
    """

    def __init__(self, executor, settings=None, database="postgres"):
        self.executor = executor
        self.settings = settings or DEFAULT_SETTINGS
        self.database = database

    @property
    def search_path(self):
        return self.settings.search_path

    def list_columns_information_schema(self, *table_names):
        result = self.executor.query(LIST_COLUMNS_QUERY, self.database, self.search_path, list(table_names))
        infos = []
        for (table_name, table_description, table_type, column_name, ordinal_position, column_description,
             column_default, data_type, is_nullable, is_identity, is_generated) in result:
            parsed_type, argument = DataType.parse(data_type)
            if parsed_type is None:
                logger.warning("Unknown data type %r of column %s.%s", data_type, table_name, column_name)
            infos.append(ColumnBasicInfo(
                table_name=table_name,
                table_description=_with_period(table_description),
                table_type=TableType.parse(table_type),
                name=column_name,
                ordinal_position=ordinal_position,
                description=_with_period(column_description),
                default=column_default or "",
                data_type=parsed_type,
                data_type_argument=argument,
                is_nullable=bool(is_nullable),
                is_identity=bool(is_identity),
                is_generated=bool(is_generated),
            ))
        return infos

    def list_constraints(self, *table_names):
        """List the constraints and the plain (non-unique) indexes of the schema.

        Definitions that cannot be parsed leave the constraint payload unset.
        """
        result = self.executor.query(LIST_CONSTRAINTS_QUERY, self.search_path, list(table_names))
        constraints = []
        for table_name, column_name, constraint_name, constraint_type, definition, index_type in result:
            c = Constraint(
                table_name=table_name,
                column_name=column_name or "",
                constraint_name=constraint_name,
                constraint_type=ConstraintType.parse(constraint_type),
                index_type=IndexType.parse(index_type),
            )
            c.build(definition)
            constraints.append(c)
        return constraints

    def list_unique_indexes(self, *table_names):
        result = self.executor.query(LIST_UNIQUE_INDEXES_QUERY, self.search_path, list(table_names))
        return [UniqueIndex(table_name, index_name, list(columns or []))
                for table_name, index_name, columns in result]

    def list_triggers(self, *table_names):
        result = self.executor.query(LIST_TRIGGERS_QUERY, self.database, list(table_names))
        return [Trigger(*row) for row in result]

    def list_columns(self, *table_names):
        """List the columns of the given tables (all tables when none are given) with their constraints applied."""
        infos = self.list_columns_information_schema(*table_names)
        constraints = self.list_constraints(*table_names)
        unique_indexes = self.list_unique_indexes(*table_names)

        columns = []
        for info in infos:
            column = Column()
            info.build_column(column)

            for constraint in constraints:
                if constraint.table_name == column.table_name and constraint.column_name == column.name:
                    constraint.build_column(column)

            for unique_index in unique_indexes:
                if unique_index.table_name == column.table_name and column.name in unique_index.columns:
                    column.unique = False
                    column.unique_index = unique_index.index_name
                    break

            # postgres creates these indexes itself
            if column.primary_key or column.unique or column.unique_index:
                column.index = None

            columns.append(column)
        return columns

    def list_tables(self, table_names=(), filter=None):
        """Assemble the introspected columns into tables.

        Args:
            table_names: Restrict to these tables; all tables of the schema when empty.
            filter: Optional callable taking a `Table`; a False result drops the table.
                See `TypeFilter`.

        Returns:
            The tables, ordered by `sort_tables`.
        """
        grouped = {}
        order = []
        for column in self.list_columns(*table_names):
            if column.table_name not in grouped:
                grouped[column.table_name] = []
                order.append(column)
            grouped[column.table_name].append(column)

        tables = []
        for position, first in enumerate(order):
            table = Table(
                name=first.table_name,
                search_path=self.search_path,
                type=first.table_type,
                registered_position=position,
                record_name=pascal_case(first.table_name),
                description=first.table_description,
                password_algorithm=self.settings.password_algorithm,
            )
            table.add_columns(*grouped[first.table_name])
            if filter is not None and not filter(table):
                continue
            tables.append(table)

        return sort_tables(tables)

    def get_version(self):
        return parse_version(self.executor.query_value(VERSION_QUERY))

    def is_server_compatible(self, compat_versions):
        """Check the server version against ``[[">=13", "<17"], ...]`` style specifications."""
        return is_compatible(self.get_version(), compat_versions)
