"""CREATE TABLE and foreign key DDL."""

from __future__ import annotations

import logging

from pgdesc.core.sql.arguments import quote_identifier

logger = logging.getLogger(__name__)


def build_create_table_query(table):
    """Build the ``CREATE TABLE IF NOT EXISTS`` statement of a table, followed by its index statements.

    Presenter columns are left out and identity columns are generated by default. Foreign keys
    are not part of the statement; see `build_alter_table_foreign_keys_queries`.
    """
    parts = ["CREATE TABLE IF NOT EXISTS %s (" % table.name]

    definitions = []
    for c in table.list_columns_without_presenter():
        definition = quote_identifier(c.name) + " " + c.type.value
        if c.type_argument:
            definition += "(%s)" % c.type_argument
        if c.identity:
            definition += " GENERATED BY DEFAULT AS IDENTITY"
        elif c.default:
            definition += " DEFAULT " + c.default
        if not c.nullable:
            definition += " NOT NULL"
        if c.unique:
            definition += " UNIQUE"
        if c.check_constraint:
            definition += " CHECK (%s)" % c.check_constraint
        definitions.append(definition)
    parts.append(", ".join(definitions))

    pk = table.primary_key()
    if pk is not None:
        parts.append(", PRIMARY KEY (%s)" % quote_identifier(pk.name))

    # unique indexes become constraints, which cannot carry a WHERE clause
    for index_name, column_names in table.unique_indexes().items():
        parts.append(", CONSTRAINT %s UNIQUE (%s)" % (
            index_name, ", ".join(quote_identifier(name) for name in column_names)))

    parts.append(");")

    for index in table.indexes():
        parts.append("CREATE INDEX IF NOT EXISTS %s ON %s USING %s (%s);" % (
            index.name, table.name, index.type.value, quote_identifier(index.column_name)))

    query = "".join(parts)
    logger.debug("Create table %s: %s", table.name, query)
    return query


def build_alter_table_foreign_keys_queries(table):
    """Build a drop-if-exists and an add statement per foreign key, so tables can be created in any order."""
    queries = []
    for fk in table.foreign_keys():
        constraint_name = "%s_%s_fkey" % (table.name, fk.column_name)
        queries.append("ALTER TABLE %s DROP CONSTRAINT IF EXISTS %s;" % (table.name, constraint_name))

        query = "ALTER TABLE %s ADD CONSTRAINT %s FOREIGN KEY (%s) REFERENCES %s (%s) ON DELETE %s" % (
            table.name, constraint_name, fk.column_name, fk.reference_table_name, fk.reference_column_name,
            fk.on_delete)
        if fk.deferrable:
            query += " DEFERRABLE"
        queries.append(query + ";")
    return queries
