"""Comparison of the registered table models against the live catalog."""

from __future__ import annotations

import logging

from pgdesc.core.errors import ReconciliationError
from pgdesc.core.model.types import DATABASE_TABLE_TYPES

logger = logging.getLogger(__name__)


def _fail(message, **kwargs):
    logger.error(message)
    raise ReconciliationError(message, **kwargs)


def check_schema(schema, introspector):
    """Check that every registered table matches its live counterpart.

    Each registered column, presenters aside, must exist in the live table and each live
    column must exist in the registered table, compared case-insensitively by name. Both must render to the same non-strict annotation, compared
    case-insensitively. Descriptions are not compared; a missing description is copied
    from the other side.

    Args:
        schema: The `Schema` to check. Presenters are skipped.
        introspector: A `CatalogIntrospector` of the live database.

    Raises:
        ReconciliationError: On the first mismatch, carrying the live rendering as
            ``expected`` and the registered rendering as ``got``.
    """
    table_names = schema.table_names(*DATABASE_TABLE_TYPES)
    if not table_names:
        return

    tables = introspector.list_tables(table_names)
    if len(tables) != len(table_names):
        _fail("expected %d tables, got %d" % (len(table_names), len(tables)))

    for live in tables:
        table = schema.get_by_table_name(live.name)
        if not table.description:
            table.description = live.description
        if not live.description:
            live.description = table.description

        for column in table.list_columns_without_presenter():
            if live.get_column_by_name(column.name) is None:
                _fail('column "%s" in table "%s" not found in database' % (column.name, live.name),
                      table_name=live.name, column_name=column.name)

        for live_column in live.columns:
            column = table.get_column_by_name(live_column.name)
            if column is None:
                _fail('column "%s" in table "%s" not found in schema' % (live_column.name, live.name),
                      table_name=live.name, column_name=live_column.name)

            expected = live_column.field_tag_string(strict=False, tag=schema.settings.tag).lower()
            got = column.field_tag_string(strict=False, tag=schema.settings.tag).lower()
            if expected != got:
                _fail('column "%s" in table "%s" has wrong field tag: db:\n%s\nvs code:\n%s' % (
                    live_column.name, live.name, expected, got),
                    table_name=live.name, column_name=live_column.name, expected=expected, got=got)

            if not column.description:
                column.description = live_column.description
            if not live_column.description:
                live_column.description = column.description

    logger.debug("Schema %s matches %d live tables", schema.search_path, len(tables))
