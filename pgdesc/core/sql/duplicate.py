"""Row duplication by primary key."""

from __future__ import annotations

import logging

from pgdesc.core.errors import QueryBuildError
from pgdesc.core.sql.arguments import table_name_sql

logger = logging.getLogger(__name__)


def build_duplicate_query(table, returning=False):
    """Build ``INSERT INTO t (...) SELECT ... FROM t WHERE pk = $1`` copying one row.

    Generated, identity and presenter columns are not copied. A column referencing the
    table's own primary key is copied as ``COALESCE(col, pk)`` so the copy points at the
    source row when the original had no parent.

    Returns:
        The statement text. It takes the primary key of the source row as its only argument.

    Raises:
        QueryBuildError: If the table has no primary key.
    """
    pk = table.primary_key()
    if pk is None:
        raise QueryBuildError("duplicate: no primary key")

    columns = table.list_columns_for_select_without_generated()
    selected = []
    for c in columns:
        if c.reference_column_name == pk.name and c.reference_table_name == table.name:
            selected.append("COALESCE(%s, %s)" % (c.name, pk.name))
        else:
            selected.append(c.name)

    query = "INSERT INTO %s (%s) SELECT %s FROM %s WHERE %s = $1" % (
        table_name_sql(table), ",".join(c.name for c in columns), ",".join(selected), table_name_sql(table),
        pk.name)
    if returning:
        query += " RETURNING " + pk.name
    query += ";"
    logger.debug("Duplicate in %s: %s", table.name, query)
    return query
