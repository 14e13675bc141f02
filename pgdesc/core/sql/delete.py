"""DELETE statements."""

from __future__ import annotations

import logging

from pgdesc.core.errors import QueryBuildError
from pgdesc.core.sql.arguments import extract_primary_key_value, quote_identifier

logger = logging.getLogger(__name__)


def build_delete_query(table, records):
    """Build one DELETE statement for any number of records.

    Returns:
        A ``(sql, args)`` tuple whose single argument is the list of primary key values,
        bound to ``ANY($1)``.

    Raises:
        QueryBuildError: If there are no records, the table has no primary key or a
            record has no primary key value.
    """
    if not records:
        raise QueryBuildError("delete: no records")

    pk = table.primary_key()
    if pk is None:
        raise QueryBuildError("delete: table %s: no primary key" % table.name)

    ids = [extract_primary_key_value(table, record)[1] for record in records]

    query = "DELETE FROM %s WHERE %s = ANY($1);" % (quote_identifier(table.name), quote_identifier(pk.name))
    logger.debug("Delete from %s: %s", table.name, query)
    return query, [ids]
