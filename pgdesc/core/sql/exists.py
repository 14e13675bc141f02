"""EXISTS probes."""

from __future__ import annotations

import logging

from pgdesc.core.errors import QueryBuildError
from pgdesc.core.sql.arguments import extract_arguments, placeholder, quote_identifier, values
from pgdesc.core.utils.core_utils import DEFAULT_TAG

logger = logging.getLogger(__name__)


def where_clause(args):
    """Render `` WHERE a = $1 AND b = $2`` for the given arguments."""
    return " WHERE " + " AND ".join("%s = %s" % (a.column.name, placeholder(i)) for i, a in enumerate(args, 1))


def build_exists_query(table, record):
    """Build ``SELECT EXISTS(...)`` matching every non-zero field of a probe record.

    Returns:
        A ``(sql, args)`` tuple.

    Raises:
        QueryBuildError: If the probe record has no non-zero field.
    """
    args = extract_arguments(table, record, skip_auto=False)
    if not args:
        raise QueryBuildError('no arguments found for exists, maybe missing field annotation of "%s"' % DEFAULT_TAG)

    query = "SELECT EXISTS(SELECT 1 FROM %s%s);" % (quote_identifier(table.name), where_clause(args))
    logger.debug("Exists in %s: %s", table.name, query)
    return query, values(args)
