"""UPDATE statements."""

from __future__ import annotations

import logging

from pgdesc.core.errors import QueryBuildError
from pgdesc.core.sql.arguments import Argument, crypt_expression, extract_arguments, extract_primary_key_value, \
    placeholder, quote_identifier, values
from pgdesc.core.utils.core_utils import DEFAULT_TAG

logger = logging.getLogger(__name__)


def build_update_query(table, record, only_columns=None):
    """Build an UPDATE statement of one record, matched by its primary key.

    Without ``only_columns`` every non-zero column except the primary key is set, so a
    field cannot be reset to its zero value this way. With ``only_columns`` exactly the
    named columns are set, whatever their value. When the primary key itself is named,
    the WHERE clause reuses its placeholder.

    Returns:
        A ``(sql, args)`` tuple. The primary key value is the last argument.

    Raises:
        QueryBuildError: If the table has no primary key, the record has no primary key
            value, or there is nothing to update.
    """
    pk, pk_value = extract_primary_key_value(table, record)

    if only_columns:
        args = [a for a in extract_arguments(table, record, full=True) if a.column.name in only_columns]
    else:
        args = [a for a in extract_arguments(table, record) if not a.column.primary_key]

    if not args:
        raise QueryBuildError('no arguments found for update, maybe missing field annotation of "%s"' % DEFAULT_TAG)

    assignments = []
    pk_param = None
    for i, a in enumerate(args, 1):
        c = a.column
        param = placeholder(i)
        if c.primary_key:
            pk_param = param
        if c.password and not table.can_encrypt_password():
            param = crypt_expression(param, table.password_algorithm)
        assignments.append("%s = %s" % (c.name, param))

    if pk_param is None:
        args.append(Argument(pk, pk_value))
        pk_param = placeholder(len(args))

    query = "UPDATE %s SET %s WHERE %s = %s;" % (
        quote_identifier(table.name), ",".join(assignments), quote_identifier(pk.name), pk_param)
    logger.debug("Update %s: %s", table.name, query)
    return query, values(args)


def update_except_columns(table, record, *except_):
    """Build an UPDATE setting every column except the named ones (and except auto-generated columns)."""
    only_columns = table.list_column_names(except_=except_)
    return build_update_query(table, record, only_columns=only_columns)
