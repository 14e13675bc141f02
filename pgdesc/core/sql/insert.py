"""INSERT and UPSERT statements."""

from __future__ import annotations

import logging

from pgdesc.core.errors import QueryBuildError
from pgdesc.core.sql.arguments import crypt_expression, extract_arguments, placeholder, table_name_sql, values
from pgdesc.core.utils.core_utils import DEFAULT_TAG

logger = logging.getLogger(__name__)


def _do_update_set(column_names, conflicts):
    assignments = ["%s = EXCLUDED.%s" % (name, name) for name in column_names if name not in conflicts]
    if not assignments:
        # every inserted column is part of the conflict target
        return "DO NOTHING"
    return "DO UPDATE SET " + ",".join(assignments)


def build_insert_query(table, record, returning=False, force_on_conflict=None, upsert=False, full=False):
    """Build an INSERT statement for a record.

    The conflict target is resolved in this order:

    1. ``force_on_conflict``, the name of a unique index group or of a unique column. The
       statement then updates every other inserted column on conflict.
    2. The ``conflict`` action declared by a column of the table, used as-is with the
       table's unique columns.
    3. With ``upsert``, the collected unique index columns, updating every other inserted
       column on conflict.

    When every inserted column is part of the target, the action is DO NOTHING.

    Otherwise no ON CONFLICT clause is written and a duplicate raises in the database.

    Args:
        table: The table model.
        record: The record to insert.
        returning: Return the primary key. Skipped when the conflict action is not a DO UPDATE.
        force_on_conflict: Name of the unique index group or unique column to use as the conflict target.
        upsert: Update the existing row on a unique index conflict.
        full: Insert zero values too.

    Returns:
        A ``(sql, args)`` tuple.

    Raises:
        QueryBuildError: If no argument was found or the forced conflict target is unknown.
    """
    returning_column = ""
    if returning:
        pk = table.primary_key()
        if pk is not None:
            returning_column = pk.name

    args = extract_arguments(table, record, full=full)
    if not args:
        raise QueryBuildError('no arguments found, maybe missing field annotation of "%s"' % DEFAULT_TAG)

    on_conflict = table.on_conflict()
    column_names = []
    params = []
    conflicts = []
    for i, a in enumerate(args, 1):
        c = a.column
        if on_conflict is not None:
            if c.unique:
                conflicts.append(c.name)
        elif c.unique_index:
            conflicts.append(c.name)

        param = placeholder(i)
        if c.password and not table.can_encrypt_password():
            param = crypt_expression(param, table.password_algorithm)
        params.append(param)
        column_names.append(c.name)

    if force_on_conflict:
        selected = table.unique_indexes().get(force_on_conflict)
        if selected is not None:
            conflicts = selected
        else:
            column = table.get_column_by_name(force_on_conflict)
            if column is None or not column.unique:
                raise QueryBuildError("can't find unique index with name: %s" % force_on_conflict)
            conflicts = [column.name]
        on_conflict = _do_update_set(column_names, conflicts)
    elif on_conflict is not None and conflicts:
        pass
    elif upsert and conflicts:
        on_conflict = _do_update_set(column_names, conflicts)
    else:
        conflicts = []

    parts = ["INSERT INTO ", table_name_sql(table),
             " (", ",".join(column_names), ")",
             " VALUES(", ",".join(params), ")"]

    if conflicts:
        parts.append(" ON CONFLICT(%s) %s" % (",".join(conflicts), on_conflict))
        if returning_column and "DO UPDATE" in on_conflict.upper():
            parts.append(" RETURNING " + returning_column)
    elif returning_column:
        parts.append(" RETURNING " + returning_column)
    parts.append(";")

    query = "".join(parts)
    logger.debug("Insert into %s: %s", table.name, query)
    return query, values(args)
