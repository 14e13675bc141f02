"""Record argument extraction and identifier helpers shared by the query builders."""

from __future__ import annotations

from collections import namedtuple

from pgdesc.core.errors import QueryBuildError
from pgdesc.core.model.record import get_value, is_zero

Argument = namedtuple("Argument", ["column", "value"])


def quote_identifier(name):
    return '"%s"' % name.replace('"', '""')


def table_name_sql(table):
    """Render ``"search_path"."name"``."""
    return "%s.%s" % (quote_identifier(table.search_path), quote_identifier(table.name))


def placeholder(index):
    return "$%d" % index


def crypt_expression(param, algorithm="bf"):
    """Wrap a placeholder so the database hashes it: ``crypt($1,gen_salt('bf'))``."""
    return "crypt(%s,gen_salt('%s'))" % (param, algorithm)


def values(args):
    return [a.value for a in args]


def extract_arguments(table, record, full=False, encrypt=True, skip_auto=True):
    """Collect the ``(column, value)`` pairs of a record, in column order.

    Args:
        table: The table model.
        record: A record of the table's record type.
        full: Keep zero values too. Generated columns are still skipped when zero.
        encrypt: Pass password values through the table's encrypt hook, when it has one.
        skip_auto: Skip auto-generated columns.

    Returns:
        A list of `Argument` tuples.
    """
    args = []
    for c in table.columns:
        if c.presenter or (skip_auto and c.auto_generated):
            continue
        value = get_value(record, c.locator)
        if is_zero(value):
            if not full or c.is_generated():
                continue
        if c.password and encrypt and table.can_encrypt_password() and not is_zero(value):
            value = table.password_handler.encrypt(table.name, value)
        args.append(Argument(c, value))
    return args


def extract_primary_key_value(table, record):
    """Return ``(primary_key_column, value)``.

    Raises:
        QueryBuildError: If the table has no primary key or the record's key is zero.
    """
    pk = table.primary_key()
    if pk is None:
        raise QueryBuildError("table %s: no primary key" % table.name)
    value = get_value(record, pk.locator)
    if is_zero(value):
        raise QueryBuildError("table %s: primary key %s has no value" % (table.name, pk.name))
    return pk, value
