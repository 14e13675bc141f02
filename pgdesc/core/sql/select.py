"""Single-row SELECT helpers."""

from __future__ import annotations

from pgdesc.core.errors import QueryBuildError
from pgdesc.core.sql.arguments import quote_identifier, table_name_sql


def build_select_by_id_query(table):
    """Build ``SELECT * FROM "schema"."t" WHERE "pk" = $1 LIMIT 1;``."""
    pk = table.primary_key()
    if pk is None:
        raise QueryBuildError("select: table %s: no primary key" % table.name)
    return "SELECT * FROM %s WHERE %s = $1 LIMIT 1;" % (table_name_sql(table), quote_identifier(pk.name))


def build_select_by_username_and_password_query(table):
    """Build the credential lookup, comparing the password with ``crypt($2, password)``.

    The statement takes the username and the plain password as its arguments.
    """
    username = table.username_column()
    password = table.password_column()
    if username is None or password is None:
        raise QueryBuildError("select: table %s: username or password columns not found" % table.name)
    return "SELECT * FROM %s WHERE %s = $1 AND %s = crypt($2, %s) LIMIT 1;" % (
        table_name_sql(table), quote_identifier(username.name), quote_identifier(password.name),
        quote_identifier(password.name))
