"""Parameterized SQL builders.

Each builder takes a table model (and a record, where relevant) and returns the
statement text using ``$1, $2, ...`` placeholders together with the positional
arguments.
"""

from pgdesc.core.sql.arguments import Argument, extract_arguments, quote_identifier, table_name_sql
from pgdesc.core.sql.ddl import build_create_table_query, build_alter_table_foreign_keys_queries
from pgdesc.core.sql.insert import build_insert_query
from pgdesc.core.sql.update import build_update_query, update_except_columns
from pgdesc.core.sql.delete import build_delete_query
from pgdesc.core.sql.exists import build_exists_query
from pgdesc.core.sql.duplicate import build_duplicate_query
from pgdesc.core.sql.select import build_select_by_id_query, build_select_by_username_and_password_query
