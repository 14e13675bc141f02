__version__ = "1.0.0"

from pgdesc.core.utils.core_utils import *
from pgdesc.core.errors import PgDescError, AnnotationError, QueryBuildError, IntrospectionParseError, ScanError, \
    NoRowsError, SchemaError, ReconciliationError, is_err_duplicate, is_err_foreign_key, is_err_input_syntax, \
    is_err_column_not_exists
from pgdesc.core.model import Settings, DEFAULT_SETTINGS, DataType, TableType, Table, Column, PasswordHandler, \
    build_table
from pgdesc.core.executor import QueryExecutor, ResultSet, SQLAlchemyExecutor
from pgdesc.core.schema import Schema, view, materialized_view, presenter, create_schema, create_schema_dump_sql, \
    delete_schema
from pgdesc.core.catalog import CatalogIntrospector
from pgdesc.core.reconcile import check_schema
from pgdesc.core.scanner import scan_rows, scan_one, build_scan_plan
from pgdesc.core.triggers import TableChangeType, TableNotification, TableChangeTriggerInstaller
from pgdesc.core.base_cli import BaseCLI
