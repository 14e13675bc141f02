"""Row to record conversion.

A `ScanPlan` is built once per result shape. It pairs every result column with the
table column it fills and the strategy used to assign the value, so converting each
row is a plain loop over the plan.
"""

from __future__ import annotations

import datetime
import logging
from enum import Enum

from dateutil import parser as date_parser

from pgdesc.core.errors import NoRowsError, ScanError
from pgdesc.core.model.record import set_value
from pgdesc.core.model.types import DataType, unwrap_optional

logger = logging.getLogger(__name__)

_NULLABLE_TYPES = (DataType.uuid, DataType.text, DataType.character_varying)


class ScanStrategy (Enum):
    """How a result value is assigned to its record field.

    Values:
        direct: Assign the value, decoding it with the host type's ``scan`` when it has one.
        nullable: Like direct, but a NULL leaves the field untouched.
        password: Pass the value through the table's decrypt hook and assign a non-empty result.
        noop: Discard the value.
    """

    direct = "direct"
    nullable = "nullable"
    password = "password"
    noop = "noop"


def select_strategy(table, column):
    if column is None or column.unscannable:
        return ScanStrategy.noop
    if column.password and table.can_decrypt_password():
        return ScanStrategy.password
    if column.nullable and column.type in _NULLABLE_TYPES:
        return ScanStrategy.nullable
    return ScanStrategy.direct


def _decode(column, value):
    host_type = unwrap_optional(column.host_type)
    if column.is_scanner:
        return host_type.scan(value)
    if isinstance(value, str) and isinstance(host_type, type):
        # text casts from custom selects
        if issubclass(host_type, datetime.datetime):
            return date_parser.isoparse(value)
        if issubclass(host_type, datetime.date):
            return date_parser.isoparse(value).date()
    return value


class ScanPlan (object):
    """The per-result-column assignment plan of one table.

    Attributes:
        table: The table whose records are filled.
        field_names: The result column names, in result order.
        targets: ``(strategy, column)`` pairs, one per result column. The column is None
            for discarded values.
    """

    def __init__(self, table, field_names, targets):
        self.table = table
        self.field_names = list(field_names)
        self.targets = targets

    def scan(self, values, record):
        """Assign one row of values to ``record`` and return it.

        Raises:
            ScanError: If the row has the wrong length, a decrypt hook fails or a password
                value is neither text nor bytes.
        """
        if len(values) != len(self.targets):
            raise ScanError("%s: expected %d values but got %d" % (self.table.name, len(self.targets), len(values)))

        record_type = self.table.record_type
        for (strategy, column), value in zip(self.targets, values):
            if strategy is ScanStrategy.noop:
                continue
            if strategy is ScanStrategy.nullable:
                if value is None:
                    continue
                set_value(record, column.locator, _decode(column, value), record_type)
            elif strategy is ScanStrategy.password:
                set_value_if_decrypted(self.table, column, value, record)
            elif value is None:
                set_value(record, column.locator, None, record_type)
            else:
                try:
                    value = _decode(column, value)
                except (TypeError, ValueError) as e:
                    raise ScanError("%s: field: %s.%s: column: %s.%s: %s" % (
                        self.table.name, self.table.record_name, column.field_name, column.table_name,
                        column.name, e))
                set_value(record, column.locator, value, record_type)
        return record


def set_value_if_decrypted(table, column, value, record):
    if value is None:
        return
    if isinstance(value, (bytes, bytearray)):
        value = bytes(value).decode("utf-8")
    if not isinstance(value, str):
        raise ScanError("%s: password: unsupported type of: %s" % (table.name, type(value).__name__))

    try:
        plain_text = table.password_handler.decrypt(table.name, value)
    except Exception as e:
        raise ScanError("%s: password: %s" % (table.name, e)) from e

    # an empty result means the hook only verified the value
    if plain_text:
        set_value(record, column.locator, plain_text, table.record_type)


def build_scan_plan(table, field_names):
    """Build the scan plan of a result shape.

    Result columns are matched to table columns by case-insensitive name.

    Raises:
        ScanError: If the table is strict and a result column has no matching table column.
    """
    targets = []
    for name in field_names:
        column = table.get_column_by_name(name)
        if column is None and table.strict:
            raise ScanError("record %s doesn't have corresponding row field: %s (strict check)" %
                            (table.record_name, name))
        targets.append((select_strategy(table, column), column))
    return ScanPlan(table, field_names, targets)


def scan_rows(table, result):
    """Convert every row of a `ResultSet` into a new record of the table's record type."""
    plan = build_scan_plan(table, result.keys())
    return [plan.scan(row, table.new_record()) for row in result]


def scan_one(table, result):
    """Convert the first row of a `ResultSet`.

    Raises:
        NoRowsError: If the result has no rows.
    """
    row = result.first()
    if row is None:
        raise NoRowsError("no rows in result set")
    return build_scan_plan(table, result.keys()).scan(row, table.new_record())
