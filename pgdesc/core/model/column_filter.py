"""Column filter expressions used to select introspected columns.

An expression has the form ``table.column[.type]``:

    - ``*`` matches any table or any column.
    - ``prefix(x)``, ``suffix(x)`` and ``noteq(x)`` match column names starting with,
      ending with or different from ``x``.
    - ``a,b,c`` lists several columns; each becomes its own expression.
    - ``&x,y`` also requires the table to contain the columns ``x`` and ``y``.

For example ``*.created_at,updated_at&id.timestamp`` matches the ``created_at`` and
``updated_at`` timestamp columns of every table that has an ``id`` column.
"""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass, field
from typing import Any

from pgdesc.core.errors import IntrospectionParseError
from pgdesc.core.model.types import DataType

logger = logging.getLogger(__name__)

WILDCARD = "*"


@dataclass
class ColumnFilterExpression:
    input: str = ""
    table_name: str = ""
    column_name: str = ""
    column_data_type: DataType | None = None
    prefix: str = ""
    suffix: str = ""
    not_equal_to: str = ""
    contains_column_names: list[str] = field(default_factory=list)
    data: Any = field(default=None, compare=False)

    def table_name_is_wildcard(self):
        return self.table_name == WILDCARD

    def column_name_is_wildcard(self):
        return self.column_name == WILDCARD

    def build_column_filter(self, other_column_names):
        """Return a predicate over columns.

        Args:
            other_column_names: The column names of the table the filtered columns belong to,
                checked against the ``&`` requirement.
        """
        def column_filter(c):
            if not self.table_name or not self.column_name:
                return False
            if not self.table_name_is_wildcard() and c.table_name != self.table_name:
                return False
            if self.column_data_type is not None and c.type is not self.column_data_type:
                return False

            if self.prefix:
                if not c.name.startswith(self.prefix):
                    return False
            elif self.suffix:
                if not c.name.endswith(self.suffix):
                    return False
            elif self.not_equal_to:
                if c.name == self.not_equal_to:
                    return False
            elif not self.column_name_is_wildcard() and c.name != self.column_name:
                return False

            if self.contains_column_names:
                if not all(name in other_column_names for name in self.contains_column_names):
                    return False
            return True

        return column_filter

    def __str__(self):
        return self.input


def _parse_column_name_functions(column_name):
    for func in ("prefix", "suffix", "noteq"):
        start = func + "("
        if column_name.startswith(start):
            value = column_name[len(start):]
            if value.endswith(")"):
                value = value[:-1]
            return func, value
    return None, ""


def _new_expression(text, table_name, column_name, data_type, contains):
    func, value = _parse_column_name_functions(column_name)
    return ColumnFilterExpression(
        input=text,
        table_name=table_name,
        column_name=column_name,
        column_data_type=data_type,
        prefix=value if func == "prefix" else "",
        suffix=value if func == "suffix" else "",
        not_equal_to=value if func == "noteq" else "",
        contains_column_names=list(contains),
    )


def parse_column_filter_expression(text):
    """Parse one filter expression into one or more `ColumnFilterExpression` objects.

    Raises:
        IntrospectionParseError: If the expression does not have two or three dot-separated
            parts, or names an unknown data type.
    """
    fields = [f for f in text.split(".") if f]
    if len(fields) < 2 or len(fields) > 3:
        raise IntrospectionParseError("invalid input: %s" % text)

    table_name, column_line = fields[0], fields[1]
    column_name = column_line
    data_type = None
    if len(fields) == 3:
        data_type, _ = DataType.parse(fields[2])
        if data_type is None:
            raise IntrospectionParseError("invalid data type: %s" % fields[2])

    contains = []
    contains_idx = column_line.find("&")
    if contains_idx > 0:
        contains = column_line[contains_idx + 1:].split(",")
        column_name = column_line[:contains_idx]

    multiple_idx = column_line.find(",")
    has_more = multiple_idx > 0 and (contains_idx == -1 or multiple_idx < contains_idx)
    if has_more:
        column_name = column_line[:multiple_idx]

    expressions = [_new_expression(text, table_name, column_name, data_type, contains)]

    if has_more:
        rest = column_line[multiple_idx + 1:]
        stop_idx = rest.find("&")
        if stop_idx == -1:
            stop_idx = len(rest)
        for name in rest[:stop_idx].split(","):
            expressions.append(_new_expression(text, table_name, name, data_type, contains))

    return expressions


def _less(c1, c2):
    if not c1.table_name_is_wildcard() and not c1.column_name_is_wildcard() \
            and c1.column_data_type is not None and c1.contains_column_names:
        return True

    if c1.table_name_is_wildcard() and c2.table_name_is_wildcard() \
            and not c1.column_name_is_wildcard() and not c2.column_name_is_wildcard():
        return len(c1.contains_column_names) > len(c2.contains_column_names)

    if not c1.table_name_is_wildcard() and not c1.column_name_is_wildcard() and c1.column_data_type is not None:
        return True

    if (not c1.table_name_is_wildcard() and not c1.column_name_is_wildcard() and c2.table_name_is_wildcard()) \
            or c2.column_name_is_wildcard():
        return True

    if not c1.table_name_is_wildcard() and c2.table_name_is_wildcard():
        return True

    if not c1.column_name_is_wildcard() and c2.column_name_is_wildcard():
        return True

    return False


def _compare(c1, c2):
    if _less(c1, c2):
        return -1
    if _less(c2, c1):
        return 1
    return 0


def sort_column_filter_expressions(expressions):
    """Sort expressions in place, most specific first. The sort is stable."""
    expressions.sort(key=functools.cmp_to_key(_compare))


class TypeFilter (object):
    """A table filter that assigns host types to the columns matching filter expressions.

    The filter never removes a column or a table. Each column gets the host type of the
    first (most specific) expression it matches.

    Usage::

        introspector.list_tables(filter=TypeFilter({
            "*.tags.text[]": list[str],
            "customers.created_at": datetime.datetime,
        }))
    """

    def __init__(self, expressions):
        self.expressions = dict(expressions)

    def __call__(self, table):
        if not self.expressions:
            return True

        column_names = table.list_column_names()
        parsed = []
        for text, host_type in self.expressions.items():
            for expr in parse_column_filter_expression(text):
                expr.data = host_type
                parsed.append(expr)
        sort_column_filter_expressions(parsed)

        column_filters = [expr.build_column_filter(column_names) for expr in parsed]

        def assign_host_type(c):
            for i, column_filter in enumerate(column_filters):
                if column_filter(c):
                    c.host_type = parsed[i].data
                    logger.debug("Column %s.%s matched filter %s", c.table_name, c.name, parsed[i])
                    break
            return True

        table.filter_columns(assign_host_type)
        return True
