import datetime
import unittest

from pgdesc.core.errors import IntrospectionParseError
from pgdesc.core.model import Column, DataType, Table
from pgdesc.core.model.column_filter import ColumnFilterExpression, TypeFilter, parse_column_filter_expression, \
    sort_column_filter_expressions


def _expr(text, table_name, column_name, data_type=None, prefix="", suffix="", not_equal_to="", contains=()):
    return ColumnFilterExpression(input=text, table_name=table_name, column_name=column_name,
                                  column_data_type=data_type, prefix=prefix, suffix=suffix,
                                  not_equal_to=not_equal_to, contains_column_names=list(contains))


class ParseColumnFilterExpressionTests (unittest.TestCase):

    def _check(self, text, *expected):
        self.assertEqual(parse_column_filter_expression(text), list(expected))

    def test_table_column_type(self):
        """A fully specified expression keeps all three parts."""
        text = "tablename.column.varchar"
        self._check(text, _expr(text, "tablename", "column", DataType.character_varying))

    def test_wildcard_table(self):
        """The wildcard table is kept as is, with or without a type."""
        self._check("*.column", _expr("*.column", "*", "column"))
        self._check("*.column.varchar", _expr("*.column.varchar", "*", "column", DataType.character_varying))

    def test_column_functions(self):
        """prefix, suffix and noteq keep the raw column name and extract their argument."""
        text = "tablename.prefix(col).varchar"
        self._check(text, _expr(text, "tablename", "prefix(col)", DataType.character_varying, prefix="col"))
        text = "tablename.suffix(col).varchar"
        self._check(text, _expr(text, "tablename", "suffix(col)", DataType.character_varying, suffix="col"))
        text = "tablename.noteq(col).varchar"
        self._check(text, _expr(text, "tablename", "noteq(col)", DataType.character_varying, not_equal_to="col"))

    def test_contains(self):
        """The names after & are required columns, not additional expressions."""
        text = "tablename.column1&column2,column3.varchar"
        self._check(text, _expr(text, "tablename", "column1", DataType.character_varying,
                                contains=["column2", "column3"]))
        text = "tablename.column1&column2,column3"
        self._check(text, _expr(text, "tablename", "column1", contains=["column2", "column3"]))

    def test_multiple_columns(self):
        """Each listed column becomes its own expression sharing the type and requirements."""
        text = "*.column1,column2,column3&column4.character[]"
        self._check(text, *[_expr(text, "*", "column%d" % i, DataType.character_array, contains=["column4"])
                            for i in (1, 2, 3)])
        text = "tablename.column1,column2,column3&column4"
        self._check(text, *[_expr(text, "tablename", "column%d" % i, contains=["column4"]) for i in (1, 2, 3)])

    def test_invalid(self):
        """A wrong number of parts or an unknown type is rejected."""
        for text in ("tablename", "a.b.c.d", "tablename.column.nosuchtype"):
            with self.assertRaises(IntrospectionParseError):
                parse_column_filter_expression(text)


class ColumnFilterTests (unittest.TestCase):

    def test_parsed_expressions_filter(self):
        """Every parsed expression matches its column only in the named table."""
        exprs = parse_column_filter_expression("tablename.column1,column2,column3&column4.varchar")
        for i, expr in enumerate(exprs, 1):
            column_filter = expr.build_column_filter(["column4"])
            self.assertTrue(column_filter(Column(table_name="tablename", name="column%d" % i,
                                                 type=DataType.character_varying)))
            self.assertFalse(column_filter(Column(table_name="other", name="column%d" % i,
                                                  type=DataType.character_varying)))

    def test_contains_requirement(self):
        """A missing required column rejects the match."""
        expr = parse_column_filter_expression("*.name&id")[0]
        column = Column(table_name="customers", name="name", type=DataType.text)
        self.assertTrue(expr.build_column_filter(["id", "name"])(column))
        self.assertFalse(expr.build_column_filter(["name"])(column))

    def test_name_functions(self):
        """prefix, suffix and noteq compare against the column name."""
        column = Column(table_name="t", name="created_at", type=DataType.timestamp)
        self.assertTrue(parse_column_filter_expression("*.prefix(created)")[0].build_column_filter([])(column))
        self.assertTrue(parse_column_filter_expression("*.suffix(_at)")[0].build_column_filter([])(column))
        self.assertFalse(parse_column_filter_expression("*.noteq(created_at)")[0].build_column_filter([])(column))
        self.assertFalse(parse_column_filter_expression("*.*.uuid")[0].build_column_filter([])(column))

    def test_sort_most_specific_first(self):
        """Fully qualified expressions sort before wildcard ones."""
        exprs = parse_column_filter_expression("*.*") + parse_column_filter_expression("*.name") + \
            parse_column_filter_expression("customers.name.text")
        sort_column_filter_expressions(exprs)
        self.assertEqual(exprs[0].table_name, "customers")
        self.assertEqual(exprs[-1].column_name, "*")


class TypeFilterTests (unittest.TestCase):

    def test_assigns_host_types(self):
        """Matching columns get the host type of the most specific expression; nothing is removed."""
        table = Table(name="customers")
        table.add_columns(
            Column(table_name="customers", name="id", type=DataType.uuid),
            Column(table_name="customers", name="created_at", type=DataType.timestamp),
            Column(table_name="customers", name="name", type=DataType.text),
        )
        type_filter = TypeFilter({
            "*.*": object,
            "customers.created_at.timestamp": datetime.datetime,
        })
        self.assertTrue(type_filter(table))
        self.assertEqual(len(table.columns), 3)
        self.assertIs(table.get_column_by_name("created_at").host_type, datetime.datetime)
        self.assertIs(table.get_column_by_name("name").host_type, object)

    def test_empty(self):
        """An empty filter keeps every table untouched."""
        table = Table(name="t", columns=[Column(table_name="t", name="a", type=DataType.text, host_type=str)])
        self.assertTrue(TypeFilter({})(table))
        self.assertIs(table.columns[0].host_type, str)


if __name__ == '__main__':
    unittest.main()
