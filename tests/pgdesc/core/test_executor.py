import unittest

from pgdesc.core.executor import QueryExecutor, ResultSet, SQLAlchemyExecutor, to_named_parameters


class NamedParameterTests (unittest.TestCase):

    def test_rewrite(self):
        """Positional placeholders become numbered bind parameters."""
        sql, params = to_named_parameters("SELECT * FROM t WHERE a = $1 AND b = $2 OR c = $1", ["x", 2])
        self.assertEqual(sql, "SELECT * FROM t WHERE a = :p1 AND b = :p2 OR c = :p1")
        self.assertEqual(params, {"p1": "x", "p2": 2})

    def test_double_digit(self):
        """Placeholders above nine keep their full number."""
        sql, params = to_named_parameters("VALUES($1, $10)", list(range(10)))
        self.assertEqual(sql, "VALUES(:p1, :p10)")
        self.assertEqual(params["p10"], 9)


class ResultSetTests (unittest.TestCase):

    def test_accessors(self):
        """Rows are exposed as tuples and mappings."""
        rs = ResultSet(["a", "b"], [[1, 2], (3, 4)])
        self.assertEqual(rs.keys(), ["a", "b"])
        self.assertEqual(rs.first(), (1, 2))
        self.assertEqual(rs.mappings(), [{"a": 1, "b": 2}, {"a": 3, "b": 4}])
        self.assertEqual(list(rs), [(1, 2), (3, 4)])
        self.assertEqual(len(rs), 2)

    def test_empty(self):
        """An empty result has no first row."""
        self.assertIsNone(ResultSet().first())
        self.assertEqual(len(ResultSet()), 0)


class StaticExecutor (QueryExecutor):

    def __init__(self, result):
        self.result = result

    def query(self, sql, *args):
        return self.result


class QueryExecutorTests (unittest.TestCase):

    def test_query_value(self):
        """query_value returns the first column of the first row."""
        self.assertEqual(StaticExecutor(ResultSet(["n"], [(7,), (8,)])).query_value("SELECT 1"), 7)
        self.assertIsNone(StaticExecutor(ResultSet()).query_value("SELECT 1"))

    def test_default_transaction(self):
        """The default transaction yields the executor itself."""
        executor = StaticExecutor(ResultSet())
        with executor.transaction() as tx:
            self.assertIs(tx, executor)

    def test_execute_not_implemented(self):
        """execute must be provided by implementations."""
        with self.assertRaises(NotImplementedError):
            QueryExecutor().execute("SELECT 1")


class SQLAlchemyExecutorTests (unittest.TestCase):

    def setUp(self):
        self.executor = SQLAlchemyExecutor("sqlite://")
        self.executor.execute("CREATE TABLE items (id integer primary key, name text)")

    def tearDown(self):
        self.executor.dispose()

    def test_query(self):
        """Positional arguments are bound in order."""
        rs = self.executor.query("SELECT $1 + $2 AS total", 2, 3)
        self.assertEqual(rs.keys(), ["total"])
        self.assertEqual(rs.first(), (5,))
        self.assertEqual(self.executor.query_value("SELECT $1 || $2", "a", "b"), "ab")

    def test_execute(self):
        """execute returns the affected row count."""
        self.assertEqual(self.executor.execute("INSERT INTO items (id, name) VALUES ($1, $2)", 1, "one"), 1)
        self.assertEqual(self.executor.query_value("SELECT name FROM items WHERE id = $1", 1), "one")

    def test_transaction_commit(self):
        """A transaction commits when the block succeeds."""
        with self.executor.transaction() as tx:
            tx.execute("INSERT INTO items (id, name) VALUES ($1, $2)", 1, "one")
            tx.execute("INSERT INTO items (id, name) VALUES ($1, $2)", 2, "two")
            with tx.transaction() as nested:
                self.assertIs(nested, tx)
        self.assertEqual(self.executor.query_value("SELECT count(*) FROM items"), 2)

    def test_transaction_rollback(self):
        """A transaction rolls back when the block raises."""
        with self.assertRaises(RuntimeError):
            with self.executor.transaction() as tx:
                tx.execute("INSERT INTO items (id, name) VALUES ($1, $2)", 1, "one")
                raise RuntimeError("abort")
        self.assertEqual(self.executor.query_value("SELECT count(*) FROM items"), 0)


if __name__ == '__main__':
    unittest.main()
