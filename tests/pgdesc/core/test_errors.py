import unittest

from pgdesc.core.errors import PgDescError, AnnotationError, QueryBuildError, ReconciliationError, SchemaError, \
    ScanError, NoRowsError, is_err_duplicate, is_err_foreign_key, is_err_input_syntax, is_err_column_not_exists


class ErrorTaxonomyTests (unittest.TestCase):

    def test_hierarchy(self):
        """Every error derives from PgDescError and keeps its builtin base."""
        self.assertTrue(issubclass(AnnotationError, ValueError))
        self.assertTrue(issubclass(QueryBuildError, PgDescError))
        self.assertTrue(issubclass(SchemaError, LookupError))
        self.assertTrue(issubclass(NoRowsError, ScanError))

    def test_reconciliation_payload(self):
        """A reconciliation error carries both renderings."""
        e = ReconciliationError("mismatch", table_name="t", column_name="c", expected="a", got="b")
        self.assertEqual((e.table_name, e.column_name, e.expected, e.got), ("t", "c", "a", "b"))
        self.assertEqual(str(e), "mismatch")


class DriverErrorTests (unittest.TestCase):

    def test_duplicate(self):
        """Unique violations yield the constraint name."""
        err = Exception('ERROR: duplicate key value violates unique constraint "customers_email_key" (SQLSTATE 23505)')
        self.assertEqual(is_err_duplicate(err), ("customers_email_key", True))
        self.assertEqual(is_err_duplicate(Exception("other")), ("", False))
        self.assertEqual(is_err_duplicate(None), ("", False))

    def test_foreign_key(self):
        """Foreign key violations yield the constraint name."""
        err = Exception('insert or update on table "posts" violates foreign key constraint "posts_blog_id_fkey"')
        self.assertEqual(is_err_foreign_key(err), ("posts", True))
        self.assertEqual(is_err_foreign_key(Exception("other")), ("", False))

    def test_input_syntax(self):
        """Input syntax errors are recognized."""
        name, ok = is_err_input_syntax(Exception('invalid input syntax for type uuid: "abc"'))
        self.assertTrue(ok)
        self.assertEqual(name, "abc")
        self.assertEqual(is_err_input_syntax(Exception("other")), ("", False))

    def test_column_not_exists(self):
        """Missing column errors are matched by column name."""
        err = Exception('column "nickname" does not exist')
        self.assertTrue(is_err_column_not_exists(err, "nickname"))
        self.assertFalse(is_err_column_not_exists(err, "name"))


if __name__ == '__main__':
    unittest.main()
