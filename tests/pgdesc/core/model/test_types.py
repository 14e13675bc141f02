import datetime
import decimal
import enum
import uuid
import unittest
from typing import Optional

from pgdesc.core.errors import IntrospectionParseError
from pgdesc.core.model.types import DataType, IndexType, OnAction, TableType, ConstraintType, unwrap_optional


class Color (str, enum.Enum):
    red = "red"


class DataTypeTests (unittest.TestCase):

    def test_parse_catalog_names(self):
        """Catalog type names resolve through the aliases, with the type argument split off."""
        self.assertEqual(DataType.parse("character varying(255)"), (DataType.character_varying, "255"))
        self.assertEqual(DataType.parse("integer"), (DataType.integer, ""))
        self.assertEqual(DataType.parse("timestamp without time zone"), (DataType.timestamp, ""))
        self.assertEqual(DataType.parse("timestamp(6) without time zone"), (DataType.timestamp, ""))
        self.assertEqual(DataType.parse("numeric(10,2)"), (DataType.numeric, "10,2"))
        self.assertEqual(DataType.parse("  UUID "), (DataType.uuid, ""))
        self.assertEqual(DataType.parse("text[]"), (DataType.text_array, ""))

    def test_parse_unknown(self):
        """An unknown name yields no type and no argument."""
        self.assertEqual(DataType.parse("geometry(Point,4326)"), (None, ""))

    def test_matches(self):
        """matches ignores case, and array matches every array type."""
        self.assertTrue(DataType.character_varying.matches("Character Varying"))
        self.assertTrue(DataType.uuid_array.matches("array"))
        self.assertFalse(DataType.uuid.matches("array"))

    def test_from_host_type(self):
        """Python types map to their default column type."""
        self.assertIs(DataType.from_host_type(str), DataType.text)
        self.assertIs(DataType.from_host_type(bool), DataType.boolean)
        self.assertIs(DataType.from_host_type(int), DataType.integer)
        self.assertIs(DataType.from_host_type(decimal.Decimal), DataType.numeric)
        self.assertIs(DataType.from_host_type(datetime.datetime), DataType.timestamp)
        self.assertIs(DataType.from_host_type(datetime.date), DataType.date)
        self.assertIs(DataType.from_host_type(uuid.UUID), DataType.uuid)
        self.assertIs(DataType.from_host_type(Optional[int]), DataType.integer)
        self.assertIs(DataType.from_host_type(int | None), DataType.integer)
        self.assertIs(DataType.from_host_type(list[str]), DataType.character_varying_array)
        self.assertIs(DataType.from_host_type(list[list[int]]), DataType.integer_double_array)
        self.assertIs(DataType.from_host_type(dict[str, int]), DataType.jsonb)
        self.assertIs(DataType.from_host_type(Color), DataType.text)
        self.assertIsNone(DataType.from_host_type(object))

    def test_unwrap_optional(self):
        """Only single-type optionals are unwrapped."""
        self.assertIs(unwrap_optional(Optional[str]), str)
        self.assertIs(unwrap_optional(str), str)
        self.assertEqual(unwrap_optional(int | str), int | str)


class EnumTests (unittest.TestCase):

    def test_index_type(self):
        """Index methods parse case-insensitively; empty or unknown is no index."""
        self.assertIs(IndexType.parse("BTREE"), IndexType.btree)
        self.assertIsNone(IndexType.parse(""))
        self.assertIsNone(IndexType.parse("nosuch"))

    def test_on_action(self):
        """Foreign key actions parse regardless of case and spacing."""
        self.assertIs(OnAction.from_text("set  null"), OnAction.SET_NULL)
        with self.assertRaises(ValueError):
            OnAction.from_text("explode")

    def test_table_type(self):
        """Catalog table kinds map to table types, and only base tables are writable."""
        self.assertIs(TableType.parse("BASE TABLE"), TableType.base)
        self.assertIs(TableType.parse("VIEW"), TableType.view)
        self.assertIs(TableType.parse(None), TableType.base)
        self.assertFalse(TableType.base.is_read_only())
        self.assertTrue(TableType.presenter.is_read_only())
        self.assertTrue(TableType.materialized_view.is_refreshable())

    def test_constraint_type(self):
        """Constraint kinds parse from catalog letters, bytes and keywords."""
        self.assertIs(ConstraintType.parse("p"), ConstraintType.primary_key)
        self.assertIs(ConstraintType.parse(b"f"), ConstraintType.foreign_key)
        self.assertIs(ConstraintType.parse("CHECK"), ConstraintType.check)
        with self.assertRaises(IntrospectionParseError):
            ConstraintType.parse("x")
        with self.assertRaises(IntrospectionParseError):
            ConstraintType.parse(5)


if __name__ == '__main__':
    unittest.main()
