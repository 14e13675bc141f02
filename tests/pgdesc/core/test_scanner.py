import datetime
import unittest
from dataclasses import dataclass, field
from typing import Optional

from pgdesc.core.errors import NoRowsError, ScanError
from pgdesc.core.executor import ResultSet
from pgdesc.core.model.annotation import build_table
from pgdesc.core.model.table import PasswordHandler
from pgdesc.core.scanner import ScanStrategy, build_scan_plan, scan_one, scan_rows


class Money (object):

    def __init__(self, cents):
        self.cents = cents

    @classmethod
    def scan(cls, value):
        return cls(int(value))

    def __eq__(self, other):
        return isinstance(other, Money) and other.cents == self.cents


@dataclass
class Audit:
    created_by: Optional[str] = field(default=None, metadata={"pg": "type=text"})


@dataclass
class Account:
    id: Optional[str] = field(default=None, metadata={"pg": "type=uuid,primary"})
    email: Optional[str] = field(default=None, metadata={"pg": "type=varchar(255),nullable"})
    balance: Optional[Money] = field(default=None, metadata={"pg": "type=bigint"})
    created_at: Optional[datetime.datetime] = field(
        default=None, metadata={"pg": "type=timestamp,default=clock_timestamp()"})
    birthday: Optional[datetime.date] = field(default=None, metadata={"pg": "type=date,nullable"})
    password: Optional[str] = field(default=None, metadata={"pg": "type=text,password"})
    search: Optional[str] = field(default=None, metadata={"pg": "type=tsvector"})
    audit: Optional[Audit] = None


KEYS = ["id", "email", "balance", "created_at", "birthday", "password", "search", "created_by", "extra"]


def row(**overrides):
    values = dict(id="8c1d4d5e-2f8c-4f0e-9a39-0b8f7b7e1d11", email="ann@example.com", balance=1250,
                  created_at=datetime.datetime(2024, 1, 2, 3, 4, 5), birthday=None, password="secret",
                  search="'ann':1", created_by="admin", extra=42)
    values.update(overrides)
    return tuple(values[k] for k in KEYS)


class ScanPlanTests (unittest.TestCase):

    def setUp(self):
        self.table = build_table("accounts", Account)

    def strategies(self, field_names=KEYS):
        return [strategy for strategy, _ in build_scan_plan(self.table, field_names).targets]

    def test_strategies(self):
        """Each result column gets the strategy of its table column."""
        self.assertEqual(self.strategies(), [
            ScanStrategy.direct,    # id
            ScanStrategy.nullable,  # email
            ScanStrategy.direct,    # balance
            ScanStrategy.direct,    # created_at
            ScanStrategy.direct,    # birthday
            ScanStrategy.direct,    # password, no decrypt hook
            ScanStrategy.noop,      # search, unscannable
            ScanStrategy.direct,    # created_by
            ScanStrategy.noop,      # extra, unmapped
        ])

    def test_password_strategy(self):
        """Password columns use the decrypt hook when there is one."""
        self.table.password_handler = PasswordHandler(decrypt=lambda table_name, text: text.upper())
        self.assertEqual(self.strategies(["password"]), [ScanStrategy.password])

    def test_case_insensitive_names(self):
        """Result columns are matched ignoring case."""
        self.assertEqual(self.strategies(["ID", "Email"]), [ScanStrategy.direct, ScanStrategy.nullable])

    def test_strict(self):
        """Strict tables reject unmapped result columns but still skip unscannable ones."""
        self.table.set_strict(True)
        self.assertEqual(self.strategies(["id", "search"]), [ScanStrategy.direct, ScanStrategy.noop])
        with self.assertRaises(ScanError):
            build_scan_plan(self.table, ["id", "extra"])


class ScanTests (unittest.TestCase):

    def setUp(self):
        self.table = build_table("accounts", Account)
        self.plan = build_scan_plan(self.table, KEYS)

    def test_scan(self):
        """Values are assigned to their fields, embedded fields included."""
        record = self.plan.scan(row(), self.table.new_record())
        self.assertEqual(record.id, "8c1d4d5e-2f8c-4f0e-9a39-0b8f7b7e1d11")
        self.assertEqual(record.email, "ann@example.com")
        self.assertEqual(record.balance, Money(1250))
        self.assertEqual(record.created_at, datetime.datetime(2024, 1, 2, 3, 4, 5))
        self.assertIsNone(record.birthday)
        self.assertEqual(record.password, "secret")
        self.assertIsNone(record.search)
        self.assertEqual(record.audit.created_by, "admin")

    def test_missing_embedded_record(self):
        """A missing embedded record is created on assignment."""
        record = Account()
        self.assertIsNone(record.audit)
        self.plan.scan(row(), record)
        self.assertEqual(record.audit, Audit(created_by="admin"))

    def test_nullable_keeps_value(self):
        """A NULL for a nullable text column leaves the field as it was."""
        record = Account(email="kept@example.com", birthday=datetime.date(2000, 1, 1))
        self.plan.scan(row(email=None, birthday=None), record)
        self.assertEqual(record.email, "kept@example.com")
        self.assertIsNone(record.birthday)

    def test_text_dates(self):
        """ISO text values are parsed for date and datetime fields."""
        record = self.plan.scan(row(created_at="2024-01-02T03:04:05+00:00", birthday="2024-05-06"),
                                self.table.new_record())
        self.assertEqual(record.created_at, datetime.datetime(2024, 1, 2, 3, 4, 5, tzinfo=datetime.timezone.utc))
        self.assertEqual(record.birthday, datetime.date(2024, 5, 6))

    def test_decode_errors(self):
        """Values the host type cannot decode raise ScanError."""
        with self.assertRaises(ScanError):
            self.plan.scan(row(created_at="not a date"), self.table.new_record())
        with self.assertRaises(ScanError):
            self.plan.scan(row(balance="abc"), self.table.new_record())

    def test_wrong_length(self):
        """Rows must have one value per result column."""
        with self.assertRaises(ScanError):
            self.plan.scan(row()[:-1], self.table.new_record())


class PasswordScanTests (unittest.TestCase):

    def scan_password(self, value, decrypt):
        table = build_table("accounts", Account)
        table.password_handler = PasswordHandler(decrypt=decrypt)
        return build_scan_plan(table, ["password"]).scan((value,), table.new_record())

    def test_decrypt(self):
        """Text and bytes values go through the decrypt hook."""
        self.assertEqual(self.scan_password("secret", lambda t, v: v.upper()).password, "SECRET")
        self.assertEqual(self.scan_password(b"secret", lambda t, v: t + ":" + v).password, "accounts:secret")

    def test_verified_only(self):
        """An empty decrypt result leaves the field unset."""
        self.assertIsNone(self.scan_password("secret", lambda t, v: "").password)
        self.assertIsNone(self.scan_password(None, lambda t, v: "x").password)

    def test_errors(self):
        """Hook failures and non-text values raise ScanError."""
        def fail(table_name, text):
            raise RuntimeError("bad key")

        with self.assertRaises(ScanError):
            self.scan_password("secret", fail)
        with self.assertRaises(ScanError):
            self.scan_password(42, lambda t, v: v)


class ScanResultTests (unittest.TestCase):

    def setUp(self):
        self.table = build_table("accounts", Account)

    def test_scan_rows(self):
        """Every row becomes a new record."""
        result = ResultSet(["id", "email"], [("a", "a@example.com"), ("b", None)])
        records = scan_rows(self.table, result)
        self.assertEqual([r.id for r in records], ["a", "b"])
        self.assertEqual([r.email for r in records], ["a@example.com", None])
        self.assertEqual(scan_rows(self.table, ResultSet(["id"], [])), [])

    def test_scan_one(self):
        """The first row is converted; an empty result raises NoRowsError."""
        record = scan_one(self.table, ResultSet(["id"], [("a",), ("b",)]))
        self.assertEqual(record.id, "a")
        with self.assertRaises(NoRowsError):
            scan_one(self.table, ResultSet(["id"], []))


if __name__ == '__main__':
    unittest.main()
