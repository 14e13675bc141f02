import datetime
import unittest
from dataclasses import dataclass, field
from typing import Optional

from pgdesc.core.errors import QueryBuildError
from pgdesc.core.model import PasswordHandler, build_table
from pgdesc.core.sql import build_insert_query


@dataclass
class Customer:
    id: Optional[str] = field(default=None, metadata={"pg": "type=uuid,primary"})
    cognito_user_id: Optional[str] = field(default=None,
                                           metadata={"pg": "type=uuid,unique_index=customer_unique_idx"})
    email: Optional[str] = field(default=None, metadata={"pg": "type=varchar(255),unique_index=customer_unique_idx"})
    name: Optional[str] = field(default=None, metadata={"pg": "type=varchar(255)"})
    created_at: Optional[datetime.datetime] = field(default=None,
                                                    metadata={"pg": "type=timestamp,default=clock_timestamp()"})


@dataclass
class Tag:
    id: Optional[int] = field(default=None, metadata={"pg": "type=int,primary,identity"})
    name: Optional[str] = field(default=None, metadata={"pg": "type=varchar(64),unique,conflict=DO NOTHING"})


@dataclass
class User:
    id: Optional[int] = field(default=None, metadata={"pg": "type=int,primary,identity"})
    username: Optional[str] = field(default=None, metadata={"pg": "type=text,username,unique"})
    password: Optional[str] = field(default=None, metadata={"pg": "password"})
    note: Optional[str] = field(default=None, metadata={"pg": "type=text,presenter"})


@dataclass
class Pair:
    id: Optional[int] = field(default=None, metadata={"pg": "type=int,primary,identity"})
    a: Optional[str] = field(default=None, metadata={"pg": "type=text,unique_index=uk_pair"})
    b: Optional[str] = field(default=None, metadata={"pg": "type=text,unique_index=uk_pair"})


class InsertQueryTests (unittest.TestCase):

    def setUp(self):
        self.customers = build_table("customers", Customer)
        self.record = Customer(cognito_user_id="c1", email="jo@example.com", name="Jo")

    def test_plain_insert(self):
        """Zero values are skipped and no conflict clause is written."""
        sql, args = build_insert_query(self.customers, self.record)
        self.assertEqual(sql, 'INSERT INTO "public"."customers" (cognito_user_id,email,name) VALUES($1,$2,$3);')
        self.assertEqual(args, ["c1", "jo@example.com", "Jo"])

    def test_returning(self):
        """RETURNING names the primary key."""
        sql, _ = build_insert_query(self.customers, self.record, returning=True)
        self.assertEqual(sql, 'INSERT INTO "public"."customers" (cognito_user_id,email,name) '
                              'VALUES($1,$2,$3) RETURNING id;')

    def test_forced_unique_index(self):
        """A forced unique index group becomes the conflict target and every other column is updated."""
        sql, args = build_insert_query(self.customers, self.record, returning=True,
                                       force_on_conflict="customer_unique_idx")
        self.assertEqual(sql, 'INSERT INTO "public"."customers" (cognito_user_id,email,name) VALUES($1,$2,$3) '
                              'ON CONFLICT(cognito_user_id,email) DO UPDATE SET name = EXCLUDED.name RETURNING id;')
        self.assertEqual(args, ["c1", "jo@example.com", "Jo"])

    def test_forced_unique_column(self):
        """A forced unique column becomes the conflict target on its own."""
        users = build_table("users", User)
        sql, args = build_insert_query(users, User(username="jo", password="secret"), returning=True,
                                       force_on_conflict="username")
        self.assertEqual(sql, 'INSERT INTO "public"."users" (username,password) '
                              'VALUES($1,crypt($2,gen_salt(\'bf\'))) '
                              'ON CONFLICT(username) DO UPDATE SET password = EXCLUDED.password RETURNING id;')
        self.assertEqual(args, ["jo", "secret"])

    def test_forced_group_member(self):
        """A single member of a unique index group is not a valid conflict target."""
        with self.assertRaisesRegex(QueryBuildError, "can't find unique index with name: email"):
            build_insert_query(self.customers, self.record, force_on_conflict="email")

    def test_upsert_without_update_columns(self):
        """When every inserted column is in the conflict target the row is left alone and nothing is returned."""
        pairs = build_table("pairs", Pair)
        sql, args = build_insert_query(pairs, Pair(a="x", b="y"), returning=True, upsert=True)
        self.assertEqual(sql, 'INSERT INTO "public"."pairs" (a,b) VALUES($1,$2) ON CONFLICT(a,b) DO NOTHING;')
        self.assertEqual(args, ["x", "y"])

    def test_forced_unknown(self):
        """An unknown forced target is an error."""
        with self.assertRaisesRegex(QueryBuildError, "can't find unique index with name: nosuch"):
            build_insert_query(self.customers, self.record, force_on_conflict="nosuch")

    def test_upsert(self):
        """upsert updates on the unique index columns."""
        sql, _ = build_insert_query(self.customers, self.record, upsert=True)
        self.assertEqual(sql, 'INSERT INTO "public"."customers" (cognito_user_id,email,name) VALUES($1,$2,$3) '
                              'ON CONFLICT(cognito_user_id,email) DO UPDATE SET name = EXCLUDED.name;')

    def test_full(self):
        """full inserts zero values too, except generated ones."""
        sql, args = build_insert_query(self.customers, Customer(name="Jo"), full=True)
        self.assertEqual(sql, 'INSERT INTO "public"."customers" (cognito_user_id,email,name) VALUES($1,$2,$3);')
        self.assertEqual(args, [None, None, "Jo"])

    def test_declared_conflict(self):
        """A declared conflict action applies to the unique columns; RETURNING needs a DO UPDATE."""
        tags = build_table("tags", Tag)
        sql, args = build_insert_query(tags, Tag(name="python"), returning=True)
        self.assertEqual(sql, 'INSERT INTO "public"."tags" (name) VALUES($1) ON CONFLICT(name) DO NOTHING;')
        self.assertEqual(args, ["python"])

    def test_password_crypt(self):
        """Without an encrypt hook the database hashes the password; presenter columns are skipped."""
        users = build_table("users", User)
        sql, args = build_insert_query(users, User(username="jo", password="secret", note="n"))
        self.assertEqual(sql, 'INSERT INTO "public"."users" (username,password) '
                              'VALUES($1,crypt($2,gen_salt(\'bf\')));')
        self.assertEqual(args, ["jo", "secret"])

    def test_password_encrypt_hook(self):
        """With an encrypt hook the hook output is sent as is."""
        users = build_table("users", User)
        users.password_handler = PasswordHandler(encrypt=lambda table_name, value: "%s:%s" % (table_name, value[::-1]))
        sql, args = build_insert_query(users, User(username="jo", password="secret"))
        self.assertEqual(sql, 'INSERT INTO "public"."users" (username,password) VALUES($1,$2);')
        self.assertEqual(args, ["jo", "users:terces"])

    def test_no_arguments(self):
        """A record with only zero values cannot be inserted."""
        with self.assertRaises(QueryBuildError):
            build_insert_query(self.customers, Customer())


if __name__ == '__main__':
    unittest.main()
