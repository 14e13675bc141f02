"""Installation of the table-change notification function and triggers.

Only the DDL is handled here; listening on the channel is left to the driver.
"""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pgdesc.core.utils.core_utils import DEFAULT_CONFIG

logger = logging.getLogger(__name__)

WILDCARD_TABLE = "*"


class TableChangeType (str, Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"

    def __str__(self):
        return self.value


DEFAULT_CHANGES = (TableChangeType.INSERT, TableChangeType.UPDATE, TableChangeType.DELETE)


@dataclass
class TableNotification:
    """A decoded notification payload.

    ``old`` is set for UPDATE and DELETE, ``new`` for INSERT and UPDATE.
    """

    table: str
    change: TableChangeType
    new: dict[str, Any] | None = None
    old: dict[str, Any] | None = None
    payload: str = field(default="", repr=False)

    @classmethod
    def from_payload(cls, payload: str) -> TableNotification:
        """Decode the JSON payload sent by the notify function.

        Raises:
            ValueError: If the payload is not valid JSON or names an unknown change.
        """
        data = json.loads(payload)
        return cls(
            table=data["table"],
            change=TableChangeType(data["change"]),
            new=data.get("new"),
            old=data.get("old"),
            payload=payload,
        )


def build_notify_function_query(function, channel):
    return """CREATE OR REPLACE FUNCTION %s() RETURNS trigger AS $$
DECLARE
    payload text;
    channel text := '%s';
BEGIN
    SELECT json_build_object('table', TG_TABLE_NAME, 'change', TG_OP, 'old', OLD, 'new', NEW)::text
    INTO payload;
    PERFORM pg_notify(channel, payload);
    IF (TG_OP = 'DELETE') THEN
        RETURN OLD;
    ELSE
        RETURN NEW;
    END IF;
END;
$$ LANGUAGE plpgsql;""" % (function, channel)


def build_notify_trigger_query(function, table_name, changes):
    return "CREATE OR REPLACE TRIGGER %s_%s AFTER %s ON %s FOR EACH ROW EXECUTE FUNCTION %s();" % (
        table_name, function, " OR ".join(TableChangeType(c).value for c in changes), table_name, function)


class TableChangeTriggerInstaller (object):
    """Installs the notify function once and each table trigger at most once per process.

    Safe to call from several threads; concurrent first uses issue the DDL only once.

    Args:
        channel: The notification channel.
        function: The notify function name. Triggers are named ``<table>_<function>``.
    """

    def __init__(self, channel=None, function=None):
        listener = DEFAULT_CONFIG["listener"]
        self.channel = channel or listener["channel"]
        self.function = function or listener["function"]
        self._installed = False
        self._function_lock = threading.Lock()
        self._tables_lock = threading.Lock()
        self._tables = set()

    @property
    def installed(self):
        return self._installed

    def prepared_tables(self):
        with self._tables_lock:
            return set(self._tables)

    def _install_function(self, executor):
        if self._installed:
            return
        with self._function_lock:
            if self._installed:
                return
            executor.execute(build_notify_function_query(self.function, self.channel))
            self._installed = True
            logger.debug("Installed notify function %s on channel %s", self.function, self.channel)

    def _install_trigger(self, executor, table_name, changes):
        with self._tables_lock:
            if table_name in self._tables:
                return
            executor.execute(build_notify_trigger_query(self.function, table_name, changes))
            self._tables.add(table_name)
            logger.debug("Installed notify trigger on %s", table_name)

    def prepare(self, executor, tables=None, base_table_names=()):
        """Install the function and the triggers of ``tables``.

        Args:
            executor: A `QueryExecutor`.
            tables: Mapping of table name to the `TableChangeType` list to notify on. Defaults
                to every change of every table. The ``*`` key stands for the ``base_table_names``
                not listed explicitly.
            base_table_names: The names the wildcard expands to, usually
                ``schema.table_names(TableType.base)``.

        Raises:
            ValueError: If a table name is empty.
        """
        tables = dict(tables) if tables else {WILDCARD_TABLE: list(DEFAULT_CHANGES)}
        if WILDCARD_TABLE in tables:
            changes = tables.pop(WILDCARD_TABLE)
            if changes:
                for name in base_table_names:
                    tables.setdefault(name, changes)

        for table_name, changes in tables.items():
            if not table_name:
                raise ValueError("empty table name")
            if not changes:
                continue
            self._install_function(executor)
            self._install_trigger(executor, table_name, changes)
