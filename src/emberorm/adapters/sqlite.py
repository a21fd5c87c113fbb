"""
SQLite database adapter implementation.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from typing import Any, Sequence

from ..dialects.sqlite import SQLiteDialect
from ..security.redaction import redact_params
from ..utils import get_logger, time_call
from .base import (
    AdapterConnectionError,
    AdapterExecutionError,
    AdapterTransactionError,
    ConnectionConfig,
)


@dataclass(slots=True)
class SQLiteConnectionState:
    connection: sqlite3.Connection
    path: str
    begin_statement: str = "BEGIN"


class SQLiteAdapter:
    """
    Adapter wrapping the Python stdlib sqlite3 module.
    """

    def __init__(self) -> None:
        self.dialect = SQLiteDialect()
        self._state: SQLiteConnectionState | None = None
        self.logger = get_logger("adapters.sqlite")

    # ------------------------------------------------------------------ #
    # Connection management
    # ------------------------------------------------------------------ #
    def connect(self, config: ConnectionConfig) -> sqlite3.Connection:
        path = self._normalize_path(config)
        timeout = config.timeout if config.timeout is not None else 5.0
        try:
            connection = sqlite3.connect(
                path,
                isolation_level=None,
                timeout=timeout,
                check_same_thread=False,
            )
        except sqlite3.Error as exc:
            raise AdapterConnectionError(
                f"Could not open SQLite database {config.descriptive_label()}"
            ) from exc
        connection.row_factory = sqlite3.Row
        connection.execute("PRAGMA foreign_keys = ON")

        begin_statement = "BEGIN"
        if config.isolation_level:
            begin_statement = f"BEGIN {config.isolation_level.upper()}"
        self._state = SQLiteConnectionState(connection, path, begin_statement)
        self.logger.debug("Connected", extra={"path": path})
        return connection

    @property
    def connected(self) -> bool:
        return self._state is not None

    def close(self) -> None:
        if self._state:
            self._state.connection.close()
            self._state = None

    def _ensure_connection(self) -> sqlite3.Connection:
        if not self._state:
            raise AdapterConnectionError("SQLiteAdapter is not connected.")
        return self._state.connection

    # ------------------------------------------------------------------ #
    # Execution
    # ------------------------------------------------------------------ #
    def execute(self, sql: str, params: Sequence[Any] | None = None) -> sqlite3.Cursor:
        connection = self._ensure_connection()
        params = list(params or ())
        try:
            with time_call("sqlite.execute", self.logger, sql=sql, params=redact_params(params)):
                return connection.execute(sql, params)
        except sqlite3.Error as exc:
            raise AdapterExecutionError(f"{exc} [sql: {sql}]") from exc

    # ------------------------------------------------------------------ #
    # Transactions
    # ------------------------------------------------------------------ #
    def begin(self) -> None:
        state = self._state
        self._run_transaction_statement(state.begin_statement if state else "BEGIN")

    def commit(self) -> None:
        self._run_transaction_statement("COMMIT")

    def rollback(self) -> None:
        self._run_transaction_statement("ROLLBACK")

    def _run_transaction_statement(self, statement: str) -> None:
        connection = self._ensure_connection()
        try:
            connection.execute(statement)
        except sqlite3.Error as exc:
            raise AdapterTransactionError(f"{statement} failed: {exc}") from exc

    # ------------------------------------------------------------------ #
    def last_insert_id(self, cursor: sqlite3.Cursor, table: str, pk_column: str) -> Any:
        return cursor.lastrowid

    @staticmethod
    def _normalize_path(config: ConnectionConfig) -> str:
        if config.dsn is not None:
            return config.dsn.database or ":memory:"
        url = config.url
        prefix = "sqlite:///"
        if url.startswith(prefix):
            return url[len(prefix) :] or ":memory:"
        return url
