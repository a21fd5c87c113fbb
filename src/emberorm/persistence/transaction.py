"""
Transaction manager handling nested transactions and savepoints.
"""

from __future__ import annotations

import itertools
from contextlib import contextmanager
from typing import Generator, List

from ..adapters.base import DatabaseAdapter
from ..dialects.base import Dialect
from ..utils import get_logger


class TransactionError(RuntimeError):
    pass


class TransactionManager:
    """
    Tracks nesting depth; the outermost level is a real transaction and
    every inner level is a savepoint.
    """

    def __init__(self, adapter: DatabaseAdapter, dialect: Dialect) -> None:
        self.adapter = adapter
        self.dialect = dialect
        self._stack: List[str | None] = []
        self._savepoint_counter = itertools.count(1)
        self.logger = get_logger("persistence.transaction")

    @property
    def depth(self) -> int:
        return len(self._stack)

    @property
    def active(self) -> bool:
        return bool(self._stack)

    def begin(self) -> None:
        if self.depth == 0:
            self.adapter.begin()
            self._stack.append(None)
            self.logger.debug("BEGIN")
            return

        if not self.dialect.capabilities.supports_savepoints:
            raise TransactionError("Nested transactions not supported by current dialect.")

        name = f"sp_{next(self._savepoint_counter)}"
        self.adapter.execute(self.dialect.savepoint_sql(name))
        self._stack.append(name)
        self.logger.debug("SAVEPOINT %s", name)

    def commit(self) -> None:
        if self.depth == 0:
            raise TransactionError("No active transaction to commit.")

        savepoint = self._stack.pop()
        if savepoint is None:
            self.adapter.commit()
            self.logger.debug("COMMIT")
            return
        self.adapter.execute(self.dialect.release_savepoint_sql(savepoint))

    def rollback(self) -> None:
        if self.depth == 0:
            raise TransactionError("No active transaction to roll back.")

        savepoint = self._stack.pop()
        if savepoint is None:
            self.adapter.rollback()
            self.logger.debug("ROLLBACK")
            return
        self.adapter.execute(self.dialect.rollback_to_savepoint_sql(savepoint))
        self.adapter.execute(self.dialect.release_savepoint_sql(savepoint))

    def reset(self) -> None:
        self._stack.clear()

    @contextmanager
    def transaction(self) -> Generator[None, None, None]:
        self.begin()
        try:
            yield
        except Exception:
            self.rollback()
            raise
        else:
            self.commit()
