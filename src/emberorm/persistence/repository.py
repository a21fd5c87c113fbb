"""
Repository: the storage boundary owning one identity map per model.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Type, TypeVar

from ..adapters.base import ConnectionConfig, DatabaseAdapter
from ..dialects.base import Dialect
from ..dialects.sqlite import SQLiteDialect
from ..query import Collection, Query, SQLCompiler
from ..security.redaction import redact_params
from ..utils import get_logger, time_call
from .identity_map import IdentityMap
from .transaction import TransactionManager

if TYPE_CHECKING:
    from ..cache import CacheBackend
    from ..core.fields import Field
    from ..core.model import Model


TModel = TypeVar("TModel", bound="Model")


class RepositoryError(RuntimeError):
    pass


class Repository:
    """
    Executes creates, updates, deletes and reads for resources bound to it.

    Reads go through the per-model identity maps, so loading the same key
    twice yields the same instance for as long as the repository scope
    lives. Used as a context manager the repository wraps its work in a
    transaction and is torn down on exit.
    """

    def __init__(
        self,
        adapter: DatabaseAdapter,
        *,
        name: str = "default",
        connection_config: Optional[ConnectionConfig] = None,
        dsn: Optional[str] = None,
        cache_backend: Optional["CacheBackend"] = None,
    ) -> None:
        if connection_config is not None and dsn is not None:
            raise RepositoryError("Pass either connection_config or dsn, not both.")
        if connection_config is None:
            connection_config = ConnectionConfig.from_dsn(dsn) if dsn else ConnectionConfig(url="sqlite:///:memory:")
        self.adapter = adapter
        self.name = name
        self.connection_config = connection_config
        self.dialect: Dialect = getattr(adapter, "dialect", None) or SQLiteDialect()
        self.compiler = SQLCompiler(self.dialect)
        self.transaction_manager = TransactionManager(adapter, self.dialect)
        self.cache = cache_backend
        self._identity_maps: Dict[Type["Model"], IdentityMap] = {}
        self.logger = get_logger("persistence.repository")
        self.adapter.connect(self.connection_config)
        self.logger.debug("Repository %s connected to %s", name, connection_config.descriptive_label())

    def __repr__(self) -> str:
        return f"<Repository {self.name} {self.connection_config.redacted_dsn()}>"

    # ------------------------------------------------------------------ #
    # Context management
    # ------------------------------------------------------------------ #
    def __enter__(self) -> "Repository":
        self.begin()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            if exc_type:
                self.rollback()
            else:
                self.commit()
        finally:
            self.close()

    def close(self) -> None:
        self.adapter.close()
        for identity_map in self._identity_maps.values():
            identity_map.clear()
        self._identity_maps.clear()
        self.transaction_manager.reset()

    # ------------------------------------------------------------------ #
    # Transactions
    # ------------------------------------------------------------------ #
    def begin(self) -> None:
        self.transaction_manager.begin()

    def commit(self) -> None:
        self.transaction_manager.commit()

    def rollback(self) -> None:
        self.transaction_manager.rollback()

    @contextmanager
    def transaction(self) -> Iterator["Repository"]:
        """
        Run the block in a transaction, or a savepoint when nested.

        Rolling back storage does not roll back resource states; resources
        saved inside a failed block should be reloaded or discarded.
        """
        with self.transaction_manager.transaction():
            yield self

    # ------------------------------------------------------------------ #
    # Identity maps
    # ------------------------------------------------------------------ #
    def identity_map(self, model: Type["Model"]) -> IdentityMap:
        identity_map = self._identity_maps.get(model)
        if identity_map is None:
            identity_map = IdentityMap(model, repository=self, second_level_cache=self.cache)
            self._identity_maps[model] = identity_map
        return identity_map

    # ------------------------------------------------------------------ #
    # Writes
    # ------------------------------------------------------------------ #
    def create(self, resources: Iterable["Model"]) -> bool:
        """
        Insert each resource. A serial field left unassigned is filled from
        the key storage generated.
        """
        for resource in resources:
            model = type(resource)
            values = []
            for field in model._meta.get_fields():
                if not field.loaded(resource):
                    continue
                value = field.get_raw(resource)
                if field.serial and value is None:
                    continue
                values.append((field, field.dump(value)))
            sql, params = self.compiler.insert(model, values)
            cursor = self.execute(sql, params)

            serial = model._meta.serial
            if serial is not None and serial.get_raw(resource) is None:
                generated = self.adapter.last_insert_id(cursor, model._meta.table_name, serial.column_name())
                serial.set_raw(resource, serial.typecast(generated))
        return True

    def update(self, attributes: Mapping["Field", Any], collection: Collection) -> bool:
        if not attributes:
            return True
        sql, params = self.compiler.update(collection.query, attributes)
        self.execute(sql, params)
        return True

    def delete(self, collection: Collection) -> bool:
        sql, params = self.compiler.delete(collection.query)
        self.execute(sql, params)
        return True

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #
    def new(self, model: Type[TModel], **attributes: Any) -> TModel:
        return model(**attributes).attach(self)

    def read(self, query: Query) -> List["Model"]:
        sql, params = self.compiler.select(query)
        cursor = self.execute(sql, params)
        fields = query.selected_fields()
        return [self._materialize(query.model, fields, row) for row in cursor.fetchall()]

    def get(self, model: Type[TModel], *key: Any) -> Optional[TModel]:
        key_fields = model._meta.key
        if len(key) != len(key_fields):
            raise RepositoryError(
                f"{model.__name__} key has {len(key_fields)} part(s), received {len(key)}"
            )
        key = tuple(field.typecast(value) for field, value in zip(key_fields, key))
        if any(value is None for value in key):
            return None
        resource = self.identity_map(model).get(key)
        if resource is not None:
            return resource
        results = self.read(Query(model, conditions=model._meta.key_conditions(key), limit=1))
        return results[0] if results else None

    def all(self, model: Type[TModel], **conditions: Any) -> List[TModel]:
        return self.read(Query(model, conditions=conditions))

    def first(self, model: Type[TModel], **conditions: Any) -> Optional[TModel]:
        results = self.read(Query(model, conditions=conditions, limit=1))
        return results[0] if results else None

    def load(self, resource: "Model", fields: Sequence["Field"]) -> None:
        """
        Fetch ``fields`` for a persisted resource, leaving values that are
        already loaded untouched.
        """
        key = resource.key
        if key is None or not fields:
            return
        model = type(resource)
        query = Query(
            model,
            conditions=model._meta.key_conditions(key),
            fields=tuple(field.require_name() for field in fields),
            limit=1,
        )
        sql, params = self.compiler.select(query)
        row = self.execute(sql, params).fetchone()
        if row is None:
            self.logger.debug("%s %s no longer exists in storage", model.__name__, key)
            return
        self._fill(resource, query.selected_fields(), row)

    def execute(self, sql: str, params: Iterable[Any] | None = None) -> Any:
        param_list = list(params or [])
        with time_call(
            "repository.execute",
            self.logger,
            sql=sql,
            params=redact_params(param_list),
            threshold_ms=200,
        ):
            return self.adapter.execute(sql, param_list)

    # ------------------------------------------------------------------ #
    def _materialize(self, model: Type["Model"], fields: Sequence["Field"], row: Sequence[Any]) -> "Model":
        values = {field.require_name(): row[index] for index, field in enumerate(fields)}
        key = tuple(field.typecast(values[field.require_name()]) for field in model._meta.key)
        identity_map = self.identity_map(model)
        resource = identity_map.get(key)
        if resource is None:
            resource = model.materialize(self, values)
        else:
            self._fill(resource, fields, row)
        identity_map[key] = resource
        return resource

    @staticmethod
    def _fill(resource: "Model", fields: Sequence["Field"], row: Sequence[Any]) -> None:
        for index, field in enumerate(fields):
            if not field.loaded(resource):
                field.set_raw(resource, field.typecast(row[index]))
