"""
SQL compilation for repository selectors and writes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, List, Mapping, Sequence, Tuple

from ..dialects.base import Dialect
from .query import Query

if TYPE_CHECKING:
    from ..core.fields import Field
    from ..core.model import Model


class SQLCompiler:
    """
    Render queries and write operations into SQL statements and parameters.
    """

    def __init__(self, dialect: Dialect) -> None:
        self.dialect = dialect

    def select(self, query: Query) -> Tuple[str, List[Any]]:
        columns = ", ".join(self._column(field) for field in query.selected_fields())
        sql_parts: List[str] = [f"SELECT {columns}", "FROM", self._table(query.model)]
        where_sql, params = self._where(query)
        if where_sql:
            sql_parts.extend(["WHERE", where_sql])

        ordering = query.ordering()
        if ordering:
            sql_parts.append("ORDER BY")
            sql_parts.append(", ".join(self._compile_ordering(query.model, name) for name in ordering))

        limit_clause = self.dialect.limit_clause(query.limit)
        if limit_clause:
            sql_parts.append(limit_clause)
        return " ".join(sql_parts), params

    def insert(self, model: type["Model"], values: Sequence[Tuple["Field", Any]]) -> Tuple[str, List[Any]]:
        table = self._table(model)
        if not values:
            return f"INSERT INTO {table} DEFAULT VALUES", []
        columns = ", ".join(self._column(field) for field, _ in values)
        placeholders = ", ".join(self.dialect.parameter_placeholder() for _ in values)
        sql = f"INSERT INTO {table} ({columns}) VALUES ({placeholders})"
        return sql, [value for _, value in values]

    def update(self, query: Query, assignments: Mapping["Field", Any]) -> Tuple[str, List[Any]]:
        if not assignments:
            raise ValueError("UPDATE requires at least one assignment.")
        placeholder = self.dialect.parameter_placeholder()
        set_sql = ", ".join(f"{self._column(field)} = {placeholder}" for field in assignments)
        params = list(assignments.values())
        sql = f"UPDATE {self._table(query.model)} SET {set_sql}"
        where_sql, where_params = self._where(query)
        if where_sql:
            sql = f"{sql} WHERE {where_sql}"
            params.extend(where_params)
        return sql, params

    def delete(self, query: Query) -> Tuple[str, List[Any]]:
        sql = f"DELETE FROM {self._table(query.model)}"
        where_sql, params = self._where(query)
        if where_sql:
            sql = f"{sql} WHERE {where_sql}"
        return sql, params

    # Helpers -----------------------------------------------------------
    def _table(self, model: type["Model"]) -> str:
        return self.dialect.format_table(model._meta.table_name)

    def _column(self, field: "Field") -> str:
        return self.dialect.quote_identifier(field.column_name())

    def _where(self, query: Query) -> Tuple[str, List[Any]]:
        parts: List[str] = []
        params: List[Any] = []
        for name, value in query.conditions.items():
            field = query.model._meta.get_field(name)
            column = self._column(field)
            if value is None:
                parts.append(f"{column} IS NULL")
            elif isinstance(value, (list, tuple, set, frozenset)):
                members = [field.dump(member) for member in value]
                if not members:
                    parts.append("1 = 0")
                    continue
                placeholders = ", ".join(self.dialect.parameter_placeholder() for _ in members)
                parts.append(f"{column} IN ({placeholders})")
                params.extend(members)
            else:
                parts.append(f"{column} = {self.dialect.parameter_placeholder()}")
                params.append(field.dump(value))
        return " AND ".join(parts), params

    def _compile_ordering(self, model: type["Model"], field_name: str) -> str:
        descending = field_name.startswith("-")
        name = field_name[1:] if descending else field_name
        clause = self._column(model._meta.get_field(name))
        if descending:
            clause += " DESC"
        return clause
