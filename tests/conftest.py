import pytest

from emberorm.adapters import ConnectionConfig, SQLiteAdapter
from emberorm.persistence import Repository


class RecordingAdapter(SQLiteAdapter):
    """
    SQLite adapter that remembers every statement it executes.
    """

    def __init__(self):
        super().__init__()
        self.statements = []

    def execute(self, sql, params=None):
        self.statements.append(sql)
        return super().execute(sql, params)

    def count(self, verb):
        return sum(1 for sql in self.statements if sql.lstrip().upper().startswith(verb))

    def reset(self):
        self.statements.clear()


@pytest.fixture
def make_repository(tmp_path):
    opened = []

    def factory(*ddl, name="default", database="test.db", **kwargs):
        adapter = RecordingAdapter()
        config = ConnectionConfig(url=f"sqlite:///{tmp_path / database}")
        repository = Repository(adapter, name=name, connection_config=config, **kwargs)
        for statement in ddl:
            repository.execute(statement)
        adapter.reset()
        opened.append(repository)
        return repository

    yield factory
    for repository in opened:
        repository.close()
