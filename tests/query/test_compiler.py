import pytest

from emberorm.core import BooleanField, IntegerField, Model, StringField, TextField
from emberorm.dialects import SQLiteDialect
from emberorm.query import Collection, Query, SQLCompiler


class Ticket(Model):
    title = StringField(db_column="headline")
    priority = IntegerField()
    closed = BooleanField()
    notes = TextField()

    class Meta:
        table = "tickets"


@pytest.fixture
def compiler():
    return SQLCompiler(SQLiteDialect())


def test_select_reads_eager_fields_ordered_by_key(compiler):
    sql, params = compiler.select(Query(Ticket))

    assert sql == 'SELECT "id", "headline", "priority", "closed" FROM "tickets" ORDER BY "id"'
    assert params == []


def test_select_with_conditions_order_and_limit(compiler):
    query = Query(Ticket, conditions={"closed": False, "priority": [1, 2]}, order=("-priority",), limit=5)

    sql, params = compiler.select(query)

    assert sql == (
        'SELECT "id", "headline", "priority", "closed" FROM "tickets" '
        'WHERE "closed" = ? AND "priority" IN (?, ?) ORDER BY "priority" DESC LIMIT 5'
    )
    assert params == [0, 1, 2]


def test_select_specific_fields_always_includes_key(compiler):
    sql, _ = compiler.select(Query(Ticket, fields=("notes",), conditions={"id": 3}))

    assert sql.startswith('SELECT "id", "notes" FROM "tickets" WHERE "id" = ?')


def test_null_and_empty_conditions(compiler):
    sql, params = compiler.select(Query(Ticket, conditions={"priority": None, "title": []}))

    assert 'WHERE "priority" IS NULL AND 1 = 0' in sql
    assert params == []


def test_insert_update_delete(compiler):
    fields = Ticket._meta.fields

    sql, params = compiler.insert(Ticket, [(fields["title"], "Crash"), (fields["closed"], 1)])
    assert sql == 'INSERT INTO "tickets" ("headline", "closed") VALUES (?, ?)'
    assert params == ["Crash", 1]

    query = Query(Ticket, conditions={"id": 7})
    sql, params = compiler.update(query, {fields["priority"]: 2})
    assert sql == 'UPDATE "tickets" SET "priority" = ? WHERE "id" = ?'
    assert params == [2, 7]

    sql, params = compiler.delete(query)
    assert sql == 'DELETE FROM "tickets" WHERE "id" = ?'
    assert params == [7]


def test_insert_without_values_uses_defaults(compiler):
    assert compiler.insert(Ticket, []) == ('INSERT INTO "tickets" DEFAULT VALUES', [])


def test_update_requires_assignments(compiler):
    with pytest.raises(ValueError):
        compiler.update(Query(Ticket), {})


def test_query_rejects_unknown_fields_and_negative_limit():
    with pytest.raises(KeyError):
        Query(Ticket, conditions={"missing": 1})
    with pytest.raises(KeyError):
        Query(Ticket, order=("-missing",))
    with pytest.raises(ValueError):
        Query(Ticket, limit=-1)


def test_collection_wraps_known_resources():
    tickets = [Ticket(title="a"), Ticket(title="b")]
    collection = Collection(Query(Ticket), tickets)

    assert collection.model is Ticket
    assert len(collection) == 2
    assert collection[1] is tickets[1]
    assert list(collection) == tickets
