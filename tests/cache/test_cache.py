from emberorm.cache import InMemoryCache, NoOpCache
from emberorm.core import IntegerField, Model, StringField

USER_DDL = 'CREATE TABLE IF NOT EXISTS "user" (id INTEGER PRIMARY KEY AUTOINCREMENT, name TEXT NOT NULL, age INTEGER)'


class User(Model):
    name = StringField(nullable=False)
    age = IntegerField(default=0)


def test_second_level_cache_serves_subsequent_repositories(make_repository):
    cache = InMemoryCache()
    first = make_repository(USER_DDL, database="cache.db", cache_backend=cache)
    user = first.new(User, name="Alice", age=30)
    assert user.save()

    assert first.get(User, user.id) is user
    first.close()

    second = make_repository(database="cache.db", cache_backend=cache)
    result = second.get(User, user.id)
    assert result.name == "Alice"
    assert result.is_clean()
    assert second.adapter.statements == []


def test_cached_resource_is_rebuilt_in_the_reading_repository(make_repository):
    cache = InMemoryCache()
    first = make_repository(USER_DDL, database="cache_scope.db", cache_backend=cache)
    user = first.new(User, name="Alice", age=30)
    user.save()
    first.close()

    second = make_repository(database="cache_scope.db", cache_backend=cache)
    result = second.get(User, user.id)

    assert result is not user
    assert result.repository is second
    assert second.get(User, user.id) is result

    result.age = 31
    assert result.save()
    assert second.adapter.count("UPDATE") == 1
    row = second.execute('SELECT age FROM "user" WHERE id = ?', [user.id]).fetchone()
    assert row["age"] == 31
    assert cache.get(User, (user.id,))["age"] == 31


def test_cache_holds_stored_values_not_unsaved_changes(make_repository):
    cache = InMemoryCache()
    repository = make_repository(USER_DDL, database="cache_dirty.db", cache_backend=cache)
    user = repository.new(User, name="Alice", age=30)
    user.save()

    user.age = 99

    assert cache.get(User, user.key) == {"id": user.id, "name": "Alice", "age": 30}


def test_cache_invalidation_on_delete(make_repository):
    cache = InMemoryCache()
    repository = make_repository(USER_DDL, database="cache_delete.db", cache_backend=cache)
    user = repository.new(User, name="Bob", age=22)
    user.save()
    key = user.key
    assert len(cache) == 1

    assert user.destroy()
    assert len(cache) == 0

    other = make_repository(database="cache_delete.db", cache_backend=cache)
    assert other.get(User, *key) is None
    assert other.adapter.count("SELECT") == 1


def test_noop_cache_never_holds_resources(make_repository):
    repository = make_repository(USER_DDL, cache_backend=NoOpCache())
    user = repository.new(User, name="Cy")
    user.save()

    assert NoOpCache().get(User, user.key) is None
    assert repository.identity_map(User).get(user.key) is user


def test_in_memory_cache_copies_payloads_and_clears():
    cache = InMemoryCache()
    payload = {"id": 1, "name": "Dee"}
    cache.set(User, (1,), payload)
    payload["name"] = "changed"

    cached = cache.get(User, (1,))
    assert cached == {"id": 1, "name": "Dee"}
    cached["name"] = "mutated"
    assert cache.get(User, (1,))["name"] == "Dee"

    cache.clear()
    assert cache.get(User, (1,)) is None
