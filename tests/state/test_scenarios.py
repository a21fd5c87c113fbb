import pytest

from emberorm.core import IntegerField, Model, StringField
from emberorm.state import Clean, Deleted, Dirty, Immutable, Transient

PERSON_DDL = (
    'CREATE TABLE "person" (id INTEGER PRIMARY KEY AUTOINCREMENT, '
    "name TEXT NOT NULL, email TEXT NOT NULL, age INTEGER)"
)


class Person(Model):
    name = StringField(nullable=False)
    email = StringField(nullable=False)
    age = IntegerField()


class StorageSpy:
    def __init__(self, repository, monkeypatch):
        self.calls = []
        for operation in ("create", "update", "delete"):
            monkeypatch.setattr(repository, operation, self._wrap(operation, getattr(repository, operation)))

    def _wrap(self, operation, func):
        def recorder(*args):
            self.calls.append((operation, args))
            return func(*args)

        return recorder

    def named(self, operation):
        return [args for name, args in self.calls if name == operation]


@pytest.fixture
def repository(make_repository):
    return make_repository(PERSON_DDL)


@pytest.fixture
def storage(repository, monkeypatch):
    return StorageSpy(repository, monkeypatch)


def commit(resource):
    resource.persistence_state = resource.persistence_state.commit()
    return resource.persistence_state


def test_missing_required_attribute_blocks_create_until_assigned(repository, storage):
    person = repository.new(Person, name="Dan")
    transient = person.persistence_state

    assert commit(person) is transient
    assert storage.calls == []

    person.email = "d@x.com"
    state = commit(person)

    assert isinstance(state, Clean)
    assert len(storage.named("create")) == 1
    assert person.key == (1,)


def test_changed_attribute_is_the_only_one_updated(repository, storage):
    repository.execute(
        'INSERT INTO "person" (name, email, age) VALUES (?, ?, ?)', ("Dan", "d@x.com", 30)
    )
    person = repository.get(Person, 1)

    person.age = 30
    assert isinstance(person.persistence_state, Clean)
    person.age = 31
    assert isinstance(person.persistence_state, Dirty)

    assert isinstance(commit(person), Clean)

    updates = storage.named("update")
    assert len(updates) == 1
    attributes, collection = updates[0]
    assert attributes == {Person.age: 31}
    assert list(collection) == [person]


def test_deleting_clean_resource_removes_it_from_identity_map(repository, storage):
    repository.execute(
        'INSERT INTO "person" (name, email, age) VALUES (?, ?, ?)', ("Dan", "d@x.com", 30)
    )
    person = repository.get(Person, 1)
    key = person.key

    person.persistence_state = person.persistence_state.delete()
    assert isinstance(person.persistence_state, Deleted)

    assert isinstance(commit(person), Immutable)
    assert len(storage.named("delete")) == 1
    assert repository.identity_map(Person).get(key) is None


def test_new_resource_reports_transient():
    person = Person(name="Dan")

    assert isinstance(person.persistence_state, Transient)
    assert person.is_new()
    assert not person.is_saved()
