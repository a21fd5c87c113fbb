import pytest

from emberorm.core import IntegerField, Model, StringField
from emberorm.hooks import HOOK_EVENTS, hooks

SAMPLE_DDL = (
    'CREATE TABLE IF NOT EXISTS "sample" '
    "(id INTEGER PRIMARY KEY AUTOINCREMENT, name TEXT NOT NULL, age INTEGER)"
)


@pytest.fixture(autouse=True)
def clear_hooks():
    hooks.clear()
    yield
    hooks.clear()


@pytest.fixture
def repository(make_repository):
    return make_repository(SAMPLE_DDL, database="hooks.db")


class Sample(Model):
    name = StringField(nullable=False)
    age = IntegerField(default=0)


def record_all(events):
    for event_name in sorted(HOOK_EVENTS):

        def handler(inst, event=event_name, **ctx):
            events.append((event, inst.name))

        hooks.register(event_name, handler)


def test_create_hooks_fire_in_order(repository):
    events = []
    record_all(events)

    sample = repository.new(Sample, name="Alice", age=21)
    sample.save()

    assert events == [
        ("before_save", "Alice"),
        ("before_create", "Alice"),
        ("after_create", "Alice"),
        ("after_save", "Alice"),
    ]


def test_update_hooks_fire_in_order(repository):
    sample = repository.new(Sample, name="Alice")
    sample.save()
    events = []
    record_all(events)

    sample.age = 40
    sample.save()

    assert events == [
        ("before_save", "Alice"),
        ("before_update", "Alice"),
        ("after_update", "Alice"),
        ("after_save", "Alice"),
    ]


def test_saving_clean_resource_fires_nothing(repository):
    sample = repository.new(Sample, name="Alice")
    sample.save()
    events = []
    record_all(events)

    assert sample.save()
    assert events == []


def test_after_hooks_skipped_when_save_fails(repository):
    events = []
    record_all(events)

    sample = repository.new(Sample)
    assert not sample.save()

    assert events == [("before_save", None), ("before_create", None)]


def test_hook_receives_context(repository):
    seen = []
    hooks.register("after_save", lambda inst, **ctx: seen.append(ctx))

    sample = repository.new(Sample, name="Alice")
    sample.save()

    assert seen == [{"repository": repository, "created": True}]


def test_model_specific_hook_on_destroy(repository):
    fired = []

    def before_destroy(instance, **context):
        fired.append(("before", instance.name))

    def after_destroy(instance, **context):
        fired.append(("after", instance.name))

    Sample.register_hook("before_destroy", before_destroy)
    Sample.register_hook("after_destroy", after_destroy)

    sample = repository.new(Sample, name="Bob", age=30)
    sample.save()

    to_delete = repository.get(Sample, sample.id)
    assert to_delete.destroy()

    assert fired == [("before", "Bob"), ("after", "Bob")]


def test_model_hooks_do_not_fire_for_other_models(repository):
    class Other(Model):
        name = StringField()

    fired = []
    Other.register_hook("before_save", lambda inst, **ctx: fired.append(inst))

    repository.new(Sample, name="Alice").save()

    assert fired == []


def test_unknown_event_is_rejected():
    with pytest.raises(ValueError):
        hooks.register("before_commit", lambda inst, **ctx: None)
