import logging

from emberorm.core import IntegerField, Model, StringField
from emberorm.utils import camel_to_snake, child_key_name, reverse_accessor_name
from emberorm.utils.logging import get_correlation_id, get_logger, set_correlation_id, time_call


class Gadget(Model):
    name = StringField(nullable=False)
    weight = IntegerField()


def test_correlation_id_round_trip():
    token = set_correlation_id("test-token")
    assert token == "test-token"
    assert get_correlation_id() == "test-token"


def test_time_call_logs_duration(caplog):
    logger = get_logger("tests.logging")
    caplog.set_level(logging.DEBUG, logger=logger.name)
    with time_call("unit-test", logger, threshold_ms=0):
        pass
    records = [record for record in caplog.records if record.name == logger.name]
    assert any("unit-test took" in record.message for record in records)
    assert records[-1].levelno == logging.WARNING


def test_state_transitions_are_logged(make_repository, caplog):
    repository = make_repository(
        'CREATE TABLE "gadget" (id INTEGER PRIMARY KEY AUTOINCREMENT, name TEXT NOT NULL, weight INTEGER)'
    )
    gadget = repository.new(Gadget, name="Lamp", weight=2)
    gadget.save()
    caplog.set_level(logging.DEBUG, logger="emberorm")

    gadget.weight = 3

    messages = [r.getMessage() for r in caplog.records if r.name == "emberorm.core.model"]
    assert "Gadget Clean -> Dirty" in messages


def test_naming_helpers():
    assert camel_to_snake("BlogPost") == "blog_post"
    assert camel_to_snake("HTTPRequest") == "http_request"
    assert child_key_name("author") == "author_id"
    assert reverse_accessor_name("BlogPost") == "blog_post_set"
    assert reverse_accessor_name("BlogPost", single=True) == "blog_post"
