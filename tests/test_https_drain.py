import json
from datetime import datetime, timezone
from unittest import mock

import pytest

from loggertools.https_drain import (
    DrainHandler,
    SyslogMessage,
    parse_rfc5424,
    report_counts,
)


def _message(payload):
    return SyslogMessage(
        priority=0,
        timestamp=datetime(2021, 3, 4, 5, 6, 7, 123000, tzinfo=timezone.utc),
        hostname="some-host",
        app_name="some-app",
        process_id="procID",
        message_id="msgID",
        message=payload,
    )


class _StopAfter:
    def __init__(self, rounds):
        self.rounds = rounds

    def wait(self, interval):
        self.rounds -= 1
        return self.rounds < 0


def test_writes_out_the_body(capsys):
    handler = DrainHandler()
    body = b"to check body output"
    handler.handle(body)
    assert "to check body output" in capsys.readouterr().out


def test_empty_body_is_bad_request():
    assert DrainHandler().handle(b"") == 400


def test_non_syslog_body_is_bad_request():
    assert DrainHandler().handle(b"to check body output") == 400


def test_round_trip():
    original = _message(b'{"id":"some-id", "msgCount":1}')
    assert parse_rfc5424(original.to_bytes()) == original


def test_parse_structured_data():
    data = b'<7>1 2016-02-28T09:57:10.804642398-05:00 myhostname someapp - - [foo@1234 Revision="1.2.3.4"] Hello, World!'
    message = parse_rfc5424(data)
    assert message.priority == 7
    assert message.hostname == "myhostname"
    assert message.structured_data == '[foo@1234 Revision="1.2.3.4"]'
    assert message.message == b"Hello, World!"


def test_counts_accumulate():
    handler = DrainHandler()
    assert handler.handle(_message(b'{"id":"some-id", "msgCount":1}').to_bytes()) == 200
    handler.handle(_message(b'{"id":"some-id", "primeCount":2}').to_bytes())
    handler.handle(_message(b'{"id":"some-id", "msgCount":1}').to_bytes())
    assert handler.fetch_counters() == [{"id": "some-id", "primeCount": 2, "msgCount": 2}]


def test_non_json_message_is_ignored():
    handler = DrainHandler()
    assert handler.handle(_message(b"plain text").to_bytes()) == 200
    assert handler.fetch_counters() == []


def test_reports_counts_to_counter_url():
    handler = DrainHandler()
    assert handler.handle(_message(b'{"id":"some-id", "msgCount":1}').to_bytes()) == 200
    with mock.patch("requests.post") as post:
        post.return_value.status_code = 200
        report_counts(handler, "http://localhost:9999", 0.01, _StopAfter(1))
    args, kwargs = post.call_args
    assert args[0] == "http://localhost:9999/set/"
    assert json.loads(kwargs["data"]) == [{"id": "some-id", "msgCount": 1, "primeCount": 0}]
    # Reporting does not reset the counts.
    assert handler.fetch_counters() == [{"id": "some-id", "primeCount": 0, "msgCount": 1}]


def test_reports_null_when_empty():
    handler = DrainHandler()
    with mock.patch("requests.post") as post:
        post.return_value.status_code = 200
        report_counts(handler, "http://localhost:9999", 0.01, _StopAfter(2))
    assert post.call_count == 2
    assert post.call_args.kwargs["data"] == "null"
    assert handler.fetch_counters() == []


@pytest.mark.parametrize("data", [b"<999>1 - - - - - -", b"hello", b"<1>1 notatime h a p m -"])
def test_parse_invalid(data):
    with pytest.raises(ValueError):
        parse_rfc5424(data)