import io
import json

from loggertools.spinners import (
    DEFAULT_TEXT,
    json_payload,
    jsonspinner_params,
    lograter_params,
    logspinner_params,
    run_jsonspinner,
    run_lograter,
    run_logspinner,
)


def test_logspinner_defaults():
    assert logspinner_params({}) == (10, 1_000_000_000, DEFAULT_TEXT)


def test_logspinner_zero_and_bad_values_fall_back():
    assert logspinner_params({"cycles": "0", "delay": "soon"}) == (10, 1_000_000_000, DEFAULT_TEXT)


def test_logspinner_given_values():
    assert logspinner_params({"cycles": "5", "delay": "1ms", "text": "time2"}) == (
        5, 1_000_000, "time2")


def test_lograter_defaults_and_values():
    assert lograter_params({}) == (100, 1_000_000_000, DEFAULT_TEXT)
    assert lograter_params({"rate": "7", "duration": "1ms", "text": "t"}) == (7, 1_000_000, "t")


def test_jsonspinner_params():
    assert jsonspinner_params({}, 42) == (10, 1_000_000_000, "42", "msgCount")
    assert jsonspinner_params({"id": "x", "primer": "true"}, 42)[2:] == ("x", "primeCount")


def test_json_payload_format():
    assert json_payload("abc", 3, 1_000_000_000, "msgCount", 1) == (
        '{"id":"abc","cycles":3,"delay":"1s","msgCount":1,"iteration":1}'
    )


def test_json_payload_is_valid_json():
    data = json.loads(json_payload('we"ird', 2, 5_000_000, "primeCount", 2))
    assert data["id"] == 'we"ird'
    assert data["primeCount"] == 1
    assert data["iteration"] == 2


def test_run_logspinner_output():
    out = io.StringIO()
    assert run_logspinner(3, 0, "hi", out) == 3
    lines = out.getvalue().splitlines()
    assert lines[:3] == ["msg 1 hi", "msg 2 hi", "msg 3 hi"]
    assert lines[3].startswith("Duration ")
    assert "TotalSent 3" in lines[3]


def test_run_lograter_zero_duration():
    out = io.StringIO()
    assert run_lograter(100, 0, "x", out) == 0
    lines = out.getvalue().splitlines()
    assert len(lines) == 1
    assert "TotalSent 0" in lines[0]


def test_run_jsonspinner_writes_payloads():
    out = io.StringIO()
    assert run_jsonspinner(2, 0, "id-1", "msgCount", out) == 2
    payloads = [json.loads(line) for line in out.getvalue().splitlines()]
    assert [p["iteration"] for p in payloads] == [1, 2]
    assert all(p["id"] == "id-1" and p["cycles"] == 2 for p in payloads)