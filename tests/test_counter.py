import pytest

from loggertools.counter import Counter, get_id


def test_sets_the_prime_count():
    c = Counter(10)
    status, _ = c.handle("PUT", "/set/", b'[{"id": "my-id", "primeCount": 1, "msgCount": 0}]')
    assert status == 200
    assert c.handle("GET", "/get-prime/my-id", b"") == (200, b"1")


def test_sets_the_message_count():
    c = Counter(10)
    c.set_counts(b'[{"id": "my-id", "primeCount": 0, "msgCount": 2}]')
    assert c.get("/get/my-id") == "2"
    assert c.handle("GET", "/get/my-id", b"") == (200, b"2")


def test_returns_zeros_for_unknown_id():
    c = Counter(10)
    assert c.get("/get/my-unknown-id") == "0"
    assert c.get_prime("/get-prime/my-unknown-id") == "0"


def test_keeps_a_limited_number_of_counters():
    c = Counter(2)
    for i in range(5):
        c.set_counts(f'[{{"id": "my-id-{i}", "primeCount": 100, "msgCount": 100}}]')
    for i in range(3):
        assert c.get(f"/get/my-id-{i}") == "0"
    for i in range(3, 5):
        assert c.get(f"/get/my-id-{i}") == "100"


def test_latest_entry_wins():
    c = Counter(5)
    c.set_counts(b'[{"id": "a", "msgCount": 1}, {"id": "a", "msgCount": 9}]')
    assert c.get("/get/a") == "9"


@pytest.mark.parametrize("body", [b"not json", b'{"id": "a"}', b'[{"id": 5}]', b'[{"msgCount": -1}]'])
def test_bad_body_is_rejected(body):
    c = Counter(5)
    assert c.handle("POST", "/set/", body) == (400, b"")
    with pytest.raises(ValueError):
        c.set_counts(body)


def test_unknown_route_is_404():
    assert Counter(1).handle("GET", "/other", b"")[0] == 404


def test_get_id():
    assert get_id("/get/my-id") == "my-id"
    assert get_id("/get/") == ""