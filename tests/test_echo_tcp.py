import io
import socket
import threading
import time

import pytest

from loggertools.echo_tcp import TcpEchoServer


def _wait_for(predicate, timeout=2.0):
    end = time.monotonic() + timeout
    while time.monotonic() < end:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


@pytest.fixture
def running_server():
    out = io.StringIO()
    server = TcpEchoServer("127.0.0.1:0", out=out)
    thread = threading.Thread(target=server.start, daemon=True)
    thread.start()
    yield server, out, thread
    server.stop()
    thread.join(timeout=2)


def test_received_bytes_are_written(running_server):
    server, out, _ = running_server
    with socket.create_connection(server.address) as client:
        client.sendall(b"hello")
    _wait_for(lambda: out.getvalue() == "hello")
    assert out.getvalue() == "hello"


def test_multiple_clients_are_echoed(running_server):
    server, out, _ = running_server
    for payload in (b"one;", b"two;"):
        with socket.create_connection(server.address) as client:
            client.sendall(payload)
        _wait_for(lambda p=payload: p.decode() in out.getvalue())
    assert sorted(out.getvalue().rstrip(";").split(";")) == ["one", "two"]


def test_stop_ends_start():
    server = TcpEchoServer("127.0.0.1:0", out=io.StringIO())
    thread = threading.Thread(target=server.start, daemon=True)
    thread.start()
    server.stop()
    thread.join(timeout=2)
    assert not thread.is_alive()


def test_bound_port_is_assigned():
    server = TcpEchoServer("127.0.0.1:0", out=io.StringIO())
    try:
        assert server.address[1] > 0
    finally:
        server.stop()


def test_address_without_port_raises():
    with pytest.raises(ValueError):
        TcpEchoServer("localhost")


def test_tls_with_missing_certificate_raises(tmp_path):
    with pytest.raises(OSError):
        TcpEchoServer(
            "127.0.0.1:0",
            use_tls=True,
            cert_path=str(tmp_path / "missing.pem"),
            key_path=str(tmp_path / "missing.key"),
        )