"""A TCP (optionally TLS) server that prints whatever clients send."""

import argparse
import codecs
import logging
import socket
import ssl
import sys
import threading
import time

_log = logging.getLogger(__name__)

READ_DEADLINE = 0.1
_ACCEPT_POLL = 0.1


def _split_address(address):
    if address == "":
        return "", 0
    host, sep, port = address.rpartition(":")
    if not sep:
        raise ValueError(f"missing port in address {address!r}")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    if port == "":
        return host, 0
    if not port.isdigit() or not port.isascii():
        raise ValueError(f"invalid port in address {address!r}")
    return host, int(port)


class TcpEchoServer:
    """Listens on ``address`` and writes received bytes to ``out``."""

    def __init__(self, address, use_tls=False, cert_path="", key_path="", out=None):
        host, port = _split_address(address)
        self._tls = None
        if use_tls:
            context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
            context.load_cert_chain(cert_path, key_path)
            context.options |= ssl.OP_NO_TICKET
            self._tls = context
        family = socket.AF_INET6 if ":" in host else socket.AF_INET
        self._listener = socket.create_server((host, port), family=family)
        self._listener.settimeout(_ACCEPT_POLL)
        self._out = out
        self._out_lock = threading.Lock()
        self._stopped = threading.Event()

    @property
    def address(self):
        """The bound ``(host, port)``."""
        return self._listener.getsockname()[:2]

    def start(self):
        """Accept connections until stop() is called."""
        _log.info("tcp echo server listening on %s", self.address)
        while not self._stopped.is_set():
            try:
                conn, _ = self._listener.accept()
            except socket.timeout:
                continue
            except OSError:
                return
            threading.Thread(target=self._handle_connection, args=(conn,), daemon=True).start()

    def stop(self):
        self._stopped.set()
        self._listener.close()

    def _write(self, text):
        if not text:
            return
        out = self._out if self._out is not None else sys.stdout
        with self._out_lock:
            out.write(text)
            out.flush()

    def _handle_connection(self, conn):
        deadline = time.monotonic() + READ_DEADLINE
        decoder = codecs.getincrementaldecoder("utf-8")("replace")
        stream = conn
        try:
            if self._tls is not None:
                conn.settimeout(max(deadline - time.monotonic(), 0.001))
                stream = self._tls.wrap_socket(conn, server_side=True)
            while True:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                stream.settimeout(remaining)
                data = stream.recv(1024)
                if not data:
                    break
                self._write(decoder.decode(data))
        except OSError:
            pass
        finally:
            self._write(decoder.decode(b"", final=True))
            stream.close()
            conn.close()


def main(argv=None):
    parser = argparse.ArgumentParser(prog="echo-tcp")
    parser.add_argument("--ssl", action="store_true", help="Use SSL")
    parser.add_argument("--cert", default="", help="TLS certificate")
    parser.add_argument("--key", default="", help="TLS private key")
    parser.add_argument("--address", default="", help="Listener address")
    args = parser.parse_args(argv)
    logging.basicConfig(format="%(asctime)s %(message)s", level=logging.INFO)
    server = TcpEchoServer(args.address, args.ssl, args.cert, args.key)
    try:
        server.start()
    finally:
        server.stop()