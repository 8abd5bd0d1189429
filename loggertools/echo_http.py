"""An HTTPS server that prints the bodies posted to one path."""

import argparse
import logging
import ssl
import sys
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from urllib.parse import urlsplit

_log = logging.getLogger(__name__)

MAX_ECHO = 1024


def echo_body(body):
    """Return what is printed for a body: its first 1024 bytes and a newline."""
    return body[:MAX_ECHO] + b"\n"


def _matches(path, pattern):
    if pattern.endswith("/"):
        return path.startswith(pattern)
    return path == pattern


def build_server(port, path, cert_path, key_path):
    """Build a TLS server that echoes request bodies sent to ``path``."""
    context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
    context.load_cert_chain(cert_path, key_path)

    class Handler(BaseHTTPRequestHandler):
        def _handle(self):
            length = int(self.headers.get("Content-Length") or 0)
            body = self.rfile.read(length) if length else b""
            if not _matches(urlsplit(self.path).path, path):
                self.send_response(404)
                self.send_header("Content-Length", "0")
                self.end_headers()
                return
            sys.stdout.buffer.write(echo_body(body))
            sys.stdout.flush()
            self.send_response(200)
            self.send_header("Content-Length", "0")
            self.end_headers()

        do_GET = do_POST = do_PUT = do_DELETE = _handle

        def log_message(self, format, *args):
            _log.debug("%s %s", self.address_string(), format % args)

    server = ThreadingHTTPServer(("", port), Handler)
    try:
        server.socket = context.wrap_socket(server.socket, server_side=True)
    except BaseException:
        server.server_close()
        raise
    return server


def main(argv=None):
    parser = argparse.ArgumentParser(prog="echo-http")
    parser.add_argument("--port", type=int, default=1234, help="port to listen on")
    parser.add_argument("--path", default="/syslog/", help="path to listen on")
    parser.add_argument("--cert", default="", help="certificate file")
    parser.add_argument("--key", default="", help="key file")
    args = parser.parse_args(argv)
    server = build_server(args.port, args.path, args.cert, args.key)
    server.serve_forever()