"""Runs a single log reliability test against the firehose and reports it."""

import asyncio
import inspect
import logging
import sys
import time
from dataclasses import dataclass

from loggertools.reporter import TestResult

_log = logging.getLogger(__name__)

LOG_MESSAGE = "LogMessage"
PRIME_TIMEOUT = 60.0
PRIMER_INTERVAL = 1.0

_MESSAGE = "message"
_ERROR = "error"


@dataclass(frozen=True)
class LogEnvelope:
    """An envelope read from the firehose; only log messages carry text."""

    message: bytes = b""
    event_type: str = LOG_MESSAGE

    @property
    def is_log(self):
        return self.event_type == LOG_MESSAGE


def _emit(text):
    """Write one line to the application log stream."""
    stamp = time.strftime("%Y/%m/%d %H:%M:%S")
    sys.stderr.write(f"{stamp} {text}\n")
    sys.stderr.flush()


def _as_bytes(value):
    return value.encode() if isinstance(value, str) else bytes(value)


async def _call(func, *args):
    result = await asyncio.to_thread(func, *args)
    if inspect.isawaitable(result):
        result = await result
    return result


async def _next_event(messages, errors, timeout):
    """Wait for the next error or message; None when ``timeout`` elapses."""
    if timeout <= 0:
        return None
    message_task = asyncio.ensure_future(messages.get())
    error_task = asyncio.ensure_future(errors.get())
    done, pending = await asyncio.wait(
        {message_task, error_task}, timeout=timeout, return_when=asyncio.FIRST_COMPLETED
    )
    for task in pending:
        task.cancel()
    await asyncio.gather(*pending, return_exceptions=True)
    if error_task in done:
        return _ERROR, error_task.result()
    if message_task in done:
        return _MESSAGE, message_task.result()
    return None


def _contains(envelope, needle):
    return envelope is not None and envelope.is_log and needle in _as_bytes(envelope.message)


async def write_logs(log_msg, cycles, delay):
    """Write ``log_msg`` ``cycles`` times, sleeping ``delay`` seconds after each."""
    text = _as_bytes(log_msg).decode("utf-8", "replace")
    for _ in range(cycles):
        _emit(text)
        await asyncio.sleep(delay)


async def receive_logs(messages, errors, log_msg, log_cycles, timeout, subscription_id):
    """Count messages containing ``log_msg`` until ``log_cycles`` or ``timeout`` seconds.

    An error from ``errors`` is raised; a None on ``errors`` ends the
    stream and yields a count of zero.
    """
    needle = _as_bytes(log_msg)
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    received = 0
    while True:
        event = await _next_event(messages, errors, deadline - loop.time())
        if event is None:
            _log.info("test timedout - %s", subscription_id)
            return received
        kind, value = event
        if kind == _ERROR:
            if value is None:
                return 0
            _log.info("%s", value)
            raise value
        if _contains(value, needle):
            received += 1
        if received == log_cycles:
            return received


async def _write_primers(primer_msg):
    text = primer_msg.decode("utf-8", "replace")
    while True:
        _emit(text)
        await asyncio.sleep(PRIMER_INTERVAL)


async def prime(messages, errors, subscription_id, timeout=PRIME_TIMEOUT):
    """Write primer logs until one is seen on the stream; return whether it was."""
    primer_msg = f"{subscription_id} - PRIMER".encode()
    writer = asyncio.create_task(_write_primers(primer_msg))
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    try:
        while True:
            event = await _next_event(messages, errors, deadline - loop.time())
            if event is None:
                _log.info("test timedout while priming - %s", primer_msg.decode())
                return False
            kind, value = event
            if kind == _ERROR:
                if value is not None:
                    _log.info("%s", value)
                return False
            if _contains(value, primer_msg):
                return True
    finally:
        writer.cancel()
        await asyncio.gather(writer, return_exceptions=True)


class LogReliabilityTestRunner:
    """Runs tests over a firehose subscription and reports what arrived.

    ``authenticator.token()`` supplies the token, ``consumer.firehose_without_reconnect``
    returns a ``(messages, errors)`` pair of asyncio queues and ``reporter.report``
    receives the result. Each may be a plain or an async function.
    """

    def __init__(self, loggregator_addr, subscription_id_prefix, authenticator, reporter, consumer):
        self._loggregator_addr = loggregator_addr
        self._subscription_id_prefix = subscription_id_prefix
        self._authenticator = authenticator
        self._reporter = reporter
        self._consumer = consumer
        self._writers = set()

    async def run(self, test):
        """Run ``test``; return the reported TestResult, or None when it failed."""
        subscription_id = f"{self._subscription_id_prefix}{test.id}"

        try:
            token = await _call(self._authenticator.token)
        except Exception as exc:
            _log.info("failed to authenticate with UAA: %s", exc)
            return None

        messages, errors = self._consumer.firehose_without_reconnect(subscription_id, token)

        if not await prime(messages, errors, subscription_id):
            return None

        test_log = f"{subscription_id} - TEST".encode()
        writer = asyncio.create_task(write_logs(test_log, test.write_cycles, test.delay / 1e9))
        self._writers.add(writer)
        writer.add_done_callback(self._writers.discard)

        try:
            received = await receive_logs(
                messages, errors, test_log, test.cycles, test.timeout / 1e9, subscription_id
            )
        except Exception as exc:
            _log.info("Error receiving logs: %s", exc)
            return None

        result = TestResult.from_test(test, received)
        try:
            await _call(self._reporter.report, result)
        except Exception as exc:
            _log.info("Error reporting: %s", exc)
            return None
        return result