"""Reports reliability test results to DataDog as gauge series."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

import requests

from loggertools.testinfo import ZERO_TIME

_log = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_ACCEPTED = (200, 201, 202)

_PAYLOAD = """{{
		"series": [
			{{
				"metric": "smoke_test.loggregator.msg_count",
				"points": [[{start}, {msg_count}]],
				"type": "gauge",
				"host": "{host}",
				"tags": ["firehose-nozzle", "delay:{delay}", "instance_index:{index}"]
			}},
			{{
				"metric": "smoke_test.loggregator.cycles",
				"points": [[{start}, {cycles}]],
				"type": "gauge",
				"host": "{host}",
				"tags": ["firehose-nozzle", "delay:{delay}", "instance_index:{index}"]
			}}
		]
	}}"""


class ReportError(Exception):
    """Raised when a result could not be delivered."""


@dataclass
class TestResult:
    """The outcome of one reliability test; ``delay`` is in nanoseconds."""

    received_log_count: int = 0
    delay: int = 0
    cycles: int = 0
    test_start_time: datetime = field(default=ZERO_TIME)

    @classmethod
    def from_test(cls, test, count):
        return cls(
            received_log_count=count,
            delay=test.delay,
            cycles=test.cycles,
            test_start_time=test.start_time,
        )


def _unix_seconds(moment):
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return (moment - _EPOCH) // timedelta(seconds=1)


def build_payload(host, instance_index, start_time, msg_count, cycles, delay):
    """Build the JSON body of the series request."""
    return _PAYLOAD.format(
        start=_unix_seconds(start_time),
        host=host,
        delay=delay,
        msg_count=msg_count,
        cycles=cycles,
        index=instance_index,
    )


class DataDogReporter:
    """Posts test results to the DataDog series API through ``client``."""

    def __init__(self, api_key, host, instance_index, client=None):
        self._api_key = api_key
        self._host = host
        self._instance_index = instance_index
        self._client = client if client is not None else requests.Session()

    def report(self, result):
        """Send ``result``; raises ReportError when it was not accepted."""
        payload = build_payload(
            self._host,
            self._instance_index,
            result.test_start_time,
            result.received_log_count,
            result.cycles,
            result.delay,
        )
        try:
            response = self._client.post(
                f"https://app.datadoghq.com/api/v1/series?api_key={self._api_key}",
                data=payload.encode(),
                headers={"Content-Type": "application/json;charset=utf-8"},
            )
        except (requests.RequestException, OSError) as exc:
            raise ReportError(str(exc)) from exc
        try:
            status = response.status_code
            _log.info("datadog response status code: %d", status)
            if status not in _ACCEPTED:
                raise ReportError(f"status code was {status}")
        finally:
            response.close()