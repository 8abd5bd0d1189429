# loggertools

A collection of small programs for exercising a log pipeline: tools that
produce log load on standard output, HTTP and TCP endpoints that receive and
echo log traffic, counters that track how many messages arrived, and a
control server that coordinates log reliability tests across workers.

Most tools are meant to run as applications on a platform that sets `PORT`
(and, where noted, `VCAP_APPLICATION` or `CF_INSTANCE_INDEX`) in the
environment. Durations everywhere are written as `300ms`, `1.5s`, `2h45m`
and so on (units `ns`, `us`, `µs`, `ms`, `s`, `m`, `h`).

## Installation

```
pip install .
```

For running the test suite:

```
pip install ".[test]"
pytest
```

## Log generators

### biglogger

Logs one very large line made of `*` characters at a fixed interval. It also
listens for HTTP on `--port`, answering every request with `404`, so that the
platform sees a listening port.

```
biglogger --size 1 --frequency 1m --port 8080
```

* `--size` – size of each message in megabytes (default 1)
* `--frequency` – time between messages (default `1m`)
* `--port` – HTTP port (default 8080)

### constlogger

Prints a constant stream of numbered lines (`msg 1`, `msg 2`, ...) to
standard output, paced by a rate limiter. The rate and minimum line length
are read from `application_name` in the JSON held by `VCAP_APPLICATION`:

* `constlogger` – 1000 lines per second
* `constlogger-100` – 100 lines per second
* `constlogger-100-50` – 100 lines per second, each padded with `-` to at
  least 50 bytes including the newline

It fails with a `ValueError` when `VCAP_APPLICATION` is not valid JSON or the
name parts are not integers. Like `biglogger`, it listens on `PORT` and
answers `404`.

```
constlogger
```

### logemitter

Prints `LogEmitter: emitting log` on every tick. The interval comes from
`EMIT_INTERVAL`; if it is missing or invalid, 6 ms is used.

```
logemitter
```

### logspinner, lograter, jsonspinner

HTTP servers on `PORT` that start writing log lines in the background when
any path is requested. Parameters come from the query string or from a
URL-encoded form body; the response describes what was started.

```
logspinner
lograter
jsonspinner
```

* `logspinner`: `?cycles=100&delay=1ms&text=hello` prints `msg N <text>`
  `cycles` times with `delay` between lines. Defaults: 10 cycles, `1s`,
  `LogSpinner Log Message`.
* `lograter`: `?rate=100&duration=1s&text=hello` prints `msg N <text>` at
  `rate` lines per second for `duration`. Defaults: 100 per second, `1s`,
  `LogSpinner Log Message`.
* `jsonspinner`: `?cycles=10&delay=1s&id=run-1&primer=true` prints JSON lines
  such as `{"id":"run-1","cycles":10,"delay":"1s","msgCount":1,"iteration":1}`;
  with `primer=true` the counted key is `primeCount` instead of `msgCount`.
  When `id` is omitted the current time in nanoseconds is used.

When a run finishes, a summary line with the elapsed time, the total sent and
the achieved rate is written (to standard output for `logspinner` and
`lograter`, to the log for `jsonspinner`).

The same pieces are available from Python: `logspinner_params`,
`lograter_params`, `jsonspinner_params`, `json_payload`, and `run_logspinner`,
`run_lograter`, `run_jsonspinner`, which write to any text stream.

## Receivers and counters

### https-drain

Accepts RFC 5424 syslog messages in HTTP request bodies on `PORT`. Each body
is printed to standard output after `Received: `; an empty body or one that
is not valid RFC 5424 gets a `400`. The message part of each syslog line is
read as JSON with `id`, `msgCount` and `primeCount` fields and added to a
per-id total (messages that are not such JSON are accepted and ignored).

If `COUNTER_URL` is set, the totals are posted as a JSON list to
`COUNTER_URL/set/` every `INTERVAL` (default `1s`; an invalid value stops
the program).

```
PORT=8080 COUNTER_URL=http://localhost:9090 INTERVAL=500ms https-drain
```

`parse_rfc5424` and `SyslogMessage` in `loggertools.https_drain` parse and
build the syslog messages; `DrainHandler` and `report_counts` are the
counting and posting parts.

### log-counter

Keeps the 100 most recent count entries posted by `https-drain`.

* `/set/` with a body holding a JSON list of `{"id", "msgCount", "primeCount"}`
  objects stores them; older entries fall out once the limit is reached.
  A body that is not such a list gets `400`.
* `/get/<id>` returns the message count for `<id>` (`0` if unknown).
* `/get-prime/<id>` returns the prime count for `<id>`.
* Any other path gets `404`.

Logging is shown only when `VERBOSE=true`.

```
PORT=9090 log-counter
```

### postcounter

Counts POST requests. Any other request returns how many POSTs arrived
within the last `DURATION` (default `1m`).

```
PORT=8080 DURATION=30s postcounter
```

### postprinter

Logs every request body it receives and answers `201` to POST and `200` to
everything else. Request details are logged as well unless
`SKIP_REQUEST_LOGGING=true`.

```
PORT=8080 postprinter
```

### echo-http

An HTTPS server that prints the first kilobyte of every request body sent to
its path (a path ending in `/` also matches everything below it); other
paths get `404`.

```
echo-http --port 1234 --path /syslog/ --cert server.crt --key server.key
```

### echo-tcp

A TCP (optionally TLS) server that prints what it reads from each
connection. Each connection is read for 100 ms after it is accepted and then
closed.

```
echo-tcp --address 127.0.0.1:6000
echo-tcp --ssl --cert server.crt --key server.key --address 127.0.0.1:6000
```

### metric-server

Serves `Hello World` on every path but `/metrics`, and a small Prometheus
text exposition on `/metrics`, with the metric prefix chosen from `a`–`d` by
`CF_INSTANCE_INDEX` (a missing or invalid index gives `500`). It listens on
`PORT` and on 8081.

```
PORT=8080 CF_INSTANCE_INDEX=0 metric-server
```

## Reliability tests

`reliability-server` is the control server for distributed log reliability
tests. Workers connect to it over a websocket at `/workers`; a test is started
by posting to `/tests`:

```
PORT=8080 reliability-server
curl -X POST localhost:8080/tests \
  -d '{"cycles": 1000, "delay": "1s", "timeout": "60s"}'
```

Only POST is allowed (`405` otherwise). `cycles` and `timeout` must be given
and non-zero, or the answer is `400`. The server assigns an id and a start
time, splits the cycles across the connected workers (the last one also
takes the remainder), sends each the test as JSON and answers `201` with the
test. If no worker is connected within five seconds, it answers `500` with
the error text. `create_app` in `loggertools.server` builds the same
application for use in other code.

The worker side is available as library code:

* `WorkerClient` (`loggertools.worker_client`) connects to the control
  server's websocket and starts each received `ReliabilityTest` with a runner.
* `LogReliabilityTestRunner` (`loggertools.runner`) fetches a token, opens a
  stream through a consumer object, primes it, writes the test's log lines
  and counts how many come back, then reports a `TestResult`.
* `UAAClient` (`loggertools.authenticator`) fetches a bearer token with the
  client-credentials grant.
* `DataDogReporter` (`loggertools.reporter`) submits the result as
  `smoke_test.loggregator.msg_count` and `smoke_test.loggregator.cycles`
  gauges.

```python
import asyncio

import requests

from loggertools.authenticator import UAAClient
from loggertools.reporter import DataDogReporter
from loggertools.runner import LogReliabilityTestRunner
from loggertools.worker_client import WorkerClient

session = requests.Session()
uaa = UAAClient("my-client", "secret", "https://uaa.example.com", session)
reporter = DataDogReporter("placeholder", "worker-host", "0", session)

runner = LogReliabilityTestRunner(
    "wss://logs.example.com", "blackbox-test-", uaa, reporter, my_consumer
)
asyncio.run(WorkerClient("ws://localhost:8080/workers", False, runner).run())
```

`my_consumer` must provide `firehose_without_reconnect(subscription_id, token)`
returning a pair of asyncio queues: one of `LogEnvelope` messages and one of
errors (a `None` on the error queue ends the stream).

## Latency measurement helpers

`loggertools.latency` holds the pieces of a latency probe: `read_input` and
`app_id` read the settings from the environment, `sample_size` reads the
`samples` query value, `generate_random_message` makes probe messages,
`LatencyRecorder` records when each probe message was written and when it was
seen again, and `compute_average` and `compute_test_results` summarise the
latencies, the latter as a `LatencyResults` with the average and maximum in
seconds and the counts of logs received and expected.

## What is not included

* There is no worker command: the worker classes above must be put together
  in your own code, and the package has no firehose or log-cache client, so
  the consumer passed to `LogReliabilityTestRunner` has to be supplied.
* There is no latency probe server; only the helpers described above.
* There are no tools that send or receive envelopes over gRPC.