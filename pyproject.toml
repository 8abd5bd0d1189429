[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "loggertools"
version = "0.1.0"
description = "Small programs for generating, receiving, counting and measuring application log traffic"
requires-python = ">=3.10"
keywords = [
    "logging",
    "load-testing",
    "syslog",
    "rfc5424",
    "latency",
    "reliability",
    "log-drain",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Environment :: Web Environment",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Framework :: AsyncIO",
    "Topic :: System :: Logging",
    "Topic :: Software Development :: Testing :: Traffic Generation",
    "Topic :: System :: Monitoring",
]
dependencies = [
    "aiohttp",
    "requests",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[project.scripts]
biglogger = "loggertools.loadgen:biglogger_main"
constlogger = "loggertools.loadgen:constlogger_main"
logemitter = "loggertools.loadgen:logemitter_main"
logspinner = "loggertools.spinners:logspinner_main"
lograter = "loggertools.spinners:lograter_main"
jsonspinner = "loggertools.spinners:jsonspinner_main"
log-counter = "loggertools.counter:main"
https-drain = "loggertools.https_drain:main"
metric-server = "loggertools.metricserver:main"
postcounter = "loggertools.postcounter:main"
postprinter = "loggertools.postprinter:main"
echo-http = "loggertools.echo_http:main"
echo-tcp = "loggertools.echo_tcp:main"
reliability-server = "loggertools.server:main"

[tool.hatch.build.targets.wheel]
packages = ["loggertools"]

[tool.hatch.build.targets.sdist]
include = [
    "loggertools",
    "tests",
    "pyproject.toml",
    "README.md",
]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
