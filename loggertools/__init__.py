"""Log load generators, receivers, counters and reliability-test components."""

__version__ = "0.1.0"