"""
Trace sinks for debug-enabled scopes.

When a scope (or the process-wide default) has ``debug`` enabled, the
dispatcher writes a TraceRecord for each request it handles. Sinks only
need a ``write`` method, so any logging, tracing or test backend can be
plugged in.

Example:
    >>> sink = InMemoryTraceSink()
    >>> policy = ScopedPolicy(registry, trace_sink=sink)
    >>> policy.authorize("enter", {"subdomain": "portal"})
    >>> sink.records[0].scope_id
    'portal'
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from scoped_policy.types import TraceRecord

logger = logging.getLogger(__name__)


@runtime_checkable
class TraceSink(Protocol):
    """
    Protocol for trace backends.

    Example:
        >>> class PrintSink:
        ...     def write(self, record):
        ...         print(record.to_dict())
    """

    def write(self, record: TraceRecord) -> None:
        """
        Record one dispatch.

        Args:
            record: The trace record. The subject is the original,
                unfocused subject.
        """
        ...


class LoggingTraceSink:
    """
    Sink that writes trace records to a logger (the default).

    Example:
        >>> import logging
        >>> logging.basicConfig(level=logging.DEBUG)
        >>> LoggingTraceSink().write(record)
        DEBUG:scoped_policy.trace:authorize matched scope 'portal' with [action: 'enter', ...]
    """

    def __init__(self, logger: logging.Logger | None = None, level: int = logging.DEBUG):
        """
        Initialize the logging sink.

        Args:
            logger: Logger instance to use. Defaults to "scoped_policy.trace".
            level: Logging level for trace messages.
        """
        self.logger = logger or logging.getLogger("scoped_policy.trace")
        self.level = level

    def write(self, record: TraceRecord) -> None:
        """Log a trace record."""
        request = (
            f"[action: {record.action!r}, subject: {record.subject!r}, "
            f"params: {record.params!r}]"
        )
        if record.matched:
            self.logger.log(
                self.level, f"authorize matched scope '{record.scope_id}' with {request}"
            )
        else:
            self.logger.log(self.level, f"authorize couldn't match a scope with {request}")


class InMemoryTraceSink:
    """
    Sink that keeps records in memory, for tests.

    Example:
        >>> sink = InMemoryTraceSink()
        >>> policy.authorize("enter", subject)
        >>> [r.scope_id for r in sink.records]
        ['portal']
    """

    def __init__(self) -> None:
        self.records: list[TraceRecord] = []

    def write(self, record: TraceRecord) -> None:
        self.records.append(record)

    def matched(self) -> list[TraceRecord]:
        """Records for requests that matched a scope."""
        return [record for record in self.records if record.matched]

    def unmatched(self) -> list[TraceRecord]:
        """Records for requests no scope matched."""
        return [record for record in self.records if not record.matched]

    def reset(self) -> None:
        """Drop all recorded traces."""
        self.records.clear()


class NullTraceSink:
    """Sink that discards everything."""

    def write(self, record: TraceRecord) -> None:
        pass


def emit_trace(sink: TraceSink, record: TraceRecord) -> bool:
    """
    Write ``record`` to ``sink`` without letting the sink fail the request.

    Args:
        sink: The trace sink.
        record: The record to write.

    Returns:
        True if the sink accepted the record, False if it raised.
    """
    try:
        sink.write(record)
    except Exception as e:
        logger.warning(
            f"Trace sink {type(sink).__name__} failed for scope "
            f"'{record.scope_id}': {e}"
        )
        return False
    return True
