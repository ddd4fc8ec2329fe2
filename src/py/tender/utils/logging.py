import sys
import time
import threading
import traceback
from abc import ABC, abstractmethod
from contextvars import ContextVar
from enum import Enum
from typing import Any, NamedTuple, TextIO
from .primitives import TPrimitive
from .term import COLOR, Term

__doc__ = """
Structured logging. Every logging function produces a `LogEntry` that is
recorded by a `LogSink`. The process-wide default sink writes colored
lines on `stderr`, but components that log per request (see
`tender.handler`) are given their sink explicitly.
"""

LogOrigin: ContextVar[str] = ContextVar("LogOrigin", default="tender")


class LogType(Enum):
	Message = 0  # A general information message
	Event = 20  # An event


class LogLevel(Enum):
	Debug = 0
	Info = 10
	Warning = 30  # A Warning
	Error = 40  # A managed error
	Exception = 50  # An un-managed error


LOG_LEVEL_COLOR = {
	LogLevel.Debug: 31,
	LogLevel.Info: 75,
	LogLevel.Warning: 202,
	LogLevel.Error: 160,
	LogLevel.Exception: 124,
}


class LogEntry(NamedTuple):
	origin: str
	time: float
	type: LogType = LogType.Message
	level: LogLevel = LogLevel.Info
	message: str | None = None
	name: str | None = None
	value: TPrimitive | None = None
	context: dict[str, TPrimitive] | None = None
	stack: list[str] | None = None


def formatData(value: Any, *, color: bool = COLOR) -> str:
	if value is None or value == () or value == [] or value == {}:
		return "◌"
	elif isinstance(value, dict):
		bold, reset = (Term.BOLD, Term.RESET) if color else ("", "")
		return " ".join(
			f"{bold}{k}{reset}={formatData(v, color=color)}" for k, v in value.items()
		)
	elif isinstance(value, list) or isinstance(value, tuple):
		return ",".join(formatData(v, color=color) for v in value)
	elif isinstance(value, str):
		return repr(value) if " " in value else value
	elif isinstance(value, bool):
		return "✓" if value else "✗"
	elif isinstance(value, float):
		return f"{value:0.2f}"
	else:
		return str(value)


def formatEntry(entry: LogEntry, *, color: bool = COLOR) -> str:
	"""Formats the entry as a single line, without the trailing EOL."""
	clr: str = Term.Color(LOG_LEVEL_COLOR[entry.level]) if color else ""
	bold: str = Term.BOLD if color else ""
	reset: str = Term.RESET if color else ""
	if entry.type == LogType.Event:
		head = f"{clr}{bold}[{entry.origin}] {entry.name}{reset} {formatData(entry.value, color=color)}"
	else:
		head = f"{clr}{bold}[{entry.origin}]{reset} {entry.message}"
	return (
		f"{head} {formatData(entry.context, color=color)}{reset}"
		if entry.context
		else f"{head}{reset}"
	)


# -----------------------------------------------------------------------------
#
# SINKS
#
# -----------------------------------------------------------------------------


class LogSink(ABC):
	"""Receives log entries. Sinks are shared between concurrent requests,
	so implementations must record each entry atomically."""

	@abstractmethod
	def record(self, entry: LogEntry) -> LogEntry: ...


class StreamLogSink(LogSink):
	"""Writes one line per entry on a text stream."""

	__slots__ = ["stream", "color", "lock"]

	def __init__(self, stream: TextIO | None = None, *, color: bool | None = None):
		self.stream: TextIO | None = stream
		self.color: bool = (COLOR and stream is None) if color is None else color
		self.lock = threading.Lock()

	def record(self, entry: LogEntry) -> LogEntry:
		line: str = formatEntry(entry, color=self.color)
		if entry.stack:
			line += "".join(f"\n  {' ' * len(entry.origin)} {_}" for _ in entry.stack)
		# NOTE: The stream is resolved late so that a swapped `sys.stderr`
		# (as done by test runners) is honoured.
		stream: TextIO = self.stream or sys.stderr
		with self.lock:
			stream.write(line + "\n")
			stream.flush()
		return entry


class NullLogSink(LogSink):
	"""Discards the entries."""

	def record(self, entry: LogEntry) -> LogEntry:
		return entry


class MemoryLogSink(LogSink):
	"""Keeps the entries in memory, useful for testing and for
	collecting request logs."""

	__slots__ = ["entries", "lock"]

	def __init__(self) -> None:
		self.entries: list[LogEntry] = []
		self.lock = threading.Lock()

	def record(self, entry: LogEntry) -> LogEntry:
		with self.lock:
			self.entries.append(entry)
		return entry

	@property
	def lines(self) -> list[str]:
		with self.lock:
			return [formatEntry(_, color=False) for _ in self.entries]

	def clear(self) -> None:
		with self.lock:
			self.entries.clear()


SINK: LogSink = StreamLogSink()


def setSink(sink: LogSink) -> LogSink:
	"""Replaces the default sink, returning the previous one."""
	global SINK
	previous = SINK
	SINK = sink
	return previous


# -----------------------------------------------------------------------------
#
# API
#
# -----------------------------------------------------------------------------


def entry(
	*,
	origin: str | None = None,
	at: float | None = None,
	type: LogType = LogType.Message,
	level: LogLevel = LogLevel.Info,
	message: str | None = None,
	name: str | None = None,
	value: TPrimitive | None = None,
	context: dict[str, TPrimitive] | None = None,
	stack: list[str] | None = None,
) -> LogEntry:
	return LogEntry(
		origin=origin or LogOrigin.get(),
		time=time.time() if at is None else at,
		type=type,
		level=level,
		message=message,
		name=name,
		value=value,
		context=context,
		stack=stack,
	)


def send(item: LogEntry, sink: LogSink | None = None) -> LogEntry:
	return (sink or SINK).record(item)


def debug(
	message: str,
	*,
	origin: str | None = None,
	at: float | None = None,
	sink: LogSink | None = None,
	**context: TPrimitive,
) -> LogEntry:
	return send(
		entry(
			message=message,
			level=LogLevel.Debug,
			origin=origin,
			at=at,
			context=context,
		),
		sink,
	)


def info(
	message: str,
	*,
	origin: str | None = None,
	at: float | None = None,
	sink: LogSink | None = None,
	**context: TPrimitive,
) -> LogEntry:
	return send(
		entry(message=message, origin=origin, at=at, context=context),
		sink,
	)


def warning(
	message: str,
	*,
	origin: str | None = None,
	at: float | None = None,
	sink: LogSink | None = None,
	**context: TPrimitive,
) -> LogEntry:
	return send(
		entry(
			message=message,
			level=LogLevel.Warning,
			origin=origin,
			at=at,
			context=context,
		),
		sink,
	)


def error(
	message: str,
	code: int | str | None = None,
	*,
	origin: str | None = None,
	at: float | None = None,
	sink: LogSink | None = None,
	**context: TPrimitive,
) -> LogEntry:
	return send(
		entry(
			message=message,
			value=code,
			level=LogLevel.Error,
			origin=origin,
			at=at,
			context=context,
		),
		sink,
	)


def event(
	name: str,
	value: Any = None,
	*,
	origin: str | None = None,
	at: float | None = None,
	sink: LogSink | None = None,
	**context: TPrimitive,
) -> LogEntry:
	return send(
		entry(
			name=name,
			value=value,
			type=LogType.Event,
			origin=origin,
			at=at,
			context=context,
		),
		sink,
	)


def exception(
	exception: BaseException,
	message: str | None = None,
	*,
	sink: LogSink | None = None,
) -> BaseException:
	"""Logs the exception along with its traceback, and returns it so that
	this can be used as `raise exception(e)`."""
	summary = f"[{exception.__class__.__name__}] {exception}"
	stack: list[str] = [
		f"... in {frame.name:15s} at {frame.lineno or 0:4d} in {frame.filename}"
		for frame in traceback.extract_tb(exception.__traceback__)
	]
	send(
		entry(
			message=f"{message}: {summary}" if message else summary,
			level=LogLevel.Exception,
			stack=stack or None,
		),
		sink,
	)
	return exception


# EOF
