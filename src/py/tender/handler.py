import inspect
import time
from typing import Awaitable, Callable, TypeAlias
from .errors import writeError
from .http.model import HTTPRequest, HTTPResponseWriter
from .serve import ResponseOutcome
from .utils.logging import LogLevel, LogSink, entry

# Longest request URI that is logged as-is
URI_LOG_LIMIT: int = 120

TOperation: TypeAlias = Callable[[], Awaitable[ResponseOutcome] | ResponseOutcome]


def truncate(text: str, limit: int = URI_LOG_LIMIT) -> str:
	"""Truncates the text to `limit` characters, ending with an ellipsis
	when truncated."""
	return text if len(text) <= limit else f"{text[: limit - 1]}…"


def elapsed(started: float) -> str:
	return f"{(time.monotonic() - started) * 1000:0.3f}ms"


class RequestHandler:
	"""Runs an operation producing a response, writes an error response when
	the operation failed before writing anything, and records one log entry
	per request in the sink."""

	__slots__ = ["sink", "limit"]

	def __init__(self, sink: LogSink, *, limit: int = URI_LOG_LIMIT):
		self.sink: LogSink = sink
		self.limit: int = limit

	async def handle(
		self,
		response: HTTPResponseWriter,
		request: HTTPRequest,
		operation: TOperation,
	) -> ResponseOutcome:
		started: float = time.monotonic()
		outcome: ResponseOutcome
		try:
			r = operation()
			outcome = await r if inspect.isawaitable(r) else r
		except Exception as e:
			outcome = ResponseOutcome(0, e)
		uri: str = truncate(request.uri, self.limit)
		if outcome.failed and outcome.error is not None:
			# Once the head is out, the error can only be logged
			status: int = (
				(response.status or 200)
				if response.headSent
				else await writeError(response, outcome.error)
			)
			self.sink.record(
				entry(
					level=LogLevel.Error,
					message=f"[{status}] {request.method} {uri}",
					value=status,
					context={
						"Elapsed": elapsed(started),
						"Error": str(outcome.error)
						or outcome.error.__class__.__name__,
					},
				)
			)
		else:
			context: dict[str, str | int] = {
				"Bytes": outcome.written,
				"Elapsed": elapsed(started),
			}
			# The body was partially sent, it's too late for an error response
			if outcome.error is not None:
				context["Error"] = str(outcome.error)
			self.sink.record(
				entry(
					level=LogLevel.Info if outcome.error is None else LogLevel.Warning,
					message=f"[{response.status or 200}] {request.method} {uri}",
					value=response.status or 200,
					context=context,
				)
			)
		await response.finish()
		return outcome

	__call__ = handle


async def handle(
	response: HTTPResponseWriter,
	request: HTTPRequest,
	operation: TOperation,
	*,
	sink: LogSink,
) -> ResponseOutcome:
	return await RequestHandler(sink).handle(response, request, operation)


# EOF
