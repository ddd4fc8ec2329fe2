"""
Byte Sources Example

Serves in-memory data, a JSON document and a generated stream without
going through a filesystem.

Usage:
    python bytes.py

Test with:
    curl -i http://localhost:8000/data
    curl -i -H "Range: bytes=10-19" http://localhost:8000/data
    curl -i http://localhost:8000/status.json
    curl -i http://localhost:8000/stream
"""

from tender import (
	Application,
	HTTPRequest,
	HTTPResponseWriter,
	ResponseOutcome,
	StreamSource,
	attachment,
	handle,
	respond,
	respondBytes,
	respondJSON,
	run,
)
from tender.utils.logging import StreamLogSink

DATA: bytes = bytes(range(256)) * 64


def lines(count: int):
	for i in range(count):
		yield f"Line {i}\n".encode()


class BytesApp(Application):
	def __init__(self) -> None:
		self.sink = StreamLogSink()

	async def resolve(
		self, response: HTTPResponseWriter, request: HTTPRequest
	) -> ResponseOutcome:
		if request.path == "/data":
			return await respondBytes(response, request, DATA, attachment("data.bin"))
		elif request.path == "/status.json":
			return await respondJSON(response, request, {"status": "ok", "size": len(DATA)})
		elif request.path == "/stream":
			return await respond(response, request, StreamSource(lines(1_000)))
		else:
			raise FileNotFoundError(request.path)

	async def process(
		self, response: HTTPResponseWriter, request: HTTPRequest
	) -> ResponseOutcome:
		return await handle(
			response, request, lambda: self.resolve(response, request), sink=self.sink
		)


if __name__ == "__main__":
	run(BytesApp())

# EOF
