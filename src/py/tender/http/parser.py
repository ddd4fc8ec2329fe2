from typing import Iterator
from .model import HTTPProcessingStatus, HTTPRequest, HTTPRequestLine, headername

EOH: bytes = b"\r\n\r\n"

# Largest request head that is accepted
HEAD_LIMIT: int = 64_000

METHODS: frozenset[str] = frozenset(
	("GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "TRACE", "CONNECT")
)


def parseRequestLine(line: str) -> HTTPRequestLine | None:
	"""Parses `METHOD URI PROTOCOL`, returning `None` when malformed."""
	chunks = line.split(" ")
	if len(chunks) != 3:
		return None
	method, uri, protocol = chunks
	if method not in METHODS or not uri or not protocol.startswith("HTTP/"):
		return None
	path, _, query = uri.partition("?")
	return HTTPRequestLine(method, path, query, protocol)


def parseHead(data: bytes) -> HTTPRequest | None:
	"""Parses a request head (without the empty line ending it)."""
	lines = data.decode("latin-1").split("\r\n")
	if not (line := parseRequestLine(lines[0])):
		return None
	headers: dict[str, str] = {}
	for ln in lines[1:]:
		i = ln.find(":")
		if i <= 0:
			return None
		name: str = headername(ln[:i].strip())
		value: str = ln[i + 1 :].strip()
		# Repeated headers are folded, as per RFC 9110 §5.3
		headers[name] = f"{headers[name]}, {value}" if name in headers else value
	return HTTPRequest(line.method, line.path, line.query, headers, line.protocol)


class HTTPParser:
	"""Incrementally parses request heads out of a stream of bytes. Request
	bodies are not parsed."""

	__slots__ = ["buffer", "limit"]

	def __init__(self, limit: int = HEAD_LIMIT) -> None:
		self.buffer: bytearray = bytearray()
		self.limit: int = limit

	def reset(self) -> "HTTPParser":
		self.buffer.clear()
		return self

	def feed(self, chunk: bytes) -> Iterator[HTTPRequest | HTTPProcessingStatus]:
		"""Feeds data, yielding the requests that are complete, and
		`BadFormat` when the stream can't be parsed any further."""
		self.buffer += chunk
		while True:
			# Empty lines before a request line are ignored
			while self.buffer.startswith(b"\r\n"):
				del self.buffer[:2]
			end = self.buffer.find(EOH)
			if end == -1:
				break
			head = bytes(self.buffer[:end])
			del self.buffer[: end + len(EOH)]
			if req := parseHead(head):
				yield req
			else:
				self.buffer.clear()
				yield HTTPProcessingStatus.BadFormat
				return
		if len(self.buffer) > self.limit:
			self.buffer.clear()
			yield HTTPProcessingStatus.BadFormat


# EOF
