from abc import ABC, abstractmethod
from enum import Enum
from typing import NamedTuple
from urllib.parse import unquote
from ..utils.codec import BytesTransform
from ..utils.logging import warning
from .status import HTTP_STATUS

# -----------------------------------------------------------------------------
#
# HELPERS
#
# -----------------------------------------------------------------------------


# Header names come from clients, so the memo of normalized names is bounded
HEADER_NAMES_LIMIT: int = 1_024


def headername(name: str, *, headers: dict[str, str] = {}) -> str:
	"""Normalizes the header name as `Kebab-Case`."""
	if name in headers:
		return headers[name]
	key: str = name.lower()
	if key in headers:
		return headers[key]
	normalized: str = "-".join(_.capitalize() for _ in key.split("-"))
	if len(headers) < HEADER_NAMES_LIMIT:
		headers[key] = normalized
	return normalized


# -----------------------------------------------------------------------------
#
# DATA MODEL
#
# -----------------------------------------------------------------------------


class HTTPRequestLine(NamedTuple):
	"""Represents a request status line"""

	method: str
	path: str
	query: str
	protocol: str


class HTTPProcessingStatus(Enum):
	"""Internal parser/processor state management"""

	Processing = 0
	Complete = 2
	Timeout = 10
	NoData = 11
	BadFormat = 12


class HeadersSentError(RuntimeError):
	"""Raised when the headers of a response are updated after the head
	was sent."""


# -----------------------------------------------------------------------------
#
# REQUESTS
#
# -----------------------------------------------------------------------------


class HTTPRequest:
	"""The head of an HTTP request. Bodies are not supported."""

	__slots__ = ["method", "path", "query", "protocol", "headers"]

	def __init__(
		self,
		method: str,
		path: str,
		query: str = "",
		headers: dict[str, str] | None = None,
		protocol: str = "HTTP/1.1",
	):
		self.method: str = method.upper()
		self.path: str = path
		self.query: str = query
		self.protocol: str = protocol
		self.headers: dict[str, str] = (
			{headername(k): v for k, v in headers.items()} if headers else {}
		)

	@staticmethod
	def Create(
		method: str = "GET",
		uri: str = "/",
		headers: dict[str, str] | None = None,
		protocol: str = "HTTP/1.1",
	) -> "HTTPRequest":
		"""Creates a request from a method and a URI with an optional query."""
		path, _, query = uri.partition("?")
		return HTTPRequest(method, path, query, headers, protocol)

	def header(self, name: str) -> str | None:
		return self.headers.get(headername(name))

	@property
	def uri(self) -> str:
		return f"{self.path}?{self.query}" if self.query else self.path

	@property
	def localPath(self) -> str:
		"""The percent-decoded path"""
		return unquote(self.path)

	@property
	def isHead(self) -> bool:
		return self.method == "HEAD"

	def __str__(self) -> str:
		return f"Request({self.method} {self.uri} {self.headers})"


# -----------------------------------------------------------------------------
#
# RESPONSES
#
# -----------------------------------------------------------------------------


class HTTPResponseWriter(ABC):
	"""The target where a response is written. The status and headers are
	buffered until the first body bytes are written (or until `finish`),
	after which they can't be changed anymore."""

	__slots__ = ["protocol", "status", "headers", "headSent", "written"]

	def __init__(self, protocol: str = "HTTP/1.1") -> None:
		self.protocol: str = protocol
		self.status: int | None = None
		self.headers: dict[str, str] = {}
		self.headSent: bool = False
		# Body bytes written so far, as sent on the wire
		self.written: int = 0

	def header(self, name: str) -> str | None:
		return self.headers.get(headername(name))

	def setHeader(self, name: str, value: str | int | None) -> "HTTPResponseWriter":
		if self.headSent:
			raise HeadersSentError(f"Headers already sent, can't set: {name}")
		if value is None:
			self.headers.pop(headername(name), None)
		else:
			self.headers[headername(name)] = str(value)
		return self

	def delHeader(self, name: str) -> "HTTPResponseWriter":
		return self.setHeader(name, None)

	def writeHead(self, status: int = 200) -> bool:
		"""Sets the response status, which can only be done once. Returns
		`False` when the status was already set."""
		if self.status is not None:
			warning(
				"Superfluous response status ignored",
				Status=status,
				Previous=self.status,
			)
			return False
		self.status = status
		return True

	def head(self) -> bytes:
		"""Serializes the head as a payload."""
		status: int = self.status or 200
		lines: list[str] = [f"{k}: {v}" for k, v in self.headers.items()]
		lines.insert(0, f"{self.protocol} {status} {HTTP_STATUS.get(status, '')}")
		lines.append("")
		lines.append("")
		return "\r\n".join(lines).encode("latin-1")

	async def write(self, chunk: bytes) -> int:
		"""Writes the given body bytes, sending the head first if needed."""
		if not chunk:
			return 0
		await self.sendHead()
		await self._writeBytes(chunk)
		self.written += len(chunk)
		return len(chunk)

	async def sendHead(self) -> bool:
		if self.headSent:
			return False
		if self.status is None:
			self.status = 200
		self.prepareHead()
		self.headSent = True
		await self._writeHead(self.head())
		return True

	async def finish(self) -> None:
		"""Ensures the head is sent, the response being complete."""
		await self.sendHead()

	def prepareHead(self) -> None:
		"""Last chance to update the headers before they are sent."""

	async def _writeHead(self, head: bytes) -> None:
		await self._writeBytes(head)

	@abstractmethod
	async def _writeBytes(self, chunk: bytes) -> None: ...


class HTTPResponseBuffer(HTTPResponseWriter):
	"""A response writer that keeps the response in memory."""

	__slots__ = ["rawHead", "body"]

	def __init__(self, protocol: str = "HTTP/1.1") -> None:
		super().__init__(protocol)
		self.rawHead: bytes | None = None
		self.body: bytearray = bytearray()

	async def _writeHead(self, head: bytes) -> None:
		self.rawHead = head

	async def _writeBytes(self, chunk: bytes) -> None:
		self.body += chunk

	def __bytes__(self) -> bytes:
		return (self.rawHead or b"") + bytes(self.body)


class HTTPTransformWriter:
	"""Writes body bytes through a transform (typically compression). The
	transform is only flushed if it was fed data, so that no bytes are
	produced for empty bodies."""

	__slots__ = ["writer", "transform", "fed"]

	def __init__(self, writer: HTTPResponseWriter, transform: BytesTransform):
		self.writer: HTTPResponseWriter = writer
		self.transform: BytesTransform = transform
		self.fed: int = 0

	async def write(self, chunk: bytes) -> int:
		if not chunk:
			return 0
		self.fed += len(chunk)
		if res := self.transform.feed(chunk):
			await self.writer.write(res)
		return len(chunk)

	async def flush(self) -> None:
		if self.fed and (res := self.transform.flush()):
			await self.writer.write(res)


# EOF
