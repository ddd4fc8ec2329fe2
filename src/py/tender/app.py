from abc import ABC, abstractmethod
from .errors import MethodNotAllowedError
from .handler import RequestHandler
from .http.model import HTTPRequest, HTTPResponseWriter
from .options import Option
from .serve import ResponseOutcome, respondFile, respondFS
from .sources import ByteSource, FileSystem, notFound
from .utils.logging import LogSink, StreamLogSink

INDEX_FILE_NAME: str = "index.html"


def resourceName(path: str) -> str:
	"""Maps a request path to a resource name, the root being `.`."""
	return path.strip("/") or "."


class Application(ABC):
	"""What the server runs: processes each request into its response."""

	@abstractmethod
	async def process(
		self, response: HTTPResponseWriter, request: HTTPRequest
	) -> ResponseOutcome: ...


class App(Application):
	"""Serves the resources of a filesystem, falling back to an index
	resource for directories and missing resources (as single page
	applications expect)."""

	def __init__(
		self,
		fs: FileSystem,
		index: str | None = None,
		*options: Option,
		sink: LogSink | None = None,
	):
		self.fs: FileSystem = fs
		self.index: str | None = index
		self.options: tuple[Option, ...] = options
		self.handler: RequestHandler = RequestHandler(sink or StreamLogSink())

	async def resolve(
		self, response: HTTPResponseWriter, request: HTTPRequest
	) -> ResponseOutcome:
		if request.method != "GET":
			raise MethodNotAllowedError(request.method)
		name: str = resourceName(request.localPath)
		source: ByteSource | None
		try:
			source = self.fs.open(name)
		except FileNotFoundError:
			source = None
		if source is not None:
			with source:
				if not source.stat().isDirectory:
					return await respondFile(response, request, source, *self.options)
		if self.index:
			return await respondFS(response, request, self.fs, self.index, *self.options)
		else:
			raise notFound(name)

	async def process(
		self, response: HTTPResponseWriter, request: HTTPRequest
	) -> ResponseOutcome:
		return await self.handler(
			response, request, lambda: self.resolve(response, request)
		)


# EOF
