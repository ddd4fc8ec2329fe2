import asyncio
import errno
import socket
import threading
from dataclasses import dataclass
from signal import SIGINT, SIGTERM
from typing import Any, Callable, NamedTuple
from .app import Application
from .config import HOST, PORT
from .http.model import HTTPProcessingStatus, HTTPRequest, HTTPResponseWriter
from .http.parser import HTTPParser
from .utils.limits import LimitType, unlimit
from .utils.logging import debug, error, event, exception, info, warning


@dataclass(slots=True)
class ServerState:
	isRunning: bool = True

	def stop(self) -> None:
		info("Server stopping…")
		self.isRunning = False

	def onException(
		self, loop: asyncio.AbstractEventLoop, context: dict[str, Any]
	) -> None:
		e = context.get("exception")
		if e:
			exception(e)


class ServerOptions(NamedTuple):
	host: str = "0.0.0.0"  # nosec: B104
	port: int = 8000
	backlog: int = 10_000
	# This is the polling timeout for accepting new requests.
	polling: float = 1.0
	readsize: int = 4_096
	keepalive: float = 60.0
	# Ports tried after `port` when it is taken
	alternatePorts: int = 4
	condition: Callable[[], bool] | None = None
	stopSignals: bool = True


OPTIONS: ServerOptions = ServerOptions()

SERVER_BAD_REQUEST: bytes = (
	b"HTTP/1.1 400 Bad Request\r\n"
	b"Content-Type: text/plain\r\n"
	b"Content-Length: 12\r\n"
	b"Connection: close\r\n"
	b"\r\n"
	b"Bad Request\n"
)

SERVER_ERROR: bytes = (
	b"HTTP/1.1 500 Internal Server Error\r\n"
	b"Content-Type: text/plain\r\n"
	b"Content-Length: 22\r\n"
	b"Connection: close\r\n"
	b"\r\n"
	b"Internal server error\n"
)


class AIOSocketResponseWriter(HTTPResponseWriter):
	"""Writes a response on an AIO socket. Responses without a known length
	are delimited by closing the connection."""

	__slots__ = ["client", "loop", "keepAlive", "bodyless"]

	def __init__(
		self,
		client: socket.socket,
		loop: asyncio.AbstractEventLoop,
		*,
		keepAlive: bool = True,
		bodyless: bool = False,
		protocol: str = "HTTP/1.1",
	) -> None:
		super().__init__(protocol)
		self.client: socket.socket = client
		self.loop: asyncio.AbstractEventLoop = loop
		self.keepAlive: bool = keepAlive
		# HEAD responses carry no body, so they're always delimited
		self.bodyless: bool = bodyless

	@property
	def shouldClose(self) -> bool:
		return not self.keepAlive

	def prepareHead(self) -> None:
		delimited: bool = (
			self.bodyless
			or self.status in (204, 304)
			or self.header("Content-Length") is not None
		)
		if not (self.keepAlive and delimited):
			self.keepAlive = False
			self.setHeader("Connection", "close")

	async def write(self, chunk: bytes) -> int:
		if not (self.bodyless and chunk):
			return await super().write(chunk)
		# The body of a HEAD response is dropped, only the head is sent
		await self.sendHead()
		return 0

	async def _writeBytes(self, chunk: bytes) -> None:
		await self.loop.sock_sendall(self.client, chunk)


def keepsAlive(request: HTTPRequest) -> bool:
	"""Tells if the connection can be reused after the request. As bodies
	are not read, requests with a body end the connection."""
	connection: str = (request.header("Connection") or "").lower()
	if request.protocol == "HTTP/1.0":
		return connection == "keep-alive"
	return not (
		connection == "close"
		or request.header("Transfer-Encoding")
		or (request.header("Content-Length") or "0").strip() not in ("", "0")
	)


class AIOSocketServer:
	"""AsyncIO backend using sockets directly."""

	@classmethod
	async def OnRequest(
		cls,
		app: Application,
		client: socket.socket,
		*,
		loop: asyncio.AbstractEventLoop,
		options: ServerOptions,
	) -> None:
		"""Asynchronous worker, processing the requests of a client socket
		until the connection is closed."""
		buffer = bytearray(options.readsize)
		parser: HTTPParser = HTTPParser()
		keep_alive: bool = True
		req_count: int = 0
		status: HTTPProcessingStatus = HTTPProcessingStatus.Processing
		try:
			while keep_alive:
				try:
					n = await asyncio.wait_for(
						loop.sock_recv_into(client, buffer),
						timeout=options.keepalive,
					)
				except TimeoutError:
					status = HTTPProcessingStatus.Timeout
					break
				if not n:
					# A no-data means a close
					status = HTTPProcessingStatus.NoData
					break
				for atom in parser.feed(bytes(buffer[:n])):
					if atom is HTTPProcessingStatus.BadFormat:
						warning("Malformed request", Client=f"{id(client):x}")
						await loop.sock_sendall(client, SERVER_BAD_REQUEST)
						keep_alive = False
						break
					elif isinstance(atom, HTTPRequest):
						req_count += 1
						keep_alive = await cls.SendResponse(
							atom, app, client, loop=loop
						)
						if not keep_alive:
							break
			debug(
				"Connection closed",
				Client=f"{id(client):x}",
				Requests=req_count,
				Status=status.name,
			)
		except (BrokenPipeError, ConnectionResetError):
			# Client did an early close
			pass
		except Exception as e:
			exception(e)
		finally:
			client.close()

	@staticmethod
	async def SendResponse(
		request: HTTPRequest,
		app: Application,
		client: socket.socket,
		*,
		loop: asyncio.AbstractEventLoop,
	) -> bool:
		"""Processes the request within the application, returning `True`
		when the connection can be kept alive."""
		writer = AIOSocketResponseWriter(
			client,
			loop,
			keepAlive=keepsAlive(request),
			bodyless=request.isHead,
			protocol="HTTP/1.0" if request.protocol == "HTTP/1.0" else "HTTP/1.1",
		)
		try:
			await app.process(writer, request)
		except (BrokenPipeError, ConnectionResetError):
			raise
		except Exception as e:
			exception(e, "Processing request failed")
			if not writer.headSent:
				await loop.sock_sendall(client, SERVER_ERROR)
			return False
		return not writer.shouldClose

	@classmethod
	async def Serve(
		cls,
		app: Application,
		options: ServerOptions = ServerOptions(),
	) -> None:
		"""Main server coroutine, accepting connections until stopped."""
		server, port = bind(options)
		loop = asyncio.get_running_loop()
		state = ServerState()
		# Signal handlers can only be installed from the main thread
		if options.stopSignals and threading.current_thread() is threading.main_thread():
			for sig in (SIGINT, SIGTERM):
				loop.add_signal_handler(sig, state.stop)
		loop.set_exception_handler(state.onException)
		info("Server listening", Host=options.host, Port=port)

		connections: set[asyncio.Task[None]] = set()
		try:
			while state.isRunning and (
				options.condition is None or options.condition()
			):
				try:
					client, _ = await asyncio.wait_for(
						loop.sock_accept(server), timeout=options.polling or 1.0
					)
				except TimeoutError:
					continue
				except OSError as e:
					# Running out of file descriptors is transient
					if e.errno == errno.EMFILE:
						await asyncio.sleep(0.1)
					else:
						exception(e)
					continue
				client.setblocking(False)
				task = loop.create_task(
					cls.OnRequest(app, client, loop=loop, options=options)
				)
				connections.add(task)
				task.add_done_callback(connections.discard)
		finally:
			server.close()
			for task in connections:
				task.cancel()
			await asyncio.gather(*connections, return_exceptions=True)


def bind(options: ServerOptions) -> tuple[socket.socket, int]:
	"""Creates the listening socket, trying the next few ports when the
	requested one is taken. Returns the socket and its port."""
	server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
	server.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
	server.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
	ports = range(options.port, options.port + 1 + options.alternatePorts)
	for port in ports:
		try:
			server.bind((options.host, port))
		except OSError as e:
			if port == ports[-1]:
				server.close()
				error(
					f"Unable to bind to {options.host}:{options.port}, aborting.",
					"HOSTPORTERR",
				)
				raise e
			warning("Port unavailable, trying the next one", Port=port)
		else:
			break
	server.listen(options.backlog)
	server.setblocking(False)
	return server, port


def run(
	app: Application,
	*,
	host: str = HOST,
	port: int = PORT,
	backlog: int = OPTIONS.backlog,
	condition: Callable[[], bool] | None = None,
	polling: float = OPTIONS.polling,
	keepalive: float = OPTIONS.keepalive,
) -> None:
	"""Runs the server until interrupted."""
	if (files := unlimit(LimitType.Files)) is None:
		warning("Could not raise the open files limit")
	else:
		debug("Open files limit", Limit=files)
	try:
		asyncio.run(
			AIOSocketServer.Serve(
				app,
				ServerOptions(
					host=host,
					port=port,
					backlog=backlog,
					condition=condition,
					polling=polling,
					keepalive=keepalive,
				),
			)
		)
	except KeyboardInterrupt:
		event("ManualShutdown")
	event("EOK")


# EOF
