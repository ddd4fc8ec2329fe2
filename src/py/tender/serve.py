from typing import Any, NamedTuple
from mypy_extensions import i64
from .http.model import HTTPRequest, HTTPResponseWriter, HTTPTransformWriter
from .options import JSON_MIME, Option, ResponseOptions, mime, modTime, size, sizeOf
from .ranges import parseRange
from .sources import ByteSource, BytesSource, FileSystem
from .utils.codec import GZipEncoder
from .utils.files import contentType
from .utils.json import json

# Bodies below this size are not worth compressing
COMPRESSION_THRESHOLD: int = 1400
COPY_CHUNK_SIZE: int = 64_000


class ResponseOutcome(NamedTuple):
	"""What was written for a response. When nothing was written and there
	is an error, only the head may have been prepared and an error response
	can still be sent."""

	written: i64 = 0
	error: BaseException | None = None

	@property
	def failed(self) -> bool:
		return self.written == 0 and self.error is not None


def acceptsGzip(request: HTTPRequest) -> bool:
	return "gzip" in (request.header("Accept-Encoding") or "")


# -----------------------------------------------------------------------------
#
# RESPONSE ENGINE
#
# -----------------------------------------------------------------------------


async def respond(
	response: HTTPResponseWriter,
	request: HTTPRequest,
	source: ByteSource,
	*options: Option,
) -> ResponseOutcome:
	"""Writes the response for serving `source` to `request`, honouring
	single range requests for seekable sources and compressing the body
	when the options allow it. Errors that happen while reading or writing
	are returned in the outcome."""
	opts: ResponseOptions = ResponseOptions.Make(*options)
	if opts.mimeType:
		response.setHeader("Content-Type", opts.mimeType)
	if cache := opts.cacheControl:
		response.setHeader("Cache-Control", cache)
	if modified := opts.lastModified:
		response.setHeader("Last-Modified", modified)
	length: int = opts.size

	# --
	# Range requests are only supported by sources that can be read at
	# an offset.
	if source.isSeekable:
		response.setHeader("Accept-Ranges", "bytes")
		if length < 0:
			try:
				length = source.stat().size
			except Exception as e:
				return ResponseOutcome(0, e)
		if (value := request.header("Range")) and (
			byteRange := parseRange(value, length)
		):
			try:
				data: bytes = source.readAt(byteRange.length, byteRange.begin)
			except Exception as e:
				return ResponseOutcome(0, e)
			response.setHeader("Content-Range", byteRange.contentRange(length))
			response.setHeader("Content-Length", len(data))
			response.writeHead(206)
			if request.isHead:
				return ResponseOutcome(0)
			try:
				return ResponseOutcome(await response.write(data))
			except Exception as e:
				return ResponseOutcome(0, e)

	if opts.disposition:
		response.setHeader("Content-Disposition", opts.disposition)
	writer: HTTPResponseWriter | HTTPTransformWriter = response
	if opts.compressible:
		response.setHeader("Vary", "Content-Encoding")
		if length > COMPRESSION_THRESHOLD and acceptsGzip(request):
			# The compressed length is not known in advance
			length = -1
			response.setHeader("Content-Encoding", "gzip")
			writer = HTTPTransformWriter(response, GZipEncoder())
	if length > 0:
		response.setHeader("Content-Length", length)
	if request.isHead:
		return ResponseOutcome(0)
	return await copy(writer, source)


async def copy(
	writer: HTTPResponseWriter | HTTPTransformWriter, source: ByteSource
) -> ResponseOutcome:
	"""Copies the source to the writer, returning the number of source
	bytes copied. Transform writers are always flushed."""
	written: int = 0
	try:
		while chunk := source.read(COPY_CHUNK_SIZE):
			written += await writer.write(chunk)
	except Exception as e:
		return ResponseOutcome(written, e)
	finally:
		if isinstance(writer, HTTPTransformWriter):
			await writer.flush()
	return ResponseOutcome(written)


# -----------------------------------------------------------------------------
#
# HELPERS
#
# -----------------------------------------------------------------------------


async def respondBytes(
	response: HTTPResponseWriter,
	request: HTTPRequest,
	data: bytes | bytearray | memoryview,
	*options: Option,
) -> ResponseOutcome:
	"""Serves an in-memory buffer, its size always being the buffer's."""
	return await respond(response, request, BytesSource(data), *options, sizeOf(data))


async def respondJSON(
	response: HTTPResponseWriter,
	request: HTTPRequest,
	value: Any,
	*options: Option,
) -> ResponseOutcome:
	"""Serves the value encoded as JSON. Raises `TypeError` when the value
	can't be encoded."""
	data: bytes = json(value)
	return await respond(
		response, request, BytesSource(data), sizeOf(data), mime(JSON_MIME), *options
	)


async def respondFile(
	response: HTTPResponseWriter,
	request: HTTPRequest,
	source: ByteSource,
	*options: Option,
) -> ResponseOutcome:
	"""Serves an opened source, with its size, content type and modification
	time derived from its information."""
	info = source.stat()
	derived: list[Option] = [size(info.size), mime(contentType(info.name))]
	if info.modifiedAt is not None:
		derived.append(modTime(info.modifiedAt))
	return await respond(response, request, source, *derived, *options)


async def respondFS(
	response: HTTPResponseWriter,
	request: HTTPRequest,
	fs: FileSystem,
	name: str,
	*options: Option,
) -> ResponseOutcome:
	"""Opens the named resource and serves it, the resource being closed
	once the response is written."""
	with fs.open(name) as source:
		return await respondFile(response, request, source, *options)


# EOF
