import asyncio
import gzip
import json
from datetime import datetime, timezone
import pytest
from tender.http.model import HTTPRequest, HTTPResponseBuffer
from tender.options import (
	JSON_MIME,
	attachment,
	compress,
	immutable,
	maxAge,
	mime,
	modTime,
	size,
)
from tender.serve import (
	ResponseOutcome,
	respond,
	respondBytes,
	respondFS,
	respondJSON,
)
from tender.sources import BytesSource, FileInfo, MemoryFileSystem, ShortReadError, StreamSource, ByteSource

DATA: bytes = bytes(i % 251 for i in range(1000))
TEXT: bytes = b"Lorem ipsum dolor sit amet. " * 100


def serve(request, source, *options):
	async def main():
		response = HTTPResponseBuffer()
		outcome = await respond(response, request, source, *options)
		await response.finish()
		return response, outcome

	return asyncio.run(main())


def run(coroutine):
	async def main():
		response = HTTPResponseBuffer()
		outcome = await coroutine(response)
		await response.finish()
		return response, outcome

	return asyncio.run(main())


class FailingSource(ByteSource):
	"""Returns the given chunks, then fails."""

	def __init__(self, *chunks: bytes):
		super().__init__("failing")
		self.chunks = list(chunks)

	def read(self, size: int = -1) -> bytes:
		if self.chunks:
			return self.chunks.pop(0)
		raise OSError("Disk on fire")

	def stat(self) -> FileInfo:
		return FileInfo(self.name)


def test_get_serves_the_whole_source():
	res, outcome = serve(HTTPRequest.Create("GET", "/"), BytesSource(DATA), size(1000))
	assert outcome == ResponseOutcome(1000)
	assert res.status == 200
	assert res.header("Content-Length") == "1000"
	assert res.header("Accept-Ranges") == "bytes"
	assert bytes(res.body) == DATA


def test_head_writes_no_body():
	res, outcome = serve(HTTPRequest.Create("HEAD", "/"), BytesSource(DATA), size(1000))
	assert outcome == ResponseOutcome(0, None)
	assert res.status == 200
	assert res.header("Content-Length") == "1000"
	assert res.body == b""


def test_size_is_taken_from_seekable_sources():
	res, _ = serve(HTTPRequest.Create("GET", "/"), BytesSource(DATA))
	assert res.header("Content-Length") == "1000"


def test_range_request():
	req = HTTPRequest.Create("GET", "/", {"Range": "bytes=0-99"})
	res, outcome = serve(req, BytesSource(DATA), size(1000))
	assert outcome == ResponseOutcome(100)
	assert res.status == 206
	assert res.header("Content-Range") == "bytes 0-99/1000"
	assert res.header("Content-Length") == "100"
	assert bytes(res.body) == DATA[:100]


def test_open_ended_range_request():
	req = HTTPRequest.Create("GET", "/", {"Range": "bytes=900-"})
	res, outcome = serve(req, BytesSource(DATA), size(1000))
	assert res.status == 206
	assert res.header("Content-Range") == "bytes 900-999/1000"
	assert bytes(res.body) == DATA[900:]
	assert outcome.written == 100


def test_head_range_request():
	req = HTTPRequest.Create("HEAD", "/", {"Range": "bytes=10-19"})
	res, outcome = serve(req, BytesSource(DATA), size(1000))
	assert outcome == ResponseOutcome(0, None)
	assert res.status == 206
	assert res.header("Content-Length") == "10"
	assert res.body == b""


def test_range_takes_precedence_over_compression_and_disposition():
	req = HTTPRequest.Create(
		"GET", "/", {"Range": "bytes=0-9", "Accept-Encoding": "gzip"}
	)
	res, _ = serve(req, BytesSource(TEXT), compress(), attachment("a.txt"))
	assert res.status == 206
	assert res.header("Content-Encoding") is None
	assert res.header("Content-Disposition") is None
	assert bytes(res.body) == TEXT[:10]


def test_range_read_failure_writes_nothing():
	req = HTTPRequest.Create("GET", "/", {"Range": "bytes=2000-"})
	response = HTTPResponseBuffer()
	outcome = asyncio.run(respond(response, req, BytesSource(DATA), size(1000)))
	assert outcome.failed
	assert isinstance(outcome.error, ShortReadError)
	assert response.status is None
	assert not response.headSent
	assert response.body == b""


def test_range_at_the_end_fails():
	for data, value in ((DATA, "bytes=1000-"), (DATA, "bytes=1000-1010"), (b"", "bytes=0-")):
		req = HTTPRequest.Create("GET", "/", {"Range": value})
		response = HTTPResponseBuffer()
		outcome = asyncio.run(respondBytes(response, req, data))
		assert outcome.failed, value
		assert isinstance(outcome.error, ShortReadError)
		assert response.header("Content-Range") is None
		assert not response.headSent


def test_malformed_range_is_ignored():
	req = HTTPRequest.Create("GET", "/", {"Range": "bytes=0-1,4-5"})
	res, outcome = serve(req, BytesSource(DATA), size(1000))
	assert res.status == 200
	assert outcome.written == 1000


def test_sequential_sources_ignore_ranges():
	req = HTTPRequest.Create("GET", "/", {"Range": "bytes=0-9"})
	res, outcome = serve(req, StreamSource([DATA[:500], DATA[500:]]), size(1000))
	assert res.status == 200
	assert res.header("Accept-Ranges") is None
	assert bytes(res.body) == DATA
	assert outcome == ResponseOutcome(1000)


def test_headers():
	modified = datetime(2024, 6, 15, 10, 0, 0, tzinfo=timezone.utc)
	res, _ = serve(
		HTTPRequest.Create("GET", "/"),
		BytesSource(DATA),
		mime("application/octet-stream"),
		maxAge(3600),
		modTime(modified),
		attachment("data.bin"),
	)
	assert res.header("Content-Type") == "application/octet-stream"
	assert res.header("Cache-Control") == "public, max-age=3600"
	assert res.header("Last-Modified") == "Sat, 15 Jun 2024 10:00:00 GMT"
	assert res.header("Content-Disposition") == 'attachment; filename="data.bin"'


def test_immutable_header():
	res, _ = serve(HTTPRequest.Create("GET", "/"), BytesSource(DATA), immutable())
	assert res.header("Cache-Control") == "public, max-age=31536000, immutable"


def test_unset_options_set_no_headers():
	res, _ = serve(HTTPRequest.Create("GET", "/"), StreamSource([DATA]))
	for name in (
		"Content-Type",
		"Cache-Control",
		"Last-Modified",
		"Content-Disposition",
		"Content-Length",
		"Vary",
	):
		assert res.header(name) is None, name


def test_gzip_compression():
	data = TEXT[:2000]
	req = HTTPRequest.Create("GET", "/", {"Accept-Encoding": "gzip, deflate"})
	res, outcome = serve(req, BytesSource(data), size(2000), compress())
	assert res.header("Content-Encoding") == "gzip"
	assert res.header("Vary") == "Content-Encoding"
	assert res.header("Content-Length") is None
	assert gzip.decompress(bytes(res.body)) == data
	assert len(res.body) < len(data)
	assert outcome == ResponseOutcome(2000)


def test_no_compression_without_gzip_support():
	data = TEXT[:2000]
	req = HTTPRequest.Create("GET", "/", {"Accept-Encoding": "br"})
	res, _ = serve(req, BytesSource(data), size(2000), compress())
	assert res.header("Content-Encoding") is None
	assert res.header("Vary") == "Content-Encoding"
	assert res.header("Content-Length") == "2000"
	assert bytes(res.body) == data


def test_small_bodies_are_not_compressed():
	data = TEXT[:500]
	for headers in ({"Accept-Encoding": "gzip"}, {}):
		req = HTTPRequest.Create("GET", "/", headers)
		res, _ = serve(req, BytesSource(data), size(500), compress())
		assert res.header("Content-Encoding") is None
		assert bytes(res.body) == data


def test_compression_requires_opt_in():
	req = HTTPRequest.Create("GET", "/", {"Accept-Encoding": "gzip"})
	res, _ = serve(req, BytesSource(TEXT), size(len(TEXT)))
	assert res.header("Content-Encoding") is None
	assert res.header("Vary") is None


def test_head_with_compression_writes_no_body():
	req = HTTPRequest.Create("HEAD", "/", {"Accept-Encoding": "gzip"})
	res, outcome = serve(req, StreamSource([TEXT]), size(len(TEXT)), compress())
	assert res.header("Content-Encoding") == "gzip"
	assert res.body == b""
	assert outcome == ResponseOutcome(0, None)


def test_copy_failure_is_reported():
	res, outcome = serve(HTTPRequest.Create("GET", "/"), FailingSource(b"abc"))
	assert outcome.written == 3
	assert isinstance(outcome.error, OSError)
	assert not outcome.failed
	assert bytes(res.body) == b"abc"


def test_compressed_copy_failure_before_any_byte_writes_nothing():
	req = HTTPRequest.Create("GET", "/", {"Accept-Encoding": "gzip"})
	response = HTTPResponseBuffer()
	outcome = asyncio.run(
		respond(response, req, FailingSource(), size(2000), compress())
	)
	assert outcome.failed
	assert not response.headSent
	assert response.body == b""


def test_compressed_stream_is_flushed_on_failure():
	req = HTTPRequest.Create("GET", "/", {"Accept-Encoding": "gzip"})
	res, outcome = serve(req, FailingSource(TEXT[:2000]), size(2000), compress())
	assert outcome.written == 2000
	assert outcome.error is not None
	assert gzip.decompress(bytes(res.body)) == TEXT[:2000]


def test_respond_bytes():
	res, outcome = run(
		lambda r: respondBytes(r, HTTPRequest.Create("GET", "/"), b"Hello", mime("text/plain"))
	)
	assert res.header("Content-Length") == "5"
	assert res.header("Content-Type") == "text/plain"
	assert bytes(res.body) == b"Hello"
	assert outcome.written == 5


def test_respond_bytes_size_is_the_buffer_size():
	res, _ = run(lambda r: respondBytes(r, HTTPRequest.Create("GET", "/"), b"Hello", size(99)))
	assert res.header("Content-Length") == "5"


def test_respond_json():
	value = {"name": "tender", "sizes": [1, 2, 3]}
	res, outcome = run(lambda r: respondJSON(r, HTTPRequest.Create("GET", "/"), value))
	assert res.header("Content-Type") == JSON_MIME
	assert json.loads(bytes(res.body)) == value
	assert res.header("Content-Length") == str(len(res.body))
	assert outcome.written == len(res.body)


def test_respond_json_supports_ranges():
	req = HTTPRequest.Create("GET", "/", {"Range": "bytes=1-3"})
	res, _ = run(lambda r: respondJSON(r, req, [1, 2, 3]))
	assert res.status == 206
	assert bytes(res.body) == b"1, "


def test_respond_json_rejects_unserializable_values():
	with pytest.raises(TypeError):
		run(lambda r: respondJSON(r, HTTPRequest.Create("GET", "/"), object()))


def test_respond_fs():
	fs = MemoryFileSystem({"css/style.css": b"body{}"})
	res, outcome = run(lambda r: respondFS(r, HTTPRequest.Create("GET", "/"), fs, "css/style.css"))
	assert res.header("Content-Type").startswith("text/css")
	assert res.header("Content-Length") == "6"
	assert bytes(res.body) == b"body{}"


def test_respond_fs_missing_resource():
	fs = MemoryFileSystem({})
	with pytest.raises(FileNotFoundError):
		run(lambda r: respondFS(r, HTTPRequest.Create("GET", "/"), fs, "missing.txt"))


# EOF
