import io
import pytest
from tender.errors import InvalidPathError
from tender.sources import (
	BytesSource,
	DirectorySource,
	FileSource,
	LocalFileSystem,
	MemoryFileSystem,
	ShortReadError,
	SourceKind,
	StreamSource,
	validPath,
)


class Unseekable(io.RawIOBase):
	def __init__(self, data: bytes):
		super().__init__()
		self.data = io.BytesIO(data)

	def readable(self) -> bool:
		return True

	def seekable(self) -> bool:
		return False

	def readinto(self, buffer) -> int:
		chunk = self.data.read(len(buffer))
		buffer[: len(chunk)] = chunk
		return len(chunk)


def test_bytes_source():
	source = BytesSource(b"0123456789", "digits")
	assert source.kind is SourceKind.Seekable
	assert source.isSeekable
	assert source.readAt(3, 2) == b"234"
	assert source.readAt(0, 9) == b""
	assert source.read(4) == b"0123"
	assert source.read() == b"456789"
	assert source.read() == b""
	info = source.stat()
	assert info.name == "digits"
	assert info.size == 10
	assert not info.isDirectory


def test_bytes_source_short_reads():
	source = BytesSource(b"0123456789")
	with pytest.raises(ShortReadError):
		source.readAt(5, 8)
	with pytest.raises(ShortReadError):
		source.readAt(1, 20)
	# Reading at the end fails, even for no bytes
	with pytest.raises(ShortReadError):
		source.readAt(0, 10)
	with pytest.raises(ShortReadError):
		BytesSource(b"").readAt(0, 0)
	with pytest.raises(ValueError):
		source.readAt(1, -1)


def test_file_source(tmp_path):
	path = tmp_path / "data.bin"
	path.write_bytes(b"abcdefghij")
	with FileSource.Open(path, "data.bin") as source:
		assert source.kind is SourceKind.Seekable
		assert source.read(2) == b"ab"
		# Positioned reads don't move the read position
		assert source.readAt(3, 5) == b"fgh"
		assert source.read(2) == b"cd"
		info = source.stat()
		assert info.size == 10
		assert info.modifiedAt is not None
		with pytest.raises(ShortReadError):
			source.readAt(4, 8)
		with pytest.raises(ShortReadError):
			source.readAt(0, 10)
	assert source.file.closed


def test_file_source_over_memory():
	source = FileSource(io.BytesIO(b"abcdef"), "memory")
	assert source.fileno() is None
	assert source.isSeekable
	assert source.readAt(2, 1) == b"bc"
	assert source.stat().size == 6
	assert source.read() == b"abcdef"


def test_unowned_file_source():
	file = io.BytesIO(b"abc")
	with FileSource(file, owned=False) as source:
		assert source.read() == b"abc"
	assert not file.closed


def test_sequential_file_source():
	source = FileSource(io.BufferedReader(Unseekable(b"stream")), "pipe")
	assert source.kind is SourceKind.Sequential
	with pytest.raises(io.UnsupportedOperation):
		source.readAt(1, 0)
	assert source.stat().size == -1
	assert b"".join(source) == b"stream"


def test_stream_source():
	source = StreamSource([b"ab", b"cde", b"", b"f"], "stream", size=6)
	assert source.kind is SourceKind.Sequential
	assert source.read(4) == b"abcd"
	assert source.read(4) == b"ef"
	assert source.read(4) == b""
	assert source.stat().size == 6
	with pytest.raises(io.UnsupportedOperation):
		source.readAt(1, 0)


def test_stream_source_closes_generators():
	closed: list[bool] = []

	def chunks():
		try:
			yield b"a"
			yield b"b"
		finally:
			closed.append(True)

	source = StreamSource(chunks())
	assert source.read(1) == b"a"
	source.close()
	assert closed == [True]


def test_directory_source():
	source = DirectorySource("docs")
	assert source.stat().isDirectory
	with pytest.raises(IsADirectoryError):
		source.read()


def test_valid_paths():
	for name in (".", "index.html", "a/b/c.txt", "with space", "..hidden"):
		assert validPath(name), name
	for name in ("", "/", "/etc/passwd", "a/", "a//b", "../a", "a/./b", "a\\b", "a\x00"):
		assert not validPath(name), name


def test_memory_filesystem():
	fs = MemoryFileSystem({"a/b.txt": b"B", "c.txt": b"C"})
	assert fs.open("c.txt").read() == b"C"
	assert fs.open("a").stat().isDirectory
	assert fs.open(".").stat().isDirectory
	with pytest.raises(FileNotFoundError):
		fs.open("a/c.txt")
	with pytest.raises(InvalidPathError):
		fs.open("../c.txt")


def test_local_filesystem(tmp_path):
	(tmp_path / "dir").mkdir()
	(tmp_path / "dir" / "file.txt").write_bytes(b"content")
	fs = LocalFileSystem(tmp_path)
	with fs.open("dir/file.txt") as source:
		assert source.read() == b"content"
		assert source.name == "dir/file.txt"
	assert fs.open("dir").stat().isDirectory
	assert fs.open(".").stat().isDirectory
	with pytest.raises(FileNotFoundError):
		fs.open("missing.txt")
	with pytest.raises(FileNotFoundError):
		fs.open("dir/file.txt/child")
	with pytest.raises(InvalidPathError):
		fs.open("dir/../../outside")


# EOF
