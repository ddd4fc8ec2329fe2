import errno
import io
import os
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import BinaryIO, Iterable, Iterator, NamedTuple
from mypy_extensions import i64
from .errors import InvalidPathError

__doc__ = """
Byte sources and the filesystems that produce them. A byte source is
tagged with its `SourceKind` when it is created: only `Seekable` sources
support `readAt`, which is what enables range requests.
"""

# -----------------------------------------------------------------------------
#
# DATA MODEL
#
# -----------------------------------------------------------------------------


class SourceKind(Enum):
	Sequential = 0
	Seekable = 1


class FileInfo(NamedTuple):
	name: str
	size: i64 = -1
	isDirectory: bool = False
	modifiedAt: datetime | None = None


class ShortReadError(EOFError):
	"""Raised when a positioned read can't return all the requested bytes."""

	def __init__(self, name: str, offset: int, size: int, available: int):
		super().__init__(
			f"Short read in {name or 'source'}: requested {size} bytes at offset {offset}, got {available}"
		)
		self.offset: int = offset
		self.size: int = size
		self.available: int = available


def timestamp(value: float | None) -> datetime | None:
	return None if value is None else datetime.fromtimestamp(value, tz=timezone.utc)


# -----------------------------------------------------------------------------
#
# SOURCES
#
# -----------------------------------------------------------------------------


class ByteSource(ABC):
	"""An abstract readable sequence of bytes."""

	kind: SourceKind = SourceKind.Sequential

	def __init__(self, name: str = "") -> None:
		self.name: str = name

	@property
	def isSeekable(self) -> bool:
		return self.kind is SourceKind.Seekable

	@abstractmethod
	def read(self, size: int = -1) -> bytes:
		"""Reads up to `size` bytes, an empty result meaning the end."""

	def readAt(self, size: int, offset: int) -> bytes:
		"""Reads exactly `size` bytes at `offset`, or fails with a
		`ShortReadError`, which includes any read at or past the end."""
		raise io.UnsupportedOperation(f"Source is not seekable: {self.name}")

	@abstractmethod
	def stat(self) -> FileInfo: ...

	def close(self) -> None:
		pass

	def __enter__(self) -> "ByteSource":
		return self

	def __exit__(self, *args: object) -> None:
		self.close()

	def __iter__(self) -> Iterator[bytes]:
		while chunk := self.read(64_000):
			yield chunk


class BytesSource(ByteSource):
	"""A seekable source over an in-memory buffer."""

	kind = SourceKind.Seekable

	def __init__(
		self,
		data: bytes | bytearray | memoryview,
		name: str = "",
		modifiedAt: datetime | None = None,
	):
		super().__init__(name)
		self.data: memoryview = memoryview(data)
		self.offset: int = 0
		self.modifiedAt: datetime | None = modifiedAt

	def read(self, size: int = -1) -> bytes:
		end = len(self.data) if size < 0 else min(len(self.data), self.offset + size)
		chunk = self.data[self.offset : end].tobytes()
		self.offset = max(self.offset, end)
		return chunk

	def readAt(self, size: int, offset: int) -> bytes:
		if offset < 0:
			raise ValueError(f"Negative offset: {offset}")
		chunk = self.data[offset : offset + size].tobytes() if size > 0 else b""
		if len(chunk) != max(0, size) or offset >= len(self.data):
			raise ShortReadError(self.name, offset, size, len(chunk))
		return chunk

	def stat(self) -> FileInfo:
		return FileInfo(self.name, len(self.data), False, self.modifiedAt)


class FileSource(ByteSource):
	"""A source over a binary file object, seekable when the file is."""

	def __init__(self, file: BinaryIO, name: str = "", *, owned: bool = True):
		super().__init__(name or str(getattr(file, "name", "")))
		self.file: BinaryIO = file
		# When owned, closing the source closes the file
		self.owned: bool = owned
		self.kind = SourceKind.Seekable if file.seekable() else SourceKind.Sequential

	@staticmethod
	def Open(path: Path | str, name: str | None = None) -> "FileSource":
		return FileSource(open(path, "rb"), str(path) if name is None else name)

	def fileno(self) -> int | None:
		try:
			return self.file.fileno()
		except (io.UnsupportedOperation, AttributeError):
			return None

	def read(self, size: int = -1) -> bytes:
		return self.file.read(size)

	def readAt(self, size: int, offset: int) -> bytes:
		if not self.isSeekable:
			return super().readAt(size, offset)
		if offset < 0:
			raise ValueError(f"Negative offset: {offset}")
		if (fd := self.fileno()) is not None and hasattr(os, "pread"):
			res = bytearray()
			while len(res) < size:
				chunk = os.pread(fd, size - len(res), offset + len(res))
				if not chunk:
					break
				res += chunk
			chunk = bytes(res)
		else:
			position = self.file.tell()
			try:
				self.file.seek(offset)
				chunk = self.file.read(size) if size > 0 else b""
			finally:
				self.file.seek(position)
		if len(chunk) != max(0, size) or offset >= self.stat().size >= 0:
			raise ShortReadError(self.name, offset, size, len(chunk))
		return chunk

	def stat(self) -> FileInfo:
		if (fd := self.fileno()) is not None:
			st = os.fstat(fd)
			return FileInfo(self.name, st.st_size, False, timestamp(st.st_mtime))
		elif self.isSeekable:
			position = self.file.tell()
			size = self.file.seek(0, io.SEEK_END)
			self.file.seek(position)
			return FileInfo(self.name, size)
		else:
			return FileInfo(self.name)

	def close(self) -> None:
		if self.owned:
			self.file.close()


class StreamSource(ByteSource):
	"""A sequential source over an iterable of chunks."""

	def __init__(self, stream: Iterable[bytes], name: str = "", size: int = -1):
		super().__init__(name)
		self.stream: Iterator[bytes] = iter(stream)
		self.buffer: bytearray = bytearray()
		self.size: int = size

	def read(self, size: int = -1) -> bytes:
		while size < 0 or len(self.buffer) < size:
			chunk = next(self.stream, None)
			if chunk is None:
				break
			self.buffer += chunk
		n = len(self.buffer) if size < 0 else min(size, len(self.buffer))
		res = bytes(self.buffer[:n])
		del self.buffer[:n]
		return res

	def stat(self) -> FileInfo:
		return FileInfo(self.name, self.size)

	def close(self) -> None:
		close = getattr(self.stream, "close", None)
		if close:
			close()


class DirectorySource(ByteSource):
	"""What opening a directory returns: it can be stat'ed but not read."""

	def __init__(self, name: str, modifiedAt: datetime | None = None):
		super().__init__(name)
		self.modifiedAt: datetime | None = modifiedAt

	def read(self, size: int = -1) -> bytes:
		raise IsADirectoryError(errno.EISDIR, os.strerror(errno.EISDIR), self.name)

	def stat(self) -> FileInfo:
		return FileInfo(self.name, 0, True, self.modifiedAt)


# -----------------------------------------------------------------------------
#
# FILESYSTEMS
#
# -----------------------------------------------------------------------------


def validPath(name: str) -> bool:
	"""Tells if the name is a valid slash-separated, unrooted resource name.
	The root is named `.`."""
	if name == ".":
		return True
	elif not name or "\\" in name or "\x00" in name:
		return False
	else:
		return all(_ not in ("", ".", "..") for _ in name.split("/"))


def notFound(name: str) -> FileNotFoundError:
	return FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), name)


class FileSystem(ABC):
	"""A capability to open named resources."""

	@abstractmethod
	def open(self, name: str) -> ByteSource:
		"""Opens the given resource, raising `FileNotFoundError`,
		`PermissionError` or `InvalidPathError`."""


class LocalFileSystem(FileSystem):
	"""A filesystem rooted in a local directory."""

	def __init__(self, root: str | Path = "."):
		self.root: Path = (root if isinstance(root, Path) else Path(root)).absolute()

	def open(self, name: str) -> ByteSource:
		if not validPath(name):
			raise InvalidPathError(name)
		path: Path = self.root if name == "." else self.root.joinpath(name)
		if path.is_dir():
			return DirectorySource(name, timestamp(path.stat().st_mtime))
		try:
			return FileSource.Open(path, name)
		except NotADirectoryError as e:
			# A parent of the resource is a file
			raise notFound(name) from e


class MemoryFileSystem(FileSystem):
	"""A filesystem over a mapping of names to contents, directories being
	implied by the names."""

	def __init__(
		self,
		files: dict[str, bytes] | None = None,
		modifiedAt: datetime | None = None,
	):
		self.files: dict[str, bytes] = dict(files) if files else {}
		self.modifiedAt: datetime | None = modifiedAt

	def isDirectory(self, name: str) -> bool:
		if name == ".":
			return True
		prefix = f"{name}/"
		return any(_.startswith(prefix) for _ in self.files)

	def open(self, name: str) -> ByteSource:
		if not validPath(name):
			raise InvalidPathError(name)
		elif name in self.files:
			return BytesSource(self.files[name], name, self.modifiedAt)
		elif self.isDirectory(name):
			return DirectorySource(name, self.modifiedAt)
		else:
			raise notFound(name)


# EOF
