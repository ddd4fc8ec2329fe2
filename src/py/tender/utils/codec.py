import zlib
from abc import ABC, abstractmethod

# Default gzip level, favouring speed over ratio for on-the-fly encoding
COMPRESSION_LEVEL: int = 6


class BytesTransform(ABC):
	"""Transforms a stream of bytes fed in chunks. A transform may retain
	bytes until it is flushed."""

	@abstractmethod
	def feed(self, chunk: bytes) -> bytes:
		"""Feeds a chunk, returning the transformed bytes available so far
		(possibly none)."""

	@abstractmethod
	def flush(self) -> bytes:
		"""Returns the remaining bytes, the transform can't be fed after."""


class GZipEncoder(BytesTransform):
	"""Encodes a stream in the gzip format (RFC 1952)."""

	__slots__ = ["compressor"]

	def __init__(self, level: int = COMPRESSION_LEVEL) -> None:
		# A `wbits` over 16 produces a gzip header and trailer
		self.compressor = zlib.compressobj(level=level, wbits=zlib.MAX_WBITS | 16)

	def feed(self, chunk: bytes) -> bytes:
		return self.compressor.compress(chunk)

	def flush(self) -> bytes:
		return self.compressor.flush(zlib.Z_FINISH)


# EOF
