import re
from typing import NamedTuple
from mypy_extensions import i64

# Maximum number of bytes served for a single range request
RANGE_BUFFER_SIZE: int = 1 << 22  # 4 MiB

RE_RANGE = re.compile(r"\s*bytes\s*=\s*(\d+)\s*-\s*(\d+)?\s*")


class ByteRange(NamedTuple):
	"""A half-open `[begin, end)` interval of bytes."""

	begin: i64
	end: i64

	@property
	def length(self) -> i64:
		return self.end - self.begin

	def contentRange(self, size: int) -> str:
		"""The `Content-Range` header value for this range."""
		return f"bytes {self.begin}-{self.end - 1}/{size if size >= 0 else '*'}"


def parseRange(
	value: str, size: int, *, limit: int = RANGE_BUFFER_SIZE
) -> ByteRange | None:
	"""Parses a single `bytes=<first>-[<last>]` range, where `last` is
	inclusive, clamping it to `limit` bytes and to `size` when known.

	When `last` is missing or not above `first`, the range extends
	`limit` bytes from `first`. Returns `None` for anything else than a
	single range (suffix ranges, multiple ranges, malformed values)."""
	if not (match := RE_RANGE.fullmatch(value)):
		return None
	begin: int = int(match.group(1))
	last: int = int(match.group(2)) if match.group(2) is not None else 0
	end: int = begin + limit if last <= begin else min(last + 1, begin + limit)
	if size >= 0:
		end = min(end, size)
	# A begin past the size yields an empty range, the read will fail.
	return ByteRange(begin, max(begin, end))


# EOF
