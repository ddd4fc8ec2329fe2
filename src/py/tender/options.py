from datetime import datetime, timedelta, timezone
from email.utils import format_datetime
from typing import Callable, NamedTuple, TypeAlias
from mypy_extensions import i64

YEAR: timedelta = timedelta(days=365)

JSON_MIME: str = "application/json; charset=utf-8"


class ResponseOptions(NamedTuple):
	"""Describes how a byte source is to be served. Options are values:
	they are built by applying option functions and never change once the
	response has started."""

	size: i64 = -1
	mimeType: str = ""
	modifiedAt: datetime | None = None
	maxAge: timedelta = timedelta(0)
	immutable: bool = False
	disposition: str = ""
	compressible: bool = False

	@staticmethod
	def Make(*options: "Option") -> "ResponseOptions":
		return ResponseOptions().apply(*options)

	def apply(self, *options: "Option") -> "ResponseOptions":
		"""Returns new options with the given option functions applied in
		order, later ones overriding earlier ones."""
		res: ResponseOptions = self
		for option in options:
			res = option(res)
		return res

	def merge(self, other: "ResponseOptions") -> "ResponseOptions":
		"""Returns these options overlaid with the fields set in `other`."""
		unset = ResponseOptions()
		return self._replace(
			**{
				k: v
				for k, v in other._asdict().items()
				if v != getattr(unset, k)
			}
		)

	@property
	def cacheControl(self) -> str | None:
		"""The `Cache-Control` header value, if any."""
		if not (self.maxAge > timedelta(0) or self.immutable):
			return None
		age: timedelta = (
			max(self.maxAge, YEAR) if self.immutable else self.maxAge
		)
		res = f"public, max-age={int(age.total_seconds())}"
		return f"{res}, immutable" if self.immutable else res

	@property
	def lastModified(self) -> str | None:
		"""The `Last-Modified` header value, if any."""
		return None if self.modifiedAt is None else httpdate(self.modifiedAt)


Option: TypeAlias = Callable[[ResponseOptions], ResponseOptions]


def httpdate(value: datetime) -> str:
	"""Formats the date as an IMF-fixdate, like `Sun, 06 Nov 1994 08:49:37 GMT`."""
	if value.tzinfo is None:
		value = value.replace(tzinfo=timezone.utc)
	return format_datetime(value.astimezone(timezone.utc), usegmt=True)


# -----------------------------------------------------------------------------
#
# OPTIONS
#
# -----------------------------------------------------------------------------


def size(n: int) -> Option:
	return lambda o: o._replace(size=n)


def sizeOf(data: bytes | bytearray | memoryview) -> Option:
	return size(len(data))


def mime(value: str) -> Option:
	return lambda o: o._replace(mimeType=value)


def modTime(value: datetime | float | None) -> Option:
	"""Sets the modification time, given as a datetime or a POSIX timestamp."""
	t: datetime | None = (
		datetime.fromtimestamp(value, tz=timezone.utc)
		if isinstance(value, (int, float))
		else value
	)
	return lambda o: o._replace(modifiedAt=t)


def maxAge(value: timedelta | float) -> Option:
	"""Sets the cache duration, given as a timedelta or in seconds."""
	d: timedelta = value if isinstance(value, timedelta) else timedelta(seconds=value)
	return lambda o: o._replace(maxAge=d)


def immutable(value: bool = True) -> Option:
	return lambda o: o._replace(immutable=value)


def compress(value: bool = True) -> Option:
	return lambda o: o._replace(compressible=value)


def disposition(value: str) -> Option:
	return lambda o: o._replace(disposition=value)


def attachment(name: str) -> Option:
	"""Serves the response as a download with the given file name, an empty
	name resetting the disposition to inline."""
	quoted = name.replace("\\", "\\\\").replace('"', '\\"')
	value = f'attachment; filename="{quoted}"' if name else ""
	return disposition(value)


# EOF
