from enum import Enum
from typing import Iterator
from .http.model import HTTPResponseWriter

# -----------------------------------------------------------------------------
#
# ERRORS
#
# -----------------------------------------------------------------------------


class ServeError(Exception):
	"""Base class for the errors raised while serving a response."""


class InvalidRequestError(ServeError):
	"""The request can't be served as it is invalid."""


class InvalidPathError(InvalidRequestError):
	"""A resource name that is not valid for a filesystem."""

	def __init__(self, name: str):
		super().__init__(f"Invalid resource name: {name!r}")
		self.name: str = name


class MethodNotAllowedError(ServeError):
	def __init__(self, method: str | None = None):
		super().__init__(
			f"Method not allowed: {method}" if method else "Method not allowed"
		)
		self.method: str | None = method


# -----------------------------------------------------------------------------
#
# CLASSIFICATION
#
# -----------------------------------------------------------------------------


class ErrorCategory(Enum):
	"""The well-known error categories, in order of precedence. The value
	is the HTTP status code."""

	NotFound = 404
	PermissionDenied = 403
	InvalidRequest = 400
	MethodNotAllowed = 405
	Unknown = 500


ERROR_CATEGORIES: tuple[tuple[ErrorCategory, type[BaseException]], ...] = (
	(ErrorCategory.NotFound, FileNotFoundError),
	(ErrorCategory.PermissionDenied, PermissionError),
	(ErrorCategory.InvalidRequest, InvalidRequestError),
	(ErrorCategory.MethodNotAllowed, MethodNotAllowedError),
)


def causes(error: BaseException) -> Iterator[BaseException]:
	"""Iterates on the error and its explicit causes (`raise … from …`)."""
	seen: set[int] = set()
	current: BaseException | None = error
	while current is not None and id(current) not in seen:
		seen.add(id(current))
		yield current
		current = current.__cause__


def classify(error: BaseException) -> ErrorCategory:
	"""Returns the category of the given error. Each category is matched
	against the whole cause chain before the next one is tried."""
	chain = tuple(causes(error))
	for category, kind in ERROR_CATEGORIES:
		if any(isinstance(_, kind) for _ in chain):
			return category
	return ErrorCategory.Unknown


def statusCode(error: BaseException | None) -> int:
	return 200 if error is None else classify(error).value


async def writeError(response: HTTPResponseWriter, error: BaseException) -> int:
	"""Writes the error as a plain text response, returning the status."""
	status: int = statusCode(error)
	payload: bytes = f"{error}\n".encode("utf8")
	# Headers describing the failed attempt, including its freshness
	for name in (
		"Accept-Ranges",
		"Cache-Control",
		"Content-Disposition",
		"Content-Encoding",
		"Content-Range",
		"Last-Modified",
		"Vary",
	):
		response.delHeader(name)
	response.setHeader("Content-Type", "text/plain; charset=utf-8")
	response.setHeader("X-Content-Type-Options", "nosniff")
	response.setHeader("Content-Length", len(payload))
	response.writeHead(status)
	await response.write(payload)
	return status


# EOF
