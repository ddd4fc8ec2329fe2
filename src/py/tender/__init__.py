from .app import App, Application, INDEX_FILE_NAME  # NOQA: F401
from .errors import (  # NOQA: F401
	ErrorCategory,
	InvalidPathError,
	InvalidRequestError,
	MethodNotAllowedError,
	classify,
	statusCode,
	writeError,
)
from .handler import RequestHandler, handle  # NOQA: F401
from .http.model import HTTPRequest, HTTPResponseBuffer, HTTPResponseWriter  # NOQA: F401
from .options import (  # NOQA: F401
	JSON_MIME,
	Option,
	ResponseOptions,
	attachment,
	compress,
	disposition,
	immutable,
	maxAge,
	mime,
	modTime,
	size,
	sizeOf,
)
from .ranges import RANGE_BUFFER_SIZE, ByteRange, parseRange  # NOQA: F401
from .serve import (  # NOQA: F401
	ResponseOutcome,
	respond,
	respondBytes,
	respondFile,
	respondFS,
	respondJSON,
)
from .sources import (  # NOQA: F401
	ByteSource,
	BytesSource,
	FileInfo,
	FileSource,
	FileSystem,
	LocalFileSystem,
	MemoryFileSystem,
	SourceKind,
	StreamSource,
)
from .server import run  # NOQA: F401

# EOF
