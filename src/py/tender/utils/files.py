import mimetypes
from pathlib import PurePosixPath

mimetypes.init()

MIME_TYPES: dict[str, str] = {
	".bz2": "application/x-bzip",
	".gz": "application/x-gzip",
	".js": "text/javascript; charset=utf-8",
	".mjs": "text/javascript; charset=utf-8",
	".json": "application/json",
	".md": "text/markdown; charset=utf-8",
	".wasm": "application/wasm",
	".webp": "image/webp",
}


def extension(name: str) -> str:
	"""Returns the extension of the last path segment, including the dot."""
	return PurePosixPath(name).suffix.lower()


def contentType(name: str) -> str:
	"""Guesses the content type from the extension of the given name,
	returning an empty string when unknown."""
	ext = extension(name)
	if not ext:
		return ""
	elif res := MIME_TYPES.get(ext):
		return res
	else:
		res = mimetypes.types_map.get(ext, "")
		# Text types are served as UTF-8 unless stated otherwise
		return (
			f"{res}; charset=utf-8"
			if res.startswith("text/") and "charset" not in res
			else res
		)


# EOF
