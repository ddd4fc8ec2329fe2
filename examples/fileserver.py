"""
Static File Server Example

This serves the files of a directory, falling back to `index.html` for
directories and missing paths, as single page applications expect.
Features shown:
- Range requests for seekable files
- Caching headers
- Gzip compression for compressible responses
- Per-request log lines

Usage:
    python fileserver.py [ROOT]

Test with:
    curl -i http://localhost:8000/
    curl -i -H "Range: bytes=0-99" http://localhost:8000/README.md
    curl -i --compressed http://localhost:8000/README.md
"""

import sys
from tender import App, LocalFileSystem, compress, maxAge, run
from tender.utils.logging import info

if __name__ == "__main__":
	root = sys.argv[1] if len(sys.argv) > 1 else "."
	info("Starting static file server", Root=root)
	run(App(LocalFileSystem(root), "index.html", maxAge(300), compress()))

# EOF
