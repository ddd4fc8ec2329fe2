import argparse
from pathlib import Path
from . import config
from .app import App
from .options import Option, compress, immutable, maxAge
from .server import run
from .sources import LocalFileSystem
from .utils.logging import LogSink, NullLogSink, StreamLogSink, info


def parser() -> argparse.ArgumentParser:
	p = argparse.ArgumentParser(
		prog="tender", description="Serves the files of a local directory"
	)
	p.add_argument("root", nargs="?", default=".", help="Directory to serve")
	p.add_argument("--host", default=config.HOST)
	p.add_argument("--port", type=int, default=config.PORT)
	p.add_argument(
		"--index",
		default=config.INDEX,
		help="Resource served for directories and missing paths",
	)
	p.add_argument("--no-index", action="store_true", help="Disable the index fallback")
	p.add_argument("--max-age", type=float, default=config.MAX_AGE, help="In seconds")
	p.add_argument("--immutable", action="store_true")
	p.add_argument("--no-compress", action="store_true")
	return p


def options(args: argparse.Namespace) -> list[Option]:
	res: list[Option] = [maxAge(args.max_age)]
	if args.immutable:
		res.append(immutable())
	if config.COMPRESS and not args.no_compress:
		res.append(compress())
	return res


def main(argv: list[str] | None = None) -> None:
	args = parser().parse_args(argv)
	root = Path(args.root)
	if not root.is_dir():
		raise SystemExit(f"Not a directory: {root}")
	sink: LogSink = StreamLogSink() if config.LOG_REQUESTS else NullLogSink()
	app = App(
		LocalFileSystem(root),
		None if args.no_index else (args.index or None),
		*options(args),
		sink=sink,
	)
	info("Serving directory", Root=str(root.absolute()), Index=app.index)
	run(app, host=args.host, port=args.port)


if __name__ == "__main__":
	main()

# EOF
