import gzip
import json as basejson
from dataclasses import dataclass
from datetime import date
from enum import Enum
from pathlib import PurePosixPath
from typing import NamedTuple
import pytest
from tender.utils.codec import GZipEncoder
from tender.utils.files import contentType, extension
from tender.utils.json import json
from tender.utils.limits import LimitType, limit, unlimit
from tender.utils.primitives import asPrimitive
from tender.utils.term import Term


class Color(Enum):
	Red = "red"


class Point(NamedTuple):
	x: int
	y: int


@dataclass
class Item:
	name: str
	color: Color


def test_gzip_encoder():
	encoder = GZipEncoder()
	data = b"".join(encoder.feed(b"Hello, World! " * 100) for _ in range(3))
	data += encoder.flush()
	assert gzip.decompress(data) == b"Hello, World! " * 300


def test_content_types():
	assert extension("a/b/Page.HTML") == ".html"
	assert contentType("index.html") == "text/html; charset=utf-8"
	assert contentType("app.js") == "text/javascript; charset=utf-8"
	assert contentType("image.png") == "image/png"
	assert contentType("README") == ""
	assert contentType("data.unknown-extension") == ""


def test_primitives():
	assert asPrimitive(Point(1, 2)) == {"x": 1, "y": 2}
	assert asPrimitive(Item("pen", Color.Red)) == {"name": "pen", "color": "red"}
	assert asPrimitive(PurePosixPath("a/b")) == "a/b"
	assert asPrimitive(date(2024, 1, 2)) == "2024-01-02"


def test_json():
	assert basejson.loads(json({"point": Point(1, 2)})) == {"point": {"x": 1, "y": 2}}
	with pytest.raises(TypeError):
		json(object())


def test_unlimit():
	before = limit(LimitType.Files)
	res = unlimit(LimitType.Files)
	after = limit(LimitType.Files)
	assert after.hard == before.hard
	if res is not None:
		assert after.soft == res
		assert res >= before.soft


def test_strip():
	assert Term.Strip(f"{Term.Color(160)}Error{Term.RESET}") == "Error"


# EOF
