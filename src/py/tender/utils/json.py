from typing import Any
import json as basejson
from .primitives import asPrimitive


def json(value: Any) -> bytes:
	"""Encodes the value as UTF-8 JSON, raises `TypeError` when the value
	can't be serialized."""
	return basejson.dumps(asPrimitive(value)).encode("utf8")


# EOF
