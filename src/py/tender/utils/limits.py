import resource
from enum import Enum
from typing import NamedTuple


class LimitType(Enum):
	Files = resource.RLIMIT_NOFILE


# Each connection holds a socket, and each response may hold an open file
REASONABLE_LIMITS: dict[LimitType, int] = {
	LimitType.Files: 102_400,
}


class Limit(NamedTuple):
	type: LimitType
	soft: int
	hard: int

	@property
	def isUnbounded(self) -> bool:
		return self.hard == resource.RLIM_INFINITY


def limit(scope: LimitType) -> Limit:
	return Limit(scope, *resource.getrlimit(scope.value))


def unlimit(scope: LimitType, *, maximum: int | None = None) -> int | None:
	"""Raises the soft limit up to the hard limit, without going over
	`maximum` (defaulting to the reasonable limit for the scope). Returns
	the new soft limit, or `None` if it couldn't be changed."""
	current: Limit = limit(scope)
	if current.soft == resource.RLIM_INFINITY:
		return current.soft
	cap: int | None = REASONABLE_LIMITS.get(scope) if maximum is None else maximum
	if current.isUnbounded:
		target = max(current.soft, cap) if cap else current.soft
	else:
		target = min(current.hard, cap) if cap else current.hard
	if target <= current.soft:
		return current.soft
	try:
		resource.setrlimit(scope.value, (target, current.hard))
	except (ValueError, OSError):
		return None
	return target


# EOF
