from typing import ClassVar
import os

# SEE: https://no-color.org/
NO_COLOR: bool = "NO_COLOR" in os.environ
FORCE_COLOR: bool = "FORCE_COLOR" in os.environ
COLOR: bool = FORCE_COLOR or NO_COLOR is False


class Term:
	BOLD: ClassVar[str] = "" if NO_COLOR else "\033[1m"
	RESET: ClassVar[str] = "" if NO_COLOR else "\033[0m"

	@staticmethod
	def Color(color: int, bold: bool = False) -> str:
		return f"\033[{'1' if bold else '0'};38;5;{color}m" if COLOR else ""

	@staticmethod
	def Strip(text: str) -> str:
		"""Removes the escape sequences from the given text."""
		res: list[str] = []
		i: int = 0
		n: int = len(text)
		while i < n:
			if text[i] == "\033" and (j := text.find("m", i)) != -1:
				i = j + 1
			else:
				res.append(text[i])
				i += 1
		return "".join(res)


# EOF
