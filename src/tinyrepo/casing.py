"""Identifier case conventions used to derive column names from field names."""

import re
from enum import Enum

_WORD = re.compile(r"[A-Z]+(?![a-z])|[A-Z]?[a-z0-9]+")


class Case(Enum):
    LOWER_SNAKE = "lower_snake"  # number_of_toes
    UPPER_SNAKE = "upper_snake"  # NUMBER_OF_TOES
    LOWER_CAMEL = "lower_camel"  # numberOfToes
    UPPER_CAMEL = "upper_camel"  # NumberOfToes
    LOWER_KEBAB = "lower_kebab"  # number-of-toes

    @classmethod
    def parse(cls, value: "str | Case") -> "Case":
        """Accept a Case, its name or its value, in any letter case."""
        if isinstance(value, Case):
            return value
        key = value.strip().lower()
        for case in cls:
            if key in (case.value, case.name.lower()):
                return case
        raise ValueError(f"Unknown column casing: {value!r}")


def split_words(identifier: str) -> list[str]:
    """
    Split an identifier into lowercase words.

    Underscores and hyphens separate words, as do camel humps. A run of
    capitals is one word ("HTTPServer" -> ["http", "server"]).
    """
    words = []
    for part in re.split(r"[_\-]+", identifier):
        words.extend(w.lower() for w in _WORD.findall(part))
    return words


def convert(identifier: str, case: Case) -> str:
    """Convert an identifier in any supported convention to the given one."""
    words = split_words(identifier)
    if not words:
        return identifier

    if case is Case.LOWER_SNAKE:
        return "_".join(words)
    if case is Case.UPPER_SNAKE:
        return "_".join(w.upper() for w in words)
    if case is Case.LOWER_CAMEL:
        return words[0] + "".join(w.capitalize() for w in words[1:])
    if case is Case.UPPER_CAMEL:
        return "".join(w.capitalize() for w in words)
    if case is Case.LOWER_KEBAB:
        return "-".join(words)
    raise ValueError(f"Unsupported case: {case!r}")
