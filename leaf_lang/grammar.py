from typing import List

from lark import Lark, Transformer
from lark.exceptions import LarkError

from .exceptions import InvalidString, InvalidTagArguments
from .models import Argument

ARGUMENTS_GRAMMAR = r"""
    start: (argument ("," argument)*)?

    argument: STRING -> string
            | PATH   -> path

    STRING: /"[^"]*"/
    PATH: /[^\s",(){}]+/

    %import common.WS
    %ignore WS
"""

_PARSER = Lark(ARGUMENTS_GRAMMAR, parser="lalr")


class ArgumentBuilder(Transformer):
    def start(self, items):
        return list(items)

    def string(self, items):
        return Argument("string", str(items[0])[1:-1].encode("utf-8"))

    def path(self, items):
        return Argument("path", str(items[0]).encode("utf-8"))


def parse_arguments(raw: bytes, tag: str) -> List[Argument]:
    """Parses the text between a tag's parentheses, e.g. ``friends, "friend"``."""
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError:
        raise InvalidString(raw) from None
    try:
        tree = _PARSER.parse(text)
    except LarkError as e:
        detail = str(e).strip().splitlines() or [type(e).__name__]
        raise InvalidTagArguments(tag, detail[0]) from e
    return ArgumentBuilder().transform(tree)


def expect_arguments(arguments: List[Argument], tag: str, *kinds: str) -> List[Argument]:
    found = tuple(argument.kind for argument in arguments)
    if found != kinds:
        raise InvalidTagArguments(
            tag, f"expected ({', '.join(kinds)}), got ({', '.join(found)})"
        )
    return arguments
