from typing import Optional

from .bytecode import WHITESPACE
from .exceptions import (
    MissingRequiredCharacter,
    TagContainsWhitespace,
    TagNotClosed,
    TagNotOpened,
    UnexpectedEndOfInput,
)

POUND = 0x23
QUOTE = 0x22
ARGUMENTS_OPEN = 0x28
ARGUMENTS_CLOSE = 0x29
BODY_OPEN = 0x7B
BODY_CLOSE = 0x7D


class SourceCursor:
    """Byte-scanning primitives over template source.

    Every primitive starts at ``position`` and leaves it just past whatever
    it consumed, so tag compilers can chain them.
    """

    def __init__(self, data: bytes, position: int = 0):
        self.data = data
        self.position = position

    def at_end(self) -> bool:
        return self.position >= len(self.data)

    def peek(self, offset: int = 0) -> Optional[int]:
        index = self.position + offset
        if index < len(self.data):
            return self.data[index]
        return None

    def advance(self, count: int = 1) -> None:
        self.position = min(self.position + count, len(self.data))

    def startswith(self, prefix: bytes) -> bool:
        return self.data.startswith(prefix, self.position)

    def scan_until(self, delimiters: bytes, required: bool = True) -> bytes:
        start = self.position
        while self.position < len(self.data):
            if self.data[self.position] in delimiters:
                scanned = self.data[start : self.position]
                self.position += 1
                return scanned
            self.position += 1
        if required:
            raise UnexpectedEndOfInput(self.position)
        return self.data[start:]

    def skip(self, characters) -> None:
        while self.position < len(self.data) and self.data[self.position] in characters:
            self.position += 1

    def skip_whitespace(self) -> None:
        self.skip(WHITESPACE)

    def next_significant(self) -> Optional[int]:
        """The first non-whitespace byte ahead, without consuming anything."""
        index = self.position
        while index < len(self.data) and self.data[index] in WHITESPACE:
            index += 1
        return self.data[index] if index < len(self.data) else None

    def require_character(self, character: int) -> None:
        found = self.peek()
        if found != character:
            raise MissingRequiredCharacter(found, character)
        self.position += 1

    def scan_string_literal(self) -> bytes:
        self.require_character(QUOTE)
        return self.scan_until(bytes([QUOTE]))

    def scan_tag_string(self) -> bytes:
        """A string literal inside a tag's parentheses; running off the end leaves the tag open."""
        start = self.position
        if self.at_end():
            raise TagNotClosed(start)
        try:
            return self.scan_string_literal()
        except UnexpectedEndOfInput:
            raise TagNotClosed(start) from None

    def close_tag(self) -> None:
        if self.at_end():
            raise TagNotClosed(self.position)
        self.require_character(ARGUMENTS_CLOSE)

    def scan_tag_name(self) -> bytes:
        start = self.position
        while self.position < len(self.data):
            byte = self.data[self.position]
            if byte in WHITESPACE:
                raise TagContainsWhitespace(self.position)
            if byte == ARGUMENTS_OPEN:
                name = self.data[start : self.position]
                self.position += 1
                return name
            self.position += 1
        raise TagNotOpened(self.position)

    def scan_arguments(self) -> bytes:
        # Quoted strings may contain ')' and ','.
        scanned = bytearray()
        while True:
            byte = self.peek()
            if byte is None:
                raise TagNotClosed(self.position)
            if byte == ARGUMENTS_CLOSE:
                self.position += 1
                return bytes(scanned)
            if byte == QUOTE:
                scanned.append(QUOTE)
                scanned.extend(self.scan_tag_string())
                scanned.append(QUOTE)
                continue
            scanned.append(byte)
            self.position += 1

    def parse_sub_template(self, counting_brackets: bool = True) -> bytes:
        self.skip_whitespace()
        self.require_character(BODY_OPEN)
        start = self.position
        depth = 1
        while self.position < len(self.data):
            byte = self.data[self.position]
            if byte == BODY_OPEN and counting_brackets:
                depth += 1
            elif byte == BODY_CLOSE:
                depth -= 1
                if depth == 0:
                    body = self.data[start : self.position]
                    self.position += 1
                    return body
            self.position += 1
        raise TagNotClosed(start)
