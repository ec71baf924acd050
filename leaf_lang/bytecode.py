"""Opcode vocabulary and binary framing of compiled templates.

A compiled template is a flat sequence of nested blocks. Every block ends with
``END`` (0x00). Lengths are unsigned 32-bit little-endian integers.

    element   := RAW_DATA u32 bytes | STATEMENT statement
    statement := IF expr u32(true) u32(false) block [block]
               | FOR cstring expr u32(body) block END
               | PRINT expr
    expr      := VARIABLE (cstring)+ END | TRUE
"""

import struct
from typing import List

from .exceptions import (
    EmptyVariablePath,
    InvalidString,
    NullTerminatorInTemplate,
    UndecodableName,
    UnexpectedEndOfTemplate,
    VariablePathContainsWhitespace,
)

END = 0x00

WHITESPACE = frozenset(b" \t\r\n")


class Element:
    RAW_DATA = 0x01
    STATEMENT = 0x02


class Statement:
    IF = 0x01
    FOR = 0x02
    PRINT = 0x03


class Expression:
    VARIABLE = 0x01
    TRUE = 0x02


def pack_length(length: int) -> bytes:
    return struct.pack("<I", length)


def raw_data(data: bytes) -> bytes:
    return bytes([Element.RAW_DATA]) + pack_length(len(data)) + data


def make_variable_path(path: bytes) -> bytes:
    """Encodes ``a.b.0`` as ``a\\x00b\\x000\\x00\\x00``.

    Once for the last key, once for the path.
    """
    if any(byte in WHITESPACE for byte in path):
        raise VariablePathContainsWhitespace(path)
    if END in path:
        raise NullTerminatorInTemplate(path.index(END))
    if not path or b"" in path.split(b"."):
        raise EmptyVariablePath(path)
    try:
        path.decode("utf-8")
    except UnicodeDecodeError:
        raise InvalidString(path) from None
    return path.replace(b".", b"\x00") + b"\x00\x00"


def variable_expression(path: bytes) -> bytes:
    return bytes([Expression.VARIABLE]) + make_variable_path(path)


def print_statement(path: bytes) -> bytes:
    return bytes([Element.STATEMENT, Statement.PRINT]) + variable_expression(path)


class CodeCursor:
    """Read position over a compiled template."""

    def __init__(self, code: bytes, position: int = 0):
        self.code = code
        self.position = position

    def at_end(self) -> bool:
        return self.position >= len(self.code)

    def require(self, count: int) -> None:
        if self.position + count > len(self.code):
            raise UnexpectedEndOfTemplate(self.position)

    def seek(self, position: int) -> None:
        if position > len(self.code):
            raise UnexpectedEndOfTemplate(position)
        self.position = position

    def peek_byte(self) -> int:
        self.require(1)
        return self.code[self.position]

    def read_byte(self) -> int:
        self.require(1)
        byte = self.code[self.position]
        self.position += 1
        return byte

    def read_bytes(self, count: int) -> bytes:
        self.require(count)
        data = self.code[self.position : self.position + count]
        self.position += count
        return data

    def read_length(self) -> int:
        return struct.unpack("<I", self.read_bytes(4))[0]

    def read_cstring(self) -> bytes:
        end = self.code.find(END, self.position)
        if end < 0:
            raise UnexpectedEndOfTemplate(len(self.code))
        data = self.code[self.position : end]
        self.position = end + 1
        return data

    def read_name(self) -> str:
        data = self.read_cstring()
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError:
            raise UndecodableName(data) from None

    def read_variable_path(self) -> List[str]:
        # The opcode byte has already been consumed.
        segments: List[str] = []
        while self.peek_byte() != END:
            segments.append(self.read_name())
        self.position += 1
        if not segments:
            raise EmptyVariablePath()
        return segments
