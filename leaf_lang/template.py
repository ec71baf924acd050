import hashlib
import struct
from typing import Any, Optional

from .context import make_context
from .exceptions import InvalidPackage
from .interpreter import LeafInterpreter
from .models import RenderLimits

PACKAGE_HEADER = b"LEAF\x01"


class Template:
    """A compiled template: immutable bytecode, rendered any number of times."""

    __slots__ = ("_compiled",)

    def __init__(self, compiled: bytes):
        self._compiled = bytes(compiled)

    @property
    def compiled(self) -> bytes:
        return self._compiled

    def run(self, context: Any = None, limits: Optional[RenderLimits] = None) -> bytes:
        """Renders against ``context`` (a Context, a mapping or None) to bytes."""
        return LeafInterpreter(self._compiled, limits).run(make_context(context))

    def render(
        self,
        context: Any = None,
        limits: Optional[RenderLimits] = None,
        encoding: str = "utf-8",
    ) -> str:
        return self.run(context, limits).decode(encoding)

    # --- Packaging ---

    def to_package(self) -> bytes:
        # Header: 'LEAF' + Version 1 + Seal (sha256 of the bytecode)
        package = bytearray(PACKAGE_HEADER)
        package.extend(hashlib.sha256(self._compiled).digest())
        package.extend(struct.pack("<I", len(self._compiled)))
        package.extend(self._compiled)
        return bytes(package)

    @classmethod
    def from_package(cls, data: bytes) -> "Template":
        if not data.startswith(PACKAGE_HEADER):
            raise InvalidPackage("Not a packaged template (bad header)")
        offset = len(PACKAGE_HEADER)
        seal = data[offset : offset + 32]
        offset += 32
        if len(data) < offset + 4:
            raise InvalidPackage("Packaged template is truncated")
        length = struct.unpack("<I", data[offset : offset + 4])[0]
        offset += 4
        compiled = data[offset:]
        if len(compiled) != length:
            raise InvalidPackage(f"Expected {length} bytes of bytecode, found {len(compiled)}")
        if hashlib.sha256(compiled).digest() != seal:
            raise InvalidPackage("Seal does not match the bytecode")
        return cls(compiled)

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, Template):
            return self._compiled == other._compiled
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._compiled)

    def __len__(self) -> int:
        return len(self._compiled)

    def __repr__(self) -> str:
        return f"Template({len(self._compiled)} bytes)"
