import os
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple, TYPE_CHECKING

from .bytecode import (
    END,
    Element,
    Expression,
    Statement,
    make_variable_path,
    pack_length,
)
from .exceptions import CircularImport, NotExported

if TYPE_CHECKING:
    from .compiler import LeafCompiler


@dataclass(frozen=True)
class Argument:
    kind: str
    value: bytes


@dataclass
class CompileOptions:
    extension: str = ".leaf"


@dataclass
class RenderLimits:
    max_steps: Optional[int] = None

    @classmethod
    def unbounded(cls) -> "RenderLimits":
        return cls(max_steps=None)

    @classmethod
    def from_env(cls) -> "RenderLimits":
        raw = os.environ.get("LEAF_MAX_STEPS", "").strip()
        return cls(max_steps=int(raw) if raw else None)


@dataclass
class CompileContext:
    """State shared by every tag of one compilation, sub-templates included."""

    exports: Dict[str, bytes] = field(default_factory=dict)
    scope: Optional[bytes] = None
    including: List[str] = field(default_factory=list)
    importing: List[str] = field(default_factory=list)

    def scoped_path(self, path: bytes) -> bytes:
        if self.scope is None:
            return path
        if path == b"self":
            return self.scope
        if path.startswith(b"self."):
            return self.scope + path[4:]
        return path

    @contextmanager
    def scoped(self, scope: Optional[bytes]) -> Iterator[None]:
        previous = self.scope
        self.scope = scope
        try:
            yield
        finally:
            self.scope = previous


# --- Compile actions ---
#
# The first pass turns every tag into either an Emit (bytecode known right away)
# or a Deferred action. The second pass resolves them in source order, after
# every export of the compilation has been registered.


@dataclass(frozen=True)
class Emit:
    code: bytes

    def resolve(self, compiler: "LeafCompiler", context: CompileContext) -> bytes:
        return self.code


@dataclass(frozen=True)
class Deferred(ABC):
    path: str
    scope: Optional[bytes]

    @abstractmethod
    def resolve(self, compiler: "LeafCompiler", context: CompileContext) -> bytes: ...

    def _block(self, compiler: "LeafCompiler", context: CompileContext, body: bytes) -> bytes:
        with context.scoped(self.scope):
            return compiler.compile_block(body, self.path, context)


@dataclass(frozen=True)
class ImportExport(Deferred):
    name: str = ""

    def resolve(self, compiler, context):
        if self.name not in context.exports:
            raise NotExported(self.name)
        if self.name in context.importing:
            raise CircularImport(self.name)

        context.importing.append(self.name)
        try:
            # Remove the trailing end marker and embed the code here
            return self._block(compiler, context, context.exports[self.name])[:-1]
        finally:
            context.importing.pop()


@dataclass(frozen=True)
class ExtendFile(Deferred):
    name: str = ""

    def resolve(self, compiler, context):
        # The extended file resolves its imports against this compilation's exports
        with context.scoped(self.scope):
            return compiler.compile_file_block(self.name, self.path, context)[:-1]


@dataclass(frozen=True)
class ScopedBody(Deferred):
    body: bytes = b""

    def resolve(self, compiler, context):
        return self._block(compiler, context, self.body)[:-1]


@dataclass(frozen=True)
class Conditional(Deferred):
    # (encoded variable path, body source) for the `if` and every `##if`
    branches: Tuple[Tuple[bytes, bytes], ...] = ()
    otherwise: Optional[bytes] = None

    def resolve(self, compiler, context):
        blocks = [self._block(compiler, context, body) for _, body in self.branches]
        false_block = b""
        if self.otherwise is not None:
            false_block = self._block(compiler, context, self.otherwise)

        # Build the chain inside out: each `##if` is the false branch of the one before
        statement = b""
        for (variable, _), true_block in reversed(list(zip(self.branches, blocks))):
            res = bytearray([Element.STATEMENT, Statement.IF, Expression.VARIABLE])
            res.extend(variable)
            res.extend(pack_length(len(true_block)))
            res.extend(pack_length(len(false_block)))
            res.extend(true_block)
            res.extend(false_block)
            statement = bytes(res)
            false_block = statement + bytes([END])
        return statement


@dataclass(frozen=True)
class Loop(Deferred):
    variable: bytes = b""
    iterable: bytes = b""
    body: bytes = b""

    def resolve(self, compiler, context):
        body = self._block(compiler, context, self.body)

        res = bytearray([Element.STATEMENT, Statement.FOR])
        res.extend(self.variable)
        res.append(END)
        res.append(Expression.VARIABLE)
        res.extend(self.iterable)
        res.extend(pack_length(len(body)))
        res.extend(body)
        # End of loop
        res.append(END)
        return bytes(res)


def encode_path(context: CompileContext, path: bytes) -> bytes:
    return make_variable_path(context.scoped_path(path))
