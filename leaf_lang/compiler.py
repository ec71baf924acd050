import logging
from typing import List, Optional, Union

from .bytecode import END, raw_data
from .exceptions import CircularInclude, NullTerminatorInTemplate
from .loader import DiskLoader, FileLoader
from .models import CompileContext, CompileOptions, Deferred, Emit
from .scanner import POUND, SourceCursor
from .tags import BUILTIN_TAGS, TagRegistry
from .template import Template

log = logging.getLogger(__name__)


class LeafCompiler:
    """Compiles tag-based template source into bytecode.

    Compilation runs in two passes. The first pass scans the source once,
    left to right, turning literal text and tags into compile actions. The
    second pass resolves those actions in order against the shared
    :class:`CompileContext`, so a tag can use state that any other tag of
    the compilation registered, wherever it appears in the source.
    """

    def __init__(
        self,
        loader: Optional[FileLoader] = None,
        tags: Optional[TagRegistry] = None,
        options: Optional[CompileOptions] = None,
    ):
        self.loader = loader if loader is not None else DiskLoader()
        self.tags = tags if tags is not None else BUILTIN_TAGS
        self.options = options if options is not None else CompileOptions()

    # --- Entry points ---

    def compile_source(
        self,
        data: Union[bytes, str],
        path: str = "",
        context: Optional[CompileContext] = None,
    ) -> Template:
        if isinstance(data, str):
            data = data.encode("utf-8")
        context = context if context is not None else CompileContext()
        return Template(self.compile_block(bytes(data), path, context))

    def compile_file(
        self, name: str, path: str = "", context: Optional[CompileContext] = None
    ) -> Template:
        context = context if context is not None else CompileContext()
        return Template(self.compile_file_block(name, path, context))

    # --- Passes ---

    def compile_file_block(self, name: str, path: str, context: CompileContext) -> bytes:
        location = self.loader.join(path, name)
        if location in context.including:
            raise CircularInclude(location)
        data = self.loader.load(location)

        context.including.append(location)
        try:
            return self.compile_block(data, path, context)
        finally:
            context.including.pop()

    def compile_block(self, data: bytes, path: str, context: CompileContext) -> bytes:
        actions = self.scan(data, path, context)

        code = bytearray()
        for action in actions:
            code.extend(action.resolve(self, context))
        code.append(END)

        log.debug("Compiled %d source bytes into %d bytes (%d actions)", len(data), len(code), len(actions))
        return bytes(code)

    def scan(self, data: bytes, path: str, context: CompileContext) -> List[Union[Emit, Deferred]]:
        cursor = SourceCursor(data)
        actions: List[Union[Emit, Deferred]] = []

        while not cursor.at_end():
            # 1. Literal text up to the next tag marker
            marker = data.find(bytes([POUND]), cursor.position)
            end = len(data) if marker < 0 else marker
            literal = data[cursor.position : end]
            if END in literal:
                # NUL is reserved for framing
                raise NullTerminatorInTemplate(cursor.position + literal.index(END))
            if literal:
                actions.append(Emit(raw_data(literal)))
            cursor.position = end
            if marker < 0:
                break

            # 2. The tag itself
            cursor.advance()
            name = cursor.scan_tag_name()
            tag = self.tags.lookup(name)
            actions.append(tag(cursor, self, path, context))

        return actions


_default_compiler = LeafCompiler()


def compile_source(
    data: Union[bytes, str], path: str = "", context: Optional[CompileContext] = None
) -> Template:
    return _default_compiler.compile_source(data, path, context)


def compile_file(name: str, path: str = "", context: Optional[CompileContext] = None) -> Template:
    return _default_compiler.compile_file(name, path, context)
