"""Tag compilers.

A tag compiler is called with the source cursor positioned just after the
``(`` that follows the tag name. It consumes its arguments (and body, if any)
and returns either an :class:`Emit` or a :class:`Deferred` action.
"""

import logging
from typing import Callable, Dict, List, Optional, Union, TYPE_CHECKING

from .bytecode import END, WHITESPACE, make_variable_path, print_statement, raw_data
from .exceptions import (
    InvalidString,
    InvalidTagArguments,
    NullTerminatorInTemplate,
    TagNotClosed,
    UnexpectedEndOfInput,
    UnknownTag,
)
from .grammar import expect_arguments, parse_arguments
from .models import (
    CompileContext,
    Conditional,
    Deferred,
    Emit,
    ExtendFile,
    ImportExport,
    Loop,
    ScopedBody,
    encode_path,
)
from .scanner import ARGUMENTS_CLOSE, BODY_OPEN, SourceCursor

if TYPE_CHECKING:
    from .compiler import LeafCompiler

log = logging.getLogger(__name__)

TagCompiler = Callable[
    [SourceCursor, "LeafCompiler", str, CompileContext], Union[Emit, Deferred]
]


class TagRegistry:
    def __init__(self, tags: Optional[Dict[bytes, TagCompiler]] = None):
        self._tags: Dict[bytes, TagCompiler] = dict(tags or {})

    def register(self, name: str, compiler: Optional[TagCompiler] = None):
        """Registers ``compiler`` under ``name``; usable as a decorator."""

        def decorate(func: TagCompiler) -> TagCompiler:
            self._tags[name.encode("utf-8")] = func
            return func

        if compiler is not None:
            return decorate(compiler)
        return decorate

    def lookup(self, name: bytes) -> TagCompiler:
        try:
            return self._tags[name]
        except KeyError:
            raise UnknownTag(name) from None

    def names(self) -> List[str]:
        return [name.decode("utf-8") for name in self._tags]

    def copy(self) -> "TagRegistry":
        return TagRegistry(self._tags)


BUILTIN_TAGS = TagRegistry()


def _string_argument(cursor: SourceCursor) -> str:
    name = cursor.scan_tag_string()
    cursor.close_tag()
    try:
        return name.decode("utf-8")
    except UnicodeDecodeError:
        raise InvalidString(name) from None


def _path_argument(cursor: SourceCursor, tag: str) -> bytes:
    arguments = parse_arguments(cursor.scan_arguments(), tag)
    (variable,) = expect_arguments(arguments, tag, "path")
    return variable.value


@BUILTIN_TAGS.register("")
def compile_print(cursor, compiler, path, context):
    start = cursor.position
    try:
        variable = cursor.scan_until(bytes([ARGUMENTS_CLOSE]))
    except UnexpectedEndOfInput:
        raise TagNotClosed(start) from None
    if not variable:
        # `#()` stands for a literal pound sign
        return Emit(raw_data(b"#"))

    if cursor.next_significant() != BODY_OPEN:
        return Emit(print_statement(context.scoped_path(variable)))

    # `#(path) { ... }` renders the body with `self` bound to `path`
    scope = context.scoped_path(variable)
    make_variable_path(scope)
    body = cursor.parse_sub_template()
    return ScopedBody(path=path, scope=scope, body=body)


@BUILTIN_TAGS.register("loop")
def compile_loop(cursor, compiler, path, context):
    arguments = parse_arguments(cursor.scan_arguments(), "loop")
    iterable, variable = expect_arguments(arguments, "loop", "path", "string")
    name = variable.value
    if not name or b"." in name or END in name or any(b in WHITESPACE for b in name):
        raise InvalidTagArguments("loop", f"{name!r} is not a usable variable name")

    body = cursor.parse_sub_template()
    return Loop(
        path=path,
        scope=context.scope,
        variable=name,
        iterable=encode_path(context, iterable.value),
        body=body,
    )


@BUILTIN_TAGS.register("if")
def compile_if(cursor, compiler, path, context):
    condition = _path_argument(cursor, "if")
    branches = [(encode_path(context, condition), cursor.parse_sub_template())]
    otherwise = None

    # `##if(...) { }` and `##else() { }` continue the chain
    while True:
        resume = cursor.position
        cursor.skip_whitespace()
        if not cursor.startswith(b"##"):
            cursor.position = resume
            break
        cursor.advance(2)
        name = cursor.scan_tag_name()
        if name == b"if":
            condition = _path_argument(cursor, "if")
            branches.append((encode_path(context, condition), cursor.parse_sub_template()))
        elif name == b"else":
            expect_arguments(parse_arguments(cursor.scan_arguments(), "else"), "else")
            otherwise = cursor.parse_sub_template()
            break
        else:
            raise UnknownTag(b"#" + name)

    return Conditional(
        path=path,
        scope=context.scope,
        branches=tuple(branches),
        otherwise=otherwise,
    )


@BUILTIN_TAGS.register("raw")
def compile_raw(cursor, compiler, path, context):
    arguments = parse_arguments(cursor.scan_arguments(), "raw")
    if arguments:
        (variable,) = expect_arguments(arguments, "raw", "path")
        return Emit(print_statement(context.scoped_path(variable.value)))

    start = cursor.position
    body = cursor.parse_sub_template(counting_brackets=False)
    if END in body:
        raise NullTerminatorInTemplate(start + body.index(END))
    return Emit(raw_data(body))


@BUILTIN_TAGS.register("embed")
def compile_embed(cursor, compiler, path, context):
    name = _string_argument(cursor)
    code = compiler.compile_file_block(name + compiler.options.extension, path, context)
    # Remove the trailing end marker and embed the code here
    return Emit(code[:-1])


@BUILTIN_TAGS.register("export")
def compile_export(cursor, compiler, path, context):
    name = _string_argument(cursor)
    if name in context.exports:
        log.debug("Export '%s' redefined", name)
    context.exports[name] = cursor.parse_sub_template()
    return Emit(b"")


@BUILTIN_TAGS.register("import")
def compile_import(cursor, compiler, path, context):
    name = _string_argument(cursor)
    return ImportExport(path=path, scope=context.scope, name=name)


@BUILTIN_TAGS.register("extend")
def compile_extend(cursor, compiler, path, context):
    name = _string_argument(cursor)
    return ExtendFile(path=path, scope=context.scope, name=name + compiler.options.extension)
