from .grammar import ARGUMENTS_GRAMMAR
from .exceptions import (
    LeafError,
    CompileError,
    TemplateError,
    ContextValueError,
    UnexpectedEndOfInput,
    NullTerminatorInTemplate,
    TagContainsWhitespace,
    UnknownTag,
    TagNotOpened,
    TagNotClosed,
    MissingRequiredCharacter,
    VariablePathContainsWhitespace,
    EmptyVariablePath,
    InvalidString,
    InvalidTagArguments,
    NotExported,
    FileDoesNotExist,
    CircularInclude,
    CircularImport,
    InvalidElement,
    InvalidStatement,
    InvalidExpression,
    UnexpectedEndOfTemplate,
    UnclosedLoop,
    UndecodableName,
    StepLimitExceeded,
    RenderDepthExceeded,
    InvalidPackage,
)
from .loader import FileLoader, DiskLoader, MemoryLoader
from .models import CompileContext, CompileOptions, RenderLimits, Emit, Deferred
from .scanner import SourceCursor
from .context import Context, TemplateObject, TemplateSequence, make_context_value
from .tags import TagRegistry, BUILTIN_TAGS
from .interpreter import LeafInterpreter
from .template import Template
from .compiler import LeafCompiler, compile_source, compile_file
from .disassembler import disassemble

__all__ = [
    "ARGUMENTS_GRAMMAR",
    "LeafError",
    "CompileError",
    "TemplateError",
    "ContextValueError",
    "UnexpectedEndOfInput",
    "NullTerminatorInTemplate",
    "TagContainsWhitespace",
    "UnknownTag",
    "TagNotOpened",
    "TagNotClosed",
    "MissingRequiredCharacter",
    "VariablePathContainsWhitespace",
    "EmptyVariablePath",
    "InvalidString",
    "InvalidTagArguments",
    "NotExported",
    "FileDoesNotExist",
    "CircularInclude",
    "CircularImport",
    "InvalidElement",
    "InvalidStatement",
    "InvalidExpression",
    "UnexpectedEndOfTemplate",
    "UnclosedLoop",
    "UndecodableName",
    "StepLimitExceeded",
    "RenderDepthExceeded",
    "InvalidPackage",
    "FileLoader",
    "DiskLoader",
    "MemoryLoader",
    "CompileContext",
    "CompileOptions",
    "RenderLimits",
    "Emit",
    "Deferred",
    "SourceCursor",
    "Context",
    "TemplateObject",
    "TemplateSequence",
    "make_context_value",
    "TagRegistry",
    "BUILTIN_TAGS",
    "LeafInterpreter",
    "Template",
    "LeafCompiler",
    "compile_source",
    "compile_file",
    "disassemble",
]
