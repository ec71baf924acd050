from typing import Optional


class LeafError(Exception):
    """Base exception for the template engine."""

    pass


class CompileError(LeafError):
    """Raised while turning template source into bytecode."""

    pass


class TemplateError(LeafError):
    """Raised while executing compiled bytecode."""

    pass


class ContextValueError(LeafError):
    """Raised when a host value has no Context Value representation."""

    pass


# --- Compile time ---


class UnexpectedEndOfInput(CompileError):
    def __init__(self, position: int):
        self.position = position
        super().__init__(f"Unexpected end of template source at byte {position}")


class NullTerminatorInTemplate(CompileError):
    def __init__(self, position: int):
        self.position = position
        super().__init__(f"NUL byte in template source at byte {position}")


class TagContainsWhitespace(CompileError):
    def __init__(self, position: int):
        self.position = position
        super().__init__(f"Tag name contains whitespace at byte {position}")


class UnknownTag(CompileError):
    def __init__(self, name: bytes):
        self.name = name
        super().__init__(f"Unknown tag '{name.decode('utf-8', errors='replace')}'")


class TagNotOpened(CompileError):
    def __init__(self, position: int):
        self.position = position
        super().__init__(f"Tag starting before byte {position} is never opened with '('")


class TagNotClosed(CompileError):
    def __init__(self, position: int):
        self.position = position
        super().__init__(f"Tag opened before byte {position} is never closed")


class MissingRequiredCharacter(CompileError):
    def __init__(self, found: Optional[int], expected: int):
        self.found = found
        self.expected = expected
        shown = "end of input" if found is None else repr(chr(found))
        super().__init__(f"Expected {chr(expected)!r}, found {shown}")


class VariablePathContainsWhitespace(CompileError):
    def __init__(self, path: bytes):
        self.path = path
        super().__init__(f"Variable path {path!r} contains whitespace")


class EmptyVariablePath(CompileError, TemplateError):
    """A variable path without segments, or with an empty segment."""

    def __init__(self, path: bytes = b""):
        self.path = path
        super().__init__(f"Empty variable path or path segment in {path!r}")


class InvalidString(CompileError):
    def __init__(self, data: bytes):
        self.data = data
        super().__init__(f"String literal {data!r} is not valid UTF-8")


class InvalidTagArguments(CompileError):
    def __init__(self, tag: str, detail: str):
        self.tag = tag
        self.detail = detail
        super().__init__(f"Invalid arguments for tag '{tag}': {detail}")


class NotExported(CompileError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Nothing was exported under the name '{name}'")


class FileDoesNotExist(CompileError):
    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Template file does not exist: {path}")


class CircularInclude(CompileError):
    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Template file includes itself: {path}")


class CircularImport(CompileError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Export '{name}' imports itself")


# --- Run time ---


class InvalidElement(TemplateError):
    def __init__(self, opcode: int, position: int):
        self.opcode = opcode
        self.position = position
        super().__init__(f"Invalid element 0x{opcode:02X} at offset {position}")


class InvalidStatement(TemplateError):
    def __init__(self, opcode: int, position: int):
        self.opcode = opcode
        self.position = position
        super().__init__(f"Invalid statement 0x{opcode:02X} at offset {position}")


class InvalidExpression(TemplateError):
    def __init__(self, opcode: int, position: int):
        self.opcode = opcode
        self.position = position
        super().__init__(f"Invalid expression 0x{opcode:02X} at offset {position}")


class UnexpectedEndOfTemplate(TemplateError):
    def __init__(self, position: int):
        self.position = position
        super().__init__(f"Compiled template ends unexpectedly at offset {position}")


class UnclosedLoop(TemplateError):
    def __init__(self, position: int):
        self.position = position
        super().__init__(f"Loop body is not terminated at offset {position}")


class UndecodableName(TemplateError):
    def __init__(self, data: bytes):
        self.data = data
        super().__init__(f"Name {data!r} in compiled template is not valid UTF-8")


class StepLimitExceeded(TemplateError):
    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"Render exceeded the limit of {limit} statements")


class RenderDepthExceeded(TemplateError):
    pass


class InvalidPackage(TemplateError):
    pass
