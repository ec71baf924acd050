import logging
from typing import Any, Optional

from .bytecode import END, CodeCursor, Element, Expression, Statement
from .context import Context, iterate_value
from .exceptions import (
    InvalidElement,
    InvalidExpression,
    InvalidStatement,
    RenderDepthExceeded,
    StepLimitExceeded,
    UnclosedLoop,
)
from .models import RenderLimits

log = logging.getLogger(__name__)


def render_scalar(value: Any) -> bytes:
    """Output bytes for a printed value.

    Numbers use ``str()``, so floats may come out in exponent form (``1e+20``, ``1e-07``).
    """
    # NOTE: bool is a subclass of int in Python; check bool before int.
    if isinstance(value, bool):
        return b"true" if value else b"false"
    if isinstance(value, (int, float)):
        return str(value).encode("ascii")
    if isinstance(value, str):
        return value.encode("utf-8")
    if isinstance(value, bytes):
        return value
    # Absent values, objects and sequences print nothing
    return b""


class LeafInterpreter:
    """Executes compiled template bytecode against a :class:`Context`.

    Each nested block (top level, branch, loop body) is run by a recursive
    call sharing one :class:`CodeCursor`; a block returns once it consumes
    its end marker.
    """

    def __init__(self, compiled: bytes, limits: Optional[RenderLimits] = None):
        self.compiled = compiled
        self.limits = limits if limits is not None else RenderLimits.from_env()
        self._steps = 0

    def run(self, context: Context) -> bytes:
        cursor = CodeCursor(self.compiled)
        output = bytearray()
        self._steps = 0
        try:
            self._run_block(cursor, context, output)
        except RecursionError:
            raise RenderDepthExceeded(
                "Host recursion limit reached while rendering nested blocks"
            ) from None
        log.debug("Rendered %d bytes in %d steps", len(output), self._steps)
        return bytes(output)

    def _step(self) -> None:
        self._steps += 1
        limit = self.limits.max_steps
        if limit is not None and self._steps > limit:
            raise StepLimitExceeded(limit)

    # --- Blocks & Elements ---

    def _run_block(self, cursor: CodeCursor, context: Context, output: bytearray) -> None:
        while True:
            element = cursor.read_byte()
            if element == END:
                return
            self._step()
            if element == Element.RAW_DATA:
                length = cursor.read_length()
                output.extend(cursor.read_bytes(length))
            elif element == Element.STATEMENT:
                self._run_statement(cursor, context, output)
            else:
                raise InvalidElement(element, cursor.position - 1)

    def _run_statement(self, cursor: CodeCursor, context: Context, output: bytearray) -> None:
        statement = cursor.read_byte()
        if statement == Statement.IF:
            self._run_if(cursor, context, output)
        elif statement == Statement.FOR:
            self._run_for(cursor, context, output)
        elif statement == Statement.PRINT:
            output.extend(render_scalar(self._evaluate(cursor, context)))
        else:
            raise InvalidStatement(statement, cursor.position - 1)

    def _evaluate(self, cursor: CodeCursor, context: Context) -> Any:
        expression = cursor.read_byte()
        if expression == Expression.VARIABLE:
            return context.resolve(cursor.read_variable_path())
        if expression == Expression.TRUE:
            return True
        raise InvalidExpression(expression, cursor.position - 1)

    # --- Flow Control ---

    def _run_if(self, cursor: CodeCursor, context: Context, output: bytearray) -> None:
        # Anything but a boolean `true` takes the false branch
        condition = self._evaluate(cursor, context) is True
        true_length = cursor.read_length()
        false_length = cursor.read_length()

        start = cursor.position
        cursor.require(true_length + false_length)
        end = start + true_length + false_length

        if condition:
            self._run_block(cursor, context, output)
        else:
            cursor.seek(start + true_length)
            if false_length > 0:
                self._run_block(cursor, context, output)
        cursor.seek(end)

    def _run_for(self, cursor: CodeCursor, context: Context, output: bytearray) -> None:
        variable = cursor.read_name()
        iterable = self._evaluate(cursor, context)
        length = cursor.read_length()

        start = cursor.position
        cursor.require(length)

        for element in iterate_value(iterable):
            cursor.seek(start)
            self._run_block(cursor, context.child(variable, element), output)

        cursor.seek(start + length)
        if cursor.at_end() or cursor.peek_byte() != END:
            raise UnclosedLoop(cursor.position)
        cursor.position += 1
