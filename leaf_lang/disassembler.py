import sys
from typing import List

from .bytecode import END, CodeCursor, Element, Expression, Statement
from .exceptions import TemplateError
from .template import Template


def _expression(cursor: CodeCursor) -> str:
    kind = cursor.read_byte()
    if kind == Expression.VARIABLE:
        return ".".join(cursor.read_variable_path())
    if kind == Expression.TRUE:
        return "TRUE"
    return f"UNKNOWN_EXPR 0x{kind:02x}"


def _block(cursor: CodeCursor, lines: List[str], depth: int) -> None:
    indent = "  " * (depth + 1)
    while not cursor.at_end():
        pc = cursor.position
        op = cursor.read_byte()
        if op == END:
            lines.append(f"{indent}{pc:04x}: END")
            return
        if op == Element.RAW_DATA:
            length = cursor.read_length()
            data = cursor.read_bytes(length)
            shown = data if len(data) <= 32 else data[:29] + b"..."
            lines.append(f"{indent}{pc:04x}: RAW {length} {shown!r}")
            continue
        if op != Element.STATEMENT:
            lines.append(f"{indent}{pc:04x}: UNKNOWN 0x{op:02x}")
            return

        stmt = cursor.read_byte()
        if stmt == Statement.PRINT:
            lines.append(f"{indent}{pc:04x}: PRINT {_expression(cursor)}")
        elif stmt == Statement.IF:
            condition = _expression(cursor)
            true_length = cursor.read_length()
            false_length = cursor.read_length()
            lines.append(f"{indent}{pc:04x}: IF {condition} (true {true_length}, false {false_length})")
            _block(cursor, lines, depth + 1)
            if false_length:
                lines.append(f"{indent}      ELSE")
                _block(cursor, lines, depth + 1)
        elif stmt == Statement.FOR:
            variable = cursor.read_name()
            iterable = _expression(cursor)
            length = cursor.read_length()
            lines.append(f"{indent}{pc:04x}: FOR {variable} IN {iterable} (body {length})")
            _block(cursor, lines, depth + 1)
            end = cursor.position
            closing = cursor.read_byte()
            lines.append(f"{indent}{end:04x}: END_FOR" if closing == END else f"{indent}{end:04x}: UNCLOSED_FOR")
        else:
            lines.append(f"{indent}{pc:04x}: UNKNOWN_STMT 0x{stmt:02x}")
            return


def disassemble(code: bytes) -> str:
    """Lists the instructions of compiled bytecode, one per line."""
    lines = [f"Code ({len(code)} bytes):"]
    cursor = CodeCursor(code)
    try:
        _block(cursor, lines, 0)
    except TemplateError as e:
        lines.append(f"  ! {e}")
    return "\n".join(lines)


def disassemble_file(filename: str) -> str:
    with open(filename, "rb") as f:
        data = f.read()
    template = Template.from_package(data)
    seal = data[5:37]
    return "\n".join(
        [f"Header: {data[:4].decode()}, Version: {data[4]}", f"Seal: {seal.hex()}", disassemble(template.compiled)]
    )


if __name__ == "__main__":
    print(disassemble_file(sys.argv[1]))
