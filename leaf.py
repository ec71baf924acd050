"""Leaf entrypoint module exposing the public API and CLI."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys

from leaf_lang import (
    ARGUMENTS_GRAMMAR,
    CompileContext,
    CompileOptions,
    Context,
    DiskLoader,
    LeafCompiler,
    LeafError,
    MemoryLoader,
    RenderLimits,
    Template,
    TemplateObject,
    TemplateSequence,
    compile_file,
    compile_source,
    disassemble,
)
from leaf_lang.disassembler import disassemble_file

__all__ = [
    "ARGUMENTS_GRAMMAR",
    "CompileContext",
    "CompileOptions",
    "Context",
    "DiskLoader",
    "LeafCompiler",
    "LeafError",
    "MemoryLoader",
    "RenderLimits",
    "Template",
    "TemplateObject",
    "TemplateSequence",
    "compile_file",
    "compile_source",
    "disassemble",
    "main",
]


def _compile(args: argparse.Namespace) -> Template:
    entry_path = os.path.abspath(args.template)
    base = args.base or os.path.dirname(entry_path)
    compiler = LeafCompiler(options=CompileOptions(extension=args.extension))
    return compiler.compile_file(os.path.relpath(entry_path, base), base)


def _load_context(path: str | None) -> Context:
    if not path:
        return Context()
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise LeafError(f"Context file must hold a JSON object: {path}")
    return Context(data)


def cmd_render(args: argparse.Namespace) -> None:
    template = _compile(args)
    limits = RenderLimits(max_steps=args.max_steps) if args.max_steps else None
    output = template.run(_load_context(args.context), limits=limits)
    if args.out:
        with open(args.out, "wb") as f:
            f.write(output)
    else:
        sys.stdout.buffer.write(output)
        sys.stdout.flush()


def cmd_compile(args: argparse.Namespace) -> None:
    template = _compile(args)
    out = args.out or os.path.splitext(args.template)[0] + ".lbc"
    with open(out, "wb") as f:
        f.write(template.to_package())
    print(f"[leaf] compiled: {args.template} -> {out} ({len(template)} bytes)")


def cmd_disasm(args: argparse.Namespace) -> None:
    print(disassemble_file(args.file))


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="leaf", description="Leaf template compiler")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log compile and render details")
    sub = parser.add_subparsers(dest="cmd", required=True)

    def add_template_args(p: argparse.ArgumentParser) -> None:
        p.add_argument("template", help="Path to the template file")
        p.add_argument("--base", help="Directory embeds and extends resolve against (default: template dir)")
        p.add_argument("--extension", default=".leaf", help="Suffix for #embed/#extend names")

    p_render = sub.add_parser("render", help="Compile and render a template")
    add_template_args(p_render)
    p_render.add_argument("--context", help="JSON file with the top-level bindings")
    p_render.add_argument("--max-steps", type=int, default=None, help="Abort after this many statements")
    p_render.add_argument("--out", help="Write output here instead of stdout")
    p_render.set_defaults(func=cmd_render)

    p_compile = sub.add_parser("compile", help="Compile a template to a packaged .lbc file")
    add_template_args(p_compile)
    p_compile.add_argument("--out", help="Output file (default: <template>.lbc)")
    p_compile.set_defaults(func=cmd_compile)

    p_disasm = sub.add_parser("disasm", help="List the bytecode of a packaged .lbc file")
    p_disasm.add_argument("file", help="Packaged template")
    p_disasm.set_defaults(func=cmd_disasm)

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(message)s",
    )

    try:
        args.func(args)
    except (LeafError, OSError, ValueError) as e:
        print(f"FATAL ERROR\n{e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
