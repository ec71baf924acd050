import os
import struct
import unittest
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import patch

import leaf_lang
from leaf_lang.interpreter import LeafInterpreter, render_scalar


def _u32(n: int) -> bytes:
    return struct.pack("<I", n)


def _run(code: bytes, context=None, limits=None) -> bytes:
    return leaf_lang.Template(code).run(context, limits=limits)


class ScalarTests(unittest.TestCase):
    def test_render_scalar(self) -> None:
        self.assertEqual(render_scalar(True), b"true")
        self.assertEqual(render_scalar(False), b"false")
        self.assertEqual(render_scalar(0), b"0")
        self.assertEqual(render_scalar(-12), b"-12")
        self.assertEqual(render_scalar(0.5), b"0.5")
        self.assertEqual(render_scalar(1e20), b"1e+20")
        self.assertEqual(render_scalar("snail 🐌"), "snail 🐌".encode("utf-8"))
        self.assertEqual(render_scalar(b"\xff"), b"\xff")
        self.assertEqual(render_scalar(None), b"")
        self.assertEqual(render_scalar(leaf_lang.TemplateObject({"a": 1})), b"")
        self.assertEqual(render_scalar(leaf_lang.TemplateSequence([1])), b"")


class HandwrittenCodeTests(unittest.TestCase):
    def test_literal_true_condition(self) -> None:
        code = b"\x02\x01\x02" + _u32(7) + _u32(0) + b"\x01" + _u32(1) + b"A\x00" + b"\x00"
        self.assertEqual(_run(code), b"A")

    def test_false_branch_is_skipped_after_true(self) -> None:
        a_block = b"\x01" + _u32(1) + b"A\x00"
        b_block = b"\x01" + _u32(1) + b"B\x00"
        code = b"\x02\x01\x01c\x00\x00" + _u32(7) + _u32(7) + a_block + b_block + b"\x01" + _u32(1) + b"!" + b"\x00"
        self.assertEqual(_run(code, {"c": True}), b"A!")
        self.assertEqual(_run(code, {"c": False}), b"B!")

    def test_invalid_element(self) -> None:
        with self.assertRaises(leaf_lang.InvalidElement) as ctx:
            _run(b"\x07\x00")
        self.assertEqual(ctx.exception.opcode, 7)
        self.assertEqual(ctx.exception.position, 0)

    def test_invalid_statement(self) -> None:
        with self.assertRaises(leaf_lang.InvalidStatement) as ctx:
            _run(b"\x02\x09\x00")
        self.assertEqual(ctx.exception.position, 1)

    def test_invalid_expression(self) -> None:
        with self.assertRaises(leaf_lang.InvalidExpression) as ctx:
            _run(b"\x02\x03\x05\x00")
        self.assertEqual(ctx.exception.opcode, 5)

    def test_truncated_code(self) -> None:
        for code in [b"", b"\x01\x05\x00\x00\x00ab", b"\x01\x01\x00\x00\x00A", b"\x02\x03\x01name"]:
            with self.subTest(code=code):
                with self.assertRaises(leaf_lang.UnexpectedEndOfTemplate):
                    _run(code)

    def test_branch_lengths_past_end(self) -> None:
        with self.assertRaises(leaf_lang.UnexpectedEndOfTemplate):
            _run(b"\x02\x01\x02" + _u32(100) + _u32(0) + b"\x00\x00")

    def test_unclosed_loop(self) -> None:
        loop = b"\x02\x02x\x00\x01xs\x00\x00" + _u32(1) + b"\x00"
        with self.assertRaises(leaf_lang.UnclosedLoop):
            _run(loop)
        with self.assertRaises(leaf_lang.UnclosedLoop):
            _run(loop + b"\x07\x00", {"xs": [1, 2]})

    def test_undecodable_name(self) -> None:
        with self.assertRaises(leaf_lang.UndecodableName):
            _run(b"\x02\x03\x01\xff\x00\x00\x00")

    def test_empty_path(self) -> None:
        with self.assertRaises(leaf_lang.EmptyVariablePath):
            _run(b"\x02\x03\x01\x00\x00")

    def test_errors_are_template_errors(self) -> None:
        with self.assertRaises(leaf_lang.TemplateError):
            _run(b"\x09")


class LimitTests(unittest.TestCase):
    def setUp(self) -> None:
        self.template = leaf_lang.compile_source('#loop(xs, "x") {#(x)}')
        self.context = {"xs": list(range(10))}

    def test_step_limit(self) -> None:
        with self.assertRaises(leaf_lang.StepLimitExceeded) as ctx:
            self.template.run(self.context, limits=leaf_lang.RenderLimits(max_steps=5))
        self.assertEqual(ctx.exception.limit, 5)

    def test_enough_steps(self) -> None:
        output = self.template.run(self.context, limits=leaf_lang.RenderLimits(max_steps=11))
        self.assertEqual(output, b"0123456789")

    def test_limit_from_environment(self) -> None:
        with patch.dict(os.environ, {"LEAF_MAX_STEPS": "3"}):
            self.assertEqual(leaf_lang.RenderLimits.from_env().max_steps, 3)
            with self.assertRaises(leaf_lang.StepLimitExceeded):
                self.template.run(self.context)

    def test_unbounded(self) -> None:
        with patch.dict(os.environ, {"LEAF_MAX_STEPS": ""}):
            self.assertIsNone(leaf_lang.RenderLimits.from_env().max_steps)
        self.assertIsNone(leaf_lang.RenderLimits.unbounded().max_steps)

    def test_deep_nesting_is_wrapped(self) -> None:
        block = b"\x00"
        for _ in range(1500):
            block = b"\x02\x01\x02" + _u32(len(block)) + _u32(0) + block + b"\x00"
        with self.assertRaises(leaf_lang.RenderDepthExceeded) as ctx:
            _run(block)
        self.assertIn("Host recursion limit reached", str(ctx.exception))


class ReuseTests(unittest.TestCase):
    def test_rendering_is_repeatable(self) -> None:
        template = leaf_lang.compile_source('#loop(xs, "x") {#(x),}#(xs.0)')
        context = leaf_lang.Context({"xs": ["a", "b"]})
        first = template.run(context)
        self.assertEqual(template.run(context), first)
        self.assertEqual(first, b"a,b,a")
        self.assertEqual(context.names(), ["xs"])

    def test_concurrent_renders(self) -> None:
        template = leaf_lang.compile_source('#loop(xs, "x") {#(x)}')

        def render(n: int) -> str:
            return template.render({"xs": list(range(n))})

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(render, range(40)))
        for n, output in enumerate(results):
            self.assertEqual(output, "".join(str(i) for i in range(n)))

    def test_interpreter_can_be_used_directly(self) -> None:
        interpreter = LeafInterpreter(leaf_lang.compile_source("#(a)").compiled, leaf_lang.RenderLimits.unbounded())
        self.assertEqual(interpreter.run(leaf_lang.Context(a=1)), b"1")
        self.assertEqual(interpreter.run(leaf_lang.Context(a=2)), b"2")


class PackageTests(unittest.TestCase):
    def setUp(self) -> None:
        self.template = leaf_lang.compile_source("Hello, #(name)!")

    def test_package_round_trip(self) -> None:
        package = self.template.to_package()
        self.assertTrue(package.startswith(b"LEAF\x01"))
        self.assertEqual(leaf_lang.Template.from_package(package), self.template)

    def test_bad_header(self) -> None:
        with self.assertRaises(leaf_lang.InvalidPackage):
            leaf_lang.Template.from_package(b"NOPE" + self.template.to_package()[4:])

    def test_tampered_code(self) -> None:
        package = bytearray(self.template.to_package())
        package[-3] ^= 0xFF
        with self.assertRaises(leaf_lang.InvalidPackage):
            leaf_lang.Template.from_package(bytes(package))

    def test_truncated_package(self) -> None:
        package = self.template.to_package()
        for data in [package[:10], package[:-1]]:
            with self.subTest(length=len(data)):
                with self.assertRaises(leaf_lang.InvalidPackage):
                    leaf_lang.Template.from_package(data)


if __name__ == "__main__":  # pragma: no cover
    unittest.main(verbosity=2)
