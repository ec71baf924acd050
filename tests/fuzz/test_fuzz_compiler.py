import unittest
import pytest

import leaf_lang

hypothesis = pytest.importorskip("hypothesis")
strategies = hypothesis.strategies

# Biased towards tag syntax so the scanner gets past the first `#`
_TAG_SOUP = strategies.lists(
    strategies.sampled_from(
        ["#", "##", "(", ")", "{", "}", '"', ",", ".", " ", "\n", "self", "a", "xs",
         "if", "else", "loop", "raw", "embed", "import", "export", "extend", "part"]
    ),
    max_size=40,
).map("".join)


class FuzzTests(unittest.TestCase):
    def setUp(self) -> None:
        loader = leaf_lang.MemoryLoader({"part.leaf": "<#(a)>"})
        self.compiler = leaf_lang.LeafCompiler(loader=loader)

    def _compile_and_render(self, source) -> None:
        try:
            template = self.compiler.compile_source(source)
        except leaf_lang.CompileError:
            # Expected failure path for invalid templates.
            return
        context = {"a": True, "xs": ["x", {"a": 1}], "self": "me"}
        output = template.run(context, limits=leaf_lang.RenderLimits(max_steps=10_000))
        self.assertIsInstance(output, bytes)

    @hypothesis.given(strategies.text())
    def test_fuzz_text(self, trash_text: str) -> None:
        self._compile_and_render(trash_text)

    @hypothesis.given(_TAG_SOUP)
    def test_fuzz_tag_soup(self, source: str) -> None:
        self._compile_and_render(source)

    @hypothesis.given(strategies.binary())
    def test_fuzz_bytecode(self, code: bytes) -> None:
        try:
            leaf_lang.Template(code).run({"a": True}, limits=leaf_lang.RenderLimits(max_steps=10_000))
        except leaf_lang.TemplateError:
            return

if __name__ == "__main__":
    unittest.main(verbosity=2)
