"""Context Values and the runtime context a template renders against.

A Context Value is one of: ``str``, ``int``, ``float``, ``bool``, ``bytes``,
:class:`TemplateSequence` or :class:`TemplateObject`. Host values are converted
once, up front, by :func:`make_context_value`; the interpreter only reads them.
"""

from collections.abc import Mapping, Sequence
from typing import Any, Iterable, Iterator, List, Optional

from .exceptions import ContextValueError


def _key(key: Any) -> str:
    if isinstance(key, str):
        return key
    if isinstance(key, (bytes, bytearray)):
        try:
            return bytes(key).decode("utf-8")
        except UnicodeDecodeError:
            raise ContextValueError(f"Object key {key!r} is not valid UTF-8") from None
    raise ContextValueError(f"Object keys must be strings, got {type(key).__name__}")


def make_context_value(value: Any) -> Any:
    # NOTE: bool is a subclass of int in Python; both pass through untouched.
    if value is None or isinstance(value, (str, bool, int, float, bytes)):
        return value
    if isinstance(value, (TemplateObject, TemplateSequence)):
        return value
    if isinstance(value, (bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, Mapping):
        return TemplateObject(value)
    if isinstance(value, (list, tuple)):
        return TemplateSequence(value)
    convert = getattr(value, "make_context_value", None)
    if callable(convert):
        return make_context_value(convert())
    raise ContextValueError(f"Cannot use {type(value).__name__} as a template value")


class TemplateObject(Mapping):
    """Ordered string-keyed mapping. Byte-string keys are stored decoded."""

    def __init__(self, items: Any = None, **kwargs: Any):
        self._storage: dict = {}
        pairs = items.items() if isinstance(items, Mapping) else (items or ())
        for key, value in pairs:
            self.set_value(key, value)
        for key, value in kwargs.items():
            self.set_value(key, value)

    def __getitem__(self, key: Any) -> Any:
        return self._storage[_key(key)]

    def __iter__(self) -> Iterator[str]:
        return iter(self._storage)

    def __len__(self) -> int:
        return len(self._storage)

    def __repr__(self) -> str:
        return f"TemplateObject({self._storage!r})"

    def set_value(self, key: Any, value: Any) -> None:
        """Inserts or replaces ``key``; ``None`` removes it."""
        key = _key(key)
        if value is None:
            self._storage.pop(key, None)
            return
        self._storage[key] = make_context_value(value)

    def remove(self, key: Any) -> None:
        self._storage.pop(_key(key), None)


class TemplateSequence(Sequence):
    def __init__(self, items: Iterable[Any] = ()):
        # None stays in place as an element that resolves to no value
        self._storage = tuple(make_context_value(item) for item in items)

    def __getitem__(self, index):
        return self._storage[index]

    def __len__(self) -> int:
        return len(self._storage)

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, TemplateSequence):
            return self._storage == other._storage
        if isinstance(other, (list, tuple)):
            return self._storage == tuple(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"TemplateSequence({list(self._storage)!r})"


def iterate_value(value: Any) -> Iterable[Any]:
    if value is None:
        return ()
    if isinstance(value, TemplateSequence):
        return value
    if isinstance(value, TemplateObject):
        return value.values()
    # A single value loops once
    return (value,)


def lookup_segment(value: Any, segment: str) -> Any:
    if isinstance(value, TemplateObject):
        return value.get(segment)
    if isinstance(value, TemplateSequence):
        if not (segment.isascii() and segment.isdigit()):
            return None
        index = int(segment)
        return value[index] if index < len(value) else None
    return None


class Context:
    """Variable bindings visible to one statement block.

    A loop body gets a child context that overlays a single binding on its
    parent; the parent is never modified.
    """

    __slots__ = ("_bindings", "_parent")

    def __init__(self, bindings: Any = None, **kwargs: Any):
        self._bindings = TemplateObject(bindings, **kwargs)
        self._parent: Optional["Context"] = None

    @classmethod
    def build(cls, **bindings: Any) -> "Context":
        return cls(bindings)

    def child(self, name: str, value: Any) -> "Context":
        child = Context()
        # Stored as-is so an absent element still shadows the parent binding
        child._bindings._storage[name] = value
        child._parent = self
        return child

    def lookup(self, name: str) -> Any:
        frame: Optional[Context] = self
        while frame is not None:
            if name in frame._bindings:
                return frame._bindings[name]
            frame = frame._parent
        return None

    def resolve(self, segments: List[str]) -> Any:
        value = self.lookup(segments[0])
        for segment in segments[1:]:
            if value is None:
                return None
            value = lookup_segment(value, segment)
        return value

    def names(self) -> List[str]:
        names: List[str] = []
        chain: List[Context] = []
        frame: Optional[Context] = self
        while frame is not None:
            chain.append(frame)
            frame = frame._parent
        for frame in reversed(chain):
            for name in frame._bindings:
                if name not in names:
                    names.append(name)
        return names

    def __contains__(self, name: str) -> bool:
        return self.lookup(name) is not None

    def __repr__(self) -> str:
        bindings = {name: self.lookup(name) for name in self.names()}
        return f"Context({bindings!r})"


def make_context(context: Any) -> Context:
    if isinstance(context, Context):
        return context
    return Context(context)
