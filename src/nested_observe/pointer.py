"""JSON Pointers (RFC 6901) for change record paths.

    compile(["a", "b/c", 0]) == "/a/b~1c/0"
    parse("/a/b~1c/0") == ["a", "b/c", "0"]
"""

from __future__ import annotations

from typing import Any, Iterable

from nested_observe.shape import MISSING, Composite


def escape(token: Any) -> str:
    return str(token).replace("~", "~0").replace("/", "~1")


def unescape(token: str) -> str:
    return token.replace("~1", "/").replace("~0", "~")


def compile(tokens: Iterable[Any]) -> str:
    """Join tokens into an absolute pointer. No tokens is the root ("")."""
    return "".join("/" + escape(token) for token in tokens)


def parse(pointer: str) -> list[str]:
    if pointer == "":
        return []
    if not pointer.startswith("/"):
        raise ValueError(f"Pointer must start with '/', given: {pointer!r}")
    return [unescape(token) for token in pointer[1:].split("/")]


def resolve(root: Any, pointer: str) -> Any:
    """Follow pointer from root through composite lookups.

    Tokens address sequences by position. Raises KeyError when a location
    does not exist.
    """
    node = root
    for token in parse(pointer):
        if not isinstance(node, Composite):
            raise KeyError(pointer)
        value = node._lookup(_key_for(node, token))
        if value is MISSING:
            raise KeyError(pointer)
        node = value
    return node


def _key_for(node: Composite, token: str) -> Any:
    if node._sequence:
        return int(token) if token.isdigit() else token
    if node._lookup(token) is MISSING:
        # Mapping keys are not always strings.
        for key, _ in node._children():
            if str(key) == token:
                return key
    return token
