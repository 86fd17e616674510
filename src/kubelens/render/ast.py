"""Declarative layout expressions (the render AST).

A document is described as a tree of the frozen node types below and
handed to ``RenderEngine.render``. The set of node types is closed: the
engine dispatches on the exact type and rejects anything else. Nodes are
built fresh for every redraw and never mutated.

Example:
    Section("pods", False, (
        Heading(Styled("heading", Text("Pods (1)"))),
        Indent(NavTarget(ref, Line(Text("web-1")))),
    ))
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

StyleSpec = Union[str, tuple[str, ...]]


@dataclass(frozen=True)
class Text:
    """Literal text, indented at the start of each line."""

    text: str


@dataclass(frozen=True)
class Line:
    """A node followed by a line break."""

    node: Node


@dataclass(frozen=True)
class Heading:
    """Collapsible heading; only valid as the first child of a Section."""

    node: Node


@dataclass(frozen=True)
class Section:
    """Addressable, independently collapsible region."""

    id: str
    collapsed_by_default: bool
    children: tuple[Node, ...]


@dataclass(frozen=True)
class Padding:
    """A blank line."""


@dataclass(frozen=True)
class Styled:
    """Applies a style (or several) over everything ``node`` emits."""

    style: StyleSpec
    node: Node


@dataclass(frozen=True)
class Indent:
    """Renders ``node`` one indentation step deeper."""

    node: Node


@dataclass(frozen=True)
class KeyValue:
    """A ``key: value`` line with the key padded to ``width`` columns."""

    width: int
    key: str
    value: str


@dataclass(frozen=True)
class NavTarget:
    """Associates the range emitted by ``node`` with a navigation payload."""

    payload: Any
    node: Node


@dataclass(frozen=True)
class CopyTarget:
    """Associates the range emitted by ``node`` with text to copy."""

    text: str
    node: Node


@dataclass(frozen=True)
class MarkForDeletion:
    """Overlays the deletion glyph on every line ``node`` emits."""

    node: Node


@dataclass(frozen=True)
class Sequence:
    """Children rendered in order."""

    children: tuple[Node, ...] = field(default_factory=tuple)


Node = Union[
    Text,
    Line,
    Heading,
    Section,
    Padding,
    Styled,
    Indent,
    KeyValue,
    NavTarget,
    CopyTarget,
    MarkForDeletion,
    Sequence,
]
