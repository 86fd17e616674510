"""Render engine: evaluates a render AST into a ``RenderTree``.

The engine is a pure function of the AST it is given. It reads no state
other than its own indentation width, so rendering the same AST twice
produces equal trees, which is what lets the TUI restore the cursor by
comparing trees across redraws.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from kubelens.render.ast import (
    CopyTarget,
    Heading,
    Indent,
    KeyValue,
    Line,
    MarkForDeletion,
    NavTarget,
    Node,
    Padding,
    Section,
    Sequence,
    Styled,
    Text,
)
from kubelens.render.errors import MalformedNode
from kubelens.render.tree import RangeIndex, RenderTree, SectionSpan, StyleSpan

DEFAULT_INDENT_WIDTH = 2

DELETE_MARK_GLYPH = "D "
KEY_STYLE = "key"
DELETE_MARK_STYLE = "delete-mark"


def _style_names(node: Styled) -> tuple[str, ...]:
    style = node.style
    if isinstance(style, str):
        return (style,)
    if isinstance(style, tuple) and all(isinstance(s, str) for s in style):
        return style
    raise MalformedNode(node, "Style must be a name or a tuple of names")


def _children(node: Section | Sequence) -> tuple[Node, ...]:
    if not isinstance(node.children, (tuple, list)):
        raise MalformedNode(node, "Children must be a tuple or list of nodes")
    return tuple(node.children)


def key_value_label(width: int, key: str) -> str:
    """Padded label used by ``KeyValue``: ``key:`` left-aligned in ``width``, then a space."""
    return f"{key}:".ljust(width) + " "


class _Builder:
    """Accumulates text and side tables for one render pass."""

    def __init__(self, indent_width: int) -> None:
        self.indent_width = indent_width
        self.chunks: list[str] = []
        self.length = 0
        self.depth = 0
        self.at_line_start = True
        self.section_depth = 0
        self.styles: list[StyleSpan] = []
        self.nav: list[tuple[int, int, Any]] = []
        self.copy: list[tuple[int, int, Any]] = []
        self.sections: list[SectionSpan | None] = []

    def _append(self, text: str) -> None:
        self.chunks.append(text)
        self.length += len(text)

    def write(self, text: str) -> None:
        for segment in text.splitlines(keepends=True):
            body = segment.rstrip("\n")
            if body:
                if self.at_line_start and self.depth:
                    self._append(" " * (self.depth * self.indent_width))
                self._append(body)
                self.at_line_start = False
            if segment.endswith("\n"):
                self.newline()

    def newline(self) -> None:
        self._append("\n")
        self.at_line_start = True

    def materialize(self) -> str:
        text = "".join(self.chunks)
        self.chunks = [text]
        return text

    def overlay(self, start: int, replacement: str) -> None:
        """Overwrite text in place; the length must not change."""
        text = self.materialize()
        end = start + len(replacement)
        self.chunks = [text[:start] + replacement + text[end:]]


class RenderEngine:
    """Interprets render ASTs.

    Args:
        indent_width: Spaces per ``Indent`` level.
    """

    def __init__(self, indent_width: int = DEFAULT_INDENT_WIDTH) -> None:
        if indent_width < 0:
            raise ValueError("indent_width must be non-negative")
        self.indent_width = indent_width
        self._handlers: dict[type, Callable[[_Builder, Any], None]] = {
            Text: self._text,
            Line: self._line,
            Heading: self._heading,
            Section: self._section,
            Padding: self._padding,
            Styled: self._styled,
            Indent: self._indent,
            KeyValue: self._key_value,
            NavTarget: self._nav_target,
            CopyTarget: self._copy_target,
            MarkForDeletion: self._mark_for_deletion,
            Sequence: self._sequence,
        }

    def render(self, node: Node) -> RenderTree:
        """Render ``node`` into a tree.

        Raises:
            MalformedNode: If any node in the tree breaks its contract.
        """
        builder = _Builder(self.indent_width)
        self._eval(builder, node)
        text = builder.materialize()
        return RenderTree(
            text=text,
            styles=tuple(builder.styles),
            navigation=RangeIndex.paint(len(text), builder.nav),
            copy=RangeIndex.paint(len(text), builder.copy),
            sections=tuple(s for s in builder.sections if s is not None),
        )

    def _eval(self, b: _Builder, node: Any) -> None:
        handler = self._handlers.get(type(node))
        if handler is None:
            raise MalformedNode(node, "Unrecognized node")
        handler(b, node)

    # -----------------------------------------------------------------------
    # Node handlers
    # -----------------------------------------------------------------------

    def _text(self, b: _Builder, node: Text) -> None:
        if not isinstance(node.text, str):
            raise MalformedNode(node, "Text must hold a string")
        b.write(node.text)

    def _line(self, b: _Builder, node: Line) -> None:
        self._eval(b, node.node)
        b.newline()

    def _heading(self, b: _Builder, node: Heading) -> None:
        raise MalformedNode(node, "Heading must be the first child of a Section")

    def _section(self, b: _Builder, node: Section) -> None:
        if not isinstance(node.id, str):
            raise MalformedNode(node, "Section id must be a string")
        children = _children(node)
        start = b.length
        slot = len(b.sections)
        b.sections.append(None)
        heading: tuple[int, int] | None = None

        b.section_depth += 1
        try:
            for i, child in enumerate(children):
                if isinstance(child, Heading) and i == 0:
                    heading_start = b.length
                    self._eval(b, child.node)
                    heading = (heading_start, b.length)
                else:
                    self._eval(b, child)
        finally:
            b.section_depth -= 1

        b.sections[slot] = SectionSpan(
            id=node.id,
            start=start,
            end=b.length,
            heading_start=heading[0] if heading else None,
            heading_end=heading[1] if heading else None,
            collapsed_by_default=bool(node.collapsed_by_default),
            depth=b.section_depth,
        )

    def _padding(self, b: _Builder, node: Padding) -> None:
        b.newline()

    def _styled(self, b: _Builder, node: Styled) -> None:
        style = _style_names(node)
        start = b.length
        self._eval(b, node.node)
        if b.length > start:
            b.styles.append(StyleSpan(start, b.length, style))

    def _indent(self, b: _Builder, node: Indent) -> None:
        b.depth += 1
        try:
            self._eval(b, node.node)
        finally:
            b.depth -= 1

    def _key_value(self, b: _Builder, node: KeyValue) -> None:
        if not isinstance(node.width, int) or isinstance(node.width, bool) or node.width < 0:
            raise MalformedNode(node, "KeyValue width must be a non-negative integer")
        if not isinstance(node.key, str) or not isinstance(node.value, str):
            raise MalformedNode(node, "KeyValue key and value must be plain text")
        self._eval(
            b,
            CopyTarget(
                node.value,
                Line(
                    Sequence(
                        (
                            Styled(KEY_STYLE, Text(key_value_label(node.width, node.key))),
                            Text(node.value),
                        )
                    )
                ),
            ),
        )

    def _nav_target(self, b: _Builder, node: NavTarget) -> None:
        self._record(b, b.nav, node.payload, node.node)

    def _copy_target(self, b: _Builder, node: CopyTarget) -> None:
        if not isinstance(node.text, str):
            raise MalformedNode(node, "CopyTarget text must be a string")
        self._record(b, b.copy, node.text, node.node)

    def _record(
        self,
        b: _Builder,
        table: list[tuple[int, int, Any]],
        payload: Any,
        inner: Node,
    ) -> None:
        # Reserve the slot before rendering so outer targets precede inner ones
        slot = len(table)
        table.append((0, 0, payload))
        start = b.length
        self._eval(b, inner)
        table[slot] = (start, b.length, payload)

    def _mark_for_deletion(self, b: _Builder, node: MarkForDeletion) -> None:
        start = b.length
        self._eval(b, node.node)
        end = b.length
        text = b.materialize()

        line_start = text.rfind("\n", 0, start) + 1
        while line_start < end:
            line_end = text.find("\n", line_start)
            if line_end == -1:
                line_end = len(text)
            width = min(len(DELETE_MARK_GLYPH), line_end - line_start)
            if width:
                b.overlay(line_start, DELETE_MARK_GLYPH[:width])
                b.styles.append(StyleSpan(line_start, line_start + 1, (DELETE_MARK_STYLE,)))
            line_start = line_end + 1

    def _sequence(self, b: _Builder, node: Sequence) -> None:
        for child in _children(node):
            self._eval(b, child)


def render(node: Node, indent_width: int = DEFAULT_INDENT_WIDTH) -> RenderTree:
    """Render ``node`` with a fresh engine."""
    return RenderEngine(indent_width=indent_width).render(node)
