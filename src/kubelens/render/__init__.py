"""Declarative rendering: AST, engine, and compiled render trees.

Layouts live in ``kubelens.render.layout`` and are imported from there
directly, since they depend on the state package.
"""

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
from kubelens.render.engine import RenderEngine, render
from kubelens.render.errors import MalformedNode
from kubelens.render.tree import IndexedRange, RangeIndex, RenderTree, SectionSpan, StyleSpan

__all__ = [
    "CopyTarget",
    "Heading",
    "Indent",
    "IndexedRange",
    "KeyValue",
    "Line",
    "MalformedNode",
    "MarkForDeletion",
    "NavTarget",
    "Node",
    "Padding",
    "RangeIndex",
    "RenderEngine",
    "RenderTree",
    "Section",
    "SectionSpan",
    "Sequence",
    "StyleSpan",
    "Styled",
    "Text",
    "render",
]
