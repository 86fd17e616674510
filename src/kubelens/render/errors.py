"""Render-time errors."""

from __future__ import annotations

from typing import Any


class MalformedNode(Exception):
    """Raised when a render AST violates the node contract.

    This is a programming error in whoever built the AST. It aborts the
    whole render pass so that no partially rendered document is shown.

    Attributes:
        node: The offending node (or value found where a node was expected).
        reason: What was wrong with it.
    """

    def __init__(self, node: Any, reason: str) -> None:
        super().__init__(f"{reason}: {node!r}")
        self.node = node
        self.reason = reason
