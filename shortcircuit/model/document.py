# Copyright (c) 2023-2025 Datalayer, Inc.
# Distributed under the terms of the MIT License.

"""
Documents and replicas.

A ``Document`` is the authoring side: it owns one tree and the one changelog
its ``Node`` handles record into. A ``Replica`` is the receiving side: it owns
a copy of the same initial tree and replays flushed changes onto it.
"""

import logging
from typing import Any, Dict, List, Optional, Union

from .changes import Change, Changelog, RemoveNode, decode_batch
from .markup import parse_document, parse_fragment, render
from .node import Node
from .tree import Tree

logger = logging.getLogger(__name__)


class Document:
    def __init__(self, tree: Tree, root_id: int, changelog: Optional[Changelog] = None):
        self.tree = tree
        self.root_id = root_id
        self.changelog = changelog if changelog is not None else Changelog()

    @classmethod
    def from_html(cls, markup: str) -> "Document":
        """Create a document from a full HTML page."""
        tree, root_id = parse_document(markup)
        return cls(tree, root_id)

    @classmethod
    def from_fragment(cls, markup: str) -> "Document":
        """Create a document rooted at a parsed fragment instead of a whole page."""
        tree = Tree()
        return cls(tree, parse_fragment(markup, tree))

    def root(self) -> Node:
        return Node(self, self.root_id)

    def body(self) -> Node:
        return self.root().body()

    def node(self, node_id: int) -> Node:
        self.tree.node(node_id)
        return Node(self, node_id)

    def parse(self, markup: str) -> Node:
        """Parse a fragment into this document's tree, detached, ready for ``Node.insert``."""
        return Node(self, parse_fragment(markup, self.tree))

    def render(self) -> str:
        return render(self.tree, self.root_id)

    def structure(self) -> Dict[str, Any]:
        return self.tree.structure(self.root_id)


class Replica:
    """
    The receiving side of the protocol.

    Changes are applied in order without being recorded. A change whose path
    does not resolve raises ``StalePathError``; changes before it in the same
    batch stay applied and the ones after it are not attempted.
    """

    def __init__(self, document: Document):
        self.document = document
        self.applied = 0

    @classmethod
    def from_html(cls, markup: str) -> "Replica":
        return cls(Document.from_html(markup))

    def apply(self, change: Change) -> None:
        tree = self.document.tree
        result = change.apply(tree, self.document.root_id)
        if isinstance(change.op, RemoveNode) and result is not None:
            # Nothing on this side can refer to the removed subtree
            tree.release(result)
        self.applied += 1

    def apply_batch(self, payload: Union[str, bytes, List[Any]]) -> List[Change]:
        """Decode a flushed changelog and apply every change in it."""
        changes = decode_batch(payload)
        for change in changes:
            self.apply(change)
        logger.debug(f"[Replica] Applied batch of {len(changes)} changes")
        return changes
