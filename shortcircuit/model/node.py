# Copyright (c) 2023-2025 Datalayer, Inc.
# Distributed under the terms of the MIT License.

"""
Node: an api for tracking changes to an HTML document

A ``Node`` is a cursor over one node of a ``Document``. Reading through it is
free; every mutating method edits the live tree and appends a ``Change`` to the
document's ``Changelog`` so the edit can be replayed by a remote peer.

USAGE PATTERNS:
==============

✅ Navigation:
body = document.root().body()
counter = body.by_id("counter")

✅ Recorded edits:
counter.remove(0)
counter.insert_html("1", 0)
counter.set_attr("class", "bumped")

✅ Flush:
await document.changelog.flush_async(websocket.send)
"""

import logging
from typing import TYPE_CHECKING, Iterator, List, Optional, Tuple

from .changes import Change, InsertNode, Operation, RemoveAttr, RemoveNode, SetAttr
from .markup import parse_fragment, render
from .path import Path, derive
from .tree import NodeKind, Tree

if TYPE_CHECKING:
    from .document import Document

logger = logging.getLogger(__name__)


class Node:
    """A node of a document, paired with the document that records its edits."""

    __slots__ = ("document", "id")

    def __init__(self, document: "Document", node_id: int):
        self.document = document
        self.id = node_id

    def __eq__(self, other) -> bool:
        if not isinstance(other, Node):
            return NotImplemented
        return self.document is other.document and self.id == other.id

    def __hash__(self) -> int:
        return hash((id(self.document), self.id))

    def __repr__(self) -> str:
        return f"Node(id={self.id}, kind={self.kind.value}, tag={self.tag!r})"

    @property
    def tree(self) -> Tree:
        return self.document.tree

    @property
    def kind(self) -> NodeKind:
        return self.tree.node(self.id).kind

    @property
    def tag(self) -> Optional[str]:
        return self.tree.node(self.id).tag

    @property
    def attrs(self) -> List[Tuple[str, str]]:
        return list(self.tree.node(self.id).attrs)

    def get(self, key: str) -> Optional[str]:
        return self.tree.get_attr(self.id, key)

    def text(self) -> str:
        return self.tree.text(self.id)

    def html(self) -> str:
        return render(self.tree, self.id)

    def path(self) -> Path:
        return derive(self.tree, self.id)

    ###########################################################################
    # Navigation

    def _wrap(self, node_id: int) -> "Node":
        return Node(self.document, node_id)

    def parent(self) -> Optional["Node"]:
        parent_id = self.tree.node(self.id).parent
        return None if parent_id is None else self._wrap(parent_id)

    def children(self) -> Iterator["Node"]:
        """All the child nodes of this node, in document order."""
        for child_id in self.tree.children(self.id):
            yield self._wrap(child_id)

    def body(self) -> "Node":
        """If this is a document node, returns its <body>, otherwise returns self."""
        if self.kind is not NodeKind.DOCUMENT:
            return self
        html = next((c for c in self.children() if c.kind is NodeKind.ELEMENT), None)
        if html is None:
            return self
        for maybe in html.children():
            if maybe.kind is NodeKind.ELEMENT and maybe.tag == "body":
                return maybe
        return self

    def by_id(self, node_id: str) -> Optional["Node"]:
        """Fetches the direct child with the given id attribute, if it exists."""
        for child in self.children():
            if child.get("id") == node_id:
                return child
        return None

    ###########################################################################
    # Recorded edits

    def attached(self) -> bool:
        """True if this node hangs under the document root, where a peer can address it."""
        return self.tree.local_root(self.id) == self.document.root_id

    def _record(self, op: Operation) -> None:
        # Detached subtrees reach the peer as InsertNode markup, rendered on insertion
        if not self.attached():
            logger.debug(f"[Node] {type(op).__name__} on detached node {self.id}, not recorded")
            return
        self.document.changelog.append(Change(tuple(self.path()), op))

    def set_attr(self, key: str, value: str) -> None:
        """Sets the given attribute to the given value."""
        op = SetAttr(key, value)
        op.apply(self.tree, self.id)
        self._record(op)

    def remove_attr(self, key: str) -> bool:
        """Removes the given attribute. Nothing is recorded when it was absent."""
        if self.get(key) is None:
            return False
        op = RemoveAttr(key)
        op.apply(self.tree, self.id)
        self._record(op)
        return True

    def insert(self, subtree: "Node", index: int) -> "Node":
        """
        Inserts the given node at the given index.

        ``index <= 0`` is a prepend and ``index >= len(children)`` is an append.
        A node from another document is copied in; a node of this document is
        moved, its removal from the old parent being recorded first. Edits on
        nodes outside the document root change the tree but record nothing.
        Returns the handle of the inserted child.
        """
        if subtree.document is self.document:
            child_id = subtree.id
            if self.tree.is_ancestor(child_id, self.id):
                raise ValueError(f"cannot insert node {child_id} into its own subtree")
            old_parent = subtree.parent()
            if old_parent is not None:
                old_parent.remove(subtree.path()[-1])
        else:
            child_id = self.tree.copy_subtree(subtree.tree, subtree.id)
        op = InsertNode(index, render(self.tree, child_id))
        self.tree.insert_child(self.id, child_id, index)
        self._record(op)
        return self._wrap(child_id)

    def insert_html(self, markup: str, index: int) -> "Node":
        """Parses ``markup`` and inserts its last top-level node at ``index``."""
        return self.insert(self._wrap(parse_fragment(markup, self.tree)), index)

    def remove(self, index: int) -> Optional["Node"]:
        """
        Removes the child at the given index and returns it, detached.

        Out-of-range indices do nothing and record nothing.
        """
        op = RemoveNode(index)
        removed = op.apply(self.tree, self.id)
        if removed is None:
            logger.debug(f"[Node] remove({index}) out of range on node {self.id}, ignored")
            return None
        self._record(op)
        return self._wrap(removed)
