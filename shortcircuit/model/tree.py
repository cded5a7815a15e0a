# Copyright (c) 2023-2025 Datalayer, Inc.
# Distributed under the terms of the MIT License.

"""
Tree: arena storage for an HTML-like node tree

ARCHITECTURE OVERVIEW:
=====================

Nodes live in a single arena owned by a ``Tree`` and are addressed by integer
ids. Every structural link is an id, never an object reference:

- parent
- first_child / last_child
- prev_sibling / next_sibling

All structural edits go through the ``Tree`` methods below, which keep the
links mutually consistent:

1. **Sibling links agree**: ``a.next_sibling == b`` iff ``b.prev_sibling == a``
2. **End pointers agree**: a parent's first/last child have no prev/next sibling
3. **Single ownership**: a node has at most one parent and never contains itself

These methods do NOT record anything. Recording edits for a remote peer is the
job of ``shortcircuit.model.node.Node``; a ``Replica`` calls these methods
directly when replaying edits it received.
"""

import itertools
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple


class NodeKind(Enum):
    """Kinds of node that can appear in a tree"""
    DOCUMENT = "document"
    DOCTYPE = "doctype"
    ELEMENT = "element"
    TEXT = "text"
    COMMENT = "comment"


@dataclass
class TreeNode:
    id: int
    kind: NodeKind
    # Element tag name, or the doctype name
    tag: Optional[str] = None
    # Text or comment content
    data: str = ""
    attrs: List[Tuple[str, str]] = field(default_factory=list)
    parent: Optional[int] = None
    first_child: Optional[int] = None
    last_child: Optional[int] = None
    prev_sibling: Optional[int] = None
    next_sibling: Optional[int] = None


class Tree:
    """
    Arena of ``TreeNode`` records.

    A tree may hold several disconnected subtrees at once: the document, plus
    freshly parsed fragments that have not been inserted yet, plus removed
    subtrees until they are released.
    """

    def __init__(self):
        self._nodes: Dict[int, TreeNode] = {}
        self._ids = itertools.count()

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id) -> bool:
        return node_id in self._nodes

    def node(self, node_id: int) -> TreeNode:
        try:
            return self._nodes[node_id]
        except KeyError:
            raise KeyError(f"unknown node id: {node_id}") from None

    def create(self, kind: NodeKind, tag: Optional[str] = None, data: str = "",
               attrs=()) -> int:
        """Create a detached node and return its id."""
        node_id = next(self._ids)
        self._nodes[node_id] = TreeNode(
            id=node_id, kind=kind, tag=tag, data=data, attrs=[(k, v) for k, v in attrs]
        )
        return node_id

    ###########################################################################
    # Navigation

    def children(self, node_id: int) -> Iterator[int]:
        next_id = self.node(node_id).first_child
        while next_id is not None:
            # Read the sibling before yielding so callers may detach the child
            following = self._nodes[next_id].next_sibling
            yield next_id
            next_id = following

    def child_count(self, node_id: int) -> int:
        return sum(1 for _ in self.children(node_id))

    def child_at(self, node_id: int, index: int) -> Optional[int]:
        """Return the child at ``index`` in document order, or None."""
        if index < 0:
            return None
        for i, child_id in enumerate(self.children(node_id)):
            if i == index:
                return child_id
        return None

    def local_root(self, node_id: int) -> int:
        """Return the nearest ancestor (or self) that has no parent."""
        node = self.node(node_id)
        while node.parent is not None:
            node = self._nodes[node.parent]
        return node.id

    def is_ancestor(self, ancestor_id: int, node_id: int) -> bool:
        """True if ``ancestor_id`` is ``node_id`` or one of its ancestors."""
        current: Optional[int] = node_id
        while current is not None:
            if current == ancestor_id:
                return True
            current = self._nodes[current].parent
        return False

    def descendants(self, node_id: int) -> Iterator[int]:
        """Pre-order walk of ``node_id`` and everything below it."""
        stack = [node_id]
        while stack:
            current = stack.pop()
            yield current
            stack.extend(reversed(list(self.children(current))))

    ###########################################################################
    # Attributes

    def get_attr(self, node_id: int, key: str) -> Optional[str]:
        for k, v in self.node(node_id).attrs:
            if k == key:
                return v
        return None

    def set_attr(self, node_id: int, key: str, value: str) -> None:
        """Overwrite ``key`` in place, or append it when absent."""
        attrs = self.node(node_id).attrs
        for i, (k, _) in enumerate(attrs):
            if k == key:
                attrs[i] = (key, value)
                return
        attrs.append((key, value))

    def remove_attr(self, node_id: int, key: str) -> bool:
        """Remove the first ``key`` pair. Returns False when there was none."""
        attrs = self.node(node_id).attrs
        for i, (k, _) in enumerate(attrs):
            if k == key:
                del attrs[i]
                return True
        return False

    ###########################################################################
    # Structure

    def detach(self, node_id: int) -> None:
        """Unlink ``node_id`` from its parent and siblings."""
        node = self.node(node_id)
        if node.parent is not None:
            parent = self._nodes[node.parent]
            if node.prev_sibling is not None:
                self._nodes[node.prev_sibling].next_sibling = node.next_sibling
            else:
                parent.first_child = node.next_sibling
            if node.next_sibling is not None:
                self._nodes[node.next_sibling].prev_sibling = node.prev_sibling
            else:
                parent.last_child = node.prev_sibling
        node.parent = None
        node.prev_sibling = None
        node.next_sibling = None

    def insert_child(self, parent_id: int, child_id: int, index: int) -> None:
        """
        Insert ``child_id`` under ``parent_id`` at ``index``.

        ``index <= 0`` prepends, ``index >= child_count`` appends, anything else
        inserts before the child currently at ``index``. The child is detached
        from wherever it was first.
        """
        parent = self.node(parent_id)
        child = self.node(child_id)
        if self.is_ancestor(child_id, parent_id):
            raise ValueError(f"cannot insert node {child_id} into its own subtree")
        self.detach(child_id)

        before_id = self.child_at(parent_id, max(index, 0))
        child.parent = parent_id
        if before_id is None:
            child.prev_sibling = parent.last_child
            if parent.last_child is not None:
                self._nodes[parent.last_child].next_sibling = child_id
            else:
                parent.first_child = child_id
            parent.last_child = child_id
            return

        before = self._nodes[before_id]
        child.prev_sibling = before.prev_sibling
        child.next_sibling = before_id
        if before.prev_sibling is not None:
            self._nodes[before.prev_sibling].next_sibling = child_id
        else:
            parent.first_child = child_id
        before.prev_sibling = child_id

    def append_child(self, parent_id: int, child_id: int) -> None:
        self.insert_child(parent_id, child_id, self.child_count(parent_id))

    def remove_child(self, parent_id: int, index: int) -> Optional[int]:
        """Detach the child at ``index``. Out-of-range is a no-op returning None."""
        child_id = self.child_at(parent_id, index)
        if child_id is None:
            return None
        self.detach(child_id)
        return child_id

    def release(self, node_id: int) -> int:
        """Drop a detached subtree from the arena. Returns the number of nodes freed."""
        if self.node(node_id).parent is not None:
            raise ValueError(f"node {node_id} is still attached")
        doomed = list(self.descendants(node_id))
        for doomed_id in doomed:
            del self._nodes[doomed_id]
        return len(doomed)

    def copy_subtree(self, source: "Tree", node_id: int) -> int:
        """Copy a subtree of ``source`` into this tree, detached. Returns the new id."""
        src = source.node(node_id)
        copy_id = self.create(src.kind, tag=src.tag, data=src.data, attrs=src.attrs)
        for child_id in source.children(node_id):
            self.append_child(copy_id, self.copy_subtree(source, child_id))
        return copy_id

    ###########################################################################
    # Inspection

    def text(self, node_id: int) -> str:
        """Concatenated text of all descendant text nodes."""
        return "".join(
            self._nodes[d].data for d in self.descendants(node_id)
            if self._nodes[d].kind is NodeKind.TEXT
        )

    def structure(self, node_id: int) -> Dict[str, Any]:
        """
        Plain-data description of a subtree, independent of node ids.

        Two subtrees are structurally identical iff their structures compare equal.
        """
        node = self.node(node_id)
        return {
            "kind": node.kind.value,
            "tag": node.tag,
            "data": node.data,
            "attrs": list(node.attrs),
            "children": [self.structure(c) for c in self.children(node_id)],
        }
