# Copyright (c) 2023-2025 Datalayer, Inc.
# Distributed under the terms of the MIT License.

"""
Positional paths.

A path is the list of sibling indices to descend from a node's local root (the
nearest ancestor without a parent) down to the node. The local root itself is
not part of the path, so the path of a root is ``[]``.

Node ids cannot cross the wire, but both peers can compute and follow these
indices on their own copy of the tree. Paths are derived fresh every time: any
insertion or removal among an ancestor's children invalidates them.
"""

from typing import List, Optional, Sequence

from .tree import Tree

Path = List[int]


def derive(tree: Tree, node_id: int) -> Path:
    """Compute the path from the local root of ``node_id`` to ``node_id``."""
    path: Path = []
    node = tree.node(node_id)
    while node.parent is not None:
        index = 0
        sibling = node.prev_sibling
        while sibling is not None:
            index += 1
            sibling = tree.node(sibling).prev_sibling
        path.append(index)
        node = tree.node(node.parent)
    path.reverse()
    return path


def resolve(tree: Tree, root_id: int, path: Sequence[int]) -> Optional[int]:
    """Follow ``path`` down from ``root_id``. Returns None if the path runs out of nodes."""
    current = root_id
    for index in path:
        if index < 0:
            return None
        child = tree.node(current).first_child
        while child is not None and index > 0:
            child = tree.node(child).next_sibling
            index -= 1
        if child is None:
            return None
        current = child
    return current
