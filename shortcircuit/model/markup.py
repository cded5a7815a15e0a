# Copyright (c) 2023-2025 Datalayer, Inc.
# Distributed under the terms of the MIT License.

"""
Markup bridge between HTML text and the tree arena.

Parsing uses html5lib (the HTML5 parsing algorithm, same as browsers) into
ElementTree and then copies the result into a ``Tree``. Rendering walks the
arena with an html5lib tree walker and feeds html5lib's serializer, so both
directions follow the same HTML rules the receiving browser uses.
"""

import logging
from typing import Optional, Tuple
from xml.etree import ElementTree

import html5lib
from html5lib.constants import namespaces, prefixes
from html5lib.serializer import HTMLSerializer
from html5lib.treewalkers.base import (
    COMMENT, DOCTYPE, DOCUMENT, ELEMENT, TEXT, NonRecursiveTreeWalker
)

from ..exceptions import ParseError, SerializationError
from .tree import NodeKind, Tree, TreeNode

logger = logging.getLogger(__name__)

# html5lib's etree builder uses these pseudo tags for non-element nodes
_FRAGMENT_TAG = "DOCUMENT_FRAGMENT"
_DOCUMENT_TAG = "DOCUMENT_ROOT"
_DOCTYPE_TAG = "<!DOCTYPE>"

# The parser drops one newline right after these start tags, so rendering adds it back
_NEWLINE_EATERS = frozenset(["pre", "textarea", "listing"])

_serializer = HTMLSerializer(
    quote_attr_values="always",
    omit_optional_tags=False,
    minimize_boolean_attributes=False,
)


###############################################################################
# Parsing

def _split_tag(tag: str) -> Tuple[Optional[str], str]:
    if tag.startswith("{"):
        namespace, _, name = tag[1:].partition("}")
        return namespace, name
    return None, tag


def _attr_name(key: str) -> str:
    """Turn etree's {namespace}name attribute keys into the prefixed name used in markup."""
    namespace, name = _split_tag(key)
    prefix = prefixes.get(namespace) if namespace else None
    if prefix is None or prefix == name:
        return name
    return f"{prefix}:{name}"


def _build(tree: Tree, element) -> int:
    """Copy an ElementTree element (without its tail) into ``tree``."""
    if element.tag is ElementTree.Comment:
        return tree.create(NodeKind.COMMENT, data=element.text or "")
    if element.tag == _DOCTYPE_TAG:
        attrs = [(k, element.get(k)) for k in ("publicId", "systemId") if element.get(k)]
        return tree.create(NodeKind.DOCTYPE, tag=element.text or "", attrs=attrs)
    if element.tag == _DOCUMENT_TAG:
        node_id = tree.create(NodeKind.DOCUMENT)
    else:
        node_id = tree.create(NodeKind.ELEMENT, tag=element.tag,
                              attrs=[(_attr_name(k), v) for k, v in element.attrib.items()])
    _build_children(tree, node_id, element)
    return node_id


def _build_children(tree: Tree, parent_id: int, element) -> None:
    if element.text:
        tree.append_child(parent_id, tree.create(NodeKind.TEXT, data=element.text))
    for child in element:
        tree.append_child(parent_id, _build(tree, child))
        if child.tail:
            tree.append_child(parent_id, tree.create(NodeKind.TEXT, data=child.tail))


def parse_fragment(markup: str, tree: Tree) -> int:
    """
    Parse an HTML fragment into ``tree`` and return the id of its last top-level node.

    The fragment is parsed as the content of a ``<div>``, so no implicit
    html/head/body wrapper is produced. The returned node is detached.
    """
    if not isinstance(markup, str):
        raise ParseError(f"markup must be str, got {type(markup).__name__}")
    try:
        fragment = html5lib.parseFragment(markup, treebuilder="etree", namespaceHTMLElements=False)
    except Exception as e:
        raise ParseError(f"parse fragment: {e}") from e

    if len(fragment):
        last = fragment[-1]
        if last.tail:
            return tree.create(NodeKind.TEXT, data=last.tail)
        return _build(tree, last)
    if fragment.text:
        return tree.create(NodeKind.TEXT, data=fragment.text)
    raise ParseError(f"fragment has no nodes: {markup!r}")


def parse_document(markup: str, tree: Optional[Tree] = None) -> Tuple[Tree, int]:
    """Parse a whole HTML document. Returns the tree and the id of the DOCUMENT node."""
    if not isinstance(markup, str):
        raise ParseError(f"markup must be str, got {type(markup).__name__}")
    tree = tree if tree is not None else Tree()
    try:
        builder = html5lib.getTreeBuilder("etree", fullTree=True)
        parser = html5lib.HTMLParser(tree=builder, namespaceHTMLElements=False)
        root = parser.parse(markup)
    except Exception as e:
        raise ParseError(f"parse document: {e}") from e
    document_id = _build(tree, root)
    logger.debug(f"[Markup] Parsed document into {len(tree)} nodes")
    return tree, document_id


###############################################################################
# Rendering

class ArenaTreeWalker(NonRecursiveTreeWalker):
    """html5lib tree walker over one subtree of a ``Tree``."""

    def __init__(self, arena: Tree, node_id: int):
        self.arena = arena
        super().__init__(arena.node(node_id))

    def getNodeDetails(self, node: TreeNode):
        if node.kind is NodeKind.DOCUMENT:
            return (DOCUMENT,)
        if node.kind is NodeKind.DOCTYPE:
            attrs = dict(node.attrs)
            return DOCTYPE, node.tag, attrs.get("publicId"), attrs.get("systemId")
        if node.kind is NodeKind.TEXT:
            if node.data.startswith("\n") and self._first_in_newline_eater(node):
                return TEXT, "\n" + node.data
            return TEXT, node.data
        if node.kind is NodeKind.COMMENT:
            return COMMENT, node.data
        namespace, name = _split_tag(node.tag)
        if namespace == namespaces["html"]:
            namespace = None
        attrs = {(None, key): value for key, value in node.attrs}
        return ELEMENT, namespace, name, attrs, node.first_child is not None

    def _first_in_newline_eater(self, node: TreeNode) -> bool:
        if node.parent is None or node.prev_sibling is not None:
            return False
        parent = self.arena.node(node.parent)
        namespace, name = _split_tag(parent.tag or "")
        return (parent.kind is NodeKind.ELEMENT and name in _NEWLINE_EATERS
                and namespace in (None, namespaces["html"]))

    def getFirstChild(self, node: TreeNode):
        return self._lookup(node.first_child)

    def getNextSibling(self, node: TreeNode):
        return self._lookup(node.next_sibling)

    def getParentNode(self, node: TreeNode):
        return self._lookup(node.parent)

    def _lookup(self, node_id: Optional[int]) -> Optional[TreeNode]:
        return None if node_id is None else self.arena.node(node_id)


def render(tree: Tree, node_id: int) -> str:
    """Render the subtree at ``node_id`` back to HTML text."""
    try:
        return _serializer.render(ArenaTreeWalker(tree, node_id))
    except Exception as e:
        raise SerializationError(f"render node {node_id}: {e}") from e
