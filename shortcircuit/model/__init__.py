# Copyright (c) 2023-2025 Datalayer, Inc.
# Distributed under the terms of the MIT License.

from .changes import Change, Changelog, InsertNode, RemoveAttr, RemoveNode, SetAttr, decode_batch
from .document import Document, Replica
from .markup import parse_document, parse_fragment, render
from .node import Node
from .path import derive, resolve
from .tree import NodeKind, Tree

__all__ = [
    'Change', 'Changelog', 'InsertNode', 'RemoveAttr', 'RemoveNode', 'SetAttr', 'decode_batch',
    'Document', 'Replica', 'parse_document', 'parse_fragment', 'render', 'Node',
    'derive', 'resolve', 'NodeKind', 'Tree',
]
