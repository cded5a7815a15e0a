# Copyright (c) 2023-2025 Datalayer, Inc.
# Distributed under the terms of the MIT License.

"""
shortcircuit - record edits to an HTML tree and replay them on a remote copy
"""

from .exceptions import ParseError, SerializationError, ShortCircuitError, StalePathError
from .model import Change, Changelog, Document, Node, NodeKind, Replica, Tree

__version__ = "0.1.0"

__all__ = [
    "Change",
    "Changelog",
    "Document",
    "Node",
    "NodeKind",
    "ParseError",
    "Replica",
    "SerializationError",
    "ShortCircuitError",
    "StalePathError",
    "Tree",
]
