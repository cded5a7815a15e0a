# Copyright (c) 2023-2025 Datalayer, Inc.
# Distributed under the terms of the MIT License.

"""
Changes: serializable records of tree edits

ARCHITECTURE OVERVIEW:
=====================

A ``Change`` pairs the positional path of the edited node with exactly one
operation:

- ``SetAttr(key, value)``: overwrite or append an attribute
- ``RemoveAttr(key)``: drop the first attribute named ``key``
- ``InsertNode(index, html)``: parse ``html`` and insert it as a child
- ``RemoveNode(index)``: detach the child at ``index``

Each operation knows how to ``apply`` itself to a node of a ``Tree`` without
recording anything. The authoring side (``Node``) applies the operation and
then appends a ``Change`` to the ``Changelog``; the receiving side
(``Replica``) resolves the path and applies the same operation.

WIRE FORMAT:
===========

A flushed changelog is a JSON array. Every record carries all operation keys,
exactly one of which is non-null::

    {"IPath": [1, 2], "Setattr": null, "Rmattr": null,
     "InsertNode": {"Index": 0, "Html": "1"}, "Rmnode": null}
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Iterator, List, Optional, Tuple, Union

from ..constants import KEY_INSERT, KEY_PATH, KEY_RMATTR, KEY_RMNODE, KEY_SETATTR
from ..exceptions import SerializationError, StalePathError
from .markup import parse_fragment
from .path import resolve
from .tree import Tree

logger = logging.getLogger(__name__)


###############################################################################
# Operations

@dataclass(frozen=True)
class SetAttr:
    key: str
    value: str

    def apply(self, tree: Tree, node_id: int) -> None:
        tree.set_attr(node_id, self.key, self.value)

    def to_wire(self) -> Dict[str, str]:
        return {"Key": self.key, "Val": self.value}


@dataclass(frozen=True)
class RemoveAttr:
    key: str

    def apply(self, tree: Tree, node_id: int) -> None:
        tree.remove_attr(node_id, self.key)

    def to_wire(self) -> str:
        return self.key


@dataclass(frozen=True)
class InsertNode:
    """Insert a subtree, carried as HTML so the receiver can parse it with its own parser."""
    index: int
    html: str

    def apply(self, tree: Tree, node_id: int) -> int:
        child_id = parse_fragment(self.html, tree)
        tree.insert_child(node_id, child_id, self.index)
        return child_id

    def to_wire(self) -> Dict[str, Any]:
        return {"Index": self.index, "Html": self.html}


@dataclass(frozen=True)
class RemoveNode:
    index: int

    def apply(self, tree: Tree, node_id: int) -> Optional[int]:
        """Returns the detached child, or None when ``index`` is out of range."""
        return tree.remove_child(node_id, self.index)

    def to_wire(self) -> int:
        return self.index


Operation = Union[SetAttr, RemoveAttr, InsertNode, RemoveNode]

_WIRE_KEYS: Tuple[Tuple[str, type], ...] = (
    (KEY_SETATTR, SetAttr),
    (KEY_RMATTR, RemoveAttr),
    (KEY_INSERT, InsertNode),
    (KEY_RMNODE, RemoveNode),
)


###############################################################################
# Change

@dataclass(frozen=True)
class Change:
    """One edit: the path of the edited node and the operation performed on it."""
    path: Tuple[int, ...]
    op: Operation

    def apply(self, tree: Tree, root_id: int) -> Optional[int]:
        """
        Apply this change to the tree rooted at ``root_id``.

        Returns the inserted or removed child for structural operations, None
        otherwise. Raises ``StalePathError`` when the path does not address a
        node of this tree.
        """
        target = resolve(tree, root_id, self.path)
        if target is None:
            raise StalePathError(self.path)
        return self.op.apply(tree, target)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {KEY_PATH: list(self.path)}
        for key, op_type in _WIRE_KEYS:
            data[key] = self.op.to_wire() if isinstance(self.op, op_type) else None
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Change":
        if not isinstance(data, dict):
            raise SerializationError(f"change must be an object, got {type(data).__name__}")
        path = data.get(KEY_PATH)
        if not isinstance(path, list) or not all(_is_int(i) for i in path):
            raise SerializationError(f"bad {KEY_PATH}: {path!r}")

        present = [key for key, _ in _WIRE_KEYS if data.get(key) is not None]
        if len(present) != 1:
            raise SerializationError(f"change must carry exactly one operation, got {present}")
        key = present[0]
        payload = data[key]
        try:
            if key == KEY_SETATTR:
                op = SetAttr(_expect_str(payload["Key"]), _expect_str(payload["Val"]))
            elif key == KEY_RMATTR:
                op = RemoveAttr(_expect_str(payload))
            elif key == KEY_INSERT:
                op = InsertNode(_expect_int(payload["Index"]), _expect_str(payload["Html"]))
            else:
                op = RemoveNode(_expect_int(payload))
        except (KeyError, TypeError) as e:
            raise SerializationError(f"bad {key} payload {payload!r}: {e}") from e
        return cls(tuple(path), op)


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _expect_int(value) -> int:
    if not _is_int(value):
        raise TypeError(f"expected int, got {value!r}")
    return value


def _expect_str(value) -> str:
    if not isinstance(value, str):
        raise TypeError(f"expected str, got {value!r}")
    return value


def decode_batch(payload: Union[str, bytes, List[Any]]) -> List[Change]:
    """Decode a flushed changelog (JSON text or already-loaded list)."""
    if isinstance(payload, (str, bytes)):
        try:
            payload = json.loads(payload)
        except json.JSONDecodeError as e:
            raise SerializationError(f"batch is not JSON: {e}") from e
    if not isinstance(payload, list):
        raise SerializationError(f"batch must be a list, got {type(payload).__name__}")
    return [Change.from_dict(item) for item in payload]


###############################################################################
# Changelog

class Changelog:
    """
    Changes applied to the local tree that have not been flushed to a peer yet.

    Not thread-safe: one document, one changelog, one task driving both.
    """

    def __init__(self):
        self.buffer: List[Change] = []

    def __len__(self) -> int:
        return len(self.buffer)

    def __iter__(self) -> Iterator[Change]:
        return iter(self.buffer)

    def append(self, change: Change) -> None:
        self.buffer.append(change)
        logger.debug(f"[Changelog] Recorded {type(change.op).__name__} at {list(change.path)}")

    def clear(self) -> None:
        self.buffer.clear()

    def to_list(self) -> List[Dict[str, Any]]:
        return [change.to_dict() for change in self.buffer]

    def serialize(self) -> str:
        try:
            return json.dumps(self.to_list())
        except (TypeError, ValueError) as e:
            raise SerializationError(f"marshal changelog: {e}") from e

    def flush(self, send: Callable[[str], Any], always: bool = False) -> bool:
        """
        Serialize the buffer, hand it to ``send`` and clear it.

        If serializing or sending raises, the buffer is kept so the flush can be
        retried. Returns False without calling ``send`` when there is nothing to flush,
        unless ``always`` is set, in which case an empty batch ``[]`` is sent.
        """
        if not self.buffer and not always:
            return False
        payload = self.serialize()
        send(payload)
        logger.debug(f"[Changelog] Flushed {len(self.buffer)} changes")
        self.clear()
        return True

    async def flush_async(self, send: Callable[[str], Awaitable[Any]], always: bool = False) -> bool:
        """Same as ``flush`` for an awaitable ``send`` such as a websocket's."""
        if not self.buffer and not always:
            return False
        payload = self.serialize()
        await send(payload)
        logger.debug(f"[Changelog] Flushed {len(self.buffer)} changes")
        self.clear()
        return True
