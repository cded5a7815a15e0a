# Copyright (c) 2023-2025 Datalayer, Inc.
# Distributed under the terms of the MIT License.

from typing import Sequence


class ShortCircuitError(Exception):
    """Base class for errors raised by shortcircuit."""


class ParseError(ShortCircuitError):
    """Markup could not be turned into a subtree."""


class SerializationError(ShortCircuitError):
    """A change could not be encoded for, or decoded from, the wire."""


class StalePathError(ShortCircuitError):
    """
    A positional path no longer addresses a node.

    Raised on the receiving side when the local copy of the tree has diverged
    from the tree the path was derived on. Callers decide whether to drop the
    change, resync the whole tree or end the session.
    """

    def __init__(self, path: Sequence[int]):
        self.path = list(path)
        super().__init__(f"no node at path: {self.path}")
