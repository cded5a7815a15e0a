# Copyright (c) 2023-2025 Datalayer, Inc.
# Distributed under the terms of the MIT License.

"""
WebSocket transport: the session server authoring edits and a client mirroring them.
"""

from .client import MirrorClient
from .server import Event, Session, counter_handler, start_server

__all__ = ["MirrorClient", "Event", "Session", "counter_handler", "start_server"]
