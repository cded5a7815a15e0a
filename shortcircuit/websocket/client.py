# Copyright (c) 2023-2025 Datalayer, Inc.
# Distributed under the terms of the MIT License.

"""WebSocket client keeping a local replica of a session's document."""

import json
import logging
from typing import List, Optional

from websockets.asyncio.client import ClientConnection, connect

from ..constants import DEFAULT_TEMPLATE, EVENT_MESSAGE, EVENT_TYPE
from ..model.changes import Change
from ..model.document import Replica

logger = logging.getLogger(__name__)


class MirrorClient:
    """
    Sends events to a shortcircuit server and replays the batches it answers with.

    The replica is seeded from the same template the server seeds its sessions
    with; both sides must agree on it or paths will not resolve.
    """

    def __init__(self, url: str, template: str = DEFAULT_TEMPLATE):
        self.url = url
        self.replica = Replica.from_html(template)
        self.websocket: Optional[ClientConnection] = None

    async def connect(self) -> None:
        self.websocket = await connect(self.url)
        logger.info(f"[Client] Connected to {self.url}")

    async def close(self) -> None:
        if self.websocket is not None:
            await self.websocket.close()
            self.websocket = None

    async def __aenter__(self) -> "MirrorClient":
        await self.connect()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def _require_connection(self) -> ClientConnection:
        if self.websocket is None:
            raise RuntimeError("MirrorClient is not connected")
        return self.websocket

    async def send_event(self, event_type: str, message: str = "") -> None:
        await self._require_connection().send(json.dumps({EVENT_TYPE: event_type, EVENT_MESSAGE: message}))

    async def receive(self) -> List[Change]:
        """
        Wait for the next batch and apply it to the replica.

        The server answers every event with one batch, ``[]`` when nothing changed.
        """
        payload = await self._require_connection().recv()
        changes = self.replica.apply_batch(payload)
        logger.debug(f"[Client] Applied {len(changes)} changes")
        return changes
