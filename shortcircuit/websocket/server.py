# Copyright (c) 2023-2025 Datalayer, Inc.
# Distributed under the terms of the MIT License.

"""
WebSocket Server pushing HTML deltas to thin clients

ARCHITECTURE OVERVIEW:
=====================

One connection, one session:
- Each connection gets its own ``Document`` seeded from the template page
- The client renders the same template, so both sides start identical
- No state is shared between sessions

Session loop:
1. Wait for an inbound event ``{"Type": ..., "Message": ...}``
2. Run the event handler, which edits the document through ``Node`` handles
3. Flush the document's changelog as a single JSON message (``[]`` when nothing changed)
4. Repeat until the connection closes

WEBSOCKET MESSAGE TYPES:
=======================

Client → Server:
- event: ``{"Type": "click", "Message": "<sc-click value>"}``

Server → Client:
- batch: JSON array of changes (see ``shortcircuit.model.changes``)
"""

import inspect
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Optional, Union

import websockets
from websockets.asyncio.server import Server, ServerConnection, serve

from ..constants import COUNTER_ID, DEFAULT_HOST, DEFAULT_PORT, DEFAULT_TEMPLATE, EVENT_MESSAGE, EVENT_TYPE
from ..model.document import Document

logger = logging.getLogger(__name__)


@dataclass
class Event:
    type: str
    message: str = ""


@dataclass
class Session:
    """State owned by one connection."""
    document: Document
    conn_id: str = "unknown"
    state: Dict[str, Any] = field(default_factory=dict)
    events: int = 0


EventHandler = Callable[[Session, Event], Union[None, Awaitable[None]]]


def parse_event(message: Union[str, bytes]) -> Optional[Event]:
    """Decode an inbound event. Returns None for anything that is not a valid event."""
    if isinstance(message, bytes):
        try:
            message = message.decode("utf-8")
        except UnicodeDecodeError:
            logger.warning(f"[Server] Ignoring undecodable binary message: {len(message)} bytes")
            return None
    try:
        data = json.loads(message)
    except json.JSONDecodeError as e:
        logger.warning(f"[Server] JSON parse error: {e}")
        return None
    if not isinstance(data, dict) or not isinstance(data.get(EVENT_TYPE), str):
        logger.warning(f"[Server] Ignoring message without a {EVENT_TYPE}: {message!r}")
        return None
    payload = data.get(EVENT_MESSAGE)
    return Event(type=data[EVENT_TYPE], message=payload if isinstance(payload, str) else "")


def counter_handler(session: Session, event: Event) -> None:
    """Replace the text of the body's ``#counter`` element with the number of events seen."""
    counter = session.document.body().by_id(COUNTER_ID)
    if counter is None:
        logger.warning(f"[Server] No #{COUNTER_ID} element in session {session.conn_id}")
        return
    count = session.state.get("counter", 0) + 1
    session.state["counter"] = count
    removed = counter.remove(0)
    if removed is not None:
        session.document.tree.release(removed.id)
    counter.insert(session.document.parse(str(count)), 0)


async def run_session(conn: ServerConnection, template: str = DEFAULT_TEMPLATE,
                      handler: EventHandler = counter_handler) -> None:
    """Drive one connection until it closes. Does not close the socket itself."""
    conn_id = f"conn-{conn.remote_address[0]}:{conn.remote_address[1]}" if conn.remote_address else "unknown"
    session = Session(document=Document.from_html(template), conn_id=conn_id)
    logger.info(f"[Server] New session: {conn_id}")

    try:
        async for message in conn:
            event = parse_event(message)
            if event is None:
                continue
            session.events += 1
            logger.debug(f"[Server] {conn_id} event #{session.events}: {event.type} {event.message!r}")

            result = handler(session, event)
            if inspect.isawaitable(result):
                await result
            # Every event gets an answer, even an empty one, so clients can wait on it
            await session.document.changelog.flush_async(conn.send, always=True)

    except websockets.exceptions.ConnectionClosed:
        logger.info(f"[Server] Connection {conn_id} closed")
    except Exception as e:
        logger.error(f"[Server] Session {conn_id} failed: {e}", exc_info=True)
    finally:
        logger.info(f"[Server] Session {conn_id} ended after {session.events} events")


async def start_server(host: str = DEFAULT_HOST, port: int = DEFAULT_PORT,
                       template: str = DEFAULT_TEMPLATE,
                       handler: EventHandler = counter_handler) -> Server:
    # Fail fast on a template the sessions could not parse
    Document.from_html(template)

    async def connection_handler(conn: ServerConnection):
        await run_session(conn, template, handler)

    server = await serve(connection_handler, host, port)
    logger.info(f"[Server] Running on ws://{host}:{port}")
    return server
