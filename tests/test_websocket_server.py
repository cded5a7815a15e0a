"""
Tests for the websocket session server and the mirroring client.

A real server is started on an ephemeral port for each test.
"""

import asyncio
import json

import pytest

from shortcircuit.constants import DEFAULT_TEMPLATE
from shortcircuit.model.changes import InsertNode, RemoveNode, SetAttr
from shortcircuit.model.document import Document
from shortcircuit.websocket.client import MirrorClient
from shortcircuit.websocket.server import Event, Session, counter_handler, parse_event, start_server


def server_url(server):
    port = server.sockets[0].getsockname()[1]
    return f"ws://127.0.0.1:{port}"


class TestParseEvent:

    def test_valid_event(self):
        assert parse_event('{"Type": "click", "Message": "increment"}') == Event("click", "increment")

    def test_bytes_event(self):
        assert parse_event(b'{"Type": "click"}') == Event("click", "")

    @pytest.mark.parametrize("message", ["not json", "[1, 2]", '{"Message": "x"}', '{"Type": 3}', b"\xff\xfe"])
    def test_invalid_events_are_ignored(self, message):
        assert parse_event(message) is None


class TestCounterHandler:

    def test_each_event_replaces_counter_text(self):
        session = Session(document=Document.from_html(DEFAULT_TEMPLATE))
        counter_handler(session, Event("click", "increment"))
        counter_handler(session, Event("click", "increment"))
        counter = session.document.body().by_id("counter")
        assert counter.text() == "2"
        ops = [change.op for change in session.document.changelog]
        assert ops == [RemoveNode(0), InsertNode(0, "1"), RemoveNode(0), InsertNode(0, "2")]

    def test_missing_counter_records_nothing(self):
        session = Session(document=Document.from_html("<html><body><p>no counter</p></body></html>"))
        counter_handler(session, Event("click"))
        assert len(session.document.changelog) == 0


class TestSessionServer:

    @pytest.mark.asyncio
    async def test_click_round_trip(self):
        server = await start_server("127.0.0.1", 0)
        try:
            async with MirrorClient(server_url(server)) as client:
                for expected in ("1", "2", "3"):
                    await client.send_event("click", "increment")
                    changes = await asyncio.wait_for(client.receive(), timeout=5)
                    assert [type(c.op) for c in changes] == [RemoveNode, InsertNode]
                    counter = client.replica.document.body().by_id("counter")
                    assert counter.text() == expected
        finally:
            server.close()
            await server.wait_closed()

    @pytest.mark.asyncio
    async def test_sessions_are_independent(self):
        server = await start_server("127.0.0.1", 0)
        try:
            async with MirrorClient(server_url(server)) as first, MirrorClient(server_url(server)) as second:
                await first.send_event("click")
                await asyncio.wait_for(first.receive(), timeout=5)
                await first.send_event("click")
                await asyncio.wait_for(first.receive(), timeout=5)
                await second.send_event("click")
                await asyncio.wait_for(second.receive(), timeout=5)
                assert first.replica.document.body().by_id("counter").text() == "2"
                assert second.replica.document.body().by_id("counter").text() == "1"
        finally:
            server.close()
            await server.wait_closed()

    @pytest.mark.asyncio
    async def test_malformed_messages_are_skipped(self):
        server = await start_server("127.0.0.1", 0)
        try:
            async with MirrorClient(server_url(server)) as client:
                await client.websocket.send("this is not json")
                await client.websocket.send(json.dumps({"Message": "no type"}))
                await client.send_event("click")
                await asyncio.wait_for(client.receive(), timeout=5)
                assert client.replica.document.body().by_id("counter").text() == "1"
        finally:
            server.close()
            await server.wait_closed()

    @pytest.mark.asyncio
    async def test_custom_async_handler(self):
        async def handler(session, event):
            await asyncio.sleep(0)
            session.document.body().set_attr("data-last", event.message)

        server = await start_server("127.0.0.1", 0, handler=handler)
        try:
            async with MirrorClient(server_url(server)) as client:
                await client.send_event("click", "hello")
                changes = await asyncio.wait_for(client.receive(), timeout=5)
                assert [c.op for c in changes] == [SetAttr("data-last", "hello")]
                assert client.replica.document.body().get("data-last") == "hello"
        finally:
            server.close()
            await server.wait_closed()

    @pytest.mark.asyncio
    async def test_handler_without_edits_sends_empty_batch(self):
        calls = []

        def handler(session, event):
            calls.append(event)
            if event.type == "edit":
                session.document.body().set_attr("data-edited", "yes")

        server = await start_server("127.0.0.1", 0, handler=handler)
        try:
            async with MirrorClient(server_url(server)) as client:
                await client.send_event("noop")
                assert await asyncio.wait_for(client.receive(), timeout=5) == []
                await client.send_event("edit")
                changes = await asyncio.wait_for(client.receive(), timeout=5)
                assert [c.op for c in changes] == [SetAttr("data-edited", "yes")]
                assert [e.type for e in calls] == ["noop", "edit"]
        finally:
            server.close()
            await server.wait_closed()


class TestMirrorClient:

    @pytest.mark.asyncio
    async def test_requires_connection(self):
        client = MirrorClient("ws://127.0.0.1:1")
        with pytest.raises(RuntimeError):
            await client.send_event("click")
