"""Pytest configuration and shared fixtures."""

import asyncio
import json
from typing import Any, Dict, List, Union

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer
from websockets.asyncio.server import serve

from coinbase_pro.client import EVENTS

PASSPHRASE = "3628c235c9b5"
KEY = "0c9618dbe16af57d9316a6cc78f431cc"
SECRET = "QiM6irV9cW5NJo3xei+MLD0a4GLnsz+HSFwucGXdt+c8gZwRUxTltMfh09w8pZ2VHXKdM8LzqxhaMUg4WHSsvQ=="
TIMESTAMP = 1573653521.402


class FeedServer:
    """Local feed that records client frames and can push frames back."""

    def __init__(self):
        self.uri = ""
        self.frames: "asyncio.Queue[Dict[str, Any]]" = asyncio.Queue()
        self.connections: List[Any] = []
        self.ack_subscriptions = False

    async def handler(self, ws):
        self.connections.append(ws)
        async for raw in ws:
            frame = json.loads(raw)
            await self.frames.put(frame)
            if self.ack_subscriptions and frame["type"] == "subscribe":
                await ws.send(json.dumps({"type": "subscriptions", "channels": frame["channels"]}))

    async def next_frame(self, timeout: float = 2.0) -> Dict[str, Any]:
        return await asyncio.wait_for(self.frames.get(), timeout)

    async def push(self, data: Union[str, Dict[str, Any]]) -> None:
        await self.connections[-1].send(data if isinstance(data, str) else json.dumps(data))


class EventRecorder:
    """Records every event emitted by a client, in order."""

    def __init__(self, client):
        self.events: List[tuple] = []
        for event in EVENTS:
            client.on(event, self._recorder(event))

    def _recorder(self, event):
        def record(*args):
            self.events.append((event,) + args)
        return record

    def of(self, event: str) -> List[tuple]:
        return [e for e in self.events if e[0] == event]

    def names(self) -> List[str]:
        return [e[0] for e in self.events]

    async def wait_for(self, event: str, count: int = 1, timeout: float = 2.0) -> List[tuple]:
        async def poll():
            while len(self.of(event)) < count:
                await asyncio.sleep(0.01)
        await asyncio.wait_for(poll(), timeout)
        return self.of(event)


@pytest_asyncio.fixture
async def feed_server():
    server = FeedServer()
    async with serve(server.handler, "127.0.0.1", 0) as ws_server:
        port = ws_server.sockets[0].getsockname()[1]
        server.uri = f"ws://127.0.0.1:{port}"
        yield server


HEARTBEAT = {
    "type": "heartbeat",
    "sequence": 90,
    "last_trade_id": 20,
    "product_id": "BTC-USD",
    "time": "2014-11-07T08:19:28.464459Z",
}

TICKER = {
    "type": "ticker",
    "trade_id": 20153558,
    "sequence": 3262786978,
    "time": "2017-09-02T17:05:49.250000Z",
    "product_id": "BTC-USD",
    "price": "4388.01000000",
    "side": "buy",
    "last_size": "0.03000000",
    "best_bid": "4388",
    "best_ask": "4388.01",
}


class ApiRecorder:
    """Captures what the REST test server received."""

    def __init__(self):
        self.requests: List[Dict[str, Any]] = []
        self.url = ""

    async def handler(self, request: web.Request) -> web.StreamResponse:
        body = await request.text()
        self.requests.append({
            "method": request.method,
            "path": request.path,
            "query": request.rel_url.raw_query_string,
            "headers": request.headers.copy(),
            "body": body,
        })
        if request.path == "/missing":
            return web.json_response({"message": "NotFound"}, status=404)
        if request.path == "/broken":
            return web.Response(text="Internal failure", status=500)
        if request.path == "/text":
            return web.Response(text="plain text")
        if request.path == "/time":
            return web.json_response({"iso": "2015-01-07T23:47:25.201Z", "epoch": 1420674445.201})
        return web.json_response({"path": request.path, "query": request.query_string})


@pytest_asyncio.fixture
async def api_server():
    recorder = ApiRecorder()
    app = web.Application()
    app.router.add_route("*", "/{tail:.*}", recorder.handler)
    server = TestServer(app)
    await server.start_server()
    recorder.url = str(server.make_url("/"))
    yield recorder
    await server.close()


@pytest.fixture
def credentials():
    return {"key": KEY, "secret": SECRET, "passphrase": PASSPHRASE}
