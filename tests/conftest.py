import json
import os
from dataclasses import asdict
from typing import Callable, Optional

import pytest
import pytest_asyncio
from aiohttp import WSMsgType, web
from aiohttp.test_utils import TestServer
from redis.asyncio import Redis

from autorender.demo.models import DataTableMessage, Demo, SendTable, ServerClass
from autorender.utils.http import close_http_session

PROTOCOL = "autorender-v1"
TOKEN = "bot token/with?special&chars"


# DEMO FIXTURES -----------------------------------------------------------------------------------------------
class JsonDemoCodec:
    """Stores the demo object model as canonical JSON so output is byte-for-byte stable."""

    def __init__(self):
        self.size_hints = []

    def parse(self, data: bytes) -> Demo:
        raw = json.loads(data)
        messages = []
        for message in raw["messages"]:
            messages.append(
                DataTableMessage(
                    tables=[SendTable(**table) for table in message["tables"]],
                    server_classes=[ServerClass(**svc) for svc in message["server_classes"]],
                )
            )
        return Demo(
            game_directory=raw["game_directory"],
            map_name=raw["map_name"],
            size=len(data),
            messages=messages,
        )

    def save(self, demo: Demo, size_hint: int) -> bytes:
        self.size_hints.append(size_hint)
        return json.dumps(
            {
                "game_directory": demo.game_directory,
                "map_name": demo.map_name,
                "messages": [asdict(message) for message in demo.messages],
            },
            sort_keys=True,
        ).encode()


def make_demo(
    map_name: str = "sp_a1_intro",
    game_directory: str = "portal2",
    survey_index: int = 2,
    cameras: int = 1,
    data_tables: bool = True,
) -> Demo:
    """
    Build a demo with a handful of tables.

    With ``cameras=1`` the survey table is put at ``survey_index`` and its
    server class follows the camera class, like demos of old game versions.
    """
    tables = [
        SendTable("DT_BaseEntity", "DT_BaseEntity"),
        SendTable("DT_BasePlayer", "DT_BasePlayer"),
        SendTable("DT_PointCamera", "DT_PointCamera"),
        SendTable("DT_Portal_Player", "DT_Portal_Player"),
    ]
    server_classes = [
        ServerClass(0, "CBaseEntity", "DT_BaseEntity"),
        ServerClass(1, "CBasePlayer", "DT_BasePlayer"),
        ServerClass(2, "CPointCamera", "DT_PointCamera"),
    ]
    if cameras == 1 and survey_index is not None:
        tables.insert(survey_index, SendTable("DT_PointSurvey", "DT_PointSurvey"))
        server_classes.append(ServerClass(3, "CPointSurvey", "DT_PointSurvey"))
    elif cameras == 2:
        server_classes.append(ServerClass(3, "CPointCamera", "DT_PointCamera"))
    server_classes.append(ServerClass(len(server_classes), "CPortal_Player", "DT_Portal_Player"))

    messages = [DataTableMessage(tables, server_classes)] if data_tables else []
    return Demo(game_directory=game_directory, map_name=map_name, size=0, messages=messages)


@pytest.fixture
def codec():
    return JsonDemoCodec()


@pytest.fixture
def demo_bytes(codec):
    """Serialize a demo built with make_demo(**kwargs)."""

    def build(**kwargs) -> bytes:
        return codec.save(make_demo(**kwargs), 0)

    return build


# WEBSOCKET FIXTURES ------------------------------------------------------------------------------------------
class FakeServer:
    """A control-plane that accepts bot connections and records what it sees."""

    def __init__(self):
        self.app = web.Application()
        self.app.router.add_get("/connect/bot", self.connect)
        self.sockets: list[web.WebSocketResponse] = []
        self.protocols: list[str] = []
        self.pings = 0
        # Called with the request before the handshake completes.
        self.on_connect: Optional[Callable[[web.Request], None]] = None
        self.test_server = TestServer(self.app)

    @property
    def uri(self) -> str:
        return str(self.test_server.make_url("/connect/bot").with_scheme("ws"))

    async def connect(self, request: web.Request) -> web.WebSocketResponse:
        self.protocols.append(request.headers.get("Sec-WebSocket-Protocol", ""))
        if self.on_connect:
            self.on_connect(request)
        ws = web.WebSocketResponse(protocols=(PROTOCOL,), autoping=False)
        await ws.prepare(request)
        self.sockets.append(ws)

        async for message in ws:
            if message.type == WSMsgType.PING:
                self.pings += 1
                await ws.pong(message.data)
        return ws


@pytest_asyncio.fixture
async def server():
    fake = FakeServer()
    await fake.test_server.start_server()
    yield fake
    await fake.test_server.close()


# REDIS FIXTURES ----------------------------------------------------------------------------------------------
REDIS_URL = os.getenv("TEST_REDIS_URL", "redis://localhost:6379/2")


@pytest_asyncio.fixture
async def redis_client():
    """Redis client connected to database 2."""
    client = Redis.from_url(REDIS_URL, decode_responses=True)

    try:
        await client.ping()
    except Exception as e:
        await client.aclose()
        pytest.skip(f"Redis not available: {e}")

    await client.flushdb()
    yield client
    await client.flushdb()
    await client.aclose()


# HTTP API FIXTURES -------------------------------------------------------------------------------------------
class FakeApi:
    """The server's HTTP API. Responses are set per path, requests are recorded."""

    def __init__(self):
        self.app = web.Application()
        self.app.router.add_put("/api/v1/videos/render", self.handle)
        self.app.router.add_get("/api/v1/videos/status/{user_id}", self.handle)
        self.app.router.add_get("/api/v1/videos/random/{count}", self.handle)
        self.app.router.add_get("/api/v1/search", self.handle)
        self.responses: dict[str, tuple[int, object]] = {}
        self.requests: list[dict] = []
        self.test_server = TestServer(self.app)

    @property
    def base_api(self) -> str:
        return str(self.test_server.make_url("/")).rstrip("/")

    def respond(self, path: str, body: object, status: int = 200) -> None:
        self.responses[path] = (status, body)

    async def handle(self, request: web.Request) -> web.Response:
        form = dict(await request.post()) if request.method == "PUT" else {}
        self.requests.append(
            {
                "method": request.method,
                "path": request.path,
                "query": dict(request.query),
                "headers": dict(request.headers),
                "form": form,
            }
        )
        status, body = self.responses.get(request.path, (404, {"message": "Not found"}))
        if isinstance(body, str):
            return web.Response(text=body, status=status)
        return web.json_response(body, status=status)


@pytest_asyncio.fixture
async def api():
    fake = FakeApi()
    await fake.test_server.start_server()
    yield fake
    # The shared session is bound to this test's event loop.
    await close_http_session()
    await fake.test_server.close()
