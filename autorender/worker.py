"""
Websocket connection to the autorender server.

The worker runs as its own asyncio task and never shares the socket with
the rest of the bot. Everything the server sends is pushed onto ``events``
as-is; the bot asks the worker to do things by putting ``Control`` values
onto ``requests``.

The connection is retried forever with a constant delay. The server is
expected to live on the same network, so a short fixed delay is used
instead of an exponential backoff.
"""

import asyncio
import contextlib
import enum
import logging
from dataclasses import dataclass
from typing import Optional, Union
from urllib.parse import quote

import aiohttp

logger = logging.getLogger("autorender.worker")

RETRY_DELAY = 0.1  # seconds
CONNECT_TIMEOUT = aiohttp.ClientTimeout(total=None, sock_connect=10)

# Expected while the server restarts, not worth reporting.
_EXPECTED_ERRORS = (ConnectionRefusedError, ConnectionResetError)


class State(enum.Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class EventKind(str, enum.Enum):
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    MESSAGE = "message"
    ERROR = "error"


class Control(enum.Enum):
    PING = "ping"
    RECONNECT = "reconnect"


@dataclass(frozen=True)
class WorkerEvent:
    kind: EventKind
    data: Union[str, bytes, None] = None
    error: Optional[BaseException] = None


class ServerWorker:
    def __init__(
        self,
        uri: str,
        protocol: str,
        token: str,
        retry_delay: float = RETRY_DELAY,
    ):
        self.uri = uri
        self.protocols = (protocol, quote(token, safe=""))
        self.retry_delay = retry_delay

        self.events: asyncio.Queue[WorkerEvent] = asyncio.Queue()
        self.requests: asyncio.Queue[Control] = asyncio.Queue()
        self.state = State.DISCONNECTED

        self._connected = False
        self._ws: Optional[aiohttp.ClientWebSocketResponse] = None
        self._redial = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

    @property
    def connected(self) -> bool:
        return self.state is State.CONNECTED

    def start(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(
                self.run(), name="autorender-worker"
            )
        return self._task

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None

    def request(self, control: Control) -> None:
        self.requests.put_nowait(control)

    async def run(self) -> None:
        logger.info("Running worker (server: %s)", self.uri)
        requests = asyncio.create_task(self._handle_requests())
        try:
            async with aiohttp.ClientSession(timeout=CONNECT_TIMEOUT) as session:
                while True:
                    await self._wait_for_retry()
                    await self._connect(session)
        finally:
            requests.cancel()
            await asyncio.gather(requests, return_exceptions=True)
            self.state = State.DISCONNECTED
            logger.info("Worker stopped")

    def _emit(self, kind: EventKind, data: Union[str, bytes, None] = None, error=None):
        self.events.put_nowait(WorkerEvent(kind, data, error))

    async def _wait_for_retry(self) -> None:
        # A reconnect request cuts the wait short.
        try:
            await asyncio.wait_for(self._redial.wait(), timeout=self.retry_delay)
        except asyncio.TimeoutError:
            pass
        self._redial.clear()

    async def _connect(self, session: aiohttp.ClientSession) -> None:
        self.state = State.CONNECTING
        try:
            async with session.ws_connect(self.uri, protocols=self.protocols) as ws:
                self._ws = ws
                self.state = State.CONNECTED
                # A reconnect requested while dialing is satisfied by this connection.
                self._redial.clear()
                self._connected = True
                self._emit(EventKind.CONNECTED)

                async for message in ws:
                    if message.type in (aiohttp.WSMsgType.TEXT, aiohttp.WSMsgType.BINARY):
                        logger.debug("Server: %s", message.data)
                        self._emit(EventKind.MESSAGE, message.data)
                    elif message.type == aiohttp.WSMsgType.ERROR:
                        self._emit(EventKind.ERROR, error=ws.exception())
                        break
        except aiohttp.ClientConnectorError as e:
            if not isinstance(e.os_error, _EXPECTED_ERRORS):
                self._emit(EventKind.ERROR, error=e)
        except _EXPECTED_ERRORS:
            pass
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            self._emit(EventKind.ERROR, error=e)
        finally:
            self._ws = None
            self.state = State.DISCONNECTED
            if self._connected:
                self._connected = False
                self._emit(EventKind.DISCONNECTED)

    async def _handle_requests(self) -> None:
        while True:
            control = await self.requests.get()
            match control:
                case Control.PING:
                    ws = self._ws
                    if ws is None or ws.closed:
                        logger.debug("Not connected, dropping ping")
                        continue
                    try:
                        await ws.ping()
                    except (ConnectionResetError, aiohttp.ClientError) as e:
                        logger.debug("Ping failed: %s", e)
                case Control.RECONNECT:
                    logger.info("Reconnect requested")
                    self._redial.set()
                    if self._ws is not None:
                        await self._ws.close()
                case _:
                    logger.warning("Unknown worker request %r", control)
