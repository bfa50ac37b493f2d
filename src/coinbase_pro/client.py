"""
Coinbase Pro WebSocket Feed Client Implementation
"""

import asyncio
import inspect
import json
from typing import Any, Dict, Iterable, List, Optional, Union

from loguru import logger
from websockets.asyncio.client import connect
from websockets.exceptions import ConnectionClosed, ConnectionClosedError

from .config import DEFAULT_CHANNELS, SANDBOX_WS_URI, WS_URI, Credentials
from .exceptions import (
    FeedError,
    InvalidStateError,
    NotInitializedError,
    TransportError,
)
from .messages import UnknownMessage, parse_message
from .signer import websocket_auth
from .types import (
    ChannelLike,
    Closing,
    Connecting,
    Connection,
    ConnectionState,
    Disconnected,
    EventHandler,
    Open,
    channels_to_wire,
    normalize_channels,
)

EVENTS = ("open", "close", "message", "error")


class WebsocketClient:
    """
    WebSocket client for the Coinbase Pro feed

    Owns at most one connection at a time and republishes its frames as
    `open`, `close`, `message` and `error` events. Subscriptions are not
    restored after a drop; call connect() again after `close`.

    Example:
        client = WebsocketClient(channels=[Channel("ticker", ["BTC-USD"])])
        client.on("message", lambda msg: print(msg))
        async with client:
            await asyncio.sleep(10)
    """

    def __init__(
        self,
        ws_uri: Optional[str] = None,
        channels: Optional[Union[ChannelLike, Iterable[ChannelLike]]] = None,
        product_ids: Optional[Union[str, Iterable[str]]] = None,
        sandbox: bool = False,
        key: Optional[str] = None,
        secret: Optional[str] = None,
        passphrase: Optional[str] = None,
        credentials: Optional[Credentials] = None,
        open_timeout: Optional[float] = None,
    ):
        """
        Initialize Coinbase Pro WebSocket client

        Args:
            ws_uri: Feed URL. Takes precedence over `sandbox`.
            channels: Channels subscribed to on connect
            product_ids: Products sent alongside every control message
            sandbox: If True, connect to the sandbox feed
            key: API key
            secret: Base64-encoded API secret
            passphrase: API passphrase
            credentials: Alternative to key/secret/passphrase
            open_timeout: Handshake timeout in seconds, or None to wait
                indefinitely
        """
        self.ws_uri = ws_uri or (SANDBOX_WS_URI if sandbox else WS_URI)
        self.channels = tuple(
            normalize_channels(DEFAULT_CHANNELS if channels is None else channels)
        )
        if isinstance(product_ids, str):
            product_ids = [product_ids]
        self.product_ids = tuple(product_ids or ())
        self.credentials = credentials or Credentials.create(key, secret, passphrase)
        self.open_timeout = open_timeout

        # Channels most recently passed to connect()/subscribe()
        self.last_channels = self.channels

        self._conn: Connection = Disconnected()
        self._handlers: Dict[str, List[EventHandler]] = {event: [] for event in EVENTS}
        self._receive_task: Optional[asyncio.Task] = None
        self._ready: Optional[asyncio.Event] = None

    async def __aenter__(self):
        """Async context manager entry"""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit"""
        await self.disconnect()

    @property
    def state(self) -> ConnectionState:
        return self._conn.state

    @property
    def is_connected(self) -> bool:
        """Check if the WebSocket is open"""
        return isinstance(self._conn, Open)

    def on(self, event: str, handler: EventHandler) -> EventHandler:
        """
        Register a handler for an event

        Args:
            event: One of "open", "close", "message", "error"
            handler: Callable or coroutine function. `message` handlers
                receive the parsed message, `error` handlers the error.

        Returns:
            The handler, so this can be used as a decorator
        """
        self._check_event(event)
        self._handlers[event].append(handler)
        return handler

    def once(self, event: str, handler: EventHandler) -> EventHandler:
        """Register a handler that is removed after its first call"""
        self._check_event(event)

        def wrapper(*args):
            self.remove_listener(event, wrapper)
            return handler(*args)

        wrapper.listener = handler
        self._handlers[event].append(wrapper)
        return handler

    def remove_listener(self, event: str, handler: EventHandler) -> None:
        self._check_event(event)
        for registered in self._handlers[event]:
            if registered is handler or getattr(registered, "listener", None) is handler:
                self._handlers[event].remove(registered)
                return

    async def connect(self, channels: Optional[Union[ChannelLike, Iterable[ChannelLike]]] = None) -> None:
        """
        Open the feed connection and subscribe

        Returns once the connection is open and the initial subscribe has
        been written. A failed initial subscribe is emitted as `error`.

        Args:
            channels: Channels to subscribe to. Defaults to the configured ones.

        Raises:
            InvalidStateError: If a connect or disconnect is in flight
            TransportError: If the handshake fails
        """
        if isinstance(self._conn, Open):
            logger.warning("Already connected to WebSocket")
            return
        if not isinstance(self._conn, Disconnected):
            raise InvalidStateError(self._conn.state)

        channels = self.channels if channels is None else normalize_channels(channels)

        self._conn = Connecting()
        logger.info(f"Connecting to {self.ws_uri}")
        try:
            transport = await connect(self.ws_uri, open_timeout=self.open_timeout)
        except asyncio.CancelledError:
            self._conn = Disconnected()
            raise
        except Exception as e:
            logger.error(f"Failed to connect: {e}")
            self._conn = Disconnected()
            error = TransportError(f"Failed to connect to WebSocket: {e}")
            await self._emit("error", error)
            await self._emit("close")
            raise error from e

        self._conn = Open(transport)
        logger.success(f"Connected to {self.ws_uri}")

        ready = self._ready = asyncio.Event()
        self._receive_task = asyncio.create_task(
            self._receive_messages(transport, ready)
        )
        try:
            await self._emit("open")
            if isinstance(self._conn, Open) and self._conn.transport is transport:
                await self._subscribe_on_open(channels)
        finally:
            ready.set()

    async def disconnect(self) -> None:
        """
        Close the feed connection

        Returns once the connection is closed and `close` has been emitted.

        Raises:
            InvalidStateError: If a connect or disconnect is in flight
        """
        if isinstance(self._conn, Disconnected):
            logger.debug("Not connected to WebSocket")
            return
        if not isinstance(self._conn, Open):
            raise InvalidStateError(self._conn.state)

        transport = self._conn.transport
        task = self._receive_task
        self._conn = Closing(transport)
        logger.info("Closing WebSocket connection")

        if self._ready is not None:
            self._ready.set()
        await transport.close()

        # From inside a handler the receive loop finishes after it returns
        if task is not None and task is not asyncio.current_task():
            await task

    async def subscribe(self, channels: Union[ChannelLike, Iterable[ChannelLike]]) -> None:
        """
        Subscribe to channels

        Args:
            channels: A channel or list of channels

        Raises:
            NotInitializedError: If there is no open connection
            TransportError: If the message could not be written
        """
        channels = normalize_channels(channels)
        await self._send_control("subscribe", channels)
        self.last_channels = tuple(channels)
        logger.info(f"Subscribed to {channels_to_wire(channels)}")

    async def unsubscribe(self, channels: Union[ChannelLike, Iterable[ChannelLike]]) -> None:
        """
        Unsubscribe from channels

        Raises:
            NotInitializedError: If there is no open connection
            TransportError: If the message could not be written
        """
        channels = normalize_channels(channels)
        await self._send_control("unsubscribe", channels)
        logger.info(f"Unsubscribed from {channels_to_wire(channels)}")

    def _check_event(self, event: str) -> None:
        if event not in self._handlers:
            raise ValueError(f"Unknown event {event!r}, expected one of {EVENTS}")

    async def _emit(self, event: str, *args: Any) -> None:
        for handler in list(self._handlers[event]):
            try:
                result = handler(*args)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.opt(exception=e).error(f"Error in {event} handler: {e}")
                # close is the last event of a generation
                if event not in ("error", "close"):
                    await self._emit("error", e)

    async def _subscribe_on_open(self, channels: List[ChannelLike]) -> None:
        try:
            await self.subscribe(channels)
        except Exception as e:
            logger.error(f"Failed to subscribe on connect: {e}")
            await self._emit("error", e)

    def _build_control(self, msg_type: str, channels: List[ChannelLike]) -> Dict[str, Any]:
        message: Dict[str, Any] = {"type": msg_type, "channels": channels_to_wire(channels)}
        if self.product_ids:
            message["product_ids"] = list(self.product_ids)
        if self.credentials:
            message.update(websocket_auth(self.credentials))
        return message

    async def _send_control(self, msg_type: str, channels: List[ChannelLike]) -> None:
        """Write a subscribe/unsubscribe message to the open connection"""
        conn = self._conn
        if isinstance(conn, Closing):
            raise TransportError(f"Cannot {msg_type}: WebSocket is closing")
        if not isinstance(conn, Open):
            raise NotInitializedError("WebSocket not connected. Call connect() first.")

        message = self._build_control(msg_type, channels)
        try:
            await conn.transport.send(json.dumps(message))
        except ConnectionClosed as e:
            logger.error(f"Error sending message: {e}")
            code = e.rcvd.code if e.rcvd else None
            raise TransportError(f"Failed to send {msg_type}: {e}", code=code) from e
        logger.debug(f"Sent {msg_type} message")

    async def _receive_messages(self, transport, ready: asyncio.Event) -> None:
        """
        Receive frames until the connection closes, then emit `close`
        """
        await ready.wait()
        try:
            async for raw in transport:
                await self._handle_message(raw)
        except ConnectionClosedError as e:
            code = e.rcvd.code if e.rcvd else None
            reason = e.rcvd.reason if e.rcvd else ""
            logger.error(f"Connection closed abnormally: {e}")
            await self._emit(
                "error",
                TransportError(f"Connection closed abnormally: {e}", code=code, reason=reason),
            )
        except asyncio.CancelledError:
            logger.info("Receive task cancelled")
            self._conn = Disconnected()
            raise

        self._conn = Disconnected()
        if self._receive_task is asyncio.current_task():
            self._receive_task = None
        logger.info("Disconnected from Coinbase Pro WebSocket")
        await self._emit("close")

    async def _handle_message(self, raw: Union[str, bytes]) -> None:
        """
        Parse and classify an inbound frame

        Args:
            raw: Raw frame from the WebSocket
        """
        try:
            data = json.loads(raw)
        except ValueError as e:
            logger.error(f"Failed to parse message: {e}")
            await self._emit("error", e)
            return

        try:
            message = parse_message(data)
        except FeedError as e:
            logger.error(f"Invalid feed message: {e}")
            await self._emit("error", e)
            return

        if message.type == "error":
            logger.error(
                f"Feed error: {getattr(message, 'message', None)} ({getattr(message, 'reason', None)})"
            )
            await self._emit("error", message)
            return

        if isinstance(message, UnknownMessage):
            logger.debug(f"Received message of unknown type: {message.type}")

        await self._emit("message", message)
