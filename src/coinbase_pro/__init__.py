"""
Coinbase Pro WebSocket feed and REST API client
"""

from .client import WebsocketClient
from .config import (
    DEFAULT_CHANNELS,
    SANDBOX_API_URI,
    SANDBOX_WS_URI,
    API_URI,
    WS_URI,
    Credentials,
)
from .exceptions import (
    ApiError,
    CoinbaseProError,
    FeedError,
    InvalidStateError,
    NotInitializedError,
    TransportError,
)
from .messages import ErrorMessage, FeedMessage, UnknownMessage, parse_message
from .rest import AuthenticatedClient, PublicClient
from .signer import sign, websocket_auth
from .types import Channel, ConnectionState

__all__ = [
    "WebsocketClient",
    "PublicClient",
    "AuthenticatedClient",
    "Channel",
    "ConnectionState",
    "Credentials",
    "FeedMessage",
    "ErrorMessage",
    "UnknownMessage",
    "parse_message",
    "sign",
    "websocket_auth",
    "CoinbaseProError",
    "InvalidStateError",
    "NotInitializedError",
    "TransportError",
    "FeedError",
    "ApiError",
    "DEFAULT_CHANNELS",
    "WS_URI",
    "SANDBOX_WS_URI",
    "API_URI",
    "SANDBOX_API_URI",
]

__version__ = "1.0.0"
