"""
Type definitions for the Coinbase Pro WebSocket feed
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Iterable, List, Optional, Tuple, Union

from websockets.asyncio.client import ClientConnection


@dataclass(frozen=True)
class Channel:
    """
    A feed channel scoped to specific products

    Attributes:
        name: Channel name (e.g., "ticker", "level2")
        product_ids: Products the channel is limited to, or None for the
            connection-wide product list
    """
    name: str
    product_ids: Optional[Tuple[str, ...]] = None

    def __post_init__(self):
        if isinstance(self.product_ids, str):
            object.__setattr__(self, "product_ids", (self.product_ids,))
        elif self.product_ids is not None and not isinstance(self.product_ids, tuple):
            object.__setattr__(self, "product_ids", tuple(self.product_ids))

    def to_wire(self) -> dict:
        """Serialize to the `{name, product_ids}` wire shape"""
        data: dict = {"name": self.name}
        if self.product_ids is not None:
            data["product_ids"] = list(self.product_ids)
        return data

    @classmethod
    def from_wire(cls, data) -> "ChannelLike":
        """Parse a channel from the feed (bare name or dict)"""
        if isinstance(data, str):
            return data
        if isinstance(data, dict):
            try:
                return cls(name=data["name"], product_ids=data.get("product_ids"))
            except KeyError as e:
                raise ValueError(f"Channel is missing field {e}. Data: {data}")
        raise ValueError(f"Unexpected data format for Channel: {type(data)}")


# A channel is either a bare name or a product-scoped Channel
ChannelLike = Union[str, Channel]


def normalize_channels(channels: Union[ChannelLike, dict, Iterable[Any]]) -> List[ChannelLike]:
    """Coerce a single channel, a wire dict, or an iterable of either into a list"""
    if isinstance(channels, (str, Channel, dict)):
        channels = [channels]
    return [Channel.from_wire(c) if isinstance(c, dict) else c for c in channels]


def channels_to_wire(channels: Iterable[ChannelLike]) -> List[Union[str, dict]]:
    return [c.to_wire() if isinstance(c, Channel) else c for c in channels]


class ConnectionState(Enum):
    """Connection states, mirroring the transport's readiness states"""
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSING = "closing"


@dataclass(frozen=True)
class Disconnected:
    state = ConnectionState.DISCONNECTED


@dataclass(frozen=True)
class Connecting:
    state = ConnectionState.CONNECTING


@dataclass(frozen=True)
class Open:
    transport: ClientConnection
    state = ConnectionState.OPEN


@dataclass(frozen=True)
class Closing:
    transport: ClientConnection
    state = ConnectionState.CLOSING


# Only Open and Closing carry a live transport
Connection = Union[Disconnected, Connecting, Open, Closing]


# Event handlers may be plain callables or coroutine functions
EventHandler = Callable[..., Union[None, Awaitable[None]]]
