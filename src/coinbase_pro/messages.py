"""
Data models for inbound Coinbase Pro feed messages
"""

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from .exceptions import FeedError
from .types import Channel


class FeedMessage(BaseModel):
    """Base for all feed messages; unknown fields are kept"""
    model_config = ConfigDict(extra="allow", frozen=True)

    type: str


class HeartbeatMessage(FeedMessage):
    type: Literal["heartbeat"]
    sequence: int
    last_trade_id: int
    product_id: str
    time: str


class SnapshotMessage(FeedMessage):
    """Level 2 order book snapshot"""
    type: Literal["snapshot"]
    product_id: str
    bids: List[List[str]]  # [price, size]
    asks: List[List[str]]


class L2UpdateMessage(FeedMessage):
    """Level 2 order book delta"""
    type: Literal["l2update"]
    product_id: str
    time: Optional[str] = None
    changes: List[List[str]]  # [side, price, size]


class ReceivedMessage(FeedMessage):
    type: Literal["received"]
    time: str
    product_id: str
    sequence: int
    order_id: str
    side: str
    order_type: str
    size: Optional[str] = None
    price: Optional[str] = None
    funds: Optional[str] = None
    client_oid: Optional[str] = None


class OpenMessage(FeedMessage):
    type: Literal["open"]
    time: str
    product_id: str
    sequence: int
    order_id: str
    price: str
    remaining_size: str
    side: str


class DoneMessage(FeedMessage):
    type: Literal["done"]
    time: str
    product_id: str
    sequence: int
    order_id: str
    reason: str
    side: str
    price: Optional[str] = None
    remaining_size: Optional[str] = None


class MatchMessage(FeedMessage):
    """Trade match; `last_match` is sent once on subscribing to `matches`"""
    type: Literal["match", "last_match"]
    trade_id: int
    sequence: int
    maker_order_id: str
    taker_order_id: str
    time: str
    product_id: str
    size: str
    price: str
    side: str


class ChangeMessage(FeedMessage):
    type: Literal["change"]
    time: str
    sequence: int
    order_id: str
    product_id: str
    side: str
    price: Optional[str] = None
    new_size: Optional[str] = None
    old_size: Optional[str] = None
    new_funds: Optional[str] = None
    old_funds: Optional[str] = None


class ActivateMessage(FeedMessage):
    """Stop order activation"""
    type: Literal["activate"]
    product_id: str
    timestamp: str
    user_id: str
    profile_id: str
    order_id: str
    stop_type: str
    side: str
    stop_price: str
    size: str
    funds: str
    private: bool


class TickerMessage(FeedMessage):
    type: Literal["ticker"]
    sequence: int
    product_id: str
    price: str
    open_24h: Optional[str] = None
    volume_24h: Optional[str] = None
    low_24h: Optional[str] = None
    high_24h: Optional[str] = None
    volume_30d: Optional[str] = None
    best_bid: Optional[str] = None
    best_ask: Optional[str] = None
    side: Optional[str] = None
    time: Optional[str] = None
    trade_id: Optional[int] = None
    last_size: Optional[str] = None


class SubscriptionsMessage(FeedMessage):
    """Acknowledgement listing the channels now active"""
    type: Literal["subscriptions"]
    channels: List[Union[str, Channel]]


class StatusMessage(FeedMessage):
    type: Literal["status"]
    products: List[Dict[str, Any]] = Field(default_factory=list)
    currencies: List[Dict[str, Any]] = Field(default_factory=list)


class ErrorMessage(FeedMessage):
    type: Literal["error"]
    message: Optional[str] = None
    reason: Optional[str] = None


class UnknownMessage(FeedMessage):
    """A message whose type is not recognized, passed through as-is"""


KnownMessage = Annotated[
    Union[
        HeartbeatMessage,
        SnapshotMessage,
        L2UpdateMessage,
        ReceivedMessage,
        OpenMessage,
        DoneMessage,
        MatchMessage,
        ChangeMessage,
        ActivateMessage,
        TickerMessage,
        SubscriptionsMessage,
        StatusMessage,
        ErrorMessage,
    ],
    Field(discriminator="type"),
]

_known_adapter = TypeAdapter(KnownMessage)

KNOWN_TYPES = frozenset({
    "heartbeat",
    "snapshot",
    "l2update",
    "received",
    "open",
    "done",
    "match",
    "last_match",
    "change",
    "activate",
    "ticker",
    "subscriptions",
    "status",
    "error",
})


def parse_message(data: Any) -> FeedMessage:
    """
    Classify a decoded feed frame by its `type` field

    Args:
        data: Decoded JSON value

    Returns:
        The matching message model, or UnknownMessage for unrecognized types
        and for known types whose fields do not match their model

    Raises:
        FeedError: If the frame is not an object with a string `type`
    """
    if not isinstance(data, dict):
        raise FeedError(f"Expected a JSON object, got {type(data).__name__}")

    msg_type = data.get("type")
    if not isinstance(msg_type, str):
        raise FeedError(f"Message has no type. Data: {data}")

    if msg_type not in KNOWN_TYPES:
        return UnknownMessage(**data)

    try:
        return _known_adapter.validate_python(data)
    except ValidationError as e:
        logger.warning(f"Passing through {msg_type} message that failed validation: {e}")
        return UnknownMessage(**data)
