"""
Exceptions raised by the Coinbase Pro clients
"""

from typing import Optional


class CoinbaseProError(Exception):
    """Base class for all client errors"""


class InvalidStateError(CoinbaseProError):
    """connect()/disconnect() was called while a transition is in flight"""

    def __init__(self, state):
        self.state = state
        super().__init__(f"Invalid state: {state.value}")


class NotInitializedError(CoinbaseProError):
    """A control operation was attempted with no transport (or session)"""


class TransportError(CoinbaseProError, ConnectionError):
    """
    Transport-level failure: handshake errors, failed writes and
    abnormal closures

    Attributes:
        code: WebSocket close code, if the connection was closed
        reason: WebSocket close reason, if any
    """

    def __init__(self, message: str, code: Optional[int] = None, reason: str = ""):
        super().__init__(message)
        self.code = code
        self.reason = reason


class FeedError(CoinbaseProError):
    """An inbound frame that is valid JSON but not a feed message"""


class ApiError(CoinbaseProError):
    """Non-2xx response from the REST API"""

    def __init__(self, status: int, message: str):
        super().__init__(f"HTTP {status}: {message}")
        self.status = status
        self.message = message
