"""
Configuration for the Coinbase Pro clients
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

# WebSocket feed endpoints
WS_URI = "wss://ws-feed.pro.coinbase.com"
SANDBOX_WS_URI = "wss://ws-feed-public.sandbox.pro.coinbase.com"

# REST endpoints
API_URI = "https://api.pro.coinbase.com"
SANDBOX_API_URI = "https://api-public.sandbox.pro.coinbase.com"

# Channels subscribed to on connect when none are given
DEFAULT_CHANNELS = ["full", "heartbeat", "status"]

DEFAULT_PRODUCT_ID = "BTC-USD"

DEFAULT_HEADERS = {"User-Agent": "coinbase-pro-python-api"}

# Path signed to authenticate feed subscriptions
WS_AUTH_METHOD = "GET"
WS_AUTH_PATH = "/users/self/verify"

# Environment variables read by Credentials.from_env
ENV_KEY = "COINBASE_PRO_KEY"
ENV_SECRET = "COINBASE_PRO_SECRET"
ENV_PASSPHRASE = "COINBASE_PRO_PASSPHRASE"


@dataclass(frozen=True)
class Credentials:
    """
    API key triple

    Attributes:
        key: API key
        secret: Base64-encoded API secret
        passphrase: API passphrase
    """
    key: str
    secret: str
    passphrase: str

    def __repr__(self) -> str:
        return f"Credentials(key={self.key!r}, secret='***', passphrase='***')"

    @classmethod
    def create(
        cls,
        key: Optional[str] = None,
        secret: Optional[str] = None,
        passphrase: Optional[str] = None,
    ) -> Optional["Credentials"]:
        """Build credentials only if all three parts are present"""
        if key and secret and passphrase:
            return cls(key=key, secret=secret, passphrase=passphrase)
        return None

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> Optional["Credentials"]:
        """
        Load credentials from the environment, reading a .env file first

        Args:
            dotenv_path: Optional path to a .env file. Defaults to searching
                from the current directory upwards.

        Returns:
            Credentials, or None if any of the three variables is unset
        """
        load_dotenv(dotenv_path)
        return cls.create(
            os.getenv(ENV_KEY), os.getenv(ENV_SECRET), os.getenv(ENV_PASSPHRASE)
        )
