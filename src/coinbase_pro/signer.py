"""
HMAC request signing for Coinbase Pro
"""

import base64
import hashlib
import hmac
import json
import time
from typing import Any, Dict, Optional, Union
from urllib.parse import urlsplit

from .config import WS_AUTH_METHOD, WS_AUTH_PATH, Credentials

SignedHeaders = Dict[str, str]


def _encode_body(body: Any) -> str:
    if body is None:
        return ""
    if isinstance(body, bytes):
        return body.decode()
    if isinstance(body, str):
        return body
    return json.dumps(body, separators=(",", ":"))


def sign(
    method: str,
    path: str,
    secret: str,
    key: str,
    passphrase: str,
    timestamp: Union[int, float, str],
    query: str = "",
    body: Any = "",
) -> SignedHeaders:
    """
    Compute the CB-ACCESS-* authentication headers for a request

    The signed message is `timestamp + method + path + query + body`, MACed
    with HMAC-SHA256 under the base64-decoded secret.

    Args:
        method: HTTP method (e.g., "GET")
        path: Request path, or a full URL whose path and query are used
        secret: Base64-encoded API secret
        key: API key
        passphrase: API passphrase
        timestamp: Seconds since the epoch
        query: Encoded query string including the leading "?", if any
        body: Request body, either a string or a JSON-serializable object

    Raises:
        binascii.Error: If the secret is not valid base64
    """
    if "://" in path:
        parts = urlsplit(path)
        path = parts.path
        if parts.query:
            query = f"?{parts.query}"

    timestamp = str(timestamp)
    message = f"{timestamp}{method}{path}{query}{_encode_body(body)}"
    mac = hmac.new(base64.b64decode(secret, validate=True), message.encode(), hashlib.sha256)
    signature = base64.b64encode(mac.digest()).decode()

    return {
        "CB-ACCESS-KEY": key,
        "CB-ACCESS-SIGN": signature,
        "CB-ACCESS-TIMESTAMP": timestamp,
        "CB-ACCESS-PASSPHRASE": passphrase,
    }


def websocket_auth(
    credentials: Credentials, timestamp: Optional[Union[float, str]] = None
) -> Dict[str, str]:
    """Fields merged into an authenticated subscribe/unsubscribe message"""
    if timestamp is None:
        timestamp = time.time()
    headers = sign(
        WS_AUTH_METHOD,
        WS_AUTH_PATH,
        credentials.secret,
        credentials.key,
        credentials.passphrase,
        timestamp,
    )
    return {
        "key": headers["CB-ACCESS-KEY"],
        "signature": headers["CB-ACCESS-SIGN"],
        "timestamp": headers["CB-ACCESS-TIMESTAMP"],
        "passphrase": headers["CB-ACCESS-PASSPHRASE"],
    }
