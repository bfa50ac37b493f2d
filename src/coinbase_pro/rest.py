"""
Coinbase Pro REST API clients
"""

import json
import time
from typing import Any, Dict, List, Optional, Union
from urllib.parse import urlencode

import aiohttp
from loguru import logger
from yarl import URL

from .config import (
    API_URI,
    DEFAULT_HEADERS,
    DEFAULT_PRODUCT_ID,
    SANDBOX_API_URI,
    Credentials,
)
from .exceptions import ApiError, NotInitializedError
from .signer import sign

# Allowed candle granularities in seconds
GRANULARITIES = (60, 300, 900, 3600, 21600, 86400)


def _encode_query(params: Optional[Dict[str, Any]]) -> str:
    if not params:
        return ""
    params = {k: v for k, v in params.items() if v is not None}
    return f"?{urlencode(params)}" if params else ""


class PublicClient:
    """
    REST client for the public Coinbase Pro market data endpoints

    Example:
        async with PublicClient() as client:
            ticker = await client.get_ticker(product_id="ETH-USD")
    """

    def __init__(
        self,
        product_id: str = DEFAULT_PRODUCT_ID,
        sandbox: bool = False,
        api_uri: Optional[str] = None,
    ):
        """
        Initialize Coinbase Pro REST client

        Args:
            product_id: Product used when a method is called without one
            sandbox: If True, use the sandbox API
            api_uri: Base URL. Takes precedence over `sandbox`.
        """
        self.product_id = product_id
        self.api_uri = (api_uri or (SANDBOX_API_URI if sandbox else API_URI)).rstrip("/")
        self.session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self):
        """Async context manager entry"""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit"""
        await self.close()

    async def connect(self):
        """Create aiohttp session"""
        if not self.session:
            self.session = aiohttp.ClientSession(headers=DEFAULT_HEADERS)
            logger.info(f"Coinbase Pro REST client initialized: {self.api_uri}")

    async def close(self):
        """Close aiohttp session"""
        if self.session:
            await self.session.close()
            self.session = None
            logger.info("Coinbase Pro REST client closed")

    def _headers(self, method: str, path: str, query: str, body: str) -> Dict[str, str]:
        return {}

    async def request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        body: Optional[Any] = None,
    ) -> Any:
        """
        Send a request and decode the response

        Args:
            method: HTTP method
            path: Path relative to the API root (e.g., "/products")
            params: Query parameters; None values are dropped
            body: JSON-serializable request body

        Returns:
            Decoded JSON, or the raw text if the response is not JSON

        Raises:
            NotInitializedError: If connect() has not been called
            ApiError: On a non-2xx response
        """
        if not self.session:
            raise NotInitializedError("Session not initialized. Call connect() first.")

        query = _encode_query(params)
        data = json.dumps(body, separators=(",", ":")) if body is not None else ""
        headers = self._headers(method, path, query, data)
        if data:
            headers["Content-Type"] = "application/json"

        # Sent verbatim so the signed query matches the request
        url = URL(f"{self.api_uri}{path}{query}", encoded=True)
        logger.debug(f"{method} {url}")

        async with self.session.request(method, url, data=data or None, headers=headers) as response:
            text = await response.text()
            try:
                payload = json.loads(text)
            except ValueError:
                payload = None

            if response.status >= 400:
                message = payload.get("message") if isinstance(payload, dict) else None
                logger.error(f"{method} {path} failed: HTTP {response.status} - {text[:500]}")
                raise ApiError(response.status, message or text)

            return text if payload is None else payload

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self.request("GET", path, params=params)

    async def get_products(self) -> List[Dict[str, Any]]:
        return await self.get("/products")

    async def get_product(self, product_id: Optional[str] = None) -> Dict[str, Any]:
        return await self.get(f"/products/{product_id or self.product_id}")

    async def get_order_book(
        self, product_id: Optional[str] = None, level: Optional[int] = None
    ) -> Dict[str, Any]:
        """
        Fetch the order book

        Args:
            product_id: Product, defaults to the client's
            level: 1 (best bid/ask), 2 (aggregated top 50) or 3 (full book)
        """
        if level is not None and level not in (1, 2, 3):
            raise ValueError("level must be 1, 2 or 3")
        return await self.get(
            f"/products/{product_id or self.product_id}/book", {"level": level}
        )

    async def get_ticker(self, product_id: Optional[str] = None) -> Dict[str, Any]:
        return await self.get(f"/products/{product_id or self.product_id}/ticker")

    async def get_trades(
        self,
        product_id: Optional[str] = None,
        before: Optional[Union[int, str]] = None,
        after: Optional[Union[int, str]] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        return await self.get(
            f"/products/{product_id or self.product_id}/trades",
            {"before": before, "after": after, "limit": limit},
        )

    async def get_historic_rates(
        self,
        granularity: int,
        product_id: Optional[str] = None,
        start: Optional[str] = None,
        end: Optional[str] = None,
    ) -> List[List[float]]:
        """
        Fetch candles as [time, low, high, open, close, volume] rows

        Raises:
            ValueError: If granularity is not one of GRANULARITIES
        """
        if granularity not in GRANULARITIES:
            raise ValueError(f"granularity must be one of {GRANULARITIES}")
        return await self.get(
            f"/products/{product_id or self.product_id}/candles",
            {"granularity": granularity, "start": start, "end": end},
        )

    async def get_24hr_stats(self, product_id: Optional[str] = None) -> Dict[str, Any]:
        return await self.get(f"/products/{product_id or self.product_id}/stats")

    async def get_currencies(self) -> List[Dict[str, Any]]:
        return await self.get("/currencies")

    async def get_currency(self, currency_id: str) -> Dict[str, Any]:
        return await self.get(f"/currencies/{currency_id}")

    async def get_time(self) -> Dict[str, Any]:
        return await self.get("/time")


class AuthenticatedClient(PublicClient):
    """
    REST client for private endpoints; every request is signed
    """

    def __init__(
        self,
        key: str,
        secret: str,
        passphrase: str,
        product_id: str = DEFAULT_PRODUCT_ID,
        sandbox: bool = False,
        api_uri: Optional[str] = None,
    ):
        super().__init__(product_id=product_id, sandbox=sandbox, api_uri=api_uri)
        self.credentials = Credentials(key=key, secret=secret, passphrase=passphrase)

    def _headers(self, method: str, path: str, query: str, body: str) -> Dict[str, str]:
        return sign(
            method,
            path,
            self.credentials.secret,
            self.credentials.key,
            self.credentials.passphrase,
            time.time(),
            query=query,
            body=body,
        )

    async def get_accounts(self) -> List[Dict[str, Any]]:
        return await self.get("/accounts")

    async def get_account(self, account_id: str) -> Dict[str, Any]:
        return await self.get(f"/accounts/{account_id}")

    async def get_account_history(
        self,
        account_id: str,
        before: Optional[Union[int, str]] = None,
        after: Optional[Union[int, str]] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """Fetch ledger entries for an account"""
        return await self.get(
            f"/accounts/{account_id}/ledger",
            {"before": before, "after": after, "limit": limit},
        )

    async def get_holds(
        self,
        account_id: str,
        before: Optional[Union[int, str]] = None,
        after: Optional[Union[int, str]] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        return await self.get(
            f"/accounts/{account_id}/holds",
            {"before": before, "after": after, "limit": limit},
        )
