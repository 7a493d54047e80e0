# app/domain/repositories/storefront_repo.py

from __future__ import annotations
from typing import Mapping, Optional
import logging
from urllib.parse import quote

import httpx

from app.domain.errors import MalformedUpstreamResponse, SourceTimeout, SourceUnavailable

logger = logging.getLogger(__name__)

SOURCE = "storefront"

# Client headers passed through to the store API as-is
FORWARDED_HEADERS = ("x-publishable-api-key", "authorization")


def forwardable_headers(headers: Mapping[str, str]) -> dict[str, str]:
    out = {}
    for name in FORWARDED_HEADERS:
        value = headers.get(name)
        if value:
            out[name] = value
    return out


class StorefrontProductRepo:
    """
    Reads products from the public store API: GET {base_url}/store/products/{id}.
    The store API strips 'metadata', so records from here are never authoritative for it.
    """

    def __init__(
        self,
        base_url: str,
        timeout_s: float = 3.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s
        self._transport = transport  # tests plug an httpx.MockTransport here

    async def get_by_id(self, product_id: str, headers: Optional[Mapping[str, str]] = None) -> Optional[dict]:
        url = f"/store/products/{quote(product_id, safe='')}"
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout_s,
                transport=self._transport,
            ) as client:
                resp = await client.get(url, headers=forwardable_headers(headers or {}))
        except httpx.TimeoutException as e:
            raise SourceTimeout(SOURCE, f"timed out after {self.timeout_s}s") from e
        except httpx.RequestError as e:
            raise SourceUnavailable(SOURCE, f"request failed: {e}") from e

        if resp.status_code == 404:
            return None
        if resp.status_code >= 400:
            logger.warning("storefront: %s HTTP %s body=%s", url, resp.status_code, resp.text[:500])
            raise SourceUnavailable(SOURCE, f"HTTP {resp.status_code}")

        try:
            data = resp.json()
        except ValueError as e:
            raise MalformedUpstreamResponse(SOURCE, "response is not JSON") from e

        product = data.get("product") if isinstance(data, dict) else None
        if not isinstance(product, dict) or not product.get("id"):
            raise MalformedUpstreamResponse(SOURCE, "response has no 'product' object with an 'id'")
        if str(product["id"]) != product_id:
            raise MalformedUpstreamResponse(SOURCE, f"asked for {product_id!r}, got {product['id']!r}")
        return product
