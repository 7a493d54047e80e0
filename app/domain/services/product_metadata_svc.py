# app/domain/services/product_metadata_svc.py

from __future__ import annotations
from typing import Any, Mapping, Optional
import logging
import time

from app.domain.errors import ProductNotFound, SourceUnavailable
from app.domain.models.product import (
    EnrichedProduct,
    LookupAttempt,
    LookupTrace,
    Outcome,
    SourceResult,
)
from app.domain.services.metadata_sources import MetadataSource

logger = logging.getLogger(__name__)


class ProductMetadataResolver:
    """
    Resolves a product and its metadata through an ordered fallback chain:

      1) catalog      full record; metadata there is authoritative
      2) storefront   only if the catalog produced no record
      3) backfill     metadata-only catalog query when the product has none
      4) terminal     no product -> ProductNotFound; no metadata -> {}

    Sources are tried one at a time, each bounded by `timeout_s`.
    A storefront outage with no product in hand raises SourceUnavailable;
    every other source fault just moves the chain along.
    """

    def __init__(
        self,
        catalog: MetadataSource,
        storefront: MetadataSource,
        backfill: MetadataSource,
        *,
        timeout_s: float = 3.0,
        accept_empty_metadata: bool = True,
    ):
        self.catalog = catalog
        self.storefront = storefront
        self.backfill = backfill
        self.timeout_s = timeout_s
        self.accept_empty_metadata = accept_empty_metadata

    def _metadata_is_final(self, record: dict, source: MetadataSource) -> bool:
        metadata = record.get("metadata")
        if not isinstance(metadata, dict):
            return False
        if metadata:
            return True
        return source.authoritative_metadata and self.accept_empty_metadata

    async def _attempt(
        self,
        source: MetadataSource,
        product_id: str,
        headers: Optional[Mapping[str, str]],
        trace: LookupTrace,
    ) -> SourceResult:
        t0 = time.perf_counter()
        result = await source.fetch(product_id, headers=headers, timeout_s=self.timeout_s)
        trace.attempts.append(
            LookupAttempt(
                source=result.source,
                outcome=result.outcome,
                elapsed_ms=(time.perf_counter() - t0) * 1000.0,
                detail=result.detail,
            )
        )
        return result

    async def resolve(self, product_id: str, headers: Optional[Mapping[str, str]] = None) -> EnrichedProduct:
        trace = LookupTrace()
        product: Optional[dict[str, Any]] = None
        metadata: Optional[dict] = None

        # 1) catalog
        primary = await self._attempt(self.catalog, product_id, headers, trace)
        if primary.found:
            product = dict(primary.record)
            trace.product_source = primary.source
            if self._metadata_is_final(product, self.catalog):
                metadata = product["metadata"]
                trace.metadata_source = primary.source
        else:
            # 2) storefront
            peer = await self._attempt(self.storefront, product_id, headers, trace)
            if peer.found:
                product = dict(peer.record)
                trace.product_source = peer.source
                if self._metadata_is_final(product, self.storefront):
                    metadata = product["metadata"]
                    trace.metadata_source = peer.source
            elif peer.outcome in (Outcome.UNAVAILABLE, Outcome.TIMEOUT):
                logger.error(
                    "resolve product_id=%s: no product and last source failed (%s)",
                    product_id, peer.detail,
                )
                raise SourceUnavailable(peer.source.value, peer.detail or peer.outcome.value)

        if product is None:
            logger.info("resolve product_id=%s: not found in any source", product_id)
            raise ProductNotFound(product_id)

        # 3) backfill
        if trace.metadata_source is None:
            filled = await self._attempt(self.backfill, product_id, headers, trace)
            if filled.found and filled.record.get("metadata"):
                metadata = filled.record["metadata"]
                trace.metadata_source = filled.source

        # 4) terminal: metadata is always an object
        if metadata is None:
            current = product.get("metadata")
            metadata = current if isinstance(current, dict) else {}
        product["metadata"] = metadata

        logger.info(
            "resolve product_id=%s product_source=%s metadata_source=%s attempts=%s",
            product_id,
            trace.product_source.value if trace.product_source else None,
            trace.metadata_source.value if trace.metadata_source else None,
            [f"{a.source.value}:{a.outcome.value}" for a in trace.attempts],
        )
        return EnrichedProduct(product=product, trace=trace)
