# app/domain/services/metadata_sources.py

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Mapping, Optional
import asyncio
import logging
import time

from app.domain.errors import MalformedUpstreamResponse, SourceTimeout, SourceUnavailable
from app.domain.models.product import Outcome, SourceName, SourceResult
from app.domain.repositories.storefront_repo import StorefrontProductRepo
from app.domain.services.catalog_svc import CatalogService

logger = logging.getLogger(__name__)


class MetadataSource(ABC):
    """
    One place a product (and maybe its metadata) can come from.

    fetch() never raises for collaborator faults: timeouts, unreachable
    services and unparseable answers all come back as a SourceResult whose
    outcome says why there is no record.
    """

    name: SourceName
    # Whether an empty 'metadata' from this source can be trusted as the real value
    authoritative_metadata: bool = True

    @abstractmethod
    async def _fetch(self, product_id: str, headers: Mapping[str, str]) -> Optional[dict]:
        ...

    async def fetch(
        self,
        product_id: str,
        *,
        headers: Optional[Mapping[str, str]] = None,
        timeout_s: float = 3.0,
    ) -> SourceResult:
        t0 = time.perf_counter()
        try:
            record = await asyncio.wait_for(self._fetch(product_id, headers or {}), timeout=timeout_s)
        except asyncio.TimeoutError:
            result = SourceResult(source=self.name, outcome=Outcome.TIMEOUT, detail=f"no answer within {timeout_s}s")
        except SourceTimeout as e:
            result = SourceResult(source=self.name, outcome=Outcome.TIMEOUT, detail=e.reason)
        except SourceUnavailable as e:
            result = SourceResult(source=self.name, outcome=Outcome.UNAVAILABLE, detail=e.reason)
        except MalformedUpstreamResponse as e:
            result = SourceResult(source=self.name, outcome=Outcome.MALFORMED, detail=e.reason)
        except Exception as e:
            # A collaborator blew up in a way it does not declare; the chain moves on.
            logger.warning("source %s raised for product_id=%s", self.name.value, product_id, exc_info=True)
            result = SourceResult(source=self.name, outcome=Outcome.UNAVAILABLE, detail=type(e).__name__)
        else:
            if record is None:
                result = SourceResult(source=self.name, outcome=Outcome.NOT_FOUND)
            else:
                result = SourceResult(source=self.name, outcome=Outcome.FOUND, record=record)

        elapsed = time.perf_counter() - t0
        log = logger.info if result.outcome in (Outcome.FOUND, Outcome.NOT_FOUND) else logger.warning
        log(
            "source=%s product_id=%s outcome=%s detail=%s time=%.3fs",
            self.name.value, product_id, result.outcome.value, result.detail, elapsed,
        )
        return result


class CatalogSource(MetadataSource):
    """Primary lookup: full product record from the catalog service."""

    name = SourceName.CATALOG

    def __init__(self, catalog: CatalogService):
        self.catalog = catalog

    async def _fetch(self, product_id, headers):
        return await self.catalog.retrieve(product_id)


class StorefrontSource(MetadataSource):
    """Peer lookup through the public store API; metadata is usually stripped."""

    name = SourceName.STOREFRONT
    authoritative_metadata = False

    def __init__(self, repo: StorefrontProductRepo):
        self.repo = repo

    async def _fetch(self, product_id, headers):
        return await self.repo.get_by_id(product_id, headers=headers)


class CatalogMetadataSource(MetadataSource):
    """Metadata-only backfill from the catalog; yields {'id', 'metadata'} or nothing."""

    name = SourceName.CATALOG_METADATA

    def __init__(self, catalog: CatalogService):
        self.catalog = catalog

    async def _fetch(self, product_id, headers):
        metadata = await self.catalog.retrieve_metadata(product_id)
        if metadata is None:
            return None
        if not isinstance(metadata, dict):
            raise MalformedUpstreamResponse(self.name.value, f"metadata is {type(metadata).__name__}, expected object")
        return {"id": product_id, "metadata": metadata}
