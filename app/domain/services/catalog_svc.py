# app/domain/services/catalog_svc.py

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import List, Optional, Tuple
import logging

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import ServerSelectionTimeoutError, AutoReconnect, ConnectionFailure, PyMongoError

from app.domain.errors import SourceUnavailable
from app.domain.repositories.product_repo import ProductRepo

logger = logging.getLogger(__name__)


class CatalogService(ABC):
    """
    Authoritative product data, metadata included.

    Every variant guarantees the three operations below. Only list_by_ids()
    is mandatory; retrieve() and retrieve_metadata() have defaults built on
    top of it which variants override when their backend has a cheaper path.
    """

    name = "catalog"

    @abstractmethod
    async def list_by_ids(self, ids: List[str]) -> Tuple[List[dict], int]:
        ...

    async def retrieve(self, product_id: str) -> Optional[dict]:
        records, _ = await self.list_by_ids([product_id])
        for record in records:
            if record.get("id") == product_id:
                return record
        return None

    async def retrieve_metadata(self, product_id: str) -> Optional[dict]:
        """Metadata of a product; None when the product or its metadata is absent."""
        record = await self.retrieve(product_id)
        if record is None:
            return None
        return record.get("metadata")


class MongoCatalogService(CatalogService):
    """Catalog backed by the Mongo 'products' collection."""

    name = "catalog:mongo"

    def __init__(self, db: Optional[AsyncIOMotorDatabase], collection_name: str = "products"):
        self._repo = ProductRepo(db, collection_name) if db is not None else None

    def _require_repo(self) -> ProductRepo:
        if self._repo is None:
            raise SourceUnavailable(self.name, "Mongo DB not initialized")
        return self._repo

    async def list_by_ids(self, ids: List[str]) -> Tuple[List[dict], int]:
        repo = self._require_repo()
        try:
            return await repo.list_by_ids(ids)
        except (ServerSelectionTimeoutError, AutoReconnect, ConnectionFailure) as e:
            raise SourceUnavailable(self.name, f"MongoDB unavailable: {e}") from e
        except PyMongoError as e:
            raise SourceUnavailable(self.name, f"MongoDB query failed: {e}") from e

    async def retrieve(self, product_id: str) -> Optional[dict]:
        repo = self._require_repo()
        try:
            return await repo.get_by_id(product_id)
        except (ServerSelectionTimeoutError, AutoReconnect, ConnectionFailure) as e:
            raise SourceUnavailable(self.name, f"MongoDB unavailable: {e}") from e
        except PyMongoError as e:
            raise SourceUnavailable(self.name, f"MongoDB query failed: {e}") from e

    async def retrieve_metadata(self, product_id: str) -> Optional[dict]:
        repo = self._require_repo()
        try:
            exists, metadata = await repo.get_metadata(product_id)
        except (ServerSelectionTimeoutError, AutoReconnect, ConnectionFailure) as e:
            raise SourceUnavailable(self.name, f"MongoDB unavailable: {e}") from e
        except PyMongoError as e:
            raise SourceUnavailable(self.name, f"MongoDB query failed: {e}") from e
        if not exists:
            logger.debug("catalog metadata: no product id=%s", product_id)
        return metadata
