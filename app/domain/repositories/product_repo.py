# app/domain/repositories/product_repo.py

from __future__ import annotations
from typing import Any, Optional, List, Tuple
import json
from motor.motor_asyncio import AsyncIOMotorDatabase
from app.domain.errors import MalformedUpstreamResponse

SOURCE = "catalog"


def decode_metadata(value: Any) -> Optional[dict]:
    """
    Normalize a stored 'metadata' value.
    Older imports persisted it as JSON text; newer ones as a subdocument.
    """
    if value is None:
        return None
    if isinstance(value, dict):
        return value
    if isinstance(value, str):
        if not value.strip():
            return {}
        try:
            decoded = json.loads(value)
        except ValueError as e:
            raise MalformedUpstreamResponse(SOURCE, f"metadata is not valid JSON: {e}") from e
        if decoded is None:
            return None
        if not isinstance(decoded, dict):
            raise MalformedUpstreamResponse(SOURCE, f"metadata decodes to {type(decoded).__name__}, expected object")
        return decoded
    raise MalformedUpstreamResponse(SOURCE, f"metadata has unexpected type {type(value).__name__}")


class ProductRepo:
    """
    Product repository backed by the 'products' collection.
    Documents are keyed by their public 'id'; Mongo's '_id' is never returned.
    """

    def __init__(self, db: AsyncIOMotorDatabase, collection_name: str = "products"):
        self.col = db[collection_name]

    @staticmethod
    def _normalize(doc: dict) -> dict:
        if "metadata" in doc:
            doc["metadata"] = decode_metadata(doc["metadata"])
        return doc

    async def get_by_id(self, product_id: str) -> Optional[dict]:
        doc = await self.col.find_one({"id": product_id}, {"_id": 0})
        return self._normalize(doc) if doc else None

    async def list_by_ids(self, ids: List[str]) -> Tuple[List[dict], int]:
        query = {"id": {"$in": ids}}
        cursor = self.col.find(query, {"_id": 0})
        docs = [self._normalize(doc) async for doc in cursor]
        count = await self.col.count_documents(query)
        return docs, count

    async def get_metadata(self, product_id: str) -> Tuple[bool, Optional[dict]]:
        """
        Load only the metadata of a product.
        Returns (exists, metadata); metadata is None when the field is absent.
        """
        doc = await self.col.find_one({"id": product_id}, {"_id": 0, "id": 1, "metadata": 1})
        if not doc:
            return False, None
        return True, decode_metadata(doc.get("metadata"))
