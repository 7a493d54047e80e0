# api/v1/schemas/product_metadata.py
from typing import Any, Dict, Optional
from pydantic import BaseModel

from app.domain.models.product import LookupTrace


class ProductMetadataResponse(BaseModel):
    product: Dict[str, Any]
    lookup: Optional[LookupTrace] = None  # only when EXPOSE_LOOKUP_TRACE is on


class ErrorResponse(BaseModel):
    message: str
    error: Optional[str] = None


NOT_FOUND_MESSAGE = "Product not found"
FAILURE_MESSAGE = "Failed to fetch product metadata"
