from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

ProductRecord = Dict[str, Any]


class SourceName(str, Enum):
    CATALOG = "catalog"
    STOREFRONT = "storefront"
    CATALOG_METADATA = "catalog_metadata"


class Outcome(str, Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    UNAVAILABLE = "unavailable"
    TIMEOUT = "timeout"
    MALFORMED = "malformed"


class SourceResult(BaseModel):
    """What one source returned: a record, or why there is none."""
    source: SourceName
    outcome: Outcome
    record: Optional[ProductRecord] = None
    detail: Optional[str] = None

    model_config = {"frozen": True}  # immuable = safe

    @property
    def found(self) -> bool:
        return self.outcome is Outcome.FOUND and self.record is not None

    @property
    def faulted(self) -> bool:
        return self.outcome in (Outcome.UNAVAILABLE, Outcome.TIMEOUT, Outcome.MALFORMED)


class LookupAttempt(BaseModel):
    source: SourceName
    outcome: Outcome
    elapsed_ms: float
    detail: Optional[str] = None


class LookupTrace(BaseModel):
    product_source: Optional[SourceName] = None
    metadata_source: Optional[SourceName] = None
    attempts: List[LookupAttempt] = Field(default_factory=list)


class EnrichedProduct(BaseModel):
    """Final product record; metadata is always a mapping."""
    product: ProductRecord
    trace: LookupTrace

    model_config = {"frozen": True}
