# app/domain/errors.py


class ProductLookupError(Exception):
    """Base class for failures while resolving a product and its metadata."""


class ProductNotFound(ProductLookupError):
    def __init__(self, product_id: str):
        super().__init__(f"product {product_id!r} not found")
        self.product_id = product_id


class SourceUnavailable(ProductLookupError):
    """A backing source could not be reached, resolved, or answered too late."""

    def __init__(self, source: str, reason: str):
        super().__init__(f"{source}: {reason}")
        self.source = source
        self.reason = reason


class MalformedUpstreamResponse(ProductLookupError):
    """A backing source answered with data that is not a usable product record."""

    def __init__(self, source: str, reason: str):
        super().__init__(f"{source}: {reason}")
        self.source = source
        self.reason = reason


class SourceTimeout(SourceUnavailable):
    """The source did not answer within its own timeout."""
