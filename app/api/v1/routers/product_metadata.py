# app/api/v1/routers/product_metadata.py
from fastapi import APIRouter, Depends, Path, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from typing import Annotated
import time
import logging

from bson import Decimal128, ObjectId

from app.api.deps import metadata_resolver
from app.api.v1.schemas.product_metadata import (
    FAILURE_MESSAGE,
    NOT_FOUND_MESSAGE,
    ErrorResponse,
    ProductMetadataResponse,
)
from app.core.config import Settings, get_settings
from app.domain.errors import ProductNotFound, SourceUnavailable
from app.domain.services.product_metadata_svc import ProductMetadataResolver
from app.utils.disconnect import ClientDisconnected, run_unless_disconnected

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/store/products", tags=["product-metadata"])

ProductIdPath = Annotated[str, Path(min_length=1, description="Product identifier")]

# nginx convention for "client closed request"
CLIENT_CLOSED_REQUEST = 499

BSON_ENCODERS = {ObjectId: str, Decimal128: str}


@router.options("/{product_id}/metadata", include_in_schema=False)
async def product_metadata_preflight(product_id: str) -> Response:
    # Plain OPTIONS. Preflights carrying Origin are answered by PreflightCORSMiddleware.
    return Response(status_code=200)


@router.get(
    "/{product_id}/metadata",
    response_model=ProductMetadataResponse,
    responses={404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def get_product_metadata(
    request: Request,
    product_id: ProductIdPath,
    resolver: ProductMetadataResolver = Depends(metadata_resolver),
    settings: Settings = Depends(get_settings),
):
    """
    Product record with its metadata always present.
    Sources: catalog → storefront (x-publishable-api-key / authorization forwarded) → catalog metadata backfill.
    """
    logger.info("Request: product_metadata product_id=%s", product_id)
    start_time = time.perf_counter()

    try:
        enriched = await run_unless_disconnected(request, resolver.resolve(product_id, headers=request.headers))
        body = {"product": enriched.product}
        if settings.EXPOSE_LOOKUP_TRACE:
            body["lookup"] = enriched.trace.model_dump(mode="json")
        # product fields come straight from Mongo: datetimes, ObjectId refs, Decimal128 prices
        content = jsonable_encoder(body, custom_encoder=BSON_ENCODERS)
    except ProductNotFound:
        return JSONResponse(status_code=404, content={"message": NOT_FOUND_MESSAGE})
    except SourceUnavailable as e:
        logger.error("product_metadata product_id=%s failed: %s", product_id, e)
        return JSONResponse(
            status_code=500,
            content={"message": FAILURE_MESSAGE, "error": "Product source unavailable"},
        )
    except ClientDisconnected:
        logger.info("product_metadata product_id=%s: client disconnected, lookup cancelled", product_id)
        return Response(status_code=CLIENT_CLOSED_REQUEST)
    except Exception:
        logger.exception("Error fetching product metadata product_id=%s", product_id)
        return JSONResponse(
            status_code=500,
            content={"message": FAILURE_MESSAGE, "error": "Internal server error"},
        )

    elapsed_time = time.perf_counter() - start_time
    logger.info(
        "Response: product_metadata product_id=%s, metadata_keys=%s, elapsed_time=%.4fs",
        product_id, len(enriched.product["metadata"]), elapsed_time,
    )
    return JSONResponse(status_code=200, content=content)
