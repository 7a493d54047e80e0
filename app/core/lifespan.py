# app/core/lifespan.py
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from app.db import mongo
from app.core.config import get_settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()

    # --- Startup ---
    # Mongo is optional: without it the catalog is reported unavailable
    # and lookups fall back to the storefront.
    if settings.MONGO_URI:
        await mongo.connect()
    else:
        logger.warning("No MONGO_URI provided, skipping Mongo connection")

    logger.info("Storefront base URL: %s", settings.store_api_url)

    # Application runs
    yield

    # --- Shutdown ---
    if settings.MONGO_URI:
        await mongo.disconnect()
        logger.info("Mongo disconnected")
