from fastapi import FastAPI
from app.core.config import get_settings
from app.core.lifespan import lifespan
from app.api.v1.routers.health import router as health_router
from app.api.v1.routers.product_metadata import router as product_metadata_router
from app.core.logging import configure_logging

from app.core.cors import PreflightCORSMiddleware
import logging

settings = get_settings()
configure_logging(level=logging.DEBUG if settings.DEBUG else logging.INFO)

app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

# ------- CORS -------
# ALLOWED_ORIGINS is a CSV, e.g. "https://shop.example.com,https://admin.example.com".
# Without it every origin is allowed; credentials stay off so "*" is legal.
# Preflights always get 200 with an empty body; only the allow headers vary.
app.add_middleware(
    PreflightCORSMiddleware,
    allow_origins=settings.allowed_origins or ["*"],
    allow_credentials=False,
    allow_methods=["GET", "OPTIONS"],
    allow_headers=["*"],                            # x-publishable-api-key, authorization
    max_age=86400,
)

# ------- Routes -------
app.include_router(health_router)
app.include_router(product_metadata_router)     # /store/products/{id}/metadata
