# app/api/deps.py
from fastapi import Depends
from app.core.config import Settings, get_settings
from app.db.mongo import get_db_or_none
from app.domain.repositories.storefront_repo import StorefrontProductRepo
from app.domain.services.catalog_svc import CatalogService, MongoCatalogService
from app.domain.services.metadata_sources import CatalogMetadataSource, CatalogSource, StorefrontSource
from app.domain.services.product_metadata_svc import ProductMetadataResolver

# Catalog service over the Mongo 'products' collection.
# Built even when Mongo is down: lookups then report the catalog unavailable.
def catalog_service(settings: Settings = Depends(get_settings)) -> CatalogService:
    return MongoCatalogService(get_db_or_none(), settings.products_collection)

# Public store API client, base URL injected from settings
def storefront_repo(settings: Settings = Depends(get_settings)) -> StorefrontProductRepo:
    return StorefrontProductRepo(settings.store_api_url, timeout_s=settings.SOURCE_TIMEOUT_S)

def metadata_resolver(
    catalog: CatalogService = Depends(catalog_service),
    storefront: StorefrontProductRepo = Depends(storefront_repo),
    settings: Settings = Depends(get_settings),
) -> ProductMetadataResolver:
    return ProductMetadataResolver(
        catalog=CatalogSource(catalog),
        storefront=StorefrontSource(storefront),
        backfill=CatalogMetadataSource(catalog),
        timeout_s=settings.SOURCE_TIMEOUT_S,
        accept_empty_metadata=settings.ACCEPT_EMPTY_METADATA,
    )
