"""Pytest configuration for the product metadata API tests."""

import os

import pytest

# Settings are read at import time by app.main / app.db.mongo; keep them off real services.
os.environ.setdefault("APP_ENV", "test")
os.environ.pop("MONGO_URI", None)

from fastapi.testclient import TestClient  # noqa: E402

from app.api.deps import catalog_service, storefront_repo as storefront_repo_dep  # noqa: E402
from app.core.config import Settings, get_settings  # noqa: E402
from app.main import app  # noqa: E402
from fakes import STORE_URL, storefront_repo, storefront_transport  # noqa: E402


@pytest.fixture
def make_client():
    """
    Build a TestClient wired to a fake catalog and a mocked store API.
    The lifespan is not run, so no Mongo connection is attempted.
    """

    def build(catalog, storefront_products=None, transport=None, **settings_kw):
        settings = Settings(APP_ENV="test", STORE_API_URL=STORE_URL, **settings_kw)
        transport = transport or storefront_transport(storefront_products or {})
        app.dependency_overrides[get_settings] = lambda: settings
        app.dependency_overrides[catalog_service] = lambda: catalog
        app.dependency_overrides[storefront_repo_dep] = lambda: storefront_repo(
            transport, timeout_s=settings.SOURCE_TIMEOUT_S
        )
        return TestClient(app)

    yield build
    app.dependency_overrides.clear()
