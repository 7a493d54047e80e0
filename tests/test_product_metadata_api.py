"""
HTTP tests for /store/products/{id}/metadata.

The catalog is an in-memory fake and the store API is an httpx.MockTransport,
both injected through app.dependency_overrides.
"""

from datetime import datetime, timezone

import httpx
from bson import Decimal128, ObjectId
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.api.v1.routers.product_metadata import router
from app.core.cors import PreflightCORSMiddleware

from fakes import FakeCatalog, failing_transport, storefront_transport


GOLD = {"tier": "gold"}


class TestPreflight:
    def test_options_returns_empty_200(self, make_client):
        client = make_client(FakeCatalog())
        resp = client.options("/store/products/prod_123/metadata")
        assert resp.status_code == 200
        assert resp.content == b""

    def test_options_ignores_unknown_id(self, make_client):
        catalog = FakeCatalog()
        client = make_client(catalog)
        resp = client.options("/store/products/does-not-exist/metadata")
        assert resp.status_code == 200
        assert resp.content == b""
        assert catalog.calls == []

    def test_cors_preflight_is_empty_200(self, make_client):
        client = make_client(FakeCatalog())
        resp = client.options(
            "/store/products/prod_123/metadata",
            headers={"Origin": "https://shop.example.com", "Access-Control-Request-Method": "GET"},
        )
        assert resp.status_code == 200
        assert resp.content == b""
        assert resp.headers["access-control-allow-origin"] == "*"
        assert "GET" in resp.headers["access-control-allow-methods"]

    def test_cors_preflight_from_unlisted_origin_is_empty_200(self):
        app = FastAPI()
        app.add_middleware(PreflightCORSMiddleware, allow_origins=["https://shop.example.com"], allow_methods=["GET"])
        app.include_router(router)
        client = TestClient(app)

        resp = client.options(
            "/store/products/prod_123/metadata",
            headers={"Origin": "https://evil.example.com", "Access-Control-Request-Method": "GET"},
        )

        assert resp.status_code == 200
        assert resp.content == b""
        assert "access-control-allow-origin" not in resp.headers


class TestPrimaryCatalog:
    def test_metadata_from_catalog(self, make_client):
        catalog = FakeCatalog(products={"prod_1": {"id": "prod_1", "title": "Shirt", "metadata": {"color": "red"}}})
        client = make_client(catalog)

        resp = client.get("/store/products/prod_1/metadata")

        assert resp.status_code == 200
        assert resp.json() == {"product": {"id": "prod_1", "title": "Shirt", "metadata": {"color": "red"}}}
        # a complete catalog hit needs no further calls
        assert catalog.calls == [("retrieve", "prod_1")]

    def test_catalog_record_without_metadata_gets_empty_object(self, make_client):
        catalog = FakeCatalog(products={"prod_1": {"id": "prod_1", "title": "Shirt"}})
        client = make_client(catalog)

        resp = client.get("/store/products/prod_1/metadata")

        assert resp.status_code == 200
        assert resp.json()["product"]["metadata"] == {}

    def test_datetimes_are_serialized(self, make_client):
        created = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        catalog = FakeCatalog(products={"prod_1": {"id": "prod_1", "created_at": created, "metadata": {"a": 1}}})
        client = make_client(catalog)

        resp = client.get("/store/products/prod_1/metadata")

        assert resp.status_code == 200
        assert resp.json()["product"]["created_at"].startswith("2024-05-01T12:00:00")

    def test_bson_values_are_serialized(self, make_client):
        ref = ObjectId()
        catalog = FakeCatalog(products={"prod_1": {
            "id": "prod_1",
            "variant_ref": ref,
            "price": Decimal128("19.99"),
            "metadata": {"a": 1},
        }})
        client = make_client(catalog)

        resp = client.get("/store/products/prod_1/metadata")

        assert resp.status_code == 200
        product = resp.json()["product"]
        assert product["variant_ref"] == str(ref)
        assert product["price"] == "19.99"
        assert product["metadata"] == {"a": 1}

    def test_unserializable_field_gets_json_error_envelope(self, make_client):
        catalog = FakeCatalog(products={"prod_1": {"id": "prod_1", "blob": object(), "metadata": {}}})
        client = make_client(catalog)

        resp = client.get("/store/products/prod_1/metadata")

        assert resp.status_code == 500
        assert resp.json() == {"message": "Failed to fetch product metadata", "error": "Internal server error"}

    def test_repeated_gets_are_identical(self, make_client):
        catalog = FakeCatalog(products={"prod_1": {"id": "prod_1", "metadata": {"k": [1, 2]}}})
        client = make_client(catalog)

        first = client.get("/store/products/prod_1/metadata")
        second = client.get("/store/products/prod_1/metadata")

        assert first.status_code == second.status_code == 200
        assert first.json() == second.json()
        assert catalog.products["prod_1"] == {"id": "prod_1", "metadata": {"k": [1, 2]}}


class TestStorefrontFallback:
    def test_peer_product_without_metadata_gets_empty_object(self, make_client):
        catalog = FakeCatalog()
        client = make_client(catalog, storefront_products={"prod_2": {"id": "prod_2", "title": "Mug"}})

        resp = client.get("/store/products/prod_2/metadata")

        assert resp.status_code == 200
        assert resp.json() == {"product": {"id": "prod_2", "title": "Mug", "metadata": {}}}

    def test_peer_product_is_backfilled(self, make_client):
        catalog = FakeCatalog(metadata={"prod_123": GOLD})
        client = make_client(catalog, storefront_products={"prod_123": {"id": "prod_123", "title": "Card"}})

        resp = client.get("/store/products/prod_123/metadata")

        assert resp.status_code == 200
        assert resp.json() == {"product": {"id": "prod_123", "title": "Card", "metadata": {"tier": "gold"}}}

    def test_catalog_failure_still_reaches_peer(self, make_client):
        catalog = FakeCatalog(fail=RuntimeError("product module not registered"))
        client = make_client(catalog, storefront_products={"prod_3": {"id": "prod_3"}})

        resp = client.get("/store/products/prod_3/metadata")

        assert resp.status_code == 200
        assert resp.json() == {"product": {"id": "prod_3", "metadata": {}}}
        assert [op for op, _ in catalog.calls] == ["retrieve", "retrieve_metadata"]

    def test_publishable_key_and_authorization_are_forwarded(self, make_client):
        seen = []
        transport = storefront_transport({"prod_4": {"id": "prod_4"}}, seen=seen)
        client = make_client(FakeCatalog(), transport=transport)

        resp = client.get(
            "/store/products/prod_4/metadata",
            headers={"x-publishable-api-key": "pk_123", "Authorization": "Bearer abc", "Cookie": "sid=1"},
        )

        assert resp.status_code == 200
        assert len(seen) == 1
        assert seen[0].url == httpx.URL("http://store.test/store/products/prod_4")
        assert seen[0].headers["x-publishable-api-key"] == "pk_123"
        assert seen[0].headers["authorization"] == "Bearer abc"
        assert "cookie" not in seen[0].headers


class TestNotFound:
    def test_missing_everywhere_is_404(self, make_client):
        client = make_client(FakeCatalog())

        resp = client.get("/store/products/prod_missing/metadata")

        assert resp.status_code == 404
        assert resp.json() == {"message": "Product not found"}

    def test_malformed_peer_answer_is_404(self, make_client):
        client = make_client(FakeCatalog(), transport=storefront_transport(body=b"<html>oops</html>"))

        resp = client.get("/store/products/prod_x/metadata")

        assert resp.status_code == 404
        assert resp.json() == {"message": "Product not found"}


class TestFailures:
    def test_peer_outage_without_product_is_500(self, make_client):
        catalog = FakeCatalog(fail=RuntimeError("down"))
        client = make_client(catalog, transport=failing_transport(httpx.ConnectError("connection refused")))

        resp = client.get("/store/products/prod_5/metadata")

        assert resp.status_code == 500
        body = resp.json()
        assert body["message"] == "Failed to fetch product metadata"
        assert body["error"] == "Product source unavailable"
        assert "connection refused" not in resp.text
        assert "product" not in body

    def test_peer_5xx_without_product_is_500(self, make_client):
        client = make_client(FakeCatalog(), transport=storefront_transport(status=502))

        resp = client.get("/store/products/prod_5/metadata")

        assert resp.status_code == 500

    def test_unexpected_fault_is_sanitized(self, make_client, monkeypatch):
        from app.domain.services.product_metadata_svc import ProductMetadataResolver

        async def boom(self, product_id, headers=None):
            raise KeyError("secret-mongo-password")

        monkeypatch.setattr(ProductMetadataResolver, "resolve", boom)
        client = make_client(FakeCatalog())

        resp = client.get("/store/products/prod_6/metadata")

        assert resp.status_code == 500
        assert resp.json() == {"message": "Failed to fetch product metadata", "error": "Internal server error"}
        assert "secret" not in resp.text


class TestLookupTrace:
    def test_trace_hidden_by_default(self, make_client):
        client = make_client(FakeCatalog(products={"prod_1": {"id": "prod_1", "metadata": {"a": 1}}}))

        resp = client.get("/store/products/prod_1/metadata")

        assert "lookup" not in resp.json()

    def test_trace_exposed_when_enabled(self, make_client):
        catalog = FakeCatalog(metadata={"prod_123": GOLD})
        client = make_client(
            catalog,
            storefront_products={"prod_123": {"id": "prod_123"}},
            EXPOSE_LOOKUP_TRACE=True,
        )

        resp = client.get("/store/products/prod_123/metadata")

        lookup = resp.json()["lookup"]
        assert lookup["product_source"] == "storefront"
        assert lookup["metadata_source"] == "catalog_metadata"
        assert [(a["source"], a["outcome"]) for a in lookup["attempts"]] == [
            ("catalog", "not_found"),
            ("storefront", "found"),
            ("catalog_metadata", "found"),
        ]
