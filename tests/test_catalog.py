import uuid
from decimal import Decimal

from lupora.database import db_state
from lupora.models.product import Product


def test_list_products(client, products):
    response = client.get("/api/products")

    assert response.status_code == 200
    names = [p["name"] for p in response.json()]
    assert names == ["Flora Divina", "Oud Mystique"]
    first = response.json()[0]
    assert first["price"] == 100.0
    assert first["category"] == "Floral"
    assert first["image"] == "/flora-divina.webp"
    assert response.headers["Cache-Control"] == "public, max-age=300"


def test_products_are_served_from_cache_until_ttl(client, products, db, clock):
    first = client.get("/api/products")
    assert first.headers["X-Cache"] == "MISS"

    db.add(Product(name="Amber Noir", category="Amber", price=Decimal("5500")))
    db.commit()

    clock.advance(299)
    cached = client.get("/api/products")
    assert cached.headers["X-Cache"] == "HIT"
    assert len(cached.json()) == 2

    clock.advance(1)
    refreshed = client.get("/api/products")
    assert refreshed.headers["X-Cache"] == "MISS"
    assert len(refreshed.json()) == 3


def test_cache_serves_while_database_is_down(client, products, monkeypatch):
    client.get("/api/products")
    monkeypatch.setattr(db_state, "connected", False)

    response = client.get("/api/products")

    assert response.status_code == 200
    assert len(response.json()) == 2


def test_catalog_unavailable_without_database(client, products, monkeypatch):
    monkeypatch.setattr(db_state, "connected", False)

    response = client.get("/api/products")

    assert response.status_code == 503
    assert response.json()["message"] == "Database not connected"


def test_get_product(client, products):
    response = client.get(f"/api/products/{products['b']}")

    assert response.status_code == 200
    assert response.json()["name"] == "Oud Mystique"
    assert response.json()["price"] == 250.5


def test_get_product_invalid_or_missing(client, products):
    invalid = client.get("/api/products/not-a-uuid")
    missing = client.get(f"/api/products/{uuid.uuid4()}")

    assert invalid.status_code == 400
    assert invalid.json()["message"] == "Invalid product ID"
    assert missing.status_code == 404
    assert missing.json()["message"] == "Product not found"


def test_list_media(client, products):
    response = client.get("/api/media")

    assert response.status_code == 200
    assert response.json() == [{
        "id": response.json()[0]["id"],
        "name": "Lupora Hero",
        "type": "video",
        "url": "/lupora-hero-video.mp4",
    }]
    assert response.headers["X-Cache"] == "MISS"
    assert client.get("/api/media").headers["X-Cache"] == "HIT"


def test_security_headers_present(client):
    response = client.get("/health")

    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"
    assert "X-Process-Time" in response.headers


def test_cors_allows_configured_origin_only(client):
    allowed = client.options("/api/products", headers={
        "Origin": "http://localhost:5173",
        "Access-Control-Request-Method": "GET",
    })
    refused = client.options("/api/products", headers={
        "Origin": "https://evil.example.com",
        "Access-Control-Request-Method": "GET",
    })

    assert allowed.headers.get("access-control-allow-origin") == "http://localhost:5173"
    assert "access-control-allow-origin" not in refused.headers


def test_products_expose_storefront_id_field(client, products):
    listed = client.get("/api/products").json()
    cached = client.get("/api/products").json()
    detail = client.get(f"/api/products/{products['a']}").json()

    assert [p["_id"] for p in listed] == [p["id"] for p in listed]
    assert cached == listed
    assert detail["_id"] == products["a"]
