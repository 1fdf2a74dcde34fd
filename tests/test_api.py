from fastapi.testclient import TestClient

from api.main import app

client = TestClient(app)

CATALOG = [
    {"section": "PERRO", "name": "POLLO", "weight_class": "10KG"},
    {"section": "PERRO", "name": "BIG DOG POLLO", "weight_class": "15KG"},
    {"section": "RAW", "name": "OREJA", "weight_class": "X50"},
]

ORDERS = [
    {
        "order_id": "o1",
        "created_at": "2025-03-14T15:00:00Z",
        "items": [{"product_label": "BIG DOG POLLO", "option_label": "15KG", "quantity": 2, "unit_price": "15000"}],
    },
    {
        "order_id": "o2",
        "created_at": "2025-03-15T15:00:00Z",
        "order_type": "mayorista",
        "point_of_sale": "A",
        "items": [{"product_label": "BOX PERRO POLLO", "option_label": "10KG", "unit_price": "18000"}],
    },
]


def test_health() -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_resolve_lines() -> None:
    response = client.post("/api/resolve", json={
        "catalog": CATALOG,
        "items": [
            {"product_label": "BARFER BOX PERRO POLLO", "option_label": "10KG"},
            {"product_label": "OREJA", "option_label": "X50", "quantity": 2},
            {"product_label": "BARFER BOX PERRO POLLO", "option_label": "5KG"},
        ],
        "allow_fallback": False,
    })
    assert response.status_code == 200
    body = response.json()
    first, second, third = body["lines"]

    assert first["tier"] == 2
    assert first["match"]["name"] == "POLLO"
    assert first["quantity_kind"] == "kg"

    assert second["section"] == "RAW"
    assert second["quantity_kind"] == "units"
    assert second["quantity"] == "100"

    assert third["match"] is None
    assert body["unresolved"] == 1


def test_resolve_empty_catalog_is_400() -> None:
    response = client.post("/api/resolve", json={"catalog": [], "items": []})
    assert response.status_code == 400


def test_invalid_line_quantity_is_422() -> None:
    response = client.post("/api/resolve", json={
        "catalog": CATALOG,
        "items": [{"product_label": "POLLO", "quantity": 0}],
    })
    assert response.status_code == 422


def test_aggregate() -> None:
    response = client.post("/api/aggregate", json={"catalog": CATALOG, "orders": ORDERS})
    assert response.status_code == 200
    buckets = {(b["channel"], b["category_key"]): b for b in response.json()["buckets"]}

    big_dog = buckets[("minorista", "PERRO - BIG DOG POLLO")]
    assert float(big_dog["revenue"]) == 30000
    assert float(big_dog["kilograms"]) == 30
    assert big_dog["order_count"] == 1
    assert ("mayorista", "PERRO - POLLO") in buckets


def test_aggregate_unknown_granularity_is_400() -> None:
    response = client.post("/api/aggregate", json={"catalog": CATALOG, "orders": ORDERS, "granularity": "quarter"})
    assert response.status_code == 400


def test_quantity_report() -> None:
    response = client.post("/api/reports/quantity", json={"catalog": CATALOG, "orders": ORDERS})
    assert response.status_code == 200
    retail = response.json()["minorista"]
    assert retail[0]["period"] == "2025-03"
    assert retail[0]["bigDogPollo"] == 30.0


def test_matrix_report() -> None:
    response = client.post("/api/reports/matrix", json={"catalog": CATALOG, "orders": ORDERS})
    assert response.status_code == 200
    body = response.json()
    assert body["columns"] == ["PERRO - POLLO"]
    assert body["rows"][0]["point_of_sale"] == "A"
    assert body["rows"][0]["total_kilos"] == 10.0


def test_matrix_empty_catalog_is_400() -> None:
    response = client.post("/api/reports/matrix", json={"catalog": [], "orders": ORDERS})
    assert response.status_code == 400


def test_aggregate_skips_cancelled_orders() -> None:
    cancelled = {
        "order_id": "o3",
        "created_at": "2025-03-16T15:00:00Z",
        "status": "cancelled",
        "items": [{"product_label": "BIG DOG POLLO", "option_label": "15KG", "unit_price": "20000"}],
    }
    response = client.post("/api/aggregate", json={"catalog": CATALOG, "orders": ORDERS + [cancelled]})
    assert response.status_code == 200
    buckets = {(b["channel"], b["category_key"]): b for b in response.json()["buckets"]}
    assert float(buckets[("minorista", "PERRO - BIG DOG POLLO")]["revenue"]) == 30000


def test_stock_report() -> None:
    response = client.post("/api/reports/stock", json={"catalog": CATALOG, "orders": ORDERS, "day": "2025-03-14"})
    assert response.status_code == 200
    body = response.json()
    assert body["day"] == "2025-03-14"
    sold = {row["product"]: row["sold"] for row in body["products"]}
    assert sold == {"POLLO": 0, "BIG DOG POLLO": 2, "OREJA": 0}
    assert body["unresolved_lines"] == 0
