import json
from datetime import date, datetime
from decimal import Decimal

import pytest

from services.storage import LoaderError, load_catalog, load_expenses, load_orders
from standardization.schema import CanonicalProduct, Section


ORDER_DOCUMENTS = [
    {
        "_id": {"$oid": "65f0a1"},
        "createdAt": "2025-03-14T15:20:00.000Z",
        "orderType": "mayorista",
        "paymentMethod": "cash",
        "deliveryArea": {"sameDayDelivery": False},
        "deliveryDay": "2025-03-16",
        "punto_de_venta": "pv-1",
        "status": "confirmed",
        "items": [
            {
                "name": "BIG DOG POLLO",
                "options": [
                    {"name": "15KG", "quantity": 2, "price": 42000},
                    {"name": "15KG", "quantity": 0, "price": 42000},
                ],
            },
            {"name": "COMPLEMENTO ACEITE", "price": "1500.50"},
        ],
    },
    {
        "id": "o2",
        "createdAt": {"$date": "2025-04-01T02:00:00Z"},
        "items": [],
    },
]


def write(tmp_path, name, content):
    path = tmp_path / name
    path.write_text(content, encoding="utf-8")
    return path


def test_load_catalog_csv(tmp_path) -> None:
    path = write(tmp_path, "catalog.csv", "section,product,weight\nPERRO,POLLO,10KG\nRAW,OREJA X50,\nPERRO,POLLO,10KG\n")
    assert load_catalog(path) == [
        CanonicalProduct(Section.DOG, "POLLO", "10KG"),
        CanonicalProduct(Section.RAW, "OREJA X50", None),
    ]


def test_load_catalog_json(tmp_path) -> None:
    path = write(tmp_path, "catalog.json", json.dumps([
        {"section": "GATO", "product": "POLLO", "weight": "5KG"},
        {"section": "OTROS", "name": "HUESOS CARNOSOS", "weight_class": "5KG"},
    ]))
    catalog = load_catalog(path)
    assert catalog[0].section is Section.CAT
    assert catalog[1] == CanonicalProduct(Section.OTHER, "HUESOS CARNOSOS", "5KG")


def test_load_catalog_rejects_rows_without_product(tmp_path) -> None:
    path = write(tmp_path, "catalog.json", json.dumps([{"section": "PERRO"}]))
    with pytest.raises(LoaderError):
        load_catalog(path)


def test_load_catalog_missing_file(tmp_path) -> None:
    with pytest.raises(LoaderError):
        load_catalog(tmp_path / "missing.json")


def test_load_orders_dashboard_shape(tmp_path) -> None:
    path = write(tmp_path, "orders.json", json.dumps(ORDER_DOCUMENTS))
    first, second = load_orders(path)

    assert first.order_id == "65f0a1"
    assert first.created_at == datetime(2025, 3, 14, 15, 20)
    assert first.order_type == "mayorista"
    assert first.delivery_day == date(2025, 3, 16)
    assert first.point_of_sale == "pv-1"
    # zero-quantity options are dropped, option-less items become one line
    assert [(i.product_label, i.option_label, i.quantity) for i in first.items] == [
        ("BIG DOG POLLO", "15KG", 2),
        ("COMPLEMENTO ACEITE", "", 1),
    ]
    assert first.revenue == Decimal("85500.50")

    assert second.order_id == "o2"
    assert second.created_at == datetime(2025, 4, 1, 2, 0)
    assert second.order_type == "minorista"
    assert second.items == ()


def test_load_orders_invalid_json(tmp_path) -> None:
    path = write(tmp_path, "orders.json", "{not json")
    with pytest.raises(LoaderError):
        load_orders(path)


def test_load_orders_negative_price(tmp_path) -> None:
    documents = [{"_id": "x", "createdAt": "2025-03-01T00:00:00Z",
                  "items": [{"name": "POLLO", "options": [{"name": "10KG", "quantity": 1, "price": -5}]}]}]
    path = write(tmp_path, "orders.json", json.dumps(documents))
    with pytest.raises(LoaderError):
        load_orders(path)


def test_load_expenses_formats(tmp_path) -> None:
    as_dict = write(tmp_path, "expenses.json", json.dumps({"2025-03": 1000, "2025-04": "250.5"}))
    assert load_expenses(as_dict) == {"2025-03": Decimal("1000"), "2025-04": Decimal("250.5")}

    as_csv = write(tmp_path, "expenses.csv", "period,amount\n2025-03,100\n2025-03,50\n")
    assert load_expenses(as_csv) == {"2025-03": Decimal("150")}


def test_load_orders_skips_optionless_item_with_zero_quantity(tmp_path) -> None:
    documents = [{"_id": "z", "createdAt": "2025-03-01T00:00:00Z",
                  "items": [{"name": "COMPLEMENTO ACEITE", "quantity": 0, "price": 1500},
                            {"name": "COMPLEMENTO ACEITE", "quantity": 2, "price": 1500}]}]
    path = write(tmp_path, "orders.json", json.dumps(documents))
    (order,) = load_orders(path)
    assert [item.quantity for item in order.items] == [2]
    assert order.revenue == Decimal("3000")
