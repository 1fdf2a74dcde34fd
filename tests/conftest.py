from datetime import datetime
from decimal import Decimal

import pytest

from standardization.schema import CanonicalProduct, OrderRecord, RawLineItem, Section


@pytest.fixture
def catalog():
    return [
        CanonicalProduct(Section.DOG, "POLLO", "10KG"),
        CanonicalProduct(Section.DOG, "VACA", "10KG"),
        CanonicalProduct(Section.DOG, "BIG DOG POLLO", "15KG"),
        CanonicalProduct(Section.CAT, "POLLO", "5KG"),
        CanonicalProduct(Section.OTHER, "HUESOS CARNOSOS", "5KG"),
        CanonicalProduct(Section.OTHER, "COMPLEMENTOS", None),
        CanonicalProduct(Section.RAW, "OREJA", "X50"),
        CanonicalProduct(Section.RAW, "CORNALITOS", "200GRS"),
    ]


def make_order(order_id, *items, created_at=None, **kwargs):
    return OrderRecord(
        order_id=order_id,
        created_at=created_at or datetime(2025, 3, 14, 15, 0),
        items=items,
        **kwargs,
    )


def line(product, option='', quantity=1, price='0'):
    return RawLineItem(product, option, quantity, Decimal(price))


def sample_orders():
    return [
        make_order("o1", line("BIG DOG POLLO", "15KG", 2, "15000"), line("OREJA", "X50", 1, "3000")),
        make_order("o2", line("BIG DOG POLLO", "15KG", 1, "20000")),
        make_order("o3", line("BOX PERRO POLLO", "10KG", 1, "18000"), order_type="mayorista"),
        make_order("o4", line("CORNALITOS", "200GRS", 3, "2500"), payment_method="bank-transfer"),
        make_order("o5", line("PRODUCTO DESCONOCIDO", "", 1, "999")),
        make_order("o6", line("BOX GATO POLLO", "5KG", 1, "9000"), created_at=datetime(2025, 4, 2, 12, 0)),
    ]
