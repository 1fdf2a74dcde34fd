"""
File loaders for catalogs, orders and expenses.

Catalog:  JSON list of {"section", "product", "weight"} or CSV with the
          header section,product,weight
Orders:   JSON list of order documents as exported from the dashboard
          (_id, createdAt, items[].options[], orderType, paymentMethod, ...)
Expenses: JSON {period: amount} / [{"period", "amount"}] or CSV period,amount
"""

import csv
import json
import logging
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Dict, List, Optional, Union

from standardization.schema import CanonicalProduct, OrderRecord, RawLineItem, to_decimal

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class LoaderError(Exception):
    """Unreadable or structurally invalid input file."""


def _read_json(path: Path):
    try:
        with open(path, encoding='utf-8') as f:
            return json.load(f)
    except FileNotFoundError:
        raise LoaderError(f"File not found: {path}")
    except json.JSONDecodeError as e:
        raise LoaderError(f"Invalid JSON in {path}: {e}")


def _read_csv(path: Path) -> List[dict]:
    try:
        with open(path, encoding='utf-8', newline='') as f:
            return [{(k or '').strip().lower(): (v or '').strip() for k, v in row.items()} for row in csv.DictReader(f)]
    except FileNotFoundError:
        raise LoaderError(f"File not found: {path}")


def _unwrap(value):
    # Mongo extended JSON: {"$date": ...}, {"$oid": ...}
    if isinstance(value, dict):
        for key in ('$date', '$oid', '$numberDecimal', '$numberInt', '$numberLong'):
            if key in value:
                return value[key]
    return value


def parse_datetime(value) -> datetime:
    """ISO timestamp (or epoch millis) → naive UTC datetime."""
    value = _unwrap(value)
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)):
        parsed = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise LoaderError(f"Invalid timestamp: {value!r}")
    else:
        raise LoaderError(f"Missing or invalid timestamp: {value!r}")

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _parse_day(value) -> Optional[date]:
    value = _unwrap(value)
    if value in (None, ''):
        return None
    if isinstance(value, str) and len(value.strip()) == 10:
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            raise LoaderError(f"Invalid delivery day: {value!r}")
    return parse_datetime(value).date()


# === Catalog ===

def _catalog_entry(row: dict, source: Path, index: int) -> CanonicalProduct:
    name = row.get('product') or row.get('name')
    section = row.get('section')
    if not name or not section:
        raise LoaderError(f"{source}: catalog row {index} needs 'section' and 'product'")
    weight = row.get('weight')
    if weight is None:
        weight = row.get('weight_class')
    return CanonicalProduct(section=section, name=str(name), weight_class=weight)


def load_catalog(path: PathLike) -> List[CanonicalProduct]:
    path = Path(path)
    if path.suffix.lower() == '.csv':
        rows = _read_csv(path)
    else:
        rows = _read_json(path)
        if not isinstance(rows, list):
            raise LoaderError(f"{path}: catalog must be a JSON list")

    catalog = []
    seen = set()
    for index, row in enumerate(rows, start=1):
        if not isinstance(row, dict):
            raise LoaderError(f"{path}: catalog row {index} is not an object")
        entry = _catalog_entry(row, path, index)
        if entry in seen:
            logger.debug(f"Duplicate catalog entry skipped: {entry.identifier}")
            continue
        seen.add(entry)
        catalog.append(entry)

    logger.info(f"Loaded {len(catalog)} catalog entries from {path}")
    return catalog


# === Orders ===

def _line_items(item: dict) -> List[RawLineItem]:
    product = item.get('name') or item.get('id') or ''
    options = item.get('options') or []
    if not options:
        # Missing quantity means one item; an explicit 0 means nothing sold
        quantity = _unwrap(item.get('quantity'))
        quantity = 1 if quantity is None else int(quantity)
        if quantity < 1:
            logger.debug(f"Skipping item with quantity {quantity}: '{product}'")
            return []
        return [RawLineItem(product, '', quantity, to_decimal(_unwrap(item.get('price'))))]

    lines = []
    for option in options:
        quantity = int(_unwrap(option.get('quantity')) or 0)
        if quantity < 1:
            logger.debug(f"Skipping option with quantity {quantity}: '{product}' / '{option.get('name')}'")
            continue
        lines.append(RawLineItem(
            product_label=product,
            option_label=option.get('name') or '',
            quantity=quantity,
            unit_price=to_decimal(_unwrap(option.get('price'))),
        ))
    return lines


def order_from_document(doc: dict) -> OrderRecord:
    order_id = _unwrap(doc.get('_id') or doc.get('id'))
    if not order_id:
        raise LoaderError("Order document without _id/id")

    items = []
    for item in doc.get('items') or []:
        try:
            items.extend(_line_items(item))
        except (ValueError, InvalidOperation, TypeError) as e:
            raise LoaderError(f"Order {order_id}: invalid item {item.get('name')!r}: {e}")

    delivery_area = doc.get('deliveryArea') or {}
    return OrderRecord(
        order_id=str(order_id),
        created_at=parse_datetime(doc.get('createdAt')),
        items=items,
        order_type=doc.get('orderType') or 'minorista',
        payment_method=doc.get('paymentMethod') or '',
        same_day_delivery=bool(delivery_area.get('sameDayDelivery')),
        delivery_day=_parse_day(doc.get('deliveryDay')),
        point_of_sale=_unwrap(doc.get('punto_de_venta')) or None,
        status=doc.get('status') or 'pending',
    )


def load_orders(path: PathLike) -> List[OrderRecord]:
    path = Path(path)
    documents = _read_json(path)
    if not isinstance(documents, list):
        raise LoaderError(f"{path}: orders must be a JSON list")

    orders = [order_from_document(doc) for doc in documents]
    logger.info(f"Loaded {len(orders)} orders from {path}")
    return orders


# === Expenses ===

def load_expenses(path: PathLike) -> Dict[str, Decimal]:
    """Expense totals per period label ("2025-03")."""
    path = Path(path)
    if path.suffix.lower() == '.csv':
        rows = _read_csv(path)
    else:
        data = _read_json(path)
        if isinstance(data, dict):
            rows = [{'period': k, 'amount': v} for k, v in data.items()]
        elif isinstance(data, list):
            rows = data
        else:
            raise LoaderError(f"{path}: expenses must be a JSON object or list")

    expenses: Dict[str, Decimal] = {}
    for index, row in enumerate(rows, start=1):
        period = row.get('period') or row.get('month')
        if not period:
            raise LoaderError(f"{path}: expense row {index} has no period")
        try:
            amount = to_decimal(_unwrap(row.get('amount')))
        except (ValueError, InvalidOperation):
            raise LoaderError(f"{path}: expense row {index} has an invalid amount")
        expenses[period] = expenses.get(period, Decimal('0')) + amount

    logger.info(f"Loaded expenses for {len(expenses)} periods from {path}")
    return expenses
