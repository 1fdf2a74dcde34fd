"""
Reports built on aggregation results.

All functions are pure: they take orders / results and return plain
dicts and lists ready for JSON. Cancelled orders are dropped here via
active_orders(); the aggregator itself counts whatever it is given.
"""

import logging
from collections import defaultdict
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

import config
from matching.pipeline import CatalogMatcher, EmptyCatalogError
from standardization.category_classifier import report_sort_key
from standardization.processor import LineItemProcessor
from standardization.schema import CanonicalProduct, Kilograms, OrderRecord, Section, Subcategory

from .buckets import UNRESOLVED_KEY
from .channels import Channel, effective_date, order_channel
from .engine import AggregationResult, aggregate_orders, counts_toward_total_kg, line_quantity, subcategory_key

logger = logging.getLogger(__name__)

NO_POINT_OF_SALE = "SIN PUNTO DE VENTA"

DOG_SUBCATEGORIES = [s for s in Subcategory if s.section is Section.DOG]
CAT_SUBCATEGORIES = [s for s in Subcategory if s.section is Section.CAT]


def _round(value) -> float:
    return float(Decimal(value).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP))


def _percent(part: Decimal, whole: Decimal) -> float:
    if not whole:
        return 0.0
    return _round(part * 100 / whole)


def active_orders(orders: Iterable[OrderRecord]) -> List[OrderRecord]:
    return [o for o in orders if (o.status or '').lower() not in config.EXCLUDED_ORDER_STATUSES]


def total_kilograms(result: AggregationResult, period: Optional[str] = None) -> float:
    """Kilograms sold that count toward the headline total."""
    return _round(result.eligible_kilograms(period))


# === Quantity by period ===

def quantity_stats_by_period(result: AggregationResult) -> Dict[str, List[dict]]:
    """
    Kilograms per flavor subcategory, per channel and period.

    Expects a result keyed by subcategory_key.

    Returns:
        {"minorista": [{"period": "2025-03", "pollo": 120.0, ..., "total": 480.0}], ...}
    """
    table: Dict[Channel, Dict[str, Dict[str, Decimal]]] = {
        channel: defaultdict(lambda: defaultdict(Decimal)) for channel in Channel
    }
    for (period, channel, key), bucket in result.buckets.items():
        if key == UNRESOLVED_KEY:
            continue
        table[channel][period][key] += bucket.kilograms

    report: Dict[str, List[dict]] = {}
    for channel, periods in table.items():
        rows = []
        for period in sorted(periods):
            kilos = periods[period]
            row = {'period': period}
            for subcategory in DOG_SUBCATEGORIES + CAT_SUBCATEGORIES:
                row[subcategory.value] = _round(kilos[subcategory.value])
            total_dog = sum((kilos[s.value] for s in DOG_SUBCATEGORIES), Decimal('0'))
            total_cat = sum((kilos[s.value] for s in CAT_SUBCATEGORIES), Decimal('0'))
            meaty_bones = kilos[Subcategory.MEATY_BONES.value]
            row.update({
                'total_dog': _round(total_dog),
                'total_cat': _round(total_cat),
                'meaty_bones': _round(meaty_bones),
                'total': _round(total_dog + total_cat + meaty_bones),
            })
            rows.append(row)
        report[channel.value] = rows
    return report


def quantity_report(
    orders: Iterable[OrderRecord],
    catalog: Sequence[CanonicalProduct],
    granularity: str = 'month',
    allow_fallback: Optional[bool] = None,
) -> Dict[str, List[dict]]:
    result = aggregate_orders(
        active_orders(orders),
        catalog,
        granularity=granularity,
        category_key=subcategory_key,
        allow_fallback=allow_fallback,
    )
    return quantity_stats_by_period(result)


# === Point of sale ===

def _wholesale_by_point_of_sale(orders: Iterable[OrderRecord]) -> Dict[str, List[OrderRecord]]:
    groups: Dict[str, List[OrderRecord]] = defaultdict(list)
    for order in active_orders(orders):
        if order_channel(order) is not Channel.WHOLESALE:
            continue
        groups[order.point_of_sale or NO_POINT_OF_SALE].append(order)
    return groups


def _column_sort_key(group_key: str):
    section_label, _, name = group_key.partition(' - ')
    return report_sort_key(Section.parse(section_label), name, group_key)


def point_of_sale_matrix(
    orders: Iterable[OrderRecord],
    catalog: Sequence[CanonicalProduct],
    allow_fallback: Optional[bool] = None,
) -> dict:
    """
    Product × point-of-sale matrix for wholesale orders.

    `products` holds kilograms per column and `units` the unit counts;
    a column fed by both kinds of line keeps both. total_kilos only
    counts products eligible for the kilogram total.
    """
    if not catalog:
        raise EmptyCatalogError("Catalog is empty; cannot resolve order lines")

    rows = []
    columns = set()
    for point_of_sale, group in _wholesale_by_point_of_sale(orders).items():
        result = aggregate_orders(group, catalog, granularity='all', allow_fallback=allow_fallback)
        kilos: Dict[str, Decimal] = defaultdict(Decimal)
        units: Dict[str, int] = defaultdict(int)
        for bucket in result.buckets.values():
            if bucket.category_key == UNRESOLVED_KEY:
                continue
            columns.add(bucket.category_key)
            if bucket.kilograms:
                kilos[bucket.category_key] += bucket.kilograms
            if bucket.units:
                units[bucket.category_key] += bucket.units
        rows.append({
            'point_of_sale': point_of_sale,
            'products': {key: _round(value) for key, value in kilos.items()},
            'units': dict(units),
            'total_kilos': total_kilograms(result),
            'order_count': len(result.order_ids()),
            'unresolved_lines': len(result.unresolved),
        })

    logger.info(f"Point-of-sale matrix: {len(rows)} points of sale, {len(columns)} products")
    rows.sort(key=lambda row: row['total_kilos'], reverse=True)
    return {
        'columns': sorted(columns, key=_column_sort_key),
        'rows': rows,
    }


def _order_kilograms(order: OrderRecord, matcher: CatalogMatcher, processor: LineItemProcessor) -> Decimal:
    kilos = Decimal('0')
    for line_item in order.items:
        classified = processor.transform(line_item)
        found = matcher.match(classified)
        if not found or not counts_toward_total_kg(found.product):
            continue
        quantity = line_quantity(classified, found.product)
        if isinstance(quantity, Kilograms):
            kilos += quantity.value
    return kilos


def point_of_sale_stats(
    orders: Iterable[OrderRecord],
    catalog: Sequence[CanonicalProduct],
    allow_fallback: Optional[bool] = None,
) -> List[dict]:
    """
    Purchase behaviour per wholesale point of sale.

    average_days_between_orders is None with fewer than two orders.
    """
    matcher = CatalogMatcher(catalog, allow_fallback=allow_fallback)
    processor = LineItemProcessor()

    stats = []
    for point_of_sale, group in _wholesale_by_point_of_sale(orders).items():
        group = sorted(group, key=lambda o: (effective_date(o.created_at, o.delivery_day), o.created_at))
        per_order = [_order_kilograms(order, matcher, processor) for order in group]
        total = sum(per_order, Decimal('0'))
        days: List[date] = [effective_date(o.created_at, o.delivery_day) for o in group]

        average_days = None
        if len(group) > 1:
            average_days = round((days[-1] - days[0]).days / (len(group) - 1))

        stats.append({
            'point_of_sale': point_of_sale,
            'total_kilos': _round(total),
            'order_count': len(group),
            'average_kilos_per_order': _round(total / len(group)),
            'last_order_kilos': _round(per_order[-1]),
            'average_days_between_orders': average_days,
            'first_order': days[0].isoformat(),
            'last_order': days[-1].isoformat(),
        })

    stats.sort(key=lambda row: row['total_kilos'], reverse=True)
    return stats


# === Stock sheet ===

def stock_sales(
    orders: Iterable[OrderRecord],
    catalog: Sequence[CanonicalProduct],
    day: date,
    point_of_sale: Optional[str] = None,
    allow_fallback: Optional[bool] = None,
) -> dict:
    """
    Items sold per catalog product on one day, for the stock sheet.

    Counts line quantities (boxes, packs), not kilograms. Every catalog
    product gets a row, in catalog order, so unsold products show 0.
    Pass point_of_sale to restrict to one shipping point.
    """
    matcher = CatalogMatcher(catalog, allow_fallback=allow_fallback)
    processor = LineItemProcessor()

    sold: Dict[CanonicalProduct, int] = {product: 0 for product in catalog}
    unresolved = 0
    for order in active_orders(orders):
        if effective_date(order.created_at, order.delivery_day) != day:
            continue
        if point_of_sale is not None and order.point_of_sale != point_of_sale:
            continue
        for line_item in order.items:
            found = matcher.match(processor.transform(line_item))
            if found is None:
                unresolved += 1
                continue
            sold[found.product] += line_item.quantity

    logger.info(f"Stock sales for {day.isoformat()}: {sum(sold.values())} items, {unresolved} unresolved lines")
    return {
        'day': day.isoformat(),
        'products': [
            {
                'section': product.section.label,
                'product': product.name,
                'weight_class': product.weight_class,
                'sold': quantity,
            }
            for product, quantity in sold.items()
        ],
        'unresolved_lines': unresolved,
    }


# === Balance ===

def balance_rows(
    result: AggregationResult,
    expenses_by_period: Optional[Mapping[str, Decimal]] = None,
) -> List[dict]:
    """
    Revenue per channel, expenses and result for each period.

    price_per_kg is total revenue over eligible kilograms (0 without kilograms).
    """
    expenses_by_period = expenses_by_period or {}
    periods = sorted(set(result.periods) | set(expenses_by_period))

    rows = []
    for period in periods:
        total = result.total_revenue(period)
        total_orders = len(result.order_ids(period))
        row = {'period': period}
        for channel in Channel:
            revenue = result.total_revenue(period, channel)
            count = len(result.order_ids(period, channel))
            row[channel.value] = {
                'revenue': _round(revenue),
                'revenue_pct': _percent(revenue, total),
                'orders': count,
                'orders_pct': _percent(Decimal(count), Decimal(total_orders)),
            }

        expenses = Decimal(str(expenses_by_period.get(period, 0)))
        outcome = total - expenses
        kilos = result.eligible_kilograms(period)
        row.update({
            'total_revenue': _round(total),
            'expenses': _round(expenses),
            'expenses_pct': _percent(expenses, total),
            'result': _round(outcome),
            'result_pct': _percent(outcome, total),
            'price_per_kg': _round(total / kilos) if kilos else 0.0,
        })
        rows.append(row)
    return rows
