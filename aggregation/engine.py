"""
Quantity Aggregator

Single pass over orders: classify → extract → match → accumulate into
(period, channel, category) buckets.

Usage:
    aggregator = QuantityAggregator(catalog, granularity='month')
    aggregator.add_orders(orders)
    result = aggregator.result()

    # Partitioned runs
    left = QuantityAggregator(catalog); left.add_orders(orders[:500])
    right = QuantityAggregator(catalog); right.add_orders(orders[500:])
    left.merge(right)
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Set

import config
from matching.pipeline import CatalogMatcher
from standardization.processor import LineItemProcessor
from standardization.schema import CanonicalProduct, ClassifiedItem, Match, OrderRecord, ResolvedQuantity, Units

from .buckets import UNRESOLVED_KEY, AggregationBucket, BucketKey, accumulate, empty_bucket, merge
from .channels import GRANULARITIES, Channel, order_channel, order_period

logger = logging.getLogger(__name__)


# === Category keying strategies ===

CategoryKey = Callable[[ClassifiedItem, Match], str]


def product_group_key(item: ClassifiedItem, match: Match) -> str:
    """Reporting column of the matched catalog product ("PERRO - POLLO")."""
    return match.product.group_key


def subcategory_key(item: ClassifiedItem, match: Match) -> str:
    """Classifier flavor subcategory ("pollo", "bigDogVaca", ...)."""
    return item.subcategory.value


def counts_toward_total_kg(product: CanonicalProduct) -> bool:
    """PERRO and GATO always; OTROS only for HUESOS CARNOSOS; RAW never."""
    return product.counts_toward_total_kg


def line_quantity(item: ClassifiedItem, product: CanonicalProduct) -> ResolvedQuantity:
    """
    Quantity a matched line contributes to its bucket.

    Size-less catalog products (weight_class None) always count units,
    one per item sold, whatever size the line text names.
    """
    if product.weight_class is not None:
        return item.weight
    if isinstance(item.weight, Units) and item.weight.sized:
        return item.weight
    return Units(item.line_item.quantity)


@dataclass
class AggregationResult:
    buckets: Dict[BucketKey, AggregationBucket] = field(default_factory=dict)
    unresolved: List[ClassifiedItem] = field(default_factory=list)
    stats: Counter = field(default_factory=Counter)
    # Category keys whose kilograms enter "total kilograms sold"
    eligible_keys: Set[str] = field(default_factory=set)

    def merge(self, other: "AggregationResult") -> "AggregationResult":
        """New result holding both sides; neither input is modified."""
        buckets = dict(self.buckets)
        for key, bucket in other.buckets.items():
            buckets[key] = merge(buckets[key], bucket) if key in buckets else bucket
        return AggregationResult(
            buckets=buckets,
            unresolved=self.unresolved + other.unresolved,
            stats=self.stats + other.stats,
            eligible_keys=self.eligible_keys | other.eligible_keys,
        )

    @property
    def periods(self) -> List[str]:
        return sorted({key[0] for key in self.buckets})

    def rows(self) -> List[AggregationBucket]:
        return [self.buckets[key] for key in sorted(self.buckets, key=lambda k: (k[0], k[1].value, k[2]))]

    def total_revenue(self, period: Optional[str] = None, channel: Optional[Channel] = None) -> Decimal:
        return sum(
            (b.revenue for b in self._select(period, channel)),
            Decimal('0'),
        )

    def eligible_kilograms(self, period: Optional[str] = None, channel: Optional[Channel] = None) -> Decimal:
        return sum(
            (b.kilograms for b in self._select(period, channel) if b.category_key in self.eligible_keys),
            Decimal('0'),
        )

    def order_ids(self, period: Optional[str] = None, channel: Optional[Channel] = None) -> Set[str]:
        ids: Set[str] = set()
        for bucket in self._select(period, channel):
            ids |= bucket.order_ids
        return ids

    def _select(self, period: Optional[str], channel: Optional[Channel]) -> Iterable[AggregationBucket]:
        for (bucket_period, bucket_channel, _), bucket in self.buckets.items():
            if period is not None and bucket_period != period:
                continue
            if channel is not None and bucket_channel is not channel:
                continue
            yield bucket

    def to_dict(self) -> dict:
        return {
            'buckets': [bucket.to_dict() for bucket in self.rows()],
            'unresolved': [
                {
                    'product': item.line_item.product_label,
                    'option': item.line_item.option_label,
                    'section': item.section.label,
                    'quantity': item.line_item.quantity,
                    'revenue': str(item.line_item.revenue),
                }
                for item in self.unresolved
            ],
            'stats': dict(self.stats),
        }


class QuantityAggregator:
    """
    Owns its buckets exclusively; not meant to be shared between threads.
    Run one aggregator per partition and merge.
    """

    def __init__(
        self,
        catalog: Sequence[CanonicalProduct],
        granularity: Optional[str] = None,
        category_key: CategoryKey = product_group_key,
        allow_fallback: Optional[bool] = None,
    ):
        self.granularity = granularity or config.DEFAULT_GRANULARITY
        if self.granularity not in GRANULARITIES:
            raise ValueError(f"Unknown granularity '{self.granularity}', expected one of {GRANULARITIES}")

        self.matcher = CatalogMatcher(catalog, allow_fallback=allow_fallback)
        self.processor = LineItemProcessor()
        self.category_key = category_key
        self._result = AggregationResult()

    def add_order(self, order: OrderRecord):
        period = order_period(order, self.granularity)
        channel = order_channel(order)
        buckets = self._result.buckets
        self._result.stats['orders'] += 1

        for line_item in order.items:
            classified = self.processor.transform(line_item)
            found = self.matcher.match(classified)
            self._result.stats['lines'] += 1

            if found is None:
                key = (period, channel, UNRESOLVED_KEY)
                quantity = None
                self._result.unresolved.append(classified)
                self._result.stats['unresolved'] += 1
                logger.warning(
                    f"Unresolved line in order {order.order_id}: "
                    f"'{line_item.product_label}' / '{line_item.option_label}' ({classified.section.label})"
                )
            else:
                category = self.category_key(classified, found)
                key = (period, channel, category)
                quantity = line_quantity(classified, found.product)
                self._result.stats['matched'] += 1
                self._result.stats[f"tier_{found.tier.value}"] += 1
                if counts_toward_total_kg(found.product):
                    self._result.eligible_keys.add(category)

            bucket = buckets.get(key) or empty_bucket(*key)
            buckets[key] = accumulate(bucket, quantity, line_item.revenue, order.order_id)

    def add_orders(self, orders: Iterable[OrderRecord]):
        for order in orders:
            self.add_order(order)

    def merge(self, other: "QuantityAggregator") -> "QuantityAggregator":
        self._result = self._result.merge(other._result)
        return self

    def result(self) -> AggregationResult:
        stats = self._result.stats
        logger.info(
            f"Aggregated {stats['orders']} orders, {stats['lines']} lines: "
            f"{stats['matched']} matched, {stats['unresolved']} unresolved, "
            f"{len(self._result.buckets)} buckets"
        )
        return self._result


def aggregate_orders(
    orders: Iterable[OrderRecord],
    catalog: Sequence[CanonicalProduct],
    granularity: Optional[str] = None,
    category_key: CategoryKey = product_group_key,
    allow_fallback: Optional[bool] = None,
) -> AggregationResult:
    """
    Aggregate orders against a catalog in one pass.

    Raises:
        EmptyCatalogError: if the catalog is empty
        ValueError: for an unknown granularity
    """
    aggregator = QuantityAggregator(
        catalog,
        granularity=granularity,
        category_key=category_key,
        allow_fallback=allow_fallback,
    )
    aggregator.add_orders(orders)
    return aggregator.result()
