"""
Aggregation buckets: immutable running totals per (period, channel, category).

accumulate() and merge() are pure and never mutate their arguments, so
partial results computed over any partition of the input combine into the
same totals as a single pass.
"""

from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import FrozenSet, Optional, Tuple

from standardization.schema import Kilograms, ResolvedQuantity, Units, to_decimal

from .channels import Channel

UNRESOLVED_KEY = "UNRESOLVED"

BucketKey = Tuple[str, Channel, str]


@dataclass(frozen=True)
class AggregationBucket:
    key: BucketKey
    revenue: Decimal = Decimal('0')
    kilograms: Decimal = Decimal('0')
    units: int = 0
    line_count: int = 0
    order_ids: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def period(self) -> str:
        return self.key[0]

    @property
    def channel(self) -> Channel:
        return self.key[1]

    @property
    def category_key(self) -> str:
        return self.key[2]

    @property
    def order_count(self) -> int:
        return len(self.order_ids)

    def to_dict(self) -> dict:
        return {
            'period': self.period,
            'channel': self.channel.value,
            'category_key': self.category_key,
            'revenue': str(self.revenue),
            'kilograms': str(self.kilograms),
            'units': self.units,
            'line_count': self.line_count,
            'order_count': self.order_count,
        }


def empty_bucket(period: str, channel: Channel, category_key: str) -> AggregationBucket:
    return AggregationBucket(key=(period, channel, category_key))


def accumulate(
    bucket: AggregationBucket,
    quantity: Optional[ResolvedQuantity],
    revenue,
    order_id: str,
) -> AggregationBucket:
    """
    New bucket with one line added.

    Kilograms and units never mix; a None quantity (unresolved line) only
    contributes revenue and the order reference.
    """
    kilograms = bucket.kilograms
    units = bucket.units
    if isinstance(quantity, Kilograms):
        kilograms += quantity.value
    elif isinstance(quantity, Units):
        units += quantity.value

    return replace(
        bucket,
        revenue=bucket.revenue + to_decimal(revenue),
        kilograms=kilograms,
        units=units,
        line_count=bucket.line_count + 1,
        order_ids=bucket.order_ids | {order_id},
    )


def merge(a: AggregationBucket, b: AggregationBucket) -> AggregationBucket:
    if a.key != b.key:
        raise ValueError(f"Cannot merge buckets with different keys: {a.key} vs {b.key}")
    return replace(
        a,
        revenue=a.revenue + b.revenue,
        kilograms=a.kilograms + b.kilograms,
        units=a.units + b.units,
        line_count=a.line_count + b.line_count,
        order_ids=a.order_ids | b.order_ids,
    )
