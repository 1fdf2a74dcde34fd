"""
Aggregation Module

Sums resolved quantities and revenue into (period, channel, category)
buckets and builds reports on top.
"""

from .buckets import UNRESOLVED_KEY, AggregationBucket, accumulate, merge
from .channels import Channel, channel_for_order, effective_date, period_for
from .engine import (
    AggregationResult,
    QuantityAggregator,
    aggregate_orders,
    counts_toward_total_kg,
    line_quantity,
    product_group_key,
    subcategory_key,
)
from .reports import (
    active_orders,
    balance_rows,
    point_of_sale_matrix,
    point_of_sale_stats,
    quantity_report,
    quantity_stats_by_period,
    stock_sales,
    total_kilograms,
)

__all__ = [
    # Buckets
    'AggregationBucket',
    'UNRESOLVED_KEY',
    'accumulate',
    'merge',

    # Channels
    'Channel',
    'channel_for_order',
    'effective_date',
    'period_for',

    # Engine
    'AggregationResult',
    'QuantityAggregator',
    'aggregate_orders',
    'counts_toward_total_kg',
    'line_quantity',
    'product_group_key',
    'subcategory_key',

    # Reports
    'active_orders',
    'balance_rows',
    'point_of_sale_matrix',
    'point_of_sale_stats',
    'quantity_report',
    'quantity_stats_by_period',
    'stock_sales',
    'total_kilograms',
]
