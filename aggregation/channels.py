"""
Sales channel and reporting period derivation.

The channel comes from order metadata only:
    same-day delivery or bank transfer → sameDay
    order type "mayorista"             → mayorista
    anything else                      → minorista
"""

from datetime import date, datetime, timedelta
from enum import Enum
from typing import Optional

import config


class Channel(str, Enum):
    RETAIL = "minorista"
    SAME_DAY = "sameDay"
    WHOLESALE = "mayorista"


SAME_DAY_PAYMENT_METHODS = ('bank-transfer',)
WHOLESALE_ORDER_TYPES = ('mayorista',)

GRANULARITIES = ('day', 'week', 'month', 'all')


def channel_for_order(
    order_type: Optional[str],
    payment_method: Optional[str] = None,
    same_day_delivery: bool = False,
) -> Channel:
    if same_day_delivery or (payment_method or '') in SAME_DAY_PAYMENT_METHODS:
        return Channel.SAME_DAY
    if (order_type or 'minorista') in WHOLESALE_ORDER_TYPES:
        return Channel.WHOLESALE
    return Channel.RETAIL


def effective_date(created_at: datetime, delivery_day: Optional[date] = None) -> date:
    """
    Business day an order belongs to.

    The delivery day wins when present; otherwise the UTC creation timestamp
    is shifted to business local time.
    """
    if delivery_day is not None:
        if isinstance(delivery_day, datetime):
            return delivery_day.date()
        return delivery_day
    local = created_at + timedelta(hours=config.BUSINESS_UTC_OFFSET_HOURS)
    return local.date()


def period_for(day: date, granularity: str = config.DEFAULT_GRANULARITY) -> str:
    """
    Period label for a business day.

    Example:
        >>> period_for(date(2025, 3, 14), 'month')
        '2025-03'
        >>> period_for(date(2025, 3, 14), 'week')
        '2025-W11'
    """
    if granularity == 'month':
        return f"{day.year:04d}-{day.month:02d}"
    if granularity == 'day':
        return day.isoformat()
    if granularity == 'week':
        iso_year, iso_week, _ = day.isocalendar()
        return f"{iso_year:04d}-W{iso_week:02d}"
    if granularity == 'all':
        return 'ALL'
    raise ValueError(f"Unknown granularity '{granularity}', expected one of {GRANULARITIES}")


def order_channel(order) -> Channel:
    return channel_for_order(order.order_type, order.payment_method, order.same_day_delivery)


def order_period(order, granularity: str = config.DEFAULT_GRANULARITY) -> str:
    return period_for(effective_date(order.created_at, order.delivery_day), granularity)
