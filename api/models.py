"""
Pydantic Models for API Requests and Responses

Request models convert to engine records via to_record(); response models
are built from engine results.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from standardization.schema import CanonicalProduct, OrderRecord, RawLineItem, Section


# ============================================
# Catalog / line models
# ============================================

class CatalogEntry(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    section: Section
    name: str
    weight_class: Optional[str] = None

    def to_record(self) -> CanonicalProduct:
        return CanonicalProduct(section=self.section, name=self.name, weight_class=self.weight_class)


class LineItem(BaseModel):
    product_label: str
    option_label: str = ''
    quantity: int = Field(default=1, ge=1)
    unit_price: Decimal = Field(default=Decimal('0'), ge=0)

    def to_record(self) -> RawLineItem:
        return RawLineItem(self.product_label, self.option_label, self.quantity, self.unit_price)


class Order(BaseModel):
    order_id: str
    created_at: datetime
    items: List[LineItem] = []
    order_type: str = 'minorista'
    payment_method: str = ''
    same_day_delivery: bool = False
    delivery_day: Optional[date] = None
    point_of_sale: Optional[str] = None
    status: str = 'pending'

    def to_record(self) -> OrderRecord:
        created_at = self.created_at
        if created_at.tzinfo is not None:
            created_at = created_at.astimezone(timezone.utc).replace(tzinfo=None)
        return OrderRecord(
            order_id=self.order_id,
            created_at=created_at,
            items=[item.to_record() for item in self.items],
            order_type=self.order_type,
            payment_method=self.payment_method,
            same_day_delivery=self.same_day_delivery,
            delivery_day=self.delivery_day,
            point_of_sale=self.point_of_sale,
            status=self.status,
        )


# ============================================
# Requests
# ============================================

class ResolveRequest(BaseModel):
    catalog: List[CatalogEntry]
    items: List[LineItem]
    allow_fallback: Optional[bool] = None


class AggregateRequest(BaseModel):
    catalog: List[CatalogEntry]
    orders: List[Order]
    granularity: Optional[str] = None
    allow_fallback: Optional[bool] = None


class MatrixRequest(BaseModel):
    catalog: List[CatalogEntry]
    orders: List[Order]
    allow_fallback: Optional[bool] = None


class StockRequest(BaseModel):
    catalog: List[CatalogEntry]
    orders: List[Order]
    day: date
    point_of_sale: Optional[str] = None
    allow_fallback: Optional[bool] = None


# ============================================
# Responses
# ============================================

class ResolvedLine(BaseModel):
    product_label: str
    option_label: str
    section: str
    subcategory: str
    quantity_kind: str
    quantity: str
    sized: bool = True
    match: Optional[CatalogEntry] = None
    tier: Optional[int] = None


class ResolveResponse(BaseModel):
    lines: List[ResolvedLine]
    unresolved: int


class BucketOut(BaseModel):
    period: str
    channel: str
    category_key: str
    revenue: Decimal
    kilograms: Decimal
    units: int
    line_count: int
    order_count: int


class UnresolvedOut(BaseModel):
    product: str
    option: str
    section: str
    quantity: int
    revenue: Decimal


class AggregateResponse(BaseModel):
    buckets: List[BucketOut]
    unresolved: List[UnresolvedOut]
    stats: Dict[str, int]


class MatrixRow(BaseModel):
    point_of_sale: str
    products: Dict[str, float]
    units: Dict[str, int] = Field(default_factory=dict)
    total_kilos: float
    order_count: int
    unresolved_lines: int


class MatrixResponse(BaseModel):
    columns: List[str]
    rows: List[MatrixRow]


class StockRow(BaseModel):
    section: str
    product: str
    weight_class: Optional[str] = None
    sold: int


class StockResponse(BaseModel):
    day: date
    products: List[StockRow]
    unresolved_lines: int
