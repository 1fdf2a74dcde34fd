"""
Barfer Analytics API - Resolution & Aggregation Endpoints
Stateless: every request carries its own catalog.
"""

import logging
from typing import List

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

import config
from aggregation import active_orders, aggregate_orders, point_of_sale_matrix, quantity_report, stock_sales
from matching import CatalogMatcher, EmptyCatalogError
from standardization import Kilograms, LineItemProcessor

from .models import (
    AggregateRequest,
    AggregateResponse,
    CatalogEntry,
    MatrixRequest,
    MatrixResponse,
    ResolveRequest,
    ResolveResponse,
    ResolvedLine,
    StockRequest,
    StockResponse,
)

logger = logging.getLogger(__name__)

app = FastAPI(title="Barfer Analytics API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


def _catalog(entries: List[CatalogEntry]):
    return [entry.to_record() for entry in entries]


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.post("/api/resolve", response_model=ResolveResponse)
async def resolve(request: ResolveRequest):
    """Classify, size and match individual order lines."""
    try:
        matcher = CatalogMatcher(_catalog(request.catalog), allow_fallback=request.allow_fallback)
    except EmptyCatalogError as e:
        raise HTTPException(status_code=400, detail=str(e))

    processor = LineItemProcessor()
    lines = []
    for item in request.items:
        classified = processor.transform(item.to_record())
        found = matcher.match(classified)
        weight = classified.weight
        lines.append(ResolvedLine(
            product_label=item.product_label,
            option_label=item.option_label,
            section=classified.section.label,
            subcategory=classified.subcategory.value,
            quantity_kind='kg' if isinstance(weight, Kilograms) else 'units',
            quantity=str(weight.value),
            sized=getattr(weight, 'sized', True),
            match=CatalogEntry.model_validate(found.product) if found else None,
            tier=int(found.tier) if found else None,
        ))

    return ResolveResponse(lines=lines, unresolved=sum(1 for line in lines if line.match is None))


@app.post("/api/aggregate", response_model=AggregateResponse)
async def aggregate(request: AggregateRequest):
    try:
        result = aggregate_orders(
            active_orders([order.to_record() for order in request.orders]),
            _catalog(request.catalog),
            granularity=request.granularity,
            allow_fallback=request.allow_fallback,
        )
    except (EmptyCatalogError, ValueError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    return result.to_dict()


@app.post("/api/reports/quantity")
async def quantity(request: AggregateRequest):
    """Kilograms per flavor, channel and period."""
    try:
        return quantity_report(
            [order.to_record() for order in request.orders],
            _catalog(request.catalog),
            granularity=request.granularity or config.DEFAULT_GRANULARITY,
            allow_fallback=request.allow_fallback,
        )
    except (EmptyCatalogError, ValueError) as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.post("/api/reports/matrix", response_model=MatrixResponse)
async def matrix(request: MatrixRequest):
    """Product x point-of-sale matrix for wholesale orders."""
    try:
        return point_of_sale_matrix(
            [order.to_record() for order in request.orders],
            _catalog(request.catalog),
            allow_fallback=request.allow_fallback,
        )
    except EmptyCatalogError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.post("/api/reports/stock", response_model=StockResponse)
async def stock(request: StockRequest):
    """Items sold per catalog product on one day."""
    try:
        return stock_sales(
            [order.to_record() for order in request.orders],
            _catalog(request.catalog),
            request.day,
            point_of_sale=request.point_of_sale,
            allow_fallback=request.allow_fallback,
        )
    except EmptyCatalogError as e:
        raise HTTPException(status_code=400, detail=str(e))


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=config.API_HOST, port=config.API_PORT)
