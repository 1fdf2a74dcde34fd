#!/usr/bin/env python3
"""
Barfer Analytics - Product Resolution & Aggregation

Usage:
    python3 main.py resolve   --catalog catalog.csv "BIG DOG POLLO" "15KG" --quantity 2
    python3 main.py aggregate --catalog catalog.csv --orders orders.json --granularity month
    python3 main.py quantity  --catalog catalog.csv --orders orders.json
    python3 main.py matrix    --catalog catalog.csv --orders orders.json
    python3 main.py stats     --catalog catalog.csv --orders orders.json
    python3 main.py balance   --catalog catalog.csv --orders orders.json --expenses expenses.json
    python3 main.py stock     --catalog catalog.csv --orders orders.json --day 2025-03-14
"""

import argparse
import json
import logging
import sys
from datetime import date

import config

# Setup logging
logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL, logging.INFO),
    format='%(asctime)s [%(levelname)s] %(message)s',
    datefmt='%H:%M:%S'
)
logger = logging.getLogger(__name__)

from aggregation import (
    active_orders,
    aggregate_orders,
    balance_rows,
    point_of_sale_matrix,
    point_of_sale_stats,
    quantity_report,
    stock_sales,
)
from matching import CatalogMatcher, EmptyCatalogError
from services.storage import LoaderError, load_catalog, load_expenses, load_orders
from standardization import RawLineItem, standardize_line


def _print(data):
    print(json.dumps(data, indent=2, ensure_ascii=False, default=str))


def cmd_resolve(args):
    matcher = CatalogMatcher(load_catalog(args.catalog), allow_fallback=args.allow_fallback)
    classified = standardize_line(RawLineItem(args.product, args.option, args.quantity))
    found = matcher.match(classified)
    _print({
        'section': classified.section.label,
        'subcategory': classified.subcategory.value,
        'quantity': str(classified.weight),
        'match': found.product.identifier if found else None,
        'tier': int(found.tier) if found else None,
    })


def cmd_aggregate(args):
    result = aggregate_orders(
        active_orders(load_orders(args.orders)),
        load_catalog(args.catalog),
        granularity=args.granularity,
        allow_fallback=args.allow_fallback,
    )
    _print(result.to_dict())


def cmd_quantity(args):
    _print(quantity_report(
        load_orders(args.orders),
        load_catalog(args.catalog),
        granularity=args.granularity,
        allow_fallback=args.allow_fallback,
    ))


def cmd_matrix(args):
    _print(point_of_sale_matrix(load_orders(args.orders), load_catalog(args.catalog), args.allow_fallback))


def cmd_stats(args):
    _print(point_of_sale_stats(load_orders(args.orders), load_catalog(args.catalog), args.allow_fallback))


def cmd_balance(args):
    result = aggregate_orders(
        active_orders(load_orders(args.orders)),
        load_catalog(args.catalog),
        granularity='month',
        allow_fallback=args.allow_fallback,
    )
    expenses = load_expenses(args.expenses) if args.expenses else {}
    _print(balance_rows(result, expenses))


def cmd_stock(args):
    _print(stock_sales(
        load_orders(args.orders),
        load_catalog(args.catalog),
        date.fromisoformat(args.day),
        point_of_sale=args.point_of_sale,
        allow_fallback=args.allow_fallback,
    ))


COMMANDS = {
    'resolve': cmd_resolve,
    'aggregate': cmd_aggregate,
    'quantity': cmd_quantity,
    'matrix': cmd_matrix,
    'stats': cmd_stats,
    'balance': cmd_balance,
    'stock': cmd_stock,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Barfer product resolution & aggregation')
    subparsers = parser.add_subparsers(dest='command', required=True)

    for name in COMMANDS:
        sub = subparsers.add_parser(name)
        sub.add_argument('--catalog', required=True, help='Catalog file (JSON or CSV)')
        sub.add_argument('--no-fallback', dest='allow_fallback', action='store_false', default=None,
                         help='Disable the flexible (weight-ignoring) match tier')

        if name == 'resolve':
            sub.add_argument('product', help='Product label')
            sub.add_argument('option', nargs='?', default='', help='Option label')
            sub.add_argument('--quantity', type=int, default=1)
            continue

        sub.add_argument('--orders', required=True, help='Orders JSON export')
        if name in ('aggregate', 'quantity'):
            sub.add_argument('--granularity', choices=['day', 'week', 'month', 'all'],
                             default=config.DEFAULT_GRANULARITY)
        if name == 'balance':
            sub.add_argument('--expenses', help='Expenses file (JSON or CSV)')
        if name == 'stock':
            sub.add_argument('--day', required=True, help='Day to count, YYYY-MM-DD')
            sub.add_argument('--point-of-sale', dest='point_of_sale', help='Restrict to one shipping point')

    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    try:
        COMMANDS[args.command](args)
    except (LoaderError, EmptyCatalogError, ValueError) as e:
        logger.error(f"{args.command} failed: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
