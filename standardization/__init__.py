"""
Standardization Module

Turns free-text order lines into typed, classified records.

Key Components:
- schema: Section / Subcategory enums, RawLineItem, CanonicalProduct, Kilograms / Units
- name_normalizer: normalize, clean_name, group keys
- quantity_parser: extract_weight (kg vs units)
- category_classifier: classify (section + flavor)
- processor: LineItemProcessor (classify + extract, with stats)
"""

from .schema import (
    CanonicalProduct,
    ClassifiedItem,
    Kilograms,
    Match,
    MatchResult,
    MatchTier,
    OrderRecord,
    RawLineItem,
    ResolvedQuantity,
    Section,
    Subcategory,
    Units,
)
from .name_normalizer import clean_name, compact, group_key, normalize, raw_base_name
from .quantity_parser import extract_weight, parse_kilos, weight_token
from .category_classifier import classify, classify_item, report_sort_key
from .processor import LineItemProcessor, standardize_line

__all__ = [
    # Schema
    'CanonicalProduct',
    'ClassifiedItem',
    'Kilograms',
    'Match',
    'MatchResult',
    'MatchTier',
    'OrderRecord',
    'RawLineItem',
    'ResolvedQuantity',
    'Section',
    'Subcategory',
    'Units',

    # Name normalization
    'normalize',
    'compact',
    'clean_name',
    'group_key',
    'raw_base_name',

    # Quantity parsing
    'extract_weight',
    'parse_kilos',
    'weight_token',

    # Category classification
    'classify',
    'classify_item',
    'report_sort_key',

    # Processor
    'LineItemProcessor',
    'standardize_line',
]
