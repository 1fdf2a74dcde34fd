"""
Line Item Processor

Runs the leaf stages over raw order lines:
normalize → classify → extract quantity.

Usage:
    processor = LineItemProcessor()
    classified = processor.transform(RawLineItem("OREJA", "X50", quantity=2))
    print(processor.stats)
"""

import logging
from typing import Dict, Iterable, Iterator

from .category_classifier import classify_with_rule
from .quantity_parser import extract_weight_with_rule
from .schema import ClassifiedItem, Kilograms, RawLineItem, Units

logger = logging.getLogger(__name__)


class LineItemProcessor:
    """
    Produces exactly one ClassifiedItem per RawLineItem and keeps counters
    of which rules fired.
    """

    def __init__(self):
        self.stats: Dict[str, int] = {
            'processed': 0,
            'kilograms': 0,
            'units': 0,
            'unsized': 0,
            'default_category': 0,
        }
        self.rule_hits: Dict[str, int] = {}

    def _hit(self, rule_name: str):
        self.rule_hits[rule_name] = self.rule_hits.get(rule_name, 0) + 1

    def transform(self, line_item: RawLineItem) -> ClassifiedItem:
        """
        Classify a line and resolve its quantity.

        Classification runs first; the extractor then decides whether the
        magnitude is kilograms or units.
        """
        self.stats['processed'] += 1

        section, subcategory, class_rule = classify_with_rule(
            line_item.product_label, line_item.option_label
        )
        if class_rule is None:
            self.stats['default_category'] += 1
        else:
            self._hit(f"classify:{class_rule}")

        weight, weight_rule = extract_weight_with_rule(
            line_item.product_label, line_item.option_label, line_item.quantity
        )
        if weight_rule is not None:
            self._hit(f"weight:{weight_rule}")

        if isinstance(weight, Kilograms):
            self.stats['kilograms'] += 1
        elif isinstance(weight, Units) and weight.sized:
            self.stats['units'] += 1
        else:
            self.stats['unsized'] += 1
            logger.debug(
                f"Unsized line: '{line_item.product_label}' / '{line_item.option_label}'"
            )

        return ClassifiedItem(
            section=section,
            subcategory=subcategory,
            line_item=line_item,
            weight=weight,
        )

    def transform_all(self, line_items: Iterable[RawLineItem]) -> Iterator[ClassifiedItem]:
        for line_item in line_items:
            yield self.transform(line_item)


def standardize_line(line_item: RawLineItem) -> ClassifiedItem:
    """Convenience function for a single line."""
    return LineItemProcessor().transform(line_item)
