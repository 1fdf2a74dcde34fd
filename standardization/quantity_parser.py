"""
Quantity Parser

Extracts the physical quantity of an order line from its product and
option labels.

Two incompatible measurement systems are kept apart:
- Kilograms: bulk meat / bone boxes ("10KG", "BIG DOG" = 15 kg)
- Units: gram-denominated treats ("200GRS" → one pack per line quantity)
  and multiplier-coded packs ("X50" → 50 units per line quantity)

The returned quantity is the line total (already multiplied by the line
quantity). Nothing here raises on malformed text.

Example:
    >>> extract_weight("BIG DOG POLLO", "15KG")
    Kilograms(value=Decimal('15'))
    >>> extract_weight("CORNALITOS", "200GRS", quantity=3)
    Units(value=3, sized=True)
    >>> extract_weight("OREJA", "X50", quantity=2)
    Units(value=100, sized=True)
"""

import logging
import re
from decimal import Decimal, InvalidOperation
from typing import Callable, List, Optional, Tuple

from .name_normalizer import normalize
from .schema import Kilograms, ResolvedQuantity, Units

logger = logging.getLogger(__name__)


# === Product families ===

# Families whose product label alone fixes the physical size (kg per unit)
FIXED_SIZE_FAMILIES = {
    'BIG DOG': Decimal('15'),
}

# Families that are never weighed (counted as units, zero kilograms)
ACCESSORY_FAMILIES = (
    'COMPLEMENTO',
)


# === Patterns ===

KG_PATTERN = re.compile(r'(\d+(?:[.,]\d+)?)\s*KG', re.IGNORECASE)
GRAMS_PATTERN = re.compile(r'(\d+(?:[.,]\d+)?)\s*GR(?:S|AMOS)?\b', re.IGNORECASE)
MULTIPLIER_PATTERN = re.compile(r'(?<![A-Z0-9])X\s*(\d+)\b', re.IGNORECASE)


def _to_decimal(raw: str) -> Optional[Decimal]:
    try:
        return Decimal(raw.replace(',', '.'))
    except InvalidOperation:
        return None


def _format_number(value: Decimal) -> str:
    """'10.0' → '10', '1.50' → '1.5'."""
    if value == value.to_integral_value():
        return str(value.quantize(Decimal('1')))
    return str(value.normalize())


def parse_kilos(text: Optional[str]) -> Optional[Decimal]:
    """
    Kilograms in a weight string, or None.

    Example:
        >>> parse_kilos("15KG")
        Decimal('15')
        >>> parse_kilos("1,5 kg")
        Decimal('1.5')
    """
    match = KG_PATTERN.search(normalize(text))
    if not match:
        return None
    return _to_decimal(match.group(1))


def parse_grams(text: Optional[str]) -> Optional[Decimal]:
    match = GRAMS_PATTERN.search(normalize(text))
    if not match:
        return None
    return _to_decimal(match.group(1))


def parse_multiplier(text: Optional[str]) -> Optional[int]:
    """Unit multiplier of an "X<n>" pack code, or None."""
    match = MULTIPLIER_PATTERN.search(normalize(text))
    if not match:
        return None
    return int(match.group(1))


def has_unit_pattern(text: Optional[str]) -> bool:
    """True when the text carries a gram or X<n> pattern (raw-treat sizing)."""
    return parse_grams(text) is not None or parse_multiplier(text) is not None


def weight_token(text: Optional[str]) -> Optional[str]:
    """
    Canonical compact size token of an option / weight-class string.

    Example:
        >>> weight_token("10 kg")
        '10KG'
        >>> weight_token("200 grs")
        '200GRS'
        >>> weight_token("x50")
        'X50'
        >>> weight_token("POLLO") is None
        True
    """
    kilos = parse_kilos(text)
    if kilos is not None:
        return f"{_format_number(kilos)}KG"
    grams = parse_grams(text)
    if grams is not None:
        return f"{_format_number(grams)}GRS"
    multiplier = parse_multiplier(text)
    if multiplier is not None:
        return f"X{multiplier}"
    return None


# === Extraction rules ===
# Ordered by precedence; the first rule returning a quantity wins.

def _fixed_family(product: str, option: str, quantity: int) -> Optional[ResolvedQuantity]:
    for family, kilos in FIXED_SIZE_FAMILIES.items():
        if family in product:
            return Kilograms(kilos * quantity)
    return None


def _accessory_family(product: str, option: str, quantity: int) -> Optional[ResolvedQuantity]:
    if any(family in product for family in ACCESSORY_FAMILIES):
        return Units(quantity)
    return None


def _option_kilograms(product: str, option: str, quantity: int) -> Optional[ResolvedQuantity]:
    kilos = parse_kilos(option)
    if kilos is None:
        return None
    return Kilograms(kilos * quantity)


def _option_grams(product: str, option: str, quantity: int) -> Optional[ResolvedQuantity]:
    # Gram packs are tracked by pack count, never converted to kilograms
    if parse_grams(option) is None:
        return None
    return Units(quantity)


def _option_multiplier(product: str, option: str, quantity: int) -> Optional[ResolvedQuantity]:
    multiplier = parse_multiplier(option)
    if multiplier is None:
        return None
    return Units(multiplier * quantity)


def _product_kilograms(product: str, option: str, quantity: int) -> Optional[ResolvedQuantity]:
    kilos = parse_kilos(product)
    if kilos is None:
        return None
    return Kilograms(kilos * quantity)


ExtractionRule = Callable[[str, str, int], Optional[ResolvedQuantity]]

EXTRACTION_RULES: List[Tuple[str, ExtractionRule]] = [
    ('fixed_family', _fixed_family),
    ('accessory', _accessory_family),
    ('option_kg', _option_kilograms),
    ('option_grams', _option_grams),
    ('option_multiplier', _option_multiplier),
    ('product_kg', _product_kilograms),
]


def extract_weight_with_rule(
    product_label: Optional[str],
    option_label: Optional[str],
    quantity: int = 1,
) -> Tuple[ResolvedQuantity, Optional[str]]:
    """
    Resolve the line quantity and report which rule fired.

    Returns:
        (quantity, rule_name); rule_name is None when nothing matched and
        the result is the Units(0, sized=False) sentinel.
    """
    product = normalize(product_label)
    option = normalize(option_label)
    quantity = max(int(quantity or 0), 0)

    for rule_name, rule in EXTRACTION_RULES:
        result = rule(product, option, quantity)
        if result is not None:
            return result, rule_name

    logger.debug(f"No physical size for '{product}' / '{option}'")
    return Units(0, sized=False), None


def extract_weight(
    product_label: Optional[str],
    option_label: Optional[str],
    quantity: int = 1,
) -> ResolvedQuantity:
    """
    Physical quantity of one order line.

    Precedence:
    1. Fixed-size family in the product label (BIG DOG → 15 kg each)
    2. Accessory family in the product label → units, zero kilograms
    3. "<n> KG" in the option → kilograms
    4. "<n> GRS" in the option → pack count (units)
    5. "X<n>" in the option → n units per pack
    6. "<n> KG" in the product label → kilograms
    7. Units(0, sized=False)

    Args:
        product_label: Product text as typed/selected
        option_label: Option text (usually the size)
        quantity: Line quantity (>= 1)
    """
    result, _ = extract_weight_with_rule(product_label, option_label, quantity)
    return result
