"""
Category Classifier

Assigns an order line to a section (PERRO / GATO / OTROS / RAW) and a
flavor / product-type subcategory.

Classification is an ordered list of (predicate, resolver) rules evaluated
with early exit:
1. Cat keyword            → GATO + cat flavor
2. Bulk dog keyword       → PERRO + big-dog flavor (separate subcategory space)
   Dog keyword            → PERRO + regular flavor
3. Bone keyword (no recreational / broth variants) → OTROS / meaty bones
4. Gram or X<n> option    → RAW treat, otherwise OTROS generic

Raw single-ingredient treats are told apart from boxed goods by their
unit of measure, not their name: "POLLO" + "40GRS" is a RAW treat.

Example:
    >>> classify("BIG DOG POLLO", "15KG")
    (<Section.DOG: 'PERRO'>, <Subcategory.BIG_DOG_CHICKEN: 'bigDogPollo'>)
    >>> classify("OREJA", "X50")
    (<Section.RAW: 'RAW'>, <Subcategory.RAW_TREAT: 'raw'>)
"""

from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

from .name_normalizer import normalize
from .quantity_parser import extract_weight, has_unit_pattern
from .schema import ClassifiedItem, RawLineItem, Section, Subcategory


# === Keywords ===

CAT_KEYWORDS = ('GATO',)
BIG_DOG_KEYWORDS = ('BIG DOG',)
DOG_KEYWORDS = ('PERRO',)
BONE_KEYWORDS = ('HUESO',)
BONE_EXCLUSIONS = ('RECREATIVO', 'CALDO')

# Flavor keyword → subcategory, checked in order
CAT_FLAVORS: Sequence[Tuple[str, Subcategory]] = (
    ('POLLO', Subcategory.CAT_CHICKEN),
    ('VACA', Subcategory.CAT_BEEF),
    ('CORDERO', Subcategory.CAT_LAMB),
)

BIG_DOG_FLAVORS: Sequence[Tuple[str, Subcategory]] = (
    ('POLLO', Subcategory.BIG_DOG_CHICKEN),
    ('VACA', Subcategory.BIG_DOG_BEEF),
    ('CORDERO', Subcategory.BIG_DOG_LAMB),
)

DOG_FLAVORS: Sequence[Tuple[str, Subcategory]] = (
    ('POLLO', Subcategory.DOG_CHICKEN),
    ('VACA', Subcategory.DOG_BEEF),
    ('CERDO', Subcategory.DOG_PORK),
    ('CORDERO', Subcategory.DOG_LAMB),
)


@dataclass(frozen=True)
class _Labels:
    product: str
    option: str

    @property
    def full(self) -> str:
        return f"{self.product} {self.option}".strip()


def _contains_any(text: str, keywords: Sequence[str]) -> bool:
    return any(keyword in text for keyword in keywords)


def _flavor(text: str, flavors: Sequence[Tuple[str, Subcategory]], default: Subcategory) -> Subcategory:
    for keyword, subcategory in flavors:
        if keyword in text:
            return subcategory
    return default


# === Rules ===

Predicate = Callable[[_Labels], bool]
Resolver = Callable[[_Labels], Tuple[Section, Subcategory]]


def _is_cat(labels: _Labels) -> bool:
    return _contains_any(labels.product, CAT_KEYWORDS)


def _cat(labels: _Labels) -> Tuple[Section, Subcategory]:
    return Section.CAT, _flavor(labels.full, CAT_FLAVORS, Subcategory.CAT_GENERIC)


def _is_big_dog(labels: _Labels) -> bool:
    return _contains_any(labels.product, BIG_DOG_KEYWORDS)


def _big_dog(labels: _Labels) -> Tuple[Section, Subcategory]:
    return Section.DOG, _flavor(labels.full, BIG_DOG_FLAVORS, Subcategory.BIG_DOG_GENERIC)


def _is_dog(labels: _Labels) -> bool:
    return _contains_any(labels.product, DOG_KEYWORDS)


def _dog(labels: _Labels) -> Tuple[Section, Subcategory]:
    return Section.DOG, _flavor(labels.full, DOG_FLAVORS, Subcategory.DOG_GENERIC)


def _is_meaty_bone(labels: _Labels) -> bool:
    return (
        _contains_any(labels.product, BONE_KEYWORDS)
        and not _contains_any(labels.product, BONE_EXCLUSIONS)
    )


def _meaty_bones(labels: _Labels) -> Tuple[Section, Subcategory]:
    return Section.OTHER, Subcategory.MEATY_BONES


def _is_raw_treat(labels: _Labels) -> bool:
    return has_unit_pattern(labels.option)


def _raw_treat(labels: _Labels) -> Tuple[Section, Subcategory]:
    return Section.RAW, Subcategory.RAW_TREAT


CLASSIFICATION_RULES: List[Tuple[str, Predicate, Resolver]] = [
    ('cat', _is_cat, _cat),
    ('big_dog', _is_big_dog, _big_dog),
    ('dog', _is_dog, _dog),
    ('meaty_bones', _is_meaty_bone, _meaty_bones),
    ('raw_treat', _is_raw_treat, _raw_treat),
]

DEFAULT_CLASSIFICATION = (Section.OTHER, Subcategory.OTHER)


def classify_with_rule(
    product_label: Optional[str],
    option_label: Optional[str],
) -> Tuple[Section, Subcategory, Optional[str]]:
    """Classify and report the name of the rule that fired (None = default)."""
    labels = _Labels(normalize(product_label), normalize(option_label))
    for rule_name, predicate, resolver in CLASSIFICATION_RULES:
        if predicate(labels):
            section, subcategory = resolver(labels)
            return section, subcategory, rule_name
    section, subcategory = DEFAULT_CLASSIFICATION
    return section, subcategory, None


def classify(product_label: Optional[str], option_label: Optional[str]) -> Tuple[Section, Subcategory]:
    """
    Section and subcategory of an order line.

    Args:
        product_label: Product text as typed/selected at order time
        option_label: Selected option (size / flavor)

    Returns:
        (section, subcategory)
    """
    section, subcategory, _ = classify_with_rule(product_label, option_label)
    return section, subcategory


def classify_item(line_item: RawLineItem) -> ClassifiedItem:
    """Classify a line, then resolve its physical quantity."""
    section, subcategory = classify(line_item.product_label, line_item.option_label)
    weight = extract_weight(line_item.product_label, line_item.option_label, line_item.quantity)
    return ClassifiedItem(
        section=section,
        subcategory=subcategory,
        line_item=line_item,
        weight=weight,
    )


# === Report ordering ===

def _section_order(section: Section, name: str) -> float:
    if section is Section.DOG:
        return 2 if 'BIG DOG' in name else 1
    if section is Section.CAT:
        return 3
    if section is Section.OTHER:
        if 'HUESOS CARNOSOS' in name:
            return 4
        if _contains_any(name, ('GARRAS', 'CORNALITOS', 'CALDO', 'HUESOS RECREATIVOS', 'COMPLEMENTOS')):
            return 5
        return 4.5
    if section is Section.RAW:
        return 6
    return 999


def _flavor_order(section: Section, name: str) -> int:
    if section is Section.DOG and 'BIG DOG' not in name:
        orders = ('POLLO', 'CERDO', 'VACA', 'CORDERO')
    elif 'BIG DOG' in name:
        orders = ('POLLO', 'VACA', 'CORDERO')
    elif section is Section.CAT:
        orders = ('POLLO', 'VACA', 'CORDERO')
    elif section is Section.OTHER:
        orders = ('GARRAS', 'CORNALITOS', 'CALDO', 'HUESOS RECREATIVOS')
    else:
        orders = ()
    for index, keyword in enumerate(orders, start=1):
        if keyword in name:
            return index
    return 999


def report_sort_key(section: Section, name: str, group: str = '') -> Tuple[float, int, str]:
    """
    Column order for product matrices.

    PERRO flavors (pollo, cerdo, vaca, cordero), BIG DOG, GATO,
    HUESOS CARNOSOS, other OTROS, complements, then RAW.
    """
    normalized = normalize(name)
    return _section_order(section, normalized), _flavor_order(section, normalized), group or normalized
