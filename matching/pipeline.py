"""
Canonical Product Matching Pipeline

Resolves classified order lines to canonical catalog entries.

Every tier only looks at catalog entries of the line's own section
(hard filter, never relaxed). Tiers run in order; the first catalog entry
(in stored order) satisfying a tier's predicate wins:

1. Exact:     "<product> <weight>" equals the entry identifier
2. Option:    option weight == entry weight class, entry name words in product
              (RAW: identifier rebuilt as "<base name> <option size>")
3. Name:      product label equals entry name, weight immaterial
4. Partial:   entry name words in product AND entry weight class in product
5. Flexible:  entry name words in product, weight ignored (optional)

Lines that pass all five tiers unmatched resolve to None; they are never
guessed into a category.
"""

import logging
import re
from collections import Counter
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

import config
from standardization.name_normalizer import (
    clean_name,
    compact,
    normalize,
    raw_base_name,
    strip_section_prefix,
)
from standardization.quantity_parser import weight_token
from standardization.schema import (
    CanonicalProduct,
    ClassifiedItem,
    Match,
    MatchResult,
    MatchTier,
    Section,
)

logger = logging.getLogger(__name__)


class EmptyCatalogError(ValueError):
    """Raised when matching is attempted without any catalog entries."""


@dataclass(frozen=True)
class _Entry:
    """Catalog entry with its normalized matching forms precomputed."""

    product: CanonicalProduct
    names: Tuple[str, ...]
    words: Tuple[str, ...]
    weight: Optional[str]
    identifier: str
    raw_base: str
    raw_identifier: str

    @classmethod
    def build(cls, product: CanonicalProduct) -> "_Entry":
        name = normalize(product.name)
        names = [name]
        without_section = strip_section_prefix(name, product.section.label)
        if without_section != name:
            names.append(without_section)

        weight = None
        if product.weight_class:
            weight = weight_token(product.weight_class) or compact(product.weight_class)

        identifier = normalize(f"{name} {weight}") if weight else name
        raw_base = raw_base_name(name)
        # RAW size may live in the weight class or in the name ("OREJAS X50")
        raw_size = weight or weight_token(name) or ''
        return cls(
            product=product,
            names=tuple(names),
            words=tuple(without_section.split()),
            weight=weight,
            identifier=identifier,
            raw_base=raw_base,
            raw_identifier=compact(f"{raw_base} {raw_size}"),
        )


@dataclass(frozen=True)
class _Line:
    """Classified line with its normalized matching forms precomputed."""

    section: Section
    label: str
    label_compact: str
    variants: Tuple[str, ...]
    option: str
    option_weight: Optional[str]

    @classmethod
    def build(cls, item: ClassifiedItem) -> "_Line":
        label = normalize(item.line_item.product_label)
        option = normalize(item.line_item.option_label)

        variants = [label]
        cleaned = clean_name(label)
        if cleaned not in variants:
            variants.append(cleaned)
        # "BOX PERRO POLLO" → flavor "POLLO" inside section PERRO
        box_prefix = f"BOX {item.section.label} "
        for candidate in list(variants):
            if candidate.startswith(box_prefix):
                flavor = candidate[len(box_prefix):].strip()
                if flavor and flavor not in variants:
                    variants.append(flavor)

        return cls(
            section=item.section,
            label=label,
            label_compact=compact(label),
            variants=tuple(variants),
            option=option,
            option_weight=weight_token(option),
        )


def _all_words_in(words: Sequence[str], text: str) -> bool:
    return bool(words) and all(word in text for word in words)


def _contains_weight(text_compact: str, weight: str) -> bool:
    # "5KG" must not match inside "15KG" or "2.5KG"
    return re.search(r'(?<![\d.,])' + re.escape(weight), text_compact) is not None


# === Tier predicates ===

def _tier_exact(line: _Line, entry: _Entry) -> bool:
    candidates = {line.label}
    if line.option_weight:
        candidates.add(normalize(f"{line.label} {line.option_weight}"))
    if line.option:
        candidates.add(normalize(f"{line.label} {line.option}"))
    return entry.identifier in candidates


def _tier_option(line: _Line, entry: _Entry) -> bool:
    if not line.option_weight:
        return False

    if line.section is Section.RAW:
        # RAW products are keyed by name + pack size jointly
        rebuilt = compact(f"{entry.raw_base} {line.option_weight}")
        return (
            rebuilt == entry.raw_identifier
            and _all_words_in(entry.raw_base.split(), line.label)
        )

    return entry.weight == line.option_weight and _all_words_in(entry.words, line.label)


def _tier_name(line: _Line, entry: _Entry) -> bool:
    weight_immaterial = (
        entry.weight is None
        or line.option_weight is None
        or entry.weight == line.option_weight
    )
    if not weight_immaterial:
        return False
    return any(variant in entry.names for variant in line.variants)


def _tier_partial(line: _Line, entry: _Entry) -> bool:
    if not _all_words_in(entry.words, line.label):
        return False
    if entry.weight is None:
        return True
    return _contains_weight(line.label_compact, entry.weight)


def _tier_flexible(line: _Line, entry: _Entry) -> bool:
    return _all_words_in(entry.words, line.label)


TierPredicate = Callable[[_Line, _Entry], bool]

MATCH_TIERS: List[Tuple[MatchTier, TierPredicate]] = [
    (MatchTier.EXACT, _tier_exact),
    (MatchTier.OPTION, _tier_option),
    (MatchTier.NAME, _tier_name),
    (MatchTier.PARTIAL, _tier_partial),
    (MatchTier.FLEXIBLE, _tier_flexible),
]


class CatalogMatcher:
    """
    Tiered matcher over an explicit catalog.

    The catalog is indexed by section once; match() is then a pure function
    of the classified line.
    """

    def __init__(self, catalog: Iterable[CanonicalProduct], allow_fallback: Optional[bool] = None):
        self.catalog: List[CanonicalProduct] = list(catalog or [])
        if not self.catalog:
            raise EmptyCatalogError("Catalog is empty; cannot resolve order lines")

        self.allow_fallback = config.ALLOW_FLEXIBLE_FALLBACK if allow_fallback is None else allow_fallback
        self._by_section: Dict[Section, List[_Entry]] = {section: [] for section in Section}
        for product in self.catalog:
            self._by_section[product.section].append(_Entry.build(product))

        self.stats: Counter = Counter()

    @property
    def tiers(self) -> List[Tuple[MatchTier, TierPredicate]]:
        if self.allow_fallback:
            return MATCH_TIERS
        return [(tier, predicate) for tier, predicate in MATCH_TIERS if tier is not MatchTier.FLEXIBLE]

    def match(self, item: ClassifiedItem) -> MatchResult:
        """
        Best catalog entry for a classified line, or None.

        Never raises for malformed line text.
        """
        entries = self._by_section.get(item.section, [])
        if not entries:
            self.stats['unresolved'] += 1
            logger.debug(f"No catalog entries in section {item.section.label}")
            return None

        line = _Line.build(item)
        for tier, predicate in self.tiers:
            for entry in entries:
                if predicate(line, entry):
                    self.stats[tier.name.lower()] += 1
                    logger.debug(
                        f"Tier {tier.value} ({tier.name.lower()}): "
                        f"'{line.label}' / '{line.option}' → {entry.product.identifier}"
                    )
                    return Match(product=entry.product, tier=tier)

        self.stats['unresolved'] += 1
        logger.debug(f"Unresolved: '{line.label}' / '{line.option}' in {item.section.label}")
        return None

    def match_all(self, items: Iterable[ClassifiedItem]) -> List[Tuple[ClassifiedItem, MatchResult]]:
        return [(item, self.match(item)) for item in items]


def match(
    item: ClassifiedItem,
    catalog: Sequence[CanonicalProduct],
    allow_fallback: Optional[bool] = None,
) -> MatchResult:
    """Functional form of CatalogMatcher.match for one-off lookups."""
    return CatalogMatcher(catalog, allow_fallback=allow_fallback).match(item)
