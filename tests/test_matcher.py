import pytest

from matching import CatalogMatcher, EmptyCatalogError, match
from standardization import classify_item
from standardization.schema import CanonicalProduct, MatchTier, RawLineItem, Section


def resolve(catalog, product, option='', allow_fallback=None):
    return CatalogMatcher(catalog, allow_fallback=allow_fallback).match(
        classify_item(RawLineItem(product, option))
    )


def test_exact_identifier(catalog) -> None:
    found = resolve(catalog, "BIG DOG POLLO", "15KG")
    assert found.product == CanonicalProduct(Section.DOG, "BIG DOG POLLO", "15KG")
    assert found.tier is MatchTier.EXACT


def test_option_anchored_match(catalog) -> None:
    found = resolve(catalog, "BARFER BOX PERRO POLLO", "10KG")
    assert found.product == CanonicalProduct(Section.DOG, "POLLO", "10KG")
    assert found.tier is MatchTier.OPTION


def test_option_weight_spelling_is_compact(catalog) -> None:
    found = resolve(catalog, "BOX PERRO VACA", "10 kg")
    assert found.product.name == "VACA"
    assert found.tier is MatchTier.OPTION


def test_weight_mismatch_falls_through_to_flexible(catalog) -> None:
    found = resolve(catalog, "BARFER BOX PERRO POLLO", "5KG")
    assert found.product == CanonicalProduct(Section.DOG, "POLLO", "10KG")
    assert found.tier is MatchTier.FLEXIBLE


def test_weight_mismatch_unresolved_without_fallback(catalog) -> None:
    assert resolve(catalog, "BARFER BOX PERRO POLLO", "5KG", allow_fallback=False) is None


def test_section_is_a_hard_filter(catalog) -> None:
    # GATO POLLO 10KG must never resolve to the PERRO entry of the same weight
    found = resolve(catalog, "BOX GATO POLLO", "10KG")
    assert found.product.section is Section.CAT


def test_no_candidates_in_section() -> None:
    catalog = [CanonicalProduct(Section.DOG, "POLLO", "10KG")]
    assert resolve(catalog, "BOX GATO POLLO", "5KG") is None


def test_name_only_match_with_box_prefix() -> None:
    catalog = [CanonicalProduct(Section.DOG, "POLLO", None)]
    found = resolve(catalog, "BOX PERRO POLLO", "")
    assert found.tier is MatchTier.NAME


def test_name_only_match_with_noise_prefix() -> None:
    catalog = [CanonicalProduct(Section.OTHER, "HUESOS CARNOSOS", None)]
    found = resolve(catalog, "BARF / HUESOS CARNOSOS", "")
    assert found.tier is MatchTier.NAME


def test_partial_requires_whole_weight_token() -> None:
    catalog = [
        CanonicalProduct(Section.DOG, "POLLO", "5KG"),
        CanonicalProduct(Section.DOG, "POLLO", "15KG"),
    ]
    found = resolve(catalog, "BOX PERRO POLLO 15KG", "", allow_fallback=False)
    assert found.product.weight_class == "15KG"
    assert found.tier is MatchTier.PARTIAL


def test_raw_option_rebuilds_identifier() -> None:
    catalog = [
        CanonicalProduct(Section.RAW, "OREJAS X1", None),
        CanonicalProduct(Section.RAW, "OREJAS X50", None),
    ]
    found = resolve(catalog, "OREJA", "X50")
    assert found.product.name == "OREJAS X50"
    assert found.tier is MatchTier.OPTION


def test_raw_weight_class_shape(catalog) -> None:
    found = resolve(catalog, "OREJA", "X50")
    assert found.product == CanonicalProduct(Section.RAW, "OREJA", "X50")
    assert found.tier is MatchTier.EXACT


def test_first_catalog_entry_wins_ties() -> None:
    first = CanonicalProduct(Section.DOG, "POLLO", "10KG")
    second = CanonicalProduct(Section.DOG, "PERRO POLLO", "10KG")
    found = resolve([first, second], "BOX PERRO POLLO", "10KG")
    assert found.product == first


def test_unknown_text_is_unresolved_not_raised(catalog) -> None:
    assert resolve(catalog, "???", "") is None


def test_empty_catalog_raises() -> None:
    with pytest.raises(EmptyCatalogError):
        CatalogMatcher([])
    with pytest.raises(ValueError):
        match(classify_item(RawLineItem("BOX PERRO POLLO", "10KG")), [])


def test_matcher_stats(catalog) -> None:
    matcher = CatalogMatcher(catalog)
    for product, option in [("BIG DOG POLLO", "15KG"), ("BOX PERRO POLLO", "10KG"), ("???", "")]:
        matcher.match(classify_item(RawLineItem(product, option)))
    assert matcher.stats['exact'] == 1
    assert matcher.stats['option'] == 1
    assert matcher.stats['unresolved'] == 1
