from standardization.category_classifier import classify, classify_item, report_sort_key
from standardization.processor import LineItemProcessor
from standardization.schema import Kilograms, RawLineItem, Section, Subcategory, Units


def test_big_dog_goes_to_dog_bulk_flavor_space() -> None:
    assert classify("BIG DOG POLLO", "15KG") == (Section.DOG, Subcategory.BIG_DOG_CHICKEN)
    assert classify("BIG DOG", "VACA") == (Section.DOG, Subcategory.BIG_DOG_BEEF)


def test_dog_flavors() -> None:
    assert classify("BOX PERRO CERDO", "10KG") == (Section.DOG, Subcategory.DOG_PORK)
    assert classify("BOX PERRO", "5KG") == (Section.DOG, Subcategory.DOG_GENERIC)


def test_cat_takes_precedence() -> None:
    assert classify("BOX GATO POLLO", "5KG") == (Section.CAT, Subcategory.CAT_CHICKEN)
    assert classify("GATO PERRO", "") == (Section.CAT, Subcategory.CAT_GENERIC)


def test_meaty_bones_exclude_recreational_and_broth() -> None:
    assert classify("HUESOS CARNOSOS", "5KG") == (Section.OTHER, Subcategory.MEATY_BONES)
    assert classify("HUESOS RECREATIVOS", "") == (Section.OTHER, Subcategory.OTHER)
    assert classify("CALDO DE HUESOS", "") == (Section.OTHER, Subcategory.OTHER)


def test_raw_treats_are_told_apart_by_unit_of_measure() -> None:
    assert classify("CORNALITOS", "200GRS") == (Section.RAW, Subcategory.RAW_TREAT)
    assert classify("OREJA", "X50") == (Section.RAW, Subcategory.RAW_TREAT)
    assert classify("POLLO", "40GRS") == (Section.RAW, Subcategory.RAW_TREAT)
    assert classify("GARRAS", "") == (Section.OTHER, Subcategory.OTHER)


def test_classify_item_attaches_weight() -> None:
    item = classify_item(RawLineItem("BIG DOG POLLO", "15KG", quantity=1))
    assert item.section is Section.DOG
    assert item.subcategory is Subcategory.BIG_DOG_CHICKEN
    assert item.weight == Kilograms(15)

    raw = classify_item(RawLineItem("OREJA", "X50", quantity=2))
    assert raw.section is Section.RAW
    assert raw.weight == Units(100)


def test_processor_counts_rules() -> None:
    processor = LineItemProcessor()
    items = list(processor.transform_all([
        RawLineItem("BIG DOG POLLO", "15KG"),
        RawLineItem("CORNALITOS", "200GRS"),
        RawLineItem("MISTERIO", ""),
    ]))
    assert len(items) == 3
    assert processor.stats['processed'] == 3
    assert processor.stats['kilograms'] == 1
    assert processor.stats['units'] == 1
    assert processor.stats['unsized'] == 1
    assert processor.stats['default_category'] == 1
    assert processor.rule_hits['classify:big_dog'] == 1


def test_report_sort_key_orders_matrix_columns() -> None:
    columns = [
        (Section.RAW, "OREJA"),
        (Section.OTHER, "GARRAS"),
        (Section.OTHER, "HUESOS CARNOSOS"),
        (Section.CAT, "POLLO"),
        (Section.DOG, "BIG DOG POLLO"),
        (Section.DOG, "VACA"),
        (Section.DOG, "POLLO"),
    ]
    ordered = sorted(columns, key=lambda c: report_sort_key(*c))
    assert ordered == [
        (Section.DOG, "POLLO"),
        (Section.DOG, "VACA"),
        (Section.DOG, "BIG DOG POLLO"),
        (Section.CAT, "POLLO"),
        (Section.OTHER, "HUESOS CARNOSOS"),
        (Section.OTHER, "GARRAS"),
        (Section.RAW, "OREJA"),
    ]
