"""
Engine Schema

Typed records shared by every stage of the resolution pipeline:
raw order lines, canonical catalog entries, resolved quantities,
classification output and match results.

Example:
    line = RawLineItem(
        product_label="BIG DOG POLLO",
        option_label="15KG",
        quantity=2,
        unit_price=Decimal("42000"),
    )
    product = CanonicalProduct(Section.DOG, "BIG DOG POLLO", "15KG")
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum, IntEnum
from typing import Optional, Tuple, Union

from .name_normalizer import group_key as _group_key


def to_decimal(value) -> Decimal:
    """Convert int/float/str/Decimal to Decimal without float artifacts."""
    if isinstance(value, Decimal):
        return value
    if value is None or value == '':
        return Decimal('0')
    return Decimal(str(value))


class Section(str, Enum):
    """Top-level product family. Values are the labels stored in the catalog."""

    DOG = "PERRO"
    CAT = "GATO"
    OTHER = "OTROS"
    RAW = "RAW"

    @property
    def label(self) -> str:
        return self.value

    @classmethod
    def parse(cls, text: Optional[str]) -> "Section":
        """Accept 'PERRO' / 'dog' / 'Section.DOG' style input. Unknown → OTHER."""
        if isinstance(text, Section):
            return text
        key = (text or '').strip().upper()
        if key.startswith('SECTION.'):
            key = key[len('SECTION.'):]
        for member in cls:
            if key in (member.name, member.value):
                return member
        return cls.OTHER


class Subcategory(str, Enum):
    """Flavor / product-type bucket inside a section."""

    # Regular dog boxes
    DOG_CHICKEN = "pollo"
    DOG_BEEF = "vaca"
    DOG_PORK = "cerdo"
    DOG_LAMB = "cordero"
    DOG_GENERIC = "perro"

    # Bulk dog packs, kept apart from the regular flavors
    BIG_DOG_CHICKEN = "bigDogPollo"
    BIG_DOG_BEEF = "bigDogVaca"
    BIG_DOG_LAMB = "bigDogCordero"
    BIG_DOG_GENERIC = "bigDog"

    CAT_CHICKEN = "gatoPollo"
    CAT_BEEF = "gatoVaca"
    CAT_LAMB = "gatoCordero"
    CAT_GENERIC = "gato"

    MEATY_BONES = "huesosCarnosos"
    RAW_TREAT = "raw"
    OTHER = "otros"

    @property
    def section(self) -> Section:
        return SUBCATEGORY_SECTIONS[self]

    @property
    def is_big_dog(self) -> bool:
        return self.name.startswith('BIG_DOG')


SUBCATEGORY_SECTIONS = {
    Subcategory.DOG_CHICKEN: Section.DOG,
    Subcategory.DOG_BEEF: Section.DOG,
    Subcategory.DOG_PORK: Section.DOG,
    Subcategory.DOG_LAMB: Section.DOG,
    Subcategory.DOG_GENERIC: Section.DOG,
    Subcategory.BIG_DOG_CHICKEN: Section.DOG,
    Subcategory.BIG_DOG_BEEF: Section.DOG,
    Subcategory.BIG_DOG_LAMB: Section.DOG,
    Subcategory.BIG_DOG_GENERIC: Section.DOG,
    Subcategory.CAT_CHICKEN: Section.CAT,
    Subcategory.CAT_BEEF: Section.CAT,
    Subcategory.CAT_LAMB: Section.CAT,
    Subcategory.CAT_GENERIC: Section.CAT,
    Subcategory.MEATY_BONES: Section.OTHER,
    Subcategory.RAW_TREAT: Section.RAW,
    Subcategory.OTHER: Section.OTHER,
}


# === Resolved quantities ===

@dataclass(frozen=True)
class Kilograms:
    """Bulk weight for one line (already multiplied by line quantity)."""

    value: Decimal

    def __post_init__(self):
        value = to_decimal(self.value)
        if value < 0:
            raise ValueError(f"Kilograms cannot be negative: {value}")
        object.__setattr__(self, 'value', value)

    def __str__(self) -> str:
        return f"{self.value}kg"


@dataclass(frozen=True)
class Units:
    """
    Unit / pack count for one line.

    sized=False marks lines whose physical size could not be determined;
    they still count as zero units so callers can report the gap.
    """

    value: int
    sized: bool = True

    def __post_init__(self):
        if self.value < 0:
            raise ValueError(f"Units cannot be negative: {self.value}")

    def __str__(self) -> str:
        return f"{self.value}u" if self.sized else "?"


ResolvedQuantity = Union[Kilograms, Units]


# === Input records ===

@dataclass(frozen=True)
class RawLineItem:
    """One product/option line as typed or selected at order time."""

    product_label: str
    option_label: str = ''
    quantity: int = 1
    unit_price: Decimal = Decimal('0')

    def __post_init__(self):
        object.__setattr__(self, 'product_label', self.product_label or '')
        object.__setattr__(self, 'option_label', self.option_label or '')
        object.__setattr__(self, 'unit_price', to_decimal(self.unit_price))
        if int(self.quantity) < 1:
            raise ValueError(f"Line quantity must be >= 1, got {self.quantity}")
        object.__setattr__(self, 'quantity', int(self.quantity))
        if self.unit_price < 0:
            raise ValueError(f"Unit price cannot be negative: {self.unit_price}")

    @property
    def revenue(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class CanonicalProduct:
    """
    Reference catalog record: one sellable configuration.

    Uniquely identified by (section, name, weight_class). weight_class is
    None only for items whose physical size is not meaningful.
    """

    section: Section
    name: str
    weight_class: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, 'section', Section.parse(self.section))
        weight = (self.weight_class or '').strip()
        object.__setattr__(self, 'weight_class', weight or None)

    @property
    def identifier(self) -> str:
        if self.weight_class:
            return f"{self.name} {self.weight_class}"
        return self.name

    @property
    def group_key(self) -> str:
        """Reporting column: section + name (RAW pack sizes collapsed)."""
        return _group_key(self.name, self.section.label, collapse_sizes=self.section is Section.RAW)

    @property
    def counts_toward_total_kg(self) -> bool:
        """
        Whether kilograms of this product enter "total kilograms sold".

        PERRO and GATO always count (BIG DOG included). In OTROS only
        HUESOS CARNOSOS count; complements and RAW treats never do.
        """
        if self.section in (Section.DOG, Section.CAT):
            return True
        if self.section is Section.OTHER:
            return 'HUESOS CARNOSOS' in self.name.upper()
        return False


@dataclass(frozen=True)
class ClassifiedItem:
    """Classifier + extractor output for one line; input of the matcher."""

    section: Section
    subcategory: Subcategory
    line_item: RawLineItem
    weight: ResolvedQuantity


class MatchTier(IntEnum):
    """Match-strategy level; 1 is strongest."""

    EXACT = 1
    OPTION = 2
    NAME = 3
    PARTIAL = 4
    FLEXIBLE = 5


@dataclass(frozen=True)
class Match:
    product: CanonicalProduct
    tier: MatchTier


MatchResult = Optional[Match]


@dataclass(frozen=True)
class OrderRecord:
    """
    Order-level metadata plus its line items.

    The sales channel is derived from order_type / payment_method /
    same_day_delivery, never from line item text.
    """

    order_id: str
    created_at: datetime
    items: Tuple[RawLineItem, ...] = field(default_factory=tuple)
    order_type: str = 'minorista'
    payment_method: str = ''
    same_day_delivery: bool = False
    delivery_day: Optional[date] = None
    point_of_sale: Optional[str] = None
    status: str = 'pending'

    def __post_init__(self):
        object.__setattr__(self, 'items', tuple(self.items))

    @property
    def revenue(self) -> Decimal:
        return sum((item.revenue for item in self.items), Decimal('0'))
