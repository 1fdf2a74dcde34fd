"""
Name Normalizer

Cleans and normalizes product / option labels for matching.

Key functions:
1. normalize: Upper-case, collapse whitespace, trim
2. clean_name: normalize + remove noise prefixes ("BARF /", "MEDALLONES /")
3. compact: normalize with all spaces removed (weight tokens: "10 KG" == "10KG")
4. raw_base_name / group_key: reporting keys that collapse pack sizes

Example:
    >>> normalize("  barfer box   perro pollo ")
    'BARFER BOX PERRO POLLO'
    >>> clean_name("barf / pollo")
    'POLLO'
    >>> group_key("OREJAS X50", "RAW", collapse_sizes=True)
    'RAW - OREJA'
"""

import re
from typing import List, Optional


# === Noise Prefixes ===
# Catalog / menu prefixes that never carry product identity

NOISE_PREFIXES = [
    r'^BARF\s*/\s*',
    r'^MEDALLONES\s*/\s*',
]

# === Raw pack-size suffixes ===
# Stripped (in order) from RAW product names to get the base treat name

RAW_SIZE_SUFFIXES = [
    r'\s*\bX\s*\d+\s*$',               # X1, X50, X100
    r'\s*\d+\s*(?:GRS?|GRAMOS?)\s*$',  # 100GRS, 500GR
    r'\s*\d+\s*(?:KG|KILOS?)\s*$',     # 1KG, 2KILOS
    r'\s*\d+\s*(?:UND|UNIDAD(?:ES)?)\s*$',
    r'\s*\d+\s*$',                     # "OREJA 1"
]

# Plural / spelling variants of RAW treat names
RAW_NAME_VARIANTS = {
    'OREJAS': 'OREJA',
    'HIGADOS': 'HIGADO',
    'CORAZONES': 'CORAZON',
    'RINONES': 'RINON',
    'MOLLEJAS': 'MOLLEJA',
    'LENGUAS': 'LENGUA',
    'PULMONES': 'PULMON',
    'BOCADOS': 'BOCADO',
    'PATA': 'PATAS',
}


def normalize(text: Optional[str]) -> str:
    """
    Upper-case, collapse whitespace runs to one space, trim.

    Never raises; None and "" both map to "".
    """
    if not text:
        return ""
    return re.sub(r'\s+', ' ', str(text)).strip().upper()


def compact(text: Optional[str]) -> str:
    """Normalized text with every space removed."""
    return normalize(text).replace(' ', '')


def clean_name(name: Optional[str]) -> str:
    """
    Normalize and remove noise prefixes.

    Example:
        >>> clean_name("MEDALLONES / Pollo")
        'POLLO'
    """
    cleaned = normalize(name)
    for pattern in NOISE_PREFIXES:
        cleaned = re.sub(pattern, '', cleaned)
    return cleaned.strip()


def strip_section_prefix(name: Optional[str], section_label: Optional[str]) -> str:
    """
    Drop a leading section label from a product name.

    Catalog exports sometimes store "PERRO POLLO" where order items say "POLLO".
    """
    normalized = normalize(name)
    prefix = normalize(section_label)
    if prefix and normalized.startswith(prefix + ' '):
        return normalized[len(prefix):].strip()
    return normalized


def name_tokens(name: Optional[str]) -> List[str]:
    """Words of the normalized name."""
    return normalize(name).split()


def raw_base_name(name: Optional[str]) -> str:
    """
    Base treat name without pack-size suffix, plural variants unified.

    Example:
        >>> raw_base_name("Orejas x50")
        'OREJA'
        >>> raw_base_name("HIGADO 100GRS")
        'HIGADO'
    """
    base = normalize(name)
    for pattern in RAW_SIZE_SUFFIXES:
        base = re.sub(pattern, '', base)
    base = base.strip()
    return RAW_NAME_VARIANTS.get(base, base)


def group_key(name: Optional[str], section_label: str, collapse_sizes: bool = False) -> str:
    """
    Reporting key "<SECTION> - <NAME>".

    With collapse_sizes (RAW section) every pack size of a treat shares a key:
    "OREJA X1" and "OREJAS X50" both become "RAW - OREJA".
    """
    product = raw_base_name(name) if collapse_sizes else normalize(name)
    return f"{normalize(section_label)} - {product}"
