import math
from typing import Any

# Vendor code -> display category for every gold product we track.
GOLD_CATEGORY_CODES: dict[str, str] = {
    "GRAM_ALTIN": "Gram Altın",
    "HAS_ALTIN": "Has Altın",
    "YENI_CEYREK": "Çeyrek Altın (Yeni)",
    "ESKI_CEYREK": "Çeyrek Altın (Eski)",
    "YENI_YARIM": "Yarım Altın (Yeni)",
    "ESKI_YARIM": "Yarım Altın (Eski)",
    "YENI_TAM": "Tam Altın (Yeni)",
    "ESKI_TAM": "Tam Altın (Eski)",
    "YENI_ATA": "Ata Altın (Yeni)",
    "ESKI_ATA": "Ata Altın (Eski)",
    "YENI_ATA5": "Beşli Ata Altın (Yeni)",
    "ESKI_ATA5": "Beşli Ata Altın (Eski)",
    "YENI_GREMSE": "Gremse Altın (Yeni)",
    "ESKI_GREMSE": "Gremse Altın (Eski)",
    "14_AYAR": "14 Ayar Altın",
    "22_AYAR": "22 Ayar Altın",
}

GOLD_CATEGORIES: tuple[str, ...] = tuple(GOLD_CATEGORY_CODES.values())

# Last resort when neither a fetch nor a cached snapshot has a price.
DEFAULT_GOLD_PRICES: dict[str, float] = {
    "Gram Altın": 3475.89,
    "Has Altın": 3493.36,
    "Çeyrek Altın (Yeni)": 5694.00,
    "Çeyrek Altın (Eski)": 5580.00,
    "Yarım Altın (Yeni)": 11388.00,
    "Yarım Altın (Eski)": 11160.00,
    "Tam Altın (Yeni)": 22707.00,
    "Tam Altın (Eski)": 22250.00,
    "Ata Altın (Yeni)": 23350.00,
    "Ata Altın (Eski)": 22890.00,
    "Beşli Ata Altın (Yeni)": 116750.00,
    "Beşli Ata Altın (Eski)": 114450.00,
    "Gremse Altın (Yeni)": 56770.00,
    "Gremse Altın (Eski)": 55640.00,
    "14 Ayar Altın": 2030.00,
    "22 Ayar Altın": 3180.00,
}

PREFERRED_CATEGORY_ORDER: tuple[str, ...] = (
    "Gram Altın",
    "Çeyrek Altın (Yeni)",
    "Yarım Altın (Yeni)",
    "Tam Altın (Yeni)",
    "Ata Altın (Yeni)",
    "Has Altın",
    "22 Ayar Altın",
    "14 Ayar Altın",
)


def parse_localized_decimal(raw: Any) -> float:
    """
    Parse a vendor price such as ``"3.475,89"`` into ``3475.89``.

    Dots are thousands separators and the comma is the decimal separator.
    Raises ValueError for anything that is not a finite number.
    """
    if isinstance(raw, bool):
        raise ValueError(f"Not a price: {raw!r}")
    if isinstance(raw, (int, float)):
        value = float(raw)
    elif isinstance(raw, str):
        cleaned = "".join(raw.split()).replace(".", "").replace(",", ".")
        if not cleaned:
            raise ValueError("Empty price")
        value = float(cleaned)
    else:
        raise ValueError(f"Not a price: {raw!r}")
    if not math.isfinite(value):
        raise ValueError(f"Not a finite price: {raw!r}")
    return value


def is_valid_price(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
        and value > 0
    )
