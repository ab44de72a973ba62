"""
Amount Lexicon ("terbilang")

Spells a rupiah amount out in Indonesian words so a person entering a
transaction can verify the number they typed, e.g.

    1500000 -> "Satu Juta Lima Ratus Ribu Rupiah"

Like the date resolver, these helpers never raise. Input that is not a
non-negative whole number within the trillions returns None.
"""

from decimal import Decimal
from typing import Any, Optional


ONES = ["", "Satu", "Dua", "Tiga", "Empat", "Lima", "Enam", "Tujuh", "Delapan", "Sembilan"]
TEENS = [
    "Sepuluh", "Sebelas", "Dua Belas", "Tiga Belas", "Empat Belas",
    "Lima Belas", "Enam Belas", "Tujuh Belas", "Delapan Belas", "Sembilan Belas",
]
TENS = [
    "", "", "Dua Puluh", "Tiga Puluh", "Empat Puluh",
    "Lima Puluh", "Enam Puluh", "Tujuh Puluh", "Delapan Puluh", "Sembilan Puluh",
]
SCALES = ["", "Ribu", "Juta", "Miliar", "Triliun"]

ZERO_WORD = "Nol"
DEFAULT_CURRENCY = "Rupiah"

# First amount with no scale word left (one thousand trillion)
MAX_SPELLABLE = 1000 ** len(SCALES) - 1


def to_words(amount: Any, currency: str = DEFAULT_CURRENCY) -> Optional[str]:
    """
    Spell out a whole, non-negative amount.

    Args:
        amount: The amount in whole currency units
        currency: Currency name appended to the words

    Returns:
        The amount in words, or None if it cannot be spelled
    """
    value = _as_whole_number(amount)
    if value is None or value < 0 or value > MAX_SPELLABLE:
        return None

    if value == 0:
        return f"{ZERO_WORD} {currency}"

    parts = []
    scale = 0
    while value > 0:
        group = value % 1000
        if group:
            # "Seribu", never "Satu Ribu"
            if scale == 1 and group == 1:
                parts.append("Seribu")
            else:
                parts.append(f"{_group_to_words(group)} {SCALES[scale]}")
        value //= 1000
        scale += 1

    words = " ".join(reversed(parts))
    return " ".join(f"{words} {currency}".split())


def format_currency(amount: int) -> str:
    """
    Format an amount the way id-ID shows rupiah, e.g. "Rp 1.500.000".

    Negative amounts (possible for balances) get a leading minus.
    """
    sign = "-" if amount < 0 else ""
    grouped = f"{abs(int(amount)):,}".replace(",", ".")
    return f"{sign}Rp {grouped}"


def _group_to_words(n: int) -> str:
    """Words for 1..999."""
    if n < 10:
        return ONES[n]
    if n < 20:
        return TEENS[n - 10]
    if n < 100:
        return f"{TENS[n // 10]} {ONES[n % 10]}".strip()
    if n < 200:
        return f"Seratus {_group_to_words(n - 100)}".strip()
    return f"{ONES[n // 100]} Ratus {_group_to_words(n % 100)}".strip()


def _as_whole_number(amount: Any) -> Optional[int]:
    if isinstance(amount, bool):
        return None
    if isinstance(amount, int):
        return amount
    if isinstance(amount, (float, Decimal)):
        try:
            if amount != amount or amount % 1 != 0:
                return None
            return int(amount)
        except (ArithmeticError, ValueError):
            return None
    return None
