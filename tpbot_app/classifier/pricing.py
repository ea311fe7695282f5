"""Price extraction and formatting for area button text."""

import re
from typing import Optional

# Grouped tokens need at least one ",ddd" group so that "3200" is read whole
_NUMBER_TOKEN = re.compile(r"\d{1,3}(?:,\d{3})+(?!\d)|\d+")


def format_thousands(price: int) -> str:
    """Format with comma grouping, e.g. 1234000 -> '1,234,000'."""
    return f"{int(price):,}"


def parse_max_number(text: str) -> Optional[int]:
    """
    Largest integer appearing in text.

    Comma-grouped tokens ("2,800") count as one number.

    Returns:
        The maximum value, or None when text has no digits
    """
    numbers = [int(token.replace(",", "")) for token in _NUMBER_TOKEN.findall(text or "")]
    return max(numbers) if numbers else None


def price_in_text(price: int, text: str) -> bool:
    """True when the grouped or bare form of price appears in text."""
    return format_thousands(price) in text or str(price) in text
