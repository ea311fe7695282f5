"""
Classifier module.

Pure functions that turn observed area text into domain facts: ticket
availability and prices.
"""
from .availability import check_availability, is_category_label
from .pricing import format_thousands, parse_max_number, price_in_text

__all__ = [
    "check_availability",
    "is_category_label",
    "format_thousands",
    "parse_max_number",
    "price_in_text",
]
