"""Ticket availability classification from area button text."""

import re

from ..dom.selectors import DEFAULT_CATALOG, StatusText
from ..state.models import Availability, AvailabilityStatus

# Short tab labels such as "A區" group areas but are not purchasable
CATEGORY_LABEL_MAX_LEN = 10
CATEGORY_MARKER = "區"
PRICE_MARKERS = ("$", "NT")


def check_availability(
    text: str,
    required_count: int,
    status_text: StatusText = DEFAULT_CATALOG.status_text,
) -> Availability:
    """
    Classify an area's availability for required_count tickets.

    Rules, first match wins:
    1. hot-selling marker: available
    2. sold-out marker or "remaining 0": sold out
    3. "remaining N": available iff N >= required_count
    4. otherwise: available with status UNKNOWN, which callers must not act on

    Args:
        text: Visible text of the area button
        required_count: Tickets the run needs from this area
        status_text: Status markers from the selector catalog

    Returns:
        Availability with status, remaining count (rule 3 only) and a label
    """
    if status_text.hot_selling in text:
        return Availability(
            available=True,
            status=AvailabilityStatus.AVAILABLE,
            label=status_text.hot_selling,
        )

    if status_text.sold_out in text or status_text.remaining_zero in text:
        return Availability(
            available=False,
            status=AvailabilityStatus.SOLD_OUT,
            remaining=0,
            label=status_text.sold_out,
        )

    match = re.search(status_text.remaining_pattern, text)
    if match:
        remaining = int(match.group(1))
        if remaining < required_count:
            return Availability(
                available=False,
                status=AvailabilityStatus.INSUFFICIENT_STOCK,
                remaining=remaining,
                label=f"剩餘{remaining}張，不足{required_count}張",
            )
        return Availability(
            available=True,
            status=AvailabilityStatus.AVAILABLE,
            remaining=remaining,
            label=f"剩餘{remaining}張",
        )

    return Availability(
        available=True,
        status=AvailabilityStatus.UNKNOWN,
        label="狀態未知",
    )


def is_category_label(text: str) -> bool:
    """True for short area-group tab labels that carry no price."""
    text = text.strip()
    return (
        len(text) < CATEGORY_LABEL_MAX_LEN
        and CATEGORY_MARKER in text
        and not any(marker in text for marker in PRICE_MARKERS)
    )
