"""
Area candidate enumeration and ranking for the Searching state.

For every valid area button the availability check runs first, then price
matching in exactly one mode: grab-all (largest number in the text) or
targeted (first configured target price present in the text). Candidates
at the priority price rank ahead of the rest; document order is kept
within each tier.
"""

from typing import Optional, Sequence

from ..classifier.availability import check_availability
from ..classifier.pricing import parse_max_number, price_in_text
from ..config.settings import BotConfig
from ..dom.base import ElementHandle
from ..dom.selectors import DEFAULT_CATALOG, StatusText
from ..errors import AmbiguousStateError, TransientObservationMiss
from .models import AreaCandidate

PRIORITY_RANK = 0
DEFAULT_RANK = 1


def match_price(text: str, config: BotConfig) -> Optional[int]:
    """
    Price this area matches under the configured mode, or None.

    Grab-all mode never returns None: text without digits matches as 0.
    """
    if config.grab_all:
        extracted = parse_max_number(text)
        return extracted if extracted is not None else 0

    for target in config.target_prices:
        if price_in_text(target, text):
            return target
    return None


def collect_candidates(
    buttons: Sequence[ElementHandle],
    config: BotConfig,
    status_text: StatusText = DEFAULT_CATALOG.status_text,
) -> list[AreaCandidate]:
    """Build candidates for buttons that are available and match a price."""
    candidates = []
    for index, button in enumerate(buttons):
        try:
            text = button.text
        except TransientObservationMiss:
            continue

        availability = check_availability(text, config.ticket_count, status_text)
        if not availability.available:
            continue

        price = match_price(text, config)
        if price is None:
            continue

        candidates.append(AreaCandidate(
            handle=button,
            price=price,
            availability=availability,
            rank=PRIORITY_RANK if config.matches_priority(price) else DEFAULT_RANK,
            index=index,
        ))
    return candidates


def rank_candidates(candidates: Sequence[AreaCandidate]) -> list[AreaCandidate]:
    """Priority tier first; sorted() is stable so document order holds within tiers."""
    return sorted(candidates, key=lambda candidate: candidate.rank)


def select_target(ranked: Sequence[AreaCandidate]) -> Optional[AreaCandidate]:
    """
    The single candidate to act on this cycle.

    Raises:
        AmbiguousStateError: The top candidate's availability is UNKNOWN
    """
    if not ranked:
        return None

    target = ranked[0]
    if not target.availability.actionable:
        raise AmbiguousStateError(
            "Top-ranked area has unknown availability",
            status=target.availability.status.value,
            price=target.price,
            context={"index": target.index},
        )
    return target
