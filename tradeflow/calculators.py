"""Pure calculators for derived workflow values."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Union

from .config import PricingPolicy
from .constants import DEFAULT_DURATION_DAYS, DURATION_DAYS, MAX_ACTIVE_DAYS
from .contracts import DerivedPricing, ExpirationComputation


def duration_days(code: str) -> int:
    """Map a duration code to its day count, falling back to a week."""
    return DURATION_DAYS.get(code, DEFAULT_DURATION_DAYS)


def _requested_days(duration: Union[str, int, None]) -> int:
    if isinstance(duration, bool) or duration is None:
        return DEFAULT_DURATION_DAYS
    if isinstance(duration, int):
        return duration if duration > 0 else DEFAULT_DURATION_DAYS
    return duration_days(str(duration))


def compute_expiration(
    duration: Union[str, int, None], now: datetime
) -> ExpirationComputation:
    """Compute when a posting expires.

    ``duration`` is either a duration code or an explicit day count. Unknown
    codes and non-positive counts fall back to seven days, and no result is
    ever more than ``MAX_ACTIVE_DAYS`` after ``now``.
    """
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    requested = _requested_days(duration)
    days = min(requested, MAX_ACTIVE_DAYS)
    return ExpirationComputation(
        duration_code=str(duration),
        days=days,
        now=now,
        expires_at=now + timedelta(days=days),
        was_capped=requested > MAX_ACTIVE_DAYS,
    )


def _label(option_id: str) -> str:
    return option_id.replace("_", " ")


def compute_price(
    option_id: str, base_price: Union[Decimal, int, str], policy: PricingPolicy
) -> DerivedPricing:
    """Apply ``policy`` to the base price of ``option_id``.

    A per-option override wins over the free-by-default flag, which wins over
    the base price. Callers pass the policy in force at call time.
    """
    base = Decimal(str(base_price))

    if option_id in policy.prices:
        override = policy.prices[option_id]
        changed = override != base
        return DerivedPricing(
            option_id=option_id,
            base_price=base,
            override_price=override,
            final_price=override,
            was_overridden=changed,
            override_reason=(
                f"Admin has set {_label(option_id)} price to £{override}" if changed else None
            ),
        )

    free_applies = policy.free_options is None or option_id in policy.free_options
    if policy.is_free_by_default and free_applies:
        changed = base != 0
        return DerivedPricing(
            option_id=option_id,
            base_price=base,
            final_price=Decimal("0"),
            was_overridden=changed,
            override_reason=(
                f"Admin has set {_label(option_id)} postings to be free" if changed else None
            ),
        )

    return DerivedPricing(option_id=option_id, base_price=base, final_price=base)
