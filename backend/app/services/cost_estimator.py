"""Token usage to monetary cost, by model tier."""
from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal


@dataclass(frozen=True)
class TierPricing:
    input_per_1m_usd: Decimal
    output_per_1m_usd: Decimal


# First matching substring of the model id wins; "default" covers everything else.
TIER_PRICING = {
    "placeholder": TierPricing(Decimal("0"), Decimal("0")),
    "haiku": TierPricing(Decimal("0.80"), Decimal("4.00")),
    "mini": TierPricing(Decimal("0.15"), Decimal("0.60")),
    "gpt-4o": TierPricing(Decimal("2.50"), Decimal("10.00")),
    "default": TierPricing(Decimal("3.00"), Decimal("15.00")),
}

_CENT_QUANTUM = Decimal("0.0001")


def model_tier(model_id: str) -> str:
    lowered = (model_id or "").lower()
    for tier in TIER_PRICING:
        if tier != "default" and tier in lowered:
            return tier
    return "default"


def estimate_cost_cents(model_id: str, tokens_in: int, tokens_out: int) -> Decimal:
    """Cost in US cents, never negative."""
    pricing = TIER_PRICING[model_tier(model_id)]
    tokens_in = max(0, int(tokens_in or 0))
    tokens_out = max(0, int(tokens_out or 0))
    usd = (tokens_in * pricing.input_per_1m_usd + tokens_out * pricing.output_per_1m_usd) / Decimal(1_000_000)
    return (usd * 100).quantize(_CENT_QUANTUM, rounding=ROUND_HALF_UP)
