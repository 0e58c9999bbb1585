"""
Pricing rates and tier lookup.

Holds the static rate card for each model tier.
"""

from dataclasses import dataclass
from typing import Dict


TOKENS_PER_MILLION = 1_000_000


@dataclass(frozen=True)
class PricingEntry:
    """Per-token pricing for a single model tier."""
    input_rate: float  # Cost per fresh prompt token
    output_rate: float  # Cost per output token
    cached_input_rate: float  # Cost per prompt token served from cache

    def __post_init__(self):
        """Validate rates are non-negative."""
        if self.input_rate < 0:
            raise ValueError("input_rate cannot be negative")
        if self.output_rate < 0:
            raise ValueError("output_rate cannot be negative")
        if self.cached_input_rate < 0:
            raise ValueError("cached_input_rate cannot be negative")

    @classmethod
    def per_million(cls, input: float, output: float, cached_input: float) -> "PricingEntry":
        """Build an entry from prices quoted per 1M tokens."""
        return cls(
            input_rate=input / TOKENS_PER_MILLION,
            output_rate=output / TOKENS_PER_MILLION,
            cached_input_rate=cached_input / TOKENS_PER_MILLION
        )


@dataclass(frozen=True)
class PricingTable:
    """Fixed pricing table for supported model tiers."""
    prices: Dict[str, PricingEntry]

    def rate_for(self, tier: str) -> PricingEntry:
        """Get pricing for a specific tier.

        Args:
            tier: Tier identifier ("flash", "pro", ...)

        Returns:
            PricingEntry for the tier

        Raises:
            ValueError: If tier is not supported
        """
        if tier not in self.prices:
            raise ValueError(f"Unsupported pricing tier: {tier}")
        return self.prices[tier]

    @property
    def tiers(self):
        return sorted(self.prices)


# Fixed pricing table - no dynamic fetching
PRICING_TABLE = PricingTable({
    "flash": PricingEntry.per_million(
        input=0.075,
        output=0.30,
        cached_input=0.01875
    ),
    "pro": PricingEntry.per_million(
        input=3.50,
        output=10.50,
        cached_input=0.875
    )
})


def rate_for(tier: str) -> PricingEntry:
    """Look up a tier in the built-in pricing table."""
    return PRICING_TABLE.rate_for(tier)
