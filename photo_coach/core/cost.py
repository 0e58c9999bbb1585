"""
Real and projected cost calculations.

Real cost is what the remote service billed given the cache behaviour it
reported. Projected cost simulates the static prompt always being served
from cache, for at-scale savings estimates.
"""

from dataclasses import dataclass

from .pricing import PricingEntry
from .token_counter import UsageMetadata


@dataclass(frozen=True)
class CostRecord:
    """Immutable cost breakdown for one request.

    All quantities are non-negative. Savings are clamped to zero, never
    reported as a loss.
    """
    real_cached_tokens: int
    real_new_tokens: int
    total_tokens: int
    real_cost: float
    projected_cached_tokens: int
    projected_cost_with_cache: float
    projected_savings: float

    @classmethod
    def zero(cls) -> "CostRecord":
        return cls(
            real_cached_tokens=0,
            real_new_tokens=0,
            total_tokens=0,
            real_cost=0.0,
            projected_cached_tokens=0,
            projected_cost_with_cache=0.0,
            projected_savings=0.0
        )


def _prompt_cost(cached_tokens: int, new_tokens: int, output_tokens: int, pricing: PricingEntry) -> float:
    return (
        cached_tokens * pricing.cached_input_rate
        + new_tokens * pricing.input_rate
        + output_tokens * pricing.output_rate
    )


def compute_cost(
    usage: UsageMetadata,
    pricing: PricingEntry,
    static_prompt_token_estimate: int
) -> CostRecord:
    """Derive real and projected costs from reported usage.

    Total function: inputs are clamped to valid ranges instead of failing,
    so a billing display can never break result rendering.

    Args:
        usage: Token usage reported by the remote service
        pricing: Rates for the model tier used
        static_prompt_token_estimate: Estimated tokens in the cacheable prompt

    Returns:
        CostRecord, all zeros when no prompt usage was reported
    """
    raw_prompt_tokens = max(0, usage.raw_prompt_tokens)
    if raw_prompt_tokens == 0:
        return CostRecord.zero()

    output_tokens = max(0, usage.output_tokens)

    # Real: what the service actually charged
    real_cached_tokens = min(max(0, usage.cached_prompt_tokens), raw_prompt_tokens)
    real_new_tokens = max(0, raw_prompt_tokens - real_cached_tokens)
    real_cost = _prompt_cost(real_cached_tokens, real_new_tokens, output_tokens, pricing)

    # Projected: static portion always cache-served, whatever was reported
    projected_cached_tokens = min(max(0, static_prompt_token_estimate), raw_prompt_tokens)
    projected_new_tokens = max(0, raw_prompt_tokens - projected_cached_tokens)
    projected_cost = _prompt_cost(projected_cached_tokens, projected_new_tokens, output_tokens, pricing)

    return CostRecord(
        real_cached_tokens=real_cached_tokens,
        real_new_tokens=real_new_tokens,
        total_tokens=max(0, usage.total_tokens),
        real_cost=real_cost,
        projected_cached_tokens=projected_cached_tokens,
        projected_cost_with_cache=projected_cost,
        projected_savings=max(0.0, real_cost - projected_cost)
    )
