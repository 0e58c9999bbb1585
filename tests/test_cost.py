"""
Unit tests for cost calculations.

Tests real vs projected cost accuracy, clamping and the empty-usage case.
"""

import pytest

from photo_coach.core.cost import CostRecord, compute_cost
from photo_coach.core.pricing import PricingEntry, rate_for
from photo_coach.core.token_counter import UsageMetadata


PRO = PricingEntry(input_rate=3.5e-6, output_rate=10.5e-6, cached_input_rate=0.875e-6)


class TestComputeCost:
    """Test cost derivation from usage metadata."""

    def test_reference_scenario(self):
        """Verify real and projected cost for an uncached request."""
        usage = UsageMetadata(raw_prompt_tokens=3000, output_tokens=500, cached_prompt_tokens=0, total_tokens=3500)
        record = compute_cost(usage, PRO, static_prompt_token_estimate=2500)

        # Real: 3000 * 3.5e-6 + 500 * 10.5e-6 = 0.0105 + 0.00525
        assert record.real_cost == pytest.approx(0.01575)
        assert record.real_cached_tokens == 0
        assert record.real_new_tokens == 3000
        assert record.total_tokens == 3500
        # Projected: 2500 * 0.875e-6 + 500 * 3.5e-6 + 500 * 10.5e-6
        assert record.projected_cached_tokens == 2500
        assert record.projected_cost_with_cache == pytest.approx(0.0091875)
        assert record.projected_savings == pytest.approx(0.0065625)

    def test_built_in_pro_tier_matches(self):
        """Verify the built-in pro tier gives the same figures."""
        usage = UsageMetadata(raw_prompt_tokens=3000, output_tokens=500)
        record = compute_cost(usage, rate_for("pro"), 2500)
        assert record.real_cost == pytest.approx(0.01575)

    def test_real_cache_hit_billed_at_cached_rate(self):
        """Verify reported cache hits are billed at the cached rate."""
        usage = UsageMetadata(raw_prompt_tokens=1000, output_tokens=0, cached_prompt_tokens=400)
        record = compute_cost(usage, PRO, 0)

        # 400 * 0.875e-6 + 600 * 3.5e-6 = 0.00035 + 0.0021
        assert record.real_cached_tokens == 400
        assert record.real_new_tokens == 600
        assert record.real_cost == pytest.approx(0.00245)

    @pytest.mark.parametrize("raw,cached", [(1000, 0), (1000, 1000), (1000, 999), (1, 0), (50000, 12345)])
    def test_token_split_sums_to_prompt(self, raw, cached):
        """Verify new + cached tokens always equal prompt tokens."""
        record = compute_cost(UsageMetadata(raw_prompt_tokens=raw, cached_prompt_tokens=cached), PRO, 100)
        assert record.real_new_tokens + record.real_cached_tokens == raw

    def test_static_estimate_larger_than_prompt(self):
        """Verify projected cached tokens never exceed the prompt."""
        record = compute_cost(UsageMetadata(raw_prompt_tokens=800, output_tokens=10), PRO, 2500)
        assert record.projected_cached_tokens == 800
        # Whole prompt at cached rate: 800 * 0.875e-6 + 10 * 10.5e-6
        assert record.projected_cost_with_cache == pytest.approx(0.000805)

    def test_savings_clamped_to_zero(self):
        """Verify a projection above real cost reports zero savings, not a loss."""
        # Everything already cached for real, nothing projected as cached
        usage = UsageMetadata(raw_prompt_tokens=1000, output_tokens=100, cached_prompt_tokens=1000)
        record = compute_cost(usage, PRO, 0)
        assert record.projected_cost_with_cache > record.real_cost
        assert record.projected_savings == 0.0

    def test_cached_greater_than_prompt_clamped(self):
        """Verify malformed cache counts are clamped rather than failing."""
        usage = UsageMetadata(raw_prompt_tokens=100, cached_prompt_tokens=100)
        object.__setattr__(usage, "cached_prompt_tokens", 500)

        record = compute_cost(usage, PRO, 0)

        assert record.real_cached_tokens == 100
        assert record.real_new_tokens == 0

    def test_zero_prompt_tokens_gives_zero_record(self):
        """Verify missing usage yields an all-zero record."""
        usage = UsageMetadata(raw_prompt_tokens=0, output_tokens=500, total_tokens=500)
        assert compute_cost(usage, PRO, 2500) == CostRecord.zero()

    def test_negative_static_estimate_treated_as_zero(self):
        """Verify a negative static estimate projects no cached tokens."""
        record = compute_cost(UsageMetadata(raw_prompt_tokens=100), PRO, -50)
        assert record.projected_cached_tokens == 0
        assert record.projected_cost_with_cache == pytest.approx(record.real_cost)

    @pytest.mark.parametrize("raw,output,cached,static", [
        (0, 0, 0, 0),
        (1, 1, 0, 0),
        (1000, 0, 1000, 5000),
        (2500, 10000, 10, 2500),
    ])
    def test_costs_never_negative(self, raw, output, cached, static):
        """Verify all costs are non-negative for non-negative inputs."""
        usage = UsageMetadata(raw_prompt_tokens=raw, output_tokens=output, cached_prompt_tokens=cached)
        record = compute_cost(usage, PRO, static)
        assert record.real_cost >= 0
        assert record.projected_cost_with_cache >= 0
        assert record.projected_savings >= 0

    def test_record_is_immutable(self):
        """Verify cost records cannot be modified after creation."""
        record = compute_cost(UsageMetadata(raw_prompt_tokens=10), PRO, 0)
        with pytest.raises(AttributeError):
            record.real_cost = 0.0
