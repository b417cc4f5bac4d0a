import pytest

from data_designer_screenplay_guard.hyperparameters import (
    DEFAULT_HYPERPARAMETERS,
    Hyperparameters,
    clamp,
    tiered_penalty,
)


class TestHyperparameters:
    def test_default_weights_sum_to_one(self):
        assert sum(DEFAULT_HYPERPARAMETERS.weights.values()) == pytest.approx(1.0)

    def test_weights_must_sum_to_one(self):
        weights = dict(DEFAULT_HYPERPARAMETERS.weights, uniqueness=0.5)
        with pytest.raises(ValueError):
            Hyperparameters(weights=weights)

    def test_every_category_needs_a_weight(self):
        weights = dict(DEFAULT_HYPERPARAMETERS.weights)
        weights.pop("prose")
        with pytest.raises(ValueError):
            Hyperparameters(weights=weights)

    def test_tier_bands_must_descend(self):
        with pytest.raises(ValueError):
            Hyperparameters(tier_bands=((6.0, "D-Tier"), (9.0, "A-Tier")))


class TestHelpers:
    def test_tiered_penalty_takes_first_exceeded_tier(self):
        tiers = ((50, 3.0), (20, 2.0), (5, 1.0))
        assert tiered_penalty(5, tiers) == 0.0
        assert tiered_penalty(6, tiers) == 1.0
        assert tiered_penalty(21, tiers) == 2.0
        assert tiered_penalty(51, tiers) == 3.0

    def test_clamp(self):
        assert clamp(-3.0, DEFAULT_HYPERPARAMETERS) == 0.0
        assert clamp(12.0, DEFAULT_HYPERPARAMETERS) == 10.0
        assert clamp(7.5, DEFAULT_HYPERPARAMETERS) == 7.5
