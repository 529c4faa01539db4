"""Tests for the piecewise-constant seropositivity recursion."""

import numpy as np
import pandas as pd
import pytest

from serofoi import probability_seropositive_by_age
from serofoi.simulation.seropositivity import (
    foi_to_matrix,
    probability_seropositive,
    probability_seropositive_age_and_time_model_by_age,
    probability_seropositive_age_model_by_age,
    probability_seropositive_time_model_by_age,
    seropositivity_step,
)

AGES = np.arange(1, 51)


@pytest.mark.parametrize("foi", [0.0, 0.01, 0.2, 1.5])
def test_constant_foi_without_seroreversion(foi):
    probs = probability_seropositive_time_model_by_age(np.full(50, foi))
    np.testing.assert_allclose(probs, 1 - np.exp(-foi * AGES), rtol=1e-10, atol=1e-12)


@pytest.mark.parametrize("foi, seroreversion_rate", [(0.02, 0.01), (0.3, 0.05)])
def test_constant_foi_with_seroreversion(foi, seroreversion_rate):
    total = foi + seroreversion_rate
    expected = foi / total * (1 - np.exp(-total * AGES))
    probs = probability_seropositive_age_model_by_age(
        np.full(50, foi), seroreversion_rate
    )
    np.testing.assert_allclose(probs, expected, rtol=1e-10)


def test_zero_foi_and_zero_seroreversion_leaves_fraction_unchanged():
    assert seropositivity_step(0.3, 0.0, 0.0) == 0.3
    assert probability_seropositive([0.0] * 10) == 0.0


def test_seroreversion_only_decays():
    assert seropositivity_step(0.5, 0.0, 0.1) == pytest.approx(0.5 * np.exp(-0.1))


def test_seropositivity_is_non_decreasing_without_seroreversion():
    fois = np.random.default_rng(0).uniform(0, 0.1, 50)
    for probs in (
        probability_seropositive_time_model_by_age(fois),
        probability_seropositive_age_model_by_age(fois),
    ):
        assert (np.diff(probs) >= 0).all()
        assert ((probs >= 0) & (probs <= 1)).all()


def test_time_model_uses_most_recent_years():
    # Only the oldest year had transmission
    fois = np.array([0.1, 0.0, 0.0])
    probs = probability_seropositive_time_model_by_age(fois)
    np.testing.assert_allclose(probs, [0.0, 0.0, 1 - np.exp(-0.1)])


def test_age_model_uses_first_years_of_life():
    # Only the first year of life has transmission
    fois = np.array([0.1, 0.0, 0.0])
    probs = probability_seropositive_age_model_by_age(fois)
    np.testing.assert_allclose(probs, np.full(3, 1 - np.exp(-0.1)))


class TestAgeAndTimeModel:
    @pytest.fixture
    def year_effect(self):
        return np.linspace(0.01, 0.05, 10)

    def test_reduces_to_time_model(self, year_effect):
        matrix = np.repeat(year_effect[:, None], 10, axis=1)
        np.testing.assert_allclose(
            probability_seropositive_age_and_time_model_by_age(matrix, 0.02),
            probability_seropositive_time_model_by_age(year_effect, 0.02),
        )

    def test_reduces_to_age_model(self, year_effect):
        age_effect = year_effect[::-1]
        matrix = np.repeat(age_effect[None, :], 10, axis=0)
        np.testing.assert_allclose(
            probability_seropositive_age_and_time_model_by_age(matrix),
            probability_seropositive_age_model_by_age(age_effect),
        )

    def test_table_pivot(self):
        foi = pd.DataFrame(
            {
                "year": [2001, 2001, 2000, 2000],
                "age": [2, 1, 2, 1],
                "foi": [0.4, 0.3, 0.2, 0.1],
            }
        )
        np.testing.assert_array_equal(foi_to_matrix(foi), [[0.1, 0.2], [0.3, 0.4]])


def test_by_age_table(constant_time_foi):
    table = probability_seropositive_by_age("time", constant_time_foi)
    assert list(table.columns) == ["age", "seropositivity"]
    np.testing.assert_array_equal(table["age"], AGES)
    np.testing.assert_allclose(table["seropositivity"], 1 - np.exp(-0.02 * AGES))


def test_by_age_sorts_unordered_tables():
    foi = pd.DataFrame({"age": [3, 1, 2], "foi": [0.0, 0.1, 0.0]})
    table = probability_seropositive_by_age("age", foi)
    np.testing.assert_allclose(table["seropositivity"], np.full(3, 1 - np.exp(-0.1)))


def test_by_age_invalid_model_type(constant_time_foi):
    with pytest.raises(ValueError, match="model_type"):
        probability_seropositive_by_age("constant", constant_time_foi)
