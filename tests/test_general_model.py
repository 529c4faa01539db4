"""Tests for the matrix-exponential simulator of general catalytic models."""

import numpy as np
import pytest

from serofoi.exceptions import DomainError, ShapeError
from serofoi.simulation.general_model import (
    probability_seropositive_general_model_by_age,
    probability_seropositive_general_model_one_cohort,
)
from serofoi.simulation.seropositivity import (
    probability_seropositive_age_model_by_age,
    probability_seropositive_time_model_by_age,
)

MAX_AGE = 40
SEROREVERSION_RATE = 0.03


def two_state_matrix(t, birth_step, u, v):
    """Susceptible <-> seropositive with seroreversion."""
    foi = u[t - 1] * v[t - birth_step - 1]
    return np.array(
        [
            [-foi, SEROREVERSION_RATE],
            [foi, -SEROREVERSION_RATE],
        ]
    )


def seropositive_fraction(state):
    return state[1]


@pytest.fixture
def initial_conditions():
    return np.array([1.0, 0.0])


def test_matches_time_model(initial_conditions):
    u = np.random.default_rng(1).uniform(0.0, 0.1, MAX_AGE)
    profile = probability_seropositive_general_model_by_age(
        two_state_matrix,
        seropositive_fraction,
        initial_conditions,
        max_age=MAX_AGE,
        u=u,
        v=np.ones(MAX_AGE),
    )
    np.testing.assert_array_equal(profile["age"], np.arange(1, MAX_AGE + 1))
    np.testing.assert_allclose(
        profile["seropositivity"],
        probability_seropositive_time_model_by_age(u, SEROREVERSION_RATE),
        atol=1e-6,
    )


def test_matches_age_model(initial_conditions):
    v = np.random.default_rng(2).uniform(0.0, 0.1, MAX_AGE)
    profile = probability_seropositive_general_model_by_age(
        two_state_matrix,
        seropositive_fraction,
        initial_conditions,
        max_age=MAX_AGE,
        u=np.ones(MAX_AGE),
        v=v,
        progress_bar=True,
    )
    np.testing.assert_allclose(
        profile["seropositivity"],
        probability_seropositive_age_model_by_age(v, SEROREVERSION_RATE),
        atol=1e-6,
    )


def test_callback_receives_time_and_birth_step(initial_conditions):
    calls = []

    def construct_transition_matrix(t, birth_step, u, v):
        calls.append((t, birth_step))
        return np.zeros((2, 2))

    value = probability_seropositive_general_model_one_cohort(
        construct_transition_matrix,
        seropositive_fraction,
        initial_conditions,
        birth_step=2,
        max_age=5,
        u=np.ones(5),
        v=np.ones(5),
    )
    assert calls == [(3, 2), (4, 2), (5, 2)]
    assert value == 0.0


class TestIncubationChain:
    """Susceptible -> exposed -> seropositive, with no seroreversion."""

    FOI = 0.05

    @staticmethod
    def make_matrix(incubation_rate):
        def construct_transition_matrix(t, birth_step, u, v):
            foi = u[t - 1] * v[t - birth_step - 1]
            return np.array(
                [
                    [-foi, 0.0, 0.0],
                    [foi, -incubation_rate, 0.0],
                    [0.0, incubation_rate, 0.0],
                ]
            )

        return construct_transition_matrix

    def run(self, incubation_rate, calculate_seropositivity=lambda state: state[2]):
        return probability_seropositive_general_model_by_age(
            self.make_matrix(incubation_rate),
            calculate_seropositivity,
            np.array([1.0, 0.0, 0.0]),
            max_age=MAX_AGE,
            u=np.full(MAX_AGE, self.FOI),
            v=np.ones(MAX_AGE),
        )["seropositivity"].to_numpy()

    def test_incubation_delays_seroconversion(self):
        direct = 1 - np.exp(-self.FOI * np.arange(1, MAX_AGE + 1))
        assert (self.run(0.5) < direct).all()

    def test_fast_incubation_approaches_direct_model(self):
        direct = 1 - np.exp(-self.FOI * np.arange(1, MAX_AGE + 1))
        np.testing.assert_allclose(self.run(1000.0), direct, atol=1e-2)

    def test_population_is_conserved(self):
        np.testing.assert_allclose(self.run(0.5, np.sum), 1.0)


def test_wrong_matrix_shape(initial_conditions):
    with pytest.raises(ShapeError):
        probability_seropositive_general_model_by_age(
            lambda t, birth_step, u, v: np.zeros((3, 3)),
            seropositive_fraction,
            initial_conditions,
            max_age=5,
            u=np.ones(5),
            v=np.ones(5),
        )


def test_initial_conditions_must_be_a_vector():
    with pytest.raises(ShapeError):
        probability_seropositive_general_model_by_age(
            two_state_matrix,
            seropositive_fraction,
            np.eye(2),
            max_age=5,
            u=np.ones(5),
            v=np.ones(5),
        )


@pytest.mark.parametrize("max_age", [0, -3, 2.5])
def test_invalid_max_age(initial_conditions, max_age):
    with pytest.raises(DomainError):
        probability_seropositive_general_model_by_age(
            two_state_matrix,
            seropositive_fraction,
            initial_conditions,
            max_age=max_age,
            u=np.ones(5),
            v=np.ones(5),
        )
