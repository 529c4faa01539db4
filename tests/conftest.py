"""Shared fixtures for the serofoi test suite."""

import arviz as az
import numpy as np
import pandas as pd
import pytest

from scipy import stats

from serofoi.model.sampler import Sampler


class StubSampler(Sampler):
    """Deterministic sampler that draws the FoI blocks around a fixed value.

    :param foi_value: Center of the FoI draws
    :param n_chains: Number of chains
    :param n_draws: Number of draws per chain
    :param diverged_chains: If True, every chain is centered on a different value
    :param n_divergent: Number of transitions flagged as divergent
    :param seed: Seed of the draws
    """

    def __init__(
        self,
        foi_value=0.02,
        n_chains=4,
        n_draws=100,
        diverged_chains=False,
        n_divergent=0,
        seed=0,
    ):
        self.foi_value = foi_value
        self.n_chains = n_chains
        self.n_draws = n_draws
        self.diverged_chains = diverged_chains
        self.n_divergent = n_divergent
        self.seed = seed
        self.calls = []

    def sample(self, spec, **sample_kwargs):
        self.calls.append((spec, sample_kwargs))
        rng = np.random.default_rng(self.seed)
        shape = (self.n_chains, self.n_draws)

        # FoI blocks
        foi_vector = self.foi_value + rng.normal(0, 0.001, size=shape + (spec.n_foi,))
        if self.diverged_chains:
            foi_vector += np.arange(self.n_chains)[:, None, None]
        posterior = {"foi_vector": np.abs(foi_vector)}
        if spec.is_seroreversion:
            posterior["seroreversion_rate"] = np.abs(
                rng.normal(0.01, 0.001, size=shape + (1,))
            )

        # Pointwise log-likelihood under a constant FoI
        data = spec.stan_data
        prob = np.clip(
            1 - np.exp(-self.foi_value * np.asarray(data["age_groups"])), 1e-6, 1 - 1e-6
        )
        log_lik = stats.binom.logpmf(data["n_seropositive"], data["n_sample"], prob)
        log_lik = log_lik + rng.normal(0, 0.01, size=shape + (len(log_lik),))

        diverging = np.zeros(shape, dtype=bool)
        diverging.flat[: self.n_divergent] = True

        return az.from_dict(
            posterior=posterior,
            log_likelihood={"log_lik": log_lik},
            sample_stats={"diverging": diverging},
        )


@pytest.fixture
def serosurvey():
    """Serosurvey of people aged 1 to 20 collected in 2020."""
    return pd.DataFrame(
        {
            "survey_year": 2020,
            "age_min": [1, 6, 11],
            "age_max": [5, 10, 20],
            "n_sample": [100, 100, 100],
            "n_seropositive": [8, 17, 30],
        }
    )


@pytest.fixture
def survey_features():
    """Survey design covering ages 1 to 50 in five bins."""
    return pd.DataFrame(
        {
            "age_min": [1, 11, 21, 31, 41],
            "age_max": [10, 20, 30, 40, 50],
            "n_sample": [200, 200, 200, 200, 200],
        }
    )


@pytest.fixture
def constant_time_foi():
    """Constant FoI of 0.02 over the 50 years before a 2020 survey."""
    return pd.DataFrame({"year": np.arange(1970, 2020), "foi": 0.02})


@pytest.fixture
def make_stub_sampler():
    return StubSampler


@pytest.fixture
def stub_sampler():
    return StubSampler()


@pytest.fixture
def unconverged_sampler():
    return StubSampler(diverged_chains=True)
