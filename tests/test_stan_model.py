"""Tests for the bundled Stan programs and the cmdstanpy sampler.

The Stan toolchain is not needed: compilation and sampling are replaced with
fakes that record what they are given.
"""

import os.path

import arviz as az
import numpy as np
import pytest

import serofoi as sf

from serofoi.model import stan
from serofoi.model.stan.stan_model import CmdStanSampler


@pytest.mark.parametrize("stan_program", stan.STAN_PROGRAMS)
def test_bundled_programs(stan_program):
    path = stan.get_stan_program_path(stan_program)
    assert os.path.isfile(path)

    with open(path, "r", encoding="utf-8") as f:
        code = f.read()
    for include in (
        "serocatalytic.stanfunctions",
        "serosurvey.standata",
        "serosurvey_transformed.standata",
    ):
        assert f"#include {include}" in code
        assert os.path.isfile(os.path.join(stan.STAN_INCLUDE_PATHS[0], include))
    assert "log_lik" in code


def test_unknown_program():
    with pytest.raises(ValueError, match="Unknown Stan program"):
        stan.get_stan_program_path("age_time")


@pytest.mark.parametrize(
    "kwargs, stan_program",
    [
        ({}, "constant"),
        ({"model_type": "age"}, "age"),
        ({"model_type": "age", "is_log_foi": True}, "age_log"),
        ({"model_type": "time"}, "time"),
        ({"model_type": "time", "is_log_foi": True}, "time_log"),
    ],
)
def test_every_spec_has_a_program(serosurvey, kwargs, stan_program):
    spec = sf.build_stan_data(serosurvey, **kwargs)
    assert spec.stan_program == stan_program
    assert spec.stan_program in stan.STAN_PROGRAMS


class FakeModel:
    def __init__(self):
        self.calls = []

    def sample(self, **kwargs):
        self.calls.append(kwargs)
        return "fit"


@pytest.fixture
def fake_sampler(monkeypatch):
    """CmdStanSampler whose compiled model and ArviZ conversion are fakes."""
    model = FakeModel()
    conversions = []

    def from_cmdstanpy(**kwargs):
        conversions.append(kwargs)
        draws = np.random.default_rng(0).normal(0.1, 0.01, size=(2, 50, 1))
        return az.from_dict(posterior={"foi_vector": draws})

    monkeypatch.setattr(CmdStanSampler, "get_model", lambda self, name: model)
    monkeypatch.setattr(az, "from_cmdstanpy", from_cmdstanpy)

    sampler = CmdStanSampler()
    sampler.model = model
    sampler.conversions = conversions
    return sampler


def test_default_sampling_options(serosurvey, fake_sampler):
    spec = sf.build_stan_data(serosurvey)
    result = fake_sampler.sample(spec)
    assert isinstance(result, az.InferenceData)

    [kwargs] = fake_sampler.model.calls
    data = kwargs.pop("data")
    seed = kwargs.pop("seed")
    assert kwargs == {
        "chains": 4,
        "iter_warmup": 500,
        "iter_sampling": 500,
        "thin": 2,
        "adapt_delta": 0.9,
        "max_treedepth": 10,
    }
    assert isinstance(seed, int)
    assert set(data) == set(spec.stan_data)
    np.testing.assert_array_equal(data["foi_index"], np.ones(20))

    [conversion] = fake_sampler.conversions
    assert conversion["posterior"] == "fit"
    assert conversion["log_likelihood"] == "log_lik"


def test_sampling_options_are_forwarded(serosurvey, fake_sampler):
    spec = sf.build_stan_data(serosurvey, model_type="age")
    fake_sampler.sample(spec, chains=2, seed=17, timeout=60)

    [kwargs] = fake_sampler.model.calls
    assert kwargs["chains"] == 2
    assert kwargs["seed"] == 17
    assert kwargs["timeout"] == 60
    assert kwargs["iter_sampling"] == 500


def test_seed_comes_from_global_rng(serosurvey, fake_sampler):
    spec = sf.build_stan_data(serosurvey)
    sf.manual_seed(5)
    fake_sampler.sample(spec)
    sf.manual_seed(5)
    fake_sampler.sample(spec)

    first, second = fake_sampler.model.calls
    assert first["seed"] == second["seed"]


def test_fit_seromodel_with_cmdstan_sampler(serosurvey, fake_sampler):
    fit = sf.fit_seromodel(serosurvey, sampler=fake_sampler, iter_sampling=10)
    assert fit.foi_draws.shape == (100, 1)
    assert fake_sampler.model.calls[0]["iter_sampling"] == 10
