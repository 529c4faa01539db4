# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""Simulation of synthetic serosurveys.

A survey design lists age bins (``age_min`` and ``age_max``, both inclusive) and
the number of individuals sampled in each (``n_sample``). Given a seropositivity
profile by age, each bin's seropositive count is drawn as

    ``n_seropositive ~ Binomial(n_sample, mean seropositivity over the bin's ages)``

The profile comes either from the piecewise-constant recursion
(:py:func:`simulate_serosurvey`) or from matrix exponentiation of a general
catalytic model (:py:func:`simulate_serosurvey_general`). All inputs are validated
before any numeric work is done.
"""

from __future__ import annotations

from typing import Optional, TYPE_CHECKING

import numpy as np
import pandas as pd

import serofoi

from serofoi import utils
from serofoi.defaults import SIMULATION_MODEL_TYPES
from serofoi.simulation.general_model import (
    probability_seropositive_general_model_by_age,
)
from serofoi.simulation.seropositivity import probability_seropositive_by_age
from serofoi.validation import (
    validate_foi_table,
    validate_model_type,
    validate_seroreversion_rate,
    validate_simulation_age,
    validate_simulation_age_time,
    validate_survey_features,
)

if TYPE_CHECKING:
    from serofoi import custom_types

# Index columns of the FoI table expected by each model type
FOI_INDEX_COLUMNS = {
    "age": ("age",),
    "time": ("year",),
    "age-time": ("year", "age"),
}


def _get_rng(seed: Optional["custom_types.Integer"]) -> np.random.Generator:
    """Generator for a simulation: a fresh one if seeded, the global one if not."""
    return serofoi.RNG if seed is None else np.random.default_rng(seed)


def generate_seropositive_counts_by_age_bin(
    seropositivity_by_age: pd.DataFrame,
    survey_features: pd.DataFrame,
    seed: Optional["custom_types.Integer"] = None,
) -> pd.DataFrame:
    """Draw the seropositive count of each age bin of a survey design.

    :param seropositivity_by_age: Table with columns ``age`` and
        ``seropositivity`` covering ages ``1..max_age``
    :type seropositivity_by_age: pd.DataFrame
    :param survey_features: Survey design with columns ``age_min``, ``age_max``
        and ``n_sample``
    :type survey_features: pd.DataFrame
    :param seed: Seed for the draws. Uses the global ``serofoi.RNG`` if None.
    :type seed: Optional[custom_types.Integer]

    :returns: Copy of ``survey_features`` with an ``n_seropositive`` column
    :rtype: pd.DataFrame
    """
    seropositivity = (
        seropositivity_by_age.sort_values("age")["seropositivity"]
        .to_numpy(dtype=float)
        .clip(0.0, 1.0)
    )
    bin_seropositivity = np.array(
        [
            utils.bin_average(seropositivity, age_min, age_max)
            for age_min, age_max in zip(
                survey_features["age_min"], survey_features["age_max"]
            )
        ]
    )

    serosurvey = survey_features.reset_index(drop=True).copy()
    serosurvey["n_seropositive"] = _get_rng(seed).binomial(
        serosurvey["n_sample"].to_numpy(dtype=np.int64), bin_seropositivity
    )
    return serosurvey


def simulate_serosurvey(
    model_type: str,
    foi: pd.DataFrame,
    survey_features: pd.DataFrame,
    seroreversion_rate: "custom_types.Rate" = 0.0,
    seed: Optional["custom_types.Integer"] = None,
) -> pd.DataFrame:
    """Simulate a serosurvey under a piecewise-constant FoI.

    :param model_type: One of "age", "time" or "age-time"
    :type model_type: str
    :param foi: FoI table with one value per unit age/year. Columns ``age`` and
        ``foi`` for age models, ``year`` and ``foi`` for time models (the last
        year is the year before the survey), and ``year``, ``age`` and ``foi``
        for age-and-time models.
    :type foi: pd.DataFrame
    :param survey_features: Survey design with columns ``age_min``, ``age_max``
        and ``n_sample``
    :type survey_features: pd.DataFrame
    :param seroreversion_rate: Seroreversion rate. Defaults to 0.
    :type seroreversion_rate: custom_types.Rate
    :param seed: Seed for the binomial draws. Uses the global ``serofoi.RNG`` if
        None.
    :type seed: Optional[custom_types.Integer]

    :returns: The survey design with an ``n_seropositive`` column. For time and
        age-and-time models, a ``survey_year`` column (the year after the last FoI
        year) is added so that the survey can be fitted directly.
    :rtype: pd.DataFrame

    :raises ValueError: If ``model_type`` is not recognized
    :raises SchemaError: If the survey design is missing columns
    :raises DesignError: If the survey design has ambiguous age bins
    :raises ShapeError: If the FoI table has the wrong columns
    :raises DomainError: If FoI values or the seroreversion rate are negative
    :raises ConsistencyError: If the FoI table does not cover the survey's ages

    Example:
        >>> foi = pd.DataFrame({"year": np.arange(1990, 2040), "foi": 0.02})
        >>> design = pd.DataFrame(
        ...     {"age_min": [1, 11, 21], "age_max": [10, 20, 50], "n_sample": 100}
        ... )
        >>> survey = simulate_serosurvey("time", foi, design, seed=123)
    """
    validate_model_type(model_type, SIMULATION_MODEL_TYPES)
    validate_survey_features(survey_features)
    validate_foi_table(foi, FOI_INDEX_COLUMNS[model_type])
    validate_seroreversion_rate(seroreversion_rate)
    if model_type == "age-time":
        validate_simulation_age_time(survey_features, foi)
    else:
        validate_simulation_age(survey_features, foi)

    seropositivity_by_age = probability_seropositive_by_age(
        model_type, foi, seroreversion_rate
    )
    serosurvey = generate_seropositive_counts_by_age_bin(
        seropositivity_by_age, survey_features, seed=seed
    )

    if model_type != "age":
        serosurvey["survey_year"] = int(foi["year"].max()) + 1

    return serosurvey


def simulate_serosurvey_general(
    construct_transition_matrix: "custom_types.TransitionMatrixFn",
    calculate_seropositivity: "custom_types.SeropositivityFn",
    initial_conditions: "custom_types.FloatArray",
    survey_features: pd.DataFrame,
    u: "custom_types.FloatArray",
    v: "custom_types.FloatArray",
    seed: Optional["custom_types.Integer"] = None,
    progress_bar: bool = False,
) -> pd.DataFrame:
    """Simulate a serosurvey from a general serocatalytic model.

    See :py:mod:`serofoi.simulation.general_model` for the conventions of the
    transition-matrix constructor and of the ``u`` and ``v`` series.

    :param construct_transition_matrix: Builds the rate matrix of a step as
        ``construct_transition_matrix(t, birth_step, u, v)``
    :type construct_transition_matrix: custom_types.TransitionMatrixFn
    :param calculate_seropositivity: Reduces a state vector to seropositivity
    :type calculate_seropositivity: custom_types.SeropositivityFn
    :param initial_conditions: State vector at birth
    :type initial_conditions: custom_types.FloatArray
    :param survey_features: Survey design with columns ``age_min``, ``age_max``
        and ``n_sample``
    :type survey_features: pd.DataFrame
    :param u: Calendar-time series passed to ``construct_transition_matrix``
    :type u: custom_types.FloatArray
    :param v: Age series passed to ``construct_transition_matrix``
    :type v: custom_types.FloatArray
    :param seed: Seed for the binomial draws. Uses the global ``serofoi.RNG`` if
        None.
    :type seed: Optional[custom_types.Integer]
    :param progress_bar: Whether to display a progress bar over ages. Defaults
        to False.
    :type progress_bar: bool

    :returns: The survey design with an ``n_seropositive`` column
    :rtype: pd.DataFrame

    :raises SchemaError: If the survey design is missing columns
    :raises DesignError: If the survey design has ambiguous age bins
    :raises ShapeError: If a transition matrix does not match the state vector
    """
    validate_survey_features(survey_features)

    seropositivity_by_age = probability_seropositive_general_model_by_age(
        construct_transition_matrix,
        calculate_seropositivity,
        initial_conditions,
        max_age=utils.get_max_age(survey_features),
        u=u,
        v=v,
        progress_bar=progress_bar,
    )
    return generate_seropositive_counts_by_age_bin(
        seropositivity_by_age, survey_features, seed=seed
    )
