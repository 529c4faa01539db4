# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

r"""Seropositivity of birth cohorts under a piecewise-constant force-of-infection.

Within a unit interval of constant FoI :math:`\lambda` and seroreversion rate
:math:`\mu`, the fraction of a cohort that is seropositive relaxes exponentially
towards the equilibrium :math:`\lambda / (\lambda + \mu)`:

    .. math::
        P_j = \frac{\lambda_j}{\lambda_j + \mu} + e^{-(\lambda_j + \mu)}
        \left(P_{j-1} - \frac{\lambda_j}{\lambda_j + \mu}\right), \qquad P_0 = 0

Applying this step once per year of life gives the exact seropositivity of a cohort
at the time of the survey. Without seroreversion the step reduces to
:math:`P_j = 1 - (1 - P_{j-1}) e^{-\lambda_j}`.

The same recursion is used as the likelihood link of the fitted Stan programs
(see ``serofoi/model/stan/serocatalytic.stanfunctions``).
"""

from __future__ import annotations

import math

from typing import Iterable, TYPE_CHECKING

import numpy as np
import numpy.typing as npt
import pandas as pd

from serofoi.defaults import SIMULATION_MODEL_TYPES
from serofoi.validation import validate_model_type

if TYPE_CHECKING:
    from serofoi import custom_types


def seropositivity_step(
    previous: "custom_types.Float",
    foi: "custom_types.Rate",
    seroreversion_rate: "custom_types.Rate" = 0.0,
) -> float:
    """Advance the seropositive fraction of a cohort by one unit interval.

    :param previous: Seropositive fraction at the start of the interval
    :type previous: custom_types.Float
    :param foi: Force-of-infection during the interval
    :type foi: custom_types.Rate
    :param seroreversion_rate: Seroreversion rate. Defaults to 0.
    :type seroreversion_rate: custom_types.Rate

    :returns: Seropositive fraction at the end of the interval
    :rtype: float
    """
    if seroreversion_rate == 0:
        # -expm1(-foi) is the infection probability; exact when foi == 0
        return previous + (1.0 - previous) * -math.expm1(-foi)

    total_rate = foi + seroreversion_rate
    equilibrium = foi / total_rate
    return equilibrium + math.exp(-total_rate) * (previous - equilibrium)


def probability_seropositive(
    fois: Iterable["custom_types.Rate"],
    seroreversion_rate: "custom_types.Rate" = 0.0,
) -> float:
    """Seropositivity of a cohort after experiencing ``fois`` in order.

    :param fois: FoI of each year of life, oldest first
    :type fois: Iterable[custom_types.Rate]
    :param seroreversion_rate: Seroreversion rate. Defaults to 0.
    :type seroreversion_rate: custom_types.Rate

    :returns: Probability of being seropositive at the end of the last interval
    :rtype: float
    """
    prob = 0.0
    for foi in fois:
        prob = seropositivity_step(prob, float(foi), float(seroreversion_rate))
    return prob


def probability_seropositive_time_model_by_age(
    fois: npt.NDArray[np.floating], seroreversion_rate: "custom_types.Rate" = 0.0
) -> npt.NDArray[np.floating]:
    """Seropositivity by age when the FoI varies with calendar year.

    :param fois: FoI by year in chronological order; the last entry is the year
        before the survey
    :type fois: npt.NDArray[np.floating]
    :param seroreversion_rate: Seroreversion rate. Defaults to 0.
    :type seroreversion_rate: custom_types.Rate

    :returns: Seropositivity for ages ``1..len(fois)``
    :rtype: npt.NDArray[np.floating]
    """
    n_years = len(fois)
    return np.array(
        [
            probability_seropositive(fois[n_years - age :], seroreversion_rate)
            for age in range(1, n_years + 1)
        ]
    )


def probability_seropositive_age_model_by_age(
    fois: npt.NDArray[np.floating], seroreversion_rate: "custom_types.Rate" = 0.0
) -> npt.NDArray[np.floating]:
    """Seropositivity by age when the FoI varies with age.

    A cohort of age ``a`` has experienced the FoI of ages ``1..a``, so the whole
    profile is obtained from a single pass over ``fois``.

    :param fois: FoI by age, starting at age 1
    :type fois: npt.NDArray[np.floating]
    :param seroreversion_rate: Seroreversion rate. Defaults to 0.
    :type seroreversion_rate: custom_types.Rate

    :returns: Seropositivity for ages ``1..len(fois)``
    :rtype: npt.NDArray[np.floating]
    """
    probs = np.empty(len(fois))
    prob = 0.0
    for i, foi in enumerate(fois):
        prob = seropositivity_step(prob, float(foi), float(seroreversion_rate))
        probs[i] = prob
    return probs


def probability_seropositive_age_and_time_model_by_age(
    fois: npt.NDArray[np.floating], seroreversion_rate: "custom_types.Rate" = 0.0
) -> npt.NDArray[np.floating]:
    """Seropositivity by age when the FoI varies with both year and age.

    :param fois: Square matrix of FoI values; rows are calendar years in
        chronological order (the last row is the year before the survey) and
        columns are ages ``1..n_years``
    :type fois: npt.NDArray[np.floating]
    :param seroreversion_rate: Seroreversion rate. Defaults to 0.
    :type seroreversion_rate: custom_types.Rate

    :returns: Seropositivity for ages ``1..n_years``
    :rtype: npt.NDArray[np.floating]
    """
    n_years = fois.shape[0]
    probs = np.empty(n_years)
    for age in range(1, n_years + 1):
        # In its j-th year of life, the cohort lives through year n_years - age + j
        years = np.arange(n_years - age, n_years)
        probs[age - 1] = probability_seropositive(
            fois[years, np.arange(age)], seroreversion_rate
        )
    return probs


def foi_to_matrix(foi: pd.DataFrame) -> npt.NDArray[np.floating]:
    """Pivot an age-and-time FoI table into a year by age matrix.

    :param foi: Table with columns ``year``, ``age`` and ``foi``
    :type foi: pd.DataFrame

    :returns: Matrix with one row per year (chronological) and one column per age
    :rtype: npt.NDArray[np.floating]
    """
    return (
        foi.pivot(index="year", columns="age", values="foi")
        .sort_index(axis=0)
        .sort_index(axis=1)
        .to_numpy(dtype=float)
    )


def probability_seropositive_by_age(
    model_type: str,
    foi: pd.DataFrame,
    seroreversion_rate: "custom_types.Rate" = 0.0,
) -> pd.DataFrame:
    """Seropositivity profile by age implied by an FoI table.

    :param model_type: One of "age", "time" or "age-time"
    :type model_type: str
    :param foi: FoI table. Columns ``age`` and ``foi`` for age models, ``year``
        and ``foi`` for time models, and ``year``, ``age`` and ``foi`` for
        age-and-time models.
    :type foi: pd.DataFrame
    :param seroreversion_rate: Seroreversion rate. Defaults to 0.
    :type seroreversion_rate: custom_types.Rate

    :returns: Table with columns ``age`` and ``seropositivity``
    :rtype: pd.DataFrame

    :raises ValueError: If ``model_type`` is not recognized
    """
    validate_model_type(model_type, SIMULATION_MODEL_TYPES)

    if model_type == "time":
        fois = foi.sort_values("year")["foi"].to_numpy(dtype=float)
        probs = probability_seropositive_time_model_by_age(fois, seroreversion_rate)
    elif model_type == "age":
        fois = foi.sort_values("age")["foi"].to_numpy(dtype=float)
        probs = probability_seropositive_age_model_by_age(fois, seroreversion_rate)
    else:
        probs = probability_seropositive_age_and_time_model_by_age(
            foi_to_matrix(foi), seroreversion_rate
        )

    return pd.DataFrame({"age": np.arange(1, len(probs) + 1), "seropositivity": probs})
