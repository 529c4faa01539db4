# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""Seropositivity of general serocatalytic models by matrix exponentiation.

Models that do not reduce to the two-parameter (FoI, seroreversion) recursion, such
as models with a chain of incubation compartments between infection and
seroconversion, are described by three caller-supplied pieces:

    - ``construct_transition_matrix(t, birth_step, u, v)``: the rate matrix acting
      on the state vector during calendar step ``t`` for a cohort born at
      ``birth_step``. The matrix is assumed constant within the step.
    - ``calculate_seropositivity(state)``: reduces a state vector to the fraction
      of the cohort that is seropositive.
    - ``initial_conditions``: the state of a cohort at birth.

Time is measured in steps on a relative grid where the survey takes place at the
end of step ``max_age``. A cohort of age ``a`` is born at ``birth_step = max_age -
a`` and is propagated through ``t = birth_step + 1, ..., max_age``; during step
``t`` its age is ``t - birth_step``. The exogenous series ``u`` and ``v`` are
passed through untouched; conventionally ``u[t - 1]`` is a calendar-time
multiplier and ``v[t - birth_step - 1]`` an age multiplier of the FoI.

Example:
    >>> def construct_transition_matrix(t, birth_step, u, v):
    ...     foi = u[t - 1] * v[t - birth_step - 1]
    ...     return np.array([[-foi, 0.0], [foi, 0.0]])
    >>> probability_seropositive_general_model_by_age(
    ...     construct_transition_matrix,
    ...     lambda state: state[1],
    ...     np.array([1.0, 0.0]),
    ...     max_age=50,
    ...     u=np.full(50, 0.02),
    ...     v=np.ones(50),
    ... )
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt
import pandas as pd

from scipy.linalg import expm
from tqdm import tqdm

from serofoi.exceptions import DomainError, ShapeError

if TYPE_CHECKING:
    from serofoi import custom_types


def _check_transition_matrix(
    transition_matrix: npt.NDArray, n_states: "custom_types.Integer"
) -> None:
    if transition_matrix.shape != (n_states, n_states):
        raise ShapeError(
            "The transition matrix must be square with one row per state "
            f"({n_states}); got shape {transition_matrix.shape}."
        )


def probability_seropositive_general_model_one_cohort(
    construct_transition_matrix: "custom_types.TransitionMatrixFn",
    calculate_seropositivity: "custom_types.SeropositivityFn",
    initial_conditions: npt.NDArray,
    birth_step: "custom_types.Integer",
    max_age: "custom_types.Integer",
    u: npt.NDArray,
    v: npt.NDArray,
) -> float:
    """Seropositivity at the survey of the cohort born at ``birth_step``.

    :param construct_transition_matrix: Builds the rate matrix of a step
    :type construct_transition_matrix: custom_types.TransitionMatrixFn
    :param calculate_seropositivity: Reduces a state vector to seropositivity
    :type calculate_seropositivity: custom_types.SeropositivityFn
    :param initial_conditions: State vector at birth
    :type initial_conditions: npt.NDArray
    :param birth_step: Calendar step at which the cohort is born
    :type birth_step: custom_types.Integer
    :param max_age: Calendar step at which the survey takes place
    :type max_age: custom_types.Integer
    :param u: Calendar-time series passed to ``construct_transition_matrix``
    :type u: npt.NDArray
    :param v: Age series passed to ``construct_transition_matrix``
    :type v: npt.NDArray

    :returns: Seropositive fraction of the cohort at the survey
    :rtype: float

    :raises ShapeError: If a transition matrix does not match the state vector
    """
    state = np.asarray(initial_conditions, dtype=float)
    for t in range(birth_step + 1, max_age + 1):
        transition_matrix = np.asarray(
            construct_transition_matrix(t, birth_step, u, v), dtype=float
        )
        _check_transition_matrix(transition_matrix, len(state))
        state = expm(transition_matrix) @ state

    return float(calculate_seropositivity(state))


def probability_seropositive_general_model_by_age(
    construct_transition_matrix: "custom_types.TransitionMatrixFn",
    calculate_seropositivity: "custom_types.SeropositivityFn",
    initial_conditions: "custom_types.FloatArray",
    max_age: "custom_types.Integer",
    u: "custom_types.FloatArray",
    v: "custom_types.FloatArray",
    progress_bar: bool = False,
) -> pd.DataFrame:
    """Seropositivity profile by age of a general serocatalytic model.

    Each age is an independent cohort propagated from its birth step to the
    survey, one matrix exponential per step.

    :param construct_transition_matrix: Builds the rate matrix of a step as
        ``construct_transition_matrix(t, birth_step, u, v)``
    :type construct_transition_matrix: custom_types.TransitionMatrixFn
    :param calculate_seropositivity: Reduces a state vector to seropositivity
    :type calculate_seropositivity: custom_types.SeropositivityFn
    :param initial_conditions: State vector at birth
    :type initial_conditions: custom_types.FloatArray
    :param max_age: Oldest age of the profile
    :type max_age: custom_types.Integer
    :param u: Calendar-time series passed to ``construct_transition_matrix``
    :type u: custom_types.FloatArray
    :param v: Age series passed to ``construct_transition_matrix``
    :type v: custom_types.FloatArray
    :param progress_bar: Whether to display a progress bar over ages. Defaults
        to False.
    :type progress_bar: bool

    :returns: Table with columns ``age`` (``1..max_age``) and ``seropositivity``
    :rtype: pd.DataFrame

    :raises DomainError: If ``max_age`` is not a positive integer
    :raises ShapeError: If the initial conditions are not a vector or a
        transition matrix does not match them
    """
    if not 1 <= max_age or int(max_age) != max_age:
        raise DomainError(f"max_age must be a positive integer; got {max_age!r}.")
    max_age = int(max_age)

    initial_conditions = np.asarray(initial_conditions, dtype=float)
    if initial_conditions.ndim != 1:
        raise ShapeError("initial_conditions must be a one-dimensional state vector.")
    u = np.asarray(u)
    v = np.asarray(v)

    ages = np.arange(1, max_age + 1)
    seropositivity = np.array(
        [
            probability_seropositive_general_model_one_cohort(
                construct_transition_matrix,
                calculate_seropositivity,
                initial_conditions,
                birth_step=int(max_age - age),
                max_age=max_age,
                u=u,
                v=v,
            )
            for age in tqdm(ages, desc="Cohorts", disable=not progress_bar)
        ]
    )

    return pd.DataFrame({"age": ages, "seropositivity": seropositivity})
