# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.


"""Utility functions for the serofoi package.

This module provides small helpers that support the core functionality of
serofoi, including:

    - Lazy importing of heavy submodules
    - Age group midpoints used by the fitted likelihood
    - Maximum survey age and survey year lookups
    - Bin-wise averaging of an age-specific seropositivity profile

Users will not typically need to interact with this module directly--it is designed
to be used internally by serofoi.
"""

from __future__ import annotations

import importlib.util
import sys

from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt
import pandas as pd

from serofoi.exceptions import ConsistencyError, SchemaError

if TYPE_CHECKING:
    from serofoi import custom_types


def lazy_import(name: str):
    """Import a module only when it is first needed.

    :param name: The fully qualified module name to import
    :type name: str

    :returns: The imported module
    :rtype: module

    :raises ImportError: If the specified module cannot be found

    .. note::
        If the module is already imported, returns the cached version
        from sys.modules for efficiency.
    """
    # Check if the module is already imported
    if name in sys.modules:
        return sys.modules[name]

    # If not, import it lazily (modified from here:
    # https://docs.python.org/3/library/importlib.html#implementing-lazy-imports)
    spec = importlib.util.find_spec(name)
    if spec is None:
        raise ImportError(f"Module '{name}' not found.")

    # Create the module with a lazy loader
    spec.loader = importlib.util.LazyLoader(spec.loader)
    module = importlib.util.module_from_spec(spec)
    sys.modules[name] = module
    spec.loader.exec_module(module)
    return module


def get_max_age(survey: pd.DataFrame) -> "custom_types.Integer":
    """Maximum age covered by a serosurvey or survey design.

    :param survey: Table with an ``age_max`` column
    :type survey: pd.DataFrame

    :returns: The largest ``age_max`` value as an integer
    :rtype: int
    """
    return int(survey["age_max"].max())


def get_survey_year(survey: pd.DataFrame) -> "custom_types.Integer":
    """Unique survey year of a serosurvey.

    :param survey: Serosurvey with a ``survey_year`` column
    :type survey: pd.DataFrame

    :returns: The survey year
    :rtype: int

    :raises SchemaError: If the survey has no ``survey_year`` column
    :raises ConsistencyError: If the survey spans more than one survey year
    """
    if "survey_year" not in survey.columns:
        raise SchemaError(
            "Time-varying models require a `survey_year` column in the serosurvey."
        )
    survey_years = survey["survey_year"].dropna().unique()
    if len(survey_years) != 1:
        raise ConsistencyError(
            "The serosurvey must have exactly one survey year; found "
            f"{sorted(survey_years.tolist())}."
        )
    return int(survey_years[0])


def get_age_groups(survey: pd.DataFrame) -> npt.NDArray[np.int64]:
    """Integer midpoint of each age bin.

    The fitted models evaluate the seropositivity of each survey row at this age.

    :param survey: Table with ``age_min`` and ``age_max`` columns
    :type survey: pd.DataFrame

    :returns: ``floor((age_min + age_max) / 2)`` for each row
    :rtype: npt.NDArray[np.int64]
    """
    return np.floor(
        (survey["age_min"].to_numpy() + survey["age_max"].to_numpy()) / 2
    ).astype(np.int64)


def bin_average(
    seropositivity: npt.NDArray[np.floating],
    age_min: "custom_types.Integer",
    age_max: "custom_types.Integer",
) -> float:
    """Mean seropositivity over the ages of an inclusive age bin.

    :param seropositivity: Seropositivity by age, where position ``i`` holds the
        value for age ``i + 1``. Age 0 is taken to be seronegative.
    :type seropositivity: npt.NDArray[np.floating]
    :param age_min: Lower bound of the bin (inclusive)
    :type age_min: custom_types.Integer
    :param age_max: Upper bound of the bin (inclusive)
    :type age_max: custom_types.Integer

    :returns: Mean seropositivity over ``age_min..age_max``
    :rtype: float
    """
    with_newborns = np.concatenate(([0.0], seropositivity))
    return float(with_newborns[int(age_min) : int(age_max) + 1].mean())
