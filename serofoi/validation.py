# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""Validation of serofoi inputs.

Every table and scalar that enters a numeric path in serofoi passes through one of
the validators in this module first. Validators are pure predicates: they return
nothing (or the validated object, unchanged) and raise one of the exceptions of
:py:mod:`serofoi.exceptions` on failure.

The validators cover:
    - Serosurveys used for fitting (:py:func:`validate_serosurvey`)
    - Survey designs used for simulation (:py:func:`validate_survey_features`)
    - FoI tables used for simulation (:py:func:`validate_foi_table`)
    - Seroreversion rates (:py:func:`validate_seroreversion_rate`)
    - Agreement between FoI tables and survey designs
      (:py:func:`validate_simulation_age`, :py:func:`validate_simulation_age_time`)
    - FoI-index tables (:py:func:`validate_foi_index`)
"""

from __future__ import annotations

from numbers import Real
from typing import Sequence, TYPE_CHECKING

import numpy as np
import pandas as pd

from serofoi import utils
from serofoi.defaults import INDEXED_MODEL_TYPES
from serofoi.exceptions import (
    ConsistencyError,
    DesignError,
    DomainError,
    SchemaError,
    ShapeError,
)

if TYPE_CHECKING:
    from serofoi import custom_types

# Columns that every serosurvey must have
SEROSURVEY_COLUMNS = ("age_min", "age_max", "n_sample", "n_seropositive")

# Columns that every survey design must have
SURVEY_FEATURE_COLUMNS = ("age_min", "age_max", "n_sample")


def validate_serosurvey(serosurvey: pd.DataFrame) -> pd.DataFrame:
    """Validate the structure of a serosurvey.

    :param serosurvey: Serosurvey with columns ``age_min``, ``age_max``,
        ``n_sample`` and ``n_seropositive``
    :type serosurvey: pd.DataFrame

    :returns: The serosurvey, unchanged
    :rtype: pd.DataFrame

    :raises SchemaError: If required columns are missing, non-numeric or hold
        missing or non-finite values
    :raises DomainError: If counts are not integers, sample sizes are not
        positive or seropositive counts are outside ``[0, n_sample]``
    """
    # Check that necessary columns are present
    if missing := [col for col in SEROSURVEY_COLUMNS if col not in serosurvey.columns]:
        raise SchemaError(
            f"The following columns are missing from `serosurvey`: {', '.join(missing)}"
        )

    # Validate column types
    if wrong_types := [
        col
        for col in SEROSURVEY_COLUMNS
        if not pd.api.types.is_numeric_dtype(serosurvey[col])
    ]:
        raise SchemaError(
            "The following columns in `serosurvey` must be numeric: "
            f"{', '.join(wrong_types)}"
        )

    # Missing values would pass every comparison below
    if non_finite := [
        col
        for col in SEROSURVEY_COLUMNS
        if not np.isfinite(serosurvey[col].to_numpy(dtype=float)).all()
    ]:
        raise SchemaError(
            "The following columns in `serosurvey` contain missing or non-finite "
            f"values: {', '.join(non_finite)}"
        )

    # Counts must be whole numbers
    if fractional := [
        col
        for col in ("n_sample", "n_seropositive")
        if (serosurvey[col] % 1 != 0).any()
    ]:
        raise DomainError(
            "The following columns in `serosurvey` must hold integer counts: "
            f"{', '.join(fractional)}"
        )

    # Counts must be consistent with each other
    if (serosurvey["n_sample"] <= 0).any():
        raise DomainError("`n_sample` must be positive in every row of `serosurvey`.")
    if (serosurvey["n_seropositive"] < 0).any() or (
        serosurvey["n_seropositive"] > serosurvey["n_sample"]
    ).any():
        raise DomainError(
            "`n_seropositive` must lie between 0 and `n_sample` in every row of "
            "`serosurvey`."
        )

    return serosurvey


def check_age_constraints(survey_features: pd.DataFrame) -> bool:
    """Check that no bin's ``age_max`` equals a different bin's ``age_min``.

    :param survey_features: Table with ``age_min`` and ``age_max`` columns
    :type survey_features: pd.DataFrame

    :returns: True if the age bins are unambiguous
    :rtype: bool
    """
    age_min = survey_features["age_min"].to_numpy()
    age_max = survey_features["age_max"].to_numpy()
    for i, upper in enumerate(age_max):
        for j, lower in enumerate(age_min):
            if i != j and upper == lower:
                return False

    return True


def validate_survey_features(survey_features) -> None:
    """Validate a survey design used for simulation.

    :param survey_features: Table with columns ``age_min``, ``age_max`` and
        ``n_sample``
    :type survey_features: pd.DataFrame

    :raises SchemaError: If the design is not a DataFrame or lacks a column
    :raises DesignError: If a bin has ``age_min > age_max`` or the ``age_max``
        of one bin equals the ``age_min`` of another
    """
    if not isinstance(survey_features, pd.DataFrame) or not all(
        col in survey_features.columns for col in SURVEY_FEATURE_COLUMNS
    ):
        raise SchemaError(
            "survey_features must be a dataframe with columns "
            "'age_min', 'age_max', and 'n_sample'."
        )

    if (survey_features["age_min"] > survey_features["age_max"]).any():
        raise DesignError("age_min cannot exceed age_max in a survey age bin.")

    if not check_age_constraints(survey_features):
        raise DesignError(
            "Age bins in a survey are inclusive of both bounds, "
            "so the age_max of one bin cannot equal the age_min of another."
        )


def validate_foi_table(foi: pd.DataFrame, index_columns: Sequence[str]) -> None:
    """Validate an FoI table used for simulation.

    :param foi: Table with a ``foi`` column plus the index columns
    :type foi: pd.DataFrame
    :param index_columns: Expected index columns, e.g. ``("year",)``,
        ``("age",)`` or ``("year", "age")``
    :type index_columns: Sequence[str]

    :raises ShapeError: If the table does not consist of exactly the index
        columns plus ``foi``
    :raises DomainError: If any FoI value is negative
    """
    if (
        "foi" not in foi.columns
        or not all(col in foi.columns for col in index_columns)
        or foi.shape[1] != 1 + len(index_columns)
    ):
        raise ShapeError(
            "foi must be a dataframe with columns foi and "
            f"{' and '.join(index_columns)}."
        )

    if (foi["foi"] < 0).any():
        raise DomainError("FoI values must be non-negative.")


def validate_seroreversion_rate(seroreversion_rate: "custom_types.Rate") -> None:
    """Validate a seroreversion rate.

    :param seroreversion_rate: Rate of loss of detectable antibodies
    :type seroreversion_rate: custom_types.Rate

    :raises DomainError: If the rate is not a non-negative number
    """
    if (
        isinstance(seroreversion_rate, bool)
        or not isinstance(seroreversion_rate, Real)
        or not seroreversion_rate >= 0
    ):
        raise DomainError("seroreversion_rate must be a non-negative numeric value.")


def validate_simulation_age(survey_features: pd.DataFrame, foi: pd.DataFrame) -> None:
    """Check that an age- or time-indexed FoI table covers the survey's ages.

    The table must have one row per year of life of the oldest cohort: ages
    ``1..max_age`` for age tables, or ``max_age`` consecutive years for time
    tables.

    :raises ConsistencyError: If ages or years repeat or skip, if an age table
        does not start at age 1, or if the number of rows in ``foi`` differs
        from the maximum age in ``survey_features``
    """
    index_col = "age" if "age" in foi.columns else "year"
    _check_unit_steps(foi[index_col], index_col, first=1 if index_col == "age" else None)
    _check_implied_max_age(len(foi), survey_features)


def validate_simulation_age_time(
    survey_features: pd.DataFrame, foi: pd.DataFrame
) -> None:
    """Check that an age-and-time FoI table covers the survey's ages.

    :raises ConsistencyError: If a (year, age) pair repeats, if the years skip,
        if the number of years differs from the maximum age in
        ``survey_features``, or if the table is not a complete year by age grid
    """
    if foi.duplicated(["year", "age"]).any():
        raise ConsistencyError(
            "An age-and-time foi must contain a single row per year and age."
        )

    years = foi["year"].drop_duplicates()
    _check_unit_steps(years, "year")
    n_years = len(years)
    _check_implied_max_age(n_years, survey_features)

    ages = np.sort(foi["age"].unique())
    if not np.array_equal(ages, np.arange(1, n_years + 1)) or len(foi) != n_years**2:
        raise ConsistencyError(
            "An age-and-time foi must contain one row for every year and every "
            f"age from 1 to {n_years}."
        )


def _check_unit_steps(
    values: pd.Series, name: str, first: "custom_types.Integer | None" = None
) -> None:
    """Raise unless ``values`` are distinct consecutive integers (from ``first``)."""
    steps = np.sort(values.to_numpy())
    if len(steps) == 0:
        return
    start = steps[0] if first is None else first
    if not np.array_equal(steps, np.arange(start, start + len(steps))):
        expected = "consecutive" if first is None else f"consecutive from {first}"
        raise ConsistencyError(
            f"foi must have one row per {name}; values of `{name}` must be distinct "
            f"and {expected}."
        )



def _check_implied_max_age(
    max_age_foi: "custom_types.Integer", survey_features: pd.DataFrame
) -> None:
    max_age_survey = utils.get_max_age(survey_features)
    if max_age_foi > max_age_survey:
        raise ConsistencyError(
            "maximum age implicit in foi should not exceed max age in "
            "survey_features."
        )
    if max_age_foi < max_age_survey:
        raise ConsistencyError(
            "maximum age implicit in foi should cover every age in "
            f"survey_features (max age {max_age_survey}, foi covers {max_age_foi})."
        )


def validate_model_type(
    model_type: str, valid_types: Sequence[str] = INDEXED_MODEL_TYPES
) -> None:
    """Check that ``model_type`` is one of ``valid_types``.

    :raises ValueError: If it is not
    """
    if model_type not in valid_types:
        raise ValueError(
            f"model_type must be one of {', '.join(repr(t) for t in valid_types)}; "
            f"got {model_type!r}."
        )


def validate_foi_index(
    foi_index: pd.DataFrame, serosurvey: pd.DataFrame, model_type: str
) -> pd.DataFrame:
    """Validate an FoI-index table against a serosurvey.

    :param foi_index: Table with an ``age`` (age models) or ``year`` (time models)
        column and a ``foi_index`` column
    :type foi_index: pd.DataFrame
    :param serosurvey: The serosurvey the index table will be used with
    :type serosurvey: pd.DataFrame
    :param model_type: Either "age" or "time"
    :type model_type: str

    :returns: The FoI-index table, unchanged
    :rtype: pd.DataFrame

    :raises ValueError: If ``model_type`` is neither "age" nor "time"
    :raises SchemaError: If the table lacks the ``age``/``year`` or ``foi_index``
        column
    :raises ConsistencyError: If the table length differs from the maximum age
        of the serosurvey, if it does not start at index 1, or if consecutive
        indexes differ by anything other than 0 or 1
    """
    validate_model_type(model_type)

    # validate that foi_index has the right columns
    index_col = "age" if model_type == "age" else "year"
    if missing := [
        col for col in (index_col, "foi_index") if col not in foi_index.columns
    ]:
        raise SchemaError(
            f"foi_index for a {model_type} model is missing columns: "
            f"{', '.join(missing)}"
        )

    # validate that foi_index has the right size
    max_age = utils.get_max_age(serosurvey)
    if len(foi_index) != max_age:
        raise ConsistencyError(
            f"foi_index must be the right size: expected {max_age} rows, got "
            f"{len(foi_index)}."
        )

    # 0 validates that indexes do not decrease for consecutive chunks
    # 1 validates that there are not missing indexes
    indexes = foi_index["foi_index"].to_numpy()
    if indexes[0] != 1:
        raise ConsistencyError("Index values in `foi_index` must start at 1.")
    if not np.isin(np.diff(indexes), (0, 1)).all():
        raise ConsistencyError(
            "Index values in `foi_index` must be consecutive and non-decreasing."
        )

    return foi_index
