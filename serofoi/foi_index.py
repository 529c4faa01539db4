# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""Grouping of ages or years into piecewise-constant FoI blocks.

The fitted models assume that the force-of-infection is constant within blocks of
consecutive ages (age models) or calendar years (time models). An FoI-index table
communicates this grouping to the Stan programs: it has one row per year of life of
the oldest cohort in the survey and assigns each a positive block index. The
largest index is the number of FoI values estimated when sampling.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt
import pandas as pd

from serofoi import utils
from serofoi.exceptions import DomainError
from serofoi.validation import validate_model_type

if TYPE_CHECKING:
    from serofoi import custom_types


def group_indexes(
    max_age: "custom_types.Integer", group_size: "custom_types.Integer"
) -> npt.NDArray[np.int64]:
    """Assign ``1..max_age`` to consecutive blocks of ``group_size`` elements.

    When ``max_age`` is not a multiple of ``group_size``, the trailing elements
    share the index of the last full block rather than forming an under-sized
    block of their own.

    :param max_age: Number of elements to group
    :type max_age: custom_types.Integer
    :param group_size: Number of elements per block, between 1 and ``max_age``
    :type group_size: custom_types.Integer

    :returns: Block index of each element, starting at 1
    :rtype: npt.NDArray[np.int64]

    Example:
        >>> group_indexes(7, 3)
        array([1, 1, 1, 2, 2, 2, 2])
    """
    n_full_blocks = max_age // group_size
    return np.minimum(np.arange(max_age) // group_size + 1, n_full_blocks).astype(
        np.int64
    )


def get_foi_index(
    serosurvey: pd.DataFrame,
    group_size: "custom_types.Integer",
    model_type: str,
) -> pd.DataFrame:
    """Generate the FoI-index table of a serosurvey.

    :param serosurvey: Serosurvey whose maximum age (and, for time models, survey
        year) defines the grid to group
    :type serosurvey: pd.DataFrame
    :param group_size: Number of ages/years per FoI block
    :type group_size: custom_types.Integer
    :param model_type: Either "age" or "time"
    :type model_type: str

    :returns: For age models, columns ``age`` (``1..max_age``) and ``foi_index``.
        For time models, columns ``year`` (``survey_year - max_age`` to
        ``survey_year - 1``) and ``foi_index``.
    :rtype: pd.DataFrame

    :raises ValueError: If ``model_type`` is neither "age" nor "time"
    :raises DomainError: If ``group_size`` is not an integer in ``[1, max_age]``
    :raises ConsistencyError: If a time model survey does not have exactly one
        survey year

    Example:
        >>> foi_index = get_foi_index(chagas2012, group_size=25, model_type="time")
    """
    # Check model_type correspond to a valid model
    validate_model_type(model_type)

    # Check group_size dimension is in the right range
    max_age = utils.get_max_age(serosurvey)
    if (
        isinstance(group_size, bool)
        or not isinstance(group_size, (int, np.integer))
        or not 1 <= group_size <= max_age
    ):
        raise DomainError(
            f"group_size must be an integer between 1 and {max_age}; got {group_size!r}."
        )

    foi_indexes = group_indexes(max_age, int(group_size))

    if model_type == "time":
        survey_year = utils.get_survey_year(serosurvey)
        return pd.DataFrame(
            {
                "year": np.arange(survey_year - max_age, survey_year),
                "foi_index": foi_indexes,
            }
        )

    return pd.DataFrame({"age": np.arange(1, max_age + 1), "foi_index": foi_indexes})
