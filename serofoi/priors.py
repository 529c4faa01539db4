# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""Prior distributions for the parameters of serocatalytic models.

A prior is one of four families, each represented by its own class:

    - :py:class:`Normal` with ``mean`` and ``sd``
    - :py:class:`Uniform` with ``min`` and ``max``
    - :py:class:`Cauchy` with ``location`` and ``scale``
    - :py:class:`NoPrior`, used when a prior is not given

Each class knows the integer code by which the Stan programs identify its family
(``STAN_INDEX``) and the names of its parameters. The model specification
assembler decides which families are admissible at each site (the first FoI
block, the random walk scale and the seroreversion rate) by matching on these
classes, rejecting everything else with an
:py:class:`~serofoi.exceptions.InvalidPriorError`.

Example:
    >>> import serofoi as sf
    >>> fit = sf.fit_seromodel(
    ...     serosurvey,
    ...     model_type="time",
    ...     foi_prior=sf.Normal(mean=0.1, sd=0.05),
    ...     is_seroreversion=True,
    ...     seroreversion_prior=sf.Uniform(min=0.0, max=0.5),
    ... )
"""

from __future__ import annotations

from abc import ABC
from typing import TYPE_CHECKING

from serofoi.defaults import (
    DEFAULT_PRIOR_LOCATION,
    DEFAULT_PRIOR_MAX,
    DEFAULT_PRIOR_MEAN,
    DEFAULT_PRIOR_MIN,
    DEFAULT_PRIOR_SCALE,
    DEFAULT_PRIOR_SD,
    PRIOR_INDEX_CAUCHY,
    PRIOR_INDEX_NONE,
    PRIOR_INDEX_NORMAL,
    PRIOR_INDEX_UNIFORM,
)
from serofoi.exceptions import InvalidPriorError

if TYPE_CHECKING:
    from serofoi import custom_types


class Prior(ABC):
    """Base class of all prior families.

    :ivar NAME: Name of the family
    :ivar STAN_INDEX: Integer code of the family in the Stan programs
    :ivar PARAM_NAMES: Names of the parameters of the family, in order
    """

    NAME: str = ""
    STAN_INDEX: int = PRIOR_INDEX_NONE
    PARAM_NAMES: tuple[str, ...] = ()

    @property
    def params(self) -> dict[str, float]:
        """Parameters of the prior keyed by name."""
        return {name: getattr(self, name) for name in self.PARAM_NAMES}

    def __eq__(self, other: object) -> bool:
        return type(self) is type(other) and self.params == other.params

    def __hash__(self) -> int:
        return hash((type(self).__name__, tuple(self.params.items())))

    def __repr__(self) -> str:
        params = ", ".join(f"{name}={value}" for name, value in self.params.items())
        return f"{type(self).__name__}({params})"


class Normal(Prior):
    """Normal prior. Restricted to ``mean >= 0`` and ``sd > 0`` as it is placed on
    non-negative rates.

    :param mean: Mean of the distribution. Defaults to 0.
    :type mean: custom_types.Rate
    :param sd: Standard deviation of the distribution. Defaults to 1.
    :type sd: custom_types.Rate

    :raises InvalidPriorError: If ``mean < 0`` or ``sd <= 0``
    """

    NAME = "normal"
    STAN_INDEX = PRIOR_INDEX_NORMAL
    PARAM_NAMES = ("mean", "sd")

    def __init__(
        self,
        mean: "custom_types.Rate" = DEFAULT_PRIOR_MEAN,
        sd: "custom_types.Rate" = DEFAULT_PRIOR_SD,
    ):
        if mean < 0 or sd <= 0:
            raise InvalidPriorError(
                "Normal distribution only accepts `mean>=0` and `sd>0` for mean "
                "and standard deviation"
            )
        self.mean = float(mean)
        self.sd = float(sd)


class Uniform(Prior):
    """Uniform prior on ``[min, max]`` with ``0 <= min < max``.

    :param min: Lower bound. Defaults to 0.
    :type min: custom_types.Rate
    :param max: Upper bound. Defaults to 10.
    :type max: custom_types.Rate

    :raises InvalidPriorError: If the bounds are not ``0 <= min < max``
    """

    NAME = "uniform"
    STAN_INDEX = PRIOR_INDEX_UNIFORM
    PARAM_NAMES = ("min", "max")

    def __init__(
        self,
        min: "custom_types.Rate" = DEFAULT_PRIOR_MIN,  # pylint: disable=redefined-builtin
        max: "custom_types.Rate" = DEFAULT_PRIOR_MAX,  # pylint: disable=redefined-builtin
    ):
        if min < 0 or min >= max:
            raise InvalidPriorError("Uniform distribution only accepts 0<=min<max")
        self.min = float(min)
        self.max = float(max)


class Cauchy(Prior):
    """Cauchy prior, used for the scale of linear random walks.

    :param location: Location (median). Defaults to 0.
    :type location: custom_types.Rate
    :param scale: Scale (median absolute deviation). Defaults to 1.
    :type scale: custom_types.Rate

    :raises InvalidPriorError: If ``location < 0`` or ``scale < 0``
    """

    NAME = "cauchy"
    STAN_INDEX = PRIOR_INDEX_CAUCHY
    PARAM_NAMES = ("location", "scale")

    def __init__(
        self,
        location: "custom_types.Rate" = DEFAULT_PRIOR_LOCATION,
        scale: "custom_types.Rate" = DEFAULT_PRIOR_SCALE,
    ):
        if location < 0 or scale < 0:
            raise InvalidPriorError(
                "Cauchy distribution only accepts `location>=0` and `scale>=0` for "
                "median and median absolute deviation"
            )
        self.location = float(location)
        self.scale = float(scale)


class NoPrior(Prior):
    """Absent prior. Selects defaults where a default exists and is rejected where
    a prior is mandatory.
    """

    NAME = "none"
