# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""Assembly of the data and prior bundle consumed by the Stan programs.

Fitting a serocatalytic model requires translating a serosurvey and a choice of
model family into the exact set of named inputs declared by the corresponding
Stan program. This module performs that translation:

    1. The serosurvey provides the observation arrays (sample sizes, seropositive
       counts and the age at which each row is evaluated).
    2. The FoI-index table fixes the number of FoI blocks. Constant models use a
       single block; age and time models default to one block per year unless an
       explicit table is given.
    3. The priors are matched against the families admissible at each site and
       encoded as a family index plus parameters. Fields of families that are not
       selected keep the values of :py:class:`PriorDefaults`.

The result is an immutable :py:class:`SeroModelSpec`, which is what a
:py:class:`~serofoi.model.sampler.Sampler` receives. No sampling happens here.

Prior sites:

    - **First FoI block**: :py:class:`~serofoi.priors.Uniform` or
      :py:class:`~serofoi.priors.Normal`.
    - **Subsequent FoI blocks** (age and time models): a forward random walk,
      ``foi[i] ~ Normal(foi[i - 1], sigma)`` on the linear scale or
      ``log(foi[i]) ~ Normal(log(foi[i - 1]), sigma)`` on the log scale. The scale
      ``sigma`` has a Cauchy hyperprior on the linear scale and a Normal
      hyperprior on the log scale.
    - **Seroreversion rate** (when enabled): :py:class:`~serofoi.priors.Uniform`
      or :py:class:`~serofoi.priors.Normal`, which must be given explicitly.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Any, Mapping, Optional, TYPE_CHECKING

import numpy as np
import pandas as pd

from serofoi import utils
from serofoi.defaults import (
    DEFAULT_PRIOR_INDEX,
    DEFAULT_PRIOR_LOCATION,
    DEFAULT_PRIOR_MAX,
    DEFAULT_PRIOR_MEAN,
    DEFAULT_PRIOR_MIN,
    DEFAULT_PRIOR_SCALE,
    DEFAULT_PRIOR_SD,
    FIT_MODEL_TYPES,
    PRIOR_INDEX_NONE,
)
from serofoi.exceptions import InvalidPriorError, MissingPriorError
from serofoi.foi_index import get_foi_index
from serofoi.priors import Cauchy, NoPrior, Normal, Prior, Uniform
from serofoi.validation import (
    validate_foi_index,
    validate_model_type,
    validate_serosurvey,
)

if TYPE_CHECKING:
    from serofoi import custom_types


class PriorDefaults:
    """Values given to the prior fields of the Stan data that no prior sets.

    The Stan programs declare every prior parameter as data, so fields of a
    family that is not selected still need a value. Random walk scales take their
    values from here whenever ``foi_sigma_rw`` is not given: ``location`` and
    ``scale`` for the Cauchy hyperprior of linear random walks, ``mean`` and
    ``sd`` for the Normal hyperprior of log random walks.

    :param index: Family index of the first FoI block before a prior is applied.
        Defaults to the uniform family.
    :type index: custom_types.Integer
    :param min: Lower bound of uniform priors. Defaults to 0.
    :type min: custom_types.Rate
    :param max: Upper bound of uniform priors. Defaults to 10.
    :type max: custom_types.Rate
    :param mean: Mean of normal priors. Defaults to 0.
    :type mean: custom_types.Rate
    :param sd: Standard deviation of normal priors. Defaults to 1.
    :type sd: custom_types.Rate
    :param location: Location of Cauchy priors. Defaults to 0.
    :type location: custom_types.Rate
    :param scale: Scale of Cauchy priors. Defaults to 1.
    :type scale: custom_types.Rate
    """

    def __init__(
        self,
        index: "custom_types.Integer" = DEFAULT_PRIOR_INDEX,
        min: "custom_types.Rate" = DEFAULT_PRIOR_MIN,  # pylint: disable=redefined-builtin
        max: "custom_types.Rate" = DEFAULT_PRIOR_MAX,  # pylint: disable=redefined-builtin
        mean: "custom_types.Rate" = DEFAULT_PRIOR_MEAN,
        sd: "custom_types.Rate" = DEFAULT_PRIOR_SD,
        location: "custom_types.Rate" = DEFAULT_PRIOR_LOCATION,
        scale: "custom_types.Rate" = DEFAULT_PRIOR_SCALE,
    ):
        self.index = int(index)
        self.min = float(min)
        self.max = float(max)
        self.mean = float(mean)
        self.sd = float(sd)
        self.location = float(location)
        self.scale = float(scale)


class SeroModelSpec:
    """Immutable description of one model fit.

    :param model_type: One of "constant", "age" or "time"
    :type model_type: str
    :param is_log_foi: Whether the FoI random walk is on the log scale
    :type is_log_foi: bool
    :param is_seroreversion: Whether seroreversion is estimated
    :type is_seroreversion: bool
    :param stan_data: Named inputs of the Stan program
    :type stan_data: Mapping[str, Any]
    :param foi_index: The FoI-index table used to build ``stan_data``, if any
    :type foi_index: Optional[pd.DataFrame]

    :ivar stan_data: Read-only view of the Stan inputs
    """

    def __init__(
        self,
        model_type: str,
        is_log_foi: bool,
        is_seroreversion: bool,
        stan_data: Mapping[str, Any],
        foi_index: Optional[pd.DataFrame] = None,
    ):
        self._model_type = model_type
        self._is_log_foi = is_log_foi
        self._is_seroreversion = is_seroreversion
        self._foi_index = None if foi_index is None else foi_index.copy()

        # Freeze the arrays so that the bundle cannot be altered after assembly
        frozen = {}
        for name, value in stan_data.items():
            if isinstance(value, np.ndarray):
                value = value.copy()
                value.flags.writeable = False
            frozen[name] = value
        self._stan_data = MappingProxyType(frozen)

    @property
    def model_type(self) -> str:
        """Family of the model: "constant", "age" or "time"."""
        return self._model_type

    @property
    def is_log_foi(self) -> bool:
        """Whether the FoI random walk is on the log scale."""
        return self._is_log_foi

    @property
    def is_seroreversion(self) -> bool:
        """Whether seroreversion is estimated."""
        return self._is_seroreversion

    @property
    def stan_data(self) -> Mapping[str, Any]:
        """Read-only mapping of the named inputs of the Stan program."""
        return self._stan_data

    @property
    def foi_index(self) -> Optional[pd.DataFrame]:
        """Copy of the FoI-index table (None for constant models)."""
        return None if self._foi_index is None else self._foi_index.copy()

    @property
    def n_foi(self) -> int:
        """Number of FoI blocks estimated."""
        return int(np.max(self._stan_data["foi_index"]))

    @property
    def stan_program(self) -> str:
        """Name of the Stan program that fits this model, e.g. ``time_log``."""
        return self._model_type + ("_log" if self._is_log_foi else "")

    @property
    def model_name(self) -> str:
        """Descriptive model name, e.g. ``time_log_seroreversion``."""
        return self.stan_program + (
            "_seroreversion" if self._is_seroreversion else "_no_seroreversion"
        )

    def __repr__(self) -> str:
        return (
            f"SeroModelSpec(model_name={self.model_name!r}, "
            f"n_observations={self._stan_data['n_observations']}, n_foi={self.n_foi})"
        )


class StanDataAssembler:
    """Builds :py:class:`SeroModelSpec` instances.

    :param prior_defaults: Values of prior fields that are not set by a prior.
        Defaults to ``PriorDefaults()``.
    :type prior_defaults: Optional[PriorDefaults]

    Example:
        >>> assembler = StanDataAssembler(PriorDefaults(max=2.0))
        >>> spec = assembler.build(serosurvey, model_type="age", is_log_foi=True)
    """

    def __init__(self, prior_defaults: Optional[PriorDefaults] = None):
        self.prior_defaults = prior_defaults or PriorDefaults()

    def default_stan_data(
        self, serosurvey: pd.DataFrame, is_log_foi: bool
    ) -> dict[str, Any]:
        """Observation arrays plus default values of every prior field."""
        age_max = utils.get_max_age(serosurvey)
        defaults = self.prior_defaults

        # The random walk scale is Normal on the log scale and Cauchy otherwise
        if is_log_foi:
            sigma_rw_loc, sigma_rw_sc = defaults.mean, defaults.sd
        else:
            sigma_rw_loc, sigma_rw_sc = defaults.location, defaults.scale

        return {
            "n_observations": len(serosurvey),
            "age_max": age_max,
            "ages": np.arange(1, age_max + 1),
            "n_seropositive": serosurvey["n_seropositive"].to_numpy(dtype=np.int64),
            "n_sample": serosurvey["n_sample"].to_numpy(dtype=np.int64),
            "age_groups": utils.get_age_groups(serosurvey),
            "foi_prior_index": defaults.index,
            "foi_min": defaults.min,
            "foi_max": defaults.max,
            "foi_mean": defaults.mean,
            "foi_sd": defaults.sd,
            "foi_sigma_rw_loc": sigma_rw_loc,
            "foi_sigma_rw_sc": sigma_rw_sc,
            "is_seroreversion": 0,
            "seroreversion_prior_index": PRIOR_INDEX_NONE,
            "seroreversion_min": defaults.min,
            "seroreversion_max": defaults.max,
            "seroreversion_mean": defaults.mean,
            "seroreversion_sd": defaults.sd,
        }

    @staticmethod
    def resolve_foi_index(
        serosurvey: pd.DataFrame,
        model_type: str,
        foi_index: Optional[pd.DataFrame],
    ) -> Optional[pd.DataFrame]:
        """FoI-index table of a fit; None for constant models."""
        if model_type == "constant":
            return None
        if foi_index is None:
            foi_index = get_foi_index(serosurvey, group_size=1, model_type=model_type)
        return validate_foi_index(foi_index, serosurvey, model_type)

    @staticmethod
    def apply_foi_prior(stan_data: dict[str, Any], foi_prior: Prior) -> None:
        """Encode the prior of the first FoI block."""
        if isinstance(foi_prior, Uniform):
            stan_data["foi_min"] = foi_prior.min
            stan_data["foi_max"] = foi_prior.max
        elif isinstance(foi_prior, Normal):
            stan_data["foi_mean"] = foi_prior.mean
            stan_data["foi_sd"] = foi_prior.sd
        else:
            raise InvalidPriorError(
                f"Invalid foi_prior {foi_prior!r}; use a Uniform or Normal prior."
            )
        stan_data["foi_prior_index"] = foi_prior.STAN_INDEX

    @staticmethod
    def apply_foi_sigma_rw(
        stan_data: dict[str, Any], foi_sigma_rw: Prior, is_log_foi: bool
    ) -> None:
        """Encode the hyperprior of the random walk scale."""
        if isinstance(foi_sigma_rw, NoPrior):
            return
        if isinstance(foi_sigma_rw, Cauchy) and not is_log_foi:
            stan_data["foi_sigma_rw_loc"] = foi_sigma_rw.location
            stan_data["foi_sigma_rw_sc"] = foi_sigma_rw.scale
        elif isinstance(foi_sigma_rw, Normal) and is_log_foi:
            stan_data["foi_sigma_rw_loc"] = foi_sigma_rw.mean
            stan_data["foi_sigma_rw_sc"] = foi_sigma_rw.sd
        else:
            expected = "Normal" if is_log_foi else "Cauchy"
            raise InvalidPriorError(
                f"Invalid foi_sigma_rw {foi_sigma_rw!r}; the random walk scale of a "
                f"{'log' if is_log_foi else 'linear'} scale model takes a "
                f"{expected} prior."
            )

    @staticmethod
    def apply_seroreversion_prior(
        stan_data: dict[str, Any], seroreversion_prior: Prior
    ) -> None:
        """Encode the prior of the seroreversion rate."""
        if isinstance(seroreversion_prior, NoPrior):
            raise MissingPriorError("seroreversion_prior not specified")
        if isinstance(seroreversion_prior, Uniform):
            stan_data["seroreversion_min"] = seroreversion_prior.min
            stan_data["seroreversion_max"] = seroreversion_prior.max
        elif isinstance(seroreversion_prior, Normal):
            stan_data["seroreversion_mean"] = seroreversion_prior.mean
            stan_data["seroreversion_sd"] = seroreversion_prior.sd
        else:
            raise InvalidPriorError(
                f"Invalid seroreversion_prior {seroreversion_prior!r}; use a Uniform "
                "or Normal prior."
            )
        stan_data["is_seroreversion"] = 1
        stan_data["seroreversion_prior_index"] = seroreversion_prior.STAN_INDEX

    def build(
        self,
        serosurvey: pd.DataFrame,
        model_type: str = "constant",
        foi_prior: Optional[Prior] = None,
        foi_index: Optional[pd.DataFrame] = None,
        is_log_foi: bool = False,
        foi_sigma_rw: Optional[Prior] = None,
        is_seroreversion: bool = False,
        seroreversion_prior: Optional[Prior] = None,
    ) -> SeroModelSpec:
        """Build the specification of a fit.

        :param serosurvey: Serosurvey to fit. Time models also need a
            ``survey_year`` column when ``foi_index`` is not given.
        :type serosurvey: pd.DataFrame
        :param model_type: One of "constant", "age" or "time". Defaults to
            "constant".
        :type model_type: str
        :param foi_prior: Prior of the first FoI block. Defaults to
            ``Uniform()``.
        :type foi_prior: Optional[Prior]
        :param foi_index: FoI-index table. Defaults to one block per year for age
            and time models; ignored for constant models.
        :type foi_index: Optional[pd.DataFrame]
        :param is_log_foi: Whether the FoI random walk is on the log scale.
            Defaults to False.
        :type is_log_foi: bool
        :param foi_sigma_rw: Hyperprior of the random walk scale. Defaults to the
            values of the assembler's :py:class:`PriorDefaults`.
        :type foi_sigma_rw: Optional[Prior]
        :param is_seroreversion: Whether to estimate seroreversion. Defaults to
            False.
        :type is_seroreversion: bool
        :param seroreversion_prior: Prior of the seroreversion rate. Required
            when ``is_seroreversion`` is True.
        :type seroreversion_prior: Optional[Prior]

        :returns: The model specification
        :rtype: SeroModelSpec

        :raises ValueError: If ``model_type`` is not recognized or a log scale is
            requested for a constant model
        :raises SchemaError: If the serosurvey is missing columns
        :raises DomainError: If the serosurvey has invalid counts
        :raises ConsistencyError: If ``foi_index`` does not match the serosurvey
        :raises MissingPriorError: If seroreversion is enabled without a prior
        :raises InvalidPriorError: If a prior family is not admissible at its site
        """
        foi_prior = Uniform() if foi_prior is None else foi_prior
        foi_sigma_rw = NoPrior() if foi_sigma_rw is None else foi_sigma_rw
        seroreversion_prior = (
            NoPrior() if seroreversion_prior is None else seroreversion_prior
        )

        validate_model_type(model_type, FIT_MODEL_TYPES)
        if is_log_foi and model_type == "constant":
            raise ValueError(
                "is_log_foi is only meaningful for age and time models, which "
                "estimate a random walk."
            )
        validate_serosurvey(serosurvey)

        foi_index = self.resolve_foi_index(serosurvey, model_type, foi_index)
        stan_data = self.default_stan_data(serosurvey, is_log_foi)
        stan_data["foi_index"] = (
            np.ones(stan_data["age_max"], dtype=np.int64)
            if foi_index is None
            else foi_index["foi_index"].to_numpy(dtype=np.int64)
        )

        self.apply_foi_prior(stan_data, foi_prior)
        self.apply_foi_sigma_rw(stan_data, foi_sigma_rw, is_log_foi)
        if is_seroreversion:
            self.apply_seroreversion_prior(stan_data, seroreversion_prior)

        return SeroModelSpec(
            model_type=model_type,
            is_log_foi=is_log_foi,
            is_seroreversion=is_seroreversion,
            stan_data=stan_data,
            foi_index=foi_index,
        )


def build_stan_data(
    serosurvey: pd.DataFrame,
    model_type: str = "constant",
    foi_prior: Optional[Prior] = None,
    foi_index: Optional[pd.DataFrame] = None,
    is_log_foi: bool = False,
    foi_sigma_rw: Optional[Prior] = None,
    is_seroreversion: bool = False,
    seroreversion_prior: Optional[Prior] = None,
    prior_defaults: Optional[PriorDefaults] = None,
) -> SeroModelSpec:
    """Build the specification of a fit with a :py:class:`StanDataAssembler`.

    See :py:meth:`StanDataAssembler.build` for a description of the arguments.
    ``prior_defaults`` configures the assembler.

    Example:
        >>> spec = build_stan_data(
        ...     serosurvey,
        ...     model_type="time",
        ...     foi_prior=sf.Normal(mean=0.1, sd=0.1),
        ...     is_seroreversion=True,
        ...     seroreversion_prior=sf.Uniform(0.0, 1.0),
        ... )
        >>> spec.stan_data["foi_prior_index"]
        2
    """
    return StanDataAssembler(prior_defaults).build(
        serosurvey,
        model_type=model_type,
        foi_prior=foi_prior,
        foi_index=foi_index,
        is_log_foi=is_log_foi,
        foi_sigma_rw=foi_sigma_rw,
        is_seroreversion=is_seroreversion,
        seroreversion_prior=seroreversion_prior,
    )
