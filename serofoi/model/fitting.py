# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""Entry point for fitting serocatalytic models to serosurveys."""

from __future__ import annotations

from typing import Optional, TYPE_CHECKING

import pandas as pd

from serofoi.model.sampler import Sampler
from serofoi.model.stan_data import PriorDefaults, StanDataAssembler
from serofoi.priors import Prior

if TYPE_CHECKING:
    from serofoi.model.results import SeroModelFit


def fit_seromodel(
    serosurvey: pd.DataFrame,
    model_type: str = "constant",
    foi_prior: Optional[Prior] = None,
    foi_index: Optional[pd.DataFrame] = None,
    is_log_foi: bool = False,
    foi_sigma_rw: Optional[Prior] = None,
    is_seroreversion: bool = False,
    seroreversion_prior: Optional[Prior] = None,
    sampler: Optional[Sampler] = None,
    prior_defaults: Optional[PriorDefaults] = None,
    **sample_kwargs,
) -> SeroModelFit:
    """Fit a serocatalytic model to a serosurvey.

    The serosurvey, FoI-index table and priors are validated and assembled into a
    :py:class:`~serofoi.model.stan_data.SeroModelSpec` before the sampler is
    called, so configuration errors never cost a sampling run.

    :param serosurvey: Serosurvey to fit
    :type serosurvey: pd.DataFrame
    :param model_type: One of "constant", "age" or "time". Defaults to
        "constant".
    :type model_type: str
    :param foi_prior: Prior of the first FoI block. Defaults to ``Uniform()``.
    :type foi_prior: Optional[Prior]
    :param foi_index: FoI-index table of age and time models. Defaults to one
        block per year.
    :type foi_index: Optional[pd.DataFrame]
    :param is_log_foi: Whether the FoI random walk is on the log scale. Defaults
        to False.
    :type is_log_foi: bool
    :param foi_sigma_rw: Hyperprior of the random walk scale. Defaults to the
        values of ``prior_defaults``.
    :type foi_sigma_rw: Optional[Prior]
    :param is_seroreversion: Whether to estimate seroreversion. Defaults to
        False.
    :type is_seroreversion: bool
    :param seroreversion_prior: Prior of the seroreversion rate. Required when
        ``is_seroreversion`` is True.
    :type seroreversion_prior: Optional[Prior]
    :param sampler: Sampler to use. Defaults to a new
        :py:class:`~serofoi.model.stan.stan_model.CmdStanSampler`.
    :type sampler: Optional[Sampler]
    :param prior_defaults: Values of prior fields not set by a prior. Defaults to
        ``PriorDefaults()``.
    :type prior_defaults: Optional[PriorDefaults]
    :param sample_kwargs: Passed to ``sampler.sample``, e.g. ``chains``,
        ``iter_sampling``, ``seed`` or ``timeout``.

    :returns: The fitted model
    :rtype: SeroModelFit

    Example:
        >>> fit = sf.fit_seromodel(
        ...     serosurvey,
        ...     model_type="time",
        ...     foi_index=sf.get_foi_index(serosurvey, group_size=5, model_type="time"),
        ...     is_seroreversion=True,
        ...     seroreversion_prior=sf.Normal(mean=0.0, sd=0.1),
        ...     iter_sampling=1000,
        ... )
    """
    spec = StanDataAssembler(prior_defaults).build(
        serosurvey,
        model_type=model_type,
        foi_prior=foi_prior,
        foi_index=foi_index,
        is_log_foi=is_log_foi,
        foi_sigma_rw=foi_sigma_rw,
        is_seroreversion=is_seroreversion,
        seroreversion_prior=seroreversion_prior,
    )

    if sampler is None:
        # Deferred so that the Stan toolchain is only touched when needed
        from serofoi.model.stan.stan_model import (  # pylint: disable=import-outside-toplevel
            CmdStanSampler,
        )

        sampler = CmdStanSampler()

    from serofoi.model.results import (  # pylint: disable=import-outside-toplevel
        SeroModelFit,
    )

    fit = SeroModelFit(spec, sampler.sample(spec, **sample_kwargs))
    fit.diagnose()

    return fit
