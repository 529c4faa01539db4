# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""Interface between the model specification and the posterior sampler.

serofoi never runs MCMC itself. A :py:class:`Sampler` receives a fully assembled
:py:class:`~serofoi.model.stan_data.SeroModelSpec` and returns posterior draws as
an :py:class:`arviz.InferenceData` object with (at least) a ``posterior`` group
holding ``foi_vector`` (and ``seroreversion_rate`` when seroreversion is enabled)
and a ``log_likelihood`` group holding ``log_lik``.

The default implementation, :py:class:`~serofoi.model.stan.stan_model.CmdStanSampler`,
runs the bundled Stan programs through cmdstanpy. Other implementations can be
injected into :py:func:`~serofoi.model.fitting.fit_seromodel`, for example a
deterministic stub in tests.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

import arviz as az

if TYPE_CHECKING:
    from serofoi.model.stan_data import SeroModelSpec


class Sampler(ABC):
    """Draws from the posterior of a model specification."""

    @abstractmethod
    def sample(self, spec: "SeroModelSpec", **sample_kwargs) -> az.InferenceData:
        """Sample the posterior of ``spec``.

        :param spec: Specification of the model to fit
        :type spec: SeroModelSpec
        :param sample_kwargs: Sampler-specific options

        :returns: Posterior draws and log-likelihood values
        :rtype: az.InferenceData
        """
