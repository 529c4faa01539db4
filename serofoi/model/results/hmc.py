# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.


"""Results of fitting a serocatalytic model with Hamiltonian Monte Carlo.

:py:class:`SeroModelFit` pairs the :py:class:`~serofoi.model.stan_data.SeroModelSpec`
that was fitted with the ArviZ ``InferenceData`` object returned by the sampler.
It exposes the posterior draws of the FoI blocks and of the seroreversion rate,
convergence diagnostics computed with ArviZ, and the leave-one-out expected log
predictive density used to compare models.

Diagnostics never raise. Problems with a fit (parameters whose R-hat exceeds a
threshold, divergent transitions) are reported with :py:func:`warnings.warn` so
that a batch of fits can run to completion and be compared afterwards.
"""

from __future__ import annotations

import warnings

from typing import Optional, TYPE_CHECKING

import arviz as az
import numpy as np
import numpy.typing as npt
import pandas as pd

from serofoi.defaults import DEFAULT_RHAT_THRESH

if TYPE_CHECKING:
    from serofoi import custom_types
    from serofoi.model.stan_data import SeroModelSpec


class SeroModelFit:
    """Posterior of a fitted serocatalytic model.

    :param spec: Specification that was fitted
    :type spec: SeroModelSpec
    :param inference_obj: Posterior draws. Must contain a ``posterior`` group with
        ``foi_vector`` (and ``seroreversion_rate`` when seroreversion is
        estimated) and a ``log_likelihood`` group with ``log_lik``.
    :type inference_obj: az.InferenceData

    :ivar spec: The fitted specification
    :ivar inference_obj: The ArviZ representation of the fit

    Example:
        >>> fit = sf.fit_seromodel(serosurvey, model_type="time")
        >>> fit.diagnose()
        >>> fit.summarize()
    """

    def __init__(self, spec: "SeroModelSpec", inference_obj: az.InferenceData):
        self.spec = spec
        self.inference_obj = inference_obj

        # Lazily computed
        self._diagnostics: Optional[pd.DataFrame] = None
        self._loo: Optional[tuple[float, float]] = None

    @property
    def model_type(self) -> str:
        """Family of the fitted model."""
        return self.spec.model_type

    @property
    def is_log_foi(self) -> bool:
        """Whether the FoI random walk is on the log scale."""
        return self.spec.is_log_foi

    @property
    def is_seroreversion(self) -> bool:
        """Whether seroreversion was estimated."""
        return self.spec.is_seroreversion

    @property
    def model_name(self) -> str:
        """Descriptive model name, e.g. ``age_log_no_seroreversion``."""
        return self.spec.model_name

    @property
    def stan_data(self):
        """The Stan inputs of the fit."""
        return self.spec.stan_data

    @property
    def var_names(self) -> list[str]:
        """Names of the estimated parameters reported by the diagnostics."""
        var_names = ["foi_vector"]
        if self.is_seroreversion:
            var_names.append("seroreversion_rate")
        return var_names

    @property
    def foi_draws(self) -> npt.NDArray[np.floating]:
        """Posterior draws of the FoI blocks, shape ``(n_draws, n_foi)``.

        Chains are concatenated in order.
        """
        # pylint: disable=no-member
        draws = self.inference_obj.posterior["foi_vector"].to_numpy()
        return draws.reshape(-1, self.spec.n_foi)

    @property
    def seroreversion_draws(self) -> Optional[npt.NDArray[np.floating]]:
        """Posterior draws of the seroreversion rate, or None when not estimated."""
        if not self.is_seroreversion:
            return None

        # pylint: disable=no-member
        draws = self.inference_obj.posterior["seroreversion_rate"].to_numpy()
        return draws.reshape(-1)

    def foi_central_estimates(
        self, interval: "custom_types.Float" = 0.95
    ) -> pd.DataFrame:
        """Posterior median and equal-tailed interval of the FoI per year or age.

        The block estimates are expanded over the years (time models) or ages
        (constant and age models) they cover.

        :param interval: Probability mass of the credible interval. Defaults to
            0.95.
        :type interval: custom_types.Float

        :returns: One row per year or age with the columns ``year`` or ``age``,
            ``median``, ``lower`` and ``upper``
        :rtype: pd.DataFrame

        :raises ValueError: If ``interval`` is not in (0, 1)
        """
        if not 0 < interval < 1:
            raise ValueError("`interval` must be between 0 and 1.")

        # Quantiles per block, then expanded to one row per year/age
        tail = (1 - interval) / 2
        quantiles = np.quantile(self.foi_draws, [0.5, tail, 1 - tail], axis=0)
        block = np.asarray(self.stan_data["foi_index"]) - 1

        foi_index = self.spec.foi_index
        if foi_index is None:
            index_name = "age"
            index_values = np.arange(1, self.stan_data["age_max"] + 1)
        else:
            index_name = foi_index.columns[0]
            index_values = foi_index[index_name].to_numpy()

        return pd.DataFrame(
            {
                index_name: index_values,
                "median": quantiles[0, block],
                "lower": quantiles[1, block],
                "upper": quantiles[2, block],
            }
        )

    def calculate_diagnostics(self) -> pd.DataFrame:
        """Compute R-hat and effective sample sizes of the estimated parameters.

        :returns: Table with one row per parameter and the columns produced by
            ``az.summary(kind="diagnostics")`` (``mcse_mean``, ``mcse_sd``,
            ``ess_bulk``, ``ess_tail`` and ``r_hat``)
        :rtype: pd.DataFrame
        """
        self._diagnostics = az.summary(
            self.inference_obj, var_names=self.var_names, kind="diagnostics"
        )
        return self._diagnostics

    @property
    def diagnostics(self) -> pd.DataFrame:
        """Diagnostics table, computed on first access."""
        if self._diagnostics is None:
            self.calculate_diagnostics()
        return self._diagnostics

    @property
    def r_hat(self) -> pd.Series:
        """Split R-hat of each estimated parameter."""
        return self.diagnostics["r_hat"]

    @property
    def n_divergences(self) -> int:
        """Number of divergent transitions after warmup (0 if not recorded)."""
        # pylint: disable=no-member
        if not hasattr(self.inference_obj, "sample_stats"):
            return 0
        if "diverging" not in self.inference_obj.sample_stats:
            return 0
        return int(self.inference_obj.sample_stats["diverging"].sum())

    def calculate_loo(self) -> tuple[float, float]:
        """Pareto-smoothed leave-one-out expected log predictive density.

        :returns: ``(elpd, se)``, the estimate and its standard error
        :rtype: tuple[float, float]
        """
        loo = az.loo(self.inference_obj, var_name="log_lik")
        self._loo = (float(loo["elpd_loo"]), float(loo["se"]))
        return self._loo

    def non_converged(
        self, r_hat_thresh: "custom_types.Float" = DEFAULT_RHAT_THRESH
    ) -> list[str]:
        """Parameters whose R-hat is at or above ``r_hat_thresh`` or undefined."""
        r_hat = self.r_hat
        return r_hat.index[~(r_hat < r_hat_thresh)].tolist()

    def diagnose(
        self, r_hat_thresh: "custom_types.Float" = DEFAULT_RHAT_THRESH
    ) -> bool:
        """Check convergence of the fit and warn about problems.

        :param r_hat_thresh: R-hat at or above which a parameter is considered not
            converged. Defaults to 1.1.
        :type r_hat_thresh: custom_types.Float

        :returns: Whether every parameter converged and no transition diverged
        :rtype: bool
        """
        converged = True

        if failed := self.non_converged(r_hat_thresh):
            converged = False
            warnings.warn(
                f"{self.model_name}: R-hat >= {r_hat_thresh} (or undefined) for "
                f"{', '.join(failed)}. The chains have not converged; consider "
                "more iterations or a different model."
            )

        if n_divergences := self.n_divergences:
            converged = False
            warnings.warn(
                f"{self.model_name}: {n_divergences} divergent transitions after "
                "warmup. Consider increasing `adapt_delta`."
            )

        return converged

    def summarize(
        self, r_hat_thresh: "custom_types.Float" = DEFAULT_RHAT_THRESH
    ) -> pd.DataFrame:
        """One-row summary used to compare fits.

        :param r_hat_thresh: R-hat threshold of the ``converged`` flag. Defaults
            to 1.1.
        :type r_hat_thresh: custom_types.Float

        :returns: Columns ``model_name``, ``elpd``, ``se``, ``max_r_hat`` and
            ``converged``
        :rtype: pd.DataFrame
        """
        elpd, se = self._loo if self._loo is not None else self.calculate_loo()
        max_r_hat = float(self.r_hat.max())
        return pd.DataFrame(
            {
                "model_name": [self.model_name],
                "elpd": [elpd],
                "se": [se],
                "max_r_hat": [max_r_hat],
                "converged": [not self.non_converged(r_hat_thresh)],
            }
        )

    def __repr__(self) -> str:
        return f"SeroModelFit(model_name={self.model_name!r})"
