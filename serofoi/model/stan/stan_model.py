# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.


"""cmdstanpy integration for the bundled serocatalytic Stan programs.

:py:class:`SeroStanModel` extends cmdstanpy's ``CmdStanModel`` to copy a bundled
program into an output directory, point the Stan compiler at the shared function
and data snippets, and reuse a previously compiled executable when one exists.

:py:class:`CmdStanSampler` is the default :py:class:`~serofoi.model.sampler.Sampler`:
it keeps one compiled model per program, runs Hamiltonian Monte Carlo with the
defaults of :py:mod:`serofoi.defaults` and converts the fit into an ArviZ
``InferenceData`` object with a ``log_likelihood`` group.
"""

from __future__ import annotations

import os.path
import shutil
import weakref

from tempfile import TemporaryDirectory
from typing import Any, Optional, TYPE_CHECKING

import arviz as az

from cmdstanpy import CmdStanModel

import serofoi

from serofoi.defaults import (
    DEFAULT_ADAPT_DELTA,
    DEFAULT_CHAINS,
    DEFAULT_CPP_OPTIONS,
    DEFAULT_FORCE_COMPILE,
    DEFAULT_ITER_SAMPLING,
    DEFAULT_ITER_WARMUP,
    DEFAULT_MAX_TREEDEPTH,
    DEFAULT_STANC_OPTIONS,
    DEFAULT_THIN,
)
from serofoi.model import stan
from serofoi.model.sampler import Sampler

if TYPE_CHECKING:
    from serofoi.model.stan_data import SeroModelSpec


class SeroStanModel(CmdStanModel):
    """CmdStanModel for one of the bundled serocatalytic programs.

    :param stan_program: Name of the bundled program (see
        :py:data:`serofoi.model.stan.STAN_PROGRAMS`)
    :type stan_program: str
    :param output_dir: Directory for the Stan file and executable. Defaults to None
        (temporary directory, removed with the model).
    :type output_dir: Optional[str]
    :param force_compile: Whether to force recompilation. Defaults to False.
    :type force_compile: bool
    :param stanc_options: Options for the Stan compiler. Defaults to None (uses
        defaults).
    :type stanc_options: Optional[dict[str, Any]]
    :param cpp_options: Options for C++ compilation. Defaults to None (uses
        defaults).
    :type cpp_options: Optional[dict[str, Any]]

    :ivar stan_program: Name of the bundled program
    :ivar output_dir: Directory containing the Stan file and executable
    :ivar stan_executable_path: Path to the compiled executable

    :raises FileNotFoundError: If ``output_dir`` does not exist
    """

    def __init__(
        self,
        stan_program: str,
        output_dir: Optional[str] = None,
        force_compile: bool = DEFAULT_FORCE_COMPILE,
        stanc_options: Optional[dict[str, Any]] = None,
        cpp_options: Optional[dict[str, Any]] = None,
    ):
        # Set default options
        self._stanc_options = dict(stanc_options or DEFAULT_STANC_OPTIONS)
        cpp_options = dict(cpp_options or DEFAULT_CPP_OPTIONS)

        # Add the "include_paths" kwarg
        self._stanc_options["include-paths"] = (
            list(self._stanc_options.get("include-paths", []))
            + stan.STAN_INCLUDE_PATHS
        )

        self.stan_program = stan_program
        self._set_output_dir(output_dir)
        self.stan_executable_path = os.path.join(self.output_dir, stan_program)

        # Copy the bundled program next to where the executable will live
        shutil.copyfile(
            stan.get_stan_program_path(stan_program), self.stan_program_path
        )

        super().__init__(
            stan_file=self.stan_program_path,
            exe_file=(
                self.stan_executable_path
                if os.path.exists(self.stan_executable_path) and not force_compile
                else None
            ),
            force_compile=force_compile,
            stanc_options=self._stanc_options,
            cpp_options=cpp_options,
        )

    def _set_output_dir(self, output_dir: Optional[str]) -> None:
        """Configure output directory with automatic cleanup for temporary directories.

        :raises FileNotFoundError: If specified directory doesn't exist
        """
        # Make a temporary directory if none is specified. Set up a weak reference
        # to clean up the temporary directory when the model is deleted.
        if output_dir is None:
            tempdir = TemporaryDirectory()
            weakref.finalize(self, tempdir.cleanup)
            output_dir = tempdir.name

        if not os.path.exists(output_dir):
            raise FileNotFoundError(f"Output directory {output_dir} does not exist.")

        self.output_dir = output_dir

    @property
    def stan_program_path(self) -> str:
        """Path to the copied ``.stan`` file."""
        return self.stan_executable_path + ".stan"


class CmdStanSampler(Sampler):
    """Samples serocatalytic models with cmdstanpy.

    Compiled models are cached per Stan program for the lifetime of the sampler;
    with an ``output_dir`` they are also reused across processes.

    :param output_dir: Directory for Stan files, executables and CSV outputs.
        Defaults to None (temporary directories).
    :type output_dir: Optional[str]
    :param force_compile: Whether to force recompilation. Defaults to False.
    :type force_compile: bool
    :param stanc_options: Options for the Stan compiler. Defaults to None.
    :type stanc_options: Optional[dict[str, Any]]
    :param cpp_options: Options for C++ compilation. Defaults to None.
    :type cpp_options: Optional[dict[str, Any]]

    Example:
        >>> sampler = CmdStanSampler(output_dir="stan_cache")
        >>> fit = sf.fit_seromodel(serosurvey, model_type="age", sampler=sampler)
    """

    def __init__(
        self,
        output_dir: Optional[str] = None,
        force_compile: bool = DEFAULT_FORCE_COMPILE,
        stanc_options: Optional[dict[str, Any]] = None,
        cpp_options: Optional[dict[str, Any]] = None,
    ):
        self.output_dir = output_dir
        self.force_compile = force_compile
        self.stanc_options = stanc_options
        self.cpp_options = cpp_options
        self._models: dict[str, SeroStanModel] = {}

    def get_model(self, stan_program: str) -> SeroStanModel:
        """Compiled model of a bundled program, compiling it on first use."""
        if stan_program not in self._models:
            self._models[stan_program] = SeroStanModel(
                stan_program,
                output_dir=self.output_dir,
                force_compile=self.force_compile,
                stanc_options=self.stanc_options,
                cpp_options=self.cpp_options,
            )
        return self._models[stan_program]

    def sample(self, spec: "SeroModelSpec", **sample_kwargs) -> az.InferenceData:
        """Run HMC for ``spec``.

        :param spec: Specification of the model to fit
        :type spec: SeroModelSpec
        :param sample_kwargs: Keyword arguments passed to
            ``CmdStanModel.sample``. ``chains``, ``iter_warmup``,
            ``iter_sampling``, ``thin``, ``adapt_delta`` and ``max_treedepth``
            default to the values in :py:mod:`serofoi.defaults`; ``seed``
            defaults to a draw from ``serofoi.RNG``. ``timeout`` (seconds) bounds
            the run.

        :returns: Posterior draws with a ``log_likelihood`` group
        :rtype: az.InferenceData
        """
        model = self.get_model(spec.stan_program)

        # Fill in defaults
        sample_kwargs.setdefault("chains", DEFAULT_CHAINS)
        sample_kwargs.setdefault("iter_warmup", DEFAULT_ITER_WARMUP)
        sample_kwargs.setdefault("iter_sampling", DEFAULT_ITER_SAMPLING)
        sample_kwargs.setdefault("thin", DEFAULT_THIN)
        sample_kwargs.setdefault("adapt_delta", DEFAULT_ADAPT_DELTA)
        sample_kwargs.setdefault("max_treedepth", DEFAULT_MAX_TREEDEPTH)

        # If a seed is not provided, use the global random number generator to get
        # one
        if sample_kwargs.get("seed") is None:
            sample_kwargs["seed"] = int(serofoi.RNG.integers(0, 2**32 - 1))

        if self.output_dir is not None and "output_dir" not in sample_kwargs:
            sample_kwargs["output_dir"] = os.path.abspath(self.output_dir)

        fit = model.sample(data=dict(spec.stan_data), **sample_kwargs)

        return az.from_cmdstanpy(
            posterior=fit,
            log_likelihood="log_lik",
            observed_data={
                "n_seropositive": spec.stan_data["n_seropositive"],
                "n_sample": spec.stan_data["n_sample"],
            },
        )
