# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
serofoi: Bayesian estimation of the force-of-infection from serosurveys.

serofoi estimates the constant, age-varying or time-varying force-of-infection
(FoI) of a pathogen from age-stratified cross-sectional serosurvey data. Models
belong to the serocatalytic family (optionally with seroreversion) and are
fitted with Hamiltonian Monte Carlo through Stan. The package also provides
forward simulators that generate synthetic serosurveys from a known FoI, either
through the closed-form piecewise-constant recursion or through matrix
exponentiation of an arbitrary compartmental transition matrix.

Key Features:
    - Validation of serosurveys, survey designs, FoI and FoI-index tables
    - Grouping of ages/years into piecewise-constant FoI blocks
    - Assembly of the data and prior bundle consumed by the Stan programs
    - Fitting with a pluggable sampler (cmdstanpy by default)
    - Simulation of serosurveys for analytic and general catalytic models

Global Variables:
    RNG: Global random number generator for reproducible computations
    __version__: Package version string

Example:
    >>> import serofoi as sf
    >>> sf.manual_seed(42)
    >>> survey = sf.simulate_serosurvey("time", foi, survey_features)
    >>> fit = sf.fit_seromodel(survey, model_type="time")
"""

from typing import Optional, TYPE_CHECKING

from typeguard import install_import_hook

import numpy as np

# Define the version
__version__ = "1.0.0"

# Set up type checking
install_import_hook("serofoi")

# Define the global random number generator
RNG: np.random.Generator
"""Global random number generator for serofoi.

Survey simulation and the default sampler seeds draw from this generator unless
an explicit seed is passed. It can be seeded using the manual_seed() function.

:type: np.random.Generator
"""

# Get custom types if TYPE_CHECKING is True
if TYPE_CHECKING:
    from serofoi import custom_types


def manual_seed(seed: Optional["custom_types.Integer"] = None):
    """Set the seed for the global random number generator.

    :param seed: Seed value for random number generation. If None, uses
                system entropy to generate a random seed.
    :type seed: Union[custom_types.Integer, None]

    Example:
        >>> import serofoi as sf
        >>> sf.manual_seed(42)
        >>> survey = sf.simulate_serosurvey("age", foi, survey_features)
    """
    global RNG  # pylint: disable=global-statement
    RNG = np.random.default_rng(seed)


manual_seed()  # Set the seed for the global random number generator

# Import objects that should be easily accessible from the package level
# pylint: disable=wrong-import-position
from serofoi import utils
from serofoi.foi_index import get_foi_index
from serofoi.priors import Cauchy, NoPrior, Normal, Uniform
from serofoi.simulation import (
    probability_seropositive_by_age,
    simulate_serosurvey,
    simulate_serosurvey_general,
)
from serofoi.model.fitting import fit_seromodel
from serofoi.model.stan_data import build_stan_data

results = utils.lazy_import("serofoi.model.results")
