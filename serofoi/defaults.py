# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.


"""Default configuration values for serofoi package components.

This module centralizes default values used across the package, including prior
hyperparameters, the integer codes that identify prior families inside the Stan
programs, sampler settings, and Stan compilation options.

The module is organized into logical groups covering:
    - Prior defaults and prior family indexes
    - Model types
    - Stan model compilation and sampling settings
    - Diagnostic thresholds for model validation

Default values cannot be programmatically altered. Prior defaults can, however,
be overridden per assembler through :py:class:`serofoi.model.stan_data.PriorDefaults`.
"""

from typing import Any

# Prior family indexes understood by the Stan programs
PRIOR_INDEX_NONE: int = 0
"""Stan code of an absent prior (used for disabled model components).

:type: int
"""

PRIOR_INDEX_UNIFORM: int = 1
"""Stan code of the uniform prior family.

:type: int
"""

PRIOR_INDEX_NORMAL: int = 2
"""Stan code of the normal prior family.

:type: int
"""

PRIOR_INDEX_CAUCHY: int = 3
"""Stan code of the Cauchy prior family.

:type: int
"""

# Prior defaults
DEFAULT_PRIOR_INDEX: int = PRIOR_INDEX_UNIFORM
"""Default family of the prior of the first FoI block.

:type: int
"""

DEFAULT_PRIOR_MIN: float = 0.0
"""Default lower bound of uniform priors.

:type: float
"""

DEFAULT_PRIOR_MAX: float = 10.0
"""Default upper bound of uniform priors.

:type: float
"""

DEFAULT_PRIOR_MEAN: float = 0.0
"""Default mean of normal priors.

:type: float
"""

DEFAULT_PRIOR_SD: float = 1.0
"""Default standard deviation of normal priors.

:type: float
"""

DEFAULT_PRIOR_LOCATION: float = 0.0
"""Default location of Cauchy priors. Used for the random walk scale on the
linear scale.

:type: float
"""

DEFAULT_PRIOR_SCALE: float = 1.0
"""Default scale of Cauchy priors. Used for the random walk scale on the linear
scale.

:type: float
"""

# Model types
FIT_MODEL_TYPES: tuple[str, ...] = ("constant", "age", "time")
"""Model types that can be fitted.

:type: tuple[str, ...]
"""

INDEXED_MODEL_TYPES: tuple[str, ...] = ("age", "time")
"""Model types that carry an FoI-index table.

:type: tuple[str, ...]
"""

SIMULATION_MODEL_TYPES: tuple[str, ...] = ("age", "time", "age-time")
"""Model types that can be simulated with the analytic recursion.

:type: tuple[str, ...]
"""

# Defaults for the Stan model
DEFAULT_FORCE_COMPILE: bool = False
"""Default setting for forcing Stan model recompilation.

When False, uses cached compiled models when available. When True,
forces recompilation even if a cached version exists.

:type: bool
"""

DEFAULT_STANC_OPTIONS: dict[str, Any] = {"warn-pedantic": False, "O1": True}
"""Default options passed to the Stan compiler (stanc).

:type: dict[str, bool]
"""

DEFAULT_CPP_OPTIONS: dict[str, Any] = {}
"""Default C++ compilation options for Stan models.

:type: dict[str, Any]
"""

# Sampling defaults
DEFAULT_CHAINS: int = 4
"""Default number of HMC chains.

:type: int
"""

DEFAULT_ITER_WARMUP: int = 500
"""Default number of warmup iterations per chain.

:type: int
"""

DEFAULT_ITER_SAMPLING: int = 500
"""Default number of post-warmup iterations per chain.

:type: int
"""

DEFAULT_THIN: int = 2
"""Default thinning of the post-warmup draws.

:type: int
"""

DEFAULT_ADAPT_DELTA: float = 0.90
"""Default target acceptance rate of the NUTS sampler.

:type: float
"""

DEFAULT_MAX_TREEDEPTH: int = 10
"""Default maximum tree depth of the NUTS sampler.

:type: int
"""

# Defaults for Stan diagnostics
DEFAULT_RHAT_THRESH: float = 1.1
"""Default threshold for R-hat convergence diagnostic.

A fitted model is considered converged when every FoI (and seroreversion)
parameter has an R-hat below this value.

:type: float
"""
