# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.


"""Forward simulation of serocatalytic models.

This submodule computes the seropositivity of birth cohorts and turns it into
synthetic serosurveys:

    - :py:mod:`serofoi.simulation.seropositivity` holds the exact recursion for
      piecewise-constant FoI with optional seroreversion, for age-, time- and
      age-and-time-varying FoI tables.
    - :py:mod:`serofoi.simulation.general_model` propagates arbitrary compartmental
      catalytic models by exponentiating a caller-supplied transition matrix.
    - :py:mod:`serofoi.simulation.serosurvey` draws binomial seropositive counts
      over the age bins of a survey design.
"""

from serofoi.simulation.general_model import (
    probability_seropositive_general_model_by_age,
)
from serofoi.simulation.seropositivity import (
    probability_seropositive,
    probability_seropositive_by_age,
    seropositivity_step,
)
from serofoi.simulation.serosurvey import (
    simulate_serosurvey,
    simulate_serosurvey_general,
)
