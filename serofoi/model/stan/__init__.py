# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.


"""Stan programs of the serocatalytic models and their cmdstanpy integration.

This submodule bundles one Stan program per fittable model family:

    - ``constant.stan``: a single FoI value for all ages and years
    - ``age.stan`` / ``age_log.stan``: age-varying FoI with a random walk on the
      linear / log scale
    - ``time.stan`` / ``time_log.stan``: time-varying FoI with a random walk on the
      linear / log scale

Every program optionally estimates a seroreversion rate (``is_seroreversion``)
and shares the data declarations in ``serosurvey.standata`` and the functions in
``serocatalytic.stanfunctions``, which implement the same seropositivity recursion
as :py:mod:`serofoi.simulation.seropositivity`. The programs are compiled and run
through :py:class:`~serofoi.model.stan.stan_model.SeroStanModel`.
"""

import os.path

# We need the path of the directory of the current file. This is used to include
# the shared Stan functions and data declarations.
STAN_INCLUDE_PATHS = [os.path.abspath(os.path.dirname(__file__))]
"""
A list of absolute paths used by the Stan compiler to locate the bundled function
and data snippets.
"""

STAN_PROGRAMS = ("constant", "age", "age_log", "time", "time_log")
"""Names of the bundled Stan programs."""


def get_stan_program_path(stan_program: str) -> str:
    """Absolute path of a bundled Stan program.

    :param stan_program: One of :py:data:`STAN_PROGRAMS`
    :type stan_program: str

    :returns: Path to the ``.stan`` file
    :rtype: str

    :raises ValueError: If the program does not exist
    """
    if stan_program not in STAN_PROGRAMS:
        raise ValueError(
            f"Unknown Stan program {stan_program!r}; expected one of "
            f"{', '.join(STAN_PROGRAMS)}."
        )
    return os.path.join(STAN_INCLUDE_PATHS[0], f"{stan_program}.stan")
