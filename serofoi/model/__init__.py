# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.


"""Fitting of serocatalytic models.

This submodule turns a serosurvey into posterior estimates of the FoI:

    - :py:mod:`serofoi.model.stan_data` assembles the data and prior bundle
      (:py:class:`~serofoi.model.stan_data.SeroModelSpec`) of a fit.
    - :py:mod:`serofoi.model.sampler` defines the interface of posterior
      samplers.
    - :py:mod:`serofoi.model.stan` holds the Stan programs and the cmdstanpy
      sampler that runs them.
    - :py:mod:`serofoi.model.results` holds the fitted model and its
      diagnostics.
    - :py:mod:`serofoi.model.fitting` ties everything together in
      :py:func:`~serofoi.model.fitting.fit_seromodel`.
"""
