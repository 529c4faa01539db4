# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.


"""Results of fitted serofoi models.

Users will not typically instantiate result classes directly. Instead, they are
returned by :py:func:`serofoi.model.fitting.fit_seromodel`:

.. code-block:: python

    import serofoi as sf

    fit = sf.fit_seromodel(serosurvey, model_type="age", foi_index=foi_index)

    # Convergence checks (warns on failure)
    fit.diagnose()

    # Posterior of the FoI per age
    estimates = fit.foi_central_estimates()

    # Model comparison
    table = pd.concat([fit.summarize() for fit in fits], ignore_index=True)

The ``inference_obj`` attribute of every result is an ArviZ ``InferenceData``
object, allowing further analysis with ArviZ's diagnostics and plotting functions.
"""

from serofoi.model.results.hmc import SeroModelFit
