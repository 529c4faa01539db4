# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.


"""Custom type definitions for serofoi.

This module provides type aliases used for documentation and static type checking
throughout the package.

All imports are conditional on TYPE_CHECKING to avoid circular imports while
maintaining proper type hints for development and documentation tools.
"""

from typing import Callable, Sequence, TYPE_CHECKING, Union

# Everything in this file is only imported if TYPE_CHECKING is True.
if TYPE_CHECKING:

    import numpy as np
    import numpy.typing as npt

# Scalar types
Integer = Union[int, "np.integer"]
"""Type alias for integer values.

Accepts both Python's built-in int and NumPy integer types.

:type: Union[int, np.integer]
"""

Float = Union[float, "np.floating"]
"""Type alias for floating-point values.

Accepts both Python's built-in float and NumPy floating-point types.

:type: Union[float, np.floating]
"""

Rate = Union[Integer, Float]
"""Type alias for non-negative rates (FoI values and seroreversion rates).

:type: Union[Integer, Float]
"""

# Array types
FloatArray = Union[Sequence[Rate], "npt.NDArray[np.floating]"]
"""Type alias for one-dimensional sequences of rates.

:type: Union[Sequence[Rate], npt.NDArray[np.floating]]
"""

# General model callables
TransitionMatrixFn = Callable[
    [int, int, "npt.NDArray", "npt.NDArray"], "npt.NDArray[np.floating]"
]
"""Signature of the transition-matrix constructor of a general catalytic model.

Called as ``fn(t, birth_step, u, v)`` and returning a square rate matrix whose
columns act on the state vector.

:type: Callable[[int, int, npt.NDArray, npt.NDArray], npt.NDArray[np.floating]]
"""

SeropositivityFn = Callable[["npt.NDArray[np.floating]"], Float]
"""Signature of the observation-reduction function of a general catalytic model,
mapping a state vector to the fraction of the cohort that is seropositive.

:type: Callable[[npt.NDArray[np.floating]], Float]
"""
