"""Minimum-image displacement in a periodic cubic box.

Positions are never folded back into the box during a run; periodicity
enters only through the wrapped pair displacement.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray


def wrap_displacement(
    dx: NDArray[np.floating], boxby2: float, box: float
) -> NDArray[np.floating]:
    """
    Apply the minimum-image convention to displacement components.

    Any component larger than half the box is shifted by one box length
    toward the nearer image, repeatedly, exactly like the device kernels do.

    Args:
        dx: Displacement components (any shape).
        boxby2: Half the box edge.
        box: Box edge.

    Returns:
        Wrapped displacement components, same shape and dtype as ``dx``.
    """
    dx = np.array(dx, copy=True)
    scalar = dx.ndim == 0
    dx = np.atleast_1d(dx)

    high = dx > boxby2
    while np.any(high):
        dx[high] -= box
        high = dx > boxby2

    low = dx < -boxby2
    while np.any(low):
        dx[low] += box
        low = dx < -boxby2

    return dx[0] if scalar else dx
