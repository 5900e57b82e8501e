"""Base interface for device force providers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from ..analysis.reduction import fold_partials

if TYPE_CHECKING:
    from ..device import ComputeDevice
    from ..system import DeviceParticles


class ForceProvider(ABC):
    """
    Abstract base class for force computation on a compute device.

    A provider overwrites the device force buffers and leaves one partial
    potential energy per worker in a small device array; the host folds
    the partials when it needs the total.
    """

    def __init__(self, device: ComputeDevice) -> None:
        self._device = device
        self._partials = device.allocate(device.n_workers, "epot")

    @abstractmethod
    def zero(self, particles: DeviceParticles) -> None:
        """Reset the device force buffers."""
        ...

    @abstractmethod
    def compute(self, particles: DeviceParticles) -> None:
        """
        Compute forces on all particles from the current device positions.

        Args:
            particles: Device-resident particle buffers.
        """
        ...

    def download_partials(self, out: NDArray | None = None) -> NDArray:
        """Read the per-worker potential energy partials into ``out``."""
        if out is None:
            out = np.empty(self._device.n_workers, dtype=self._device.dtype)
        return self._device.read(self._partials, out)

    def compute_with_energy(self, particles: DeviceParticles) -> np.floating:
        """
        Compute forces and return the folded potential energy.

        Args:
            particles: Device-resident particle buffers.

        Returns:
            Total potential energy.
        """
        self.compute(particles)
        return fold_partials(self.download_partials())

    def release(self) -> None:
        """Release the partials buffer."""
        self._device.free(self._partials)
