"""Two-phase energy reduction: per-worker device partials, host fold."""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import ArrayLike, NDArray

from ..system.state import temperature_from_kinetic

if TYPE_CHECKING:
    from ..device import ComputeDevice
    from ..system import DeviceParticles, SimulationParameters


def fold_partials(partials: ArrayLike) -> np.floating:
    """
    Sum per-worker partials in worker order.

    The fold is a sequential running sum in the precision of the partials,
    the same as a plain host loop, so totals do not depend on NumPy's
    pairwise summation.

    Args:
        partials: One value per worker.

    Returns:
        Total as a NumPy scalar of the partials' dtype.
    """
    partials = np.asarray(partials)
    if partials.size == 0:
        return partials.dtype.type(0)
    return np.cumsum(partials, dtype=partials.dtype)[-1]


class KineticEnergyReducer:
    """
    Kinetic energy and temperature from device velocities.

    (a) the ``ekin`` kernel writes one partial sum of v^2 per worker,
    (b) the host folds the partials, (c) scales by 0.5 * MVSQ2E * mass and
    (d) derives the temperature with 3N - 3 degrees of freedom.
    """

    def __init__(self, device: ComputeDevice, params: SimulationParameters) -> None:
        """
        Initialize reducer.

        Args:
            device: Device running the kinetic energy kernel.
            params: Run parameters providing N and mass.
        """
        self._device = device
        self._params = params
        self._partials = device.allocate(device.n_workers, "ekin")
        self._prefactor = params.kinetic_prefactor(device.dtype)

    def launch(self, particles: DeviceParticles) -> None:
        """Dispatch the kinetic energy kernel."""
        self._device.launch(
            "ekin",
            particles.vx,
            particles.vy,
            particles.vz,
            particles.n_atoms,
            self._partials,
        )

    def download_partials(self, out: NDArray | None = None) -> NDArray:
        """Read the per-worker partials into ``out``."""
        if out is None:
            out = np.empty(self._device.n_workers, dtype=self._device.dtype)
        return self._device.read(self._partials, out)

    def finalize(self, partials: ArrayLike) -> tuple[np.floating, np.floating]:
        """
        Fold partials into kinetic energy and temperature.

        Args:
            partials: Per-worker sums of v^2.

        Returns:
            Tuple of (kinetic energy, temperature).

        Raises:
            ValueError: If the system has fewer than two particles.
        """
        ekin = fold_partials(partials) * self._prefactor
        return ekin, temperature_from_kinetic(ekin, self._params.natoms)

    def compute(self, particles: DeviceParticles) -> tuple[np.floating, np.floating]:
        """Launch, download and finalize in one blocking call."""
        self.launch(particles)
        return self.finalize(self.download_partials())

    def release(self) -> None:
        """Release the partials buffer."""
        self._device.free(self._partials)
