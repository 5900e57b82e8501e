"""Lennard-Jones force evaluator."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .base import ForceProvider

if TYPE_CHECKING:
    from ..device import ComputeDevice
    from ..system import DeviceParticles, SimulationParameters


class LennardJonesForce(ForceProvider):
    """
    Lennard-Jones 12-6 potential with a hard cutoff, all pairs.

    V(r) = c12 / r^12 - c6 / r^6,  c12 = 4 eps sigma^12,  c6 = 4 eps sigma^6

    Each worker visits every other particle for each particle it owns, so
    a force slot is written by exactly one worker and no cross-worker
    accumulation is needed. Both orderings of a pair are evaluated; each
    contributes half the pair energy. Pairs with squared minimum-image
    distance above the squared cutoff contribute nothing.

    Attributes:
        params: Run parameters the constants were derived from.
    """

    def __init__(self, device: ComputeDevice, params: SimulationParameters) -> None:
        """
        Initialize Lennard-Jones force.

        Args:
            device: Device running the force kernel.
            params: Run parameters; derived constants are taken once.
        """
        super().__init__(device)
        self.params = params
        self._constants = params.derived

    @property
    def cutoff(self) -> float:
        """Return cutoff radius."""
        return self.params.rcut

    def zero(self, particles: DeviceParticles) -> None:
        """Dispatch the zero-fill kernel on the force buffers."""
        self._device.launch(
            "azzero", particles.fx, particles.fy, particles.fz, particles.n_atoms
        )

    def compute(self, particles: DeviceParticles) -> None:
        """Dispatch the force kernel; overwrites forces and energy partials."""
        c = self._constants
        self._device.launch(
            "force",
            particles.fx,
            particles.fy,
            particles.fz,
            particles.rx,
            particles.ry,
            particles.rz,
            particles.n_atoms,
            self._partials,
            c.c12,
            c.c6,
            c.rcsq,
            c.boxby2,
            c.box,
        )
