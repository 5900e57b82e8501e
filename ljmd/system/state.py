"""Particle and run state: host staging copies, device buffers, aggregates."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import ArrayLike, NDArray

from .params import KBOLTZ

if TYPE_CHECKING:
    from ..device import ComputeDevice, DeviceBuffer


@dataclass
class ParticleSystem:
    """
    Host-side copy of the per-particle arrays.

    Once uploaded, the canonical state lives on the device; this object is
    only a staging copy. Array index is the particle identity for the whole
    run.

    Attributes:
        positions: Positions, shape (N, 3).
        velocities: Velocities, shape (N, 3).
        forces: Forces, shape (N, 3).
    """

    positions: NDArray[np.floating]
    velocities: NDArray[np.floating]
    forces: NDArray[np.floating]

    def __post_init__(self) -> None:
        """Validate shapes and unify the floating dtype."""
        dtype = np.result_type(np.asarray(self.positions).dtype, np.float32)
        self.positions = np.asarray(self.positions, dtype=dtype)
        self.velocities = np.asarray(self.velocities, dtype=dtype)
        self.forces = np.asarray(self.forces, dtype=dtype)

        n_atoms = len(self.positions)
        for name in ("positions", "velocities", "forces"):
            shape = getattr(self, name).shape
            if shape != (n_atoms, 3):
                raise ValueError(
                    f"{name} shape {shape} incompatible with {n_atoms} particles"
                )

    @classmethod
    def create(
        cls,
        positions: ArrayLike,
        velocities: ArrayLike | None = None,
        dtype: np.dtype | type = np.float64,
    ) -> ParticleSystem:
        """
        Create a particle system with zero forces.

        Args:
            positions: Positions, shape (N, 3).
            velocities: Velocities, shape (N, 3). Defaults to zeros.
            dtype: Floating precision of the run.

        Returns:
            New ParticleSystem instance.
        """
        positions = np.asarray(positions, dtype=dtype)
        if velocities is None:
            velocities = np.zeros_like(positions)
        return cls(
            positions=positions,
            velocities=np.asarray(velocities, dtype=dtype),
            forces=np.zeros_like(positions),
        )

    @property
    def n_atoms(self) -> int:
        """Return number of particles."""
        return len(self.positions)

    @property
    def dtype(self) -> np.dtype:
        """Floating precision of the arrays."""
        return self.positions.dtype


@dataclass
class SimulationState:
    """
    Mutable run context threaded through the step driver.

    Attributes:
        step: Current step index, 0..nsteps.
        potential_energy: Aggregate potential energy (kcal/mol).
        kinetic_energy: Aggregate kinetic energy (kcal/mol).
        temperature: Instantaneous temperature (K).
    """

    step: int = 0
    potential_energy: float = 0.0
    kinetic_energy: float = 0.0
    temperature: float = 0.0

    @property
    def total_energy(self) -> float:
        """Return kinetic plus potential energy."""
        return self.kinetic_energy + self.potential_energy


def temperature_from_kinetic(
    kinetic_energy: float | np.floating, n_atoms: int
) -> np.floating:
    """
    Equipartition temperature with three momentum degrees of freedom removed.

    Arithmetic stays in the precision of ``kinetic_energy``.

    Raises:
        ValueError: If fewer than two particles are given.
    """
    if n_atoms < 2:
        raise ValueError(f"temperature needs at least 2 particles, got {n_atoms}")
    real = np.asarray(kinetic_energy).dtype.type
    dof = real(3.0) * real(n_atoms) - real(3.0)
    return real(2.0) * real(kinetic_energy) / dof / real(KBOLTZ)


class DeviceParticles:
    """
    Device-resident particle buffers, one per Cartesian component.

    The buffers persist for the whole run and are written only by the
    kernels dispatched by the step driver.
    """

    COMPONENTS = ("rx", "ry", "rz", "vx", "vy", "vz", "fx", "fy", "fz")

    def __init__(self, device: ComputeDevice, n_atoms: int) -> None:
        self._device = device
        self._n_atoms = n_atoms
        self._buffers: dict[str, DeviceBuffer] = {
            name: device.allocate(n_atoms, name) for name in self.COMPONENTS
        }

    @property
    def n_atoms(self) -> int:
        """Return number of particles."""
        return self._n_atoms

    def __getattr__(self, name: str) -> DeviceBuffer:
        buffers = self.__dict__.get("_buffers", {})
        if name in buffers:
            return buffers[name]
        raise AttributeError(name)

    def upload(self, system: ParticleSystem) -> None:
        """Copy positions and velocities from a host system to the device."""
        if system.n_atoms != self._n_atoms:
            raise ValueError(
                f"system has {system.n_atoms} particles, buffers hold {self._n_atoms}"
            )
        dtype = self._device.dtype
        for axis, name in enumerate(("rx", "ry", "rz")):
            self._device.write(
                self._buffers[name],
                np.ascontiguousarray(system.positions[:, axis], dtype=dtype),
            )
        for axis, name in enumerate(("vx", "vy", "vz")):
            self._device.write(
                self._buffers[name],
                np.ascontiguousarray(system.velocities[:, axis], dtype=dtype),
            )

    def _download(self, names: tuple[str, str, str], out: NDArray | None) -> NDArray:
        if out is None:
            out = np.empty((3, self._n_atoms), dtype=self._device.dtype)
        for axis, name in enumerate(names):
            self._device.read(self._buffers[name], out[axis])
        return out

    def download_positions(self, out: NDArray | None = None) -> NDArray:
        """Read positions into ``out`` with shape (3, N), rows x, y, z."""
        return self._download(("rx", "ry", "rz"), out)

    def download_velocities(self, out: NDArray | None = None) -> NDArray:
        """Read velocities into ``out`` with shape (3, N)."""
        return self._download(("vx", "vy", "vz"), out)

    def download_forces(self, out: NDArray | None = None) -> NDArray:
        """Read forces into ``out`` with shape (3, N)."""
        return self._download(("fx", "fy", "fz"), out)

    def to_system(self) -> ParticleSystem:
        """Download everything into a fresh host ParticleSystem."""
        return ParticleSystem(
            positions=self.download_positions().T.copy(),
            velocities=self.download_velocities().T.copy(),
            forces=self.download_forces().T.copy(),
        )

    def release(self) -> None:
        """Release all device buffers."""
        for buffer in self._buffers.values():
            self._device.free(buffer)
        self._buffers.clear()
