"""Velocity Verlet integrator split into two device kernels."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .base import Integrator

if TYPE_CHECKING:
    from ..device import ComputeDevice
    from ..system import DeviceParticles, SimulationParameters


class VelocityVerletIntegrator(Integrator):
    """
    Velocity Verlet integrator (kick-drift-kick formulation).

    Algorithm:
        v(t + dt/2) = v(t) + dtmf * f(t)              # first_half
        r(t + dt)   = r(t) + dt * v(t + dt/2)         # first_half
        v(t + dt)   = v(t + dt/2) + dtmf * f(t + dt)  # second_half

    with ``dtmf = 0.5 * dt / MVSQ2E / mass``. Positions are not wrapped into
    the box.

    Between the two halves the positions are final for this step, which is
    where the driver may read them back.
    """

    def __init__(self, device: ComputeDevice, params: SimulationParameters) -> None:
        """
        Initialize Velocity Verlet integrator.

        Args:
            device: Device running the integration kernels.
            params: Run parameters providing dt and dtmf.
        """
        self._device = device
        self._dt = params.derived.dt
        self._dtmf = params.derived.dtmf

    @property
    def timestep(self) -> float:
        """Return the integration timestep."""
        return self._dt

    def first_half(self, particles: DeviceParticles) -> None:
        """Half kick with the old forces, then a full drift."""
        p = particles
        self._device.launch(
            "verlet_first",
            p.fx, p.fy, p.fz,
            p.rx, p.ry, p.rz,
            p.vx, p.vy, p.vz,
            p.n_atoms,
            self._dt,
            self._dtmf,
        )  # fmt: skip

    def second_half(self, particles: DeviceParticles) -> None:
        """Remaining half kick with the new forces; positions untouched."""
        p = particles
        self._device.launch(
            "verlet_second",
            p.fx, p.fy, p.fz,
            p.vx, p.vy, p.vz,
            p.n_atoms,
            self._dt,
            self._dtmf,
        )  # fmt: skip
