"""Physical inputs of a run and the constants derived from them."""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

# Units: length Angstrom, mass amu, energy kcal/mol, time fs.
KBOLTZ = 0.0019872067
"""Boltzmann constant in kcal/mol/K."""

MVSQ2E = 2390.05736153349
"""Conversion of m*v^2 (amu * Angstrom^2 / fs^2) to kcal/mol."""


@dataclass(frozen=True)
class DerivedConstants:
    """
    Scalars precomputed once per run and passed to the kernels.

    Attributes:
        c12: Repulsive coefficient 4 * epsilon * sigma^12.
        c6: Attractive coefficient 4 * epsilon * sigma^6.
        rcsq: Squared cutoff radius.
        boxby2: Half box length for the minimum-image wrap.
        box: Box length.
        dt: Timestep.
        dtmf: Half-kick prefactor 0.5 * dt / MVSQ2E / mass.
    """

    c12: float
    c6: float
    rcsq: float
    boxby2: float
    box: float
    dt: float
    dtmf: float


@dataclass(frozen=True)
class SimulationParameters:
    """
    Physical inputs of a simulation.

    The object is frozen, so the derived constants computed in
    ``__post_init__`` stay valid for the whole run.

    Attributes:
        natoms: Number of particles.
        mass: Particle mass (amu).
        epsilon: Lennard-Jones well depth (kcal/mol).
        sigma: Lennard-Jones characteristic length (Angstrom).
        rcut: Cutoff radius (Angstrom).
        box: Cubic box edge length (Angstrom).
        dt: Timestep (fs).
    """

    natoms: int
    mass: float
    epsilon: float
    sigma: float
    rcut: float
    box: float
    dt: float
    derived: DerivedConstants = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "derived", self._derive())

    def _derive(self) -> DerivedConstants:
        return DerivedConstants(
            c12=4.0 * self.epsilon * self.sigma**12,
            c6=4.0 * self.epsilon * self.sigma**6,
            rcsq=self.rcut * self.rcut,
            boxby2=0.5 * self.box,
            box=self.box,
            dt=self.dt,
            dtmf=0.5 * self.dt / MVSQ2E / self.mass,
        )

    @property
    def degrees_of_freedom(self) -> int:
        """Degrees of freedom with total linear momentum removed."""
        return 3 * self.natoms - 3

    def kinetic_prefactor(self, dtype: np.dtype | type = np.float64) -> np.floating:
        """Return 0.5 * MVSQ2E * mass in the requested precision."""
        dtype = np.dtype(dtype)
        return dtype.type(0.5) * dtype.type(MVSQ2E) * dtype.type(self.mass)
