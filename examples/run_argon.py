#!/usr/bin/env python
"""
Example: liquid argon, 108 atoms, on the host or an OpenCL device.

This script demonstrates how to:
1. Build an FCC lattice with Maxwell-Boltzmann velocities
2. Write a restart file and an input script
3. Run the simulation through the step driver with file reporters
4. Analyze the energy log

Units: Angstrom, amu, kcal/mol, fs.

Usage:
    python examples/run_argon.py [host|cpu|gpu]

The same run from the command line:
    ljmd host < argon_108.inp
"""

import sys
from pathlib import Path

import numpy as np

from ljmd import plotting
from ljmd.analysis import read_energy_log, relative_drift
from ljmd.device import DeviceConfig, create_device
from ljmd.engines import (
    ConsoleReporter,
    EnergyLogReporter,
    StepDriver,
    XYZTrajectoryReporter,
)
from ljmd.errors import DeviceError
from ljmd.io import read_input_script, read_restart, write_restart
from ljmd.system import KBOLTZ, MVSQ2E, ParticleSystem

INPUT_TEMPLATE = """\
108               # natoms
39.948            # mass in AMU
0.2379            # epsilon in kcal/mol
3.405             # sigma in angstrom
8.5               # rcut in angstrom
17.1580           # box length (in angstrom)
{restart}         # restart
{trajectory}      # trajectory
{energies}        # energies
1000              # nr MD steps
5.0               # MD time step (in fs)
50                # output print frequency
"""


def fcc_lattice(n_cells: int, box: float) -> np.ndarray:
    """
    Create FCC lattice positions filling a cubic box.

    Args:
        n_cells: Unit cells per edge.
        box: Box edge length.

    Returns:
        Positions array of shape (4 * n_cells**3, 3).
    """
    a = box / n_cells
    basis = np.array([[0.0, 0.0, 0.0], [0.5, 0.5, 0.0], [0.5, 0.0, 0.5], [0.0, 0.5, 0.5]])
    cells = np.array(np.meshgrid(*[np.arange(n_cells)] * 3, indexing="ij")).reshape(3, -1).T
    positions = (cells[:, None, :] + basis[None, :, :]).reshape(-1, 3) * a
    return positions + 0.25 * a


def maxwell_velocities(
    n_atoms: int, mass: float, temperature: float, seed: int = 42
) -> np.ndarray:
    """
    Draw velocities at the given temperature with zero total momentum.

    Args:
        n_atoms: Number of atoms.
        mass: Atom mass (amu).
        temperature: Target temperature (K).
        seed: Random seed for reproducibility.

    Returns:
        Velocities (Angstrom/fs), shape (n_atoms, 3).
    """
    rng = np.random.default_rng(seed)
    sigma_v = np.sqrt(KBOLTZ * temperature / (MVSQ2E * mass))
    velocities = rng.normal(scale=sigma_v, size=(n_atoms, 3))
    velocities -= velocities.mean(axis=0)

    ekin = 0.5 * MVSQ2E * mass * np.sum(velocities**2)
    current = 2.0 * ekin / ((3 * n_atoms - 3) * KBOLTZ)
    return velocities * np.sqrt(temperature / current)


def main():
    kind = sys.argv[1] if len(sys.argv) > 1 else "host"
    workdir = Path("argon_108")
    workdir.mkdir(exist_ok=True)

    print("=" * 60)
    print("Liquid argon, 108 atoms")
    print("=" * 60)

    # 1. Initial configuration
    positions = fcc_lattice(3, 17.158)
    velocities = maxwell_velocities(len(positions), 39.948, temperature=120.0)
    write_restart(workdir / "argon_108.rest", ParticleSystem.create(positions, velocities))

    # 2. Input script
    script = workdir / "argon_108.inp"
    script.write_text(
        INPUT_TEMPLATE.format(
            restart=workdir / "argon_108.rest",
            trajectory=workdir / "argon_108.xyz",
            energies=workdir / "argon_108.dat",
        )
    )
    config = read_input_script(script)
    system = read_restart(config.restart, config.natoms)

    # 3. Run
    reporters = [
        ConsoleReporter(),
        EnergyLogReporter(config.energy_log),
        XYZTrajectoryReporter(config.trajectory),
    ]
    try:
        device = create_device(DeviceConfig(kind=kind))
    except DeviceError as exc:
        print(f"Cannot use device {kind!r}: {exc}")
        return 1

    with device:
        with StepDriver(
            device, config.params, system, config.nsteps, config.nprint, reporters
        ) as driver:
            state = driver.run()
            perf = driver.performance

    print(f"\nFinal temperature: {state.temperature:.2f} K")
    print(f"Performance: {perf['steps_per_second']:.1f} steps/s")

    # 4. Analysis
    log = read_energy_log(config.energy_log)
    print(f"Relative energy drift: {relative_drift(log['total']):.2e}")

    if plotting.HAS_MATPLOTLIB:
        plotting.energy(log, timestep=config.dt, show=False)
        plotting.save(workdir / "argon_108_energy.png")

    return 0


if __name__ == "__main__":
    sys.exit(main())
