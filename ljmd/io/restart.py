"""Restart files: N position triples followed by N velocity triples."""

from __future__ import annotations

from pathlib import Path

import numpy as np

from ..errors import RestartError
from ..system import ParticleSystem


def read_restart(
    filename: str | Path, natoms: int, dtype: np.dtype | type = np.float64
) -> ParticleSystem:
    """
    Read initial positions and velocities.

    Values are whitespace separated and read in order; any values after
    the first 6N are ignored.

    Args:
        filename: Restart file path.
        natoms: Number of particles expected.
        dtype: Floating precision of the returned arrays.

    Returns:
        ParticleSystem with zero forces.

    Raises:
        RestartError: If the file cannot be read or holds fewer than 6N
            numbers.
    """
    try:
        with open(filename) as f:
            tokens = f.read().split()
    except OSError as exc:
        raise RestartError(f"cannot read restart file {filename}: {exc}") from exc

    needed = 6 * natoms
    if len(tokens) < needed:
        raise RestartError(
            f"restart file {filename} holds {len(tokens)} values, need {needed}"
        )
    try:
        data = np.array(tokens[:needed], dtype=np.float64).reshape(2 * natoms, 3)
    except ValueError as exc:
        raise RestartError(f"restart file {filename}: {exc}") from exc

    return ParticleSystem.create(data[:natoms], data[natoms:], dtype=dtype)


def write_restart(filename: str | Path, system: ParticleSystem) -> None:
    """Write positions then velocities, one triple per line."""
    with open(filename, "w") as f:
        for block in (system.positions, system.velocities):
            for x, y, z in block:
                f.write("%20.8f %20.8f %20.8f\n" % (x, y, z))
