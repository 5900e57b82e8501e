"""
NumPy versions of the device kernels.

Each function runs the work of a single worker ``gid`` out of ``n_workers``
and follows the OpenCL source in ``kernels.cl``: the same strided
ownership, the same per-pair arithmetic and the same output slots. Sums
over pairs use NumPy reductions rather than a sequential loop over j, so
host and OpenCL results agree to rounding, not bit for bit.
A worker writes only the force/velocity/position entries of the particles
it owns and its own partial-energy slot.
"""

from __future__ import annotations

from collections.abc import Callable

import numpy as np
from numpy.typing import NDArray

from ..system.box import wrap_displacement

# Upper bounds on the (owned x N) pair block processed at once by the force
# kernel: at most PAIR_BLOCK rows and about PAIR_ELEMENTS entries per array.
PAIR_BLOCK = 256
PAIR_ELEMENTS = 1 << 20


def pair_block_rows(natoms: int) -> int:
    """Rows per force block so one block stays near PAIR_ELEMENTS entries."""
    return max(1, min(PAIR_BLOCK, PAIR_ELEMENTS // max(natoms, 1)))


def owned_indices(gid: int, n_workers: int, natoms: int) -> NDArray[np.intp]:
    """Particle indices owned by worker ``gid``: gid, gid + W, gid + 2W, ..."""
    return np.arange(gid, natoms, n_workers)


def azzero(gid, n_workers, fx, fy, fz, natoms) -> None:
    idx = owned_indices(gid, n_workers, natoms)
    fx[idx] = 0
    fy[idx] = 0
    fz[idx] = 0


def force(
    gid, n_workers, fx, fy, fz, rx, ry, rz, natoms, epot, c12, c6, rcsq, boxby2, box
) -> None:
    """Full all-pairs Lennard-Jones pass over the particles owned by ``gid``."""
    idx = owned_indices(gid, n_workers, natoms)
    real = fx.dtype.type
    half, twelve, six = real(0.5), real(12.0), real(6.0)
    my_epot = real(0.0)
    block = pair_block_rows(natoms)

    for start in range(0, len(idx), block):
        rows = idx[start : start + block]
        dx = wrap_displacement(rx[rows, None] - rx[None, :natoms], boxby2, box)
        dy = wrap_displacement(ry[rows, None] - ry[None, :natoms], boxby2, box)
        dz = wrap_displacement(rz[rows, None] - rz[None, :natoms], boxby2, box)
        rsq = dx * dx + dy * dy + dz * dz

        inside = rsq <= rcsq
        inside[np.arange(len(rows)), rows] = False

        rinv = np.zeros_like(rsq)
        np.divide(real(1.0), rsq, out=rinv, where=inside)
        r6 = rinv * rinv * rinv
        ffac = (twelve * c12 * r6 - six * c6) * r6 * rinv

        fx[rows] = np.sum(dx * ffac, axis=1)
        fy[rows] = np.sum(dy * ffac, axis=1)
        fz[rows] = np.sum(dz * ffac, axis=1)
        my_epot += real(np.sum(half * r6 * (c12 * r6 - c6)))

    epot[gid] = my_epot


def verlet_first(gid, n_workers, fx, fy, fz, rx, ry, rz, vx, vy, vz, natoms, dt, dtmf):
    idx = owned_indices(gid, n_workers, natoms)
    vx[idx] += dtmf * fx[idx]
    vy[idx] += dtmf * fy[idx]
    vz[idx] += dtmf * fz[idx]
    rx[idx] += dt * vx[idx]
    ry[idx] += dt * vy[idx]
    rz[idx] += dt * vz[idx]


def verlet_second(gid, n_workers, fx, fy, fz, vx, vy, vz, natoms, dt, dtmf):
    idx = owned_indices(gid, n_workers, natoms)
    vx[idx] += dtmf * fx[idx]
    vy[idx] += dtmf * fy[idx]
    vz[idx] += dtmf * fz[idx]


def ekin(gid, n_workers, vx, vy, vz, natoms, ekin_out) -> None:
    """Partial sum of squared speeds over the particles owned by ``gid``."""
    idx = owned_indices(gid, n_workers, natoms)
    ekin_out[gid] = np.sum(vx[idx] * vx[idx] + vy[idx] * vy[idx] + vz[idx] * vz[idx])


KERNELS: dict[str, tuple[Callable[..., None], int]] = {
    "azzero": (azzero, 4),
    "force": (force, 13),
    "verlet_first": (verlet_first, 12),
    "verlet_second": (verlet_second, 9),
    "ekin": (ekin, 5),
}
"""Kernel name -> (worker function, number of kernel arguments)."""
