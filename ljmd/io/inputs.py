"""Line-oriented input script."""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import IO

from ..errors import InputError
from ..system import SimulationParameters


@dataclass(frozen=True)
class RunConfig:
    """
    All values of an input script, in file order.

    Attributes:
        natoms: Number of particles.
        mass: Particle mass (amu).
        epsilon: Lennard-Jones well depth (kcal/mol).
        sigma: Lennard-Jones characteristic length (Angstrom).
        rcut: Cutoff radius (Angstrom).
        box: Cubic box edge (Angstrom).
        restart: Restart file with initial positions and velocities.
        trajectory: XYZ trajectory output file.
        energy_log: Energy log output file.
        nsteps: Number of integration steps.
        dt: Timestep (fs).
        nprint: Output interval in steps.
    """

    natoms: int
    mass: float
    epsilon: float
    sigma: float
    rcut: float
    box: float
    restart: Path
    trajectory: Path
    energy_log: Path
    nsteps: int
    dt: float
    nprint: int

    def __post_init__(self) -> None:
        if self.natoms < 2:
            raise InputError(f"natoms must be at least 2, got {self.natoms}")
        if self.nprint < 1:
            raise InputError(f"nprint must be positive, got {self.nprint}")
        if self.nsteps < 0:
            raise InputError(f"nsteps must not be negative, got {self.nsteps}")

    @property
    def params(self) -> SimulationParameters:
        """Physical parameters of the run."""
        return SimulationParameters(
            natoms=self.natoms,
            mass=self.mass,
            epsilon=self.epsilon,
            sigma=self.sigma,
            rcut=self.rcut,
            box=self.box,
            dt=self.dt,
        )


def _strip(line: str) -> str:
    return line.split("#", 1)[0].strip()


def _convert(name: str, kind: type, text: str):
    if kind is int:
        try:
            return int(text)
        except ValueError:
            raise InputError(f"{name}: expected an integer, got {text!r}") from None
    if kind is float:
        try:
            return float(text)
        except ValueError:
            raise InputError(f"{name}: expected a number, got {text!r}") from None
    return Path(text)


_FIELD_TYPES = {"natoms": int, "nsteps": int, "nprint": int}


def parse_input_lines(lines: list[str]) -> RunConfig:
    """
    Build a RunConfig from the lines of an input script.

    Text after ``#`` is a comment; surrounding whitespace is ignored. Each
    of the twelve fields takes exactly one line.

    Raises:
        InputError: If a line is missing, empty or does not parse.
    """
    values = {}
    for index, field in enumerate(fields(RunConfig)):
        if index >= len(lines):
            raise InputError(f"{field.name}: missing line {index + 1}")
        text = _strip(lines[index])
        if not text:
            raise InputError(f"{field.name}: empty value on line {index + 1}")
        if field.name in _FIELD_TYPES:
            kind = _FIELD_TYPES[field.name]
        elif field.name in ("restart", "trajectory", "energy_log"):
            kind = Path
        else:
            kind = float
        values[field.name] = _convert(field.name, kind, text)
    return RunConfig(**values)


def read_input_script(stream: IO[str] | str | Path) -> RunConfig:
    """
    Read an input script from a text stream or a file path.

    Example script::

        108               # natoms
        39.948            # mass in AMU
        0.2379            # epsilon in kcal/mol
        3.405             # sigma in angstrom
        8.5               # rcut in angstrom
        17.1580           # box length (in angstrom)
        argon_108.rest    # restart
        argon_108.xyz     # trajectory
        argon_108.dat     # energies
        10000             # nr MD steps
        5.0               # MD time step (in fs)
        100               # output print frequency

    Raises:
        InputError: If the script is truncated or malformed.
    """
    if isinstance(stream, (str, Path)):
        try:
            with open(stream) as f:
                lines = f.readlines()
        except OSError as exc:
            raise InputError(f"cannot read input script {stream}: {exc}") from exc
    else:
        lines = stream.readlines()
    return parse_input_lines(lines)
