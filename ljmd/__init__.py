"""
ljmd - Lennard-Jones molecular dynamics on data-parallel compute devices.

Particles live in device buffers for the whole run. Forces, velocity
Verlet half-steps and kinetic energy partials run as kernels over a fixed
number of workers; the host only folds per-worker partials and writes
output on the print cadence.

Quick Start:
    >>> from ljmd import StepDriver, create_device, read_input_script, read_restart
    >>> config = read_input_script("argon_108.inp")
    >>> system = read_restart(config.restart, config.natoms)
    >>> with create_device("host") as device:
    ...     with StepDriver(device, config.params, system, config.nsteps,
    ...                     config.nprint) as driver:
    ...         final = driver.run()
"""

__version__ = "0.1.0"

from . import plotting
from .device import ComputeDevice, DeviceConfig, create_device
from .engines import StepDriver
from .errors import (
    DeviceError,
    InputError,
    LJMDError,
    OutputError,
    RestartError,
    StagingError,
)
from .io import RunConfig, read_input_script, read_restart
from .system import ParticleSystem, SimulationParameters, SimulationState

__all__ = [
    "plotting",
    "ComputeDevice",
    "DeviceConfig",
    "create_device",
    "StepDriver",
    "DeviceError",
    "InputError",
    "LJMDError",
    "OutputError",
    "RestartError",
    "StagingError",
    "RunConfig",
    "read_input_script",
    "read_restart",
    "ParticleSystem",
    "SimulationParameters",
    "SimulationState",
]
