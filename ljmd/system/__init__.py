"""Particle state, run parameters and box."""

from .box import wrap_displacement
from .params import KBOLTZ, MVSQ2E, DerivedConstants, SimulationParameters
from .state import (
    DeviceParticles,
    ParticleSystem,
    SimulationState,
    temperature_from_kinetic,
)

__all__ = [
    "wrap_displacement",
    "KBOLTZ",
    "MVSQ2E",
    "DerivedConstants",
    "SimulationParameters",
    "DeviceParticles",
    "ParticleSystem",
    "SimulationState",
    "temperature_from_kinetic",
]
