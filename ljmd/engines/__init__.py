"""Step driver, staging and reporters."""

from .driver import DriverPhase, StepDriver
from .reporters import (
    CallbackReporter,
    ConsoleReporter,
    EnergyLogReporter,
    EnergyReporter,
    Reporter,
    ReporterGroup,
    XYZTrajectoryReporter,
)
from .staging import StagedReadback

__all__ = [
    "DriverPhase",
    "StepDriver",
    "StagedReadback",
    "Reporter",
    "ReporterGroup",
    "ConsoleReporter",
    "EnergyLogReporter",
    "XYZTrajectoryReporter",
    "CallbackReporter",
    "EnergyReporter",
]
