"""Energy reduction and analysis."""

from .energy import EnergyAnalyzer, read_energy_log, relative_drift
from .reduction import KineticEnergyReducer, fold_partials

__all__ = [
    "EnergyAnalyzer",
    "KineticEnergyReducer",
    "fold_partials",
    "read_energy_log",
    "relative_drift",
]
