"""Output file formats."""

from .energy import ENERGY_HEADER, EnergyLogWriter, format_energy_line
from .xyz import XYZWriter

__all__ = [
    "ENERGY_HEADER",
    "EnergyLogWriter",
    "format_energy_line",
    "XYZWriter",
]
