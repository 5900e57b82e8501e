"""Input script, restart files and output formats."""

from .base import FrameWriter
from .formats import (
    ENERGY_HEADER,
    EnergyLogWriter,
    XYZWriter,
    format_energy_line,
)
from .inputs import RunConfig, parse_input_lines, read_input_script
from .restart import read_restart, write_restart

__all__ = [
    "FrameWriter",
    "ENERGY_HEADER",
    "EnergyLogWriter",
    "XYZWriter",
    "format_energy_line",
    "RunConfig",
    "parse_input_lines",
    "read_input_script",
    "read_restart",
    "write_restart",
]
