"""Fixed-width energy log format."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ..base import FrameWriter

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from ...system import SimulationState

ENERGY_HEADER = (
    "     NFI            TEMP            EKIN                 EPOT              ETOT"
)


def format_energy_line(state: SimulationState) -> str:
    """Step, temperature, kinetic, potential and total energy, fixed width."""
    return "% 8d % 20.8f % 20.8f % 20.8f % 20.8f" % (
        state.step,
        state.temperature,
        state.kinetic_energy,
        state.potential_energy,
        state.total_energy,
    )


class EnergyLogWriter(FrameWriter):
    """Energy log writer: one ``format_energy_line`` per reported step."""

    def write(
        self, state: SimulationState, positions: NDArray | None = None, **kwargs: Any
    ) -> None:
        """Append the energy line of ``state``."""
        self._require_open().write(format_energy_line(state) + "\n")
        self._n_frames += 1
