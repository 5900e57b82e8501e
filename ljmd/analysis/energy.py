"""Energy analysis."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

import numpy as np
from numpy.typing import NDArray

if TYPE_CHECKING:
    from ..system import SimulationState

ENERGY_LOG_COLUMNS = ("step", "temperature", "kinetic", "potential", "total")


def read_energy_log(filename: str | Path) -> dict[str, NDArray]:
    """
    Read an energy log written by ``EnergyLogReporter``.

    Args:
        filename: Path to the log.

    Returns:
        Dictionary with one array per column (``step`` as integers).
    """
    data = np.loadtxt(filename, ndmin=2)
    if data.size == 0:
        data = np.empty((0, len(ENERGY_LOG_COLUMNS)))
    columns = {name: data[:, i] for i, name in enumerate(ENERGY_LOG_COLUMNS)}
    columns["step"] = columns["step"].astype(np.int64)
    return columns


class EnergyAnalyzer:
    """
    Energy and temperature analyzer.

    Collects one sample per reported step and computes running statistics:
    - Kinetic, potential and total energy
    - Temperature
    - Energy conservation (drift relative to the first sample)
    """

    def __init__(self) -> None:
        """Initialize energy analyzer."""
        self.reset()

    @property
    def name(self) -> str:
        """Analyzer name."""
        return "energy"

    def reset(self) -> None:
        """Reset statistics."""
        self._steps: list[int] = []
        self._kinetic: list[float] = []
        self._potential: list[float] = []
        self._total: list[float] = []
        self._temperature: list[float] = []

    @property
    def n_frames(self) -> int:
        """Number of samples collected."""
        return len(self._steps)

    def update(self, state: SimulationState, *args: Any, **kwargs: Any) -> None:
        """
        Record one sample.

        Extra arguments are accepted so the method can be used directly as
        a ``CallbackReporter`` callback.

        Args:
            state: Current simulation state.
        """
        self._steps.append(state.step)
        self._kinetic.append(float(state.kinetic_energy))
        self._potential.append(float(state.potential_energy))
        self._total.append(float(state.total_energy))
        self._temperature.append(float(state.temperature))

    def result(self) -> dict[str, Any]:
        """
        Get energy statistics.

        Returns:
            Dictionary with energy arrays and statistics.
        """
        total = np.array(self._total)
        results: dict[str, Any] = {
            "step": np.array(self._steps),
            "kinetic": np.array(self._kinetic),
            "potential": np.array(self._potential),
            "total": total,
            "temperature": np.array(self._temperature),
            "n_frames": self.n_frames,
        }

        if self.n_frames > 0:
            for key in ("kinetic", "potential", "total", "temperature"):
                results[f"{key}_mean"] = float(np.mean(results[key]))
                results[f"{key}_std"] = float(np.std(results[key]))
            results["relative_drift"] = relative_drift(total)

        return results

    @property
    def total_energy(self) -> NDArray[np.floating]:
        """Total energy array."""
        return np.array(self._total)

    @property
    def temperature_history(self) -> NDArray[np.floating]:
        """Temperature array."""
        return np.array(self._temperature)


def relative_drift(total: NDArray[np.floating]) -> float:
    """
    Largest deviation of total energy from its first value, relative to it.

    Returns 0 for fewer than two samples or a zero initial energy.
    """
    total = np.asarray(total, dtype=np.float64)
    if len(total) < 2 or total[0] == 0:
        return 0.0
    return float(np.max(np.abs(total - total[0])) / abs(total[0]))
