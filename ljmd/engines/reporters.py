"""Reporter implementations for simulation output."""

from __future__ import annotations

import sys
from abc import ABC, abstractmethod
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any, TextIO

import numpy as np

from ..io.formats import ENERGY_HEADER, EnergyLogWriter, XYZWriter, format_energy_line

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from ..system import SimulationState


class Reporter(ABC):
    """
    Abstract base class for simulation reporters.

    The step driver decides when output happens (step 0 and every
    ``nprint`` steps) and calls every reporter at those points.

    Lifecycle: ``initialize`` once before step 0, ``report`` per output
    step, ``finalize`` after a completed run, and ``close`` always, also
    when the run was aborted.
    """

    @abstractmethod
    def report(self, state: SimulationState, positions: NDArray, **kwargs: Any) -> None:
        """
        Generate report for an output step.

        Args:
            state: Aggregates labelled with the output step.
            positions: Positions snapshot, shape (N, 3).
            **kwargs: Additional information.
        """
        ...

    def initialize(self, n_atoms: int, nsteps: int) -> None:
        """Initialize reporter (called before step 0)."""
        pass

    def finalize(self) -> None:
        """Finish output of a completed run."""
        pass

    def close(self) -> None:
        """Release files and streams."""
        pass


class ReporterGroup:
    """
    Collection of reporters driven together.
    """

    def __init__(self, reporters: list[Reporter] | None = None) -> None:
        """
        Initialize reporter group.

        Args:
            reporters: List of reporters to manage.
        """
        self._reporters: list[Reporter] = list(reporters) if reporters else []

    def __len__(self) -> int:
        return len(self._reporters)

    def add(self, reporter: Reporter) -> None:
        """Add a reporter to the group."""
        self._reporters.append(reporter)

    def remove(self, reporter: Reporter) -> None:
        """Remove a reporter from the group."""
        self._reporters.remove(reporter)

    def initialize(self, n_atoms: int, nsteps: int) -> None:
        """Initialize all reporters."""
        for reporter in self._reporters:
            reporter.initialize(n_atoms, nsteps)

    def report(self, state: SimulationState, positions: NDArray, **kwargs: Any) -> None:
        """Run all reporters."""
        for reporter in self._reporters:
            reporter.report(state, positions, **kwargs)

    def finalize(self) -> None:
        """Finalize all reporters."""
        for reporter in self._reporters:
            reporter.finalize()

    def close(self) -> None:
        """Close all reporters."""
        for reporter in self._reporters:
            reporter.close()


class ConsoleReporter(Reporter):
    """
    Reporter that prints the run summary to a text stream.

    Prints a start line and column header, one energy line per output
    step, and ``Simulation Done.`` after a completed run.
    """

    def __init__(self, file: TextIO | None = None) -> None:
        """
        Initialize console reporter.

        Args:
            file: Output stream (defaults to stdout).
        """
        self._file = file if file is not None else sys.stdout

    def initialize(self, n_atoms: int, nsteps: int) -> None:
        """Write start line and header."""
        self._file.write(
            "Starting simulation with %d atoms for %d steps.\n" % (n_atoms, nsteps)
        )
        self._file.write(ENERGY_HEADER + "\n")

    def report(self, state: SimulationState, positions: NDArray, **kwargs: Any) -> None:
        """Write the energy line."""
        self._file.write(format_energy_line(state) + "\n")
        self._file.flush()

    def finalize(self) -> None:
        """Write the completion line."""
        self._file.write("Simulation Done.\n")
        self._file.flush()


class _FileReporter(Reporter):
    """Reporter writing through a FrameWriter opened for the whole run."""

    def __init__(self, writer) -> None:
        self._writer = writer

    @property
    def filename(self) -> Path:
        """Output file path."""
        return self._writer.filename

    @property
    def n_frames(self) -> int:
        """Number of frames written."""
        return self._writer.n_frames

    def initialize(self, n_atoms: int, nsteps: int) -> None:
        """Open (truncate) the output file."""
        self._writer.open()

    def report(self, state: SimulationState, positions: NDArray, **kwargs: Any) -> None:
        """Append one frame."""
        self._writer.write(state, positions)

    def finalize(self) -> None:
        """Flush buffered output."""
        self._writer.flush()

    def close(self) -> None:
        """Close the output file."""
        self._writer.close()


class EnergyLogReporter(_FileReporter):
    """Reporter that writes the fixed-width energy log."""

    def __init__(self, filename: str | Path) -> None:
        """
        Initialize energy log reporter.

        Args:
            filename: Energy log path.
        """
        super().__init__(EnergyLogWriter(filename))


class XYZTrajectoryReporter(_FileReporter):
    """Reporter that appends one XYZ frame per output step."""

    def __init__(self, filename: str | Path, element: str = "Ar") -> None:
        """
        Initialize trajectory reporter.

        Args:
            filename: Trajectory path.
            element: Element label for every particle.
        """
        super().__init__(XYZWriter(filename, element=element))


class CallbackReporter(Reporter):
    """
    Reporter that calls a user-defined function.

    Allows arbitrary custom reporting logic.
    """

    def __init__(self, callback: Callable[[SimulationState, NDArray], None]) -> None:
        """
        Initialize callback reporter.

        Args:
            callback: Function to call with (state, positions).
        """
        self._callback = callback

    def report(self, state: SimulationState, positions: NDArray, **kwargs: Any) -> None:
        """Call the callback function."""
        self._callback(state, positions)


class EnergyReporter(Reporter):
    """
    Reporter that tracks energy components over time.
    """

    def __init__(self) -> None:
        """Initialize energy reporter."""
        self._steps: list[int] = []
        self._kinetic: list[float] = []
        self._potential: list[float] = []
        self._temperature: list[float] = []

    def report(self, state: SimulationState, positions: NDArray, **kwargs: Any) -> None:
        """Record energies."""
        self._steps.append(state.step)
        self._kinetic.append(float(state.kinetic_energy))
        self._potential.append(float(state.potential_energy))
        self._temperature.append(float(state.temperature))

    @property
    def steps(self) -> np.ndarray:
        """Return reported step indices."""
        return np.array(self._steps, dtype=np.int64)

    @property
    def kinetic_energy(self) -> np.ndarray:
        """Return kinetic energy time series."""
        return np.array(self._kinetic)

    @property
    def potential_energy(self) -> np.ndarray:
        """Return potential energy time series."""
        return np.array(self._potential)

    @property
    def total_energy(self) -> np.ndarray:
        """Return total energy time series."""
        return self.kinetic_energy + self.potential_energy

    @property
    def temperature(self) -> np.ndarray:
        """Return temperature time series."""
        return np.array(self._temperature)

    def clear(self) -> None:
        """Clear stored data."""
        self._steps.clear()
        self._kinetic.clear()
        self._potential.clear()
        self._temperature.clear()
