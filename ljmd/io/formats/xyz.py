"""XYZ trajectory format."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

import numpy as np
from numpy.typing import NDArray

from ..base import FrameWriter

if TYPE_CHECKING:
    from ...system import SimulationState


class XYZWriter(FrameWriter):
    """
    XYZ format trajectory writer.

    Frame layout:
        N
         nfi=<step> etot=<total energy>
        Ar  x y z
        ...
    """

    def __init__(self, filename: str | Path, element: str = "Ar") -> None:
        """
        Initialize XYZ writer.

        Args:
            filename: Output file path.
            element: Element label written for every particle.
        """
        super().__init__(filename)
        self.element = element

    def write(self, state: SimulationState, positions: NDArray, **kwargs: Any) -> None:
        """
        Write a single frame in XYZ format.

        Args:
            state: Aggregates of the reported step.
            positions: Positions snapshot, shape (N, 3).
        """
        out = self._require_open()
        positions = np.asarray(positions)
        n_atoms = len(positions)

        out.write("%d\n nfi=%d etot=%20.8f\n" % (n_atoms, state.step, state.total_energy))
        line = self.element + "  %20.8f %20.8f %20.8f\n"
        for x, y, z in positions:
            out.write(line % (x, y, z))

        self._n_frames += 1
