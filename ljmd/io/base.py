"""Base class for per-interval text output."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Any

from ..errors import OutputError

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from ..system import SimulationState


class FrameWriter(ABC):
    """
    Abstract base class for per-interval output files.

    Writers append one frame per reported step to a text file opened once
    for the whole run.

    Example:
        with XYZWriter("argon.xyz") as writer:
            writer.write(state, positions)
    """

    def __init__(self, filename: str | Path) -> None:
        """
        Initialize writer.

        Args:
            filename: Output file path.
        """
        self.filename = Path(filename)
        self._file = None
        self._n_frames = 0

    @abstractmethod
    def write(self, state: SimulationState, positions: NDArray, **kwargs: Any) -> None:
        """
        Write a single frame.

        Args:
            state: Aggregates of the reported step.
            positions: Positions snapshot, shape (N, 3).
        """
        ...

    def open(self) -> None:
        """
        Open file for writing, truncating any previous content.

        Raises:
            OutputError: If the file cannot be created.
        """
        try:
            self._file = self.filename.open("w")
        except OSError as exc:
            raise OutputError(f"cannot open {self.filename}: {exc}") from exc

    def flush(self) -> None:
        """Flush buffered output."""
        if self._file is not None:
            self._file.flush()

    def close(self) -> None:
        """Close file."""
        if self._file is not None:
            self._file.close()
            self._file = None

    def _require_open(self):
        if self._file is None:
            raise RuntimeError("File not open. Use context manager or call open().")
        return self._file

    def __enter__(self) -> FrameWriter:
        """Context manager entry."""
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.close()

    @property
    def n_frames(self) -> int:
        """Number of frames written."""
        return self._n_frames
