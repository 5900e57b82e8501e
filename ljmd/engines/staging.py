"""Single-slot host staging for device readbacks."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import numpy as np
from numpy.typing import NDArray

from ..errors import StagingError


class StagedReadback:
    """
    Host scratch array holding at most one downloaded generation.

    The slot is either empty or pending. ``capture`` downloads into the
    scratch array and marks it pending; ``consume`` hands the data out once
    and empties the slot. The same array is reused for every capture, so a
    consumer must finish with the data before the next capture.

    Example:
        slot = StagedReadback("epot", (n_workers,), np.float64)
        slot.capture(step, force.download_partials)
        ...
        step, partials = slot.consume()
    """

    def __init__(self, name: str, shape: tuple[int, ...], dtype: Any) -> None:
        """
        Initialize staging slot.

        Args:
            name: Label used in error messages.
            shape: Shape of the host scratch array.
            dtype: Element type of the host scratch array.
        """
        self.name = name
        self._host = np.zeros(shape, dtype=dtype)
        self._step: int | None = None

    @property
    def pending(self) -> bool:
        """Check if a captured generation is waiting to be consumed."""
        return self._step is not None

    @property
    def captured_step(self) -> int | None:
        """Step at which the pending generation was captured."""
        return self._step

    def capture(self, step: int, download: Callable[[NDArray], Any]) -> None:
        """
        Download a new generation into the scratch array.

        Args:
            step: Step index the data belongs to.
            download: Callable that fills the array it is given.

        Raises:
            StagingError: If the previous generation was never consumed.
        """
        if self.pending:
            raise StagingError(
                f"{self.name}: generation from step {self._step} not yet consumed"
            )
        download(self._host)
        self._step = step

    def consume(self) -> tuple[int, NDArray]:
        """
        Take the pending generation and empty the slot.

        Returns:
            Tuple of (capture step, scratch array). The array is only valid
            until the next capture.

        Raises:
            StagingError: If nothing is pending.
        """
        if not self.pending:
            raise StagingError(f"{self.name}: nothing staged")
        step, self._step = self._step, None
        return step, self._host

    def invalidate(self) -> None:
        """Drop any pending generation."""
        self._step = None
