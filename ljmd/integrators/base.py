"""Base interface for integrators."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..system import DeviceParticles


class Integrator(ABC):
    """
    Abstract base class for split time integrators.

    Integrators advance the device particle buffers in two phases so the
    force evaluation can run strictly between ``first_half`` and
    ``second_half``.
    """

    @abstractmethod
    def first_half(self, particles: DeviceParticles) -> None:
        """Advance up to the point where new forces are needed."""
        ...

    @abstractmethod
    def second_half(self, particles: DeviceParticles) -> None:
        """Finish the step using the freshly computed forces."""
        ...

    @property
    @abstractmethod
    def timestep(self) -> float:
        """Return the integration timestep."""
        ...
