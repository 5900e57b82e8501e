"""Device dispatcher for selecting and creating compute devices."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

import numpy as np

from ..errors import DeviceError
from .base import ComputeDevice
from .host import HostDevice

# Available device kinds
DeviceKind = Literal["cpu", "gpu", "host"]
Precision = Literal["double", "single"]

DEVICE_KINDS: tuple[str, ...] = ("cpu", "gpu", "host")

DEFAULT_WORKERS: dict[str, int] = {"cpu": 16, "gpu": 1024, "host": 16}
"""Worker count used when none is given."""


def resolve_dtype(precision: Precision) -> np.dtype:
    """
    Map a precision name to its NumPy dtype.

    Raises:
        ValueError: If precision is unknown.
    """
    if precision == "double":
        return np.dtype(np.float64)
    if precision == "single":
        return np.dtype(np.float32)
    raise ValueError(f"Unknown precision: {precision}. Available: double, single")


@dataclass(frozen=True)
class DeviceConfig:
    """
    Device selection options.

    Attributes:
        kind: ``"cpu"``/``"gpu"`` for OpenCL, ``"host"`` for the NumPy device.
        n_workers: Worker count; ``None`` uses the kind's default.
        precision: ``"double"`` or ``"single"``.
        debug: Surface the program build log.
        max_threads: Host device only, threads running workers concurrently.
    """

    kind: DeviceKind = "host"
    n_workers: int | None = None
    precision: Precision = "double"
    debug: bool = False
    max_threads: int = 1

    @property
    def workers(self) -> int:
        """Return the effective worker count."""
        if self.n_workers is not None:
            return self.n_workers
        return DEFAULT_WORKERS[self.kind]

    @property
    def dtype(self) -> np.dtype:
        """Return the floating dtype for this precision."""
        return resolve_dtype(self.precision)


def create_device(config: DeviceConfig | DeviceKind, **kwargs) -> ComputeDevice:
    """
    Create a compute device.

    Args:
        config: A DeviceConfig, or a device kind name.
        **kwargs: DeviceConfig fields when ``config`` is a name.

    Returns:
        ComputeDevice instance, not yet built.

    Raises:
        ValueError: If the device kind is unknown.
        DeviceError: If the device cannot be initialized (including a
            missing pyopencl installation).

    Examples:
        >>> device = create_device("host", n_workers=4)
        >>> device = create_device(DeviceConfig(kind="gpu", precision="single"))
    """
    if isinstance(config, str):
        config = DeviceConfig(kind=config, **kwargs)

    if config.kind == "host":
        return HostDevice(
            n_workers=config.workers,
            dtype=config.dtype,
            max_threads=config.max_threads,
        )

    elif config.kind in ("cpu", "gpu"):
        try:
            from .opencl import OpenCLDevice
        except ImportError as exc:
            raise DeviceError(
                "initialize",
                "pyopencl is required for OpenCL devices. "
                "Install it with: pip install ljmd[opencl]",
            ) from exc

        return OpenCLDevice(
            kind=config.kind,
            n_workers=config.workers,
            dtype=config.dtype,
            debug=config.debug,
        )

    else:
        raise ValueError(
            f"Unknown device: {config.kind}. Available: {', '.join(DEVICE_KINDS)}"
        )
