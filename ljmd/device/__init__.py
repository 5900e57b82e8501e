"""Compute device facility: buffers, kernel program, blocking transfers."""

from .base import KERNEL_NAMES, ComputeDevice, DeviceBuffer
from .dispatcher import (
    DEFAULT_WORKERS,
    DEVICE_KINDS,
    DeviceConfig,
    create_device,
    resolve_dtype,
)
from .host import HostDevice

__all__ = [
    "KERNEL_NAMES",
    "ComputeDevice",
    "DeviceBuffer",
    "HostDevice",
    "DeviceConfig",
    "DEFAULT_WORKERS",
    "DEVICE_KINDS",
    "create_device",
    "resolve_dtype",
]
