"""Abstract base class for compute devices."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

import numpy as np
from numpy.typing import NDArray

from ..errors import DeviceError

KERNEL_NAMES = ("azzero", "force", "verlet_first", "verlet_second", "ekin")
"""Kernels every device program must provide."""


@dataclass(eq=False)
class DeviceBuffer:
    """
    Handle to a one-dimensional array living on a compute device.

    Attributes:
        name: Label used in error messages.
        size: Number of elements.
        dtype: Element type.
        owner: Device that allocated the buffer.
    """

    name: str
    size: int
    dtype: np.dtype
    owner: ComputeDevice = field(repr=False)
    released: bool = False

    @property
    def nbytes(self) -> int:
        """Return buffer size in bytes."""
        return self.size * self.dtype.itemsize


class ComputeDevice(ABC):
    """
    Abstract base class for compute devices.

    A device owns buffers, compiles the kernel program and dispatches
    kernels over a fixed number of workers. All transfers and dispatches
    block until complete; every call is checked immediately and raises
    ``DeviceError`` on failure.

    Kernels partition particles by striding: worker ``g`` of ``W`` owns
    indices ``g, g + W, g + 2W, ...`` and writes only its own slots.
    """

    def __init__(self, n_workers: int, dtype: np.dtype | type = np.float64) -> None:
        """
        Initialize device bookkeeping.

        Args:
            n_workers: Global work size used for every kernel dispatch.
            dtype: Floating precision of buffers and scalar arguments.
        """
        if n_workers < 1:
            raise ValueError(f"n_workers must be positive, got {n_workers}")
        self._n_workers = int(n_workers)
        self._dtype = np.dtype(dtype)
        self._built = False
        self._buffers: list[DeviceBuffer] = []

    @property
    @abstractmethod
    def name(self) -> str:
        """Return device name."""
        ...

    @property
    def n_workers(self) -> int:
        """Return number of parallel workers."""
        return self._n_workers

    @property
    def dtype(self) -> np.dtype:
        """Return floating precision."""
        return self._dtype

    @property
    def is_built(self) -> bool:
        """Check if the kernel program has been built."""
        return self._built

    def allocate(self, size: int, name: str = "buffer") -> DeviceBuffer:
        """
        Allocate a device buffer of ``size`` elements of the device dtype.

        Raises:
            DeviceError: If the allocation fails.
        """
        if size < 1:
            raise DeviceError(f"allocate {name}", f"invalid size {size}")
        buffer = self._allocate(size, name)
        self._buffers.append(buffer)
        return buffer

    def free(self, buffer: DeviceBuffer) -> None:
        """Release a single buffer."""
        self._check_buffer(buffer, f"free {buffer.name}")
        self._free(buffer)
        buffer.released = True
        self._buffers.remove(buffer)

    def write(self, buffer: DeviceBuffer, host: NDArray) -> None:
        """
        Upload ``host`` into ``buffer`` (blocking).

        Raises:
            DeviceError: On size/dtype mismatch or transfer failure.
        """
        operation = f"write {buffer.name}"
        self._check_buffer(buffer, operation)
        self._check_host(buffer, host, operation)
        self._write(buffer, host)

    def read(self, buffer: DeviceBuffer, host: NDArray) -> NDArray:
        """
        Download ``buffer`` into the preallocated array ``host`` (blocking).

        Returns:
            The ``host`` array, now holding the buffer contents.

        Raises:
            DeviceError: On size/dtype mismatch or transfer failure.
        """
        operation = f"read {buffer.name}"
        self._check_buffer(buffer, operation)
        self._check_host(buffer, host, operation)
        self._read(buffer, host)
        return host

    def build(self) -> None:
        """
        Compile the kernel program.

        Raises:
            DeviceError: If the build fails or a kernel is missing.
        """
        self._build()
        self._built = True

    def launch(self, kernel: str, *args: Any) -> None:
        """
        Dispatch ``kernel`` over ``n_workers`` workers and wait for it.

        Buffer arguments are passed as ``DeviceBuffer``; Python/NumPy
        integers are sent as 32-bit ints and floats in the device precision.

        Raises:
            DeviceError: If the program is not built, the kernel is unknown,
                an argument is invalid, or the dispatch fails.
        """
        operation = f"launch {kernel}"
        if not self._built:
            raise DeviceError(operation, "program not built")
        if kernel not in KERNEL_NAMES:
            raise DeviceError(operation, "unknown kernel")
        converted = [self._convert_arg(arg, operation) for arg in args]
        self._launch(kernel, converted)

    def barrier(self) -> None:
        """Wait for all queued work; a no-op under blocking semantics."""
        pass

    def release(self) -> None:
        """Release every outstanding buffer and the device resources."""
        for buffer in list(self._buffers):
            self.free(buffer)
        self._release()

    def __enter__(self) -> ComputeDevice:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.release()

    def _check_buffer(self, buffer: DeviceBuffer, operation: str) -> None:
        if buffer.owner is not self:
            raise DeviceError(operation, "buffer belongs to another device")
        if buffer.released:
            raise DeviceError(operation, "buffer already released")

    def _check_host(self, buffer: DeviceBuffer, host: NDArray, operation: str) -> None:
        if not isinstance(host, np.ndarray):
            raise DeviceError(operation, "host side must be a NumPy array")
        if host.dtype != buffer.dtype:
            raise DeviceError(
                operation, f"host dtype {host.dtype} != buffer dtype {buffer.dtype}"
            )
        if host.size != buffer.size:
            raise DeviceError(
                operation, f"host size {host.size} != buffer size {buffer.size}"
            )
        if not host.flags.c_contiguous:
            raise DeviceError(operation, "host array must be C-contiguous")

    def _convert_arg(self, arg: Any, operation: str) -> Any:
        if isinstance(arg, DeviceBuffer):
            self._check_buffer(arg, operation)
            return self._buffer_arg(arg)
        if isinstance(arg, (bool, np.bool_)):
            raise DeviceError(operation, f"unsupported argument {arg!r}")
        if isinstance(arg, (int, np.integer)):
            return np.int32(arg)
        if isinstance(arg, (float, np.floating)):
            return self._dtype.type(arg)
        raise DeviceError(operation, f"unsupported argument type {type(arg).__name__}")

    @abstractmethod
    def _allocate(self, size: int, name: str) -> DeviceBuffer: ...

    @abstractmethod
    def _free(self, buffer: DeviceBuffer) -> None: ...

    @abstractmethod
    def _write(self, buffer: DeviceBuffer, host: NDArray) -> None: ...

    @abstractmethod
    def _read(self, buffer: DeviceBuffer, host: NDArray) -> None: ...

    @abstractmethod
    def _build(self) -> None: ...

    @abstractmethod
    def _buffer_arg(self, buffer: DeviceBuffer) -> Any: ...

    @abstractmethod
    def _launch(self, kernel: str, args: list[Any]) -> None: ...

    def _release(self) -> None:
        pass
