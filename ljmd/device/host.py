"""Host (NumPy) compute device."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray

from ..errors import DeviceError
from . import host_kernels
from .base import ComputeDevice, DeviceBuffer


@dataclass(eq=False)
class HostBuffer(DeviceBuffer):
    """Device buffer backed by a private NumPy array."""

    array: NDArray | None = None


class HostDevice(ComputeDevice):
    """
    Reference device that runs the kernels with NumPy on the host.

    Workers are executed one after another by default. With
    ``max_threads > 1`` they run concurrently on a thread pool; this is
    safe because every worker writes only the slots it owns.

    Device memory is emulated by private arrays, so reads and writes are
    real copies, exactly like transfers to a discrete device.
    """

    def __init__(
        self,
        n_workers: int = 16,
        dtype: np.dtype | type = np.float64,
        max_threads: int = 1,
    ) -> None:
        """
        Initialize host device.

        Args:
            n_workers: Number of workers per kernel dispatch.
            dtype: Floating precision.
            max_threads: Threads used to run workers concurrently.
        """
        super().__init__(n_workers, dtype)
        if max_threads < 1:
            raise ValueError(f"max_threads must be positive, got {max_threads}")
        self._max_threads = max_threads
        self._executor: ThreadPoolExecutor | None = None
        self._kernels: dict[str, tuple[Any, int]] = {}

    @property
    def name(self) -> str:
        """Return device name."""
        return "host"

    @property
    def max_threads(self) -> int:
        """Return number of threads used for worker execution."""
        return self._max_threads

    def _allocate(self, size: int, name: str) -> DeviceBuffer:
        return HostBuffer(
            name=name,
            size=size,
            dtype=self.dtype,
            owner=self,
            array=np.zeros(size, dtype=self.dtype),
        )

    def _free(self, buffer: DeviceBuffer) -> None:
        buffer.array = None

    def _write(self, buffer: DeviceBuffer, host: NDArray) -> None:
        np.copyto(buffer.array, host.reshape(-1))

    def _read(self, buffer: DeviceBuffer, host: NDArray) -> None:
        np.copyto(host.reshape(-1), buffer.array)

    def _build(self) -> None:
        self._kernels = dict(host_kernels.KERNELS)
        if self._max_threads > 1 and self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=self._max_threads)

    def _buffer_arg(self, buffer: DeviceBuffer) -> Any:
        return buffer.array

    def _launch(self, kernel: str, args: list[Any]) -> None:
        operation = f"launch {kernel}"
        func, n_args = self._kernels[kernel]
        if len(args) != n_args:
            raise DeviceError(operation, f"expected {n_args} arguments, got {len(args)}")

        def run_worker(gid: int) -> None:
            func(gid, self._n_workers, *args)

        try:
            if self._executor is None:
                for gid in range(self._n_workers):
                    run_worker(gid)
            else:
                list(self._executor.map(run_worker, range(self._n_workers)))
        except (IndexError, ValueError, TypeError) as exc:
            raise DeviceError(operation, str(exc)) from exc

    def _release(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
