"""OpenCL compute device built on pyopencl."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from importlib import resources
from typing import Any

import numpy as np
import pyopencl as cl
from numpy.typing import NDArray

from ..errors import DeviceError
from .base import KERNEL_NAMES, ComputeDevice, DeviceBuffer

DOUBLE_FLAGS = "-cl-unsafe-math-optimizations"
SINGLE_FLAGS = "-D_USE_FLOAT -cl-denorms-are-zero -cl-unsafe-math-optimizations"

_DEVICE_TYPES = {
    "cpu": cl.device_type.CPU,
    "gpu": cl.device_type.GPU,
}


def kernel_source() -> str:
    """Return the OpenCL C source of the kernel program."""
    return resources.files("ljmd.device").joinpath("kernels.cl").read_text()


def build_options(dtype: np.dtype) -> str:
    """Compiler flags for the requested precision."""
    return SINGLE_FLAGS if np.dtype(dtype) == np.float32 else DOUBLE_FLAGS


@dataclass(eq=False)
class OpenCLBuffer(DeviceBuffer):
    """Device buffer backed by a ``pyopencl.Buffer``."""

    mem: cl.Buffer | None = None


class OpenCLDevice(ComputeDevice):
    """
    Compute device backed by an OpenCL CPU or GPU.

    Selects the first device of the requested type across all platforms,
    creates a context and an in-order command queue, and compiles
    ``kernels.cl``. Every pyopencl call is wrapped so a failure surfaces
    immediately as ``DeviceError`` naming the operation.
    """

    def __init__(
        self,
        kind: str = "gpu",
        n_workers: int = 1024,
        dtype: np.dtype | type = np.float64,
        debug: bool = False,
    ) -> None:
        """
        Initialize OpenCL environment.

        Args:
            kind: ``"cpu"`` or ``"gpu"``.
            n_workers: Global work size of every dispatch.
            dtype: Floating precision (float64 needs ``cl_khr_fp64``).
            debug: Print the program build log to stderr.

        Raises:
            DeviceError: If no matching device exists or setup fails.
        """
        super().__init__(n_workers, dtype)
        if kind not in _DEVICE_TYPES:
            raise DeviceError("initialize", f"unknown OpenCL device type {kind!r}")
        self._kind = kind
        self._debug = debug
        self._program: cl.Program | None = None
        self._kernels: dict[str, cl.Kernel] = {}

        try:
            self._device = self._select_device(_DEVICE_TYPES[kind])
            self._context = cl.Context(devices=[self._device])
            self._queue = cl.CommandQueue(self._context, self._device)
        except cl.Error as exc:
            raise DeviceError("initialize", str(exc)) from exc

    @staticmethod
    def _select_device(device_type: int) -> cl.Device:
        for platform in cl.get_platforms():
            try:
                devices = platform.get_devices(device_type=device_type)
            except cl.Error:
                # Platforms without a device of this type raise DEVICE_NOT_FOUND
                continue
            if devices:
                return devices[0]
        raise DeviceError(
            "initialize", f"no OpenCL device of type {cl.device_type.to_string(device_type)}"
        )

    @property
    def name(self) -> str:
        """Return device name."""
        return f"opencl-{self._kind}"

    @property
    def device_name(self) -> str:
        """Return the vendor name of the selected device."""
        return self._device.name

    def _allocate(self, size: int, name: str) -> DeviceBuffer:
        try:
            mem = cl.Buffer(
                self._context, cl.mem_flags.READ_WRITE, size * self.dtype.itemsize
            )
        except cl.Error as exc:
            raise DeviceError(f"allocate {name}", str(exc)) from exc
        return OpenCLBuffer(name=name, size=size, dtype=self.dtype, owner=self, mem=mem)

    def _free(self, buffer: DeviceBuffer) -> None:
        try:
            buffer.mem.release()
        except cl.Error as exc:
            raise DeviceError(f"free {buffer.name}", str(exc)) from exc
        buffer.mem = None

    def _write(self, buffer: DeviceBuffer, host: NDArray) -> None:
        try:
            cl.enqueue_copy(self._queue, buffer.mem, host, is_blocking=True)
        except cl.Error as exc:
            raise DeviceError(f"write {buffer.name}", str(exc)) from exc

    def _read(self, buffer: DeviceBuffer, host: NDArray) -> None:
        try:
            cl.enqueue_copy(self._queue, host, buffer.mem, is_blocking=True)
        except cl.Error as exc:
            raise DeviceError(f"read {buffer.name}", str(exc)) from exc

    def _build(self) -> None:
        options = build_options(self.dtype)
        try:
            program = cl.Program(self._context, kernel_source())
        except cl.Error as exc:
            raise DeviceError("create program", str(exc)) from exc
        try:
            program.build(options=options, devices=[self._device])
        except cl.Error as exc:
            if self._debug:
                self._print_build_log(program)
            raise DeviceError("build", str(exc)) from exc
        if self._debug:
            self._print_build_log(program)

        try:
            self._kernels = {name: cl.Kernel(program, name) for name in KERNEL_NAMES}
        except cl.Error as exc:
            raise DeviceError("create kernel", str(exc)) from exc
        self._program = program

    def _print_build_log(self, program: cl.Program) -> None:
        log = program.get_build_info(self._device, cl.program_build_info.LOG)
        print(f"\nLog: \n\n {log}", file=sys.stderr)

    def _buffer_arg(self, buffer: DeviceBuffer) -> Any:
        return buffer.mem

    def _launch(self, kernel: str, args: list[Any]) -> None:
        operation = f"launch {kernel}"
        handle = self._kernels[kernel]
        try:
            handle.set_args(*args)
            event = cl.enqueue_nd_range_kernel(
                self._queue, handle, (self._n_workers,), None
            )
            event.wait()
        except cl.Error as exc:
            raise DeviceError(operation, str(exc)) from exc

    def barrier(self) -> None:
        """Block until the command queue is drained."""
        try:
            self._queue.finish()
        except cl.Error as exc:
            raise DeviceError("barrier", str(exc)) from exc

    def _release(self) -> None:
        self._kernels.clear()
        self._program = None
