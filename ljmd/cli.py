"""Command line entry point: ``ljmd <device> [thread-count] < input``."""

from __future__ import annotations

import argparse
import sys
import time
from typing import TextIO

from .device import DEVICE_KINDS, DeviceConfig, create_device
from .engines import ConsoleReporter, EnergyLogReporter, StepDriver, XYZTrajectoryReporter
from .errors import DeviceError, InputError, RestartError
from .io import read_input_script, read_restart

EXIT_OK = 0
EXIT_USAGE = 1
EXIT_INPUT = 1
EXIT_OUTPUT = 2
EXIT_RESTART = 3
EXIT_DEVICE_INIT = 4
EXIT_DEVICE_RUN = 5


class _ArgumentParser(argparse.ArgumentParser):
    """Argument parser that exits with status 1 on usage errors."""

    def error(self, message: str):
        self.print_usage(sys.stderr)
        print(f"\nError. {message}", file=sys.stderr)
        print("device = " + " | ".join(DEVICE_KINDS), file=sys.stderr)
        sys.exit(EXIT_USAGE)


def _thread_count(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid thread count: {text!r}") from None
    if value < 1:
        raise argparse.ArgumentTypeError("the number of threads must be at least 1")
    return value


def build_parser() -> argparse.ArgumentParser:
    """Create the command line parser."""
    parser = _ArgumentParser(
        prog="ljmd",
        description="Lennard-Jones molecular dynamics on OpenCL or host devices. "
        "The input script is read from standard input.",
    )
    parser.add_argument("device", choices=DEVICE_KINDS, help="compute device")
    parser.add_argument(
        "threads",
        nargs="?",
        type=_thread_count,
        default=None,
        help="number of workers (default: cpu 16, gpu 1024, host 16)",
    )
    parser.add_argument(
        "--single", action="store_true", help="run in single precision"
    )
    parser.add_argument(
        "--debug", action="store_true", help="print the program build log"
    )
    parser.add_argument(
        "--profile", action="store_true", help="print the wall-clock execution time"
    )
    return parser


def main(
    argv: list[str] | None = None,
    stdin: TextIO | None = None,
    stdout: TextIO | None = None,
) -> int:
    """
    Run a simulation from the command line.

    Args:
        argv: Arguments without the program name (defaults to sys.argv).
        stdin: Input script stream (defaults to sys.stdin).
        stdout: Console output stream (defaults to sys.stdout).

    Returns:
        Process exit status: 0 on success, 1 for usage or input script
        errors, 2 if an output file cannot be written, 3 for restart
        errors, 4 if the device cannot be initialized, 5 if a device
        operation fails during the run.
    """
    start_time = time.perf_counter()
    args = build_parser().parse_args(argv)
    stdin = stdin if stdin is not None else sys.stdin
    stdout = stdout if stdout is not None else sys.stdout

    config = DeviceConfig(
        kind=args.device,
        n_workers=args.threads,
        precision="single" if args.single else "double",
        debug=args.debug,
    )

    try:
        device = create_device(config)
        device.build()
    except DeviceError as exc:
        print(f"Program Error! Device was not initialized correctly: {exc}", file=sys.stderr)
        return EXIT_DEVICE_INIT

    with device:
        try:
            run_config = read_input_script(stdin)
        except InputError as exc:
            print(f"problem reading input: {exc}", file=sys.stderr)
            return EXIT_INPUT

        try:
            system = read_restart(run_config.restart, run_config.natoms, device.dtype)
        except RestartError as exc:
            print(f"cannot read restart file: {exc}", file=sys.stderr)
            return EXIT_RESTART

        reporters = [
            ConsoleReporter(stdout),
            EnergyLogReporter(run_config.energy_log),
            XYZTrajectoryReporter(run_config.trajectory),
        ]

        try:
            with StepDriver(
                device,
                run_config.params,
                system,
                nsteps=run_config.nsteps,
                nprint=run_config.nprint,
                reporters=reporters,
            ) as driver:
                driver.run()
        except DeviceError as exc:
            print(f"Program Error! {exc}", file=sys.stderr)
            return EXIT_DEVICE_RUN
        except OSError as exc:
            print(f"cannot write output: {exc}", file=sys.stderr)
            return EXIT_OUTPUT

    if args.profile:
        print(
            "Time of execution = %.3g (seconds)" % (time.perf_counter() - start_time),
            file=stdout,
        )
    return EXIT_OK
