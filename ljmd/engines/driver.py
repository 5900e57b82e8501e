"""Step driver: sequences the device kernels and the staged readbacks."""

from __future__ import annotations

import time
from enum import Enum
from typing import TYPE_CHECKING

from ..analysis.reduction import KineticEnergyReducer, fold_partials
from ..forcefields import LennardJonesForce
from ..integrators import VelocityVerletIntegrator
from ..system import DeviceParticles, SimulationState
from .reporters import Reporter, ReporterGroup
from .staging import StagedReadback

if TYPE_CHECKING:
    from ..device import ComputeDevice
    from ..system import ParticleSystem, SimulationParameters


class DriverPhase(Enum):
    """Lifecycle of a StepDriver."""

    INITIALIZING = "initializing"
    STEPPING = "stepping"
    TERMINAL = "terminal"


class StepDriver:
    """
    Velocity Verlet MD run on a compute device.

    The particle state lives in device buffers for the whole run; the host
    only sees staged copies taken on the print cadence. Step ``nfi`` runs:

    1. first half-step integration;
    2. if ``nfi % nprint == nprint - 1``: capture positions;
    3. force evaluation;
    4. same condition: capture potential energy partials;
    5. second half-step integration;
    6. same condition: kinetic energy kernel, capture its partials;
    7. if ``nfi % nprint == 0``: barrier, consume the three staged values,
       fold them and report, labelled ``nfi``.

    Note:
        With ``nprint > 1`` the values reported as step ``nfi`` were
        captured during step ``nfi - 1``: positions after its drift,
        energies after its force and second half-kick. Only with
        ``nprint == 1`` do capture and report fall on the same step.
        Step 0 output always comes from the initial evaluation.

    Example:
        with StepDriver(device, params, system, nsteps=1000, nprint=100,
                        reporters=[ConsoleReporter()]) as driver:
            final = driver.run()

    Attributes:
        params: Run parameters.
        nsteps: Number of integration steps.
        nprint: Output interval.
    """

    def __init__(
        self,
        device: ComputeDevice,
        params: SimulationParameters,
        system: ParticleSystem,
        nsteps: int,
        nprint: int = 1,
        reporters: list[Reporter] | None = None,
    ) -> None:
        """
        Initialize driver and allocate device buffers.

        Args:
            device: Compute device; built here if it is not yet.
            params: Run parameters.
            system: Initial positions and velocities.
            nsteps: Number of integration steps.
            nprint: Output interval in steps.
            reporters: Output reporters.

        Raises:
            ValueError: On inconsistent sizes or a non-positive interval.
            DeviceError: If building the program or an allocation fails.
        """
        if nprint < 1:
            raise ValueError(f"nprint must be positive, got {nprint}")
        if nsteps < 0:
            raise ValueError(f"nsteps must not be negative, got {nsteps}")
        if system.n_atoms != params.natoms:
            raise ValueError(
                f"system has {system.n_atoms} particles, parameters say {params.natoms}"
            )

        self.params = params
        self.nsteps = nsteps
        self.nprint = nprint

        self._device = device
        self._system = system
        self._reporters = ReporterGroup(reporters)
        self._phase = DriverPhase.INITIALIZING

        if not device.is_built:
            device.build()

        n = params.natoms
        workers = device.n_workers
        self._particles = DeviceParticles(device, n)
        self._force = LennardJonesForce(device, params)
        self._integrator = VelocityVerletIntegrator(device, params)
        self._reducer = KineticEnergyReducer(device, params)

        self._staged_positions = StagedReadback("positions", (3, n), device.dtype)
        self._staged_epot = StagedReadback("epot", (workers,), device.dtype)
        self._staged_ekin = StagedReadback("ekin", (workers,), device.dtype)

        self._total_steps = 0
        self._wall_time = 0.0

    @property
    def phase(self) -> DriverPhase:
        """Return current lifecycle phase."""
        return self._phase

    @property
    def device(self) -> ComputeDevice:
        """Return compute device."""
        return self._device

    @property
    def particles(self) -> DeviceParticles:
        """Return device particle buffers."""
        return self._particles

    @property
    def reporters(self) -> ReporterGroup:
        """Return reporter group."""
        return self._reporters

    @property
    def performance(self) -> dict[str, float]:
        """Return performance statistics."""
        if self._wall_time == 0:
            return {"wall_time": 0.0, "steps_per_second": 0.0, "total_steps": 0}

        return {
            "wall_time": self._wall_time,
            "steps_per_second": self._total_steps / self._wall_time,
            "total_steps": self._total_steps,
        }

    def add_reporter(self, reporter: Reporter) -> None:
        """Add a reporter; only before initialization."""
        self._require(DriverPhase.INITIALIZING, "add_reporter")
        self._reporters.add(reporter)

    def _require(self, phase: DriverPhase, operation: str) -> None:
        if self._phase is not phase:
            raise RuntimeError(
                f"{operation} requires phase {phase.value}, driver is {self._phase.value}"
            )

    def initialize(self) -> SimulationState:
        """
        Upload the system, evaluate step 0 and report it.

        Returns:
            State at step 0.
        """
        self._require(DriverPhase.INITIALIZING, "initialize")
        p = self._particles

        p.upload(self._system)
        self._force.zero(p)
        epot = self._force.compute_with_energy(p)
        ekin, temp = self._reducer.compute(p)
        positions = p.download_positions()

        state = SimulationState(
            step=0, potential_energy=epot, kinetic_energy=ekin, temperature=temp
        )

        self._reporters.initialize(self.params.natoms, self.nsteps)
        self._reporters.report(state, positions.T)
        self._phase = DriverPhase.STEPPING
        return state

    def step(self, state: SimulationState) -> SimulationState:
        """
        Advance one integration step.

        Args:
            state: State of the previous step; updated in place.

        Returns:
            The same state object, now labelled with the new step. Energies
            and temperature change only on output steps.
        """
        self._require(DriverPhase.STEPPING, "step")
        p = self._particles
        nfi = state.step + 1
        capture = nfi % self.nprint == self.nprint - 1

        self._integrator.first_half(p)
        if capture:
            self._staged_positions.capture(nfi, p.download_positions)

        self._force.compute(p)
        if capture:
            self._staged_epot.capture(nfi, self._force.download_partials)

        self._integrator.second_half(p)
        if capture:
            self._reducer.launch(p)
            self._staged_ekin.capture(nfi, self._reducer.download_partials)

        state.step = nfi
        if nfi % self.nprint == 0:
            self._device.barrier()
            _, positions = self._staged_positions.consume()
            _, epot = self._staged_epot.consume()
            _, ekin = self._staged_ekin.consume()

            state.potential_energy = fold_partials(epot)
            state.kinetic_energy, state.temperature = self._reducer.finalize(ekin)
            self._reporters.report(state, positions.T)

        return state

    def run(self) -> SimulationState:
        """
        Initialize, run all steps and finalize.

        Returns:
            Final simulation state.
        """
        start_time = time.perf_counter()
        try:
            state = self.initialize()
            for _ in range(self.nsteps):
                state = self.step(state)
                self._total_steps += 1
        finally:
            self._wall_time += time.perf_counter() - start_time

        self.finalize()
        return state

    def finalize(self) -> None:
        """Finish reporter output and release device buffers."""
        self._require(DriverPhase.STEPPING, "finalize")
        self._reporters.finalize()
        self.close()

    def close(self) -> None:
        """Close reporters and release device buffers; idempotent."""
        if self._phase is DriverPhase.TERMINAL:
            return
        self._phase = DriverPhase.TERMINAL
        for slot in (self._staged_positions, self._staged_epot, self._staged_ekin):
            slot.invalidate()
        try:
            self._reporters.close()
        finally:
            self._particles.release()
            self._force.release()
            self._reducer.release()

    def __enter__(self) -> StepDriver:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
