"""Tests for the step driver and reporters."""

import io

import numpy as np
import pytest

from ljmd.analysis import EnergyAnalyzer
from ljmd.device import HostDevice
from ljmd.engines import (
    CallbackReporter,
    ConsoleReporter,
    DriverPhase,
    EnergyLogReporter,
    EnergyReporter,
    StepDriver,
    XYZTrajectoryReporter,
)
from ljmd.engines.reporters import Reporter, ReporterGroup
from ljmd.system import KBOLTZ, MVSQ2E, ParticleSystem, SimulationParameters


def pair_force(d, eps=0.2379, sigma=3.401):
    """Closed-form force on the particle at displacement d from its partner."""
    r2 = d @ d
    c12 = 4.0 * eps * sigma**12
    c6 = 4.0 * eps * sigma**6
    return d * (12.0 * c12 / r2**7 - 6.0 * c6 / r2**4), c12 / r2**6 - c6 / r2**3


class Recorder(Reporter):
    """Reporter keeping a copy of everything it is given."""

    def __init__(self):
        self.initialized = None
        self.finalized = False
        self.closed = False
        self.records = []

    def initialize(self, n_atoms, nsteps):
        self.initialized = (n_atoms, nsteps)

    def report(self, state, positions, **kwargs):
        self.records.append(
            (
                state.step,
                state.potential_energy,
                state.kinetic_energy,
                state.temperature,
                np.array(positions),
            )
        )

    def finalize(self):
        self.finalized = True

    def close(self):
        self.closed = True

    @property
    def steps(self):
        return [r[0] for r in self.records]


@pytest.fixture
def device():
    """Built host device with eight workers."""
    with HostDevice(n_workers=8) as device:
        device.build()
        yield device


@pytest.fixture
def pair():
    """Two argon atoms 4 A apart at rest."""
    params = SimulationParameters(
        natoms=2, mass=39.95, epsilon=0.2379, sigma=3.401, rcut=8.0, box=20.0, dt=5.0
    )
    system = ParticleSystem.create(np.array([[0.0, 0.0, 0.0], [4.0, 0.0, 0.0]]))
    return params, system


@pytest.fixture
def cluster():
    """27 argon atoms on a perturbed lattice with small random velocities."""
    rng = np.random.default_rng(3)
    grid = np.arange(3) * 5.0 + 2.5
    positions = np.array(np.meshgrid(grid, grid, grid)).reshape(3, -1).T
    positions += rng.uniform(-0.2, 0.2, positions.shape)
    velocities = rng.normal(scale=5e-4, size=positions.shape)
    velocities -= velocities.mean(axis=0)
    params = SimulationParameters(
        natoms=27, mass=39.948, epsilon=0.2379, sigma=3.405, rcut=7.0, box=15.0, dt=5.0
    )
    return params, ParticleSystem.create(positions, velocities)


class TestTwoParticleScenario:
    """End-to-end run of one step with output every step."""

    def test_one_step(self, device, pair):
        """Test forces along x, energies, and the half-kick kinetic energy."""
        params, system = pair
        recorder = Recorder()
        with StepDriver(device, params, system, nsteps=1, nprint=1, reporters=[recorder]) as driver:
            driver.run()

        assert recorder.steps == [0, 1]

        f0, e0 = pair_force(np.array([-4.0, 0.0, 0.0]))
        dtmf = 0.5 * params.dt / MVSQ2E / params.mass
        v_half = dtmf * f0
        r_new = np.array([[0.0, 0.0, 0.0], [4.0, 0.0, 0.0]]) + params.dt * np.array(
            [v_half, -v_half]
        )
        f1, e1 = pair_force(r_new[0] - r_new[1])
        v_new = v_half + dtmf * f1
        ekin = 0.5 * MVSQ2E * params.mass * 2.0 * (v_new @ v_new)

        step, epot, kin, temp, positions = recorder.records[0]
        assert np.isclose(epot, e0, rtol=1e-12)
        assert kin == 0.0
        assert temp == 0.0

        step, epot, kin, temp, positions = recorder.records[1]
        assert step == 1
        np.testing.assert_allclose(positions, r_new, rtol=1e-12)
        assert positions[0, 1] == 0.0 and positions[0, 2] == 0.0
        assert np.isclose(epot, e1, rtol=1e-10)
        assert kin > 0
        assert np.isclose(kin, ekin, rtol=1e-10)
        assert np.isclose(temp, 2.0 * ekin / (3.0 * KBOLTZ), rtol=1e-10)

    def test_pair_moves_along_x(self, device, pair):
        """Test the particles respond to the force along x only."""
        params, system = pair
        with StepDriver(device, params, system, nsteps=1) as driver:
            state = driver.initialize()
            driver.step(state)
            final = driver.particles.to_system()

        f0, _ = pair_force(np.array([-4.0, 0.0, 0.0]))
        assert np.sign(final.velocities[0, 0]) == np.sign(f0[0])
        assert final.velocities[0, 0] == -final.velocities[1, 0]
        assert np.all(final.velocities[:, 1:] == 0)


class TestCadence:
    """Test output cadence and the one-step-delayed readback."""

    def test_output_steps(self, device, cluster):
        """Test step 0 and every nprint-th step are reported."""
        params, system = cluster
        recorder = Recorder()
        with StepDriver(device, params, system, nsteps=7, nprint=3, reporters=[recorder]) as driver:
            final = driver.run()

        assert recorder.steps == [0, 3, 6]
        assert final.step == 7
        assert recorder.initialized == (27, 7)
        assert recorder.finalized and recorder.closed

    def test_report_lags_one_step(self, device, cluster):
        """Test step 3 with nprint 3 reports what step 2 reports with nprint 1."""
        params, system = cluster
        every = Recorder()
        with StepDriver(device, params, system, nsteps=3, nprint=1, reporters=[every]) as driver:
            driver.run()
        sparse = Recorder()
        with StepDriver(device, params, system, nsteps=3, nprint=3, reporters=[sparse]) as driver:
            driver.run()

        step2 = every.records[2]
        step3 = sparse.records[1]
        assert step3[0] == 3
        assert step3[1] == step2[1]
        assert step3[2] == step2[2]
        np.testing.assert_array_equal(step3[4], step2[4])
        assert every.records[3][1] != step3[1]

    def test_step_zero_same_for_any_interval(self, device, cluster):
        """Test the initial report comes from the initial evaluation."""
        params, system = cluster
        a, b = Recorder(), Recorder()
        with StepDriver(device, params, system, nsteps=0, nprint=1, reporters=[a]) as driver:
            driver.run()
        with StepDriver(device, params, system, nsteps=0, nprint=5, reporters=[b]) as driver:
            driver.run()

        assert a.steps == b.steps == [0]
        assert a.records[0][1] == b.records[0][1]
        np.testing.assert_array_equal(a.records[0][4], system.positions)

    def test_trailing_capture_discarded(self, device, cluster):
        """Test a capture without a following output step is dropped."""
        params, system = cluster
        recorder = Recorder()
        with StepDriver(device, params, system, nsteps=4, nprint=5, reporters=[recorder]) as driver:
            driver.run()
        assert recorder.steps == [0]


class TestEnergyConservation:
    """Test the integrator on a stable configuration."""

    def test_drift_below_one_percent(self, device):
        """Test total energy drift over 200 steps."""
        rng = np.random.default_rng(11)
        grid = np.arange(4) * 3.9 + 1.95
        positions = np.array(np.meshgrid(grid, grid, grid)).reshape(3, -1).T
        velocities = rng.normal(scale=6e-4, size=positions.shape)
        velocities -= velocities.mean(axis=0)
        params = SimulationParameters(
            natoms=64, mass=39.948, epsilon=0.2379, sigma=3.405, rcut=7.3, box=15.6, dt=5.0
        )
        analyzer = EnergyAnalyzer()
        with StepDriver(
            device,
            params,
            ParticleSystem.create(positions, velocities),
            nsteps=200,
            nprint=10,
            reporters=[CallbackReporter(analyzer.update)],
        ) as driver:
            driver.run()

        result = analyzer.result()
        assert result["n_frames"] == 21
        assert result["relative_drift"] < 0.01


class TestDriverLifecycle:
    """Test phases and resource handling."""

    def test_phases(self, device, pair):
        """Test INITIALIZING -> STEPPING -> TERMINAL."""
        params, system = pair
        driver = StepDriver(device, params, system, nsteps=2)
        assert driver.phase is DriverPhase.INITIALIZING
        state = driver.initialize()
        assert driver.phase is DriverPhase.STEPPING
        state = driver.step(state)
        assert state.step == 1
        driver.finalize()
        assert driver.phase is DriverPhase.TERMINAL

    def test_step_before_initialize(self, device, pair):
        """Test stepping requires initialization."""
        params, system = pair
        with StepDriver(device, params, system, nsteps=1) as driver:
            with pytest.raises(RuntimeError):
                driver.step(None)

    def test_run_twice(self, device, pair):
        """Test a finished driver cannot run again."""
        params, system = pair
        driver = StepDriver(device, params, system, nsteps=1)
        driver.run()
        with pytest.raises(RuntimeError):
            driver.run()

    def test_buffers_released(self, device, pair):
        """Test closing frees the device buffers."""
        params, system = pair
        driver = StepDriver(device, params, system, nsteps=1)
        rx = driver.particles.rx
        driver.run()
        assert rx.released
        driver.close()

    def test_builds_device(self, pair):
        """Test an unbuilt device is built by the driver."""
        params, system = pair
        with HostDevice(n_workers=2) as device:
            StepDriver(device, params, system, nsteps=1).close()
            assert device.is_built

    def test_invalid_arguments(self, device, pair):
        """Test inconsistent configuration is rejected."""
        params, system = pair
        with pytest.raises(ValueError):
            StepDriver(device, params, system, nsteps=1, nprint=0)
        with pytest.raises(ValueError):
            StepDriver(device, params, system, nsteps=-1)
        with pytest.raises(ValueError):
            StepDriver(device, params, ParticleSystem.create(np.zeros((3, 3))), nsteps=1)

    def test_close_on_error_skips_finalize(self, device, pair):
        """Test an aborted run closes reporters without finalizing them."""
        params, system = pair
        recorder = Recorder()

        def explode(state, positions):
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            with StepDriver(
                device,
                params,
                system,
                nsteps=1,
                reporters=[recorder, CallbackReporter(explode)],
            ) as driver:
                driver.run()

        assert recorder.closed
        assert not recorder.finalized
        assert driver.phase is DriverPhase.TERMINAL

    def test_performance(self, device, pair):
        """Test timing statistics after a run."""
        params, system = pair
        driver = StepDriver(device, params, system, nsteps=3)
        assert driver.performance["steps_per_second"] == 0.0
        driver.run()
        perf = driver.performance
        assert perf["total_steps"] == 3
        assert perf["wall_time"] > 0

    def test_single_precision(self, pair):
        """Test a float32 run reports float32 energies close to float64."""
        params, system = pair
        results = {}
        for dtype in (np.float64, np.float32):
            recorder = Recorder()
            with HostDevice(n_workers=4, dtype=dtype) as device:
                with StepDriver(
                    device,
                    params,
                    ParticleSystem.create(system.positions, dtype=dtype),
                    nsteps=2,
                    reporters=[recorder],
                ) as driver:
                    driver.run()
            results[dtype] = recorder.records[-1]

        assert isinstance(results[np.float32][1], np.float32)
        assert np.isclose(results[np.float32][1], results[np.float64][1], rtol=1e-4)
        assert np.isclose(results[np.float32][2], results[np.float64][2], rtol=1e-3)


class TestReporters:
    """Test reporter output formats."""

    def test_console(self, device, pair):
        """Test the console summary."""
        params, system = pair
        out = io.StringIO()
        with StepDriver(
            device, params, system, nsteps=2, nprint=1, reporters=[ConsoleReporter(out)]
        ) as driver:
            driver.run()

        lines = out.getvalue().splitlines()
        assert lines[0] == "Starting simulation with 2 atoms for 2 steps."
        assert lines[1] == (
            "     NFI            TEMP            EKIN                 EPOT              ETOT"
        )
        assert len(lines) == 6
        assert lines[2].split()[0] == "0"
        assert lines[4].split()[0] == "2"
        assert lines[-1] == "Simulation Done."

    def test_energy_line_format(self):
        """Test the fixed-width energy line."""
        from ljmd.io import format_energy_line
        from ljmd.system import SimulationState

        state = SimulationState(
            step=10, potential_energy=-1.5, kinetic_energy=0.25, temperature=3.0
        )
        fields = ["10".rjust(8)] + [
            value.rjust(20)
            for value in ("3.00000000", "0.25000000", "-1.50000000", "-1.25000000")
        ]
        assert format_energy_line(state) == " ".join(fields)

    def test_files(self, device, cluster, tmp_path):
        """Test energy log and trajectory files."""
        params, system = cluster
        log = EnergyLogReporter(tmp_path / "energy.dat")
        traj = XYZTrajectoryReporter(tmp_path / "traj.xyz")
        with StepDriver(device, params, system, nsteps=4, nprint=2, reporters=[log, traj]) as driver:
            driver.run()

        lines = (tmp_path / "energy.dat").read_text().splitlines()
        assert len(lines) == 3
        assert [int(line.split()[0]) for line in lines] == [0, 2, 4]
        assert log.n_frames == traj.n_frames == 3

        text = (tmp_path / "traj.xyz").read_text().splitlines()
        assert len(text) == 3 * (27 + 2)
        assert text[0] == "27"
        assert text[1] == " nfi=0 etot=" + lines[0].split()[4].rjust(20)
        atoms = [line.split() for line in text[2:29]]
        assert [a[0] for a in atoms] == ["Ar"] * 27
        np.testing.assert_allclose(
            np.array([a[1:] for a in atoms], dtype=float), system.positions, atol=1e-8
        )
        last = text[2 * 29 + 1]
        assert last.startswith(" nfi=4 etot=")
        assert np.isclose(float(last.split("etot=")[1]), float(lines[2].split()[4]), atol=1e-7)

    def test_energy_reporter(self, device, pair):
        """Test in-memory energy series."""
        params, system = pair
        energies = EnergyReporter()
        with StepDriver(device, params, system, nsteps=3, reporters=[energies]) as driver:
            driver.run()

        np.testing.assert_array_equal(energies.steps, [0, 1, 2, 3])
        np.testing.assert_allclose(
            energies.total_energy, energies.kinetic_energy + energies.potential_energy
        )
        energies.clear()
        assert len(energies.steps) == 0

    def test_group(self):
        """Test a group forwards every hook."""
        a, b = Recorder(), Recorder()
        group = ReporterGroup([a])
        group.add(b)
        assert len(group) == 2
        group.initialize(2, 5)
        group.finalize()
        group.close()
        group.remove(a)
        assert len(group) == 1
        assert a.initialized == b.initialized == (2, 5)
        assert a.finalized and b.closed
