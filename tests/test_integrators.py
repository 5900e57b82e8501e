"""Tests for the split velocity Verlet integrator."""

import numpy as np
import pytest

from ljmd.device import HostDevice
from ljmd.integrators import Integrator, VelocityVerletIntegrator
from ljmd.system import MVSQ2E, DeviceParticles, ParticleSystem, SimulationParameters


@pytest.fixture
def params():
    """Two-particle argon parameters."""
    return SimulationParameters(
        natoms=2, mass=39.95, epsilon=0.2379, sigma=3.401, rcut=8.0, box=20.0, dt=5.0
    )


@pytest.fixture
def setup(params):
    """Device particles with known positions, velocities and forces."""
    with HostDevice(n_workers=3) as device:
        device.build()
        particles = DeviceParticles(device, 2)
        system = ParticleSystem.create(
            positions=np.array([[0.0, 0.0, 0.0], [4.0, 0.0, 0.0]]),
            velocities=np.array([[1e-3, 0.0, -2e-3], [0.0, 5e-4, 0.0]]),
        )
        particles.upload(system)
        forces = np.array([[0.5, -0.25, 0.0], [-0.5, 0.25, 1.0]])
        for axis, name in enumerate(("fx", "fy", "fz")):
            device.write(getattr(particles, name), np.ascontiguousarray(forces[:, axis]))
        yield device, particles, system, forces


class TestIntegratorInterface:
    """Test Integrator interface."""

    def test_abstract_class(self):
        """Test that Integrator cannot be instantiated."""
        with pytest.raises(TypeError):
            Integrator()

    def test_timestep(self, params):
        """Test timestep comes from the parameters."""
        integrator = VelocityVerletIntegrator(HostDevice(n_workers=1), params)
        assert integrator.timestep == 5.0


class TestVelocityVerlet:
    """Test the two half-steps."""

    def test_first_half(self, setup, params):
        """Test half kick with old forces then a full drift."""
        device, particles, system, forces = setup
        VelocityVerletIntegrator(device, params).first_half(particles)

        dtmf = 0.5 * params.dt / MVSQ2E / params.mass
        v_half = system.velocities + dtmf * forces
        r_new = system.positions + params.dt * v_half

        np.testing.assert_allclose(particles.download_velocities().T, v_half, rtol=1e-14)
        np.testing.assert_allclose(particles.download_positions().T, r_new, rtol=1e-14)

    def test_second_half(self, setup, params):
        """Test remaining half kick leaves positions untouched."""
        device, particles, system, forces = setup
        VelocityVerletIntegrator(device, params).second_half(particles)

        dtmf = params.derived.dtmf
        np.testing.assert_allclose(
            particles.download_velocities().T, system.velocities + dtmf * forces, rtol=1e-14
        )
        np.testing.assert_array_equal(particles.download_positions().T, system.positions)

    def test_forces_untouched(self, setup, params):
        """Test integration never writes the force buffers."""
        device, particles, system, forces = setup
        integrator = VelocityVerletIntegrator(device, params)
        integrator.first_half(particles)
        integrator.second_half(particles)
        np.testing.assert_array_equal(particles.download_forces().T, forces)

    def test_positions_not_wrapped(self, params):
        """Test particles leaving the box keep unwrapped coordinates."""
        with HostDevice(n_workers=1) as device:
            device.build()
            particles = DeviceParticles(device, 2)
            particles.upload(
                ParticleSystem.create(
                    np.array([[19.9, 0.0, 0.0], [5.0, 0.0, 0.0]]),
                    np.array([[0.1, 0.0, 0.0], [0.0, 0.0, 0.0]]),
                )
            )
            VelocityVerletIntegrator(device, params).first_half(particles)
            x = particles.download_positions()[0, 0]

        assert np.isclose(x, 20.4)
