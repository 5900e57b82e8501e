"""Tests for the Lennard-Jones force evaluator."""

import numpy as np
import pytest

from ljmd.device import HostDevice, host_kernels
from ljmd.forcefields import ForceProvider, LennardJonesForce
from ljmd.system import DeviceParticles, ParticleSystem, SimulationParameters
from ljmd.system.box import wrap_displacement

EPS = 0.2379
SIGMA = 3.401


def make_params(natoms, box=20.0, rcut=8.0):
    return SimulationParameters(
        natoms=natoms, mass=39.95, epsilon=EPS, sigma=SIGMA, rcut=rcut, box=box, dt=5.0
    )


def pair_terms(d, eps=EPS, sigma=SIGMA):
    """Closed-form force on i (displacement d = r_i - r_j) and pair energy."""
    d = np.asarray(d, dtype=np.float64)
    r2 = d @ d
    c12 = 4.0 * eps * sigma**12
    c6 = 4.0 * eps * sigma**6
    energy = c12 / r2**6 - c6 / r2**3
    ffac = 12.0 * c12 / r2**7 - 6.0 * c6 / r2**4
    return d * ffac, energy


def reference(positions, params):
    """Direct double loop over pairs with the minimum image."""
    n = len(positions)
    forces = np.zeros((n, 3))
    energy = 0.0
    for i in range(n):
        for j in range(n):
            if i == j:
                continue
            d = wrap_displacement(positions[i] - positions[j], 0.5 * params.box, params.box)
            if d @ d > params.rcut**2:
                continue
            f, e = pair_terms(d, params.epsilon, params.sigma)
            forces[i] += f
            energy += 0.5 * e
    return forces, energy


def evaluate(positions, params, n_workers=4, dtype=np.float64, max_threads=1):
    """Evaluate forces and folded potential energy on a host device."""
    with HostDevice(n_workers=n_workers, dtype=dtype, max_threads=max_threads) as device:
        device.build()
        particles = DeviceParticles(device, len(positions))
        particles.upload(ParticleSystem.create(positions, dtype=dtype))
        force = LennardJonesForce(device, params)
        force.zero(particles)
        epot = force.compute_with_energy(particles)
        forces = particles.download_forces().T.copy()
    return forces, epot


@pytest.fixture
def lattice():
    """27 particles on a perturbed cubic lattice in a 15 A box."""
    rng = np.random.default_rng(42)
    grid = np.arange(3) * 5.0 + 2.5
    positions = np.array(np.meshgrid(grid, grid, grid)).reshape(3, -1).T
    return positions + rng.uniform(-0.3, 0.3, positions.shape)


class TestForceProviderInterface:
    """Test ForceProvider interface."""

    def test_abstract_class(self):
        """Test that ForceProvider cannot be instantiated."""
        with pytest.raises(TypeError):
            ForceProvider(HostDevice(n_workers=1))

    def test_cutoff(self):
        """Test cutoff property."""
        device = HostDevice(n_workers=1)
        assert LennardJonesForce(device, make_params(2)).cutoff == 8.0
        device.release()


class TestTwoParticles:
    """Test pair forces against the closed form."""

    def test_closed_form(self):
        """Test the pair at 4 A along x."""
        positions = np.array([[0.0, 0.0, 0.0], [4.0, 0.0, 0.0]])
        forces, epot = evaluate(positions, make_params(2))

        f0, e = pair_terms(positions[0] - positions[1])
        np.testing.assert_allclose(forces[0], f0, rtol=1e-12)
        np.testing.assert_allclose(forces[1], -f0, rtol=1e-12)
        assert np.isclose(epot, e, rtol=1e-12)
        assert forces[0, 1] == 0 and forces[0, 2] == 0

    def test_repulsive_inside_sigma(self):
        """Test a pair closer than sigma pushes apart with positive energy."""
        positions = np.array([[0.0, 0.0, 0.0], [3.0, 0.0, 0.0]])
        forces, epot = evaluate(positions, make_params(2))

        assert forces[0, 0] < 0
        assert forces[1, 0] > 0
        assert epot > 0

    def test_attractive_beyond_minimum(self):
        """Test a pair beyond 2^(1/6) sigma pulls together with negative energy."""
        positions = np.array([[0.0, 0.0, 0.0], [4.0, 0.0, 0.0]])
        forces, epot = evaluate(positions, make_params(2))

        assert forces[0, 0] > 0
        assert forces[1, 0] < 0
        assert epot < 0


class TestCutoff:
    """Test hard cutoff behaviour."""

    def test_beyond_cutoff_is_zero(self):
        """Test pairs beyond the cutoff contribute exactly nothing."""
        positions = np.array([[0.0, 0.0, 0.0], [9.0, 0.0, 0.0]])
        forces, epot = evaluate(positions, make_params(2))

        assert np.all(forces == 0)
        assert epot == 0

    def test_just_inside_cutoff(self):
        """Test a pair just inside the cutoff matches the closed form."""
        positions = np.array([[0.0, 0.0, 0.0], [7.9, 0.0, 0.0]])
        forces, epot = evaluate(positions, make_params(2))

        f0, e = pair_terms(positions[0] - positions[1])
        assert np.all(np.isfinite(forces))
        assert forces[0, 0] != 0
        np.testing.assert_allclose(forces[0], f0, rtol=1e-12)
        assert np.isclose(epot, e, rtol=1e-12)

    def test_cutoff_inclusive(self):
        """Test a pair at exactly the cutoff distance interacts."""
        positions = np.array([[0.0, 0.0, 0.0], [8.0, 0.0, 0.0]])
        forces, epot = evaluate(positions, make_params(2))

        assert forces[0, 0] != 0
        assert epot != 0


class TestMinimumImage:
    """Test periodic evaluation."""

    def test_pair_across_faces(self):
        """Test a pair near opposite faces uses the wrapped separation."""
        positions = np.array([[0.5, 0.0, 0.0], [16.5, 0.0, 0.0]])
        forces, epot = evaluate(positions, make_params(2))

        f0, e = pair_terms([4.0, 0.0, 0.0])
        np.testing.assert_allclose(forces[0], f0, rtol=1e-12)
        np.testing.assert_allclose(forces[1], -f0, rtol=1e-12)
        assert np.isclose(epot, e, rtol=1e-12)

    def test_raw_distance_not_used(self):
        """Test the raw 16 A separation would have been cut off."""
        params = make_params(2)
        assert 16.0 > params.rcut
        _, epot = evaluate(np.array([[0.5, 0.0, 0.0], [16.5, 0.0, 0.0]]), params)
        assert epot != 0

    def test_unwrapped_positions(self):
        """Test positions outside the box give the same forces."""
        params = make_params(2)
        inside = np.array([[1.0, 2.0, 3.0], [5.0, 2.5, 3.0]])
        shifted = inside + np.array([[20.0, -40.0, 0.0], [-20.0, 0.0, 60.0]])

        f_in, e_in = evaluate(inside, params)
        f_out, e_out = evaluate(shifted, params)
        np.testing.assert_allclose(f_out, f_in, rtol=1e-9)
        assert np.isclose(e_out, e_in, rtol=1e-9)


class TestManyParticles:
    """Test full all-pairs evaluation."""

    def test_zero_net_force(self, lattice):
        """Test forces sum to zero within floating point tolerance."""
        forces, _ = evaluate(lattice, make_params(27, box=15.0, rcut=7.0))
        scale = np.abs(forces).max()
        assert np.allclose(forces.sum(axis=0), 0, atol=1e-12 * scale * len(forces))

    def test_matches_reference(self, lattice):
        """Test against a direct double loop."""
        params = make_params(27, box=15.0, rcut=7.0)
        forces, epot = evaluate(lattice, params)
        ref_forces, ref_epot = reference(lattice, params)

        np.testing.assert_allclose(forces, ref_forces, rtol=1e-10, atol=1e-12)
        assert np.isclose(epot, ref_epot, rtol=1e-12)

    @pytest.mark.parametrize("n_workers", [1, 2, 5, 16, 27, 100])
    def test_worker_count_independent(self, lattice, n_workers):
        """Test the folded energy does not depend on the partition."""
        params = make_params(27, box=15.0, rcut=7.0)
        forces, epot = evaluate(lattice, params, n_workers=n_workers)
        ref_forces, ref_epot = reference(lattice, params)

        np.testing.assert_allclose(forces, ref_forces, rtol=1e-10, atol=1e-12)
        assert np.isclose(epot, ref_epot, rtol=1e-12)

    def test_small_pair_blocks(self, lattice, monkeypatch):
        """Test forces are unchanged when the pair block shrinks to single rows."""
        params = make_params(27, box=15.0, rcut=7.0)
        monkeypatch.setattr(host_kernels, "PAIR_ELEMENTS", 10)
        assert host_kernels.pair_block_rows(27) == 1
        forces, epot = evaluate(lattice, params, n_workers=2)
        ref_forces, ref_epot = reference(lattice, params)

        np.testing.assert_allclose(forces, ref_forces, rtol=1e-10, atol=1e-12)
        assert np.isclose(epot, ref_epot, rtol=1e-12)

    def test_threads_match_serial(self, lattice):
        """Test concurrent workers give the serial result."""
        params = make_params(27, box=15.0, rcut=7.0)
        serial = evaluate(lattice, params, n_workers=8)
        threaded = evaluate(lattice, params, n_workers=8, max_threads=4)

        np.testing.assert_array_equal(threaded[0], serial[0])
        assert threaded[1] == serial[1]

    def test_single_precision(self, lattice):
        """Test single precision agrees with double to float32 accuracy."""
        params = make_params(27, box=15.0, rcut=7.0)
        f64, e64 = evaluate(lattice, params)
        f32, e32 = evaluate(lattice, params, dtype=np.float32)

        assert f32.dtype == np.float32
        assert isinstance(e32, np.float32)
        np.testing.assert_allclose(f32, f64, rtol=1e-3, atol=1e-4 * np.abs(f64).max())
        assert np.isclose(e32, e64, rtol=1e-4)

    def test_recompute_overwrites(self, lattice):
        """Test a second evaluation does not accumulate onto old forces."""
        params = make_params(27, box=15.0, rcut=7.0)
        with HostDevice(n_workers=3) as device:
            device.build()
            particles = DeviceParticles(device, 27)
            particles.upload(ParticleSystem.create(lattice))
            force = LennardJonesForce(device, params)
            force.zero(particles)
            first = force.compute_with_energy(particles)
            f_first = particles.download_forces().copy()
            second = force.compute_with_energy(particles)
            f_second = particles.download_forces()

        assert first == second
        np.testing.assert_array_equal(f_first, f_second)
