import numpy as np
import pytest

from hmdmesh.api.calibration import angles_to_config, build_mappings
from hmdmesh.config import Config
from hmdmesh.core.distortion import RadialDistortion
from hmdmesh.core.mesh import find_mesh
from hmdmesh.errors import InputError
from hmdmesh.sim.example_table import example_table


def test_undistorted_table_gives_identity_mesh():
    samples = example_table(cols=5, rows=4, h_fov_degrees=90.0, v_fov_degrees=70.0)
    mesh = angles_to_config(samples, Config()).mesh
    assert len(mesh) == 20
    assert np.max(np.abs(mesh.to_array() - mesh.from_array())) < 1e-9


def test_mesh_preserves_input_order():
    samples = example_table(cols=6, rows=3, distortion=RadialDistortion(k1=0.15))
    rng = np.random.default_rng(1)
    order = rng.permutation(len(samples))
    shuffled = [samples[i] for i in order]
    mesh = angles_to_config(shuffled, Config()).mesh
    expected = np.array([[s.x, s.y] for s in shuffled])
    assert np.array_equal(mesh.from_array(), expected)


def test_distorted_mesh_stays_inside_unit_square():
    samples = example_table(cols=9, rows=9, distortion=RadialDistortion(k1=0.2, k2=0.05))
    mesh = angles_to_config(samples, Config()).mesh
    to = mesh.to_array()
    assert to.min() >= -1e-12
    assert to.max() <= 1.0 + 1e-12
    assert to[0] == pytest.approx([0.0, 0.0], abs=1e-12)
    assert to[-1] == pytest.approx([1.0, 1.0], abs=1e-12)
    # Pincushion: the middle of the left column sits inside the corners' extent.
    assert to[4 * 9, 0] > 0.01


def test_signed_convention():
    samples = example_table(cols=5, rows=5, signed=True)
    mesh = angles_to_config(samples, Config(signed_coordinates=True)).mesh
    assert mesh.signed
    assert np.max(np.abs(mesh.to_array() - mesh.from_array())) < 1e-9
    assert mesh.to_array().min() == pytest.approx(-1.0)


def test_right_eye_mesh_mirrors_both_ends():
    samples = example_table(cols=5, rows=5, distortion=RadialDistortion(k1=0.1))
    left = angles_to_config(samples, Config()).mesh
    right = angles_to_config(samples, Config(use_right_eye=True)).mesh
    assert np.allclose(right.from_array()[:, 0], 1.0 - left.from_array()[:, 0])
    assert np.allclose(right.to_array()[:, 0], 1.0 - left.to_array()[:, 0])
    assert np.array_equal(right.to_array()[:, 1], left.to_array()[:, 1])


def test_find_mesh_uses_fitted_plane_as_given():
    samples = example_table(cols=4, rows=4, distortion=RadialDistortion(k1=0.1))
    config = Config()
    result = angles_to_config(samples, config)
    mesh = find_mesh(build_mappings(samples, config), result.fitted)
    assert mesh == result.mesh
    assert mesh.to_list()[0][0] == [0.0, 0.0]
    assert mesh.to_list()[0][1] == pytest.approx([0.0, 0.0], abs=1e-12)


def test_right_eye_mirrors_from_in_table_convention():
    samples = example_table(cols=3, rows=3)
    left = angles_to_config(samples, Config(signed_coordinates=True)).mesh
    right = angles_to_config(samples, Config(use_right_eye=True, signed_coordinates=True)).mesh
    from_x = right.from_array()[:, 0]
    assert from_x.min() >= 0.0
    assert from_x.max() <= 1.0
    assert np.allclose(from_x, 1.0 - left.from_array()[:, 0])
    assert np.allclose(right.to_array()[:, 0], -left.to_array()[:, 0])


def test_right_eye_mirrors_signed_table():
    samples = example_table(cols=3, rows=3, signed=True)
    config = Config(use_right_eye=True, signed_input_coordinates=True)
    left = angles_to_config(samples, config.with_options(use_right_eye=False)).mesh
    right = angles_to_config(samples, config).mesh
    assert np.array_equal(right.from_array()[:, 0], -left.from_array()[:, 0])
    assert np.allclose(right.to_array()[:, 0], 1.0 - left.to_array()[:, 0])


def test_right_eye_rejects_table_outside_declared_range():
    samples = example_table(cols=3, rows=3, signed=True)
    with pytest.raises(InputError, match="cannot be mirrored"):
        angles_to_config(samples, Config(use_right_eye=True))
