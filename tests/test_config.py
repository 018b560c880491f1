import pytest

from hmdmesh.config import Config, check_config, config_to_dict, load_config, parse_config
from hmdmesh.core.geometry import RectBounds
from hmdmesh.errors import InputError


def test_parse_config_ok():
    c = parse_config(
        {
            "schema_version": "hmdmesh.config.v0",
            "use_right_eye": True,
            "depth": 1500,
            "to_meters": 0.001,
            "compute_screen_bounds": False,
            "supplied_screen_bounds": {"left": -45, "right": 40, "top": 30, "bottom": -35},
        }
    )
    assert c.use_right_eye
    assert c.depth_meters == pytest.approx(1.5)
    assert c.supplied_screen_bounds == RectBounds(left=-45.0, right=40.0, top=30.0, bottom=-35.0)
    assert c.use_field_angles


def test_parse_config_rejects_unknown_and_mistyped_keys():
    with pytest.raises(InputError, match="unknown"):
        parse_config({"schema_version": "hmdmesh.config.v0", "eye": "left"})
    with pytest.raises(InputError, match="true or false"):
        parse_config({"schema_version": "hmdmesh.config.v0", "verbose": 1})
    with pytest.raises(InputError, match="schema_version"):
        parse_config({"depth": 2.0})


def test_check_config_requires_ordered_bounds_when_not_computing():
    with pytest.raises(InputError, match="required"):
        check_config(Config(compute_screen_bounds=False))
    with pytest.raises(InputError, match="left must be < right"):
        check_config(
            Config(
                compute_screen_bounds=False,
                supplied_screen_bounds=RectBounds(left=10.0, right=-10.0, top=5.0, bottom=-5.0),
            )
        )
    with pytest.raises(InputError, match="depth"):
        check_config(Config(depth=0.0))


def test_config_dict_roundtrip(tmp_path):
    c = Config(
        verify_angles=True,
        xx=0.9,
        max_angle_diff_degrees=0.25,
        compute_screen_bounds=False,
        supplied_screen_bounds=RectBounds(left=-30.0, right=30.0, top=20.0, bottom=-20.0),
    )
    assert parse_config(config_to_dict(c)) == c

    import json

    path = tmp_path / "config.json"
    path.write_text(json.dumps(config_to_dict(c)), encoding="utf-8")
    assert load_config(path) == c


def test_with_options_returns_modified_copy():
    c = Config()
    r = c.with_options(use_right_eye=True)
    assert r.use_right_eye and not c.use_right_eye


def test_missing_bounds_rejected_with_input_error_only():
    with pytest.raises(InputError, match="supplied_screen_bounds is required"):
        parse_config({"schema_version": "hmdmesh.config.v0", "compute_screen_bounds": False})
