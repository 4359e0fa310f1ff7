"""Test pydantic schemas and YAML loaders.

Tests for bezier_flatten.utils.validators:
    - SubdividerConfig defaults, aliases, bounds, immutability
    - resolve_subdivider_config merge order
    - subdivider.v1 / curves.v1 loading (valid, missing, malformed)
    - polylines.v1 serialization

Run:
    pytest tests/test_schemas.py -v
"""

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from bezier_flatten.utils import validators


PROJECT_ROOT = Path(__file__).parent.parent


def write_yaml(path, data):
    path.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
    return path


# ============================================================================
# SUBDIVIDER CONFIG
# ============================================================================

def test_config_accepts_both_spellings():
    by_alias = validators.SubdividerConfig(recursionLimit=4, cuspLimit=1.0)
    by_name = validators.SubdividerConfig(recursion_limit=4, cusp_limit=1.0)
    assert by_alias == by_name


def test_config_dump_uses_field_names():
    dumped = validators.SubdividerConfig().model_dump()
    assert list(dumped) == [
        'recursion_limit', 'float_epsilon', 'path_epsilon',
        'angle_epsilon', 'angle_tolerance', 'cusp_limit',
    ]


def test_falsy_options_take_defaults():
    """0, None and NaN fall back to the default, never to a literal zero."""
    cfg = validators.SubdividerConfig(
        recursion_limit=0, float_epsilon=None, path_epsilon=float('nan'), angle_epsilon=0.0,
    )
    assert cfg == validators.SubdividerConfig()
    assert cfg.recursion_limit == 8
    assert cfg.path_epsilon == 1.0
    assert cfg.angle_epsilon == 0.01
    assert not cfg.angle_enabled


def test_falsy_options_from_yaml(tmp_path):
    path = write_yaml(tmp_path / "sub.yaml", {
        "schema": "subdivider.v1",
        "subdivider": {"recursionLimit": 0, "pathEpsilon": 0, "cuspLimit": None},
    })
    assert validators.load_subdivider_config(path) == validators.SubdividerConfig()


def test_angle_and_cusp_switches():
    assert not validators.SubdividerConfig().angle_enabled
    assert not validators.SubdividerConfig().cusp_enabled
    cfg = validators.SubdividerConfig(angle_tolerance=0.01, cusp_limit=0.3)
    assert cfg.angle_enabled
    assert cfg.cusp_enabled


@pytest.mark.parametrize("field, value", [
    ("recursion_limit", -1),
    ("recursion_limit", 33),
    ("path_epsilon", -1.0),
    ("angle_epsilon", -0.1),
    ("float_epsilon", -1e-9),
    ("angle_tolerance", -0.1),
])
def test_config_bounds(field, value):
    with pytest.raises(ValidationError):
        validators.SubdividerConfig(**{field: value})


def test_config_is_frozen():
    cfg = validators.SubdividerConfig()
    with pytest.raises(ValidationError):
        cfg.path_epsilon = 2.0


def test_resolve_merge_order():
    cfg = validators.resolve_subdivider_config(
        {"pathEpsilon": 0.5, "angle_tolerance": 0.1},
        path_epsilon=0.25,
        cuspLimit=2.0,
    )
    assert cfg.path_epsilon == 0.25
    assert cfg.angle_tolerance == 0.1
    assert cfg.cusp_limit == 2.0


def test_resolve_none_gives_defaults():
    assert validators.resolve_subdivider_config(None) == validators.SubdividerConfig()


# ============================================================================
# LOADERS
# ============================================================================

def test_shipped_config_matches_defaults():
    cfg = validators.load_subdivider_config(PROJECT_ROOT / "configs/subdivider.v1.yaml")
    assert cfg == validators.SubdividerConfig()


def test_load_config_camel_case(tmp_path):
    path = write_yaml(tmp_path / "sub.yaml", {
        "schema": "subdivider.v1",
        "subdivider": {"recursionLimit": 5, "angleTolerance": 0.2, "cuspLimit": 2.5},
    })
    cfg = validators.load_subdivider_config(path)
    assert cfg.recursion_limit == 5
    assert cfg.angle_tolerance == 0.2
    assert cfg.cusp_limit == 2.5
    assert cfg.path_epsilon == 1.0


def test_load_config_empty_file(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")
    assert validators.load_subdivider_config(path) == validators.SubdividerConfig()


def test_load_config_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        validators.load_subdivider_config(tmp_path / "nope.yaml")


def test_load_config_wrong_schema(tmp_path):
    path = write_yaml(tmp_path / "sub.yaml", {"schema": "subdivider.v2", "subdivider": {}})
    with pytest.raises(ValueError, match="subdivider.v1"):
        validators.load_subdivider_config(path)


def test_load_config_unknown_option(tmp_path):
    path = write_yaml(tmp_path / "sub.yaml", {
        "schema": "subdivider.v1",
        "subdivider": {"maxDepth": 4},
    })
    with pytest.raises(ValueError):
        validators.load_subdivider_config(path)


def test_shipped_curves_example_loads():
    curves = validators.load_curves_file(PROJECT_ROOT / "configs/curves_example.v1.yaml")
    assert [c.id for c in curves.curves] == ["s-curve", "loop", "straight"]
    assert curves.curves[0].bezier.as_tuple() == (
        (0.0, 0.0), (0.0, 50.0), (50.0, 100.0), (100.0, 100.0)
    )
    assert curves.curves[0].scale is None
    assert curves.curves[1].scale == 4.0


def test_curves_duplicate_ids(tmp_path):
    bezier = {"p1": [0, 0], "p2": [1, 1], "p3": [2, 1], "p4": [3, 0]}
    path = write_yaml(tmp_path / "curves.yaml", {
        "schema": "curves.v1",
        "curves": [{"id": "a", "bezier": bezier}, {"id": "a", "bezier": bezier}],
    })
    with pytest.raises(ValueError, match="Duplicate curve id"):
        validators.load_curves_file(path)


def test_curves_bad_scale():
    with pytest.raises(ValidationError):
        validators.CurveV1(
            id="c",
            bezier={"p1": [0, 0], "p2": [1, 1], "p3": [2, 1], "p4": [3, 0]},
            scale=0.0,
        )


def test_curves_missing_point():
    with pytest.raises(ValidationError):
        validators.BezierControlPoints(p1=(0, 0), p2=(1, 1), p3=(2, 2))


# ============================================================================
# POLYLINES
# ============================================================================

def test_polylines_yaml_dict():
    cfg = validators.SubdividerConfig(cusp_limit=1.0)
    result = validators.PolylinesFileV1(
        subdivider=cfg,
        polylines=[validators.PolylineV1(id="c", scale=2.0, points=[(0, 0), (1.5, 2.5)])],
    )
    data = result.to_yaml_dict()

    assert data["schema"] == "polylines.v1"
    assert data["subdivider"]["cusp_limit"] == 1.0
    assert data["polylines"][0] == {"id": "c", "scale": 2.0, "points": [[0.0, 0.0], [1.5, 2.5]]}


def test_polyline_needs_two_points():
    with pytest.raises(ValidationError):
        validators.PolylineV1(id="c", scale=1.0, points=[(0, 0)])
