"""YAML schema validation and config loading.

Provides centralized validation for all configuration and data files using pydantic:
    - Subdivider schema (subdivider.v1.yaml): flattening tolerances and limits
    - Curves schema (curves.v1.yaml): cubic Bézier segments to flatten
    - Polylines schema (polylines.v1.yaml): flattened output per curve

All modules must use these validators to load configs for fail-fast error detection
with actionable messages (offending keys, expected ranges).

Option names:
    Snake_case field names are canonical. The camelCase option names
    (recursionLimit, floatEpsilon, pathEpsilon, angleEpsilon,
    angleTolerance, cuspLimit) are accepted as aliases everywhere.

Usage:
    from bezier_flatten.utils import validators

    cfg = validators.load_subdivider_config("configs/subdivider.v1.yaml")
    curves = validators.load_curves_file("curves.yaml")
"""

import math
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel


# ============================================================================
# SUBDIVIDER SCHEMA V1
# ============================================================================

# 2^-23, single-precision machine epsilon
FLOAT_EPSILON = 1.19209290e-7


class SubdividerConfig(BaseModel):
    """Adaptive subdivision options (immutable once built).

    Every option is independent and optional. An unset option, and any
    falsy value (None, 0, NaN), takes the default below, so
    ``recursion_limit=0`` means 8 and ``angle_epsilon=0`` means 0.01.
    Defaults of 0 (``angle_tolerance``, ``cusp_limit``) keep the angle and
    cusp tests off.
    """
    model_config = ConfigDict(
        frozen=True,
        extra='forbid',
        populate_by_name=True,
        alias_generator=to_camel,
    )

    recursion_limit: int = Field(8, ge=1, le=32, description="Hard cap on subdivision depth")
    float_epsilon: float = Field(
        FLOAT_EPSILON, gt=0.0,
        description="Control-point deviation treated as numerically zero (collinear)"
    )
    path_epsilon: float = Field(
        1.0, gt=0.0,
        description="Distance tolerance numerator; divided by scale and squared"
    )
    angle_epsilon: float = Field(
        0.01, gt=0.0,
        description="angle_tolerance below this disables the angle test"
    )
    angle_tolerance: float = Field(
        0.0, ge=0.0,
        description="Max accumulated turning angle (radians) before stopping"
    )
    cusp_limit: float = Field(
        0.0, ge=0.0,
        description="Turning angle above which a cusp vertex is emitted; 0 disables"
    )

    @field_validator('*', mode='before')
    @classmethod
    def falsy_to_default(cls, v: Any, info: ValidationInfo) -> Any:
        """None, 0, "" and NaN select the field default."""
        if not v or (isinstance(v, float) and math.isnan(v)):
            return cls.model_fields[info.field_name].default
        return v

    @property
    def angle_enabled(self) -> bool:
        """True when the angle/cusp tests participate in the stopping rule."""
        return self.angle_tolerance >= self.angle_epsilon

    @property
    def cusp_enabled(self) -> bool:
        return self.cusp_limit != 0.0


class SubdividerFileV1(BaseModel):
    """Subdivider config file (subdivider.v1.yaml)."""
    model_config = ConfigDict(populate_by_name=True)

    schema_version: str = Field("subdivider.v1", alias="schema", description="Schema version")
    subdivider: SubdividerConfig = Field(default_factory=SubdividerConfig)

    @field_validator('schema_version')
    @classmethod
    def validate_schema(cls, v: str) -> str:
        if v != "subdivider.v1":
            raise ValueError(f"Expected schema 'subdivider.v1', got '{v}'")
        return v


def resolve_subdivider_config(
    options: Union[SubdividerConfig, Mapping[str, Any], None] = None,
    **overrides: Any
) -> SubdividerConfig:
    """Merge partial options with defaults into a validated config.

    Parameters
    ----------
    options : SubdividerConfig | Mapping | None
        Existing config, or mapping with snake_case or camelCase keys.
        None means all defaults.
    **overrides
        Individual options; take precedence over ``options``.

    Returns
    -------
    SubdividerConfig
        Fully resolved, frozen config

    Raises
    ------
    pydantic.ValidationError
        Unknown option names or out-of-range values
    """
    if isinstance(options, SubdividerConfig):
        if not overrides:
            return options
        base: Dict[str, Any] = options.model_dump()
    elif options is None:
        base = {}
    else:
        base = dict(options)

    # Normalize camelCase keys so overrides can replace either spelling
    merged: Dict[str, Any] = {}
    for source in (base, overrides):
        for key, value in source.items():
            merged[_field_name(key)] = value
    return SubdividerConfig(**merged)


def _field_name(key: str) -> str:
    for name, info in SubdividerConfig.model_fields.items():
        if key == info.alias:
            return name
    return key


# ============================================================================
# CURVES SCHEMA V1
# ============================================================================

class BezierControlPoints(BaseModel):
    """Cubic Bézier control points (4 points, xy)."""
    p1: Tuple[float, float] = Field(..., description="Start point (x, y)")
    p2: Tuple[float, float] = Field(..., description="First control point (x, y)")
    p3: Tuple[float, float] = Field(..., description="Second control point (x, y)")
    p4: Tuple[float, float] = Field(..., description="End point (x, y)")

    def as_tuple(self) -> Tuple[Tuple[float, float], ...]:
        return (self.p1, self.p2, self.p3, self.p4)


class CurveV1(BaseModel):
    """Single curve definition."""
    id: str = Field(..., description="Unique curve identifier")
    bezier: BezierControlPoints
    scale: Optional[float] = Field(None, gt=0.0, description="Per-curve display scale")

    @field_validator('id')
    @classmethod
    def validate_id(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Curve ID must be non-empty")
        return v


class CurvesFileV1(BaseModel):
    """Container for multiple curves (YAML file format)."""
    model_config = ConfigDict(populate_by_name=True)

    schema_version: str = Field("curves.v1", alias="schema", description="Schema version")
    curves: List[CurveV1] = Field(..., description="List of curves")

    @field_validator('schema_version')
    @classmethod
    def validate_schema(cls, v: str) -> str:
        if v != "curves.v1":
            raise ValueError(f"Expected schema 'curves.v1', got '{v}'")
        return v

    @field_validator('curves')
    @classmethod
    def validate_unique_ids(cls, v: List[CurveV1]) -> List[CurveV1]:
        seen = set()
        for curve in v:
            if curve.id in seen:
                raise ValueError(f"Duplicate curve id: {curve.id}")
            seen.add(curve.id)
        return v


# ============================================================================
# POLYLINES SCHEMA V1
# ============================================================================

class PolylineV1(BaseModel):
    """Flattened output for one curve."""
    id: str
    scale: float = Field(..., gt=0.0)
    points: List[Tuple[float, float]] = Field(..., min_length=2)


class PolylinesFileV1(BaseModel):
    """Container for flattened polylines (YAML file format)."""
    model_config = ConfigDict(populate_by_name=True)

    schema_version: str = Field("polylines.v1", alias="schema")
    subdivider: SubdividerConfig
    polylines: List[PolylineV1] = Field(default_factory=list)

    def to_yaml_dict(self) -> Dict[str, Any]:
        """Plain dict for YAML dumping (tuples become lists)."""
        return {
            'schema': self.schema_version,
            'subdivider': self.subdivider.model_dump(),
            'polylines': [
                {
                    'id': poly.id,
                    'scale': poly.scale,
                    'points': [[x, y] for x, y in poly.points],
                }
                for poly in self.polylines
            ],
        }


# ============================================================================
# PUBLIC API
# ============================================================================

def load_subdivider_config(path: Union[str, Path]) -> SubdividerConfig:
    """Load and validate subdivider config from YAML.

    Parameters
    ----------
    path : Union[str, Path]
        Path to subdivider.v1.yaml file

    Returns
    -------
    SubdividerConfig
        Validated, frozen subdivider configuration

    Raises
    ------
    FileNotFoundError
        If path doesn't exist
    ValueError
        If validation fails (with actionable error message)
    """
    from . import fs

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Subdivider config not found: {path}")

    data = fs.load_yaml(path) or {}
    try:
        return SubdividerFileV1(**data).subdivider
    except Exception as e:
        raise ValueError(f"Subdivider config validation failed at {path}: {e}") from e


def load_curves_file(path: Union[str, Path]) -> CurvesFileV1:
    """Load and validate a curves file from YAML.

    Parameters
    ----------
    path : Union[str, Path]
        Path to curves.v1.yaml file

    Returns
    -------
    CurvesFileV1
        Validated curves container

    Raises
    ------
    FileNotFoundError
        If path doesn't exist
    ValueError
        If validation fails
    """
    from . import fs

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Curves file not found: {path}")

    data = fs.load_yaml(path)
    try:
        return CurvesFileV1(**data)
    except Exception as e:
        raise ValueError(f"Curves file validation failed at {path}: {e}") from e
