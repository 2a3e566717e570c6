"""Input validation utilities for tool parameters.

Provides validation for the parameter types used by silkscreen tools:
- Coordinates (finite floats, editor units)
- Angles (finite floats in degrees)
- Primitive ids (non-empty strings)
- Snapshot paths (JSON files)
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any

# Editor canvases are large but finite; anything beyond this is a unit mix-up
MAX_COORDINATE = 1_000_000.0


@dataclass
class ValidationResult:
    """Result of a validation operation."""

    valid: bool
    value: Any = None
    error: str | None = None

    @classmethod
    def success(cls, value: Any = None) -> ValidationResult:
        return cls(valid=True, value=value)

    @classmethod
    def failure(cls, error: str) -> ValidationResult:
        return cls(valid=False, error=error)


def _finite(value: Any, name: str) -> ValidationResult:
    if isinstance(value, bool):
        return ValidationResult.failure(f"{name} must be a number, got bool")
    try:
        number = float(value)
    except (TypeError, ValueError):
        return ValidationResult.failure(f"{name} must be a number, got {type(value).__name__}")
    if not math.isfinite(number):
        return ValidationResult.failure(f"{name} must be finite, got {number}")
    return ValidationResult.success(number)


def validate_coordinate(value: float, name: str = "coordinate") -> ValidationResult:
    """Validate a coordinate value.

    Args:
        value: The coordinate value to validate.
        name: The parameter name for error messages.

    Returns:
        ValidationResult with the validated value or error.
    """
    result = _finite(value, name)
    if not result.valid:
        return result
    if abs(result.value) > MAX_COORDINATE:
        return ValidationResult.failure(
            f"{name} value {result.value} is outside reasonable bounds "
            f"(-{MAX_COORDINATE:g} to {MAX_COORDINATE:g})"
        )
    return result


def validate_coordinate_pair(
    x: float, y: float, names: tuple[str, str] = ("x", "y")
) -> ValidationResult:
    """Validate a coordinate pair.

    Returns:
        ValidationResult with tuple of validated coordinates or error.
    """
    result_x = validate_coordinate(x, names[0])
    if not result_x.valid:
        return result_x

    result_y = validate_coordinate(y, names[1])
    if not result_y.valid:
        return result_y

    return ValidationResult.success((result_x.value, result_y.value))


def validate_angle(value: float, name: str = "angle") -> ValidationResult:
    """Validate an angle value (degrees). Any finite rotation is accepted."""
    return _finite(value, name)


def validate_primitive_id(value: str) -> ValidationResult:
    """Validate an editor primitive id (surrounding whitespace is stripped)."""
    if not isinstance(value, str):
        return ValidationResult.failure(
            f"Primitive id must be a string, got {type(value).__name__}"
        )
    primitive_id = value.strip()
    if not primitive_id:
        return ValidationResult.failure("Primitive id cannot be empty")
    return ValidationResult.success(primitive_id)


def validate_snapshot_path(value: str, must_exist: bool = True) -> ValidationResult:
    """Validate a board snapshot path (a ``.json`` file)."""
    if not isinstance(value, str) or not value.strip():
        return ValidationResult.failure("Snapshot path cannot be empty")
    path = Path(value).expanduser()
    if path.suffix.lower() != ".json":
        return ValidationResult.failure(f"Snapshot must be a .json file, got {path.name!r}")
    if must_exist and not path.is_file():
        return ValidationResult.failure(f"Snapshot file not found: {path}")
    if not must_exist and not path.parent.is_dir():
        return ValidationResult.failure(f"Directory does not exist: {path.parent}")
    return ValidationResult.success(path)
