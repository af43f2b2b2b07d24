"""Deterministic parameter-grid construction.

Columns drive horizontal head rotation and gaze, rows drive vertical
rotation and gaze.  For odd grid sizes the centre cell looks straight
ahead, and the outermost cells sit exactly on the configured bounds.
"""

from __future__ import annotations

from facegrid.models import GenerationSetup, Grid, Step, artifact_filename

VALUE_PRECISION = 10


def value_at(
    step_index: int,
    total_steps: int,
    bound: float,
    *,
    invert: bool = False,
) -> float:
    """Map an axis position onto ``[-bound, bound]``.

    Args:
        step_index: Position on the axis, ``0 <= step_index < total_steps``.
        total_steps: Number of positions on the axis.
        bound: Absolute value reached at both ends of the axis.
        invert: Flip the sign of the result.

    Returns:
        The value rounded to 10 decimal places (``0.0`` for a single step).
    """
    if total_steps == 1:
        return 0.0
    normalized = (step_index / (total_steps - 1)) * 2 - 1
    value = bound * normalized
    if invert:
        value = -value
    # round() can yield -0.0; keep the centre cell a clean zero.
    return round(value, VALUE_PRECISION) + 0.0


def build_grid(
    size: int,
    rotate_bound: float = 20.0,
    pupil_bound: float = 13.0,
    prefix: str = "avatar",
    crop_factor: float = 1.5,
    output_quality: int = 100,
) -> Grid:
    """Build the ``size x size`` grid of generation steps.

    Args:
        size: Grid dimension ``N``.  Oddness is the caller's concern.
        rotate_bound: Bound for ``rotate_yaw`` and ``rotate_pitch``.
        pupil_bound: Bound for ``pupil_x`` and ``pupil_y``.
        prefix: Artifact filename prefix.
        crop_factor: Constant sent with every step.
        output_quality: Constant sent with every step.

    Returns:
        An immutable :class:`Grid` with ``size`` rows of ``size`` steps.

    Raises:
        ValueError: If *size* is not a positive integer.
    """
    if isinstance(size, bool) or not isinstance(size, int) or size < 1:
        raise ValueError(f"Grid size must be a positive integer, got {size!r}")

    rows: list[tuple[Step, ...]] = []
    for y in range(size):
        row: list[Step] = []
        for x in range(size):
            index = y * size + x
            row.append(
                Step(
                    x=x,
                    y=y,
                    index=index,
                    rotate_yaw=value_at(x, size, rotate_bound),
                    rotate_pitch=value_at(y, size, rotate_bound),
                    pupil_x=value_at(x, size, pupil_bound),
                    pupil_y=value_at(y, size, pupil_bound, invert=True),
                    filename=artifact_filename(prefix, index),
                    crop_factor=crop_factor,
                    output_quality=output_quality,
                )
            )
        rows.append(tuple(row))

    return Grid(size=size, rows=tuple(rows))


def build_grid_from_setup(setup: GenerationSetup) -> Grid:
    """Build the grid described by a :class:`GenerationSetup`."""
    return build_grid(
        setup.grid_size,
        rotate_bound=setup.rotate_bound,
        pupil_bound=setup.pupil_bound,
        prefix=setup.photo_prefix,
        crop_factor=setup.crop_factor,
        output_quality=setup.output_quality,
    )
