"""Pydantic data models for grid steps, run setup, results and sprite metadata."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

EXPRESSION_EDITOR_MODEL = (
    "fofr/expression-editor:"
    "bf913bc90e1c44ba288ba3942a538693b72e8cc7df576f3beebe56adc0a92b86"
)

# Filename indices are zero-padded to this width; lexicographic order of the
# artifacts equals row-major order only while N*N fits in it.
INDEX_WIDTH = 3
MAX_GRID_SIZE = 31


def artifact_filename(prefix: str, index: int) -> str:
    """Return the deterministic artifact filename for a grid index."""
    return f"{prefix}_{index:0{INDEX_WIDTH}d}.webp"


class Step(BaseModel):
    """Generation parameters for one grid cell.

    Attributes:
        x: Column index in ``[0, N)``.
        y: Row index in ``[0, N)``.
        index: Row-major position, ``y * N + x``.
        rotate_yaw: Horizontal head rotation.
        rotate_pitch: Vertical head rotation.
        pupil_x: Horizontal gaze offset.
        pupil_y: Vertical gaze offset (inverted relative to the row).
        filename: Artifact filename, stable across runs.
        crop_factor: Service crop factor (1.5 is the lowest accepted).
        output_quality: Service output quality.
    """

    model_config = ConfigDict(frozen=True)

    x: int = Field(..., ge=0)
    y: int = Field(..., ge=0)
    index: int = Field(..., ge=0)
    rotate_yaw: float
    rotate_pitch: float
    pupil_x: float
    pupil_y: float
    filename: str
    crop_factor: float = 1.5
    output_quality: int = 100

    def to_input(self) -> dict[str, Any]:
        """Return the request fields sent to the generation service."""
        return self.model_dump()


class Grid(BaseModel):
    """The ordered ``N x N`` collection of steps for one run."""

    model_config = ConfigDict(frozen=True)

    size: int = Field(..., gt=0)
    rows: tuple[tuple[Step, ...], ...]

    def flatten(self) -> list[Step]:
        """Return all steps in row-major order."""
        return [step for row in self.rows for step in row]

    def filenames(self) -> list[str]:
        return [step.filename for step in self.flatten()]

    def __len__(self) -> int:
        return self.size * self.size


class TaskStatus(str, Enum):
    """In-run status of a generation task."""

    PENDING = "pending"
    DONE = "done"
    FAILED = "failed"


@dataclass
class GenerationTask:
    """A step plus its runtime bookkeeping, owned by the executor for one run."""

    step: Step
    status: TaskStatus = TaskStatus.PENDING
    attempts: int = 0
    last_error: str | None = None

    @property
    def filename(self) -> str:
        return self.step.filename


class RunResult(BaseModel):
    """Outcome of :meth:`GenerationExecutor.run_all`.

    Attributes:
        success: True when every artifact exists at the end of the run.
        failed_filenames: Artifacts still missing, in row-major order.
        rounds: Number of rounds actually executed.
        generated: Artifacts written by this run.
        skipped: Tasks satisfied by a pre-existing artifact.
    """

    success: bool
    failed_filenames: list[str] = []
    rounds: int = 0
    generated: int = 0
    skipped: int = 0


class SpriteMeta(BaseModel):
    """Sidecar metadata read by the browser preview."""

    model_config = ConfigDict(populate_by_name=True)

    grid_size: int = Field(..., gt=0, alias="gridSize")
    sprite_picture_size: int = Field(..., gt=0, alias="spritePictureSize")

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2) + "\n"


class GenerationSetup(BaseModel):
    """Run constants, overridable from a YAML config file or the CLI.

    Attributes:
        grid_size: Grid dimension ``N`` (positive, odd).
        rotate_bound: Maximum absolute head rotation.
        pupil_bound: Maximum absolute pupil offset.
        photo_prefix: Prefix of every artifact filename.
        source_photo: Path to the source photo (JPEG/PNG/WebP, not HEIC).
        output_dir: Directory receiving artifacts, sprite and sidecar.
        sprite_name: Basename (without extension) of the composite image.
        model: Replicate model reference.
        concurrency: Maximum generation calls in flight.
        max_attempts: Number of whole-batch rounds.
        price_per_call: USD price of one generation call.
        default_cell_size: Default sprite cell size in pixels.
        crop_factor: Crop factor sent with every request.
        output_quality: Output quality sent with every request.
    """

    grid_size: int = Field(default=5, gt=0, le=MAX_GRID_SIZE)
    rotate_bound: float = Field(default=20.0, ge=0)
    pupil_bound: float = Field(default=13.0, ge=0)
    photo_prefix: str = "avatar"
    source_photo: str = "input/photo.jpeg"
    output_dir: str = "output"
    sprite_name: str = "AvatarSprite"
    model: str = EXPRESSION_EDITOR_MODEL
    concurrency: int = Field(default=5, ge=1)
    max_attempts: int = Field(default=2, ge=1)
    price_per_call: float = Field(default=0.00098, ge=0)
    default_cell_size: int = Field(default=160, gt=0)
    crop_factor: float = 1.5
    output_quality: int = Field(default=100, ge=0, le=100)

    @field_validator("grid_size")
    @classmethod
    def _grid_size_must_be_odd(cls, v: int) -> int:
        if v % 2 != 1:
            raise ValueError("grid_size must be an odd integer")
        return v

    @field_validator("photo_prefix", "sprite_name")
    @classmethod
    def _must_be_plain_name(cls, v: str) -> str:
        if not v or "/" in v or "\\" in v:
            raise ValueError("must be a non-empty name without path separators")
        return v
