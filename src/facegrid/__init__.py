"""facegrid — parametric face-pose grids and sprite sheets from one photo."""

from typing import Any

from facegrid.artifacts import ArtifactStore
from facegrid.assembler import SpriteAssembler
from facegrid.budget import CostEstimate, estimate_cost, format_usd
from facegrid.config import load_config, parse_grid_size
from facegrid.errors import (
    ConfigError,
    ConfirmationDeclined,
    FaceGridError,
    GenerationError,
    GridSizeError,
    ProviderError,
    SourcePhotoError,
    SpriteToolError,
)
from facegrid.executor import GenerationExecutor
from facegrid.grid import build_grid, build_grid_from_setup, value_at
from facegrid.interactive import ConfirmSelector, confirm, prompt_number
from facegrid.logging import get_logger, setup_logging
from facegrid.models import (
    GenerationSetup,
    GenerationTask,
    Grid,
    RunResult,
    SpriteMeta,
    Step,
    TaskStatus,
)
from facegrid.preprocessor import load_source_photo
from facegrid.progress import LineHandle, ProgressRenderer
from facegrid.providers import GenerationProvider
from facegrid.workflow import FaceGridWorkflow, WorkflowOutcome, create_workflow


def __getattr__(name: str) -> Any:
    """Lazy loading for the Replicate-backed provider."""
    if name == "ReplicateProvider":
        from facegrid.providers import ReplicateProvider

        return ReplicateProvider
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "ArtifactStore",
    "ConfigError",
    "ConfirmSelector",
    "ConfirmationDeclined",
    "CostEstimate",
    "FaceGridError",
    "FaceGridWorkflow",
    "GenerationError",
    "GenerationExecutor",
    "GenerationProvider",
    "GenerationSetup",
    "GenerationTask",
    "Grid",
    "GridSizeError",
    "LineHandle",
    "ProgressRenderer",
    "ProviderError",
    "ReplicateProvider",
    "RunResult",
    "SourcePhotoError",
    "SpriteAssembler",
    "SpriteMeta",
    "SpriteToolError",
    "Step",
    "TaskStatus",
    "WorkflowOutcome",
    "build_grid",
    "build_grid_from_setup",
    "confirm",
    "create_workflow",
    "estimate_cost",
    "format_usd",
    "get_logger",
    "load_config",
    "load_source_photo",
    "parse_grid_size",
    "prompt_number",
    "setup_logging",
    "value_at",
]
