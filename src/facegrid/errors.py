"""Exceptions raised by facegrid.

Configuration problems (bad grid size, unreadable source photo) surface
before any paid call is made.  Generation failures are per-cell and are
collected by the executor rather than aborting the run; a declined prompt
and a failed ``montage`` call each have their own type so the CLI can map
them to exit codes.
"""


class FaceGridError(Exception):
    """Base exception for all facegrid errors."""


class ConfigError(FaceGridError):
    """Raised when configuration loading or validation fails."""


class GridSizeError(ConfigError):
    """Raised when the requested grid dimension is not a positive odd integer."""


class SourcePhotoError(ConfigError):
    """Raised when the source photo is missing or cannot be decoded."""


class ConfirmationDeclined(FaceGridError):
    """Raised when the user declines to start a costly generation run."""


class GenerationError(FaceGridError):
    """Raised when a single grid cell fails to produce an artifact."""


class ProviderError(GenerationError):
    """Raised when the image-generation service call fails."""


class SpriteToolError(FaceGridError):
    """Raised when the external compositing tool exits unsuccessfully."""
