"""Base class for image-generation providers."""

from __future__ import annotations

from abc import ABC, abstractmethod

from facegrid.errors import ProviderError
from facegrid.models import Step


class GenerationProvider(ABC):
    """Abstract base for services that render one grid cell."""

    @abstractmethod
    async def generate(self, source_image: bytes, step: Step) -> bytes:
        """Render the face variant described by *step*.

        Args:
            source_image: Raw bytes of the source photo.
            step: Per-cell generation parameters.

        Returns:
            Encoded image bytes of the generated artifact.

        Raises:
            ProviderError: If the service call fails or returns no image.
        """

    async def close(self) -> None:
        """Clean up provider resources."""


__all__ = ["GenerationProvider", "ProviderError"]
