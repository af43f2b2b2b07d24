"""Image-generation providers.

Contains the abstract :class:`GenerationProvider` and the Replicate-backed
implementation used for real runs.
"""

from __future__ import annotations

from typing import Any

from facegrid.providers._base import GenerationProvider, ProviderError


# Lazy import so the replicate SDK is only needed for real runs
def __getattr__(name: str) -> Any:
    if name == "ReplicateProvider":
        from facegrid.providers.replicate_provider import ReplicateProvider

        return ReplicateProvider
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "GenerationProvider",
    "ProviderError",
    "ReplicateProvider",
]
