"""Artifact storage on the local filesystem.

An artifact's existence is the only resume signal: a file at the expected
path counts as done, whatever its content.  Files are written in place; the
only file a run ever deletes is the partial result of its own failed
write.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

from facegrid.logging import get_logger

logger = get_logger("artifacts")


class ArtifactStore:
    """Maps artifact filenames to paths under one output directory."""

    def __init__(self, output_dir: str | Path) -> None:
        self.output_dir = Path(output_dir)

    def path_for(self, filename: str) -> Path:
        return self.output_dir / filename

    def exists(self, filename: str) -> bool:
        return self.path_for(filename).is_file()

    def missing(self, filenames: list[str]) -> list[str]:
        """Return the subset of *filenames* with no artifact, order preserved."""
        return [name for name in filenames if not self.exists(name)]

    def _write(self, filename: str, data: bytes) -> Path:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        path = self.path_for(filename)
        path.write_bytes(data)
        return path

    def _discard(self, filename: str) -> None:
        path = self.path_for(filename)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("Could not remove partial artifact %s: %s", path, exc)

    async def write(self, filename: str, data: bytes) -> Path:
        """Write *data* as the artifact for *filename*.

        Creates the output directory first.  Runs in a worker thread so
        sibling tasks keep making progress.  A failed write removes whatever
        part of the file was written, so it cannot pass for a finished
        artifact on resume.
        """
        if not data:
            raise ValueError(f"Refusing to write empty artifact {filename}")
        try:
            path = await asyncio.to_thread(self._write, filename, data)
        except OSError:
            await asyncio.to_thread(self._discard, filename)
            raise
        logger.debug("Wrote %s (%d bytes)", path, len(data))
        return path
