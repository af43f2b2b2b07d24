"""Sprite sheet assembly with ImageMagick ``montage``.

Tiles every grid artifact, in row-major order, into one composite image
with a transparent background, then writes the ``sprite.json`` sidecar the
browser preview reads to map pointer positions onto frames.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

from facegrid.artifacts import ArtifactStore
from facegrid.errors import SpriteToolError
from facegrid.logging import get_logger
from facegrid.models import Grid, SpriteMeta

logger = get_logger("assembler")

SPRITE_META_FILENAME = "sprite.json"
DEFAULT_TOOL = "montage"


class SpriteAssembler:
    """Builds the composite sprite for one grid.

    Args:
        grid: Grid whose artifacts are tiled.
        output_dir: Directory holding the artifacts; receives the sprite
            and its sidecar.
        sprite_name: Sprite basename, without extension.
        tool: Compositing executable.
    """

    def __init__(
        self,
        grid: Grid,
        output_dir: str | Path,
        sprite_name: str = "AvatarSprite",
        tool: str = DEFAULT_TOOL,
    ) -> None:
        self.grid = grid
        self.output_dir = Path(output_dir)
        self.sprite_name = sprite_name
        self.tool = tool

    @property
    def sprite_path(self) -> Path:
        return self.output_dir / f"{self.sprite_name}.webp"

    @property
    def meta_path(self) -> Path:
        return self.output_dir / SPRITE_META_FILENAME

    def input_files(self) -> list[Path]:
        """Artifact paths in lexicographic order, which is row-major order."""
        return [self.output_dir / name for name in sorted(self.grid.filenames())]

    def build_command(self, cell_size: int) -> list[str]:
        """Return the ``montage`` argument vector for *cell_size* pixel cells."""
        n = self.grid.size
        cell = f"{cell_size}x{cell_size}"
        return [
            self.tool,
            *(str(path) for path in self.input_files()),
            "-resize",
            cell,
            "-tile",
            f"{n}x{n}",
            "-geometry",
            f"{cell}+0+0",
            "-background",
            "none",
            str(self.sprite_path),
        ]

    async def assemble(self, cell_size: int) -> Path:
        """Compose the sprite and write its sidecar metadata.

        Args:
            cell_size: Edge length of each tile in pixels.

        Returns:
            Path to the composite image.

        Raises:
            ValueError: If *cell_size* is not positive.
            SpriteToolError: If an artifact is missing, the tool cannot be
                started, or it exits with a non-zero status.
        """
        if cell_size < 1:
            raise ValueError(f"cell_size must be positive, got {cell_size}")

        missing = ArtifactStore(self.output_dir).missing(sorted(self.grid.filenames()))
        if missing:
            raise SpriteToolError(
                f"Cannot build sprite, {len(missing)} artifacts missing: "
                f"{', '.join(missing)}"
            )

        command = self.build_command(cell_size)
        logger.info("Building sprite: %s", " ".join(command))

        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise SpriteToolError(f"Cannot run {self.tool}: {exc}") from exc

        _stdout, stderr = await process.communicate()
        if process.returncode != 0:
            detail = stderr.decode("utf-8", errors="replace").strip()
            raise SpriteToolError(
                f"{self.tool} exited with status {process.returncode}"
                + (f": {detail}" if detail else "")
            )

        meta = SpriteMeta(grid_size=self.grid.size, sprite_picture_size=cell_size)
        self.meta_path.write_text(meta.to_json(), encoding="utf-8")
        logger.info("Sprite created: %s (%s)", self.sprite_path, self.meta_path)
        return self.sprite_path
