"""Shared fixtures for facegrid tests."""

from __future__ import annotations

import io
import shutil
from pathlib import Path

import pytest
from PIL import Image
from rich.console import Console

from facegrid.grid import build_grid
from facegrid.models import GenerationSetup, Grid
from facegrid.progress import ProgressRenderer

from mock_generation_provider import MockGenerationProvider, make_webp_bytes

# ---------------------------------------------------------------------------
# Auto-skip integration tests when ImageMagick is unavailable
# ---------------------------------------------------------------------------


def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    """Skip integration tests when ``montage`` is not on PATH."""
    if shutil.which("montage") is not None:
        return
    skip_marker = pytest.mark.skip(
        reason="Integration test skipped: ImageMagick `montage` not found on PATH."
    )
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_marker)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def source_photo_bytes() -> bytes:
    """A 128x128 JPEG standing in for the source portrait."""
    img = Image.new("RGB", (128, 128), (180, 150, 130))
    buf = io.BytesIO()
    img.save(buf, format="JPEG")
    return buf.getvalue()


@pytest.fixture()
def source_photo(tmp_path: Path, source_photo_bytes: bytes) -> Path:
    path = tmp_path / "input" / "photo.jpeg"
    path.parent.mkdir(parents=True)
    path.write_bytes(source_photo_bytes)
    return path


@pytest.fixture()
def output_dir(tmp_path: Path) -> Path:
    return tmp_path / "output"


@pytest.fixture()
def grid3() -> Grid:
    return build_grid(3)


@pytest.fixture()
def setup3(output_dir: Path, source_photo: Path) -> GenerationSetup:
    return GenerationSetup(
        grid_size=3,
        output_dir=str(output_dir),
        source_photo=str(source_photo),
        concurrency=2,
        max_attempts=2,
    )


@pytest.fixture()
def mock_provider() -> MockGenerationProvider:
    return MockGenerationProvider()


@pytest.fixture()
def renderer() -> ProgressRenderer:
    return ProgressRenderer(Console(file=io.StringIO(), force_terminal=False, width=200))


@pytest.fixture()
def webp_bytes() -> bytes:
    return make_webp_bytes()
