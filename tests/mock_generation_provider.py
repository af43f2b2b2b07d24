"""Mock generation provider for unit testing."""

from __future__ import annotations

import asyncio
import io

from PIL import Image

from facegrid.errors import ProviderError
from facegrid.models import Step
from facegrid.providers import GenerationProvider


def make_webp_bytes(size: int = 8, color: tuple[int, int, int, int] = (200, 120, 80, 255)) -> bytes:
    """Return a tiny RGBA WebP image as bytes."""
    img = Image.new("RGBA", (size, size), color)
    buf = io.BytesIO()
    img.save(buf, format="WEBP")
    return buf.getvalue()


class MockGenerationProvider(GenerationProvider):
    """A provider that returns a fixed image and records every call.

    Usage::

        mock = MockGenerationProvider(fail_filenames={"avatar_004.webp"})
        data = await mock.generate(photo, step)   # raises for avatar_004

    Args:
        fail_filenames: Steps that always fail.
        fail_once: Steps that fail on their first call only.
        empty_filenames: Steps whose "service" returns no output.
        delays: Per-filename sleep before answering, to shuffle completion
            order.
    """

    def __init__(
        self,
        fail_filenames: set[str] | None = None,
        fail_once: set[str] | None = None,
        empty_filenames: set[str] | None = None,
        delays: dict[str, float] | None = None,
    ) -> None:
        self.fail_filenames = set(fail_filenames or ())
        self.fail_once = set(fail_once or ())
        self.empty_filenames = set(empty_filenames or ())
        self.delays = dict(delays or {})
        self.calls: list[str] = []
        self.source_images: list[bytes] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.closed = False
        self._image = make_webp_bytes()

    async def generate(self, source_image: bytes, step: Step) -> bytes:
        self.calls.append(step.filename)
        self.source_images.append(source_image)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(step.filename, 0))
            if step.filename in self.fail_filenames:
                raise ProviderError(f"simulated failure for {step.filename}")
            if step.filename in self.fail_once:
                self.fail_once.discard(step.filename)
                raise ProviderError(f"simulated transient failure for {step.filename}")
            if step.filename in self.empty_filenames:
                raise ProviderError(f"No output from Replicate for {step.filename}")
            return self._image
        finally:
            self.in_flight -= 1

    async def close(self) -> None:
        self.closed = True
