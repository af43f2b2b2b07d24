"""Replicate-hosted expression-editor provider.

Calls the ``fofr/expression-editor`` model through the ``replicate`` SDK
with the source photo and one step's rotation/pupil parameters, then reads
the first returned image.
"""

from __future__ import annotations

import io
import os
from typing import Any

import httpx
import replicate

from facegrid.logging import get_logger
from facegrid.models import EXPRESSION_EDITOR_MODEL, Step
from facegrid.providers._base import GenerationProvider, ProviderError

logger = get_logger("providers")

DOWNLOAD_TIMEOUT = httpx.Timeout(30.0, read=120.0)


def first_output(output: Any) -> Any | None:
    """Return the first artifact reference of a prediction output.

    The model may return a single file or a list of files.  Returns
    ``None`` when the output holds no reference at all.
    """
    if isinstance(output, (list, tuple)):
        output = output[0] if output else None
    if output is None or (isinstance(output, str) and not output.strip()):
        return None
    return output


class ReplicateProvider(GenerationProvider):
    """Generation through Replicate's ``fofr/expression-editor`` model."""

    def __init__(
        self,
        api_token: str | None = None,
        model: str = EXPRESSION_EDITOR_MODEL,
        client: Any | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the provider.

        Args:
            api_token: Replicate API token.  If ``None``, reads
                ``REPLICATE_API_TOKEN`` from the environment.
            model: ``owner/name:version`` model reference.
            client: Pre-built ``replicate.Client`` (mainly for tests).
            http_client: Client used to download URL outputs.  Created and
                owned by the provider when ``None``.

        Raises:
            ProviderError: If no API token is available.
        """
        token = api_token or os.environ.get("REPLICATE_API_TOKEN", "")
        if client is None and not token:
            raise ProviderError(
                "Replicate API token is required. "
                "Pass api_token or set REPLICATE_API_TOKEN."
            )
        self._client = client if client is not None else replicate.Client(api_token=token)
        self._model = model
        self._http = http_client
        self._owns_http = http_client is None

    @property
    def model(self) -> str:
        return self._model

    def _get_http(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient(timeout=DOWNLOAD_TIMEOUT, follow_redirects=True)
        return self._http

    async def generate(self, source_image: bytes, step: Step) -> bytes:
        """Run one prediction and return the generated image bytes.

        Raises:
            ProviderError: If the prediction fails, returns nothing, or the
                image cannot be fetched.
        """
        payload: dict[str, Any] = {"image": io.BytesIO(source_image), **step.to_input()}
        logger.debug(
            "Predicting %s (yaw=%s pitch=%s pupil=%s,%s)",
            step.filename,
            step.rotate_yaw,
            step.rotate_pitch,
            step.pupil_x,
            step.pupil_y,
        )
        try:
            output = await self._client.async_run(self._model, input=payload)
        except Exception as exc:
            raise ProviderError(f"Replicate prediction failed for {step.filename}: {exc}") from exc

        reference = first_output(output)
        if reference is None:
            raise ProviderError(f"No output from Replicate for {step.filename}")
        return await self._read_output(reference, step.filename)

    async def _read_output(self, reference: Any, filename: str) -> bytes:
        try:
            if isinstance(reference, (bytes, bytearray)):
                data = bytes(reference)
            elif hasattr(reference, "aread"):
                data = await reference.aread()
            else:
                url = reference if isinstance(reference, str) else getattr(reference, "url", None)
                if not url:
                    raise ProviderError(
                        f"Unsupported output type for {filename}: {type(reference).__name__}"
                    )
                response = await self._get_http().get(str(url))
                response.raise_for_status()
                data = response.content
        except ProviderError:
            raise
        except Exception as exc:
            raise ProviderError(f"Failed to fetch output for {filename}: {exc}") from exc

        if not data:
            raise ProviderError(f"Empty output from Replicate for {filename}")
        return data

    async def close(self) -> None:
        """Close the download client if this provider created it."""
        if self._owns_http and self._http is not None:
            await self._http.aclose()
            self._http = None
