"""Workflow orchestrator: estimate, confirm, generate, confirm, assemble.

Ties the pipeline together with plain async Python (``asyncio``).  Costly
steps are gated by interactive prompts; sprite assembly only runs when
every artifact exists, and never touches the artifacts themselves.
"""

from __future__ import annotations

import asyncio
import sys
from collections.abc import Callable
from enum import Enum
from functools import partial
from pathlib import Path
from typing import Any

from rich.console import Console

from facegrid.artifacts import ArtifactStore
from facegrid.assembler import SpriteAssembler
from facegrid.budget import CostEstimate, estimate_cost
from facegrid.errors import ConfirmationDeclined, SpriteToolError
from facegrid.executor import GenerationExecutor
from facegrid.grid import build_grid_from_setup
from facegrid.interactive import confirm, is_interactive, prompt_number
from facegrid.logging import get_logger
from facegrid.models import GenerationSetup, Grid, RunResult
from facegrid.preprocessor import load_source_photo
from facegrid.progress import ProgressRenderer
from facegrid.providers import GenerationProvider

logger = get_logger("workflow")

ConfirmFn = Callable[[str], bool]
PromptNumberFn = Callable[[str, int], float]


class WorkflowOutcome(str, Enum):
    """How a run ended once generation was confirmed."""

    SPRITE_CREATED = "sprite_created"
    SPRITE_SKIPPED = "sprite_skipped"
    SPRITE_FAILED = "sprite_failed"
    GENERATION_INCOMPLETE = "generation_incomplete"

    @property
    def exit_code(self) -> int:
        if self in (WorkflowOutcome.SPRITE_CREATED, WorkflowOutcome.SPRITE_SKIPPED):
            return 0
        return 1


class FaceGridWorkflow:
    """Runs one face-grid generation from cost estimate to sprite.

    Args:
        setup: Run settings.
        grid: The grid to generate.
        executor: Generation engine.
        assembler: Sprite builder for *grid*.
        renderer: Terminal output shared with the executor.
        confirm_fn: Yes/no prompt; blocking, run in a worker thread.
        prompt_number_fn: Numeric prompt; blocking, run in a worker thread.
        provider: Closed together with the workflow when given.
    """

    def __init__(
        self,
        setup: GenerationSetup,
        grid: Grid,
        executor: GenerationExecutor,
        assembler: SpriteAssembler,
        renderer: ProgressRenderer,
        confirm_fn: ConfirmFn | None = None,
        prompt_number_fn: PromptNumberFn | None = None,
        provider: GenerationProvider | None = None,
    ) -> None:
        self.setup = setup
        self.grid = grid
        self.executor = executor
        self.assembler = assembler
        self.renderer = renderer
        self._confirm = confirm_fn or confirm
        self._prompt_number = prompt_number_fn or partial(
            prompt_number, on_invalid=renderer.log
        )
        self._provider = provider
        self.last_result: RunResult | None = None

    async def __aenter__(self) -> FaceGridWorkflow:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Release the provider, if this workflow owns one."""
        if self._provider is not None:
            await self._provider.close()
            self._provider = None

    def estimate(self) -> CostEstimate:
        return estimate_cost(self.grid.size, self.setup.price_per_call)

    def _note_prompt_line(self) -> None:
        # An interactive prompt leaves one line behind on the terminal.
        if is_interactive(sys.stdin):
            self.renderer.note_external_lines(1)

    async def _ask(self, message: str) -> bool:
        answer = await asyncio.to_thread(self._confirm, message)
        self._note_prompt_line()
        return answer

    async def run(self) -> WorkflowOutcome:
        """Run the pipeline.

        Returns:
            The :class:`WorkflowOutcome`; its ``exit_code`` is the process
            status.

        Raises:
            ConfirmationDeclined: If the user does not confirm generation.
        """
        estimate = self.estimate()
        n = self.grid.size
        self.renderer.log(f"Generating {estimate.calls} photos ({n}x{n} grid).")
        self.renderer.log(f"Estimated cost: {estimate.formatted}")

        if not await self._ask("Continue with generation?"):
            raise ConfirmationDeclined("Aborted by user.")

        result = await self.executor.run_all(
            self.grid.flatten(),
            concurrency=self.setup.concurrency,
            max_attempts=self.setup.max_attempts,
        )
        self.last_result = result
        logger.info(
            "Generation finished: %d generated, %d skipped, %d missing",
            result.generated,
            result.skipped,
            len(result.failed_filenames),
        )

        if not result.success:
            failure = (
                f"Could not generate {len(result.failed_filenames)} images after "
                f"{self.setup.max_attempts} attempts: "
                f"{', '.join(result.failed_filenames)}"
            )
            logger.error(failure)
            self.renderer.log(failure)
            self.renderer.log(
                "Skipping sprite creation because not all images were generated."
            )
            return WorkflowOutcome.GENERATION_INCOMPLETE

        if not await self._ask("Proceed to create sprite?"):
            self.renderer.log("Sprite creation skipped by user request.")
            return WorkflowOutcome.SPRITE_SKIPPED

        default_size = self.setup.default_cell_size
        raw_size = await asyncio.to_thread(
            self._prompt_number,
            f"Sprite cell size in px (default {default_size}): ",
            default_size,
        )
        self._note_prompt_line()
        cell_size = max(1, int(raw_size))

        self.renderer.log(
            f"Building sprite: {' '.join(self.assembler.build_command(cell_size))}"
        )
        try:
            sprite_path = await self.assembler.assemble(cell_size)
        except SpriteToolError as exc:
            logger.error("Failed to create sprite: %s", exc)
            return WorkflowOutcome.SPRITE_FAILED

        self.renderer.log(f"Sprite created: {sprite_path}")
        return WorkflowOutcome.SPRITE_CREATED


def create_workflow(
    setup: GenerationSetup,
    *,
    provider: GenerationProvider | None = None,
    renderer: ProgressRenderer | None = None,
    console: Console | None = None,
    source_image: bytes | None = None,
    confirm_fn: ConfirmFn | None = None,
    prompt_number_fn: PromptNumberFn | None = None,
) -> FaceGridWorkflow:
    """Wire a :class:`FaceGridWorkflow` from run settings.

    Args:
        setup: Validated run settings.
        provider: Generation provider; a :class:`ReplicateProvider` for
            ``setup.model`` is created when omitted.
        renderer: Progress renderer; built on *console* when omitted.
        console: Rich console the progress renderer writes to; a stdout
            console when omitted.
        source_image: Photo bytes; read from ``setup.source_photo`` when
            omitted.
        confirm_fn: Override for the yes/no prompt.
        prompt_number_fn: Override for the numeric prompt.

    Raises:
        SourcePhotoError: If the source photo is unusable.
        ProviderError: If the default provider cannot be configured.
    """
    if source_image is None:
        source_image = load_source_photo(setup.source_photo)
    if provider is None:
        from facegrid.providers import ReplicateProvider

        provider = ReplicateProvider(model=setup.model)
    renderer = renderer if renderer is not None else ProgressRenderer(console)

    grid = build_grid_from_setup(setup)
    output_dir = Path(setup.output_dir)
    executor = GenerationExecutor(
        provider=provider,
        store=ArtifactStore(output_dir),
        source_image=source_image,
        renderer=renderer,
    )
    assembler = SpriteAssembler(grid, output_dir, sprite_name=setup.sprite_name)

    return FaceGridWorkflow(
        setup=setup,
        grid=grid,
        executor=executor,
        assembler=assembler,
        renderer=renderer,
        confirm_fn=confirm_fn,
        prompt_number_fn=prompt_number_fn,
        provider=provider,
    )
