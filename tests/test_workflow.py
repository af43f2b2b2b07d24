"""Tests for facegrid.workflow — end-to-end orchestration with mocks."""

from __future__ import annotations

import io
import json
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, call, patch

import pytest
from rich.console import Console

from facegrid.assembler import SpriteAssembler
from facegrid.errors import ConfirmationDeclined, SourcePhotoError, SpriteToolError
from facegrid.models import GenerationSetup
from facegrid.progress import ProgressRenderer
from facegrid.workflow import FaceGridWorkflow, WorkflowOutcome, create_workflow

from mock_generation_provider import MockGenerationProvider


class ScriptedPrompts:
    """Answers confirm prompts in order and records what was asked."""

    def __init__(self, *answers: bool, cell_size: float = 100) -> None:
        self.answers = list(answers)
        self.cell_size = cell_size
        self.questions: list[str] = []
        self.number_prompts: list[tuple[str, int]] = []

    def confirm(self, message: str) -> bool:
        self.questions.append(message)
        return self.answers.pop(0)

    def prompt_number(self, message: str, default: int) -> float:
        self.number_prompts.append((message, default))
        return self.cell_size


def _workflow(
    setup: GenerationSetup,
    provider: MockGenerationProvider,
    prompts: ScriptedPrompts,
) -> tuple[FaceGridWorkflow, io.StringIO]:
    stream = io.StringIO()
    workflow = create_workflow(
        setup,
        provider=provider,
        renderer=ProgressRenderer(Console(file=stream, force_terminal=False, width=200)),
        source_image=b"photo",
        confirm_fn=prompts.confirm,
        prompt_number_fn=prompts.prompt_number,
    )
    return workflow, stream


def _mock_assembler(workflow: FaceGridWorkflow, error: Exception | None = None) -> MagicMock:
    assembler = MagicMock(spec=SpriteAssembler)
    assembler.build_command.return_value = ["montage", "..."]
    assembler.assemble = AsyncMock(
        return_value=Path(workflow.setup.output_dir) / "AvatarSprite.webp",
        side_effect=error,
    )
    workflow.assembler = assembler
    return assembler


class TestWorkflowRun:
    """Tests for FaceGridWorkflow.run()."""

    @pytest.mark.asyncio
    async def test_declined_generation_makes_no_calls(
        self, setup3: GenerationSetup, mock_provider: MockGenerationProvider, output_dir: Path
    ) -> None:
        prompts = ScriptedPrompts(False)
        workflow, stream = _workflow(setup3, mock_provider, prompts)

        with pytest.raises(ConfirmationDeclined, match="Aborted by user."):
            await workflow.run()

        assert mock_provider.calls == []
        assert not output_dir.exists()
        assert "Generating 9 photos (3x3 grid)." in stream.getvalue()
        assert "Estimated cost: $0.01" in stream.getvalue()

    @pytest.mark.asyncio
    async def test_full_success(
        self, setup3: GenerationSetup, mock_provider: MockGenerationProvider
    ) -> None:
        prompts = ScriptedPrompts(True, True, cell_size=96)
        workflow, stream = _workflow(setup3, mock_provider, prompts)
        assembler = _mock_assembler(workflow)

        outcome = await workflow.run()

        assert outcome is WorkflowOutcome.SPRITE_CREATED
        assert outcome.exit_code == 0
        assert prompts.questions == ["Continue with generation?", "Proceed to create sprite?"]
        assert prompts.number_prompts == [("Sprite cell size in px (default 160): ", 160)]
        assembler.assemble.assert_awaited_once_with(96)
        assert len(mock_provider.calls) == 9
        assert workflow.last_result is not None
        assert workflow.last_result.success
        assert "All images generated successfully." in stream.getvalue()
        assert "Sprite created:" in stream.getvalue()

    @pytest.mark.asyncio
    async def test_fractional_cell_size_truncated(
        self, setup3: GenerationSetup, mock_provider: MockGenerationProvider
    ) -> None:
        workflow, _ = _workflow(setup3, mock_provider, ScriptedPrompts(True, True, cell_size=99.7))
        assembler = _mock_assembler(workflow)

        await workflow.run()

        assembler.assemble.assert_awaited_once_with(99)

    @pytest.mark.asyncio
    async def test_prompts_counted_as_terminal_lines(
        self, setup3: GenerationSetup, mock_provider: MockGenerationProvider
    ) -> None:
        prompts = ScriptedPrompts(True, True)
        workflow, _ = _workflow(setup3, mock_provider, prompts)
        _mock_assembler(workflow)

        renderer = workflow.renderer

        with (
            patch("facegrid.workflow.is_interactive", return_value=True),
            patch.object(
                renderer, "note_external_lines", wraps=renderer.note_external_lines
            ) as noted,
        ):
            await workflow.run()

        # two confirmations and the cell size prompt
        assert noted.call_args_list == [call(1), call(1), call(1)]

    @pytest.mark.asyncio
    async def test_prompts_not_counted_when_piped(
        self, setup3: GenerationSetup, mock_provider: MockGenerationProvider
    ) -> None:
        workflow, _ = _workflow(setup3, mock_provider, ScriptedPrompts(True, True))
        _mock_assembler(workflow)

        with (
            patch("facegrid.workflow.is_interactive", return_value=False),
            patch.object(workflow.renderer, "note_external_lines") as noted,
        ):
            await workflow.run()

        noted.assert_not_called()

    @pytest.mark.asyncio
    async def test_incomplete_generation_skips_sprite(
        self, setup3: GenerationSetup, output_dir: Path
    ) -> None:
        provider = MockGenerationProvider(fail_filenames={"avatar_004.webp"})
        prompts = ScriptedPrompts(True)
        workflow, stream = _workflow(setup3, provider, prompts)
        assembler = _mock_assembler(workflow)

        outcome = await workflow.run()

        assert outcome is WorkflowOutcome.GENERATION_INCOMPLETE
        assert outcome.exit_code == 1
        assert prompts.questions == ["Continue with generation?"]
        assembler.assemble.assert_not_called()
        assert workflow.last_result is not None
        assert workflow.last_result.failed_filenames == ["avatar_004.webp"]
        assert len(list(output_dir.iterdir())) == 8
        assert (
            "Could not generate 1 images after 2 attempts: avatar_004.webp"
            in stream.getvalue()
        )
        assert (
            "Skipping sprite creation because not all images were generated."
            in stream.getvalue()
        )

    @pytest.mark.asyncio
    async def test_sprite_declined(
        self, setup3: GenerationSetup, mock_provider: MockGenerationProvider
    ) -> None:
        prompts = ScriptedPrompts(True, False)
        workflow, stream = _workflow(setup3, mock_provider, prompts)
        assembler = _mock_assembler(workflow)

        outcome = await workflow.run()

        assert outcome is WorkflowOutcome.SPRITE_SKIPPED
        assert outcome.exit_code == 0
        assert prompts.number_prompts == []
        assembler.assemble.assert_not_called()
        assert "Sprite creation skipped by user request." in stream.getvalue()

    @pytest.mark.asyncio
    async def test_sprite_tool_failure(
        self, setup3: GenerationSetup, mock_provider: MockGenerationProvider
    ) -> None:
        workflow, _ = _workflow(setup3, mock_provider, ScriptedPrompts(True, True))
        _mock_assembler(workflow, error=SpriteToolError("montage exited with status 1"))

        outcome = await workflow.run()

        assert outcome is WorkflowOutcome.SPRITE_FAILED
        assert outcome.exit_code == 1

    @pytest.mark.asyncio
    async def test_resumed_run_only_generates_missing(
        self, setup3: GenerationSetup, mock_provider: MockGenerationProvider, output_dir: Path
    ) -> None:
        output_dir.mkdir()
        (output_dir / "avatar_000.webp").write_bytes(b"kept")
        (output_dir / "avatar_008.webp").write_bytes(b"kept")
        workflow, _ = _workflow(setup3, mock_provider, ScriptedPrompts(True, False))

        await workflow.run()

        assert len(mock_provider.calls) == 7
        assert (output_dir / "avatar_000.webp").read_bytes() == b"kept"

    @pytest.mark.asyncio
    async def test_real_assembler_writes_sidecar(
        self, setup3: GenerationSetup, mock_provider: MockGenerationProvider, output_dir: Path
    ) -> None:
        workflow, _ = _workflow(setup3, mock_provider, ScriptedPrompts(True, True, cell_size=64))
        process = MagicMock(returncode=0)
        process.communicate = AsyncMock(return_value=(b"", b""))

        with patch(
            "facegrid.assembler.asyncio.create_subprocess_exec",
            new=AsyncMock(return_value=process),
        ):
            outcome = await workflow.run()

        assert outcome is WorkflowOutcome.SPRITE_CREATED
        meta = json.loads((output_dir / "sprite.json").read_text(encoding="utf-8"))
        assert meta == {"gridSize": 3, "spritePictureSize": 64}


class TestWorkflowLifecycle:
    """Tests for construction and cleanup."""

    @pytest.mark.asyncio
    async def test_context_manager_closes_provider(
        self, setup3: GenerationSetup, mock_provider: MockGenerationProvider
    ) -> None:
        async with create_workflow(
            setup3,
            provider=mock_provider,
            renderer=ProgressRenderer(
                Console(file=io.StringIO(), force_terminal=False, width=200)
            ),
        ) as workflow:
            assert workflow.estimate().calls == 9
        assert mock_provider.closed

    def test_reads_source_photo(
        self,
        setup3: GenerationSetup,
        mock_provider: MockGenerationProvider,
        source_photo_bytes: bytes,
    ) -> None:
        workflow = create_workflow(setup3, provider=mock_provider)
        assert workflow.executor.source_image == source_photo_bytes
        assert workflow.grid.size == 3

    def test_missing_photo_fails_before_anything(
        self, tmp_path: Path, mock_provider: MockGenerationProvider
    ) -> None:
        setup = GenerationSetup(grid_size=3, source_photo=str(tmp_path / "missing.jpeg"))
        with pytest.raises(SourcePhotoError):
            create_workflow(setup, provider=mock_provider)

    def test_outcome_exit_codes(self) -> None:
        assert WorkflowOutcome.SPRITE_CREATED.exit_code == 0
        assert WorkflowOutcome.SPRITE_SKIPPED.exit_code == 0
        assert WorkflowOutcome.SPRITE_FAILED.exit_code == 1
        assert WorkflowOutcome.GENERATION_INCOMPLETE.exit_code == 1
