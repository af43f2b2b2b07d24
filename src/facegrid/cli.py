"""Command-line interface for facegrid.

``facegrid [GRID_SIZE]`` estimates the cost of an ``N x N`` face grid,
asks for confirmation, generates every cell and optionally assembles the
sprite sheet.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape

from facegrid.budget import estimate_cost
from facegrid.config import load_config, parse_grid_size
from facegrid.errors import ConfirmationDeclined, FaceGridError
from facegrid.logging import setup_logging
from facegrid.models import GenerationSetup
from facegrid.workflow import WorkflowOutcome, create_workflow

console = Console()
err_console = Console(stderr=True)


def _setup_logging(verbose: bool, log_file: Path | None) -> None:
    """Quiet console logging unless verbose; stdout is the progress display."""
    setup_logging(
        level=logging.DEBUG if verbose else logging.WARNING,
        verbose=verbose,
        log_file=log_file,
    )


async def _run_generation(setup: GenerationSetup) -> WorkflowOutcome:
    async with create_workflow(setup, console=console) as workflow:
        return await workflow.run()


def _print_estimate(setup: GenerationSetup) -> None:
    estimate = estimate_cost(setup.grid_size, setup.price_per_call)
    n = setup.grid_size
    console.print(f"[bold]{n}x{n} grid[/]: {estimate.calls} generation calls")
    console.print(f"  Price per call: ${setup.price_per_call}")
    console.print(f"  Estimated cost: [bold]{estimate.formatted}[/]")
    console.print(f"  Output: {setup.output_dir}/{setup.photo_prefix}_*.webp")


@click.command()
@click.version_option()
@click.argument("grid_size", required=False)
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="YAML file overriding the built-in run settings",
)
@click.option(
    "--source",
    "-s",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Source photo (default: input/photo.jpeg)",
)
@click.option(
    "--output-dir",
    "-o",
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory for generated images and the sprite (default: output)",
)
@click.option(
    "--concurrency",
    type=click.IntRange(min=1),
    help="Maximum generation calls in flight (default: 5)",
)
@click.option(
    "--max-attempts",
    type=click.IntRange(min=1),
    help="Retry rounds before giving up on missing images (default: 2)",
)
@click.option(
    "--dry-run",
    is_flag=True,
    help="Print the cost estimate and exit without calling the service",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable detailed logging on stderr",
)
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Also write logs to this file",
)
def main(
    grid_size: str | None,
    config_path: Path | None,
    source: Path | None,
    output_dir: Path | None,
    concurrency: int | None,
    max_attempts: int | None,
    dry_run: bool,
    verbose: bool,
    log_file: Path | None,
) -> None:
    """Generate an N x N grid of face poses from one photo and build a sprite.

    GRID_SIZE: positive odd grid dimension (default: 5)

    Example:

        \b
        facegrid
        facegrid 7 --source input/me.jpeg --concurrency 3
        facegrid 9 --dry-run
    """
    _setup_logging(verbose, log_file)
    load_dotenv(override=False)

    try:
        size = parse_grid_size(grid_size) if grid_size is not None else None
        setup = load_config(
            config_path,
            grid_size=size,
            source_photo=str(source) if source else None,
            output_dir=str(output_dir) if output_dir else None,
            concurrency=concurrency,
            max_attempts=max_attempts,
        )

        if dry_run:
            _print_estimate(setup)
            return

        outcome = asyncio.run(_run_generation(setup))

    except ConfirmationDeclined as e:
        console.print(escape(str(e)))
        sys.exit(0)
    except FaceGridError as e:
        err_console.print(f"[bold red]✗[/] {escape(str(e))}")
        sys.exit(1)
    except (KeyboardInterrupt, EOFError):
        err_console.print("\n[bold yellow]⚠[/] Interrupted by user")
        sys.exit(130)
    except Exception as e:
        err_console.print(f"[bold red]✗[/] Unexpected error: {escape(str(e))}")
        if verbose:
            err_console.print_exception()
        sys.exit(1)

    sys.exit(outcome.exit_code)


if __name__ == "__main__":
    main()
