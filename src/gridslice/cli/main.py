"""gridslice CLI - slice an image into a grid and download it as a zip.

Command-line interface for the slicing pipeline.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated, NoReturn

import typer

from gridslice import __version__
from gridslice.config import ConfigError, settings
from gridslice.core.types import CropMode, ExportFormat
from gridslice.utils.logging import configure_logging, get_logger

app = typer.Typer(
    name="gridslice",
    help="gridslice: cut an image into a grid of tiles packaged as a zip",
    add_completion=False,
)


# =============================================================================
# Commands
# =============================================================================


@app.command()
def version(
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
) -> None:
    """Show version information."""
    if json_output:
        typer.echo(json.dumps({"version": __version__}))
    else:
        typer.echo(f"gridslice {__version__}")


@app.command(name="slice")
def slice_image(  # noqa: PLR0913
    image_path: Annotated[
        Path,
        typer.Argument(
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
            help="Path to a PNG, JPEG or WebP image",
        ),
    ],
    rows: Annotated[int, typer.Option("--rows", "-r", help="Grid rows")] = 3,
    cols: Annotated[int, typer.Option("--cols", "-c", help="Grid columns")] = 3,
    fmt: Annotated[
        ExportFormat, typer.Option("--format", "-f", help="Output format")
    ] = ExportFormat.png,
    crop: Annotated[
        CropMode, typer.Option("--crop", help="Crop mode before slicing")
    ] = CropMode.original,
    select: Annotated[
        list[int] | None,
        typer.Option(
            "--select",
            "-s",
            help="Cell index to export (repeatable, 0-based row-major; default all)",
        ),
    ] = None,
    output_dir: Annotated[
        Path, typer.Option("--output-dir", "-o", help="Directory for the zip")
    ] = Path("."),
    strict: Annotated[
        bool | None,
        typer.Option(
            "--strict/--no-strict",
            help="Fail the run if any cell fails to encode",
            show_default=False,
        ),
    ] = None,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity (-v, -vv)"
        ),
    ] = 0,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
) -> None:
    """Slice an image into a grid and save the tiles as <name>_grid.zip."""
    from gridslice.cli.runners import run_slice  # noqa: PLC0415

    _configure_logging(verbose, json_output)
    logger = get_logger(__name__)

    try:
        settings.require_grid_dimension("rows", rows)
        settings.require_grid_dimension("cols", cols)
    except ConfigError as e:
        _fail(e, json_output)

    logger.info(
        "Starting slice",
        image=str(image_path),
        rows=rows,
        cols=cols,
        format=fmt.value,
        crop=crop.value,
    )

    try:
        if json_output:
            result = run_slice(
                image_path=image_path,
                rows=rows,
                cols=cols,
                fmt=fmt,
                crop_mode=crop,
                selection=select or (),
                output_dir=output_dir,
                strict=strict,
            )
        else:
            with typer.progressbar(length=100, label="Slicing") as bar:
                shown = 0

                def advance(percent: int) -> None:
                    nonlocal shown
                    bar.update(percent - shown)
                    shown = percent

                result = run_slice(
                    image_path=image_path,
                    rows=rows,
                    cols=cols,
                    fmt=fmt,
                    crop_mode=crop,
                    selection=select or (),
                    output_dir=output_dir,
                    strict=strict,
                    on_progress=advance,
                )

        if json_output:
            typer.echo(json.dumps(result.to_dict(), indent=2))
        else:
            typer.echo(f"Saved {result.archive_path}")
            typer.echo(f"Entries: {len(result.entries)}/{result.requested_cells}")
            if result.failed_cells:
                missing = ", ".join(str(i) for i in result.failed_cells)
                typer.echo(f"Missing cells (failed to encode): {missing}")

        raise typer.Exit(0)

    except typer.Exit:
        raise
    except Exception as e:
        logger.exception("Slicing failed")
        _fail(e, json_output)


@app.command()
def preview(
    image_path: Annotated[
        Path,
        typer.Argument(
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
            help="Path to a PNG, JPEG or WebP image",
        ),
    ],
    rows: Annotated[int, typer.Option("--rows", "-r", help="Grid rows")] = 3,
    cols: Annotated[int, typer.Option("--cols", "-c", help="Grid columns")] = 3,
    crop: Annotated[
        CropMode, typer.Option("--crop", help="Crop mode before slicing")
    ] = CropMode.original,
    verbose: Annotated[
        int, typer.Option("--verbose", "-v", count=True, help="Increase verbosity")
    ] = 0,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
) -> None:
    """Show the cropped region and every cell rectangle without exporting."""
    from gridslice.cli.runners import run_preview  # noqa: PLC0415

    _configure_logging(verbose, json_output)
    logger = get_logger(__name__)

    try:
        settings.require_grid_dimension("rows", rows)
        settings.require_grid_dimension("cols", cols)
        result = run_preview(image_path=image_path, rows=rows, cols=cols, crop_mode=crop)
    except Exception as e:
        logger.exception("Preview failed")
        _fail(e, json_output)

    if json_output:
        typer.echo(json.dumps(result.to_dict(), indent=2))
        raise typer.Exit(0)

    offset_x, offset_y, width, height = result.region
    typer.echo(f"Image: {result.image} ({result.width}x{result.height})")
    typer.echo(f"Region: {width}x{height} at ({offset_x:g}, {offset_y:g})")
    typer.echo(f"Cell size: {result.cell_size[0]}x{result.cell_size[1]}")
    for cell in result.cells:
        typer.echo(
            f"  [{cell['index']}] row {cell['row']} col {cell['col']}: "
            f"x={cell['x']:g} y={cell['y']:g} w={cell['width']:g} h={cell['height']:g}"
        )
    raise typer.Exit(0)


@app.callback(invoke_without_command=True)
def main(ctx: typer.Context) -> None:
    """gridslice: cut an image into a grid of tiles packaged as a zip."""
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())


def _configure_logging(verbose: int, json_output: bool = False) -> None:
    """Configure logging based on verbosity level.

    With --json and no -v only errors are logged, so a run that drops
    cells does not interleave warnings with the JSON summary.
    """
    if verbose == 0:
        level = "ERROR" if json_output else "WARNING"
    elif verbose == 1:
        level = "INFO"
    else:  # verbose >= 2
        level = "DEBUG"

    configure_logging(level=level)


def _fail(error: Exception, json_output: bool) -> NoReturn:
    if json_output:
        typer.echo(json.dumps({"error": str(error)}))
    else:
        typer.echo(f"Error: {error}", err=True)
    raise typer.Exit(1)


if __name__ == "__main__":  # pragma: no cover
    app()
