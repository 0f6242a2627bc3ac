"""Tests for the gridslice CLI."""

from __future__ import annotations

import json
import zipfile
from pathlib import Path
from typing import Any
from unittest.mock import patch

from typer.testing import CliRunner

from gridslice.cli.main import app
from gridslice.cli.runners import SliceRunResult
from gridslice.core.encoder import FormatEncoder
from gridslice.core.exceptions import EncodeFailedError

runner = CliRunner()


def _last_json(output: str) -> dict[str, object]:
    """Parse the final line of a JSON error report."""
    return json.loads(output.strip().splitlines()[-1])


# =============================================================================
# Version Command
# =============================================================================


class TestVersionCommand:
    """Tests for `gridslice version`."""

    def test_version_outputs_version_string(self) -> None:
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert "gridslice" in result.stdout.lower()

    def test_version_json_output(self) -> None:
        result = runner.invoke(app, ["version", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert "version" in data


# =============================================================================
# Slice Command
# =============================================================================


class TestSliceCommand:
    """Tests for `gridslice slice`."""

    def test_writes_archive(self, png_file: Path, tmp_path: Path) -> None:
        out = tmp_path / "out"
        result = runner.invoke(
            app, ["slice", str(png_file), "-r", "2", "-c", "3", "-o", str(out)]
        )

        assert result.exit_code == 0, result.output
        assert "Entries: 6/6" in result.stdout
        with zipfile.ZipFile(out / "photo_grid.zip") as zf:
            assert len(zf.namelist()) == 6
            assert "photo_2_3.png" in zf.namelist()

    def test_json_output_with_selection(self, png_file: Path, tmp_path: Path) -> None:
        result = runner.invoke(
            app,
            [
                "slice",
                str(png_file),
                "--format",
                "jpg",
                "-s",
                "0",
                "-s",
                "8",
                "-o",
                str(tmp_path),
                "--json",
            ],
        )

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["entries"] == ["photo_1_1.jpg", "photo_3_3.jpg"]
        assert data["requested_cells"] == 2
        assert data["failed_cells"] == []

    def test_grid_dimension_bound(self, png_file: Path, tmp_path: Path) -> None:
        result = runner.invoke(
            app, ["slice", str(png_file), "--rows", "21", "-o", str(tmp_path), "--json"]
        )
        assert result.exit_code == 1
        assert "MAX_GRID_DIMENSION" in _last_json(result.stdout)["error"]

    def test_out_of_range_selection(self, png_file: Path, tmp_path: Path) -> None:
        result = runner.invoke(
            app, ["slice", str(png_file), "-s", "9", "-o", str(tmp_path), "--json"]
        )
        assert result.exit_code == 1
        assert "outside" in _last_json(result.stdout)["error"]
        assert not list(tmp_path.glob("*.zip"))

    def test_missing_cells_reported(self, png_file: Path, tmp_path: Path) -> None:
        fake = SliceRunResult(
            archive_path=tmp_path / "photo_grid.zip",
            entries=[f"photo_{i}.png" for i in range(8)],
            failed_cells=[4],
            requested_cells=9,
        )
        with patch("gridslice.cli.runners.run_slice", return_value=fake):
            result = runner.invoke(app, ["slice", str(png_file), "-o", str(tmp_path)])

        assert result.exit_code == 0
        assert "Entries: 8/9" in result.stdout
        assert "Missing cells (failed to encode): 4" in result.stdout

    def test_json_output_stays_clean_when_cells_drop(
        self, png_file: Path, tmp_path: Path
    ) -> None:
        original = FormatEncoder.encode

        def flaky(
            self: FormatEncoder, image: Any, fmt: Any, *, cell: int | None = None
        ) -> Any:
            if cell == 4:
                raise EncodeFailedError("Encoder returned no data", cell=cell)
            return original(self, image, fmt, cell=cell)

        with patch.object(FormatEncoder, "encode", flaky):
            result = runner.invoke(
                app, ["slice", str(png_file), "-o", str(tmp_path), "--json"]
            )

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["failed_cells"] == [4]
        assert data["entry_count"] == 8

    def test_unsupported_image(self, tmp_path: Path) -> None:
        bogus = tmp_path / "notes.png"
        bogus.write_text("hello")
        result = runner.invoke(app, ["slice", str(bogus), "-o", str(tmp_path), "--json"])
        assert result.exit_code == 1
        assert "not a recognized image" in _last_json(result.stdout)["error"]

    def test_nonexistent_path(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["slice", str(tmp_path / "missing.png")])
        assert result.exit_code != 0


# =============================================================================
# Preview Command
# =============================================================================


class TestPreviewCommand:
    """Tests for `gridslice preview`."""

    def test_json(self, png_file: Path) -> None:
        result = runner.invoke(
            app, ["preview", str(png_file), "-r", "2", "-c", "2", "--crop", "square", "--json"]
        )

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["region"] == {"offset_x": 10.0, "offset_y": 0.0, "width": 40, "height": 40}
        assert data["cell_size"] == [20, 20]
        assert len(data["cells"]) == 4
        assert data["cells"][3]["row"] == 2
        assert data["cells"][3]["x"] == 30.0

    def test_text(self, png_file: Path) -> None:
        result = runner.invoke(app, ["preview", str(png_file)])
        assert result.exit_code == 0
        assert "Image: photo.png (60x40)" in result.stdout
        assert "[8] row 3 col 3" in result.stdout


class TestNoCommand:
    def test_prints_help(self) -> None:
        result = runner.invoke(app, [])
        assert result.exit_code == 0
        assert "slice" in result.stdout
