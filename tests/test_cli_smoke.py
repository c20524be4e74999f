"""
Smoke tests for the batch CLI.

The goal is to exercise the full render pipeline on tiny synthetic inputs so
regressions in wiring or filesystem layout are caught early.
"""

from __future__ import annotations

import csv
import json
from pathlib import Path

import numpy as np
from PIL import Image

from knit_grid.cli import main as cli_main
from knit_grid.export import export_video


def _save_flat_sprite(path: Path, size: int = 32, rgb=(255, 242, 2)) -> None:
    pixels = np.zeros((size, size, 4), dtype=np.uint8)
    pixels[..., :3] = rgb
    pixels[..., 3] = 255
    Image.fromarray(pixels).save(path)


def _read_summary(path: Path):
    with path.open(newline="") as handle:
        return list(csv.DictReader(handle))


def test_cli_smoke(tmp_path):
    input_dir = tmp_path / "input"
    output_dir = tmp_path / "output"
    input_dir.mkdir()

    source = input_dir / "sample.png"
    _save_flat_sprite(source)

    status = cli_main(
        [
            str(source),
            "--output-dir",
            str(output_dir),
            "--size",
            "80",
            "--config",
            str(tmp_path / "params.json"),
        ]
    )
    assert status == 0

    rendered = output_dir / "sample_knit.png"
    summary_path = output_dir / "summary.csv"
    assert rendered.exists(), "CLI did not write the rendered mosaic"
    assert summary_path.exists(), "CLI did not persist summary CSV"

    with Image.open(rendered) as image:
        assert image.size == (80, 80)

    rows = _read_summary(summary_path)
    assert len(rows) == 1
    row = rows[0]
    assert row["input"] == "sample.png"
    assert row["grid"] == "4x4"
    assert row["prominent"] == "#fff202"
    assert row["circle"] == "8"
    assert row["square"] == "8"
    assert row["diamond"] == "0"


def test_cli_directory_and_save_config(tmp_path):
    input_dir = tmp_path / "input"
    output_dir = tmp_path / "output"
    config = tmp_path / "params.json"
    input_dir.mkdir()
    _save_flat_sprite(input_dir / "a.png")
    _save_flat_sprite(input_dir / "b.png", rgb=(0, 54, 127))
    (input_dir / "notes.txt").write_text("ignored")

    status = cli_main(
        [
            str(input_dir),
            "-o", str(output_dir),
            "--size", "60",
            "--preset", "quilted",
            "--dither", "0.5",
            "--config", str(config),
            "--save-config",
            "--no-summary",
        ]
    )
    assert status == 0
    assert (output_dir / "a_knit.png").exists()
    assert (output_dir / "b_knit.png").exists()
    assert not (output_dir / "summary.csv").exists()

    saved = json.loads(config.read_text())
    assert saved["dither"] == 0.5
    assert saved["show_grid_lines"] is True
    assert saved["stitch_px"] == 18


def test_cli_video_to_gif(tmp_path):
    frames = [np.full((48, 48, 3), (i * 20, 120, 40), dtype=np.uint8) for i in range(10)]
    clip = export_video(frames, tmp_path / "clip.mp4", fps=10, size=48)
    output_dir = tmp_path / "output"

    status = cli_main(
        [
            str(clip),
            "-o", str(output_dir),
            "--size", "48",
            "--stitch-px", "8",
            "--fps", "5",
            "--config", str(tmp_path / "params.json"),
        ]
    )
    assert status == 0
    assert (output_dir / "clip_knit.gif").exists()
    row = _read_summary(output_dir / "summary.csv")[0]
    assert row["kind"] == "video"
    assert row["grid"] == "6x6"


def test_cli_reports_failures(tmp_path):
    config = str(tmp_path / "params.json")
    assert cli_main([str(tmp_path / "missing.png"), "--config", config]) == 1

    source = tmp_path / "sample.png"
    _save_flat_sprite(source)
    assert cli_main([str(source), "--dither", "3", "--config", config, "-o", str(tmp_path / "out")]) == 1

    broken = tmp_path / "broken.png"
    broken.write_bytes(b"not an image")
    assert cli_main([str(broken), "--config", config, "-o", str(tmp_path / "out")]) == 1
