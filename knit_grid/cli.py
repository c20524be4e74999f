"""
Batch command line interface for the knit grid renderer.

Images render to a single PNG; videos render frame by frame to an animated
GIF or MP4 (or just their first frame as PNG). Parameters come from the
saved settings file, an optional preset, and per-flag overrides, applied in
that order.

Usage examples
--------------

Render every image in ``input/`` with the quilted preset::

    python -m knit_grid.cli input --preset quilted --output-dir output

Render a clip to MP4 at 12 fps with visible gridlines::

    python -m knit_grid.cli clip.mp4 --video-format mp4 --fps 12 --grid-lines
"""

from __future__ import annotations

import argparse
import csv
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from .color import to_rgb8
from .config import CONFIG_FILE, EXPORT_SIZE, PRESETS, KnitParams
from .export import export_gif, export_png, export_video
from .glyphs import POLICIES, GlyphPolicy, get_policy
from .media import (
    DEFAULT_FPS,
    IMAGE_EXTENSIONS,
    VIDEO_EXTENSIONS,
    first_video_frame,
    is_video,
    load_image,
    read_video_frames,
)
from .render import FrameContext, build_frame, render_frames, render_to_array
from .settings import ParamsStore

logger = logging.getLogger("knit_grid")

SUPPORTED_EXTENSIONS = IMAGE_EXTENSIONS | VIDEO_EXTENSIONS

# CLI flag -> KnitParams field
OVERRIDE_FLAGS = {
    "stitch_px": "stitch_px",
    "dither": "dither",
    "contrast": "contrast",
    "saturation": "saturation",
    "edge_crispness": "edge_crispness",
    "seed": "seed",
}

SUMMARY_FIELDS = [
    "input",
    "kind",
    "frames",
    "grid",
    "prominent",
    "diamond",
    "square",
    "circle",
    "output_path",
]


@dataclass
class RenderJob:
    """Runtime configuration derived from CLI arguments."""

    output_dir: Path
    params: KnitParams
    policy: GlyphPolicy
    size: int
    video_format: str
    fps: float


def _setup_logging(debug: bool = False):
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _gather_inputs(sources: Sequence[Path], recursive: bool) -> List[Path]:
    """Collect image and video files from files and directories."""
    seen: set[Path] = set()
    found: List[Path] = []

    for source in sources:
        if source.is_dir():
            iterator: Iterable[Path] = source.rglob("*") if recursive else source.iterdir()
            candidates = [c for c in iterator if c.is_file()]
        elif source.is_file():
            candidates = [source]
        else:
            logger.warning("Input path not found: %s", source)
            continue

        for candidate in candidates:
            if candidate.suffix.lower() not in SUPPORTED_EXTENSIONS:
                if source.is_file():
                    logger.warning("Skipping unsupported file: %s", candidate)
                continue
            resolved = candidate.resolve()
            if resolved not in seen:
                seen.add(resolved)
                found.append(resolved)

    found.sort()
    return found


def resolve_params(args: argparse.Namespace) -> KnitParams:
    """Settings file -> preset -> explicit flag overrides."""
    store = ParamsStore(args.config) if args.config else ParamsStore(CONFIG_FILE)
    params = store.load()
    if args.preset:
        params = PRESETS[args.preset]

    overrides = {
        field: getattr(args, flag)
        for flag, field in OVERRIDE_FLAGS.items()
        if getattr(args, flag) is not None
    }
    if args.grid_lines:
        overrides["show_grid_lines"] = True
    if overrides:
        params = params.replace(**overrides)

    if args.save_config:
        ok, error = store.save(params)
        if ok:
            logger.info("Saved render params to %s", store.config_path)
        else:
            logger.error("Could not save render params: %s", error)
    return params


def _summary_row(source: Path, kind: str, frames: int, frame: FrameContext, output: Path) -> dict:
    counts = frame.glyph_counts()
    prominent = "" if frame.prominent is None else "#%02x%02x%02x" % to_rgb8(frame.prominent)
    return {
        "input": source.name,
        "kind": kind,
        "frames": frames,
        "grid": f"{frame.cols}x{frame.rows}",
        "prominent": prominent,
        "diamond": counts.get("diamond", 0),
        "square": counts.get("square", 0),
        "circle": counts.get("circle", 0),
        "output_path": str(output),
    }


def _render_image(source: Path, job: RenderJob) -> dict:
    image = load_image(source)
    pixels, frame = render_to_array(image, job.params, job.size, policy=job.policy)
    output = export_png(pixels, job.output_dir / f"{source.stem}_knit.png", size=job.size)
    return _summary_row(source, "image", 1, frame, output)


def _render_video(source: Path, job: RenderJob) -> dict:
    if job.video_format == "png":
        still = first_video_frame(source)
        pixels, frame = render_to_array(still, job.params, job.size, policy=job.policy)
        output = export_png(pixels, job.output_dir / f"{source.stem}_knit.png", size=job.size)
        return _summary_row(source, "video", 1, frame, output)

    rendered = list(
        render_frames(read_video_frames(source, fps=job.fps), job.params, job.size, policy=job.policy)
    )
    if not rendered:
        raise ValueError(f"No frames decoded from {source}")

    if job.video_format == "gif":
        delay_ms = int(round(1000.0 / job.fps))
        output = export_gif(rendered, job.output_dir / f"{source.stem}_knit.gif", delay_ms=delay_ms, size=job.size)
    else:
        output = export_video(rendered, job.output_dir / f"{source.stem}_knit.mp4", fps=job.fps, size=job.size)

    # Stats describe the first frame; the full sequence is not re-analysed
    frame = build_frame(first_video_frame(source, at_seconds=0.0), job.params, job.size, policy=job.policy)
    return _summary_row(source, "video", len(rendered), frame, output)


def _process_single_input(source: Path, job: RenderJob) -> Optional[dict]:
    """Render one input and persist its artefact."""
    try:
        if is_video(source):
            record = _render_video(source, job)
        else:
            record = _render_image(source, job)
    except Exception as exc:  # pylint: disable=broad-except
        logger.error("Failed to render %s: %s", source.name, exc)
        return None

    logger.info(
        "%s: grid=%s prominent=%s -> %s",
        source.name, record["grid"], record["prominent"] or "none", record["output_path"],
    )
    return record


def _write_summary_csv(records: List[dict], path: Path) -> None:
    with path.open("w", newline="") as csvfile:
        writer = csv.DictWriter(csvfile, fieldnames=SUMMARY_FIELDS)
        writer.writeheader()
        writer.writerows(records)
    logger.info("Summary written to %s", path)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Render images and videos as knit glyph mosaics.")
    parser.add_argument("inputs", nargs="+", type=Path, help="Image/video files or directories.")
    parser.add_argument(
        "-o", "--output-dir", type=Path, default=Path("output"),
        help="Directory for rendered files (default: ./output).",
    )
    parser.add_argument("--size", type=int, default=EXPORT_SIZE,
                        help=f"Square canvas size in pixels (default: {EXPORT_SIZE}).")
    parser.add_argument("--preset", choices=sorted(PRESETS), help="Start from a named preset.")
    parser.add_argument("--stitch-px", type=float, help="Grid cell size in pixels.")
    parser.add_argument("--dither", type=float, help="Ordered dither amount (0-1).")
    parser.add_argument("--contrast", type=float, help="Contrast multiplier (0.5-1.5).")
    parser.add_argument("--saturation", type=float, help="Saturation multiplier (0-2).")
    parser.add_argument("--edge-crispness", type=float, help="Diamond bias on edges (0-1).")
    parser.add_argument("--seed", type=int, help="Seed for the edge-bias pattern.")
    parser.add_argument("--grid-lines", action="store_true", help="Draw cell gridlines.")
    parser.add_argument("--policy", choices=sorted(POLICIES), default="prominence",
                        help="Glyph selection strategy (default: prominence).")
    parser.add_argument("--video-format", choices=["gif", "mp4", "png"], default="gif",
                        help="Output for video inputs (default: gif).")
    parser.add_argument("--fps", type=float, default=DEFAULT_FPS,
                        help=f"Frames per second sampled from videos (default: {DEFAULT_FPS}).")
    parser.add_argument("--config", type=Path,
                        help="Settings JSON to load params from (default: ~/.knit_grid_params.json).")
    parser.add_argument("--save-config", action="store_true",
                        help="Persist the resolved params back to the settings file.")
    parser.add_argument("--recursive", action="store_true",
                        help="When inputs include directories, walk them recursively.")
    parser.add_argument("--no-summary", action="store_true", help="Do not write summary.csv.")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging.")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _setup_logging(args.debug)

    sources = _gather_inputs(args.inputs, recursive=args.recursive)
    if not sources:
        logger.error("No matching images or videos found.")
        return 1

    try:
        params = resolve_params(args)
    except ValueError as exc:
        logger.error("Invalid render parameters: %s", exc)
        return 1
    if args.fps <= 0:
        logger.error("--fps must be positive")
        return 1

    output_dir = args.output_dir.resolve()
    output_dir.mkdir(parents=True, exist_ok=True)

    job = RenderJob(
        output_dir=output_dir,
        params=params,
        policy=get_policy(args.policy),
        size=args.size,
        video_format=args.video_format,
        fps=args.fps,
    )

    logger.info("Found %d input(s) to render -> %s", len(sources), output_dir)
    records = []
    for source in sources:
        record = _process_single_input(source, job)
        if record is not None:
            records.append(record)

    if records and not args.no_summary:
        _write_summary_csv(records, output_dir / "summary.csv")
    return 0 if records else 1


if __name__ == "__main__":
    sys.exit(main())
