"""dm_summary.py

Print bucketed call and message reports for a chat export, and optionally
write the per-bucket CSV tables, bar charts and the call image.

Usage:
    python dm_summary.py dm_export.json
    python dm_summary.py dm_export.json --report call-graph --report text-time
    python dm_summary.py dm_export.json --image --workers 4 --csv
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys

import config
from events import load_export
from graph_viz import plot_graph, save_graph_csv
from raster import RasterConfig, call_image_filename, save_call_image
from reports import DEFAULT_REPORTS, REPORTS, call_image, run_text_reports

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Time-of-day call and message statistics for a chat export",
    )
    parser.add_argument("export", nargs="?", default=str(config.EXPORT_PATH),
                        help=f"Path to the export JSON (default: {config.EXPORT_PATH})")
    parser.add_argument("--report", "-r", action="append", choices=sorted(REPORTS),
                        help="Report to run; repeat for several (default: "
                             + ", ".join(DEFAULT_REPORTS) + ")")
    parser.add_argument("--all", "-a", action="store_true", help="Run every report")
    parser.add_argument("--width", "-w", type=int, default=config.BAR_WIDTH,
                        help=f"Bar width in characters (default: {config.BAR_WIDTH})")
    parser.add_argument("--image", "-i", action="store_true",
                        help="Also render the call graph image")
    parser.add_argument("--workers", type=int, default=1,
                        help="Threads used to render the call image (default: 1)")
    parser.add_argument("--csv", action="store_true",
                        help="Write a CSV table and chart for each graph report")
    parser.add_argument("--output-dir", "-o", default=str(config.OUTPUT_DIR),
                        help=f"Directory for written files (default: {config.OUTPUT_DIR})")
    parser.add_argument("--utc-offset", type=int, default=config.UTC_OFFSET_MINUTES,
                        help="Fixed local UTC offset in minutes (default: system zone)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point.

    Returns:
        0 on success.  Exits with status 1 when the export cannot be read.
    """
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    print("Parsing export...")
    try:
        export = load_export(args.export, args.utc_offset)
    except FileNotFoundError:
        print(f"Error: File '{args.export}' not found.", file=sys.stderr)
        sys.exit(1)
    except json.JSONDecodeError as e:
        print(f"Error: '{args.export}' is not valid JSON: {e}", file=sys.stderr)
        sys.exit(1)
    except ValueError as e:
        print(f"Error: '{args.export}' is not a chat export: {e}", file=sys.stderr)
        sys.exit(1)

    names = list(REPORTS) if args.all else (args.report or list(DEFAULT_REPORTS))
    for result in run_text_reports(export, names, args.width):
        print()
        print(result.render())
        if args.csv and result.graph is not None:
            save_graph_csv(result.graph, os.path.join(args.output_dir, f"{result.name}.csv"))
            plot_graph(result.graph, os.path.join(args.output_dir, f"{result.name}.png"),
                       result.title)

    if args.image:
        print("\n# Generating Call Graph Image (15s groupings)...")
        _, pixels = call_image(export, RasterConfig(), args.workers)
        os.makedirs(args.output_dir, exist_ok=True)
        path = os.path.join(
            args.output_dir, call_image_filename(export.channel_name, export.channel_id)
        )
        save_call_image(pixels, path)
        print(f"# Generated Call Graph Image: {path}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
