"""
SoundPress v1 CLI - Argument parsing and dispatch.

Responsibilities:
- Argument parsing
- Reading inputs / writing outputs and reports
- Logging setup
- Printing success/errors
- Exit codes

Forbidden:
- No stage imports (only the pipeline entrypoints)
"""

import argparse
import logging
import sys
from pathlib import Path

from soundpress import __version__


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="soundpress",
        description="SoundPress v1 command-line interface.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log every pipeline stage.",
    )

    subparsers = parser.add_subparsers(dest="command")

    # convert subcommand
    convert_parser = subparsers.add_parser(
        "convert",
        help="Compress audio files to Ogg Vorbis.",
        description=(
            "Compress audio files to Ogg Vorbis.\n\n"
            "Each input is detected, decoded, optionally pitch-analyzed,\n"
            "downmixed to mono, encoded and written as <input name>.ogg."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    convert_parser.add_argument(
        "--input",
        metavar="PATH",
        nargs="+",
        required=True,
        help="Input audio file(s).",
    )
    convert_parser.add_argument(
        "--output-dir",
        metavar="PATH",
        help="Directory for outputs (default: next to each input).",
    )
    convert_parser.add_argument(
        "--overwrite",
        action="store_true",
        help="Replace existing output files.",
    )
    convert_parser.add_argument(
        "--keep-channels",
        action="store_true",
        help="Keep the source channel layout instead of downmixing to mono.",
    )
    convert_parser.add_argument(
        "--no-pitch",
        action="store_true",
        help="Skip YIN pitch analysis.",
    )
    convert_parser.add_argument(
        "--optimize",
        action="store_true",
        help="Remux the encoded output with ffmpeg.",
    )
    convert_parser.add_argument(
        "--best-effort-optimize",
        action="store_true",
        help="Keep the un-optimized output when optimizing fails.",
    )
    convert_parser.add_argument(
        "--quality",
        type=float,
        default=None,
        metavar="Q",
        help="Vorbis quality in [0, 1] (default: 0.4).",
    )
    convert_parser.add_argument("--window-size", type=int, default=2048, metavar="N",
                                help="YIN window in frames (default: 2048).")
    convert_parser.add_argument("--hop-size", type=int, default=1024, metavar="N",
                                help="YIN hop in frames (default: 1024).")
    convert_parser.add_argument("--min-frequency", type=float, default=50.0, metavar="HZ",
                                help="Lowest pitch reported (default: 50).")
    convert_parser.add_argument("--max-frequency", type=float, default=600.0, metavar="HZ",
                                help="Highest pitch reported (default: 600).")
    convert_parser.add_argument(
        "--sample-rate",
        type=int,
        default=None,
        metavar="HZ",
        help="Resample before encoding.",
    )
    convert_parser.add_argument(
        "--workers",
        type=int,
        default=None,
        metavar="N",
        help="Concurrent conversions (default: thread pool default).",
    )
    convert_parser.add_argument(
        "--report",
        action="store_true",
        help="Write <input name>.report.json next to each output.",
    )

    # detect subcommand
    detect_parser = subparsers.add_parser(
        "detect",
        help="Print the detected format of audio files.",
    )
    detect_parser.add_argument("paths", metavar="PATH", nargs="+", help="Files to inspect.")

    return parser


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def build_config(args: argparse.Namespace):
    """Map convert arguments onto a PipelineConfig."""
    from soundpress.config import PipelineConfig

    encoder_params = {}
    if args.quality is not None:
        encoder_params["quality"] = args.quality

    return PipelineConfig(
        target_channels=None if args.keep_channels else 1,
        analyze_pitch=not args.no_pitch,
        optimize_output=args.optimize or args.best_effort_optimize,
        encoder_params=encoder_params,
        window_size=args.window_size,
        hop_size=args.hop_size,
        min_frequency=args.min_frequency,
        max_frequency=args.max_frequency,
        optimize_policy="best_effort" if args.best_effort_optimize else "strict",
        target_sample_rate=args.sample_rate,
    )


def cmd_convert(args: argparse.Namespace) -> int:
    """
    Handle the 'convert' subcommand.

    Returns exit code: 0 if every input converted, 1 otherwise.
    """
    from soundpress.pipeline import run_many
    from soundpress.report import build_report, validate_report
    from soundpress.utils import serialize_json

    input_paths = [Path(p) for p in args.input]
    for input_path in input_paths:
        if not input_path.exists():
            print(f"Error: Input file not found: {input_path}", file=sys.stderr)
            return 1
        if not input_path.is_file():
            print(f"Error: Input path is not a file: {input_path}", file=sys.stderr)
            return 1

    output_dir = Path(args.output_dir) if args.output_dir else None
    if output_dir is not None:
        output_dir.mkdir(parents=True, exist_ok=True)

    output_paths = [
        (output_dir or p.parent) / f"{p.name}.ogg" for p in input_paths
    ]
    report_paths = [
        o.with_name(f"{p.name}.report.json") for p, o in zip(input_paths, output_paths)
    ]

    seen: dict[Path, Path] = {}
    for input_path, output_path in zip(input_paths, output_paths):
        key = output_path.resolve()
        if key in seen:
            print(
                f"Error: {seen[key]} and {input_path} would both write {output_path}",
                file=sys.stderr,
            )
            return 1
        seen[key] = input_path

    if not args.overwrite:
        targets = output_paths + report_paths if args.report else output_paths
        for target in targets:
            if target.exists():
                print(f"Error: Output already exists: {target}", file=sys.stderr)
                return 1

    config = build_config(args)
    results = run_many(
        (p.read_bytes() for p in input_paths),
        config,
        max_workers=args.workers,
        labels=[p.name for p in input_paths],
    )

    exit_code = 0
    for input_path, output_path, report_path, result in zip(
        input_paths, output_paths, report_paths, results
    ):
        if result.ok:
            output_path.write_bytes(result.output_bytes)
            print(f"Converted {input_path} -> {output_path} ({len(result.output_bytes)} bytes)")
            if result.pitch_report is not None:
                r = result.pitch_report
                print(
                    f"  pitch: mean {r.mean:.1f} Hz, median {r.median:.1f} Hz, "
                    f"range {r.lowest:.1f}-{r.highest:.1f} Hz, "
                    f"{r.points_used:.1f}% of windows used"
                )
        else:
            print(
                f"Error: {input_path} failed at {result.stage.value}: {result.cause}",
                file=sys.stderr,
            )
            exit_code = 1

        if args.report:
            report = build_report(
                result,
                config,
                input_name=input_path.name,
                output_name=output_path.name if result.ok else None,
            )
            errors = validate_report(report)
            if errors:
                print(f"Error: Invalid report for {input_path}: {errors}", file=sys.stderr)
                exit_code = 1
                continue
            report_path.write_text(serialize_json(report))

    return exit_code


def cmd_detect(args: argparse.Namespace) -> int:
    """
    Handle the 'detect' subcommand.

    Reads only the probe prefix of each file.
    """
    from soundpress.errors import DetectError
    from soundpress.formats import PROBE_SIZE, detect

    exit_code = 0
    for path in (Path(p) for p in args.paths):
        try:
            with open(path, "rb") as f:
                prefix = f.read(PROBE_SIZE)
        except OSError as e:
            print(f"Error: {path}: {e}", file=sys.stderr)
            exit_code = 1
            continue
        try:
            tag = detect(prefix)
        except DetectError as e:
            print(f"{path}: unknown ({e.code})", file=sys.stderr)
            exit_code = 1
            continue
        print(f"{path}: {tag.value} ({tag.mime_type})")
    return exit_code


def main() -> None:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    configure_logging(args.verbose)

    if args.command == "convert":
        sys.exit(cmd_convert(args))
    if args.command == "detect":
        sys.exit(cmd_detect(args))
