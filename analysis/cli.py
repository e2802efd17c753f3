"""Command-line interface for delivery analysis."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from app.pipeline.job import AnalysisJob, JobStatus
from capture.video_source import VideoFrameSource
from configs.calibration import DEFAULT_CALIBRATION_PATH, load_calibration
from contracts.versioning import dump_records
from detect.classical_detector import ClassicalDetector
from detect.ml_detector import MlDetector
from exceptions import DrsTrackError, InvalidCalibrationError
from log_config.logger import configure_file_logging, set_console_level


def analyze_command(args):
    """Handle analyze command.

    Args:
        args: Parsed command-line arguments
    """
    video_path = Path(args.video)
    if not video_path.exists():
        print(f"Error: Video not found: {video_path}", file=sys.stderr)
        return 1

    try:
        calibration = load_calibration(Path(args.calibration))
    except InvalidCalibrationError as e:
        print(f"Error: {e}", file=sys.stderr)
        for problem in e.validation_errors:
            print(f"  - {problem}", file=sys.stderr)
        return 2

    if args.model:
        # cv2.dnn networks are not safe to share between worker threads.
        detector = MlDetector(model_path=args.model)
        workers = 0
    else:
        detector = ClassicalDetector(calibration.detector)
        workers = args.workers

    print(f"Analyzing delivery: {video_path}")
    try:
        with VideoFrameSource(video_path, fps=calibration.fps) as source:
            outcome = AnalysisJob(source, calibration, detector, workers=workers).run()
    except (ValueError, DrsTrackError) as e:
        print(f"Error during analysis: {e}", file=sys.stderr)
        return 1

    if args.output:
        Path(args.output).write_text(dump_records(outcome.tracking_data, outcome.results))
        print(f"  Records written: {args.output}")

    if outcome.status != JobStatus.COMPLETED:
        print(f"Analysis unavailable ({outcome.error_kind.value}): {outcome.message}", file=sys.stderr)
        return 3

    results = outcome.results
    lbw = results.lbw_prediction
    print("\n✓ Analysis complete!")
    print(f"  Tracked frames: {len(outcome.tracking_data)} ({outcome.segments_found} segment(s))")
    print(f"  Speed: {results.speed:.1f} km/h (max {results.max_speed:.1f} km/h)")
    if results.no_bounce:
        print("  Pitch point: none (no bounce detected)")
    else:
        print(
            f"  Pitch point: ({results.pitch_point.x:.1f}, {results.pitch_point.y:.1f}), "
            f"{results.pitch_distance:.2f} m from stumps"
        )
    print(f"  Swing: {results.swing_angle:+.2f} deg, spin: {results.spin_rate:.0f} rpm")
    print(f"  Ball type: {results.ball_type.value}")
    print(
        f"  LBW: {'hitting' if lbw.would_hit_stumps else 'missing'} "
        f"(probability {lbw.probability:.1%})"
    )
    return 0


def validate_calibration_command(args):
    """Handle validate-calibration command.

    Args:
        args: Parsed command-line arguments
    """
    try:
        calibration = load_calibration(Path(args.calibration))
    except InvalidCalibrationError as e:
        print(f"Invalid calibration: {e}", file=sys.stderr)
        for problem in e.validation_errors:
            print(f"  - {problem}", file=sys.stderr)
        return 2

    print(f"✓ Calibration valid: {args.calibration}")
    print(f"  Scale: {calibration.meters_per_unit:.4f} m/unit @ {calibration.fps:g} fps")
    print(f"  Pitch axis: ({calibration.pitch_axis[0]:.3f}, {calibration.pitch_axis[1]:.3f})")
    print(f"  Stumps: {calibration.stumps.rect}, bail height {calibration.stumps.bail_height}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="drs-track",
        description="DRS-TrackAI delivery analysis",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Analyze a delivery with the default calibration
  drs-track analyze recordings/delivery.mp4

  # Analyze with a venue calibration, four detection workers, JSON output
  drs-track analyze recordings/delivery.mp4 --calibration venue.yaml --workers 4 --output delivery.json

  # Check a calibration file
  drs-track validate-calibration venue.yaml
        """,
    )
    parser.add_argument(
        "--log-dir",
        help="Also write rotating log files to this directory",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug logging on the console")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    analyze_parser = subparsers.add_parser("analyze", help="Analyze one delivery video")
    analyze_parser.add_argument("video", help="Path to the delivery video")
    analyze_parser.add_argument(
        "--calibration",
        default=str(DEFAULT_CALIBRATION_PATH),
        help="Calibration YAML (default: bundled side-on calibration)",
    )
    analyze_parser.add_argument("--output", help="Write tracking data and results as JSON")
    analyze_parser.add_argument(
        "--workers",
        type=int,
        default=0,
        help="Detection worker threads (0 detects inline with tracking priors)",
    )
    analyze_parser.add_argument("--model", help="ONNX ball model; replaces the colour detector")

    validate_parser = subparsers.add_parser("validate-calibration", help="Validate a calibration file")
    validate_parser.add_argument("calibration", help="Calibration YAML to check")
    return parser


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    if args.verbose:
        set_console_level("DEBUG")
    if args.log_dir:
        configure_file_logging(args.log_dir)

    if args.command == "analyze":
        return analyze_command(args)
    elif args.command == "validate-calibration":
        return validate_calibration_command(args)

    return 0


if __name__ == "__main__":
    sys.exit(main())
