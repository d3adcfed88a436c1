"""CLI for alignscan: ``alignscan evaluate`` and ``alignscan info``."""

import argparse
import logging
import sys
from contextlib import ExitStack
from typing import List

from alignscan.annotations_io import group_by_filename, load_annotations
from alignscan.config import DEFAULT_DATABASE, DEFAULT_MEASURE, KNOWN_DATABASES, EvalConfig
from alignscan.engine import Evaluator
from alignscan.thresholds import DEFAULT_THRESHOLD
from alignscan.types import FaceAnnotation, Measure

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="alignscan",
        description="Normalized landmark error evaluation and hard-case mining",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  alignscan evaluate gt.json pred.json                          # height measure, aflw thresholds
  alignscan evaluate gt.json pred.json --measure pupils --database wflw
  alignscan evaluate gt.json pred.json --report err.txt -o output/err
  alignscan info                                                # measures and threshold table
""",
    )
    sub = parser.add_subparsers(dest="command")

    # alignscan evaluate
    eval_p = sub.add_parser("evaluate", help="Score predictions against ground truth")
    eval_p.add_argument("ground_truth", help="Ground-truth annotations (JSON)")
    eval_p.add_argument("predictions", help="Predicted annotations (JSON)")
    eval_p.add_argument(
        "--measure",
        default=None,
        help=f"Select measure [{', '.join(m.value for m in Measure)}] (default: {DEFAULT_MEASURE.value})",
    )
    eval_p.add_argument(
        "--database",
        default=None,
        help=f"Choose database [{', '.join(KNOWN_DATABASES)}] (default: {DEFAULT_DATABASE})",
    )
    eval_p.add_argument(
        "--report",
        default=None,
        metavar="PATH",
        help="Append per-landmark error records to this file",
    )
    eval_p.add_argument(
        "-o", "--output-dir",
        default=None,
        help="Save annotated hard cases to this directory",
    )
    eval_p.add_argument("--label", default=None, help="First column of every report record")
    eval_p.add_argument("--config", default=None, metavar="YAML", help="Load options from a YAML file")
    eval_p.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    # alignscan info
    sub.add_parser("info", help="Show measures, databases and hard-case thresholds")

    return parser


def _load_config(args: argparse.Namespace) -> EvalConfig:
    """YAML config first, then explicit command-line options on top."""
    config = EvalConfig.from_yaml(args.config) if args.config else EvalConfig()
    if args.measure is not None:
        config.measure = Measure.from_string(args.measure)
    if args.database is not None:
        config.database = args.database
    if args.output_dir is not None:
        config.output_dir = args.output_dir
    if args.label is not None:
        config.label = args.label
    return config


def _pair_samples(ground_truth: List[FaceAnnotation], predictions: List[FaceAnnotation]):
    """Yield (predicted_faces, ground_truth) per ground-truth image."""
    predicted = group_by_filename(predictions)
    seen = set()
    for ann in ground_truth:
        if ann.filename in seen:
            logger.warning("Duplicate ground truth for %s, keeping the first one", ann.filename)
            continue
        seen.add(ann.filename)
        yield predicted.get(ann.filename, []), ann

    orphans = [name for name in predicted if name not in seen]
    if orphans:
        logger.warning("%d predicted images have no ground truth, e.g. %s", len(orphans), orphans[0])


def _cmd_evaluate(args: argparse.Namespace) -> None:
    """Handle ``alignscan evaluate``."""
    try:
        config = _load_config(args)
        ground_truth = load_annotations(args.ground_truth)
        predictions = load_annotations(args.predictions)
    except (OSError, ValueError, KeyError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    with ExitStack() as stack:
        stream = None
        if args.report:
            try:
                stream = stack.enter_context(open(args.report, "a", encoding="utf-8"))
            except OSError as e:
                print(f"Error: {e}", file=sys.stderr)
                sys.exit(1)
        evaluator = Evaluator(config, report_stream=stream)
        summary = evaluator.run(_pair_samples(ground_truth, predictions))

    mean_error = summary.mean_error
    print(f"\nEvaluated {summary.faces} faces in {summary.images} images")
    print(f"  measure:     {config.measure.value} (database: {config.database})")
    print(f"  threshold:   {evaluator.threshold:g}")
    print(f"  scored:      {summary.scored}")
    print(f"  unscoreable: {summary.unscoreable}")
    print(f"  hard:        {summary.hard}")
    print(f"  mean error:  {mean_error:.6f}" if mean_error is not None else "  mean error:  n/a")
    if summary.saved_paths:
        print(f"  saved {len(summary.saved_paths)} hard cases to {config.output_dir}")
    if summary.image_errors:
        print(f"  {summary.image_errors} hard cases could not be saved (see log)")
    if summary.report_errors:
        print(f"  {summary.report_errors} report records could not be written (see log)")


def _cmd_info(args: argparse.Namespace) -> None:
    """Handle ``alignscan info``."""
    config = EvalConfig()
    print("Measures:")
    for m in Measure:
        print(f"  {m.value}")
    print("Databases:")
    for name in KNOWN_DATABASES:
        print(f"  {name}")
    print("Hard-case thresholds (first match wins):")
    for rule in config.rules:
        conditions = []
        if rule.database is not None:
            conditions.append(f"database={rule.database}")
        if rule.measure is not None:
            conditions.append(f"measure={rule.measure.value}")
        print(f"  {' and '.join(conditions):24s} {rule.threshold:g}")
    print(f"  {'(default)':24s} {DEFAULT_THRESHOLD:g}")


def main(argv=None):
    """Entry point for ``alignscan`` CLI."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if getattr(args, "verbose", False):
        logging.basicConfig(level=logging.DEBUG)
    else:
        logging.basicConfig(level=logging.INFO)

    if args.command == "evaluate":
        _cmd_evaluate(args)
    elif args.command == "info":
        _cmd_info(args)


if __name__ == "__main__":
    main()
