"""
CLI main entry point.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional, TextIO

import yaml

from ..config import Config, ConfigValidationError, create_default_config, load_config
from ..confidence import ConfidenceCache, ScoringEngine
from ..errors import ConfidenceError
from ..services import RecognitionScorer
from ..state_store import FeedbackStore

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def create_cli() -> argparse.ArgumentParser:
    """Create CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="smartbook-confidence",
        description="Score recognized transaction fields and learn from user feedback",
    )

    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=Path("config.yaml"),
        help="Path to config file (default: config.yaml)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # score command
    score_parser = subparsers.add_parser(
        "score", help="Score a recognition payload (JSON object)"
    )
    score_parser.add_argument(
        "--input",
        type=Path,
        help="JSON file with the recognizer payload (default: stdin)",
    )

    # feedback command
    feedback_parser = subparsers.add_parser("feedback", help="Record feedback for one field")
    feedback_parser.add_argument("--field", required=True, help="Field name, e.g. category")
    feedback_parser.add_argument("--original", required=True, help="Recognized value")
    feedback_parser.add_argument("--corrected", help="Value the user entered instead")
    verdict = feedback_parser.add_mutually_exclusive_group(required=True)
    verdict.add_argument(
        "--correct",
        dest="was_correct",
        action="store_true",
        help="The recognized value was right",
    )
    verdict.add_argument(
        "--incorrect",
        dest="was_correct",
        action="store_false",
        help="The recognized value was wrong",
    )
    feedback_parser.add_argument(
        "--confidence",
        type=float,
        help="Confidence shown to the user (default: field default)",
    )

    # stats command
    subparsers.add_parser("stats", help="Show feedback statistics per field")

    # reset command
    reset_parser = subparsers.add_parser("reset", help="Clear all feedback history")
    reset_parser.add_argument(
        "--yes",
        action="store_true",
        help="Confirm clearing the history",
    )

    # init-config command
    init_parser = subparsers.add_parser("init-config", help="Write a default config file")
    init_parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite an existing config file",
    )

    return parser


def build_engine(config: Config) -> ScoringEngine:
    """Create the scoring engine described by config."""
    store = FeedbackStore(config.state_db_path) if config.persist_feedback else None
    cache = None
    if config.cache.enabled:
        cache = ConfidenceCache(
            max_size=config.cache.max_size,
            ttl_seconds=config.cache.ttl_seconds,
        )
    return ScoringEngine(config.confidence, store=store, cache=cache)


def _read_payload(path: Optional[Path], stdin: TextIO) -> dict[str, Any]:
    if path is not None:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    else:
        data = json.load(stdin)
    if not isinstance(data, dict):
        raise ValueError("Recognition payload must be a JSON object")
    return data


def cmd_score(engine: ScoringEngine, input_path: Optional[Path]) -> int:
    """Score a recognition payload and print the vector as JSON."""
    try:
        payload = _read_payload(input_path, sys.stdin)
    except (OSError, ValueError) as e:
        print(f"❌ Failed to read payload: {e}")
        return 1

    vector = RecognitionScorer(engine).score_response(payload)
    result = {
        "scores": vector.to_dict(),
        "levels": {tracked.value: engine.confidence_level(s).value for tracked, s in vector.items()},
        "average": round(vector.average(), 4),
        "low_confidence_count": vector.low_confidence_count(),
        "flagged_fields": [tracked.value for tracked in vector.low_confidence_fields()],
    }
    print(json.dumps(result, ensure_ascii=False, indent=2))
    return 0


def cmd_feedback(
    engine: ScoringEngine,
    field_name: str,
    original: str,
    corrected: Optional[str],
    was_correct: bool,
    confidence: Optional[float],
) -> int:
    """Record one feedback event."""
    shown = confidence if confidence is not None else engine.config.default_for(field_name)
    engine.record_feedback(field_name, original, corrected, was_correct, shown)

    print(
        f"✓ Recorded {'correct' if was_correct else 'incorrect'} feedback for {field_name} "
        f"(suggested confidence now {engine.suggest_confidence(field_name, original):.3f})"
    )
    return 0


def cmd_stats(engine: ScoringEngine) -> int:
    """Show feedback statistics."""
    stats = engine.statistics()

    print("\n📊 Feedback Statistics")
    print("=" * 48)
    print(f"  {'Field':<14}{'Events':>8}{'Correct':>10}{'Accuracy':>12}")
    for name, row in stats.items():
        accuracy = f"{row['accuracy_rate']:.1%}" if row["events"] else "-"
        print(f"  {name:<14}{row['events']:>8}{row['correct']:>10}{accuracy:>12}")
    print()

    return 0


def cmd_reset(engine: ScoringEngine, confirmed: bool) -> int:
    """Clear the feedback history."""
    if not confirmed:
        print("⚠️  Refusing to clear history without --yes")
        return 1

    engine.clear_history()
    print("✓ Feedback history cleared")
    return 0


def cmd_init_config(config_path: Path, force: bool) -> int:
    """Write the default config file."""
    if config_path.exists() and not force:
        print(f"⚠️  {config_path} already exists (use --force to overwrite)")
        return 1

    create_default_config(config_path)
    print(f"✓ Wrote {config_path}")
    return 0


def main(args: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_cli()
    parsed = parser.parse_args(args)

    setup_logging(parsed.verbose)

    if not parsed.command:
        parser.print_help()
        return 1

    if parsed.command == "init-config":
        return cmd_init_config(parsed.config, parsed.force)

    # Load config
    try:
        config = load_config(parsed.config)
    except (ConfigValidationError, OSError, ValueError, yaml.YAMLError) as e:
        print(f"❌ Failed to load config: {e}")
        return 1

    try:
        engine = build_engine(config)

        # Route to command
        if parsed.command == "score":
            return cmd_score(engine, parsed.input)
        elif parsed.command == "feedback":
            return cmd_feedback(
                engine,
                parsed.field,
                parsed.original,
                parsed.corrected,
                parsed.was_correct,
                parsed.confidence,
            )
        elif parsed.command == "stats":
            return cmd_stats(engine)
        elif parsed.command == "reset":
            return cmd_reset(engine, parsed.yes)
        else:
            parser.print_help()
            return 1
    except ConfidenceError as e:
        logger.error("%s failed: %s", parsed.command, e)
        print(f"❌ {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
