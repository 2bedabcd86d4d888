"""Command-line interface for the OSM classifier."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

import pandas as pd

from .classifier import ClassificationEngine
from .config import DEFAULT_CONFIG_PATH, ClassifierConfig
from .errors import ClassificationError
from .extractor import extract_tags, tag_frequencies
from .rules_loader import load_info_tags, resolve_classification

LOGGER = logging.getLogger(__name__)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )


def _parse_args(argv: List[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Rule-based functional classification of OSM features.")
    parser.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Path to the YAML settings file.")
    parser.add_argument("--tags-column", dest="tags_column", help="Column holding packed OSM tags.")
    parser.add_argument("--log-level", default="INFO", help="Logging level (DEBUG, INFO, ...).")
    commands = parser.add_subparsers(dest="command", required=True)

    classify = commands.add_parser("classify", help="Assign features to categories.")
    classify.add_argument("input", type=Path, help="CSV file of features.")
    classify.add_argument("--classification", help="Built-in classification name or YAML path.")
    classify.add_argument("--output", type=Path, help="Write results here instead of stdout.")
    classify.add_argument("--append", action="store_true", help="Keep the input columns in the output.")

    extract = commands.add_parser("extract", help="Pull selected tags into columns.")
    extract.add_argument("input", type=Path, help="CSV file of features.")
    selection = extract.add_mutually_exclusive_group(required=True)
    selection.add_argument("--tags", help="Comma-separated tag names.")
    selection.add_argument("--info-group", dest="info_group", help="Built-in line info tag group, e.g. road.")
    extract.add_argument("--na-prop", type=float, dest="na_prop", help="Minimum share of features carrying a tag.")
    extract.add_argument("--output", type=Path, help="Write results here instead of stdout.")

    tags = commands.add_parser("tags", help="Count keys found in the packed tags column.")
    tags.add_argument("input", type=Path, help="CSV file of features.")
    tags.add_argument("--top", type=int, default=50, help="Number of keys to show.")
    return parser.parse_args(argv)


def _read_features(path: Path) -> pd.DataFrame:
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")
    return pd.read_csv(path, dtype=str, keep_default_na=False, na_values=[""])


def _write(frame: pd.DataFrame, output: Optional[Path], index: bool = False) -> None:
    if output is None:
        frame.to_csv(sys.stdout, index=index)
        return
    frame.to_csv(output, index=index)
    LOGGER.info("Wrote %s rows to %s", len(frame), output)


def _run_classify(args: argparse.Namespace, config: ClassifierConfig) -> None:
    classification = resolve_classification(config.classification)
    features = _read_features(args.input)
    engine = ClassificationEngine(
        classification, tags_column=config.tags_column, alt_separator=config.alt_separator
    )
    result = engine.classify(features)
    if args.append:
        result = pd.concat([features, result], axis=1)
    _write(result, args.output)


def _run_extract(args: argparse.Namespace, config: ClassifierConfig) -> None:
    if args.tags:
        tags = [tag.strip() for tag in args.tags.split(",") if tag.strip()]
    else:
        tags = load_info_tags(args.info_group)
    features = _read_features(args.input)
    table = extract_tags(features, tags, na_prop=config.na_prop, tags_column=config.tags_column)
    if table is None:
        LOGGER.warning("None of the %s requested tags were found", len(tags))
        return
    _write(table, args.output)


def _run_tags(args: argparse.Namespace, config: ClassifierConfig) -> None:
    features = _read_features(args.input)
    if config.tags_column not in features.columns:
        raise ClassificationError(f"input has no '{config.tags_column}' column")
    frequencies = tag_frequencies(features[config.tags_column])
    _write(frequencies.head(args.top).to_frame(), None, index=True)


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(sys.argv[1:] if argv is None else argv)
    _configure_logging(args.log_level)
    try:
        config = ClassifierConfig.load(args.config)
        config.apply_overrides(
            classification=getattr(args, "classification", None),
            tags_column=args.tags_column,
            na_prop=getattr(args, "na_prop", None),
        )
        LOGGER.info(
            "Starting %s: classification=%s tags_column=%s",
            args.command,
            config.classification,
            config.tags_column,
        )
        if args.command == "classify":
            _run_classify(args, config)
        elif args.command == "extract":
            _run_extract(args, config)
        else:
            _run_tags(args, config)
    except (ClassificationError, FileNotFoundError) as exc:
        LOGGER.error("%s", exc)
        return 2
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
