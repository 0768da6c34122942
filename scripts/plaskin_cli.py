"""Command line interface for inspecting plasma-kinetics simulation output.

Two sub-commands are provided:

* ``summary`` loads an HDF5 file or a directory of ``qt_*.txt`` (or legacy)
  text files and prints the label lists and sizes.
* ``sources`` runs the production/removal decomposition for one species and
  prints the reactions that survive the sensitivity filter, most important
  first, together with their peak contribution.

Typical usage::

    python -m scripts.plaskin_cli summary run/output.h5
    python -m scripts.plaskin_cli sources run/ --species "O(1D)" --delta 0.2

Filter thresholds default to the ``PLASKIN_FILTER_*`` environment variables
(see :mod:`src.plaskin.config`); command line flags take precedence.  Load
failures print the loader's message verbatim and exit with status 1.
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Iterable, List

import pandas as pd

from src.plaskin import PlaskinError, Session, load_filter_settings, source_breakdown
from src.plaskin.analysis import SourceBreakdown, SourceSide
from src.plaskin.dataset import CanonicalDataset, condition_label

LOGGER = logging.getLogger("plaskin_cli")


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s:%(name)s:%(message)s",
    )


def _parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Inspect ZDPlaskin-style kinetics output")
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Emit debug logging (dropped rows, label fallbacks, matrix fitting)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    summary = sub.add_parser("summary", help="Print label lists and sizes")
    summary.add_argument("path", type=Path, help="HDF5 file or directory of text files")

    sources = sub.add_parser("sources", help="Rank production/removal reactions for a species")
    sources.add_argument("path", type=Path, help="HDF5 file or directory of text files")
    sources.add_argument(
        "--species",
        required=True,
        help="Species label or 1-based index",
    )
    sources.add_argument("--delta", type=float, default=None, help="Significance threshold in [0, 1]")
    sources.add_argument("--max-count", type=int, default=None, help="Size cap before the overflow rule")
    sources.add_argument("--min-count", type=int, default=None, help="Reactions always shown")
    return parser.parse_args(argv)


def _numbered(labels: Iterable[str]) -> List[str]:
    return [f"{idx:>5}  {label}" for idx, label in enumerate(labels, start=1)]


def _print_summary(source: str, dataset: CanonicalDataset) -> None:
    print(f"Loaded: {source}  |  {dataset.describe()}")
    if dataset.n_times:
        print(f"Time range: {dataset.t[0]:.6g} .. {dataset.t[-1]:.6g} s")
    for title, labels in (
        ("Conditions", [condition_label(name) for name in dataset.conditions]),
        ("Species", dataset.species),
        ("Reactions", dataset.reactions),
    ):
        print(f"\n{title} ({len(labels)}):")
        for line in _numbered(labels):
            print(line)


def _side_frame(breakdown: SourceBreakdown, side: SourceSide) -> pd.DataFrame:
    records = [
        {"reaction": breakdown.labels[rid], "peak": side.peak(rid)}
        for rid in side.reaction_ids
    ]
    return pd.DataFrame.from_records(records, columns=["reaction", "peak"])


def _print_breakdown(breakdown: SourceBreakdown) -> None:
    if breakdown.is_empty:
        print(f"No reactions affect {breakdown.species} (check source matrix).")
        return
    for title, side in (("Creation", breakdown.production), ("Removal", breakdown.removal)):
        print(f"\n{breakdown.species}  -  {title}")
        frame = _side_frame(breakdown, side)
        print(frame.to_string(index=False) if not frame.empty else "  (none)")


def main(argv: Iterable[str] | None = None) -> int:
    args = _parse_args(argv)
    _configure_logging(args.verbose)

    session = Session()
    try:
        dataset = session.load_path(args.path)
        if args.command == "summary":
            _print_summary(session.source or str(args.path), dataset)
            return 0
        settings = load_filter_settings(
            delta=args.delta,
            max_count=args.max_count,
            min_count=args.min_count,
        )
        LOGGER.info("filter settings: %s", settings.model_dump())
        breakdown = source_breakdown(dataset, args.species, settings)
        _print_breakdown(breakdown)
        return 0
    except (PlaskinError, KeyError) as exc:
        message = exc.args[0] if isinstance(exc, KeyError) and exc.args else exc
        print(f"error: {message}", file=sys.stderr)
        LOGGER.debug("Full exception", exc_info=True)
        return 1


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())
