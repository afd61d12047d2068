"""Command-line entry point: board snapshot in, hazard percentages out."""

import argparse
import json
import logging
import sys
from typing import Any, Dict, List, Optional, TextIO

from .analysis import format_probability_grid
from .board import Board
from .errors import AnalysisError
from .host import ProbabilityAnalyzer

_logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ANALYSIS_FAILED = 1
EXIT_BAD_INPUT = 2


def _positive_int(text: str) -> int:
    value = int(text)
    if value <= 0:
        raise argparse.ArgumentTypeError("must be a positive integer")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hazardprob",
        description=(
            "Compute the hazard probability of every hidden cell of a board. "
            "Input is a JSON board payload, or a text grid ('.' hidden, "
            "'F' flagged, '0'-'8' clues) together with --budget."
        ),
    )
    parser.add_argument(
        "file", nargs="?", help="Input file; reads stdin when omitted or '-'."
    )
    parser.add_argument(
        "--budget", type=int, help="Hazard budget for text-grid input."
    )
    parser.add_argument(
        "--max-nodes", type=_positive_int, help="Per-cluster search node cap."
    )
    parser.add_argument(
        "--max-solutions", type=_positive_int, help="Per-cluster solution cap."
    )
    parser.add_argument(
        "--grid",
        action="store_true",
        help="Print a text grid of rounded percentages instead of JSON.",
    )
    parser.add_argument(
        "-v", "--verbose", action="count", default=0, help="Log more (-vv for debug)."
    )
    return parser


def read_board(text: str, budget: Optional[int]) -> Board:
    """
    Parse CLI input as a JSON payload, falling back to a text grid.

    Raises:
        ValueError: If the input is neither a valid payload nor a valid grid.
    """
    stripped = text.strip()
    if stripped.startswith("{"):
        try:
            payload = json.loads(stripped)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON board payload: {e}") from e
        return Board.from_payload(payload)

    if budget is None:
        raise ValueError("Text-grid input needs --budget.")
    rows: List[str] = [line for line in stripped.splitlines() if line.strip()]
    return Board.from_rows(rows, budget)


def _open_input(path: Optional[str]) -> TextIO:
    if path is None or path == "-":
        return sys.stdin
    return open(path, encoding="utf-8")


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    options: Dict[str, Any] = {}
    if args.max_nodes is not None:
        options["max_nodes"] = args.max_nodes
    if args.max_solutions is not None:
        options["max_solutions"] = args.max_solutions

    try:
        stream = _open_input(args.file)
        try:
            text = stream.read()
        finally:
            if stream is not sys.stdin:
                stream.close()
        board = read_board(text, args.budget)
    except (OSError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_BAD_INPUT

    try:
        result = ProbabilityAnalyzer(**options).analyze(board)
    except AnalysisError as e:
        _logger.info("Analysis failed: %s", e)
        print(json.dumps(e.to_payload()))
        return EXIT_ANALYSIS_FAILED

    if args.grid:
        print(format_probability_grid(board, result))
        if not result.exact:
            print("(approximate: a search cap was reached)")
    else:
        print(json.dumps(result.to_payload()))
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
