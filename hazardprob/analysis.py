"""Analysis and benchmarking tools for the probability engine."""

import math
from collections import defaultdict
from typing import Dict, List, Optional, Tuple, Union

import matplotlib.pyplot as plt
import numpy as np

from .board import Board
from .engine import HazardField
from .host import AnalysisResult, ProbabilityAnalyzer


def format_probability_grid(
    board: Board, result: AnalysisResult, *, show_coords: bool = True
) -> str:
    """
    Format hazard percentages as a human-readable grid.

    Args:
        board: The analysed board.
        result: Its analysis result.
        show_coords: If True, include coordinate labels and a header.

    Returns:
        A text grid: hidden cells show their rounded percent, flagged cells
        "F", revealed cells their clue.
    """
    w, h = board.width, board.height

    def cell_str(x: int, y: int) -> str:
        pct = result.probabilities.get((x, y))
        if pct is None:
            return f"{board.cell(x, y).symbol():>3}"
        return f"{int(round(pct)):3d}"

    lines: List[str] = []
    if show_coords:
        header = " ".join(f"{x:3d}" for x in range(w))
        lines.append("    " + header)
        lines.append("    " + "-" * (4 * w - 1))

    for y in range(h):
        row = " ".join(cell_str(x, y) for x in range(w))
        lines.append(f"{y:2d} |" + row if show_coords else row)

    return "\n".join(lines)


def _build_position(
    width: int,
    height: int,
    hazards_count: int,
    reveals: int,
    flag_fraction: float,
    seed: Optional[int],
) -> HazardField:
    field = HazardField(width, height, hazards_count, seed=seed)
    field.reveal(width // 2, height // 2)
    field.reveal_random_safe(reveals - 1)
    field.flag_random_hazards(flag_fraction)
    return field


def run_analysis_single_test(
    width: int,
    height: int,
    hazards_count: int,
    *,
    reveals: int = 1,
    flag_fraction: float = 0.0,
    seed: Optional[int] = None,
    show_boards: bool = False,
    max_nodes: Union[int, float] = float("inf"),
) -> Dict[str, float]:
    """
    Analyse one random position and return its run statistics.

    Args:
        width: Board width.
        height: Board height.
        hazards_count: Total hazards on the board.
        reveals: Number of reveal moves used to build the position (the
            first one at the centre, the rest on random safe cells).
        flag_fraction: Fraction of the hazards flagged before analysis.
        seed: Seed for hazard placement and reveals.
        show_boards: If True, print the field and the probability grid.
        max_nodes: Per-cluster search cap.

    Returns:
        Statistics of the run: hidden_count, frontier_size, background_size,
        clusters_count, max_cluster_size, nodes_explored, elapsed, exact,
        brier_score.
    """
    if reveals < 1:
        raise ValueError("reveals must be at least 1.")

    field = _build_position(width, height, hazards_count, reveals, flag_fraction, seed)
    board = field.snapshot()
    result = ProbabilityAnalyzer(max_nodes=max_nodes).analyze(board)

    if show_boards:
        print("Underlying field (hazards shown as '*'):")
        print(field.format_field())
        print()
        print("Hazard percentages:")
        print(format_probability_grid(board, result))

    predicted, actual = _prediction_pairs(field, result)
    brier = float(np.mean((predicted - actual) ** 2)) if predicted.size else 0.0

    return {
        "hidden_count": float(len(result.probabilities)),
        "frontier_size": float(result.frontier_size),
        "background_size": float(result.background_size),
        "clusters_count": float(len(result.cluster_sizes)),
        "max_cluster_size": float(max(result.cluster_sizes, default=0)),
        "nodes_explored": float(result.nodes_explored),
        "elapsed": result.elapsed,
        "exact": 1.0 if result.exact else 0.0,
        "brier_score": brier,
    }


def run_analysis_many_tests(
    width: int,
    height: int,
    hazards_count: int,
    runs: int,
    *,
    reveals: int = 1,
    flag_fraction: float = 0.0,
    seed: Optional[int] = None,
    max_nodes: Union[int, float] = float("inf"),
) -> Dict[str, float]:
    """
    Analyse many independent random positions and average their statistics.

    Returns:
        Every key of run_analysis_single_test prefixed with "avg_", plus
        exact_rate (share of runs where no cap triggered) and max_elapsed.
    """
    if runs <= 0:
        raise ValueError("runs must be positive.")

    samples: Dict[str, List[float]] = defaultdict(list)
    for i in range(runs):
        run_seed = None if seed is None else seed + i
        stats = run_analysis_single_test(
            width,
            height,
            hazards_count,
            reveals=reveals,
            flag_fraction=flag_fraction,
            seed=run_seed,
            max_nodes=max_nodes,
        )
        for k, v in stats.items():
            samples[k].append(v)

    out: Dict[str, float] = {
        f"avg_{k}": float(np.mean(values)) for k, values in samples.items()
    }
    out["exact_rate"] = out.pop("avg_exact")
    out["max_elapsed"] = float(np.max(samples["elapsed"]))
    return out


def run_analysis_level_benchmark(
    runs: int,
    *,
    reveals: int = 3,
    seed: Optional[int] = None,
    max_nodes: Union[int, float] = 200_000,
    show_plots: bool = True,
) -> Dict[str, Dict[str, float]]:
    """
    Benchmark the engine on the standard difficulty levels and plot summaries.

    Standard difficulty levels:
        - Beginner: 9x9, 10 hazards
        - Intermediate: 16x16, 40 hazards
        - Expert: 30x16, 99 hazards

    Returns:
        Mapping from level name to the dict returned by
        run_analysis_many_tests().
    """
    levels: Dict[str, Tuple[int, int, int]] = {
        "beginner": (9, 9, 10),
        "intermediate": (16, 16, 40),
        "expert": (30, 16, 99),
    }

    results: Dict[str, Dict[str, float]] = {}
    for level, (w, h, m) in levels.items():
        results[level] = run_analysis_many_tests(
            w, h, m, runs, reveals=reveals, seed=seed, max_nodes=max_nodes
        )

    level_names = list(levels.keys())
    x = np.arange(len(level_names))
    bar_w = 0.35

    # 1) Frontier versus background size
    frontier = [results[n]["avg_frontier_size"] for n in level_names]
    background = [results[n]["avg_background_size"] for n in level_names]

    plt.figure()  # type: ignore[misc]
    plt.bar(x - bar_w / 2, frontier, width=bar_w, label="frontier")  # type: ignore[misc]
    plt.bar(x + bar_w / 2, background, width=bar_w, label="background")  # type: ignore[misc]
    plt.xticks(x, level_names)  # type: ignore[misc]
    plt.ylabel("Average hidden cells")  # type: ignore[misc]
    plt.title("Frontier and background size (per position)")  # type: ignore[misc]
    plt.legend()  # type: ignore[misc]
    plt.tight_layout()

    # 2) Search effort
    nodes = [results[n]["avg_nodes_explored"] for n in level_names]

    plt.figure()  # type: ignore[misc]
    plt.bar(x, nodes)  # type: ignore[misc]
    plt.xticks(x, level_names)  # type: ignore[misc]
    plt.ylabel("Average search nodes")  # type: ignore[misc]
    plt.yscale("log")  # type: ignore[misc]
    plt.title("Search nodes explored (per position)")  # type: ignore[misc]
    plt.tight_layout()

    # 3) Exact rate
    exact_rates = [results[n]["exact_rate"] for n in level_names]

    plt.figure()  # type: ignore[misc]
    plt.bar(x, exact_rates)  # type: ignore[misc]
    plt.xticks(x, level_names)  # type: ignore[misc]
    plt.ylabel("Exact rate")  # type: ignore[misc]
    plt.ylim(0.0, 1.0)  # type: ignore[misc]
    plt.title("Share of positions enumerated without hitting the cap")  # type: ignore[misc]
    plt.tight_layout()

    if show_plots:
        plt.show()  # type: ignore[misc]

    return results


def _prediction_pairs(
    field: HazardField, result: AnalysisResult
) -> Tuple[np.ndarray, np.ndarray]:
    """Return (predicted probability, actual 0/1) arrays over hidden cells."""
    cells = sorted(result.probabilities)
    predicted = np.array([result.probabilities[c] / 100.0 for c in cells], dtype=float)
    actual = np.array([1.0 if c in field.hazards else 0.0 for c in cells], dtype=float)
    return predicted, actual


def measure_calibration(
    width: int,
    height: int,
    hazards_count: int,
    runs: int,
    *,
    reveals: int = 3,
    bins: int = 10,
    seed: Optional[int] = None,
    max_nodes: Union[int, float] = 200_000,
) -> Dict[str, object]:
    """
    Compare predicted percentages with the generator's ground truth.

    Returns:
        Dict with keys:
        - brier_score: mean squared error of the predicted probabilities
        - samples: number of (cell, prediction) pairs
        - table: list of (bin_low, bin_high, mean_predicted, observed_rate,
          count) for every non-empty bin
    """
    if bins <= 0:
        raise ValueError("bins must be positive.")
    if runs <= 0:
        raise ValueError("runs must be positive.")

    analyzer = ProbabilityAnalyzer(max_nodes=max_nodes)
    predicted_parts: List[np.ndarray] = []
    actual_parts: List[np.ndarray] = []

    for i in range(runs):
        run_seed = None if seed is None else seed + i
        field = _build_position(width, height, hazards_count, reveals, 0.0, run_seed)
        result = analyzer.analyze(field.snapshot())
        p, a = _prediction_pairs(field, result)
        predicted_parts.append(p)
        actual_parts.append(a)

    predicted = np.concatenate(predicted_parts) if predicted_parts else np.array([])
    actual = np.concatenate(actual_parts) if actual_parts else np.array([])
    if predicted.size == 0:
        return {"brier_score": math.nan, "samples": 0, "table": []}

    edges = np.linspace(0.0, 1.0, bins + 1)
    # Interior edges only, so 1.0 falls into the last bin.
    which = np.digitize(predicted, edges[1:-1])

    table: List[Tuple[float, float, float, float, int]] = []
    for b in range(bins):
        mask = which == b
        count = int(mask.sum())
        if count == 0:
            continue
        table.append(
            (
                float(edges[b]),
                float(edges[b + 1]),
                float(predicted[mask].mean()),
                float(actual[mask].mean()),
                count,
            )
        )

    return {
        "brier_score": float(np.mean((predicted - actual) ** 2)),
        "samples": int(predicted.size),
        "table": table,
    }
