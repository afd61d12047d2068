"""
Hazard Probability Engine - Interactive Demo

Run with: streamlit run app/demo.py
"""

import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import streamlit as st
from typing import Optional

from hazardprob import (
    AnalysisError,
    AnalysisResult,
    Board,
    HazardField,
    ProbabilityAnalyzer,
)

CLUE_COLORS = {
    "1": "#0000ff",
    "2": "#008000",
    "3": "#ff0000",
    "4": "#000080",
    "5": "#800000",
    "6": "#008080",
    "7": "#000000",
    "8": "#808080",
}

# Percent overlay colors: certain clear, certain hazard, and the bar gradient.
COLOR_CLEAR = "#ff0000"
COLOR_HAZARD = "#000080"
COLOR_FILL = "#4caf50"
COLOR_EMPTY = "#ffeb3b"


def render_board_html(board: Board, result: Optional[AnalysisResult] = None) -> str:
    """Render a board as an HTML table, with percent overlays when analysed."""
    # Scale cell size based on board width
    if board.width >= 30:
        cell_size, font_size = 22, "9px"
    elif board.width >= 16:
        cell_size, font_size = 28, "11px"
    else:
        cell_size, font_size = 34, "13px"

    html = '<div style="font-family: monospace; line-height: 1.2;">'
    html += '<table style="border-collapse: collapse; margin: auto;">'

    for y in range(board.height):
        html += "<tr>"
        for x in range(board.width):
            cell = board.cell(x, y)
            pct = result.probabilities.get((x, y)) if result else None

            if cell.is_flagged:
                display, bg, color = "F", "#ffa500", "#ffffff"
            elif cell.is_revealed:
                display = str(cell.value) if cell.value else " "
                bg = "#f0f0f0" if cell.value == 0 else "#ffffff"
                color = CLUE_COLORS.get(display, "#000000")
            elif pct is None:
                display, bg, color = ".", "#c0c0c0", "#666666"
            else:
                rounded = int(round(pct))
                display = f"{rounded}"
                if rounded == 100:
                    bg, color = COLOR_HAZARD, "#ffffff"
                elif rounded == 0:
                    bg, color = COLOR_CLEAR, "#ffffff"
                else:
                    bg = (
                        f"linear-gradient(to top, {COLOR_FILL} {pct:.1f}%, "
                        f"{COLOR_EMPTY} {pct:.1f}%)"
                    )
                    color = "#000000"

            html += f'''<td style="
                width: {cell_size}px; height: {cell_size}px;
                text-align: center;
                background: {bg};
                border: 1px solid #999;
                color: {color};
                font-weight: bold;
                font-size: {font_size};
            ">{display}</td>'''
        html += "</tr>"

    html += "</table></div>"
    return html


def main():
    st.set_page_config(
        page_title="Hazard Probability Engine",
        page_icon="💣",
        layout="wide",
    )

    st.title("Hazard Probability Engine")
    st.markdown("""
    Exact per-cell hazard probabilities for a hazard-counting grid puzzle.
    Enter a position as text ('.' hidden, 'F' flagged, '0'-'8' clues) or
    generate a random one.
    """)

    # Sidebar configuration
    st.sidebar.header("Position")

    source = st.sidebar.selectbox("Source", ["Random position", "Text grid"])

    max_nodes = st.sidebar.selectbox(
        "Search node cap per cluster",
        [10_000, 100_000, 1_000_000, "Unlimited"],
        index=3,
        help="When reached, results are marked approximate.",
    )
    max_nodes_val: float = float("inf") if max_nodes == "Unlimited" else float(max_nodes)

    if "board" not in st.session_state:
        st.session_state.board = None

    if source == "Random position":
        width = st.sidebar.slider("Width", 5, 30, 16)
        height = st.sidebar.slider("Height", 5, 24, 16)
        hazards = st.sidebar.slider("Hazards", 1, width * height - 9, min(40, width * height - 9))
        reveals = st.sidebar.slider("Reveal moves", 1, 10, 3)
        flag_fraction = st.sidebar.slider("Flagged share of hazards", 0.0, 1.0, 0.0)

        if st.sidebar.button("Generate", type="primary"):
            field = HazardField(width, height, hazards)
            field.reveal(width // 2, height // 2)
            field.reveal_random_safe(reveals - 1)
            field.flag_random_hazards(flag_fraction)
            st.session_state.board = field.snapshot()
    else:
        text = st.sidebar.text_area("Rows", "1..\n...\n...", height=200)
        budget = st.sidebar.number_input("Hazard budget", min_value=0, value=1)
        if st.sidebar.button("Load", type="primary"):
            try:
                st.session_state.board = Board.from_rows(
                    [line for line in text.splitlines() if line.strip()], int(budget)
                )
            except ValueError as e:
                st.sidebar.error(str(e))

    board = st.session_state.board
    if board is None:
        st.info("Generate or load a position to analyse it.")
        return

    col1, col2 = st.columns([3, 1])

    result = None
    error = None
    try:
        result = ProbabilityAnalyzer(max_nodes=max_nodes_val).analyze(board)
    except AnalysisError as e:
        error = e

    with col1:
        st.subheader("Board")
        st.markdown(render_board_html(board, result), unsafe_allow_html=True)

    with col2:
        st.subheader("Analysis")
        if error is not None:
            where = f" at {error.at}" if error.at is not None else ""
            st.error(f"{error.reason}{where}: {error}")
        elif result is not None:
            st.metric("Hidden cells", len(result.probabilities))
            st.metric("Frontier", result.frontier_size)
            st.metric("Clusters", len(result.cluster_sizes))
            st.metric("Search nodes", result.nodes_explored)
            st.text(f"Elapsed: {result.elapsed * 1000:.1f} ms")
            if result.exact:
                st.success("Exact enumeration")
            else:
                st.warning("Approximate: a search cap was reached")


if __name__ == "__main__":
    main()
