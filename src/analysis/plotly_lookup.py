"""Interactive Plotly strategy lookup for the Ride the Bus solver.

Three public functions:

    build_latitude_lookup_figure(pot)
        — Higher/lower strip by shown rank.
    build_bounds_lookup_figure(pot)
        — 13×13 inside/outside grid by pair of shown ranks.
    save_lookup_html(fig, path)
        — Export any figure to a self-contained HTML file.

Hover over any cell to see the shown cards, every candidate's EV and the
optimal action.  Figures open in a browser via ``fig.show()`` or embed in
Jupyter notebooks and the Streamlit dashboard.
"""

from __future__ import annotations

import plotly.graph_objects as go

from src.analysis.heat_maps import build_bounds_heatmap_data, build_latitude_heatmap_data
from src.analysis.strategy_report import (
    BOUNDS_POT,
    LATITUDE_POT,
    RANKS,
    build_bounds_table,
    build_latitude_table,
    rank_label,
)
from src.engine.cards import history_to_str
from src.solvers.exact_ev import DecisionResult

# ─── Constants ────────────────────────────────────────────────────────────────

_RANK_LABELS: list[str] = [rank_label(r) for r in RANKS]

# Discrete grey/green/blue colorscale over action codes 0, 1, 2.
_ACTION_COLORSCALE: list[list] = [
    [0.0, "#7f7f7f"],
    [0.333, "#7f7f7f"],
    [0.334, "#2ca02c"],
    [0.666, "#2ca02c"],
    [0.667, "#1f77b4"],
    [1.0, "#1f77b4"],
]


# ─── Hover text ───────────────────────────────────────────────────────────────


def _hover(result: DecisionResult) -> str:
    """Return the HTML hover string for one evaluated state."""
    lines = [f"Shown: <b>{history_to_str(result.history)}</b>", f"Pot: {result.pot:g}"]
    for evaluation in result.evaluations:
        lines.append(f"{evaluation.choice.name}: {evaluation.expected_value:.4f}")
    lines.append(f"Best: <b>{result.best_choice.name}</b>")
    return "<br>".join(lines)


def _make_heatmap_trace(z, hover_text: list[list[str]], y_labels: list[str]) -> go.Heatmap:
    return go.Heatmap(
        z=z,
        x=_RANK_LABELS,
        y=y_labels,
        text=hover_text,
        hoverinfo="text",
        colorscale=_ACTION_COLORSCALE,
        zmin=0,
        zmax=2,
        showscale=False,
        xgap=1,
        ygap=1,
    )


# ─── Public figure builders ───────────────────────────────────────────────────


def build_latitude_lookup_figure(pot: float = LATITUDE_POT) -> go.Figure:
    """Interactive higher/lower/cashout strip for PICK_LATITUDE.

    Args:
        pot: Pot carried into PICK_LATITUDE.

    Returns:
        plotly.graph_objects.Figure with a single heatmap trace.
    """
    actions, _ = build_latitude_heatmap_data(pot)
    table = build_latitude_table(pot)
    hover = [[_hover(table[rank]) for rank in RANKS]]

    fig = go.Figure(_make_heatmap_trace(actions, hover, ["shown"]))
    fig.update_layout(
        title=f"Higher / Lower / Cashout  (pot {pot:g})  — grey=cashout, green=higher, blue=lower",
        xaxis_title="Shown rank",
        height=260,
    )
    return fig


def build_bounds_lookup_figure(pot: float = BOUNDS_POT) -> go.Figure:
    """Interactive inside/outside/cashout grid for PICK_BOUNDS.

    Args:
        pot: Pot carried into PICK_BOUNDS.

    Returns:
        plotly.graph_objects.Figure with a single 13×13 heatmap trace.
    """
    actions, _ = build_bounds_heatmap_data(pot)
    table = build_bounds_table(pot)
    hover = [[_hover(table[(older, newer)]) for newer in RANKS] for older in RANKS]

    fig = go.Figure(_make_heatmap_trace(actions, hover, _RANK_LABELS))
    fig.update_layout(
        title=f"Inside / Outside / Cashout  (pot {pot:g})  — grey=cashout, green=inside, blue=outside",
        xaxis_title="Newer shown rank",
        yaxis_title="Older shown rank",
        yaxis_autorange="reversed",
        height=640,
    )
    return fig


def save_lookup_html(fig: go.Figure, path: str) -> None:
    """Write *fig* to a self-contained HTML file (plotly.js embedded)."""
    fig.write_html(path, include_plotlyjs=True, full_html=True)


# ─── Entry point ──────────────────────────────────────────────────────────────

if __name__ == "__main__":
    save_lookup_html(build_latitude_lookup_figure(), "latitude_lookup.html")
    save_lookup_html(build_bounds_lookup_figure(), "bounds_lookup.html")
    print("Saved: latitude_lookup.html, bounds_lookup.html")
