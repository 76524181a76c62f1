"""Strategy heat maps for the Ride the Bus solver.

Two data builders return NumPy matrices usable programmatically or by the
plot helpers:

    build_latitude_heatmap_data(pot)  — (actions, evs), shape (1, 13)
    build_bounds_heatmap_data(pot)    — (actions, evs), shape (13, 13)

Two plot functions render matplotlib figures:

    plot_latitude_heatmap(pot, ...)
    plot_bounds_heatmap(pot, ...)

Action codes:
    0 = CASHOUT, 1 = first guess (HIGHER / INSIDE), 2 = second guess
    (LOWER / OUTSIDE)

EV matrices hold the best EV divided by the pot, i.e. the multiple of the
current pot that optimal play is worth from that state.
"""

from __future__ import annotations

import matplotlib
import matplotlib.axes
import matplotlib.colors
import matplotlib.figure
import matplotlib.image
import matplotlib.pyplot as plt
import numpy as np

from src.analysis.strategy_report import (
    BOUNDS_POT,
    LATITUDE_POT,
    RANKS,
    build_bounds_table,
    build_latitude_table,
    rank_label,
    short_label,
)
from src.engine.decisions import Choice, Decision, choices_for

# ─── Constants ────────────────────────────────────────────────────────────────

_RANK_LABELS: list[str] = [rank_label(r) for r in RANKS]

ACTION_CASHOUT: int = 0


def action_code(decision: Decision, choice: Choice) -> int:
    """Return the matrix code of *choice*: 0 for CASHOUT, else 1-based position."""
    if choice is Choice.CASHOUT:
        return ACTION_CASHOUT
    return choices_for(decision).index(choice) + 1


def code_choice(decision: Decision, code: int) -> Choice:
    """Inverse of :func:`action_code`."""
    if code == ACTION_CASHOUT:
        return Choice.CASHOUT
    return choices_for(decision)[code - 1]


# ─── Colormap ─────────────────────────────────────────────────────────────────


def _make_action_cmap() -> matplotlib.colors.ListedColormap:
    """Grey=CASHOUT (0), Green=first guess (1), Blue=second guess (2)."""
    return matplotlib.colors.ListedColormap(["#7f7f7f", "#2ca02c", "#1f77b4"])


_ACTION_CMAP: matplotlib.colors.Colormap = _make_action_cmap()


# ─── Data builders ────────────────────────────────────────────────────────────


def build_latitude_heatmap_data(pot: float = LATITUDE_POT) -> tuple[np.ndarray, np.ndarray]:
    """Return (actions, evs) for PICK_LATITUDE by shown rank.

    Each matrix has shape (1, 13): cols = shown rank 2 … A.

    Args:
        pot: Pot carried into PICK_LATITUDE.

    Returns:
        (actions, evs): int64 action codes and float64 EV-per-pot.
    """
    table = build_latitude_table(pot)
    actions = np.zeros((1, len(RANKS)), dtype=np.int64)
    evs = np.zeros((1, len(RANKS)))
    for c, rank in enumerate(RANKS):
        result = table[rank]
        actions[0, c] = action_code(Decision.PICK_LATITUDE, result.best_choice)
        evs[0, c] = result.best_ev / pot
    return actions, evs


def build_bounds_heatmap_data(pot: float = BOUNDS_POT) -> tuple[np.ndarray, np.ndarray]:
    """Return (actions, evs) for PICK_BOUNDS by pair of shown ranks.

    Each matrix has shape (13, 13): rows = older shown rank, cols = newer
    shown rank, both 2 … A.

    Args:
        pot: Pot carried into PICK_BOUNDS.

    Returns:
        (actions, evs): int64 action codes and float64 EV-per-pot.
    """
    table = build_bounds_table(pot)
    actions = np.zeros((len(RANKS), len(RANKS)), dtype=np.int64)
    evs = np.zeros((len(RANKS), len(RANKS)))
    for r, older in enumerate(RANKS):
        for c, newer in enumerate(RANKS):
            result = table[(older, newer)]
            actions[r, c] = action_code(Decision.PICK_BOUNDS, result.best_choice)
            evs[r, c] = result.best_ev / pot
    return actions, evs


# ─── Rendering helper ─────────────────────────────────────────────────────────


def _render_panel(
    ax: matplotlib.axes.Axes,
    decision: Decision,
    actions: np.ndarray,
    evs: np.ndarray,
) -> matplotlib.image.AxesImage:
    """Render one action panel onto *ax*, annotating each cell.

    The caller sets title and axis labels.
    """
    im = ax.imshow(actions, cmap=_ACTION_CMAP, vmin=-0.5, vmax=2.5, aspect="auto")

    ax.set_xticks(range(actions.shape[1]))
    ax.set_xticklabels(_RANK_LABELS, fontsize=8)

    for r in range(actions.shape[0]):
        for c in range(actions.shape[1]):
            label = short_label(code_choice(decision, int(actions[r, c])))
            ax.text(
                c,
                r,
                f"{label}\n{evs[r, c]:.2f}",
                ha="center",
                va="center",
                fontsize=7,
                color="white",
                fontweight="bold",
            )

    return im


# ─── Public plot functions ────────────────────────────────────────────────────


def _finish(fig: matplotlib.figure.Figure, show: bool, save_path: str | None) -> None:
    plt.tight_layout()
    if save_path is not None:
        fig.savefig(save_path, bbox_inches="tight", dpi=120)
    if show:
        plt.show()


def plot_latitude_heatmap(
    pot: float = LATITUDE_POT,
    *,
    show: bool = True,
    save_path: str | None = None,
) -> matplotlib.figure.Figure:
    """Plot the higher/lower/cashout strip by shown rank.

    Args:
        pot:       Pot carried into PICK_LATITUDE.
        show:      If True, call plt.show() after rendering.
        save_path: If not None, save the figure to this path before showing.

    Returns:
        matplotlib.figure.Figure.
    """
    actions, evs = build_latitude_heatmap_data(pot)
    fig, ax = plt.subplots(figsize=(10, 2.2))
    fig.suptitle(f"Higher (H) / Lower (L) / Cashout ($)  —  pot {pot:g}", fontsize=12, fontweight="bold")

    _render_panel(ax, Decision.PICK_LATITUDE, actions, evs)
    ax.set_yticks([])
    ax.set_xlabel("Shown rank", fontsize=9)

    _finish(fig, show, save_path)
    return fig


def plot_bounds_heatmap(
    pot: float = BOUNDS_POT,
    *,
    show: bool = True,
    save_path: str | None = None,
) -> matplotlib.figure.Figure:
    """Plot the 13×13 inside/outside/cashout grid.

    Args:
        pot:       Pot carried into PICK_BOUNDS.
        show:      If True, call plt.show() after rendering.
        save_path: If not None, save the figure to this path before showing.

    Returns:
        matplotlib.figure.Figure.
    """
    actions, evs = build_bounds_heatmap_data(pot)
    fig, ax = plt.subplots(figsize=(10, 9))
    fig.suptitle(f"Inside (I) / Outside (O) / Cashout ($)  —  pot {pot:g}", fontsize=12, fontweight="bold")

    _render_panel(ax, Decision.PICK_BOUNDS, actions, evs)
    ax.set_yticks(range(len(RANKS)))
    ax.set_yticklabels(_RANK_LABELS, fontsize=8)
    ax.set_xlabel("Newer shown rank", fontsize=9)
    ax.set_ylabel("Older shown rank", fontsize=9)

    _finish(fig, show, save_path)
    return fig


# ─── Entry point ──────────────────────────────────────────────────────────────

if __name__ == "__main__":
    print("Generating strategy heat maps …")
    plot_latitude_heatmap(show=False, save_path="latitude_strategy.png")
    plot_bounds_heatmap(show=False, save_path="bounds_strategy.png")
    print("Saved: latitude_strategy.png, bounds_strategy.png")
