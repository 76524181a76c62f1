"""Ride the Bus Exact Solver — Streamlit Dashboard.

Four-tab interactive dashboard for exploring optimal Ride the Bus play:
  Tab 1 — Cheat Sheet          (text tables: color, higher/lower, bounds, suit)
  Tab 2 — Heat Maps            (matplotlib strategy grids)
  Tab 3 — Interactive Lookup   (Plotly, hover for every candidate's EV)
  Tab 4 — State Explorer       (type any history, see each choice's EV)

Run:
    PYTHONPATH=. streamlit run app.py
"""

from __future__ import annotations

import contextlib
import io

import matplotlib

matplotlib.use("Agg")  # must be set before any other matplotlib imports

import streamlit as st

# ─── Page config ──────────────────────────────────────────────────────────────

st.set_page_config(
    page_title="Ride the Bus Solver",
    page_icon="🚌",
    layout="wide",
)

# ─── Lazy imports (inside functions to keep startup fast) ─────────────────────


@st.cache_resource
def _load_analysis_modules():
    """Import analysis modules once (cached for the process lifetime)."""
    from src.analysis.heat_maps import plot_bounds_heatmap, plot_latitude_heatmap
    from src.analysis.plotly_lookup import (
        build_bounds_lookup_figure,
        build_latitude_lookup_figure,
    )
    from src.analysis.strategy_report import (
        BOUNDS_POT,
        LATITUDE_POT,
        SUIT_POT,
        build_bounds_table,
        build_latitude_table,
        build_suit_table,
        print_bounds_table,
        print_latitude_table,
        print_root_summary,
        print_suit_table,
    )
    from src.engine.cards import history_to_str, parse_history
    from src.engine.decisions import Decision
    from src.engine.errors import SolverInputError
    from src.solvers.exact_ev import evaluate_decision

    return {
        "plot_latitude_heatmap": plot_latitude_heatmap,
        "plot_bounds_heatmap": plot_bounds_heatmap,
        "build_latitude_lookup_figure": build_latitude_lookup_figure,
        "build_bounds_lookup_figure": build_bounds_lookup_figure,
        "LATITUDE_POT": LATITUDE_POT,
        "BOUNDS_POT": BOUNDS_POT,
        "SUIT_POT": SUIT_POT,
        "build_latitude_table": build_latitude_table,
        "build_bounds_table": build_bounds_table,
        "build_suit_table": build_suit_table,
        "print_root_summary": print_root_summary,
        "print_latitude_table": print_latitude_table,
        "print_bounds_table": print_bounds_table,
        "print_suit_table": print_suit_table,
        "history_to_str": history_to_str,
        "parse_history": parse_history,
        "Decision": Decision,
        "SolverInputError": SolverInputError,
        "evaluate_decision": evaluate_decision,
    }


# ─── Sidebar controls ─────────────────────────────────────────────────────────

with st.sidebar:
    st.title("🚌 Ride the Bus Solver")
    st.markdown("---")

    bet = st.number_input("Bet (units)", min_value=0.01, value=1.0, step=0.5)

    st.markdown("---")
    st.caption("Exact EV — every remaining card enumerated")
    st.caption("Color → Higher/Lower → Inside/Outside → Suit")

# ─── Tabs ─────────────────────────────────────────────────────────────────────

tab1, tab2, tab3, tab4 = st.tabs(
    [
        "Cheat Sheet",
        "Heat Maps",
        "Interactive Lookup",
        "State Explorer",
    ]
)

m = _load_analysis_modules()

# ── Tab 1: Cheat Sheet ────────────────────────────────────────────────────────

with tab1:
    st.header("Cheat Sheet")
    st.caption(f"Pots are multiples of a {bet:g}-unit bet after winning each earlier round.")

    for section_fn, label in [
        (lambda: m["print_root_summary"](bet), "Red / Black"),
        (
            lambda: m["print_latitude_table"](m["build_latitude_table"](bet * m["LATITUDE_POT"])),
            "Higher / Lower",
        ),
        (
            lambda: m["print_bounds_table"](m["build_bounds_table"](bet * m["BOUNDS_POT"])),
            "Inside / Outside",
        ),
        (lambda: m["print_suit_table"](m["build_suit_table"](bet * m["SUIT_POT"])), "Suit"),
    ]:
        st.subheader(label)
        buf = io.StringIO()
        with contextlib.redirect_stdout(buf):
            section_fn()
        st.code(buf.getvalue(), language=None)

# ── Tab 2: Heat Maps ──────────────────────────────────────────────────────────

with tab2:
    st.header("Strategy Heat Maps")
    st.caption("Cell text = best action and its EV as a multiple of the current pot.")

    st.subheader("Higher / Lower by shown rank")
    st.pyplot(m["plot_latitude_heatmap"](bet * m["LATITUDE_POT"], show=False))

    st.markdown("---")

    st.subheader("Inside / Outside by shown ranks")
    st.pyplot(m["plot_bounds_heatmap"](bet * m["BOUNDS_POT"], show=False))

# ── Tab 3: Interactive Lookup ─────────────────────────────────────────────────

with tab3:
    st.header("Interactive Plotly Strategy Lookup")
    st.caption("Hover over any cell to see the shown cards, every choice's EV and the best action.")

    st.plotly_chart(
        m["build_latitude_lookup_figure"](bet * m["LATITUDE_POT"]), use_container_width=True
    )
    st.markdown("---")
    st.plotly_chart(
        m["build_bounds_lookup_figure"](bet * m["BOUNDS_POT"]), use_container_width=True
    )

# ── Tab 4: State Explorer ─────────────────────────────────────────────────────

with tab4:
    st.header("State Explorer")
    st.caption("Cards most-recent-first, e.g. `KC 5H`.  Pot is the bet times the multiplier won so far.")

    Decision = m["Decision"]
    decision = st.selectbox(
        "Decision",
        options=list(Decision),
        format_func=lambda d: d.name,
        index=0,
    )
    history_text = st.text_input("Shown cards", value="")
    multiplier = st.number_input("Current multiplier", min_value=0.01, value=1.0, step=0.5)

    try:
        history = m["parse_history"](history_text)
        result = m["evaluate_decision"](bet * multiplier, history, decision)
    except m["SolverInputError"] as exc:
        st.error(str(exc))
    else:
        import pandas as pd

        rows = [
            {
                "Choice": e.choice.name,
                "EV": f"{e.expected_value:.4f}",
                "Best": "◀" if e.choice is result.best_choice else "",
            }
            for e in result.evaluations
        ]
        st.dataframe(pd.DataFrame(rows), use_container_width=True, hide_index=True)
        st.metric(
            f"Best at {m['history_to_str'](result.history) or 'start'}",
            result.best_choice.name,
            f"EV {result.best_ev:.4f}",
        )
