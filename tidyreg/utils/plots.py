"""
Scatter plots for the walkthrough: interactive Altair charts for the app,
static Matplotlib PNGs for CI artifacts.
"""
from __future__ import annotations

from pathlib import Path

import altair as alt
import matplotlib.pyplot as plt
import pandas as pd

from tidyreg.utils.errors import InvalidModel
from tidyreg.utils.grouped import split_groups
from tidyreg.utils.ols import ols_fit


def fitted_lines(df: pd.DataFrame, x: str, y: str, color: str | None = None) -> pd.DataFrame:
    """
    Endpoints of the OLS line y ~ x over the observed x range, one line per
    `color` group when given. Groups that cannot be fit (no complete rows,
    constant x) are skipped. A `color` equal to `x` or `y` is not added as a tag column.
    """
    tag = color if color not in (None, x, y) else None
    parts = [(None, df)] if color is None else split_groups(df, color, sort=True)
    rows = []
    for key, sub in parts:
        try:
            model = ols_fit(sub, y, [x])
        except InvalidModel:
            continue
        if not model.is_full_rank:
            continue
        xs = model.frame[x]
        ends = pd.DataFrame({x: [float(xs.min()), float(xs.max())]})
        ends[y] = model.predict(ends)
        if tag is not None:
            ends[tag] = key
        rows.append(ends)
    if not rows:
        return pd.DataFrame(columns=[x, y] + ([tag] if tag else []))
    return pd.concat(rows, ignore_index=True)


def scatter_chart(
    df: pd.DataFrame,
    x: str,
    y: str,
    color: str | None = None,
    fit: bool = False,
    width: int | None = None,
    height: int | None = None,
) -> alt.Chart | alt.LayerChart:
    """Scatter of two columns; a third column, if given, colours points as a category."""
    tooltip = [c for c in ("car", x, y, color) if c and c in df.columns]
    enc = {
        "x": alt.X(f"{x}:Q", title=x, scale=alt.Scale(zero=False)),
        "y": alt.Y(f"{y}:Q", title=y, scale=alt.Scale(zero=False)),
        "tooltip": tooltip,
    }
    if color:
        enc["color"] = alt.Color(f"{color}:N", title=color)
    chart = alt.Chart(df).mark_circle(size=60, opacity=0.7).encode(**enc)

    if fit:
        line_enc = {"x": f"{x}:Q", "y": f"{y}:Q"}
        if color:
            line_enc["color"] = alt.Color(f"{color}:N", title=color)
        line = alt.Chart(fitted_lines(df, x, y, color)).mark_line().encode(**line_enc)
        chart = chart + line

    props = {k: v for k, v in (("width", width), ("height", height)) if v}
    return chart.properties(**props) if props else chart


def coefficient_chart(table: pd.DataFrame, group: str | None = None, term: str | None = None) -> alt.LayerChart:
    """Point estimates with confidence bars from a tidy table that has conf_low / conf_high."""
    missing = [c for c in ("term", "estimate", "conf_low", "conf_high") if c not in table.columns]
    if missing:
        raise ValueError(f"Tidy table lacks column(s) {missing}; pass conf_level when tidying")
    data = table if term is None else table[table["term"] == term]
    y_field = f"{group}:N" if group else "term:N"
    bars = alt.Chart(data).mark_rule().encode(
        x=alt.X("conf_low:Q", title="estimate"),
        x2="conf_high",
        y=y_field,
        color="term:N",
    )
    points = alt.Chart(data).mark_point(filled=True, size=60).encode(
        x="estimate:Q",
        y=y_field,
        color="term:N",
        tooltip=[c for c in ("term", group, "estimate", "std_error", "conf_low", "conf_high", "p_value")
                 if c and c in data.columns],
    )
    return bars + points


def save_scatter_png(
    df: pd.DataFrame,
    x: str,
    y: str,
    path: str | Path,
    color: str | None = None,
    fit: bool = False,
) -> Path:
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)

    plt.figure(figsize=(8, 4.5))
    if color is None:
        plt.scatter(df[x], df[y], alpha=0.7)
    else:
        for key, sub in split_groups(df, color, sort=True):
            plt.scatter(sub[x], sub[y], alpha=0.7, label=f"{color}={key}")
    if fit:
        lines = fitted_lines(df, x, y, color)
        groups = [(None, lines)] if color is None else split_groups(lines, color, sort=True)
        for _, sub in groups:
            plt.plot(sub[x], sub[y], linewidth=1.5)
    if color is not None:
        plt.legend(loc="best", fontsize=8)
    plt.title(f"{y} vs {x}")
    plt.xlabel(x)
    plt.ylabel(y)
    plt.tight_layout()
    plt.savefig(out)
    plt.close()
    return out
