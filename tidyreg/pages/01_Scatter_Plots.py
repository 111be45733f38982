import streamlit as st

from tidyreg.utils.config import load_cfg
from tidyreg.utils.db import DATASET_TABLE, query_df
from tidyreg.utils.plots import scatter_chart

st.set_page_config(page_title="Scatter Plots", layout="wide")

CFG = load_cfg()
st.title("Scatter Plots")

df = query_df(f"SELECT * FROM {DATASET_TABLE}")
numeric = [c for c in df.columns if c != "car"]

# -------- Controls --------
left, right = st.columns([1, 2])
with left:
    x = st.selectbox("x", numeric, index=numeric.index("qsec"))
    y = st.selectbox("y", numeric, index=numeric.index("mpg"))
    color = st.selectbox("Colour by (optional)", ["(none)"] + numeric, index=1 + numeric.index("cyl"))
    fit = st.checkbox("Overlay least-squares line(s)", value=True)
with right:
    st.caption(
        "Two columns give a plain scatter; a third column colours points as a category. "
        "With colour on, the fitted lines are separate regressions per colour group."
    )

if x == y:
    st.info("Pick two different columns.")
    st.stop()

color = None if color == "(none)" else color
chart = scatter_chart(df, x, y, color=color, fit=fit, width=CFG["plots"]["width"], height=CFG["plots"]["height"])
st.subheader(f"{y} vs {x}")
st.altair_chart(chart.interactive())

# -------- Group summary --------
if color:
    summary = query_df(f"""
        SELECT {color}, COUNT(*) AS n, AVG({x}) AS mean_{x}, AVG({y}) AS mean_{y}, corr({x}, {y}) AS corr_xy
        FROM {DATASET_TABLE}
        GROUP BY 1
        ORDER BY 1
    """)
    st.subheader(f"By {color}")
    st.dataframe(summary)
