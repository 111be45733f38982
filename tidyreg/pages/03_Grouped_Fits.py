import streamlit as st

from tidyreg.utils.config import load_cfg
from tidyreg.utils.db import DATASET_TABLE, query_df
from tidyreg.utils.errors import TidyRegError
from tidyreg.utils.grouped import fit_groups
from tidyreg.utils.ols import lm
from tidyreg.utils.plots import coefficient_chart, scatter_chart

st.set_page_config(page_title="Grouped Fits", layout="wide")

CFG = load_cfg()
st.title("Grouped Fits")

df = query_df(f"SELECT * FROM {DATASET_TABLE}")
keys = ["cyl", "gear", "am", "vs", "carb"]

# -------- Controls --------
c1, c2, c3, c4 = st.columns([1, 1, 1, 2])
with c1:
    by = st.selectbox("Group by", keys, index=keys.index(CFG["defaults"]["group_by"]))
with c2:
    formula = st.text_input("Formula", value=CFG["defaults"]["formula"])
with c3:
    policy = st.radio(
        "On group failure",
        ["raise", "collect"],
        index=["raise", "collect"].index(CFG["defaults"]["on_group_error"]),
        help="raise: stop at the first failing group. collect: report failures next to the fitted groups.",
    )
    sort = st.checkbox("Sort groups by key", value=False)
with c4:
    st.caption(
        "Each group gets its own regression on its own rows; the per-group tables are "
        "stacked into one table with the group key as the first column."
    )

conf = float(CFG["defaults"]["conf_level"])
try:
    fits = fit_groups(df, by, lambda rows: lm(formula, rows), sort=sort, on_error=policy)
    coefs = fits.tidy(conf_level=conf)
    models = fits.glance()
except TidyRegError as e:
    st.error(f"{type(e).__name__}: {e}")
    st.stop()

k1, k2, k3 = st.columns(3)
k1.metric("Groups", f"{len(fits):,}")
k2.metric("Fitted", f"{len(fits) - len(fits.failures):,}")
k3.metric("Failed", f"{len(fits.failures):,}")

for g in fits.failures:
    st.warning(f"{by}={g.key}: {type(g.error).__name__}: {g.error}")

left, right = st.columns([2, 1])
with left:
    st.subheader("Coefficients per group")
    st.dataframe(coefs)
    st.download_button(
        "Download grouped coefficients (CSV)",
        coefs.to_csv(index=False).encode("utf-8"),
        file_name=f"grouped_coefficients_by_{by}.csv",
        mime="text/csv",
    )
with right:
    st.subheader(f"Estimates ({conf:.0%} CI)")
    if not coefs.empty:
        st.altair_chart(coefficient_chart(coefs[coefs["term"] != "intercept"], group=by))

st.subheader("Model summary per group")
st.dataframe(models)

if len(fits) and fits[0].ok and len(fits[0].model.predictors) == 1:
    x = fits[0].model.predictors[0]
    y = fits[0].model.response
    st.subheader(f"{y} vs {x}, one line per {by}")
    st.altair_chart(scatter_chart(df, x, y, color=by, fit=True).interactive())
