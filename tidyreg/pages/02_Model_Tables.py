import streamlit as st

from tidyreg.utils.config import load_cfg
from tidyreg.utils.db import DATASET_TABLE, query_df
from tidyreg.utils.errors import TidyRegError
from tidyreg.utils.glossary import TIDY_TOOLTIPS
from tidyreg.utils.ols import lm
from tidyreg.utils.tidy import augment, glance, tidy

st.set_page_config(page_title="Model Tables", layout="wide")

CFG = load_cfg()
st.title("Model Tables")

df = query_df(f"SELECT * FROM {DATASET_TABLE}")

# -------- Controls --------
left, right = st.columns([1, 2])
with left:
    formula = st.text_input("Formula", value=CFG["defaults"]["formula"])
    conf = st.slider("Confidence level", 0.50, 0.99, float(CFG["defaults"]["conf_level"]), step=0.01)
    keep_all = st.checkbox(
        "Keep all original columns in the observation table",
        value=False,
        help="Off: only the response and predictors. On: every column of the dataset (wider table).",
    )
    zcut = st.slider("Flag |std_resid| above", 1.0, 4.0, float(CFG["thresholds"]["std_resid_warn"]), step=0.1)
with right:
    st.caption("Formula syntax: `y ~ x1 + x2`, `- 1` drops the intercept, `y ~ .` uses every other numeric column.")

try:
    model = lm(formula, df)
    coefs = tidy(model, conf_level=conf)
    obs = augment(model, data=df if keep_all else None)
    summary = glance(model)
except TidyRegError as e:
    st.error(f"{type(e).__name__}: {e}")
    st.stop()

# -------- KPIs --------
g = summary.iloc[0]
k1, k2, k3, k4 = st.columns(4)
k1.metric("Observations", f"{int(g['nobs']):,}")
k2.metric("R²", f"{g['r_squared']:.3f}")
k3.metric("Residual SE", f"{g['sigma']:.3f}")
k4.metric("F p-value", f"{g['p_value']:.2g}")

st.subheader("Coefficients (one row per term)")
st.dataframe(coefs)
st.download_button(
    "Download coefficients as CSV",
    data=coefs.to_csv(index=False).encode("utf-8"),
    file_name="tidy_coefficients.csv",
    mime="text/csv",
)

st.subheader("Observations (one row per car)")
obs = obs.assign(is_outlier=lambda d: d["std_resid"].abs() > zcut)
st.dataframe(obs)
st.download_button(
    "Download observations as CSV",
    data=obs.to_csv(index=False).encode("utf-8"),
    file_name="tidy_observations.csv",
    mime="text/csv",
)

st.subheader("Model (one row)")
st.dataframe(summary)

# -------- Insights block --------
with st.expander("Auto-insights", expanded=True):
    lines = [f"• The model explains **{g['r_squared']:.1%}** of the variation in `{model.response}`."]
    for _, row in coefs[coefs["term"] != "intercept"].iterrows():
        direction = "rises" if row["estimate"] > 0 else "falls"
        lines.append(
            f"• `{model.response}` {direction} by **{abs(row['estimate']):.3f}** per unit of `{row['term']}` "
            f"({conf:.0%} CI {row['conf_low']:.3f} to {row['conf_high']:.3f}, p={row['p_value']:.2g})."
        )
    n_out = int(obs["is_outlier"].sum())
    if n_out:
        lines.append(f"• {n_out} observation(s) have |std_resid| > {zcut}.")
    st.markdown("\n".join(lines))

with st.expander("How to read these tables"):
    st.markdown("\n".join(f"- **{k}**: {v}" for k, v in TIDY_TOOLTIPS.items()))
