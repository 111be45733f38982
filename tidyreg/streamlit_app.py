import os

import streamlit as st

from tidyreg.utils.config import load_cfg
from tidyreg.utils.db import DATASET_TABLE, get_con, query_df, table_exists
from tidyreg.utils.glossary import COLUMN_TOOLTIPS
from tidyreg.utils.plots import scatter_chart
from tidyreg.utils.quality import check_dataset

APP_TITLE = "Tidy Regression Walkthrough"
CFG = load_cfg()

st.set_page_config(page_title=APP_TITLE, layout="wide")

# ---- Header / status ----
with st.sidebar:
    st.markdown(f"### {APP_TITLE}")
    st.caption("pandas + NumPy/SciPy + DuckDB + Streamlit")
    st.write(f"**Config:** `{os.environ.get('TIDYREG_CONFIG', 'config/config.yaml')}`")
    run_checks = st.checkbox("Run dataset checks", value=True)
    if st.button("Refresh"):
        st.rerun()

st.title(APP_TITLE)
st.write(
    "Fit linear models on the 32-car dataset and reshape the output into tidy tables. "
    "Use the left sidebar to switch pages: scatter plots, per-model tables, and per-group fits."
)

# ---- Dataset checks ----
if run_checks:
    with st.expander("Dataset checks", expanded=True):
        if not table_exists(DATASET_TABLE):
            st.error(f"Table `{DATASET_TABLE}` is not registered.")
        else:
            failures = check_dataset(get_con(), DATASET_TABLE, CFG)
            if failures:
                st.error("\n".join(f"• {f}" for f in failures))
            else:
                st.success("All dataset contracts hold.")

# ---- Dataset preview ----
df = query_df(f"SELECT * FROM {DATASET_TABLE}")
c1, c2, c3 = st.columns(3)
c1.metric("Cars", f"{len(df):,}")
c2.metric("Columns", f"{df.shape[1]:,}")
c3.metric("Cylinder groups", f"{df['cyl'].nunique():,}")

with st.expander("Data", expanded=False):
    st.dataframe(df)
    st.markdown("\n".join(f"- **{k}**: {v}" for k, v in COLUMN_TOOLTIPS.items()))

st.subheader("Fuel efficiency vs quarter-mile time")
st.altair_chart(
    scatter_chart(df, "qsec", "mpg", color="cyl", width=CFG["plots"]["width"], height=CFG["plots"]["height"])
    .interactive()
)

st.caption("Tip: `python scripts/snapshot_plots.py` writes the same plots and tables to `artifacts/`.")
