"""
E2E walkthrough: the tutorial's steps in order, against the in-memory DuckDB view
of the car dataset:
  1. the dataset is registered and passes its contracts
  2. scatter plots render to files
  3. mpg ~ qsec fits and tidies into 2 coefficient rows
  4. the same regression per cylinder count gives 3 independent fits
  5. the per-group tidy tables expand into one flat table
"""

import numpy as np
import pytest

from tidyreg.utils.config import load_cfg
from tidyreg.utils.db import DATASET_TABLE, get_con, query_df, table_exists
from tidyreg.utils.grouped import fit_groups
from tidyreg.utils.ols import lm
from tidyreg.utils.plots import save_scatter_png
from tidyreg.utils.quality import check_dataset
from tidyreg.utils.tidy import augment, glance, tidy


def cars():
    return query_df(f"SELECT * FROM {DATASET_TABLE}")


@pytest.mark.order(1)
def test_dataset_registered_and_valid():
    assert table_exists(DATASET_TABLE)
    n = query_df(f"SELECT COUNT(*) AS n FROM {DATASET_TABLE}")["n"].iloc[0]
    assert n == 32
    failures = check_dataset(get_con(), DATASET_TABLE, load_cfg())
    assert not failures, f"Dataset contracts failed: {failures}"


@pytest.mark.order(2)
def test_scatter_plots_written(tmp_path):
    df = cars()
    two = save_scatter_png(df, "qsec", "mpg", tmp_path / "mpg_vs_qsec.png")
    three = save_scatter_png(df, "qsec", "mpg", tmp_path / "mpg_vs_qsec_by_cyl.png", color="cyl", fit=True)
    assert two.stat().st_size > 0
    assert three.stat().st_size > 0


@pytest.mark.order(3)
def test_single_regression_tidies_to_two_rows():
    df = cars()
    model = lm("mpg ~ qsec", df)
    coefs = tidy(model, conf_level=0.95)
    assert list(coefs["term"]) == ["intercept", "qsec"]

    # reference: normal equations solved directly
    X = np.c_[np.ones(len(df)), df["qsec"].to_numpy(dtype=float)]
    ref = np.linalg.solve(X.T @ X, X.T @ df["mpg"].to_numpy(dtype=float))
    np.testing.assert_allclose(coefs["estimate"], ref, rtol=1e-10)
    assert coefs.loc[1, "estimate"] > 0  # mpg rises with slower quarter-mile times in this data

    obs = augment(model)
    assert len(obs) == 32
    np.testing.assert_allclose(obs["mpg"], df["mpg"])
    assert glance(model)["nobs"].iloc[0] == 32


@pytest.mark.order(4)
def test_grouped_regression_per_cylinder_count():
    df = cars()
    fits = fit_groups(df, "cyl", lambda rows: lm("mpg ~ qsec", rows))
    table = fits.to_frame()
    assert len(table) == 3
    assert list(table["cyl"]) == [6, 4, 8]
    assert not fits.failures


@pytest.mark.order(5)
def test_grouped_tidy_tables_expand():
    df = cars()
    fits = fit_groups(df, "cyl", lambda rows: lm("mpg ~ qsec", rows), sort=True)
    coefs = fits.tidy(conf_level=0.95)
    obs = fits.augment(with_data=True)
    assert len(coefs) == 6
    assert list(coefs["cyl"].unique()) == [4, 6, 8]
    assert len(obs) == 32
    for key, part in obs.groupby("cyl"):
        assert (df.loc[df["car"].isin(part["car"]), "cyl"] == key).all()
