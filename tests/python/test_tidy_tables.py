import numpy as np
import pandas as pd
import pytest

from tidyreg.utils.datasets import mtcars
from tidyreg.utils.errors import InvalidConfidenceLevel, InvalidModel, RowCountMismatch
from tidyreg.utils.ols import lm, ols_fit
from tidyreg.utils.tidy import (
    COEF_COLUMNS,
    CONF_COLUMNS,
    DIAGNOSTIC_COLUMNS,
    GLANCE_COLUMNS,
    augment,
    glance,
    tidy,
)


@pytest.fixture
def cars():
    return mtcars()


@pytest.fixture
def wt_model(cars):
    return lm("mpg ~ wt", cars)


# ---------- tidy ----------

@pytest.mark.parametrize("predictors", [["qsec"], ["wt", "hp"], ["wt", "hp", "qsec", "drat"]])
def test_one_row_per_term_intercept_first(cars, predictors):
    table = tidy(ols_fit(cars, "mpg", predictors))
    assert len(table) == len(predictors) + 1
    assert list(table["term"]) == ["intercept", *predictors]
    assert table["term"].is_unique
    assert list(table.columns) == COEF_COLUMNS


def test_column_names_are_plain_identifiers(wt_model):
    table = tidy(wt_model, conf_level=0.9)
    assert all(c.isidentifier() for c in table.columns)
    assert list(table.columns) == COEF_COLUMNS + CONF_COLUMNS


def test_tidy_matches_published_mpg_on_wt(wt_model):
    table = tidy(wt_model, conf_level=0.95).set_index("term")
    assert table.loc["intercept", "estimate"] == pytest.approx(37.2851, abs=1e-4)
    assert table.loc["wt", "estimate"] == pytest.approx(-5.3445, abs=1e-4)
    assert table.loc["intercept", "std_error"] == pytest.approx(1.8776, abs=1e-4)
    assert table.loc["wt", "std_error"] == pytest.approx(0.5591, abs=1e-4)
    assert table.loc["wt", "statistic"] == pytest.approx(-9.559, abs=1e-3)
    assert table.loc["wt", "p_value"] == pytest.approx(1.294e-10, rel=1e-2)
    assert table.loc["wt", "conf_low"] == pytest.approx(-6.486308, abs=1e-5)
    assert table.loc["wt", "conf_high"] == pytest.approx(-4.202635, abs=1e-5)
    assert table.loc["intercept", "conf_low"] == pytest.approx(33.450500, abs=1e-5)
    assert table.loc["intercept", "conf_high"] == pytest.approx(41.119753, abs=1e-5)


def test_interval_contains_estimate_and_widens_with_level(cars):
    model = lm("mpg ~ qsec + wt", cars)
    t95 = tidy(model, conf_level=0.95)
    t99 = tidy(model, conf_level=0.99)
    assert (t95["conf_low"] < t95["estimate"]).all()
    assert (t95["estimate"] < t95["conf_high"]).all()
    assert (t99["conf_low"] < t95["conf_low"]).all()
    assert (t99["conf_high"] > t95["conf_high"]).all()
    # symmetric around the estimate
    np.testing.assert_allclose(t95["estimate"] - t95["conf_low"], t95["conf_high"] - t95["estimate"])


@pytest.mark.parametrize("level", [0, 1, -0.5, 1.5, 95, float("nan"), True, "0.95"])
def test_invalid_confidence_level(wt_model, level):
    with pytest.raises(InvalidConfidenceLevel):
        tidy(wt_model, conf_level=level)


def test_rank_deficient_model_is_rejected(cars):
    model = ols_fit(cars.assign(wt2=lambda d: d["wt"] * 2), "mpg", ["wt", "wt2"])
    with pytest.raises(InvalidModel):
        tidy(model)
    with pytest.raises(InvalidModel):
        augment(model)
    with pytest.raises(InvalidModel):
        glance(model)


def test_model_without_residual_df_is_rejected(cars):
    model = ols_fit(cars.head(2), "mpg", ["wt"])
    assert model.df_resid == 0
    with pytest.raises(InvalidModel):
        tidy(model)


def test_non_model_is_rejected():
    with pytest.raises(InvalidModel):
        tidy({"estimate": 1.0})


# ---------- augment ----------

def test_augment_default_keeps_model_columns_only(cars, wt_model):
    table = augment(wt_model)
    assert list(table.columns) == ["mpg", "wt"] + DIAGNOSTIC_COLUMNS
    assert len(table) == wt_model.nobs == 32
    # input order preserved
    np.testing.assert_allclose(table["mpg"], cars["mpg"])
    np.testing.assert_allclose(table["wt"], cars["wt"])


def test_augment_with_data_keeps_every_column(cars, wt_model):
    table = augment(wt_model, data=cars)
    assert list(table.columns) == list(cars.columns) + DIAGNOSTIC_COLUMNS
    assert list(table["car"]) == list(cars["car"])


def test_augment_row_count_mismatch(cars, wt_model):
    with pytest.raises(RowCountMismatch) as exc:
        augment(wt_model, data=cars.head(10))
    assert exc.value.expected == 32
    assert exc.value.got == 10


def test_augment_diagnostic_identities(cars):
    model = lm("mpg ~ wt + qsec", cars)
    table = augment(model)
    np.testing.assert_allclose(table["fitted"] + table["resid"], table["mpg"])
    assert table["resid"].sum() == pytest.approx(0.0, abs=1e-9)
    assert table["hat"].sum() == pytest.approx(3.0)  # trace of the hat matrix = number of terms
    assert ((table["hat"] > 0) & (table["hat"] < 1)).all()
    assert (table["cooksd"] >= 0).all()
    assert (table["sigma"] > 0).all()


def test_augment_leave_one_out_sigma_matches_refit(cars):
    model = lm("mpg ~ wt", cars)
    table = augment(model)
    refit = lm("mpg ~ wt", cars.drop(index=0))
    assert table.loc[0, "sigma"] == pytest.approx(refit.sigma)


def test_augment_refuses_to_overwrite_columns(cars):
    data = cars.assign(resid=0.0)
    model = lm("mpg ~ wt", data)
    with pytest.raises(ValueError):
        augment(model, data=data)


def test_augment_after_missing_rows(cars):
    cars.loc[3, "wt"] = np.nan
    model = lm("mpg ~ wt", cars)
    assert len(augment(model)) == 31
    with pytest.raises(RowCountMismatch):
        augment(model, data=cars)
    assert len(augment(model, data=cars.dropna())) == 31


# ---------- glance ----------

def test_glance_matches_published_mpg_on_wt(wt_model):
    table = glance(wt_model)
    assert list(table.columns) == GLANCE_COLUMNS
    assert len(table) == 1
    row = table.iloc[0]
    assert row["r_squared"] == pytest.approx(0.7528, abs=1e-4)
    assert row["adj_r_squared"] == pytest.approx(0.7446, abs=1e-4)
    assert row["sigma"] == pytest.approx(3.046, abs=1e-3)
    assert row["statistic"] == pytest.approx(91.38, abs=1e-2)
    assert row["df"] == 1
    assert row["df_residual"] == 30
    assert row["nobs"] == 32
    assert row["log_lik"] == pytest.approx(-80.015, abs=1e-3)
    assert row["aic"] == pytest.approx(166.029, abs=1e-3)
    assert row["bic"] == pytest.approx(170.427, abs=1e-3)
    assert row["deviance"] == pytest.approx(278.32, abs=1e-2)


def test_glance_statistic_agrees_with_tidy_for_one_predictor(wt_model):
    t = tidy(wt_model).set_index("term").loc["wt", "statistic"]
    g = glance(wt_model).iloc[0]
    assert g["statistic"] == pytest.approx(t ** 2)
    assert g["p_value"] == pytest.approx(tidy(wt_model).set_index("term").loc["wt", "p_value"])


def test_glance_without_intercept_uses_uncentered_total(cars):
    model = lm("mpg ~ wt - 1", cars)
    row = glance(model).iloc[0]
    y = cars["mpg"].to_numpy()
    assert row["r_squared"] == pytest.approx(1 - model.ss_res / np.sum(y ** 2))
    assert row["df"] == 1


def test_tables_compose_with_pandas(cars):
    # the point of tidy output: plain frames that join and concat
    a = tidy(lm("mpg ~ wt", cars)).assign(model="wt")
    b = tidy(lm("mpg ~ qsec", cars)).assign(model="qsec")
    both = pd.concat([a, b], ignore_index=True)
    assert len(both) == 4
    merged = both.merge(glance(lm("mpg ~ wt", cars)).assign(model="wt"), on="model", suffixes=("", "_model"))
    assert len(merged) == 2
