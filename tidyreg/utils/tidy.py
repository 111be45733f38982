"""
Reshape a fitted OLSResult into tidy tables:

- tidy():    one row per term
- augment(): one row per observation used in the fit
- glance():  one row per model

Column names are plain identifiers so the tables group/join/concat cleanly.
"""
from __future__ import annotations

import numbers

import numpy as np
import pandas as pd
from scipy import stats

from tidyreg.utils.errors import InvalidConfidenceLevel, InvalidModel, RowCountMismatch
from tidyreg.utils.ols import OLSResult

COEF_COLUMNS = ["term", "estimate", "std_error", "statistic", "p_value"]
CONF_COLUMNS = ["conf_low", "conf_high"]
DIAGNOSTIC_COLUMNS = ["fitted", "resid", "hat", "sigma", "cooksd", "std_resid"]
GLANCE_COLUMNS = [
    "r_squared", "adj_r_squared", "sigma", "statistic", "p_value", "df",
    "log_lik", "aic", "bic", "deviance", "df_residual", "nobs",
]


def check_model(model: OLSResult) -> OLSResult:
    """Raise InvalidModel unless `model` is a full-rank fit with residual degrees of freedom."""
    if not isinstance(model, OLSResult):
        raise InvalidModel(f"Expected an OLSResult, got {type(model).__name__}")
    if not model.is_full_rank:
        raise InvalidModel(
            f"Design matrix is rank deficient (rank {model.rank} < {len(model.terms)} terms)"
        )
    if model.df_resid <= 0:
        raise InvalidModel(f"No residual degrees of freedom ({model.nobs} obs, {model.rank} terms)")
    return model


def check_conf_level(conf_level) -> float:
    if (
        isinstance(conf_level, bool)
        or not isinstance(conf_level, numbers.Real)
        or not 0 < conf_level < 1
    ):
        raise InvalidConfidenceLevel(conf_level)
    return float(conf_level)


def confint(model: OLSResult, conf_level: float = 0.95) -> tuple[np.ndarray, np.ndarray]:
    """t-interval per coefficient: estimate -/+ t_{(1+level)/2, df_resid} * std_error."""
    check_model(model)
    level = check_conf_level(conf_level)
    q = stats.t.ppf((1.0 + level) / 2.0, model.df_resid)
    return model.beta - q * model.bse, model.beta + q * model.bse


def tidy(model: OLSResult, conf_level: float | None = None) -> pd.DataFrame:
    """
    Coefficient table in fitter order (intercept first, then predictors as given).
    With `conf_level`, adds conf_low / conf_high.
    """
    check_model(model)
    out = pd.DataFrame({
        "term": list(model.terms),
        "estimate": model.beta,
        "std_error": model.bse,
        "statistic": model.tvalues,
        "p_value": model.pvalues,
    })
    if conf_level is not None:
        out["conf_low"], out["conf_high"] = confint(model, conf_level)
    return out


def diagnostics(model: OLSResult) -> dict[str, np.ndarray]:
    check_model(model)
    e = model.resid
    h = model.hat
    s = model.sigma
    one_minus_h = 1.0 - h
    with np.errstate(divide="ignore", invalid="ignore"):
        std_resid = e / (s * np.sqrt(one_minus_h))
        cooksd = std_resid ** 2 * h / (model.rank * one_minus_h)
        if model.df_resid > 1:
            loo = (model.ss_res - e ** 2 / one_minus_h) / (model.df_resid - 1)
            sigma_i = np.sqrt(np.clip(loo, 0.0, None))
        else:
            sigma_i = np.full(e.shape, np.nan)
    return {
        "fitted": model.y_hat,
        "resid": e,
        "hat": h,
        "sigma": sigma_i,
        "cooksd": cooksd,
        "std_resid": std_resid,
    }


def augment(model: OLSResult, *, data: pd.DataFrame | None = None) -> pd.DataFrame:
    """
    Observation table in input order with per-row diagnostics appended.

    By default only the model columns (response, then predictors) are kept.
    Passing `data` (the exact rows the model was fit on) keeps every original
    column instead; this is opt-in because it widens the output. Rows dropped
    for missing values are not in the model, so `data` must already exclude them.
    """
    check_model(model)
    if data is None:
        out = model.frame.copy()
    else:
        if len(data) != model.nobs:
            raise RowCountMismatch(model.nobs, len(data))
        out = data.reset_index(drop=True).copy()

    clash = [c for c in DIAGNOSTIC_COLUMNS if c in out.columns]
    if clash:
        raise ValueError(f"Column(s) {clash} already present; rename before augmenting")

    for name, values in diagnostics(model).items():
        out[name] = values
    return out


def glance(model: OLSResult) -> pd.DataFrame:
    """Single-row model summary. Intercept-free models use the uncentered total sum of squares."""
    check_model(model)
    n = model.nobs
    y = model.y
    ss_res = model.ss_res
    ss_tot = float(np.sum((y - y.mean()) ** 2)) if model.intercept else float(np.sum(y ** 2))
    df_model = model.rank - int(model.intercept)

    with np.errstate(divide="ignore", invalid="ignore"):
        r2 = 1.0 - ss_res / ss_tot if ss_tot > 0 else float("nan")
        adj_r2 = 1.0 - (1.0 - r2) * (n - int(model.intercept)) / model.df_resid
        if df_model > 0:
            f_stat = ((ss_tot - ss_res) / df_model) / (ss_res / model.df_resid)
            f_p = float(stats.f.sf(f_stat, df_model, model.df_resid))
        else:
            f_stat = f_p = float("nan")
        log_lik = -0.5 * n * (np.log(2.0 * np.pi) + np.log(ss_res / n) + 1.0)

    n_params = model.rank + 1  # coefficients plus sigma
    return pd.DataFrame([{
        "r_squared": r2,
        "adj_r_squared": adj_r2,
        "sigma": model.sigma,
        "statistic": f_stat,
        "p_value": f_p,
        "df": df_model,
        "log_lik": log_lik,
        "aic": -2.0 * log_lik + 2.0 * n_params,
        "bic": -2.0 * log_lik + np.log(n) * n_params,
        "deviance": ss_res,
        "df_residual": model.df_resid,
        "nobs": n,
    }], columns=GLANCE_COLUMNS)
