"""
Ordinary least squares used by the tidy adapters, the grouped runner and the app.
Closed-form fit via NumPy; reference distributions from SciPy.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Sequence

import numpy as np
import pandas as pd
from scipy import stats

from tidyreg.utils.errors import InvalidModel

INTERCEPT = "intercept"

_FORMULA = re.compile(r"^\s*([^~\s]+)\s*~\s*(.+?)\s*$")
_RHS_TOKEN = re.compile(r"([+-]?)\s*([^+\-\s]+)")


@dataclass(frozen=True, eq=False)
class OLSResult:
    response: str
    terms: list[str]        # intercept first (when present), then predictors in formula order
    beta: np.ndarray
    bse: np.ndarray         # standard errors, NaN when df_resid == 0
    tvalues: np.ndarray
    pvalues: np.ndarray     # two-sided, t(df_resid)
    y: np.ndarray
    y_hat: np.ndarray
    resid: np.ndarray
    hat: np.ndarray         # leverage, diag of X X^+
    X: np.ndarray
    rank: int
    df_resid: int
    intercept: bool
    frame: pd.DataFrame     # response + predictors for the rows used, RangeIndex
    row_mask: np.ndarray    # input rows that survived the finite filter

    @property
    def predictors(self) -> list[str]:
        return self.terms[1:] if self.intercept else list(self.terms)

    @property
    def nobs(self) -> int:
        return int(self.y.size)

    @property
    def is_full_rank(self) -> bool:
        return self.rank == self.X.shape[1]

    @property
    def ss_res(self) -> float:
        return float(self.resid @ self.resid)

    @property
    def sigma(self) -> float:
        """Residual standard error, sqrt(SSE / df_resid)."""
        if self.df_resid <= 0:
            return float("nan")
        return float(np.sqrt(self.ss_res / self.df_resid))

    def predict(self, frame: pd.DataFrame) -> np.ndarray:
        missing = [c for c in self.predictors if c not in frame.columns]
        if missing:
            raise KeyError(f"Missing predictor column(s): {missing}")
        X = frame[self.predictors].to_numpy(dtype=float)
        if self.intercept:
            X = np.c_[np.ones(len(frame)), X]
        return X @ self.beta


def ols_fit(
    frame: pd.DataFrame,
    response: str,
    predictors: Sequence[str],
    intercept: bool = True,
) -> OLSResult:
    """
    Fit response = b0 + b1*x1 + ... via least squares.

    - Rows with a non-finite value in any model column are dropped.
    - Rank-deficient designs are returned, not raised; check `is_full_rank`.
    - Bad input (unknown/non-numeric columns, no rows, no terms) raises InvalidModel.
    """
    predictors = list(predictors)
    cols = [response, *predictors]
    missing = [c for c in cols if c not in frame.columns]
    if missing:
        raise InvalidModel(f"Unknown column(s): {missing}")
    if len(set(cols)) != len(cols):
        raise InvalidModel(f"Column used more than once in model: {cols}")
    non_numeric = [c for c in cols if not pd.api.types.is_numeric_dtype(frame[c])]
    if non_numeric:
        raise InvalidModel(f"Non-numeric model column(s): {non_numeric}")
    if not predictors and not intercept:
        raise InvalidModel("Model has no terms")

    values = frame[cols].to_numpy(dtype=float)
    m = np.isfinite(values).all(axis=1)
    values = values[m]
    n = values.shape[0]
    if n == 0:
        raise InvalidModel("No complete rows to fit")

    y = values[:, 0]
    X = values[:, 1:]
    if intercept:
        X = np.c_[np.ones(n), X]

    beta, _, rank, _ = np.linalg.lstsq(X, y, rcond=None)
    y_hat = X @ beta
    resid = y - y_hat
    df_resid = n - int(rank)

    X_pinv = np.linalg.pinv(X)
    hat = np.einsum("ij,ji->i", X, X_pinv)
    xtx_inv = X_pinv @ X_pinv.T

    if df_resid > 0:
        sigma2 = float(resid @ resid) / df_resid
        bse = np.sqrt(np.clip(np.diag(xtx_inv) * sigma2, 0.0, None))
        with np.errstate(divide="ignore", invalid="ignore"):
            tvalues = beta / bse
        pvalues = 2.0 * stats.t.sf(np.abs(tvalues), df_resid)
    else:
        bse = np.full(beta.shape, np.nan)
        tvalues = np.full(beta.shape, np.nan)
        pvalues = np.full(beta.shape, np.nan)

    return OLSResult(
        response=response,
        terms=([INTERCEPT] if intercept else []) + predictors,
        beta=beta,
        bse=bse,
        tvalues=tvalues,
        pvalues=pvalues,
        y=y,
        y_hat=y_hat,
        resid=resid,
        hat=hat,
        X=X,
        rank=int(rank),
        df_resid=df_resid,
        intercept=intercept,
        frame=frame.loc[m, cols].reset_index(drop=True),
        row_mask=m,
    )


def parse_formula(formula: str) -> tuple[str, list[str], bool]:
    """
    Split "y ~ x1 + x2" into (response, predictors, intercept).
    "- 1" or "+ 0" drops the intercept; "." stays as a placeholder for "all other columns".
    """
    m = _FORMULA.match(formula)
    if not m:
        raise InvalidModel(f"Not a formula: {formula!r}")
    response, rhs = m.groups()
    predictors: list[str] = []
    intercept = True
    for sign, token in _RHS_TOKEN.findall(rhs):
        if token == "1":
            intercept = sign != "-"
        elif token == "0":
            intercept = False
        elif sign == "-":
            raise InvalidModel(f"Removing terms is not supported: -{token}")
        elif token not in predictors:
            predictors.append(token)
    return response, predictors, intercept


def lm(formula: str, frame: pd.DataFrame) -> OLSResult:
    """Fit a formula like "mpg ~ qsec" on a DataFrame. "y ~ ." uses every other numeric column."""
    response, predictors, intercept = parse_formula(formula)
    if "." in predictors:
        rest = [
            c for c in frame.columns
            if c != response and c not in predictors and pd.api.types.is_numeric_dtype(frame[c])
        ]
        i = predictors.index(".")
        predictors = predictors[:i] + rest + predictors[i + 1:]
    return ols_fit(frame, response, predictors, intercept=intercept)
