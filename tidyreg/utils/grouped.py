"""
Split a dataset by a key column, fit each group on its own rows, and
recombine per-group tidy tables into one flat table tagged with the key.

Failure policy (`on_error`):
  "raise"   - stop at the first failing group with GroupFitFailure (default)
  "collect" - keep going; failed groups carry their error and are left out
              of expanded tables, see GroupedFits.failures
A fit counts as failed when the fitter raises or returns a model the tidy
adapters would reject (rank deficient, no residual df).
"""
from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from typing import Any, Callable, Iterator

import numpy as np
import pandas as pd

from tidyreg.utils.errors import GroupFitFailure
from tidyreg.utils.ols import OLSResult
from tidyreg.utils.tidy import augment, check_model, glance, tidy

Fitter = Callable[[pd.DataFrame], OLSResult]
Tidier = Callable[[OLSResult], pd.DataFrame]

ON_ERROR = ("raise", "collect")


def _plain(key: Any) -> Any:
    return key.item() if isinstance(key, np.generic) else key


def _same_key(a: Any, b: Any) -> bool:
    # the NaN group has to be found by a NaN key
    return a == b or (pd.isna(a) and pd.isna(b))


def split_groups(frame: pd.DataFrame, by: str, *, sort: bool = False) -> list[tuple[Any, pd.DataFrame]]:
    """
    Partition rows by value of `by`. Groups come in first-appearance order,
    or ascending key order with sort=True. Each group frame is re-indexed from 0.
    """
    if by not in frame.columns:
        raise KeyError(f"Group key column not found: {by!r}")
    return [
        (_plain(key), sub.reset_index(drop=True))
        for key, sub in frame.groupby(by, sort=sort, dropna=False)
    ]


@dataclass(frozen=True, eq=False)
class GroupFit:
    key: Any
    data: pd.DataFrame
    model: OLSResult | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _rows_used(g: GroupFit) -> pd.DataFrame:
    # the fitter drops rows with missing model values; keep the original columns of the rest
    mask = g.model.row_mask
    if len(mask) == len(g.data) and not mask.all():
        return g.data.loc[mask]
    return g.data


@dataclass(frozen=True, eq=False)
class GroupedFits:
    by: str
    groups: tuple[GroupFit, ...]

    def __len__(self) -> int:
        return len(self.groups)

    def __iter__(self) -> Iterator[GroupFit]:
        return iter(self.groups)

    def __getitem__(self, i: int) -> GroupFit:
        return self.groups[i]

    @property
    def keys(self) -> list[Any]:
        return [g.key for g in self.groups]

    @property
    def failures(self) -> list[GroupFit]:
        return [g for g in self.groups if not g.ok]

    def model_for(self, key: Any) -> OLSResult:
        for g in self.groups:
            if _same_key(g.key, key):
                if not g.ok:
                    raise GroupFitFailure(key, g.error) from g.error
                return g.model
        raise KeyError(key)

    def to_frame(self) -> pd.DataFrame:
        """Grouped model table: key, model (or None), error (or None)."""
        return pd.DataFrame({
            self.by: [g.key for g in self.groups],
            "model": pd.Series([g.model for g in self.groups], dtype=object),
            "error": pd.Series([g.error for g in self.groups], dtype=object),
        })

    def _expand(self, fn: Callable[[GroupFit], pd.DataFrame]) -> pd.DataFrame:
        parts = []
        for g in self.groups:
            if not g.ok:
                continue
            try:
                table = fn(g)
            except Exception as e:
                raise GroupFitFailure(g.key, e) from e
            if self.by in table.columns:
                raise ValueError(f"Group key {self.by!r} clashes with a column of the per-group table")
            table.insert(0, self.by, g.key)
            parts.append(table)
        if not parts:
            return pd.DataFrame(columns=[self.by])
        return pd.concat(parts, ignore_index=True)

    def expand(self, tidier: Tidier) -> pd.DataFrame:
        """Apply `tidier` to every fitted group, tag rows with the key, concatenate in group order."""
        return self._expand(lambda g: tidier(g.model))

    def tidy(self, conf_level: float | None = None) -> pd.DataFrame:
        return self.expand(partial(tidy, conf_level=conf_level))

    def augment(self, *, with_data: bool = False) -> pd.DataFrame:
        """Per-observation tables; with_data=True keeps every column of each group's rows."""
        if with_data:
            return self._expand(lambda g: augment(g.model, data=_rows_used(g).drop(columns=[self.by])))
        return self.expand(augment)

    def glance(self) -> pd.DataFrame:
        return self.expand(glance)


def fit_groups(
    frame: pd.DataFrame,
    by: str,
    fitter: Fitter,
    *,
    sort: bool = False,
    on_error: str = "raise",
) -> GroupedFits:
    """Run `fitter` independently on each group's rows (passed as its only argument)."""
    if on_error not in ON_ERROR:
        raise ValueError(f"on_error must be one of {ON_ERROR}, got {on_error!r}")

    fits: list[GroupFit] = []
    for key, sub in split_groups(frame, by, sort=sort):
        try:
            model = check_model(fitter(sub))
        except Exception as e:
            if on_error == "raise":
                raise GroupFitFailure(key, e) from e
            fits.append(GroupFit(key=key, data=sub, error=e))
            continue
        fits.append(GroupFit(key=key, data=sub, model=model))
    return GroupedFits(by=by, groups=tuple(fits))


def group_fit(
    frame: pd.DataFrame,
    by: str,
    fitter: Fitter,
    *,
    tidier: Tidier | None = None,
    sort: bool = False,
    on_error: str = "raise",
) -> pd.DataFrame:
    """
    One call for the common case: the grouped model table, or, with `tidier`,
    the expanded tidy table (every per-group row tagged with its key).
    """
    fits = fit_groups(frame, by, fitter, sort=sort, on_error=on_error)
    if tidier is None:
        return fits.to_frame()
    return fits.expand(tidier)
