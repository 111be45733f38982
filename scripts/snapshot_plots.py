#!/usr/bin/env python3
"""
Write the walkthrough's plots and tidy tables as CI artifacts (no browser needed).
Outputs (under ARTIFACTS_DIR, default artifacts/):
  mpg_vs_qsec.png
  mpg_vs_qsec_by_cyl.png
  tidy_coefficients.csv, tidy_observations.csv, tidy_model.csv
  grouped_coefficients.csv, grouped_models.csv
"""
from __future__ import annotations

import os
import sys
from pathlib import Path

from tidyreg.utils.config import load_cfg
from tidyreg.utils.datasets import mtcars, write_table
from tidyreg.utils.errors import TidyRegError
from tidyreg.utils.grouped import fit_groups
from tidyreg.utils.ols import lm
from tidyreg.utils.plots import save_scatter_png
from tidyreg.utils.tidy import augment, glance, tidy

ART = Path(os.environ.get("ARTIFACTS_DIR", "artifacts"))


def eprint(*a, **k):
    print(*a, file=sys.stderr, **k)


def _write(df, name: str) -> None:
    out = write_table(df, ART / name)
    print(f"[snapshot] Wrote {out} ({len(df)} rows)")


def plots(df) -> None:
    out = save_scatter_png(df, "qsec", "mpg", ART / "mpg_vs_qsec.png", fit=True)
    print(f"[snapshot] Wrote {out}")
    out = save_scatter_png(df, "qsec", "mpg", ART / "mpg_vs_qsec_by_cyl.png", color="cyl", fit=True)
    print(f"[snapshot] Wrote {out}")


def tables(df, cfg: dict) -> None:
    d = cfg["defaults"]
    model = lm(d["formula"], df)
    _write(tidy(model, conf_level=d["conf_level"]), "tidy_coefficients.csv")
    _write(augment(model), "tidy_observations.csv")
    _write(glance(model), "tidy_model.csv")

    fits = fit_groups(df, d["group_by"], lambda rows: lm(d["formula"], rows), on_error=d["on_group_error"])
    for g in fits.failures:
        eprint(f"[snapshot] group {d['group_by']}={g.key} failed: {g.error}")
    _write(fits.tidy(conf_level=d["conf_level"]), "grouped_coefficients.csv")
    _write(fits.glance(), "grouped_models.csv")


def main():
    cfg = load_cfg()
    ART.mkdir(parents=True, exist_ok=True)
    df = mtcars()
    plots(df)
    tables(df, cfg)


if __name__ == "__main__":
    try:
        main()
    except TidyRegError as e:
        eprint(f"[FATAL] {type(e).__name__}: {e}")
        sys.exit(1)
