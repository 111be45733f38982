#!/usr/bin/env python3
"""
Fast-fail data contracts on the car dataset before fitting anything.

Usage:
  python scripts/quality_checks.py                  # built-in dataset
  python scripts/quality_checks.py --csv cars.csv   # same schema from a file
"""
from __future__ import annotations

import argparse
import sys

import duckdb

from tidyreg.utils.config import load_cfg
from tidyreg.utils.datasets import mtcars, read_dataset
from tidyreg.utils.quality import check_dataset


def eprint(*a, **k):
    print(*a, file=sys.stderr, **k)


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Dataset quality checks")
    p.add_argument("--csv", default=None, help="Delimited file with the car dataset schema")
    p.add_argument("--config", default=None, help="Config YAML (default: TIDYREG_CONFIG or config/config.yaml)")
    return p.parse_args()


def main():
    args = parse_args()
    cfg = load_cfg(args.config)
    df = read_dataset(args.csv) if args.csv else mtcars()

    con = duckdb.connect(":memory:")
    con.register("dataset", df)
    print(f"[quality] source={args.csv or 'built-in'} rows={len(df)}")

    failures = check_dataset(con, "dataset", cfg)
    con.close()

    if failures:
        print("\n[QUALITY FAIL] One or more data contracts were violated:")
        for i, f in enumerate(failures, 1):
            print(f" {i:02d}. {f}")
        print("\nFix the above issues (or data files) and rerun.")
        sys.exit(2)

    print("[quality] All checks passed ✔")


if __name__ == "__main__":
    try:
        main()
    except FileNotFoundError as e:
        eprint(f"[ERROR] {e}")
        sys.exit(2)
    except duckdb.Error as e:
        eprint(f"[FATAL][DuckDB] {e}")
        sys.exit(1)
