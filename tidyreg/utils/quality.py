"""
Fast-fail data contracts for the car dataset (or any table with the same schema).
Each check appends a message to `failures`; an empty list means the table is usable.
"""
from __future__ import annotations

from typing import Iterable

import duckdb

from tidyreg.utils.datasets import MTCARS_COLUMNS

NUMERIC_COLUMNS = [c for c in MTCARS_COLUMNS if c != "car"]


def _run_count(con: duckdb.DuckDBPyConnection, sql: str) -> int:
    return int(con.execute(sql).fetchone()[0])


def _assert_zero(con: duckdb.DuckDBPyConnection, sql: str, msg: str, failures: list[str]) -> None:
    cnt = _run_count(con, sql)
    if cnt != 0:
        failures.append(f"{msg} (violations={cnt})")


def _assert_positive(con: duckdb.DuckDBPyConnection, sql: str, msg: str, failures: list[str]) -> None:
    cnt = _run_count(con, sql)
    if cnt <= 0:
        failures.append(f"{msg} (count={cnt})")


def table_columns(con: duckdb.DuckDBPyConnection, table: str) -> list[str]:
    return [d[0] for d in con.execute(f"SELECT * FROM {table} LIMIT 0").description]


def check_columns(con: duckdb.DuckDBPyConnection, table: str, required: Iterable[str]) -> list[str]:
    have = set(table_columns(con, table))
    missing = [c for c in required if c not in have]
    return [f"Missing column(s) on {table}: {', '.join(missing)}"] if missing else []


def check_dataset(con: duckdb.DuckDBPyConnection, table: str, cfg: dict | None = None) -> list[str]:
    """Contracts for a car-attributes table with the built-in dataset's schema."""
    q = (cfg or {}).get("quality", {})
    allowed_cyl = q.get("allowed_cyl", [4, 6, 8])
    allowed_gear = q.get("allowed_gear", [3, 4, 5])

    # ---------- presence ----------
    failures = check_columns(con, table, MTCARS_COLUMNS)
    if failures:
        return failures
    _assert_positive(con, f"SELECT COUNT(*) FROM {table}", f"Empty table: {table}", failures)

    # ---------- key uniqueness ----------
    _assert_zero(con, f"SELECT COUNT(*) FROM {table} WHERE car IS NULL", f"car contains NULLs on {table}", failures)
    _assert_zero(
        con,
        f"WITH a AS (SELECT car, COUNT(*) c FROM {table} GROUP BY car) SELECT COUNT(*) FROM a WHERE c>1",
        f"car not unique on {table}",
        failures,
    )

    # ---------- types / NULLs ----------
    for col in NUMERIC_COLUMNS:
        _assert_zero(
            con,
            f"SELECT COUNT(*) FROM {table} WHERE TRY_CAST({col} AS DOUBLE) IS NULL",
            f"NULL or non-numeric {col} on {table}",
            failures,
        )

    # ---------- value constraints ----------
    _assert_zero(
        con,
        f"SELECT COUNT(*) FROM {table} WHERE mpg <= 0 OR wt <= 0 OR qsec <= 0 OR hp <= 0 OR disp <= 0",
        f"Non-positive mpg/wt/qsec/hp/disp on {table}",
        failures,
    )
    _assert_zero(
        con,
        f"SELECT COUNT(*) FROM {table} WHERE vs NOT IN (0, 1) OR am NOT IN (0, 1)",
        f"vs/am not coded 0/1 on {table}",
        failures,
    )
    cyl_list = ", ".join(str(int(v)) for v in allowed_cyl)
    _assert_zero(
        con,
        f"SELECT COUNT(*) FROM {table} WHERE cyl NOT IN ({cyl_list})",
        f"cyl outside {list(allowed_cyl)} on {table}",
        failures,
    )
    gear_list = ", ".join(str(int(v)) for v in allowed_gear)
    _assert_zero(
        con,
        f"SELECT COUNT(*) FROM {table} WHERE gear NOT IN ({gear_list})",
        f"gear outside {list(allowed_gear)} on {table}",
        failures,
    )
    return failures
