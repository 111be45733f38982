from functools import lru_cache
from typing import Any

import duckdb
import pandas as pd

from tidyreg.utils.datasets import mtcars

# In-memory only; nothing is written to disk.
DATASET_TABLE = "mtcars"


@lru_cache(maxsize=1)
def _connect() -> duckdb.DuckDBPyConnection:
    con = duckdb.connect(":memory:")
    con.register(DATASET_TABLE, mtcars())
    return con


def get_con() -> duckdb.DuckDBPyConnection:
    return _connect()


def register_frame(name: str, df: pd.DataFrame) -> None:
    """Expose a DataFrame as a queryable view, replacing any earlier one with the same name."""
    con = get_con()
    try:
        con.unregister(name)
    except duckdb.Error:
        pass
    con.register(name, df)


def query_df(sql: str, params: tuple[Any, ...] = ()) -> pd.DataFrame:
    con = get_con()
    if params:
        return con.execute(sql, list(params)).fetchdf()
    return con.execute(sql).fetchdf()


def table_exists(name: str) -> bool:
    con = get_con()
    try:
        con.execute(f"SELECT 1 FROM {name} LIMIT 1")
        return True
    except duckdb.Error:
        return False
