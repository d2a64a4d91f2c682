from __future__ import annotations

import logging
import math
from typing import Dict, Iterable

import numpy as np
import pandas as pd

from .generate import ID_COLUMN


def missing_count(n_rows: int, fraction: float) -> int:
    return int(math.floor(fraction * n_rows))


def inject_missing(
    df: pd.DataFrame,
    fraction: float,
    seed: int,
    exclude: Iterable[str] = (ID_COLUMN,),
) -> pd.DataFrame:
    """Blank ``floor(fraction * n)`` randomly chosen rows in every feature column.

    Columns are handled independently, so a row can lose any subset of its
    features. Integer columns become nullable ``Int64``.
    """
    rng = np.random.default_rng(seed)
    excluded = set(exclude)
    out = df.copy()
    n_missing = missing_count(len(out), fraction)
    for col in out.columns:
        if col in excluded:
            continue
        if pd.api.types.is_integer_dtype(out[col]):
            out[col] = out[col].astype("Int64")
        rows = rng.choice(len(out), size=n_missing, replace=False)
        out.iloc[rows, out.columns.get_loc(col)] = pd.NA if out[col].dtype == "Int64" else np.nan
    logging.info(
        "Injected %d missing values into each of %d columns",
        n_missing,
        len([c for c in out.columns if c not in excluded]),
    )
    return out


def missing_report(df: pd.DataFrame) -> Dict[str, int]:
    return {col: int(count) for col, count in df.isna().sum().items()}
