from __future__ import annotations

from typing import Iterable, Tuple

import pandas as pd
from sklearn.preprocessing import MinMaxScaler


def _as_float(x) -> pd.Series:
    return pd.to_numeric(pd.Series(x), errors="raise").astype(float)


def observed_range(x) -> Tuple[float, float]:
    values = _as_float(x)
    if values.notna().sum() == 0:
        raise ValueError("Cannot take the range of an all-missing column")
    return float(values.min()), float(values.max())


def _fitted_scaler(original: pd.Series) -> MinMaxScaler:
    observed_range(original)
    return MinMaxScaler().fit(original.to_frame().to_numpy())


def min_max_normalise(x) -> pd.Series:
    """Rescale ``x`` to [0, 1] with its own min and max, ignoring missing values.

    A constant column maps to 0.
    """
    values = _as_float(x)
    scaled = _fitted_scaler(values).transform(values.to_frame().to_numpy())[:, 0]
    return pd.Series(scaled, index=values.index, name=values.name)


def de_normalise(x_scaled, original) -> pd.Series:
    """Map normalized values back to the scale of ``original``.

    Computes ``x_scaled * (max - min) + min`` with min/max taken from
    ``original``. Values outside [0, 1] extrapolate linearly and a constant
    original maps every value back to that constant.
    """
    lo, hi = observed_range(original)
    scaled = _as_float(x_scaled)
    return scaled * (hi - lo) + lo


def normalise_frame(df: pd.DataFrame, columns: Iterable[str]) -> pd.DataFrame:
    out = df.copy()
    for col in columns:
        out[col] = min_max_normalise(out[col]).to_numpy()
    return out
