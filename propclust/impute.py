from __future__ import annotations

import logging
from typing import List, Sequence

import numpy as np
import pandas as pd
from sklearn.impute import KNNImputer

from .normalize import de_normalise, min_max_normalise


def _check_not_all_missing(df: pd.DataFrame, columns: Sequence[str]) -> None:
    empty = [c for c in columns if df[c].isna().all()]
    if empty:
        raise ValueError(f"Cannot impute columns with no observed values: {empty}")


def _indicator_block(values: pd.Series, categories: List[str]) -> pd.DataFrame:
    block = pd.DataFrame(
        {cat: (values == cat).astype(float).to_numpy() for cat in categories},
        index=values.index,
    )
    block.loc[values.isna().to_numpy(), :] = np.nan
    return block


def knn_impute(
    df: pd.DataFrame,
    numeric: Sequence[str],
    categorical: Sequence[str],
    n_neighbors: int = 5,
) -> pd.DataFrame:
    """Fill missing numeric and categorical values from the k nearest rows.

    Numeric features are min-max scaled and categorical features one-hot
    encoded so both share one distance space. Numeric gaps take the
    neighbours' mean; categorical gaps take the category with the largest
    neighbour share.
    """
    features = list(numeric) + list(categorical)
    _check_not_all_missing(df, features)

    blocks = []
    layout = {}
    for col in numeric:
        blocks.append(min_max_normalise(df[col]).rename(col).to_frame())
        layout[col] = [col]
    for col in categorical:
        categories = _categories(df[col])
        block = _indicator_block(df[col], categories)
        block.columns = [f"{col}__{cat}" for cat in categories]
        blocks.append(block)
        layout[col] = list(block.columns)
    matrix = pd.concat(blocks, axis=1)

    imputer = KNNImputer(n_neighbors=n_neighbors)
    filled = pd.DataFrame(
        imputer.fit_transform(matrix.to_numpy(dtype=float)),
        columns=matrix.columns,
        index=df.index,
    )

    out = df.copy()
    for col in numeric:
        restored = de_normalise(filled[col], df[col])
        observed = df[col].astype(float)
        merged = observed.where(observed.notna(), restored)
        if pd.api.types.is_integer_dtype(df[col]):
            merged = merged.round().astype("int64")
        out[col] = merged.to_numpy()
    for col in categorical:
        categories = _categories(df[col])
        winners = filled[layout[col]].to_numpy().argmax(axis=1)
        chosen = pd.Series([categories[i] for i in winners], index=df.index)
        observed = df[col].astype(object).where(df[col].notna(), chosen)
        if isinstance(df[col].dtype, pd.CategoricalDtype):
            out[col] = pd.Categorical(observed, categories=df[col].cat.categories)
        else:
            out[col] = observed
    logging.info(
        "KNN imputation (k=%d) filled %d missing cells", n_neighbors, int(df[features].isna().sum().sum())
    )
    return out


def _categories(values: pd.Series) -> List[str]:
    if isinstance(values.dtype, pd.CategoricalDtype):
        return list(values.cat.categories)
    return sorted(values.dropna().unique().tolist())
