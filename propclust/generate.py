from __future__ import annotations

import enum
import logging
from typing import List

import numpy as np
import pandas as pd

from .config import PropClustConfig

ID_COLUMN = "property_id"
FEATURE_COLUMNS = ["land_use", "parcel_area", "bedrooms", "avg_daily_water_consumption"]


class LandUse(str, enum.Enum):
    HOUSE = "House"
    RURAL_RESIDENTIAL = "Rural-Residential"
    UNITS = "Units"
    FLATS = "Flats"


def land_use_categories(config: PropClustConfig) -> List[str]:
    names = config.land_use_names
    known = [member.value for member in LandUse]
    unknown = [n for n in names if n not in known]
    if unknown:
        raise ValueError(f"Unknown land use categories: {unknown}")
    return names


def _property_ids(n: int) -> List[str]:
    width = max(4, len(str(n)))
    return [f"P{i:0{width}d}" for i in range(1, n + 1)]


def generate_properties(config: PropClustConfig) -> pd.DataFrame:
    """Draw ``config.n_properties`` synthetic property records.

    Land use follows the configured shares; parcel area is log-normal per land
    use; bedrooms come from a per-land-use discrete distribution; water use is
    normal around a mean that rises linearly with standardized parcel area,
    floored, then scaled by the land use multiplier.
    """
    rng = np.random.default_rng(config.random_seed)
    n = config.n_properties
    categories = land_use_categories(config)
    shares = [float(config.land_use[c]["share"]) for c in categories]
    land_use = rng.choice(categories, size=n, p=shares)

    area = np.empty(n, dtype=float)
    bedrooms = np.empty(n, dtype=np.int64)
    multiplier = np.empty(n, dtype=float)
    for name in categories:
        params = config.land_use[name]
        mask = land_use == name
        count = int(mask.sum())
        if not count:
            continue
        area[mask] = rng.lognormal(
            mean=float(params["area_meanlog"]), sigma=float(params["area_sdlog"]), size=count
        )
        bedrooms[mask] = rng.choice(params["bedrooms"], size=count, p=params["bedroom_probs"])
        multiplier[mask] = float(params["water_multiplier"])

    sd = area.std(ddof=1) if n > 1 else 0.0
    area_z = (area - area.mean()) / sd if sd > 0 else np.zeros(n)
    base = rng.normal(
        loc=config.water_base_mean + config.water_area_slope * area_z, scale=config.water_sd
    )
    water = np.maximum(base, config.water_floor) * multiplier

    df = pd.DataFrame(
        {
            ID_COLUMN: _property_ids(n),
            "land_use": pd.Categorical(land_use, categories=categories),
            "parcel_area": area,
            "bedrooms": bedrooms,
            "avg_daily_water_consumption": water,
        },
        columns=[ID_COLUMN] + FEATURE_COLUMNS,
    )
    logging.info(
        "Generated %d properties (%s)",
        len(df),
        ", ".join(f"{k}={v}" for k, v in df["land_use"].value_counts(sort=False).items()),
    )
    return df
