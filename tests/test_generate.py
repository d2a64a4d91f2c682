import pandas as pd

from propclust.config import PropClustConfig
from propclust.generate import FEATURE_COLUMNS, ID_COLUMN, LandUse, generate_properties


def test_columns_and_identifiers(generated, small_config):
    assert list(generated.columns) == [ID_COLUMN] + FEATURE_COLUMNS
    assert len(generated) == small_config.n_properties
    assert generated[ID_COLUMN].is_unique
    assert generated[ID_COLUMN].iloc[0] == "P0001"


def test_land_use_values_are_known(generated):
    known = {member.value for member in LandUse}
    assert set(generated["land_use"].astype(str)) <= known
    assert list(generated["land_use"].cat.categories) == [m.value for m in LandUse]


def test_area_positive_and_water_floor(small_config):
    df = generate_properties(PropClustConfig(n_properties=2000, random_seed=3))
    assert (df["parcel_area"] > 0).all()
    floor = small_config.water_floor * small_config.min_water_multiplier
    assert (df["avg_daily_water_consumption"] >= floor).all()


def test_bedrooms_follow_land_use(small_config):
    df = generate_properties(PropClustConfig(n_properties=2000, random_seed=5))
    for name, params in small_config.land_use.items():
        seen = set(df.loc[df["land_use"] == name, "bedrooms"].unique())
        assert seen <= set(params["bedrooms"])


def test_rural_parcels_are_larger_than_flats():
    df = generate_properties(PropClustConfig(n_properties=2000, random_seed=5))
    medians = df.groupby("land_use", observed=True)["parcel_area"].median()
    assert medians["Rural-Residential"] > medians["House"] > medians["Flats"]


def test_same_seed_same_data(small_config):
    first = generate_properties(small_config)
    second = generate_properties(small_config)
    pd.testing.assert_frame_equal(first, second)


def test_different_seed_different_data(small_config):
    other = PropClustConfig(n_properties=small_config.n_properties, random_seed=99)
    assert not generate_properties(small_config)["parcel_area"].equals(
        generate_properties(other)["parcel_area"]
    )
