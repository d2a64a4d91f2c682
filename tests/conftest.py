import pytest

from propclust.config import PropClustConfig
from propclust.generate import ID_COLUMN, generate_properties
from propclust.impute import knn_impute
from propclust.missing import inject_missing
from propclust.normalize import normalise_frame
from propclust.summary import split_columns


@pytest.fixture
def small_config(tmp_path):
    return PropClustConfig(
        output_dir=str(tmp_path / "out"),
        n_properties=200,
        n_clusters=3,
        n_init=2,
        elbow=False,
        elbow_max_k=4,
        random_seed=11,
        write_artifacts=False,
    )


@pytest.fixture
def generated(small_config):
    return generate_properties(small_config)


@pytest.fixture
def observed(generated, small_config):
    return inject_missing(generated, small_config.missing_fraction, small_config.random_seed)


@pytest.fixture
def columns(observed):
    return split_columns(observed, exclude=[ID_COLUMN])


@pytest.fixture
def imputed(observed, columns):
    numeric, categorical = columns
    return knn_impute(observed, numeric, categorical, n_neighbors=5)


@pytest.fixture
def normalised(imputed, columns):
    numeric, _ = columns
    return normalise_frame(imputed, numeric)
