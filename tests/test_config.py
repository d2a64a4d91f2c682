import json

import pytest

from propclust.config import PropClustConfig
from propclust.connection import DatabaseConfig, describe_connection


def test_defaults():
    config = PropClustConfig()
    assert config.n_properties == 1000
    assert config.missing_fraction == 0.2
    assert config.knn_neighbors == 5
    assert config.n_clusters == 5
    assert config.elbow_max_k == 10
    assert config.land_use_names == ["House", "Rural-Residential", "Units", "Flats"]


def test_from_args():
    config = PropClustConfig.from_args(
        ["--n-properties", "50", "--n-clusters", "3", "--no-elbow", "--no-artifacts", "--random-seed", "4"]
    )
    assert config.n_properties == 50
    assert config.n_clusters == 3
    assert config.elbow is False
    assert config.write_artifacts is False
    assert config.random_seed == 4


@pytest.mark.parametrize(
    "overrides",
    [{"n_properties": 0}, {"missing_fraction": 1.0}, {"n_clusters": 0}, {"elbow_max_k": 0}],
)
def test_validate_rejects_bad_values(overrides):
    with pytest.raises(ValueError):
        PropClustConfig(**overrides).validate()


def test_validate_rejects_bad_shares():
    config = PropClustConfig()
    config.land_use["House"]["share"] = 0.9
    with pytest.raises(ValueError, match="shares"):
        config.validate()


def test_run_id_is_stable():
    config = PropClustConfig()
    run_id = config.ensure_run_id()
    assert config.ensure_run_id() == run_id


def test_output_path_creates_parents(tmp_path):
    config = PropClustConfig(output_dir=str(tmp_path / "runs"))
    path = config.output_path("summaries", "x.csv")
    assert path.parent.is_dir()


def test_to_json_includes_database():
    payload = json.loads(PropClustConfig().to_json())
    assert payload["database"]["trusted_connection"] == "True"


def test_database_placeholder_is_unconfigured():
    db = DatabaseConfig()
    assert not db.is_configured()
    assert describe_connection(db) == "unconfigured"
    assert db.connection_string() == "Driver={};Server=;Database=;Trusted_Connection=True"


def test_database_connection_string():
    db = DatabaseConfig(driver="SQL Server", server="edw01", database="property")
    assert db.is_configured()
    assert describe_connection(db) == "configured"
    assert db.connection_string() == (
        "Driver={SQL Server};Server=edw01;Database=property;Trusted_Connection=True"
    )
