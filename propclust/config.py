from __future__ import annotations

import argparse
import json
import pathlib
import uuid
from dataclasses import dataclass, field, asdict
from typing import Dict, List, Optional

from .connection import DatabaseConfig


def _default_land_use() -> Dict[str, Dict[str, object]]:
    return {
        "House": {
            "share": 0.55,
            "area_meanlog": 6.4,
            "area_sdlog": 0.30,
            "bedrooms": [2, 3, 4, 5],
            "bedroom_probs": [0.10, 0.45, 0.35, 0.10],
            "water_multiplier": 1.0,
        },
        "Rural-Residential": {
            "share": 0.10,
            "area_meanlog": 9.2,
            "area_sdlog": 0.60,
            "bedrooms": [3, 4, 5],
            "bedroom_probs": [0.30, 0.45, 0.25],
            "water_multiplier": 1.6,
        },
        "Units": {
            "share": 0.20,
            "area_meanlog": 5.3,
            "area_sdlog": 0.35,
            "bedrooms": [1, 2, 3],
            "bedroom_probs": [0.30, 0.50, 0.20],
            "water_multiplier": 0.7,
        },
        "Flats": {
            "share": 0.15,
            "area_meanlog": 4.6,
            "area_sdlog": 0.30,
            "bedrooms": [1, 2],
            "bedroom_probs": [0.55, 0.45],
            "water_multiplier": 0.5,
        },
    }


@dataclass
class PropClustConfig:
    """Central configuration for a property clustering run."""

    output_dir: str = "outputs"
    n_properties: int = 1000
    missing_fraction: float = 0.2
    knn_neighbors: int = 5
    n_clusters: int = 5
    n_init: int = 10
    max_iter: int = 100
    elbow: bool = True
    elbow_max_k: int = 10
    random_seed: int = 7
    write_artifacts: bool = True
    water_base_mean: float = 0.5
    water_area_slope: float = 0.1
    water_sd: float = 0.15
    water_floor: float = 0.001
    land_use: Dict[str, Dict[str, object]] = field(default_factory=_default_land_use)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    run_id: Optional[str] = None

    @classmethod
    def from_args(cls, args: Optional[List[str]] = None) -> "PropClustConfig":
        parser = argparse.ArgumentParser(
            description="Generate, impute and cluster a synthetic property dataset."
        )
        parser.add_argument(
            "--output-dir",
            default="outputs",
            help="Directory for run artifacts (default: outputs)",
        )
        parser.add_argument(
            "--n-properties", type=int, default=1000, help="Number of properties to generate"
        )
        parser.add_argument(
            "--missing-fraction",
            type=float,
            default=0.2,
            help="Fraction of rows blanked per feature column",
        )
        parser.add_argument(
            "--knn-neighbors", type=int, default=5, help="Neighbours used for KNN imputation"
        )
        parser.add_argument(
            "--n-clusters", type=int, default=5, help="Number of K-Prototypes clusters"
        )
        parser.add_argument(
            "--n-init", type=int, default=10, help="Random restarts per K-Prototypes fit"
        )
        parser.add_argument(
            "--max-iter", type=int, default=100, help="Maximum iterations per restart"
        )
        parser.add_argument(
            "--elbow",
            action="store_true",
            default=True,
            help="Run the k=1..max elbow sweep (default on)",
        )
        parser.add_argument(
            "--no-elbow",
            dest="elbow",
            action="store_false",
            help="Skip the elbow sweep",
        )
        parser.add_argument(
            "--elbow-max-k", type=int, default=10, help="Largest k in the elbow sweep"
        )
        parser.add_argument(
            "--random-seed", type=int, default=7, help="Random seed for reproducibility"
        )
        parser.add_argument(
            "--no-artifacts",
            dest="write_artifacts",
            action="store_false",
            default=True,
            help="Print summaries only, do not write files",
        )
        parsed = parser.parse_args(args=args)
        config = cls(
            output_dir=parsed.output_dir,
            n_properties=parsed.n_properties,
            missing_fraction=parsed.missing_fraction,
            knn_neighbors=parsed.knn_neighbors,
            n_clusters=parsed.n_clusters,
            n_init=parsed.n_init,
            max_iter=parsed.max_iter,
            elbow=parsed.elbow,
            elbow_max_k=parsed.elbow_max_k,
            random_seed=parsed.random_seed,
            write_artifacts=parsed.write_artifacts,
        )
        config.validate()
        return config

    def validate(self) -> None:
        if self.n_properties < 1:
            raise ValueError(f"n_properties must be positive, got {self.n_properties}")
        if not 0 <= self.missing_fraction < 1:
            raise ValueError(f"missing_fraction must be in [0, 1), got {self.missing_fraction}")
        for name in ("knn_neighbors", "n_clusters", "n_init", "max_iter", "elbow_max_k"):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be at least 1, got {getattr(self, name)}")
        shares = [float(params["share"]) for params in self.land_use.values()]
        if abs(sum(shares) - 1.0) > 1e-9:
            raise ValueError(f"land use shares must sum to 1, got {sum(shares):.4f}")

    @property
    def land_use_names(self) -> List[str]:
        return list(self.land_use.keys())

    @property
    def min_water_multiplier(self) -> float:
        return min(float(params["water_multiplier"]) for params in self.land_use.values())

    def ensure_run_id(self) -> str:
        if not self.run_id:
            self.run_id = str(uuid.uuid4())
        return self.run_id

    def output_path(self, *parts: str) -> pathlib.Path:
        path = pathlib.Path(self.output_dir).joinpath(*parts)
        path.parent.mkdir(parents=True, exist_ok=True)
        return path

    def to_json(self) -> str:
        return json.dumps(asdict(self), indent=2, sort_keys=True)


def save_config_snapshot(config: PropClustConfig) -> None:
    path = config.output_path("propclust_config_snapshot.json")
    path.write_text(config.to_json())
