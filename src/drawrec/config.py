"""
Configuration and constants for drawing recognition.

Pipeline (fixed order, applied identically to query and references):
- raw points → resample to N points → first point as origin → 2-channel matrix → embedding

The model contract is N = 128 points in, 128-element embedding out.
"""

from enum import Enum
from dataclasses import dataclass, field
from typing import Optional, Dict, Any
import json
from pathlib import Path


# Model tensor contract
N_POINTS = 128
EMBEDDING_DIM = 128

# Gaussian jitter std as a fraction of the bounding-box diagonal
JITTER_RATIO = 1e-4

# Guards divide-by-zero when every point coincides
FEATURE_EPSILON = 1e-8

# Returned by get_match when nothing can be matched
NO_MATCH = "None"


class SamplingPolicy(Enum):
    """
    How a variable-length drawing is brought to exactly N points.

    FPS (default): farthest-point sampling, shape preserving.
        - Undersized drawings are padded with jittered copies.

    UNIFORM: every k-th point / random repeats.
        - Regularizes density only, does not preserve shape.
    """
    FPS = "fps"
    UNIFORM = "uniform"


@dataclass
class RecognizerConfig:
    """
    Global configuration for drawing recognition.

    n_points and embedding_dim must match the embedding model.
    query_seed and the per-reference name hash keep padding reproducible
    across runs, so they should not change once references are in use.

    max_distance is an opt-in rejection threshold with no calibrated value:
    useful distances depend on the embedding model, and nothing enables it
    implicitly. Leave it at None unless a host has measured its own cutoff.
    """

    # Model contract
    n_points: int = N_POINTS
    embedding_dim: int = EMBEDDING_DIM

    # Resampling
    sampling_policy: SamplingPolicy = SamplingPolicy.FPS
    jitter_ratio: float = JITTER_RATIO
    jitter_upscale: bool = False
    query_seed: int = 0

    # Library loading
    set_first_as_origin_on_load: bool = True

    # Matching
    max_workers: int = 1
    max_distance: Optional[float] = None  # opt-in, uncalibrated; None = always return the best match

    # Paths (relative to project root)
    library_dir: Path = field(default_factory=lambda: Path("drawings"))
    model_path: Optional[Path] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "n_points": self.n_points,
            "embedding_dim": self.embedding_dim,
            "sampling_policy": self.sampling_policy.value,
            "jitter_ratio": self.jitter_ratio,
            "jitter_upscale": self.jitter_upscale,
            "query_seed": self.query_seed,
            "set_first_as_origin_on_load": self.set_first_as_origin_on_load,
            "max_workers": self.max_workers,
            "max_distance": self.max_distance,
            "library_dir": str(self.library_dir),
            "model_path": str(self.model_path) if self.model_path else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RecognizerConfig":
        data = dict(data)
        data["sampling_policy"] = SamplingPolicy(data.get("sampling_policy", "fps"))
        data["library_dir"] = Path(data.get("library_dir", "drawings"))
        if data.get("model_path"):
            data["model_path"] = Path(data["model_path"])
        return cls(**data)

    @classmethod
    def from_json(cls, path: Path) -> "RecognizerConfig":
        """Load config from JSON file."""
        with open(path) as f:
            return cls.from_dict(json.load(f))

    def save(self, path: Path) -> None:
        """Save config to JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)


# Global default config
DEFAULT_CONFIG = RecognizerConfig()
