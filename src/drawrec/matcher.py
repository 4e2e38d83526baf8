"""
Nearest-neighbour drawing matcher.

Query and every reference go through the identical pipeline:
    resample (N points) → first point as origin → 2-channel matrix → embed

The reference with the smallest Euclidean embedding distance wins. There is
no confidence threshold unless max_distance is configured: some reference is
always returned while at least one reference could be embedded.

Failure policy:
- Empty or not-ready library, or no embedder: no match, nothing computed
- Query embedding fails: no match
- Reference resample / embedding fails: that reference is skipped
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import numpy as np
from tqdm import tqdm

from .config import NO_MATCH, RecognizerConfig, DEFAULT_CONFIG
from .embedder import Embedder, as_embedder
from .errors import DrawingError, EmbeddingError
from .features import compute_2channel_matrix
from .library import ReferenceLibrary
from .normalize import set_first_as_origin
from .resample import resample, stable_seed

logger = logging.getLogger(__name__)


@dataclass
class MatchResult:
    """Outcome of one match call. name is None when nothing matched."""
    name: Optional[str] = None
    distance: float = float("inf")
    scores: Dict[str, float] = field(default_factory=dict)
    skipped: List[str] = field(default_factory=list)

    @property
    def matched(self) -> bool:
        return self.name is not None

    @property
    def label(self) -> str:
        """Name of the match, or the "None" sentinel."""
        return self.name if self.name is not None else NO_MATCH

    def to_dict(self) -> Dict[str, Any]:
        return {
            "match": self.label,
            "distance": self.distance if self.matched else None,
            "scores": self.scores,
            "skipped": self.skipped
        }


def compare_embeddings(a: np.ndarray, b: np.ndarray) -> float:
    """
    Euclidean distance between two embeddings (lower = more similar).

    Embeddings of different length can never match and score +inf.
    """
    a = np.asarray(a, dtype=np.float64).ravel()
    b = np.asarray(b, dtype=np.float64).ravel()
    if a.shape != b.shape:
        logger.error(f"Embeddings must be same length ({a.size} != {b.size})")
        return float("inf")
    return float(np.linalg.norm(a - b))


class DrawingMatcher:
    """
    Match drawn gestures against a reference library.

    The library must be fully populated and marked ready before matching.
    The embedder is used but never closed by the matcher.
    """

    def __init__(
        self,
        library: Optional[ReferenceLibrary],
        embedder: Optional[Callable[[np.ndarray], np.ndarray]],
        config: RecognizerConfig = DEFAULT_CONFIG,
        progress: bool = False
    ):
        self.library = library
        self.config = config
        self.progress = progress
        self.embedder: Optional[Embedder] = (
            as_embedder(embedder, embedding_dim=config.embedding_dim) if embedder is not None else None
        )

    @property
    def is_ready(self) -> bool:
        return (
            self.embedder is not None
            and self.library is not None
            and self.library.is_ready
        )

    def prepare(self, points: Any, seed: Optional[int]) -> np.ndarray:
        """Resample and normalize one drawing. Returns an N x 3 array."""
        cfg = self.config
        sampled = resample(
            points,
            cfg.n_points,
            seed=seed,
            policy=cfg.sampling_policy,
            jitter_ratio=cfg.jitter_ratio,
            jitter_upscale=cfg.jitter_upscale
        )
        return set_first_as_origin(sampled)

    def featurize(self, points: Any, seed: Optional[int]) -> np.ndarray:
        """Full pre-embedding pipeline. Returns an (N, N, 2) matrix."""
        return compute_2channel_matrix(self.prepare(points, seed), n=self.config.n_points)

    def embed_drawing(self, points: Any, seed: Optional[int]) -> np.ndarray:
        """
        Embed one drawing.

        Raises:
            DrawingError: if the drawing cannot be resampled / encoded
            EmbeddingError: if the embedder fails
        """
        embedding = np.asarray(self.embedder.embed(self.featurize(points, seed)), dtype=np.float64).ravel()
        if embedding.size != self.config.embedding_dim:
            raise EmbeddingError(
                f"Expected {self.config.embedding_dim} embedding values, got {embedding.size}"
            )
        return embedding

    def _embed_reference(self, name: str) -> Optional[np.ndarray]:
        try:
            return self.embed_drawing(self.library[name], stable_seed(name))
        except (DrawingError, EmbeddingError) as e:
            logger.warning(f"Skipping reference '{name}': {e}")
            return None

    def _embed_references(self, names: List[str]) -> List[Optional[np.ndarray]]:
        workers = self.config.max_workers
        if workers > 1 and len(names) > 1:
            with ThreadPoolExecutor(max_workers=workers) as pool:
                results = pool.map(self._embed_reference, names)
                return list(tqdm(results, total=len(names), desc="References", disable=not self.progress))
        return [
            self._embed_reference(name)
            for name in tqdm(names, desc="References", disable=not self.progress)
        ]

    def match(self, query: Any) -> MatchResult:
        """
        Find the reference drawing closest to the query.

        References are ranked in lexicographic name order; on an exact
        distance tie the first name wins.

        Returns:
            MatchResult (name None if nothing could be matched)
        """
        if self.embedder is None:
            logger.error("Embedder not initialized")
            return MatchResult()

        if self.library is None or not self.library.is_ready:
            logger.warning("Reference library not set or not ready")
            return MatchResult()

        if len(self.library) == 0:
            logger.warning("No reference drawings loaded")
            return MatchResult()

        try:
            query_embedding = self.embed_drawing(query, self.config.query_seed)
        except (DrawingError, EmbeddingError) as e:
            logger.error(f"Could not embed query: {e}")
            return MatchResult()

        names = self.library.names()
        embeddings = self._embed_references(names)

        result = MatchResult()
        for name, embedding in zip(names, embeddings):
            if embedding is None:
                result.skipped.append(name)
                continue

            score = compare_embeddings(embedding, query_embedding)
            result.scores[name] = score
            logger.debug(f"Compared to '{name}', score {score}")

            if score < result.distance:
                result.distance = score
                result.name = name

        max_distance = self.config.max_distance
        if result.matched and max_distance is not None and result.distance > max_distance:
            logger.info(f"Best match '{result.name}' ({result.distance:.4f}) exceeds max distance {max_distance}")
            result.name = None

        logger.info(f"Found match: '{result.label}'")
        return result

    def get_match(self, points: Any) -> str:
        """Name of the best matching reference, or "None"."""
        return self.match(points).label


def match(
    query: Any,
    library: Optional[ReferenceLibrary],
    embed: Optional[Callable[[np.ndarray], np.ndarray]],
    config: RecognizerConfig = DEFAULT_CONFIG
) -> MatchResult:
    """One-shot match of query against library with embedding function embed."""
    return DrawingMatcher(library, embed, config).match(query)
