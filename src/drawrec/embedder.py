"""
Embedding backends.

The embedding model is an external collaborator: it takes one (N, N, 2)
feature matrix and returns one fixed-length vector, or fails. An Embedder owns
whatever engine resources it needs and releases them in close(); the matcher
uses an embedder but never closes it.
"""

import logging
from pathlib import Path
from typing import Callable, List, Optional

import numpy as np

from .config import EMBEDDING_DIM
from .errors import EmbeddingError
from .features import to_input_tensor

logger = logging.getLogger(__name__)

try:
    import onnxruntime as ort
    ONNXRUNTIME_AVAILABLE = True
except ImportError:
    ONNXRUNTIME_AVAILABLE = False
    logger.warning("onnxruntime not available")


class Embedder:
    """Base class for FeatureMatrix -> Embedding backends."""

    embedding_dim: int = EMBEDDING_DIM

    def embed(self, features: np.ndarray) -> np.ndarray:
        """
        Embed one feature matrix.

        Raises:
            EmbeddingError: if no embedding can be produced
        """
        raise NotImplementedError

    def __call__(self, features: np.ndarray) -> np.ndarray:
        return self.embed(features)

    def close(self) -> None:
        """Release engine resources. Safe to call more than once."""

    def __enter__(self) -> "Embedder":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class CallableEmbedder(Embedder):
    """
    Adapt a plain function to the Embedder interface.

    Any exception from the function, and any output that is not a flat vector
    of at least embedding_dim values, becomes an EmbeddingError.
    """

    def __init__(self, fn: Callable[[np.ndarray], np.ndarray], embedding_dim: int = EMBEDDING_DIM):
        self.fn = fn
        self.embedding_dim = embedding_dim

    def embed(self, features: np.ndarray) -> np.ndarray:
        try:
            output = self.fn(features)
        except EmbeddingError:
            raise
        except Exception as e:
            raise EmbeddingError(f"Embedding function failed: {e}") from e
        return _take_embedding(output, self.embedding_dim)


class OnnxEmbedder(Embedder):
    """
    Embedding model executed with onnxruntime.

    The model takes a float32 (1, N, N, 2) NHWC tensor and its first output
    holds the embedding. A model that cannot be loaded raises EmbeddingError.
    """

    def __init__(
        self,
        model_path: Path,
        embedding_dim: int = EMBEDDING_DIM,
        providers: Optional[List[str]] = None
    ):
        if not ONNXRUNTIME_AVAILABLE:
            raise ImportError("onnxruntime required for OnnxEmbedder")

        self.model_path = Path(model_path)
        self.embedding_dim = embedding_dim
        try:
            self.session = ort.InferenceSession(str(self.model_path), providers=providers)
            self.input_name = self.session.get_inputs()[0].name
        except Exception as e:
            raise EmbeddingError(f"Failed to load model {self.model_path}: {e}") from e
        logger.info(f"Loaded embedding model {self.model_path} (input '{self.input_name}')")

    def embed(self, features: np.ndarray) -> np.ndarray:
        if self.session is None:
            raise EmbeddingError("Embedder has been closed")

        tensor = to_input_tensor(features)
        try:
            outputs = self.session.run(None, {self.input_name: tensor})
        except Exception as e:
            raise EmbeddingError(f"Inference failed: {e}") from e
        return _take_embedding(outputs[0], self.embedding_dim)

    def close(self) -> None:
        if self.session is not None:
            logger.debug(f"Releasing session for {self.model_path}")
        self.session = None


def _take_embedding(output, embedding_dim: int) -> np.ndarray:
    """First embedding_dim values of a model output, as float64."""
    if output is None:
        raise EmbeddingError("Embedder returned no output")
    flat = np.asarray(output, dtype=np.float64).ravel()
    if flat.size < embedding_dim:
        raise EmbeddingError(f"Expected {embedding_dim} embedding values, got {flat.size}")
    return flat[:embedding_dim].copy()


def as_embedder(fn, embedding_dim: int = EMBEDDING_DIM) -> Embedder:
    """Return fn unchanged if it is already an Embedder, else wrap it."""
    if isinstance(fn, Embedder):
        return fn
    return CallableEmbedder(fn, embedding_dim=embedding_dim)
