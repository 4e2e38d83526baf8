"""
Drawing Recognizer - match 3D line drawings against named references.

Pipeline (identical for query and references):
- resample to N = 128 points (farthest-point sampling by default)
- first point as origin
- N x N x 2 distance / height-difference matrix
- embedding model, nearest reference by Euclidean distance

Usage:
    drawrec match query.json --library drawings/ --model model.onnx
"""

from .config import RecognizerConfig, SamplingPolicy, DEFAULT_CONFIG, NO_MATCH
from .errors import (
    DrawingError, EmptyInputError, PointShapeError, FeatureSizeError, DrawingFormatError, EmbeddingError,
)
from .normalize import normalize, set_first_as_origin, as_point_array
from .resample import resample, resample_uniform, farthest_point_sampling, stable_seed
from .features import encode, compute_2channel_matrix, to_input_tensor
from .embedder import Embedder, CallableEmbedder, OnnxEmbedder
from .library import ReferenceLibrary
from .io import DrawingRecord, load_drawing, load_drawing_from_json, save_drawing, load_library
from .matcher import DrawingMatcher, MatchResult, compare_embeddings, match

__version__ = "1.0.0"

__all__ = [
    'RecognizerConfig', 'SamplingPolicy', 'DEFAULT_CONFIG', 'NO_MATCH',
    'DrawingError', 'EmptyInputError', 'PointShapeError', 'FeatureSizeError', 'DrawingFormatError', 'EmbeddingError',
    'normalize', 'set_first_as_origin', 'as_point_array',
    'resample', 'resample_uniform', 'farthest_point_sampling', 'stable_seed',
    'encode', 'compute_2channel_matrix', 'to_input_tensor',
    'Embedder', 'CallableEmbedder', 'OnnxEmbedder',
    'ReferenceLibrary',
    'DrawingRecord', 'load_drawing', 'load_drawing_from_json', 'save_drawing', 'load_library',
    'DrawingMatcher', 'MatchResult', 'compare_embeddings', 'match',
]
